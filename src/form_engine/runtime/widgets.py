"""
Widget Factory - turns runtime fields into rendered input descriptors.

The renderer is framework-agnostic: it produces RenderedInput records
that a UI layer (web template, TUI, CLI table) draws. Every FieldKind
has exactly one builder in WidgetFactory.BUILDERS; the module refuses to
import if one is missing.

Type Mappings:
- text/email/tel/url/date/datetime-local/number/password -> input(type=kind)
- textarea                                     -> textarea
- json                                         -> textarea (JSON checked at submit)
- select + consultancy kinds                   -> select
- multiselect                                  -> select(multiple)
- multi-choice                                 -> checkbox-group
- radio                                        -> radio-group
- select-fetch / multiselect-fetch             -> select (options fetched, disabled while loading)
- range / color                                -> range / color
- file                                         -> file
- file-or-url                                  -> file-or-url (mode toggle + preview)
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from form_engine.registry.field_types import DEFAULT_MAX_UPLOAD_MB, FieldKind
from form_engine.runtime.fields import RuntimeField
from form_engine.schemas.form_schema import Option

AUTO_COMPUTED_BADGE = "Auto-computed"


@dataclass
class RenderState:
    """Per-render inputs the factory needs besides the field itself."""

    value: Any = None
    options: List[Option] = field(default_factory=list)
    auto_computed: bool = False
    loading: bool = False
    error: Optional[str] = None
    input_mode: Optional[str] = None
    preview_url: Optional[str] = None


@dataclass
class RenderedInput:
    """Framework-neutral description of one input to draw."""

    name: str
    label: str
    kind: FieldKind
    widget: str
    value: Any = None
    input_type: Optional[str] = None
    options: List[Option] = field(default_factory=list)
    placeholder: str = ""
    help_text: str = ""
    required: bool = False
    disabled: bool = False
    multiple: bool = False
    badge: Optional[str] = None
    error: Optional[str] = None
    accept: str = ""
    accept_display: str = ""
    input_mode: Optional[str] = None
    preview_url: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def auto_computed(self) -> bool:
        return self.badge == AUTO_COMPUTED_BADGE


class WidgetFactory:
    """Builds RenderedInput records from RuntimeField + RenderState."""

    @staticmethod
    def _base(rf: RuntimeField, state: RenderState, widget: str, **extra: Any) -> RenderedInput:
        rendered = RenderedInput(
            name=rf.name,
            label=rf.label,
            kind=rf.kind,
            widget=widget,
            value=state.value,
            placeholder=rf.placeholder,
            help_text=rf.help_text,
            required=rf.required,
            disabled=state.auto_computed,
            badge=AUTO_COMPUTED_BADGE if state.auto_computed else None,
            error=state.error,
        )
        for key, value in extra.items():
            setattr(rendered, key, value)
        return rendered

    @staticmethod
    def input(rf: RuntimeField, state: RenderState) -> RenderedInput:
        rendered = WidgetFactory._base(rf, state, "input", input_type=rf.kind.value)
        if rf.kind == FieldKind.NUMBER:
            rendered.attributes = {
                key: value
                for key, value in (("min", rf.validation.min), ("max", rf.validation.max), ("step", rf.extras.get("step")))
                if value is not None
            }
        return rendered

    @staticmethod
    def textarea(rf: RuntimeField, state: RenderState) -> RenderedInput:
        rows = rf.extras.get("rows", 6 if rf.kind == FieldKind.JSON else 4)
        rendered = WidgetFactory._base(rf, state, "textarea", attributes={"rows": rows})
        if rf.kind == FieldKind.JSON and not rendered.placeholder:
            rendered.placeholder = '{"key": "value"}'
        return rendered

    @staticmethod
    def select(rf: RuntimeField, state: RenderState) -> RenderedInput:
        multiple = rf.kind == FieldKind.MULTISELECT
        rendered = WidgetFactory._base(rf, state, "select", options=list(rf.options), multiple=multiple)
        if not multiple and not rendered.placeholder:
            rendered.placeholder = "Select…"
        return rendered

    @staticmethod
    def fetched_select(rf: RuntimeField, state: RenderState) -> RenderedInput:
        multiple = rf.kind == FieldKind.MULTISELECT_FETCH
        rendered = WidgetFactory._base(rf, state, "select", options=list(state.options), multiple=multiple)
        rendered.disabled = rendered.disabled or state.loading
        if not multiple:
            rendered.placeholder = "Loading…" if state.loading else (rf.placeholder or "Select…")
        return rendered

    @staticmethod
    def checkbox_group(rf: RuntimeField, state: RenderState) -> RenderedInput:
        return WidgetFactory._base(rf, state, "checkbox-group", options=list(rf.options), multiple=True)

    @staticmethod
    def radio_group(rf: RuntimeField, state: RenderState) -> RenderedInput:
        return WidgetFactory._base(rf, state, "radio-group", options=list(rf.options))

    @staticmethod
    def range(rf: RuntimeField, state: RenderState) -> RenderedInput:
        low = rf.validation.min if rf.validation.min is not None else 0
        high = rf.validation.max if rf.validation.max is not None else 100
        return WidgetFactory._base(
            rf, state, "range",
            attributes={"min": low, "max": high, "step": rf.extras.get("step", 1)},
        )

    @staticmethod
    def color(rf: RuntimeField, state: RenderState) -> RenderedInput:
        rendered = WidgetFactory._base(rf, state, "color")
        if not rendered.placeholder:
            rendered.placeholder = "#000000"
        return rendered

    @staticmethod
    def file(rf: RuntimeField, state: RenderState) -> RenderedInput:
        return WidgetFactory._base(
            rf, state, "file",
            accept=rf.accept,
            accept_display=rf.accept_display,
            multiple=rf.allow_multiple,
            attributes={"max_size_mb": rf.max_size_mb or DEFAULT_MAX_UPLOAD_MB},
        )

    @staticmethod
    def file_or_url(rf: RuntimeField, state: RenderState) -> RenderedInput:
        return WidgetFactory._base(
            rf, state, "file-or-url",
            accept=rf.accept,
            accept_display=rf.accept_display,
            input_mode=state.input_mode,
            preview_url=state.preview_url if rf.preview else None,
            placeholder=rf.url_placeholder or rf.placeholder,
        )

    BUILDERS: Dict[FieldKind, Callable[[RuntimeField, RenderState], RenderedInput]] = {}

    @classmethod
    def create(cls, rf: RuntimeField, state: RenderState) -> RenderedInput:
        """Render one field; the builder is chosen by the field's kind."""
        return cls.BUILDERS[rf.kind](rf, state)


WidgetFactory.BUILDERS = {
    FieldKind.TEXT: WidgetFactory.input,
    FieldKind.EMAIL: WidgetFactory.input,
    FieldKind.TEL: WidgetFactory.input,
    FieldKind.URL: WidgetFactory.input,
    FieldKind.DATE: WidgetFactory.input,
    FieldKind.DATETIME: WidgetFactory.input,
    FieldKind.NUMBER: WidgetFactory.input,
    FieldKind.PASSWORD: WidgetFactory.input,
    FieldKind.TEXTAREA: WidgetFactory.textarea,
    FieldKind.JSON: WidgetFactory.textarea,
    FieldKind.RANGE: WidgetFactory.range,
    FieldKind.COLOR: WidgetFactory.color,
    FieldKind.SELECT: WidgetFactory.select,
    FieldKind.MULTISELECT: WidgetFactory.select,
    FieldKind.LANGUAGE_SELECTION: WidgetFactory.select,
    FieldKind.PROFICIENCY_LEVEL: WidgetFactory.select,
    FieldKind.EDUCATION_LEVEL: WidgetFactory.select,
    FieldKind.TIME_PREFERENCE: WidgetFactory.select,
    FieldKind.MULTI_CHOICE: WidgetFactory.checkbox_group,
    FieldKind.RADIO: WidgetFactory.radio_group,
    FieldKind.SELECT_FETCH: WidgetFactory.fetched_select,
    FieldKind.MULTISELECT_FETCH: WidgetFactory.fetched_select,
    FieldKind.FILE: WidgetFactory.file,
    FieldKind.FILE_OR_URL: WidgetFactory.file_or_url,
}

_missing = set(FieldKind) - set(WidgetFactory.BUILDERS)
if _missing:
    raise RuntimeError(f"WidgetFactory has no builder for: {sorted(k.value for k in _missing)}")
