"""
Form Runtime Renderer.

FormRenderer turns a field list into live input state:

1. Schema load: fields sorted by ``order``, names checked for
   uniqueness, computed annotations validated (DependencyError fails
   fast here, never at runtime).
2. Value updates: every accepted mutation of the value map is followed
   synchronously by computed-field resolution, so a render never shows a
   stale computed value next to fresh inputs.
3. Options: fetch-backed fields load in parallel through OptionLoader;
   only the field awaiting its options is disabled.
4. Submit: transforms, per-field validation, file uploads, then the
   injected submit coroutine. Only ``submitting`` is flagged meanwhile.

The renderer owns its value map; callers read copies and mutate only
through set_value / switch_input_mode.
"""

import dataclasses
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Mapping, Optional, Sequence

from form_engine.config.settings import EngineSettings, get_settings
from form_engine.errors import FetchError, FormEngineError, SchemaError, ValidationError
from form_engine.registry.field_types import FieldKind, MULTI_VALUE_KINDS
from form_engine.runtime.computed import (
    ComputedFieldSpec,
    resolve_computed_fields,
    validate_computed_specs,
)
from form_engine.runtime.fields import RuntimeField, ValueTransform
from form_engine.runtime.file_or_url import FileOrUrlInput, InputMode, PreviewRegistry
from form_engine.runtime.options import OptionCache, OptionLoader
from form_engine.runtime.submission import apply_transforms, upload_files, validate_values
from form_engine.runtime.widgets import RenderedInput, RenderState, WidgetFactory
from form_engine.schemas.form_schema import FormDefinition, Option
from form_engine.services.interfaces import FileStorage, Notifier, OptionSource
from form_engine.services.notifications import LoggingNotifier

logger = logging.getLogger(__name__)

Submitter = Callable[[Dict[str, Any]], Awaitable[Any]]


def _initial_value(rf: RuntimeField) -> Any:
    if rf.kind in MULTI_VALUE_KINDS:
        return []
    if rf.kind == FieldKind.FILE:
        return None
    return ""


class FormRenderer:
    """Live state of one rendered form.

    Args:
        fields: Runtime fields (any order; rendered sorted by ``order``).
        option_source: Remote list endpoint for fetch-backed fields.
        file_storage: Upload target for file values at submit.
        option_cache: Shared fetched-option cache; a private one if None.
        api_endpoints: ``fetch_key -> endpoint`` lookup for fetch sources.
        notifier: User-facing notification side-channel.
        settings: Engine settings; process settings if None.
        default_values: Initial values by field name.
        schema_version: Cache key for this schema; generated if None.

    Raises:
        SchemaError: If two fields share a name.
        DependencyError: If a computed annotation is invalid.
    """

    def __init__(
        self,
        fields: Sequence[RuntimeField],
        *,
        option_source: Optional[OptionSource] = None,
        file_storage: Optional[FileStorage] = None,
        option_cache: Optional[OptionCache] = None,
        api_endpoints: Optional[Mapping[str, str]] = None,
        notifier: Optional[Notifier] = None,
        settings: Optional[EngineSettings] = None,
        default_values: Optional[Mapping[str, Any]] = None,
        schema_version: Optional[str] = None,
    ):
        self.settings = settings or get_settings()
        self.notifier = notifier or LoggingNotifier()
        self.file_storage = file_storage
        self.option_cache = option_cache if option_cache is not None else OptionCache()
        self._loader = OptionLoader(
            option_source,
            cache=self.option_cache,
            api_endpoints=api_endpoints,
            concurrency=self.settings.fetch_concurrency,
        )
        self._previews = PreviewRegistry()
        self.revision = 0
        self.submitting = False
        self.closed = False
        self._install(fields, default_values, schema_version)

    @classmethod
    def from_definition(
        cls,
        definition: FormDefinition,
        *,
        computed: Optional[Mapping[str, ComputedFieldSpec]] = None,
        transforms: Optional[Mapping[str, ValueTransform]] = None,
        fetch_transforms: Optional[Mapping[str, Callable[[Dict[str, Any]], Any]]] = None,
        **kwargs: Any,
    ) -> "FormRenderer":
        """Build a renderer from a persisted definition.

        Render-time annotations are keyed by field name. Blank names are
        filled the same way the definition is serialized.
        """
        computed = computed or {}
        transforms = transforms or {}
        fetch_transforms = fetch_transforms or {}

        named = FormDefinition.model_validate(definition.to_wire())
        fields: List[RuntimeField] = []
        for form_field in named.sorted_fields():
            rf = RuntimeField.from_field(form_field)
            rf.computed = computed.get(rf.name)
            rf.transform = transforms.get(rf.name)
            if rf.fetch is not None and rf.name in fetch_transforms:
                rf.fetch = dataclasses.replace(rf.fetch, transform=fetch_transforms[rf.name])
            fields.append(rf)

        kwargs.setdefault("schema_version", named.form_id)
        return cls(fields, **kwargs)

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def _install(
        self,
        fields: Sequence[RuntimeField],
        default_values: Optional[Mapping[str, Any]],
        schema_version: Optional[str],
    ) -> None:
        indexed = sorted(enumerate(fields), key=lambda pair: (pair[1].order, pair[0]))
        ordered = [self._with_upload_limit(rf) for _, rf in indexed]

        by_name: Dict[str, RuntimeField] = {}
        for rf in ordered:
            if rf.name in by_name:
                raise SchemaError(f"Duplicate field name '{rf.name}'")
            by_name[rf.name] = rf

        specs = {rf.name: rf.computed for rf in ordered if rf.computed is not None}
        validate_computed_specs(specs, by_name)

        defaults = dict(default_values or {})
        unknown = set(defaults) - set(by_name)
        if unknown:
            logger.warning(f"Ignoring default values for unknown fields: {sorted(unknown)}")

        self._fields = ordered
        self._by_name = by_name
        self._specs = specs
        self._blanks = {rf.name: _initial_value(rf) for rf in ordered if rf.computed is not None}
        self.schema_version = schema_version or uuid.uuid4().hex[:12]
        self._values: Dict[str, Any] = {
            rf.name: defaults.get(rf.name, _initial_value(rf)) for rf in ordered
        }
        self._options: Dict[str, List[Option]] = {
            rf.name: ([] if rf.is_fetch else list(rf.options)) for rf in ordered
        }
        self._options_loaded: set = set()
        self._loading: set = set()
        self._errors: Dict[str, str] = {}
        self._computed: FrozenSet[str] = frozenset()
        self._hybrids: Dict[str, FileOrUrlInput] = {
            rf.name: FileOrUrlInput(rf.name, self._previews, self._values[rf.name])
            for rf in ordered
            if rf.kind == FieldKind.FILE_OR_URL
        }
        self._recompute()
        logger.debug(
            f"Loaded schema {self.schema_version}: {len(ordered)} fields, {len(specs)} computed"
        )

    def _with_upload_limit(self, rf: RuntimeField) -> RuntimeField:
        if rf.is_file and rf.max_size_mb is None:
            return dataclasses.replace(rf, max_size_mb=self.settings.max_upload_mb)
        return rf

    def replace_schema(
        self,
        fields: Sequence[RuntimeField],
        *,
        default_values: Optional[Mapping[str, Any]] = None,
        schema_version: Optional[str] = None,
    ) -> None:
        """Swap in a new field list; in-flight fetches are cancelled."""
        self._loader.cancel()
        self._close_hybrids()
        self._install(fields, default_values, schema_version)
        self.revision += 1

    def close(self) -> None:
        """Cancel pending fetches and revoke every preview handle."""
        if self.closed:
            return
        self._loader.cancel()
        self._close_hybrids()
        self._loading.clear()
        self.closed = True

    def _close_hybrids(self) -> None:
        for hybrid in self._hybrids.values():
            hybrid.close()

    @property
    def fields(self) -> List[RuntimeField]:
        return list(self._fields)

    @property
    def field_names(self) -> List[str]:
        return [rf.name for rf in self._fields]

    def _field(self, name: str) -> RuntimeField:
        rf = self._by_name.get(name)
        if rf is None:
            raise SchemaError(f"Unknown field '{name}'")
        return rf

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    @property
    def values(self) -> Dict[str, Any]:
        return dict(self._values)

    def get_value(self, name: str) -> Any:
        self._field(name)
        return self._values.get(name)

    def is_computed(self, name: str) -> bool:
        """True while the field shows a value produced by its annotation."""
        return name in self._computed

    def is_loading(self, name: str) -> bool:
        return name in self._loading

    def is_disabled(self, name: str) -> bool:
        return self.is_computed(name) or self.is_loading(name)

    def input_mode(self, name: str) -> Optional[InputMode]:
        hybrid = self._hybrids.get(name)
        return hybrid.mode if hybrid else None

    def preview_url(self, name: str) -> Optional[str]:
        hybrid = self._hybrids.get(name)
        return hybrid.preview_url if hybrid else None

    def error_for(self, name: str) -> Optional[str]:
        return self._errors.get(name)

    def set_value(self, name: str, value: Any) -> bool:
        """Set one input value and resolve computed fields.

        Returns:
            True when the value map changed. Writes to a field that is
            currently auto-computed are ignored.

        Raises:
            SchemaError: Unknown field, or a value that does not fit the
                current mode of a file-or-url field.
        """
        self._field(name)
        if name in self._computed:
            logger.warning(f"Ignoring write to auto-computed field '{name}'")
            return False

        hybrid = self._hybrids.get(name)
        if hybrid is not None and not hybrid.accepts(value):
            raise SchemaError(
                f"Field '{name}' is in {hybrid.mode.value}-mode and cannot take {type(value).__name__}"
            )

        if self._values.get(name) == value:
            return False

        self._values[name] = value
        if hybrid is not None:
            hybrid.on_value(value)
        self._errors.pop(name, None)
        self._recompute()
        self.revision += 1
        return True

    def set_values(self, values: Mapping[str, Any]) -> FrozenSet[str]:
        """Apply several inputs in order; returns the names that changed."""
        return frozenset(name for name, value in values.items() if self.set_value(name, value))

    def switch_input_mode(self, name: str, mode: InputMode | str) -> bool:
        """Toggle a file-or-url field between url-mode and file-mode.

        The previous mode's value is cleared. Returning to url-mode
        restores the computed default when the field has one.
        """
        rf = self._field(name)
        hybrid = self._hybrids.get(name)
        if hybrid is None:
            raise SchemaError(f"Field '{name}' is not a file-or-url field")
        mode = InputMode(mode)
        if hybrid.mode == mode:
            return False
        if name in self._computed:
            logger.warning(f"Ignoring mode switch on auto-computed field '{name}'")
            return False

        computed_default = None
        if mode == InputMode.URL and rf.computed is not None and rf.computed.is_satisfied(self._values):
            try:
                computed_default = rf.computed.compute(self._values)
            except Exception as e:
                logger.error(f"Computing default for '{name}' failed: {e}")

        self._values[name] = hybrid.switch(mode, self._values.get(name), computed_default)
        self._errors.pop(name, None)
        self._recompute()
        self.revision += 1
        return True

    def _recompute(self) -> FrozenSet[str]:
        # Hybrid fields holding a user file are not overwritten
        specs = {
            name: spec
            for name, spec in self._specs.items()
            if name not in self._hybrids or self._hybrids[name].mode == InputMode.URL
        }
        resolution = resolve_computed_fields(
            self._values, specs, self._computed & set(specs), self._blanks
        )
        self._values = resolution.values
        self._computed = resolution.computed
        for name in resolution.changed:
            if name in self._hybrids:
                self._hybrids[name].on_value(self._values[name])
        return resolution.changed

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def options_for(self, name: str) -> List[Option]:
        self._field(name)
        return [option.model_copy() for option in self._options.get(name, [])]

    async def load_options(self) -> Dict[str, List[Option]]:
        """Fetch options for fetch-backed fields that have none yet.

        Fields already holding a non-empty fetched list are skipped, so
        re-renders never refetch them. Failures leave that field empty.
        """
        sources = {
            rf.name: rf.fetch
            for rf in self._fields
            if rf.is_fetch and rf.fetch is not None and rf.name not in self._options_loaded
        }
        if not sources or self.closed:
            return {}

        version = self.schema_version
        self._loading |= set(sources)
        try:
            results = await self._loader.load(sources, version)
        finally:
            if version == self.schema_version:
                self._loading -= set(sources)

        if version != self.schema_version or self.closed:
            logger.debug(f"Dropping options loaded for replaced schema {version}")
            return {}

        for name, options in results.items():
            self._options[name] = options
            if options:
                self._options_loaded.add(name)
        if results:
            self.revision += 1
        return results

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> List[RenderedInput]:
        """Rendered input descriptors in ``order``."""
        rendered = []
        for rf in self._fields:
            hybrid = self._hybrids.get(rf.name)
            state = RenderState(
                value=self._values.get(rf.name),
                options=self._options.get(rf.name, []),
                auto_computed=rf.name in self._computed,
                loading=rf.name in self._loading,
                error=self._errors.get(rf.name),
                input_mode=hybrid.mode.value if hybrid else None,
                preview_url=hybrid.preview_url if hybrid else None,
            )
            rendered.append(WidgetFactory.create(rf, state))
        return rendered

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, submitter: Submitter) -> Dict[str, Any]:
        """Validate, upload files and hand the payload to ``submitter``.

        The value map is never cleared here, so a failed submit can be
        retried as-is.

        Returns:
            The payload that was submitted.

        Raises:
            ValidationError: With every offending field.
            FetchError: If an upload or the submit call fails.
        """
        if self.submitting:
            raise FormEngineError("A submission is already in progress")

        self.submitting = True
        try:
            try:
                payload = apply_transforms(self._fields, self._values)
                errors = validate_values(
                    self._fields, payload, max_upload_mb=self.settings.max_upload_mb
                )
            except ValidationError as e:
                errors = e.field_errors
            if errors:
                self._errors = errors
                self.notifier.error("Please fix the highlighted fields")
                raise ValidationError(errors)
            self._errors = {}

            try:
                payload = await upload_files(payload, self.file_storage, self.settings.upload_folder)
                await submitter(payload)
            except FetchError as e:
                self.notifier.error(str(e))
                raise
            except FormEngineError:
                raise
            except Exception as e:
                logger.error(f"Submission failed: {e}")
                self.notifier.error("Failed to submit form. Please try again.")
                raise FetchError(f"Submission failed: {e}") from e

            self.notifier.success("Form submitted successfully!")
            logger.info(f"Submitted form {self.schema_version} with {len(payload)} fields")
            return payload
        finally:
            self.submitting = False
