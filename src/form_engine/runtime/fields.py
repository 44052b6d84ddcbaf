"""Runtime field definitions.

A RuntimeField is a persisted FormField expanded for rendering: the
type id resolved to a FieldKind (unknown ids fall back to text), the
submission name filled in, and the render-time annotations attached
(computed spec, value transform, remote option source).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from form_engine.errors import UnknownFieldType
from form_engine.registry.field_types import (
    FETCH_KINDS,
    FILE_KINDS,
    FieldKind,
    accept_types_for,
    file_type_display,
    resolve_kind,
)
from form_engine.runtime.computed import ComputedFieldSpec
from form_engine.runtime.options import FetchSource
from form_engine.schemas.form_schema import FieldValidation, FormField, Option, generate_field_name

logger = logging.getLogger(__name__)

# (raw value, full value map) -> transformed value
ValueTransform = Callable[[Any, Mapping[str, Any]], Any]


@dataclass
class RuntimeField:
    """One field as seen by the renderer."""

    name: str
    kind: FieldKind
    label: str = ""
    type_id: str = ""
    required: bool = False
    placeholder: str = ""
    help_text: str = ""
    order: int = 0
    options: List[Option] = field(default_factory=list)
    validation: FieldValidation = field(default_factory=FieldValidation)
    computed: Optional[ComputedFieldSpec] = None
    transform: Optional[ValueTransform] = None
    fetch: Optional[FetchSource] = None
    accept: str = ""
    accept_display: str = ""
    allow_multiple: bool = False
    max_size_mb: Optional[float] = None
    preview: bool = False
    url_placeholder: str = ""
    extras: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.type_id:
            self.type_id = self.kind.value
        if self.kind in FETCH_KINDS and self.fetch is None:
            self.fetch = FetchSource()

    @property
    def is_fetch(self) -> bool:
        return self.kind in FETCH_KINDS

    @property
    def is_file(self) -> bool:
        return self.kind in FILE_KINDS

    @classmethod
    def from_field(
        cls,
        form_field: FormField,
        *,
        computed: Optional[ComputedFieldSpec] = None,
        transform: Optional[ValueTransform] = None,
        fetch_transform: Optional[Callable[[Dict[str, Any]], Any]] = None,
    ) -> "RuntimeField":
        """Expand a persisted field for rendering."""
        try:
            kind = resolve_kind(form_field.type_id)
        except UnknownFieldType:
            logger.warning(
                f"Field '{form_field.id}' has unknown type '{form_field.type_id}', rendering as text"
            )
            kind = FieldKind.TEXT

        name = form_field.name or generate_field_name(form_field.label) or form_field.id

        fetch = None
        if kind in FETCH_KINDS:
            fetch = FetchSource(
                endpoint=form_field.fetch_endpoint,
                fetch_key=form_field.fetch_key,
                value_key=form_field.value_key,
                label_key=form_field.label_key,
                transform=fetch_transform,
            )

        accept = ""
        accept_display = ""
        if kind in FILE_KINDS:
            accept = accept_types_for(form_field.upload_purpose)
            accept_display = file_type_display(form_field.upload_purpose)

        return cls(
            name=name,
            kind=kind,
            label=form_field.label,
            type_id=form_field.type_id,
            required=form_field.required,
            placeholder=form_field.placeholder,
            help_text=form_field.help_text,
            order=form_field.order,
            options=[option.model_copy() for option in form_field.options],
            validation=form_field.validation.model_copy(),
            computed=computed,
            transform=transform,
            fetch=fetch,
            accept=accept,
            accept_display=accept_display,
            allow_multiple=form_field.allow_multiple,
            max_size_mb=form_field.max_size_mb,
            preview=form_field.preview,
            url_placeholder=form_field.url_placeholder,
        )
