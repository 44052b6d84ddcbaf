"""Pydantic schemas for persisted form definitions.

These models are the wire contract with the forms persistence API.
Python attribute names are snake_case; the JSON shape uses the
camelCase aliases (``typeId``, ``helpText``, ``isPublished`` ...).

Field ``type_id`` is kept as a plain string so that definitions
carrying a type this engine does not know still load; the renderer
falls back to a text input for those.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError as PydanticValidationError,
    field_validator,
    model_validator,
)

from form_engine.errors import SchemaError

FORM_CATEGORIES = ("general", "language-course", "test-preparation", "consultation")

MAX_FIELD_NAME_LENGTH = 50


def generate_field_name(label: str) -> str:
    """Derive a machine name from a field label.

    "Which language would you like?" -> "which_language_would_you_like"
    """
    name = label.lower()
    name = re.sub(r"[^a-z0-9\s]", "", name)
    name = re.sub(r"\s+", "_", name.strip())
    return name[:MAX_FIELD_NAME_LENGTH]


class Option(BaseModel):
    """One selectable entry of a choice field."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, description="Unique within the owning field")
    value: str = Field(default="", description="Machine value submitted")
    label: str = Field(default="", description="Display text")


class FieldValidation(BaseModel):
    """Per-field validation rules enforced at submit time."""

    model_config = ConfigDict(populate_by_name=True)

    min_length: Optional[int] = Field(default=None, alias="minLength", ge=0)
    max_length: Optional[int] = Field(default=None, alias="maxLength", ge=0)
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: Optional[str]) -> Optional[str]:
        """Validate that pattern is a valid regex."""
        if v:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"Invalid regex pattern '{v}': {e}")
        return v or None


class FormField(BaseModel):
    """One typed input slot of a form.

    Attributes:
        id: Immutable identifier, unique within the form.
        type_id: Registry type id (see form_engine.registry.field_types).
        name: Submission key; derived from the label when blank.
        order: Position among the form's fields. Dense 0..N-1 right after
            a reorder; may have gaps after deletes.
        options: Choice entries; ignored for non-choice types.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    type_id: str = Field(
        ...,
        validation_alias=AliasChoices("typeId", "type_id", "type"),
        serialization_alias="typeId",
    )
    name: str = ""
    label: str = ""
    placeholder: str = ""
    required: bool = False
    help_text: str = Field(default="", alias="helpText")
    order: int = Field(default=0, ge=0)
    options: List[Option] = Field(default_factory=list)
    validation: FieldValidation = Field(default_factory=FieldValidation)

    # File fields
    upload_purpose: Optional[str] = Field(default=None, alias="uploadPurpose")
    allow_multiple: bool = Field(default=False, alias="allowMultiple")
    max_size_mb: Optional[float] = Field(default=None, alias="maxSizeMb", gt=0)
    url_placeholder: str = Field(default="", alias="urlPlaceholder")
    preview: bool = False

    # Remote option source (select-fetch / multiselect-fetch)
    fetch_endpoint: Optional[str] = Field(default=None, alias="fetchEndpoint")
    fetch_key: Optional[str] = Field(default=None, alias="fetchKey")
    value_key: str = Field(default="id", alias="valueKey")
    label_key: str = Field(default="name", alias="labelKey")

    @model_validator(mode="after")
    def validate_option_ids(self):
        """Option ids must be unique within the field."""
        seen = set()
        for option in self.options:
            if option.id in seen:
                raise ValueError(f"Duplicate option id '{option.id}' in field '{self.id}'")
            seen.add(option.id)
        return self

    def option_by_id(self, option_id: str) -> Optional[Option]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


class FormSettings(BaseModel):
    """Submission settings of a published form."""

    model_config = ConfigDict(populate_by_name=True)

    max_capacity: Optional[int] = Field(default=None, alias="maxCapacity", ge=1)
    submission_deadline: Optional[datetime] = Field(default=None, alias="submissionDeadline")


class FormDefinition(BaseModel):
    """A complete form: metadata plus the ordered field list it owns."""

    model_config = ConfigDict(populate_by_name=True)

    form_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("id", "_id", "formId", "form_id"),
        serialization_alias="id",
    )
    slug: Optional[str] = None
    title: str = Field(
        default="",
        validation_alias=AliasChoices("title", "name"),
        serialization_alias="title",
    )
    description: str = ""
    fields: List[FormField] = Field(default_factory=list)
    is_published: bool = Field(default=False, alias="isPublished")
    is_active: bool = Field(default=True, alias="isActive")
    category: str = "general"
    language: Optional[str] = None
    settings: FormSettings = Field(default_factory=FormSettings)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        if v not in FORM_CATEGORIES:
            raise ValueError(f"Unknown form category '{v}'. Valid categories: {list(FORM_CATEGORIES)}")
        return v

    @model_validator(mode="after")
    def validate_field_ids(self):
        """Field ids must be unique within the form."""
        seen = set()
        for field in self.fields:
            if field.id in seen:
                raise ValueError(f"Duplicate field id '{field.id}'")
            seen.add(field.id)
        return self

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "FormDefinition":
        """Parse a definition returned by the forms API.

        Raises:
            SchemaError: If the payload does not match the definition shape.
        """
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise SchemaError(f"Invalid form definition: {e}") from e

    def sorted_fields(self) -> List[FormField]:
        """Fields in render order (by ``order``, ties keep list position)."""
        indexed = list(enumerate(self.fields))
        indexed.sort(key=lambda pair: (pair[1].order, pair[0]))
        return [field for _, field in indexed]

    def to_wire(self) -> Dict[str, Any]:
        """Serialize for the forms API, filling blank field names.

        Names are derived from labels and de-duplicated with a numeric
        suffix so every submission key is unique.
        """
        payload = self.model_dump(by_alias=True, mode="json")
        used: set = set()
        for index, field_payload in enumerate(payload["fields"]):
            base = field_payload.get("name") or generate_field_name(field_payload.get("label") or "")
            if not base:
                base = f"field_{index + 1}"
            name = base
            suffix = 2
            while name in used:
                name = f"{base}_{suffix}"
                suffix += 1
            used.add(name)
            field_payload["name"] = name
        return payload
