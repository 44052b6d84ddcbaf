"""Form definition schemas (the persisted wire contract)."""

from form_engine.schemas.form_schema import (
    FORM_CATEGORIES,
    FieldValidation,
    FormDefinition,
    FormField,
    FormSettings,
    Option,
    generate_field_name,
)

__all__ = [
    "FORM_CATEGORIES",
    "FieldValidation",
    "FormDefinition",
    "FormField",
    "FormSettings",
    "Option",
    "generate_field_name",
]
