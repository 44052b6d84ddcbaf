"""Field type registry."""

from form_engine.registry.field_types import (
    FieldCategory,
    FieldKind,
    FieldType,
    all_field_types,
    default_options_for,
    field_types_by_category,
    is_choice_like,
    lookup,
    resolve_kind,
)

__all__ = [
    "FieldCategory",
    "FieldKind",
    "FieldType",
    "all_field_types",
    "default_options_for",
    "field_types_by_category",
    "is_choice_like",
    "lookup",
    "resolve_kind",
]
