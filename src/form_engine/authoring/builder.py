"""
Form Authoring Engine - operator edits over an ordered field list.

Responsibility: own the FormDefinition being authored and keep its
invariants while the operator adds, edits, retypes, deletes and drags
fields around:
- field ids are unique and never change
- ``order`` equals list index right after every reorder
- choice fields always keep at least one option
- a form always keeps at least one field once it has one

All operations are synchronous and in-memory. Rejected mutations leave
the schema untouched, notify the operator, and raise a SchemaError
subclass. Edits aimed at a field that no longer exists are silent
no-ops, since a blurred input may race a delete.

Retyping policy: options survive moves between generic choice kinds,
domain choice kinds always install their fixed set, and leaving the
choice family discards the options. Re-selecting the current type
keeps the field as it is.
"""

import logging
import uuid
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from form_engine.authoring.templates import get_template
from form_engine.errors import (
    MinimumFieldViolation,
    MinimumOptionViolation,
    SchemaError,
    UnknownFieldType,
)
from form_engine.registry.field_types import (
    default_options_for,
    is_choice_like,
    is_generic_choice,
    lookup,
    resolve_kind,
)
from form_engine.schemas.form_schema import FormDefinition, FormField, Option
from form_engine.services.interfaces import Notifier
from form_engine.services.notifications import LoggingNotifier

logger = logging.getLogger(__name__)

# Keys a field patch may not touch
_IMMUTABLE_FIELD_KEYS = {"id"}

# Form-level attributes editable through update_form()
_FORM_METADATA_KEYS = {"title", "description", "category", "language", "is_active", "settings"}


def _new_field_id() -> str:
    return f"field_{uuid.uuid4().hex[:12]}"


def _kind_of(type_id: str) -> Optional[str]:
    try:
        return resolve_kind(type_id).value
    except UnknownFieldType:
        return None


def _field_key_map() -> Dict[str, str]:
    """Map every accepted patch key (name or alias) to the model attribute."""
    key_map: Dict[str, str] = {}
    for attr, info in FormField.model_fields.items():
        key_map[attr] = attr
        if info.alias:
            key_map[info.alias] = attr
        if info.serialization_alias:
            key_map[info.serialization_alias] = attr
    key_map["type"] = "type_id"
    return key_map


_FIELD_KEYS = _field_key_map()


class FormAuthoringEngine:
    """In-memory editor for one FormDefinition.

    Args:
        definition: Existing definition to edit (copied); a blank one if None.
        notifier: Side-channel for operator-facing messages.
        id_factory: Generator for new field ids (must return fresh strings).
    """

    def __init__(
        self,
        definition: Optional[FormDefinition] = None,
        *,
        notifier: Optional[Notifier] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._definition = definition.model_copy(deep=True) if definition else FormDefinition()
        self._notifier = notifier or LoggingNotifier()
        self._id_factory = id_factory or _new_field_id
        self.active_field_id: Optional[str] = None

    # -------------------------------------------------------------------------
    # Read access (copies only; all mutation goes through the operations)
    # -------------------------------------------------------------------------

    @property
    def definition(self) -> FormDefinition:
        return self._definition.model_copy(deep=True)

    @property
    def fields(self) -> List[FormField]:
        return [field.model_copy(deep=True) for field in self._definition.fields]

    @property
    def field_count(self) -> int:
        return len(self._definition.fields)

    @property
    def required_count(self) -> int:
        return sum(1 for field in self._definition.fields if field.required)

    def get_field(self, field_id: str) -> Optional[FormField]:
        index = self._index_of(field_id)
        if index is None:
            return None
        return self._definition.fields[index].model_copy(deep=True)

    # -------------------------------------------------------------------------
    # Form metadata
    # -------------------------------------------------------------------------

    def update_form(self, **metadata: Any) -> None:
        """Update title/description/category/language/is_active/settings.

        Raises:
            SchemaError: On unknown keys or invalid values.
        """
        unknown = set(metadata) - _FORM_METADATA_KEYS
        if unknown:
            self._reject(SchemaError(f"Unknown form attributes: {sorted(unknown)}"))
        data = self._definition.model_dump()
        data.update(metadata)
        self._definition = self._validate(FormDefinition, data)

    def mark_saved(self, form_id: str, slug: Optional[str], *, published: bool) -> None:
        """Record the persisted identity after a successful save."""
        self._definition.form_id = form_id
        self._definition.slug = slug
        if published:
            self._definition.is_published = True

    # -------------------------------------------------------------------------
    # Field operations
    # -------------------------------------------------------------------------

    def add_field(self, type_id: str, **overrides: Any) -> str:
        """Append a new field of ``type_id`` with registry defaults.

        The new field becomes the active field.

        Returns:
            The new field's id.

        Raises:
            UnknownFieldType: If ``type_id`` is not registered.
        """
        field = self._build_field(type_id, order=len(self._definition.fields), overrides=overrides)
        self._definition.fields.append(field)
        self.active_field_id = field.id
        logger.debug(f"Added field {field.id} ({field.type_id}) at order {field.order}")
        return field.id

    def update_field(self, field_id: str, patch: Dict[str, Any]) -> bool:
        """Shallow-merge ``patch`` into a field.

        A ``type_id``/``typeId`` key is applied through change_field_type
        rules. The ``id`` key is ignored.

        Returns:
            True if the field existed and was updated, False otherwise.

        Raises:
            SchemaError: If the merged field is invalid.
        """
        index = self._index_of(field_id)
        if index is None:
            logger.debug(f"update_field ignored for missing field {field_id}")
            return False

        normalized = self._normalize_patch(patch)
        current = self._definition.fields[index]

        new_type = normalized.pop("type_id", None)
        if new_type is not None and new_type != current.type_id:
            explicit_options = normalized.pop("options", None)
            current = self._retyped(current, new_type, explicit_options)

        data = current.model_dump()
        data.update(normalized)
        updated = self._validate(FormField, data)
        if is_choice_like(updated.type_id) and not updated.options:
            self._reject(MinimumOptionViolation(field_id))

        self._definition.fields[index] = updated
        return True

    def change_field_type(
        self,
        field_id: str,
        new_type_id: str,
        options: Optional[List[Option]] = None,
    ) -> bool:
        """Re-point a field at another type.

        Returns:
            True if the field existed, False otherwise.

        Raises:
            UnknownFieldType: If ``new_type_id`` is not registered.
            MinimumOptionViolation: If ``options`` is given but empty for a choice type.
        """
        index = self._index_of(field_id)
        if index is None:
            return False
        current = self._definition.fields[index]
        self._definition.fields[index] = self._retyped(current, new_type_id, options)
        return True

    def delete_field(self, field_id: str) -> bool:
        """Remove a field. Surviving ``order`` values are not renumbered.

        Returns:
            True if removed, False if the field did not exist.

        Raises:
            MinimumFieldViolation: If it is the form's only field.
        """
        index = self._index_of(field_id)
        if index is None:
            return False
        if len(self._definition.fields) == 1:
            self._reject(MinimumFieldViolation("You need at least one field"))
        del self._definition.fields[index]
        if self.active_field_id == field_id:
            self.active_field_id = None
        return True

    def reorder(self, field_id: str, target_index: int) -> bool:
        """Move a field to ``target_index`` and renumber every ``order``.

        Returns:
            True if the field existed, False otherwise.

        Raises:
            SchemaError: If ``target_index`` is outside the list.
        """
        fields = self._definition.fields
        index = self._index_of(field_id)
        if index is None:
            return False
        if target_index < 0 or target_index >= len(fields):
            self._reject(SchemaError(f"Target index {target_index} outside 0..{len(fields) - 1}"))

        field = fields.pop(index)
        fields.insert(target_index, field)
        self._renumber()
        return True

    def duplicate_field(self, field_id: str) -> Optional[str]:
        """Insert a copy of a field right after it, with a fresh id.

        Returns:
            The copy's id, or None if the source field does not exist.
        """
        index = self._index_of(field_id)
        if index is None:
            return None
        source = self._definition.fields[index]
        copy = source.model_copy(
            deep=True,
            update={"id": self._fresh_id(), "name": "", "label": f"{source.label} (copy)"},
        )
        self._definition.fields.insert(index + 1, copy)
        self._renumber()
        self.active_field_id = copy.id
        return copy.id

    def load_template(self, template_id: str) -> None:
        """Replace title, description and fields with a quick template.

        Raises:
            SchemaError: If the template does not exist.
        """
        try:
            template = get_template(template_id)
        except SchemaError as e:
            self._reject(e)
        fields = [
            self._build_field(type_id, order=position, overrides={})
            for position, type_id in enumerate(template.type_ids)
        ]
        self._definition.title = template.title
        self._definition.description = template.description
        self._definition.fields = fields
        self.active_field_id = None
        self._notifier.success(f"{template.title} template loaded")

    # -------------------------------------------------------------------------
    # Option operations
    # -------------------------------------------------------------------------

    def add_option(self, field_id: str) -> Optional[str]:
        """Append a numbered option to a field.

        Returns:
            The new option id, or None if the field does not exist.
        """
        index = self._index_of(field_id)
        if index is None:
            return None
        field = self._definition.fields[index]
        position = len(field.options) + 1
        existing = {option.id for option in field.options}
        suffix = position
        while f"opt_{suffix}" in existing:
            suffix += 1
        option = Option(id=f"opt_{suffix}", value=f"option{position}", label=f"Option {position}")
        self._definition.fields[index] = field.model_copy(update={"options": field.options + [option]})
        return option.id

    def update_option(self, field_id: str, option_id: str, patch: Dict[str, Any]) -> bool:
        """Shallow-merge ``patch`` (value/label) into one option.

        Returns:
            True if the option existed, False otherwise.
        """
        index = self._index_of(field_id)
        if index is None:
            return False
        field = self._definition.fields[index]
        if field.option_by_id(option_id) is None:
            return False

        allowed = {key: value for key, value in patch.items() if key in ("value", "label")}
        options = [
            option.model_copy(update=allowed) if option.id == option_id else option
            for option in field.options
        ]
        self._definition.fields[index] = field.model_copy(update={"options": options})
        return True

    def delete_option(self, field_id: str, option_id: str) -> bool:
        """Remove one option.

        Returns:
            True if removed, False if field or option did not exist.

        Raises:
            MinimumOptionViolation: If it is the last option of a choice field.
        """
        index = self._index_of(field_id)
        if index is None:
            return False
        field = self._definition.fields[index]
        if field.option_by_id(option_id) is None:
            return False
        if is_choice_like(field.type_id) and len(field.options) == 1:
            self._reject(MinimumOptionViolation(field_id))
        options = [option for option in field.options if option.id != option_id]
        self._definition.fields[index] = field.model_copy(update={"options": options})
        return True

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _index_of(self, field_id: str) -> Optional[int]:
        for index, field in enumerate(self._definition.fields):
            if field.id == field_id:
                return index
        return None

    def _renumber(self) -> None:
        self._definition.fields = [
            field if field.order == position else field.model_copy(update={"order": position})
            for position, field in enumerate(self._definition.fields)
        ]

    def _fresh_id(self) -> str:
        existing = {field.id for field in self._definition.fields}
        field_id = self._id_factory()
        while field_id in existing:
            field_id = self._id_factory()
        return field_id

    def _build_field(self, type_id: str, *, order: int, overrides: Dict[str, Any]) -> FormField:
        try:
            field_type = lookup(type_id)
        except SchemaError as e:
            self._reject(e)
        data: Dict[str, Any] = {
            "id": self._fresh_id(),
            "type_id": field_type.type_id.value,
            "label": field_type.default_label,
            "placeholder": field_type.default_placeholder,
            "order": order,
            "options": default_options_for(type_id),
        }
        data.update(self._normalize_patch(overrides))
        return self._validate(FormField, data)

    def _retyped(
        self,
        field: FormField,
        new_type_id: str,
        options: Optional[List[Any]],
    ) -> FormField:
        try:
            new_type = lookup(new_type_id)
        except SchemaError as e:
            self._reject(e)

        kind = new_type.type_id.value
        if options is None and kind == _kind_of(field.type_id):
            logger.debug(f"Field {field.id} already has type {kind}; options kept")
            return field
        if options is not None and is_choice_like(kind):
            if not options:
                self._reject(MinimumOptionViolation(field.id))
            new_options = [
                option if isinstance(option, Option) else Option.model_validate(option)
                for option in options
            ]
        elif not is_choice_like(kind):
            new_options = []
        elif is_generic_choice(kind) and is_choice_like(field.type_id) and field.options:
            new_options = [option.model_copy() for option in field.options]
        else:
            new_options = default_options_for(kind)

        logger.debug(f"Field {field.id}: {field.type_id} -> {kind} ({len(new_options)} options)")
        return field.model_copy(update={"type_id": kind, "options": new_options})

    def _normalize_patch(self, patch: Dict[str, Any]) -> Dict[str, Any]:
        normalized: Dict[str, Any] = {}
        for key, value in patch.items():
            attr = _FIELD_KEYS.get(key)
            if attr is None:
                self._reject(SchemaError(f"Unknown field attribute '{key}'"))
            if attr in _IMMUTABLE_FIELD_KEYS:
                logger.warning(f"Ignoring attempt to change immutable field attribute '{key}'")
                continue
            normalized[attr] = value
        return normalized

    def _validate(self, model: Any, data: Dict[str, Any]) -> Any:
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            self._reject(SchemaError(f"Invalid {model.__name__}: {e}"))

    def _reject(self, error: SchemaError) -> None:
        logger.warning(f"Rejected authoring change: {error}")
        self._notifier.error(str(error))
        raise error
