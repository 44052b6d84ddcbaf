"""Submission assembly: value transforms, field validation, file uploads.

Order of operations on submit:
1. transform raw values (field transform, else the kind's default)
2. validate transformed values; every failure is reported per field
3. upload local files so the payload only carries URLs
"""

import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from form_engine.errors import FetchError, ValidationError
from form_engine.registry.field_types import (
    CHOICE_KINDS,
    DEFAULT_MAX_UPLOAD_MB,
    MULTI_VALUE_KINDS,
    FieldKind,
)
from form_engine.runtime.computed import is_filled
from form_engine.runtime.fields import RuntimeField, ValueTransform
from form_engine.runtime.file_or_url import is_file_like
from form_engine.services.interfaces import FileStorage

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_TEXT_KINDS = frozenset({
    FieldKind.TEXT,
    FieldKind.EMAIL,
    FieldKind.TEL,
    FieldKind.URL,
    FieldKind.TEXTAREA,
    FieldKind.JSON,
    FieldKind.COLOR,
})

_NUMERIC_KINDS = frozenset({FieldKind.NUMBER, FieldKind.RANGE})


def _strip(value: Any, values: Mapping[str, Any]) -> Any:
    return value.strip() if isinstance(value, str) else value


def _to_number(value: Any, values: Mapping[str, Any]) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text == "":
            return None
        try:
            number = float(text)
        except ValueError:
            return value
        return int(number) if number.is_integer() else number
    return value


def _to_list(value: Any, values: Mapping[str, Any]) -> Any:
    if isinstance(value, (list, tuple, set)):
        return [item for item in value if is_filled(item)]
    if value is None or value == "":
        return []
    return [value]


def default_transform(rf: RuntimeField) -> Optional[ValueTransform]:
    """Built-in transform for a field kind (None when values pass through)."""
    if rf.kind in _TEXT_KINDS:
        return _strip
    if rf.kind in _NUMERIC_KINDS:
        return _to_number
    if rf.kind in MULTI_VALUE_KINDS:
        return _to_list
    return None


def apply_transforms(fields: Sequence[RuntimeField], values: Mapping[str, Any]) -> Dict[str, Any]:
    """Transform raw values; each transform sees the partially transformed map.

    Raises:
        ValidationError: Naming every field whose transform raised.
    """
    payload = {rf.name: values.get(rf.name) for rf in fields}
    errors: Dict[str, str] = {}
    for rf in fields:
        transform = rf.transform or default_transform(rf)
        if transform is None or payload[rf.name] is None:
            continue
        try:
            payload[rf.name] = transform(payload[rf.name], payload)
        except Exception as e:
            logger.error(f"Transform for field '{rf.name}' failed: {e}")
            errors[rf.name] = f"Could not process {rf.label or rf.name}"
    if errors:
        raise ValidationError(errors)
    return payload


def validate_values(
    fields: Sequence[RuntimeField],
    values: Mapping[str, Any],
    *,
    max_upload_mb: float = DEFAULT_MAX_UPLOAD_MB,
) -> Dict[str, str]:
    """Check required, format, length, range, choice and file size rules.

    Args:
        fields: Fields to check.
        values: Transformed values by field name.
        max_upload_mb: Size limit for file fields without their own.

    Returns:
        ``field name -> message`` for each failing field (empty when valid).
    """
    errors: Dict[str, str] = {}
    for rf in fields:
        message = _field_error(rf, values.get(rf.name), max_upload_mb)
        if message:
            errors[rf.name] = message
    return errors


def _field_error(rf: RuntimeField, value: Any, max_upload_mb: float) -> Optional[str]:
    if not is_filled(value):
        if rf.required:
            return f"{rf.label or rf.name} is required"
        return None

    rules = rf.validation

    if rf.kind == FieldKind.EMAIL and not EMAIL_PATTERN.match(str(value)):
        return "Please enter a valid email address"

    if rf.kind == FieldKind.JSON:
        try:
            json.loads(value)
        except (TypeError, ValueError):
            return "Invalid JSON format"

    if rf.kind in _NUMERIC_KINDS:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return "Must be a number"
        if rules.min is not None and value < rules.min:
            return f"Must be at least {rules.min:g}"
        if rules.max is not None and value > rules.max:
            return f"Must be at most {rules.max:g}"

    if isinstance(value, str):
        if rules.min_length is not None and len(value) < rules.min_length:
            return f"Must be at least {rules.min_length} characters"
        if rules.max_length is not None and len(value) > rules.max_length:
            return f"Must be at most {rules.max_length} characters"
        if rules.pattern and not re.fullmatch(rules.pattern, value):
            return "Does not match the required format"

    if rf.kind in CHOICE_KINDS and rf.options:
        allowed = {option.value for option in rf.options}
        chosen = value if isinstance(value, list) else [value]
        invalid = [str(item) for item in chosen if item not in allowed]
        if invalid:
            return f"Invalid choice: {', '.join(invalid)}"

    files = _file_items(value)
    if files:
        limit = rf.max_size_mb or max_upload_mb
        for item in files:
            size = getattr(item, "size", None)
            if isinstance(size, int) and size > limit * 1024 * 1024:
                return f"File is larger than {limit:g}MB"

    return None


def _file_items(value: Any) -> List[Any]:
    if is_file_like(value):
        return [value]
    if isinstance(value, list):
        return [item for item in value if is_file_like(item)]
    return []


async def upload_files(
    payload: Mapping[str, Any],
    storage: Optional[FileStorage],
    folder: str,
) -> Dict[str, Any]:
    """Replace file values with uploaded URLs.

    In lists only the file items are uploaded; URL strings already in the
    list keep their position.

    Raises:
        FetchError: If an upload fails or no storage is configured.
    """
    processed = dict(payload)
    for key, value in payload.items():
        if not _file_items(value):
            continue

        if storage is None:
            raise FetchError(f"No file storage configured to upload {key}", field_name=key)
        try:
            if isinstance(value, list):
                uploaded = [
                    await storage.upload_file(item, folder) if is_file_like(item) else item
                    for item in value
                ]
            else:
                uploaded = await storage.upload_file(value, folder)
        except FetchError as e:
            logger.error(f"File upload failed for {key}: {e}")
            raise FetchError(f"Failed to upload {key}. Please try again.", field_name=key) from e
        processed[key] = uploaded
    return processed
