"""Error taxonomy for the form engine.

Authoring mutations raise SchemaError subclasses after leaving the
schema untouched. Computed-field misconfiguration raises DependencyError
at schema load. Remote collaborators raise FetchError, and submission
checks raise ValidationError with one message per offending field.
"""

from typing import Dict, Optional


class FormEngineError(Exception):
    """Base class for all form engine errors."""
    pass


class ConfigError(FormEngineError):
    """Raised when engine settings cannot be loaded or are invalid."""
    pass


class SchemaError(FormEngineError):
    """Raised when a schema mutation or schema document is invalid."""
    pass


class UnknownFieldType(SchemaError):
    """Raised when a type id is not in the field type registry."""

    def __init__(self, type_id: str):
        self.type_id = type_id
        super().__init__(f"Unknown field type: '{type_id}'")


class MinimumFieldViolation(SchemaError):
    """Raised when a delete would leave a form without fields."""

    def __init__(self, message: str = "A form must keep at least one field"):
        super().__init__(message)


class MinimumOptionViolation(SchemaError):
    """Raised when a delete would leave a choice field without options."""

    def __init__(self, field_id: str):
        self.field_id = field_id
        super().__init__(f"Choice field '{field_id}' must keep at least one option")


class DependencyError(FormEngineError):
    """Raised when computed-field dependencies are self-referential or multi-hop."""

    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        super().__init__(f"Computed field '{field_name}': {message}")


class FetchError(FormEngineError):
    """Raised when an option source, upload or submission call fails."""

    def __init__(self, message: str, field_name: Optional[str] = None):
        self.field_name = field_name
        super().__init__(message)


class ValidationError(FormEngineError):
    """Raised when submission values fail field-level checks.

    Attributes:
        field_errors: Mapping of field name to a human-readable message.
    """

    def __init__(self, field_errors: Dict[str, str]):
        self.field_errors = dict(field_errors)
        names = ", ".join(sorted(self.field_errors))
        super().__init__(f"Validation failed for: {names}")
