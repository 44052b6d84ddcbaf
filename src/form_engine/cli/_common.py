"""Shared CLI helpers: logging setup and form/annotation file loading."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from rich.logging import RichHandler

from form_engine.errors import DependencyError, SchemaError
from form_engine.runtime.computed import ComputedFieldSpec
from form_engine.schemas.form_schema import FormDefinition

logger = logging.getLogger(__name__)


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    from form_engine.cli._console import console

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Suppress noisy third-party loggers
    for name in ("urllib3", "requests"):
        logging.getLogger(name).setLevel(logging.WARNING)


def _read_document(path: Path) -> Any:
    """Read a JSON or YAML document (JSON is tried first)."""
    if not path.exists():
        raise SchemaError(f"File not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SchemaError(f"{path} is neither valid JSON nor YAML: {e}")


def load_definition(path: Path) -> FormDefinition:
    """Load a FormDefinition document.

    Accepts a bare definition or the API envelope ``{"form": {...}}``.

    Raises:
        SchemaError: If the file is missing or not a valid definition.
    """
    data = _read_document(path)
    if isinstance(data, dict) and isinstance(data.get("form"), dict):
        data = data["form"]
    if not isinstance(data, dict):
        raise SchemaError(f"{path} must contain a form definition object")
    return FormDefinition.from_wire(data)


def load_computed(path: Optional[Path]) -> Dict[str, ComputedFieldSpec]:
    """Load computed-field annotations keyed by field name.

    Raises:
        SchemaError: If the file is not a mapping.
        DependencyError: If an annotation names no usable strategy.
    """
    if path is None:
        return {}
    data = _read_document(path) or {}
    if not isinstance(data, dict):
        raise SchemaError(f"{path} must map field names to computed annotations")
    specs: Dict[str, ComputedFieldSpec] = {}
    for name, config in data.items():
        if not isinstance(config, dict):
            raise DependencyError(str(name), "annotation must be a mapping")
        specs[str(name)] = ComputedFieldSpec.from_config(str(name), config)
    return specs


def parse_assignments(assignments: List[str]) -> Dict[str, Any]:
    """Parse ``name=value`` pairs; values that parse as JSON lists stay lists.

    Raises:
        ValueError: If an assignment has no ``=``.
    """
    values: Dict[str, Any] = {}
    for assignment in assignments:
        if "=" not in assignment:
            raise ValueError(f"Expected name=value, got '{assignment}'")
        name, raw = assignment.split("=", 1)
        value: Any = raw
        if raw.startswith("["):
            try:
                value = json.loads(raw)
            except json.JSONDecodeError:
                value = raw
        values[name.strip()] = value
    return values


def write_definition(definition: FormDefinition, output: Optional[Path]) -> Optional[Path]:
    """Write a definition as wire JSON to ``output`` (stdout when None)."""
    wire = definition.to_wire()
    if output is None:
        from form_engine.cli._console import output_json

        output_json(wire)
        return None
    payload = json.dumps(wire, indent=2, ensure_ascii=False)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(payload + "\n", encoding="utf-8")
    return output
