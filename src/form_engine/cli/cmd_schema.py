"""Schema commands - check a definition and reorder its fields."""

from pathlib import Path
from typing import Optional

import typer

from form_engine.cli._app import app
from form_engine.cli._common import load_computed, load_definition, setup_logging, write_definition
from form_engine.cli._console import output_json, output_table, print_err, print_ok, print_warn
from form_engine.errors import DependencyError, FormEngineError, SchemaError, UnknownFieldType
from form_engine.registry.field_types import is_choice_like, resolve_kind
from form_engine.schemas.form_schema import FormDefinition


def collect_problems(definition: FormDefinition, computed_path: Optional[Path]) -> list[dict]:
    """Find invariant and computed-annotation problems in a definition.

    Returns:
        Rows with ``level`` ("error" or "warning"), ``field`` and ``message``.
    """
    problems: list[dict] = []

    if not definition.fields:
        problems.append({"level": "error", "field": "", "message": "Form has no fields"})

    orders = sorted(field.order for field in definition.fields)
    if orders != list(range(len(orders))):
        problems.append({
            "level": "warning",
            "field": "",
            "message": f"Field order is not dense 0..{len(orders) - 1}: {orders}",
        })

    for field in definition.fields:
        try:
            resolve_kind(field.type_id)
        except UnknownFieldType as e:
            problems.append({"level": "warning", "field": field.id, "message": f"{e} (renders as text)"})
            continue
        if is_choice_like(field.type_id) and not field.options:
            problems.append({"level": "error", "field": field.id, "message": "Choice field has no options"})

    if computed_path is not None:
        from form_engine.runtime.computed import validate_computed_specs

        wire = definition.to_wire()
        names = [field["name"] for field in wire["fields"]]
        try:
            validate_computed_specs(load_computed(computed_path), names)
        except DependencyError as e:
            problems.append({"level": "error", "field": e.field_name, "message": str(e)})

    return problems


@app.command("validate", help="Check a form definition for invariant problems.")
def validate_definition(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Form definition JSON/YAML"),
    computed: Optional[Path] = typer.Option(None, "--computed", "-c", help="Computed-field annotations"),
):
    """Report order, option and computed-field problems; exit 1 on errors."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    try:
        definition = load_definition(path)
        problems = collect_problems(definition, computed)
    except FormEngineError as e:
        print_err(str(e))
        raise SystemExit(1)

    errors = [row for row in problems if row["level"] == "error"]
    if ctx.obj["json"]:
        output_json({"valid": not errors, "problems": problems})
    elif problems:
        output_table(problems, ctx=ctx, title=f"Problems in {path.name}", columns=["level", "field", "message"])

    if errors:
        print_err(f"{len(errors)} error(s) in {path}")
        raise SystemExit(1)
    if problems:
        print_warn(f"{path} is usable with {len(problems)} warning(s)")
    else:
        print_ok(f"{path} is valid ({len(definition.fields)} fields)")


@app.command("reorder", help="Move one field to a new position and renumber order.")
def reorder_field(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Form definition JSON/YAML"),
    field_id: str = typer.Argument(..., help="Id of the field to move"),
    index: int = typer.Argument(..., help="Zero-based target position"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON here instead of stdout"),
):
    """Apply one reorder and write the renumbered definition."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    from form_engine.authoring.builder import FormAuthoringEngine
    from form_engine.services.notifications import RecordingNotifier

    try:
        engine = FormAuthoringEngine(load_definition(path), notifier=RecordingNotifier())
        moved = engine.reorder(field_id, index)
    except SchemaError as e:
        print_err(str(e))
        raise SystemExit(1)

    if not moved:
        print_err(f"No field with id '{field_id}' in {path}")
        raise SystemExit(1)

    written = write_definition(engine.definition, output)
    if written:
        print_ok(f"Moved {field_id} to position {index}; wrote {written}")
