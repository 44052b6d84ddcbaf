"""Registry commands - list field types and build quick templates."""

from pathlib import Path
from typing import Optional

import typer

from form_engine.cli._app import app
from form_engine.cli._common import setup_logging, write_definition
from form_engine.cli._console import console, output_table, print_err, print_ok
from form_engine.services.notifications import RecordingNotifier


@app.command("types", help="List registered field types grouped by category.")
def types_list(
    ctx: typer.Context,
):
    """List registered field types."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    from form_engine.registry.field_types import field_types_by_category

    rows = []
    for category, field_types in field_types_by_category().items():
        for field_type in field_types:
            rows.append({
                "category": category.value,
                "type": field_type.type_id.value,
                "label": field_type.display_label,
                "default_label": field_type.default_label,
                "options": len(field_type.default_option_set),
            })
    output_table(rows, ctx=ctx, title="Field types")


@app.command("template", help="Build a form definition from a quick template.")
def template_build(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Template id, e.g. student-registration"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON here instead of stdout"),
):
    """Build a definition from a quick template."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    from form_engine.authoring.builder import FormAuthoringEngine
    from form_engine.authoring.templates import list_templates
    from form_engine.errors import SchemaError

    engine = FormAuthoringEngine(notifier=RecordingNotifier())
    try:
        engine.load_template(name)
    except SchemaError as e:
        print_err(str(e))
        console.print("Available templates:")
        for template in list_templates():
            console.print(f"  {template.template_id:<22} {template.description}")
        raise SystemExit(1)

    written = write_definition(engine.definition, output)
    if written:
        print_ok(f"Wrote {engine.field_count} fields to {written}")
