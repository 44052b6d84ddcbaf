"""Preview command - render a definition with sample values."""

from pathlib import Path
from typing import List, Optional

import typer

from form_engine.cli._app import app
from form_engine.cli._common import load_computed, load_definition, parse_assignments, setup_logging
from form_engine.cli._console import output_table, print_err, print_warn
from form_engine.errors import FormEngineError


def _display(value) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    return str(value)


@app.command("preview", help="Render a form definition with optional sample values.")
def preview_form(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Form definition JSON/YAML"),
    computed: Optional[Path] = typer.Option(None, "--computed", "-c", help="Computed-field annotations"),
    assignments: List[str] = typer.Option([], "--set", "-s", help="Input value as name=value (repeatable)"),
):
    """Apply values through the renderer and show the rendered inputs."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    from form_engine.config.settings import EngineSettings
    from form_engine.runtime.renderer import FormRenderer
    from form_engine.services.notifications import RecordingNotifier

    try:
        values = parse_assignments(assignments)
    except ValueError as e:
        print_err(str(e))
        raise SystemExit(1)

    try:
        renderer = FormRenderer.from_definition(
            load_definition(path),
            computed=load_computed(computed),
            notifier=RecordingNotifier(),
            settings=EngineSettings(),
        )
        for name, value in values.items():
            if not renderer.set_value(name, value) and renderer.is_computed(name):
                print_warn(f"'{name}' is auto-computed; value ignored")
    except FormEngineError as e:
        print_err(str(e))
        raise SystemExit(1)

    rows = []
    for rendered in renderer.render():
        rows.append({
            "name": rendered.name,
            "kind": rendered.kind.value,
            "widget": rendered.widget,
            "value": _display(rendered.value),
            "disabled": rendered.disabled,
            "auto_computed": rendered.auto_computed,
            "required": rendered.required,
        })
    renderer.close()

    output_table(
        rows,
        ctx=ctx,
        title=f"Preview of {path.name}",
        columns=["name", "kind", "widget", "value", "disabled", "auto_computed", "required"],
    )
