"""CLI package - Typer-based command-line interface.

Usage:
    form-engine --help
    form-engine preview form.json --computed computed.yaml --set code=fr
"""

from form_engine.cli._app import app

# Register command modules (side-effect imports)
import form_engine.cli.cmd_registry  # noqa: F401
import form_engine.cli.cmd_schema  # noqa: F401
import form_engine.cli.cmd_preview  # noqa: F401

__all__ = ["app"]
