"""Form authoring: field list editing, quick templates, persistence."""

from form_engine.authoring.builder import FormAuthoringEngine
from form_engine.authoring.persistence import (
    FormPersistence,
    SaveResult,
    check_publishable,
    generate_form_url,
)
from form_engine.authoring.templates import QuickTemplate, get_template, list_templates

__all__ = [
    "FormAuthoringEngine",
    "FormPersistence",
    "QuickTemplate",
    "SaveResult",
    "check_publishable",
    "generate_form_url",
    "get_template",
    "list_templates",
]
