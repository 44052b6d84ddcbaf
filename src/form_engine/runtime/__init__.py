"""Form runtime: rendering, computed fields, option fetching, submission."""

from form_engine.runtime.computed import (
    ComputedFieldSpec,
    ComputedResolution,
    resolve_computed_fields,
    validate_computed_specs,
)
from form_engine.runtime.fields import RuntimeField
from form_engine.runtime.file_or_url import FileOrUrlInput, FileReference, InputMode, PreviewRegistry
from form_engine.runtime.options import FetchSource, OptionCache, OptionLoader
from form_engine.runtime.renderer import FormRenderer
from form_engine.runtime.widgets import RenderedInput, RenderState, WidgetFactory

__all__ = [
    "ComputedFieldSpec",
    "ComputedResolution",
    "FetchSource",
    "FileOrUrlInput",
    "FileReference",
    "FormRenderer",
    "InputMode",
    "OptionCache",
    "OptionLoader",
    "PreviewRegistry",
    "RenderState",
    "RenderedInput",
    "RuntimeField",
    "WidgetFactory",
    "resolve_computed_fields",
    "validate_computed_specs",
]
