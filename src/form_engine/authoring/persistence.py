"""Save, publish and load authored forms through the forms API.

Persisting is the only authoring step that can fail on I/O. Failures
are reported through the notifier and returned in SaveResult; the
engine's in-memory definition is never rolled back or cleared.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from form_engine.authoring.builder import FormAuthoringEngine
from form_engine.config.settings import EngineSettings, get_settings
from form_engine.errors import FetchError, FormEngineError, ValidationError
from form_engine.schemas.form_schema import FormDefinition
from form_engine.services.interfaces import FormsApi, Notifier
from form_engine.services.notifications import LoggingNotifier

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    """Outcome of a save or publish."""

    success: bool
    form_id: Optional[str] = None
    slug: Optional[str] = None
    form_url: Optional[str] = None
    error: Optional[str] = None


def generate_form_url(definition: FormDefinition, frontend_url: str) -> str:
    """Shareable link for a saved form; the slug wins over the id."""
    identifier = definition.slug or definition.form_id
    if not identifier:
        raise ValueError("Form has not been saved yet")
    return f"{frontend_url.rstrip('/')}/forms/{identifier}"


def check_publishable(definition: FormDefinition) -> None:
    """Reject definitions the backend would refuse.

    Raises:
        ValidationError: With ``title`` / ``fields`` entries.
    """
    errors: Dict[str, str] = {}
    if not definition.title.strip():
        errors["title"] = "Form title is required"
    if not definition.fields:
        errors["fields"] = "Please add at least one field to the form"
    if errors:
        raise ValidationError(errors)


class FormPersistence:
    """Bridge between a FormAuthoringEngine and the forms API.

    Args:
        api: Forms persistence collaborator.
        notifier: Operator message side-channel.
        settings: Engine settings (frontend URL for share links).
    """

    def __init__(
        self,
        api: FormsApi,
        *,
        notifier: Optional[Notifier] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self.api = api
        self._notifier = notifier or LoggingNotifier()
        self._settings = settings or get_settings()

    def save(self, engine: FormAuthoringEngine, *, publish: bool = False) -> SaveResult:
        """Create or update the engine's form.

        Returns:
            SaveResult; ``success`` is False on validation or API failure.
        """
        definition = engine.definition
        try:
            check_publishable(definition)
        except ValidationError as e:
            message = "; ".join(e.field_errors.values())
            self._notifier.error(message)
            return SaveResult(success=False, error=message)

        if publish:
            definition.is_published = True
        payload = definition.to_wire()
        payload.pop("id", None)

        try:
            if definition.form_id:
                saved = self.api.update_form(definition.form_id, payload)
            else:
                saved = self.api.create_form(payload)
        except FormEngineError as e:
            logger.error(f"Saving form '{definition.title}' failed: {e}")
            self._notifier.error(f"Failed to save form: {e}")
            return SaveResult(success=False, error=str(e))

        form_id = _saved_id(saved) or definition.form_id
        if not form_id:
            message = "Forms API response did not include a form id"
            logger.error(message)
            self._notifier.error(f"Failed to save form: {message}")
            return SaveResult(success=False, error=message)

        slug = saved.get("slug") or definition.slug
        engine.mark_saved(form_id, slug, published=publish)
        form_url = generate_form_url(engine.definition, self._settings.frontend_url)

        self._notifier.success("Form published successfully!" if publish else "Form saved")
        logger.info(f"Saved form {form_id} ({len(definition.fields)} fields)")
        return SaveResult(success=True, form_id=form_id, slug=slug, form_url=form_url)

    def publish(self, engine: FormAuthoringEngine) -> SaveResult:
        return self.save(engine, publish=True)

    def load(self, form_id: str, **engine_kwargs: Any) -> FormAuthoringEngine:
        """Fetch a stored form into a new authoring engine.

        Raises:
            FetchError: If the API call fails.
            SchemaError: If the stored payload is not a valid definition.
        """
        try:
            payload = self.api.get_form(form_id)
        except FetchError:
            raise
        except FormEngineError as e:
            raise FetchError(f"Failed to load form {form_id}: {e}") from e
        definition = FormDefinition.from_wire(payload)
        if not definition.form_id:
            definition.form_id = form_id
        engine_kwargs.setdefault("notifier", self._notifier)
        return FormAuthoringEngine(definition, **engine_kwargs)


def _saved_id(saved: Dict[str, Any]) -> Optional[str]:
    for key in ("id", "_id", "formId"):
        if saved.get(key):
            return str(saved[key])
    return None
