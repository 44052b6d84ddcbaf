"""Quick-start form templates offered on the authoring setup step."""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from form_engine.errors import SchemaError


@dataclass(frozen=True)
class QuickTemplate:
    """A named starter form: title, description and field type ids."""

    template_id: str
    title: str
    description: str
    type_ids: Tuple[str, ...]


QUICK_TEMPLATES: Tuple[QuickTemplate, ...] = (
    QuickTemplate(
        "student-registration",
        "Student Registration",
        "For new student enrollments",
        ("text", "email", "tel", "language-selection", "proficiency-level", "time-preference"),
    ),
    QuickTemplate(
        "class-booking",
        "Class Booking",
        "Book specific classes or batches",
        ("text", "email", "tel", "date", "time-preference", "select"),
    ),
    QuickTemplate(
        "feedback-form",
        "Feedback Survey",
        "Collect student feedback",
        ("text", "email", "select", "multi-choice", "textarea"),
    ),
    QuickTemplate(
        "contact-form",
        "Contact Form",
        "General inquiries",
        ("text", "email", "tel", "textarea"),
    ),
)

_BY_ID: Dict[str, QuickTemplate] = {template.template_id: template for template in QUICK_TEMPLATES}


def get_template(template_id: str) -> QuickTemplate:
    """Look up a quick template.

    Raises:
        SchemaError: If no template has this id.
    """
    template = _BY_ID.get(template_id)
    if template is None:
        raise SchemaError(
            f"Unknown template '{template_id}'. Valid templates: {', '.join(sorted(_BY_ID))}"
        )
    return template


def list_templates() -> List[QuickTemplate]:
    return list(QUICK_TEMPLATES)
