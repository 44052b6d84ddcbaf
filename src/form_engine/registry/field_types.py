"""
Field Type Registry - the closed catalogue of field kinds.

Every other component resolves a ``type_id`` through this module. Each
FieldKind has exactly one FieldType entry; the module refuses to import
if an entry is missing, so adding a kind is a single-point change here
plus the renderer's widget table (which performs the same check).

Type Mappings (category -> kinds):
- basic       -> text, number, date, datetime-local, textarea
- contact     -> email, tel, url
- consultancy -> language-selection, proficiency-level, education-level, time-preference
- choice      -> select, multi-choice, radio, multiselect
- documents   -> file, file-or-url
- remote      -> select-fetch, multiselect-fetch
- advanced    -> password, range, color, json
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from form_engine.errors import UnknownFieldType
from form_engine.schemas.form_schema import Option


class FieldKind(str, Enum):
    """Closed set of field kinds known to the engine."""

    TEXT = "text"
    EMAIL = "email"
    TEL = "tel"
    URL = "url"
    DATE = "date"
    DATETIME = "datetime-local"
    NUMBER = "number"
    TEXTAREA = "textarea"
    PASSWORD = "password"
    RANGE = "range"
    COLOR = "color"
    JSON = "json"
    LANGUAGE_SELECTION = "language-selection"
    PROFICIENCY_LEVEL = "proficiency-level"
    EDUCATION_LEVEL = "education-level"
    TIME_PREFERENCE = "time-preference"
    SELECT = "select"
    MULTI_CHOICE = "multi-choice"
    RADIO = "radio"
    MULTISELECT = "multiselect"
    FILE = "file"
    FILE_OR_URL = "file-or-url"
    SELECT_FETCH = "select-fetch"
    MULTISELECT_FETCH = "multiselect-fetch"


class FieldCategory(str, Enum):
    """UI grouping of field kinds in the authoring palette."""

    BASIC = "basic"
    CONTACT = "contact"
    CONSULTANCY = "consultancy"
    CHOICE = "choice"
    DOCUMENTS = "documents"
    REMOTE = "remote"
    ADVANCED = "advanced"


@dataclass(frozen=True)
class FieldType:
    """Static rendering hints for one field kind."""

    type_id: FieldKind
    display_label: str
    default_placeholder: str
    default_label: str
    category: FieldCategory
    default_option_set: Tuple[Tuple[str, str, str], ...] = ()

    @property
    def is_choice_like(self) -> bool:
        return self.type_id in CHOICE_KINDS

    @property
    def is_multi_valued(self) -> bool:
        return self.type_id in MULTI_VALUE_KINDS


# Legacy type ids still found in stored definitions
TYPE_ALIASES: Dict[str, FieldKind] = {
    "checkbox": FieldKind.MULTI_CHOICE,
    "checkbox-group": FieldKind.MULTI_CHOICE,
    "phone": FieldKind.TEL,
}

# Kinds presenting an authored Option[] list
CHOICE_KINDS = frozenset({
    FieldKind.SELECT,
    FieldKind.MULTI_CHOICE,
    FieldKind.RADIO,
    FieldKind.MULTISELECT,
    FieldKind.LANGUAGE_SELECTION,
    FieldKind.PROFICIENCY_LEVEL,
    FieldKind.EDUCATION_LEVEL,
    FieldKind.TIME_PREFERENCE,
})

# Choice kinds whose options are authored freely (not a fixed domain set)
GENERIC_CHOICE_KINDS = frozenset({
    FieldKind.SELECT,
    FieldKind.MULTI_CHOICE,
    FieldKind.RADIO,
    FieldKind.MULTISELECT,
})

FETCH_KINDS = frozenset({FieldKind.SELECT_FETCH, FieldKind.MULTISELECT_FETCH})

MULTI_VALUE_KINDS = frozenset({
    FieldKind.MULTI_CHOICE,
    FieldKind.MULTISELECT,
    FieldKind.MULTISELECT_FETCH,
})

FILE_KINDS = frozenset({FieldKind.FILE, FieldKind.FILE_OR_URL})

PLACEHOLDER_OPTION = ("opt1", "option1", "Option 1")

_LANGUAGE_OPTIONS = (
    ("ielts", "ielts", "IELTS Preparation"),
    ("pte", "pte", "PTE Preparation"),
    ("german", "german", "German Language"),
    ("spanish", "spanish", "Spanish Language"),
    ("french", "french", "French Language"),
    ("japanese", "japanese", "Japanese Language"),
    ("other", "other", "Other Language"),
)

_PROFICIENCY_OPTIONS = (
    ("beginner", "beginner", "Beginner (A1)"),
    ("elementary", "elementary", "Elementary (A2)"),
    ("intermediate", "intermediate", "Intermediate (B1)"),
    ("upper-intermediate", "upper-intermediate", "Upper Intermediate (B2)"),
    ("advanced", "advanced", "Advanced (C1)"),
    ("proficient", "proficient", "Proficient (C2)"),
)

_EDUCATION_OPTIONS = (
    ("slc", "slc", "SLC/SEE"),
    ("plus2", "plus2", "+2/Intermediate"),
    ("bachelor", "bachelor", "Bachelor's Degree"),
    ("master", "master", "Master's Degree"),
    ("phd", "phd", "PhD/Doctorate"),
)

_TIME_PREFERENCE_OPTIONS = (
    ("morning", "morning", "Morning (6:00 AM - 8:00 AM)"),
    ("day", "day", "Day (10:00 AM - 4:00 PM)"),
    ("evening", "evening", "Evening (4:00 PM - 8:00 PM)"),
    ("weekend", "weekend", "Weekend Only"),
    ("flexible", "flexible", "Flexible"),
)

_C = FieldCategory
_K = FieldKind

_REGISTRY: Dict[FieldKind, FieldType] = {
    _K.TEXT: FieldType(_K.TEXT, "Name", "Enter your name", "Full Name", _C.BASIC),
    _K.EMAIL: FieldType(_K.EMAIL, "Email", "your.email@example.com", "Email Address", _C.CONTACT),
    _K.TEL: FieldType(_K.TEL, "Phone", "+977-9XXXXXXXXX", "Phone Number", _C.CONTACT),
    _K.URL: FieldType(_K.URL, "Link", "https://", "Website", _C.CONTACT),
    _K.DATE: FieldType(_K.DATE, "Date", "", "Date of Birth", _C.BASIC),
    _K.DATETIME: FieldType(_K.DATETIME, "Date & Time", "", "Preferred Date and Time", _C.BASIC),
    _K.NUMBER: FieldType(_K.NUMBER, "Number", "0", "Enter a number", _C.BASIC),
    _K.TEXTAREA: FieldType(
        _K.TEXTAREA, "Long Text", "Enter detailed information", "Additional Information", _C.BASIC
    ),
    _K.PASSWORD: FieldType(_K.PASSWORD, "Password", "", "Password", _C.ADVANCED),
    _K.RANGE: FieldType(_K.RANGE, "Slider", "", "Rate from 0 to 100", _C.ADVANCED),
    _K.COLOR: FieldType(_K.COLOR, "Colour", "#000000", "Pick a colour", _C.ADVANCED),
    _K.JSON: FieldType(_K.JSON, "JSON", '{"key": "value"}', "Structured data", _C.ADVANCED),
    _K.LANGUAGE_SELECTION: FieldType(
        _K.LANGUAGE_SELECTION, "Language Choice", "", "Which language would you like to learn?",
        _C.CONSULTANCY, _LANGUAGE_OPTIONS,
    ),
    _K.PROFICIENCY_LEVEL: FieldType(
        _K.PROFICIENCY_LEVEL, "Current Level", "", "Your current proficiency level",
        _C.CONSULTANCY, _PROFICIENCY_OPTIONS,
    ),
    _K.EDUCATION_LEVEL: FieldType(
        _K.EDUCATION_LEVEL, "Education", "", "Highest Education Level",
        _C.CONSULTANCY, _EDUCATION_OPTIONS,
    ),
    _K.TIME_PREFERENCE: FieldType(
        _K.TIME_PREFERENCE, "Time Preference", "", "Preferred Class Time",
        _C.CONSULTANCY, _TIME_PREFERENCE_OPTIONS,
    ),
    _K.SELECT: FieldType(
        _K.SELECT, "Multiple Choice", "", "Choose an option", _C.CHOICE, (PLACEHOLDER_OPTION,)
    ),
    _K.MULTI_CHOICE: FieldType(
        _K.MULTI_CHOICE, "Multiple Select", "", "Select all that apply", _C.CHOICE, (PLACEHOLDER_OPTION,)
    ),
    _K.RADIO: FieldType(
        _K.RADIO, "Single Choice", "", "Pick one", _C.CHOICE, (PLACEHOLDER_OPTION,)
    ),
    _K.MULTISELECT: FieldType(
        _K.MULTISELECT, "Dropdown (multi)", "", "Select one or more", _C.CHOICE, (PLACEHOLDER_OPTION,)
    ),
    _K.FILE: FieldType(_K.FILE, "File Upload", "", "Upload Document/Photo", _C.DOCUMENTS),
    _K.FILE_OR_URL: FieldType(_K.FILE_OR_URL, "File or Link", "https://", "Image", _C.DOCUMENTS),
    _K.SELECT_FETCH: FieldType(_K.SELECT_FETCH, "Remote Choice", "Select…", "Choose an option", _C.REMOTE),
    _K.MULTISELECT_FETCH: FieldType(
        _K.MULTISELECT_FETCH, "Remote Multi Choice", "", "Select all that apply", _C.REMOTE
    ),
}

_missing = set(FieldKind) - set(_REGISTRY)
if _missing:
    raise RuntimeError(f"Field type registry is missing kinds: {sorted(k.value for k in _missing)}")


# Accepted extensions and display text per upload purpose
UPLOAD_PURPOSES: Dict[str, Tuple[str, str]] = {
    "photos": (".png,.jpg,.jpeg", "PNG, JPG, JPEG"),
    "documents": (".pdf,.doc,.docx", "PDF, DOC, DOCX"),
    "certificates": (".pdf,.jpg,.jpeg,.png", "PDF, JPG, PNG"),
    "transcripts": (".pdf", "PDF only"),
    "cv": (".pdf,.doc,.docx", "PDF, DOC, DOCX"),
    "passport": (".jpg,.jpeg,.png,.pdf", "JPG, PNG, PDF"),
    "test-scores": (".pdf,.jpg,.jpeg,.png", "PDF, JPG, PNG"),
    "any": ("", "All file types"),
}

DEFAULT_ACCEPT = ".pdf,.doc,.docx,.jpg,.jpeg,.png"
DEFAULT_ACCEPT_DISPLAY = "PDF, DOC, JPG, PNG"

# Upload size limit for file fields that set no maxSizeMb
DEFAULT_MAX_UPLOAD_MB = 10.0


def resolve_kind(type_id: str) -> FieldKind:
    """Map a type id (or legacy alias) to its FieldKind.

    Raises:
        UnknownFieldType: If the id is not registered.
    """
    if isinstance(type_id, FieldKind):
        return type_id
    if type_id in TYPE_ALIASES:
        return TYPE_ALIASES[type_id]
    try:
        return FieldKind(type_id)
    except ValueError:
        raise UnknownFieldType(type_id)


def lookup(type_id: str) -> FieldType:
    """Return the FieldType registered for ``type_id``.

    Callers rendering a field should treat UnknownFieldType as a cue to
    fall back to a plain text input.

    Raises:
        UnknownFieldType: If the id is not registered.
    """
    return _REGISTRY[resolve_kind(type_id)]


def all_field_types() -> List[FieldType]:
    """All registered field types in declaration order."""
    return [_REGISTRY[kind] for kind in FieldKind]


def field_types_by_category() -> Dict[FieldCategory, List[FieldType]]:
    """Registered field types grouped for the authoring palette."""
    grouped: Dict[FieldCategory, List[FieldType]] = {category: [] for category in FieldCategory}
    for field_type in all_field_types():
        grouped[field_type.category].append(field_type)
    return grouped


def default_options_for(type_id: str) -> List[Option]:
    """Fresh copy of the default option set for a type.

    Domain choice kinds return their fixed set, generic choice kinds a
    single placeholder option, everything else an empty list.

    Raises:
        UnknownFieldType: If the id is not registered.
    """
    field_type = lookup(type_id)
    return [Option(id=oid, value=value, label=label) for oid, value, label in field_type.default_option_set]


def is_choice_like(type_id: str) -> bool:
    """True for kinds that present an authored Option[] list; False for unknown ids."""
    try:
        return resolve_kind(type_id) in CHOICE_KINDS
    except UnknownFieldType:
        return False


def is_generic_choice(type_id: str) -> bool:
    try:
        return resolve_kind(type_id) in GENERIC_CHOICE_KINDS
    except UnknownFieldType:
        return False


def accept_types_for(purpose: Optional[str]) -> str:
    """Accepted file extensions for an upload purpose."""
    if purpose in UPLOAD_PURPOSES:
        return UPLOAD_PURPOSES[purpose][0]
    return DEFAULT_ACCEPT


def file_type_display(purpose: Optional[str]) -> str:
    """Human-readable list of accepted file types for an upload purpose."""
    if purpose in UPLOAD_PURPOSES:
        return UPLOAD_PURPOSES[purpose][1]
    return DEFAULT_ACCEPT_DISPLAY
