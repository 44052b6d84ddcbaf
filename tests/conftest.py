"""
Pytest fixtures and configuration for form engine tests.
Provides common test utilities and shared fixtures.
"""

import itertools

import pytest

from form_engine.authoring.builder import FormAuthoringEngine
from form_engine.config.settings import EngineSettings, ENV_KEYS, ENV_PREFIX, reset_settings
from form_engine.registry.field_types import FieldKind
from form_engine.runtime.computed import ComputedFieldSpec
from form_engine.runtime.fields import RuntimeField
from form_engine.services.notifications import RecordingNotifier

FLAG_TEMPLATE = "https://flagcdn.com/w80/{code}.png"


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep every test away from the developer's forms.yaml, .env and env vars."""
    for suffix in ENV_KEYS:
        monkeypatch.delenv(ENV_PREFIX + suffix, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings():
    """Settings pointing at test hosts."""
    return EngineSettings(
        api_base_url="http://api.test",
        frontend_url="https://forms.test",
        upload_folder="test/forms",
        http_timeout=5,
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def id_factory():
    """Deterministic field ids: f1, f2, ..."""
    counter = itertools.count(1)
    return lambda: f"f{next(counter)}"


@pytest.fixture
def engine(notifier, id_factory):
    """Blank authoring engine with predictable ids."""
    return FormAuthoringEngine(notifier=notifier, id_factory=id_factory)


@pytest.fixture
def flag_fields():
    """name/code/flag runtime fields, flag computed from code."""
    return [
        RuntimeField(name="name", kind=FieldKind.TEXT, label="Name", order=0),
        RuntimeField(name="code", kind=FieldKind.TEXT, label="Country Code", order=1),
        RuntimeField(
            name="flag",
            kind=FieldKind.FILE_OR_URL,
            label="Flag",
            order=2,
            preview=True,
            computed=ComputedFieldSpec.from_template(FLAG_TEMPLATE),
        ),
    ]
