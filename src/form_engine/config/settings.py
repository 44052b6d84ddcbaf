"""Engine settings schema and loader.

Settings come from three layers, later layers winning:
1. Defaults declared on EngineSettings
2. An optional YAML file (``forms.yaml`` or an explicit path)
3. FORM_ENGINE_* environment variables (a local .env is loaded first)
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from form_engine.errors import ConfigError
from form_engine.registry.field_types import DEFAULT_MAX_UPLOAD_MB

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = "forms.yaml"

ENV_PREFIX = "FORM_ENGINE_"

# Environment variable suffix -> settings key
ENV_KEYS = {
    "API_BASE_URL": "api_base_url",
    "API_TOKEN": "api_token",
    "HTTP_TIMEOUT": "http_timeout",
    "VERIFY_TLS": "verify_tls",
    "FRONTEND_URL": "frontend_url",
    "UPLOAD_FOLDER": "upload_folder",
}


class EngineSettings(BaseModel):
    """Settings shared by the REST collaborators, persistence and CLI.

    Attributes:
        api_base_url: Base URL of the forms backend.
        api_token: Bearer token sent to the backend, if any.
        http_timeout: Per-request timeout in seconds.
        verify_tls: Whether HTTPS certificates are verified.
        frontend_url: Public site used to build shareable form links.
        upload_folder: Storage folder passed to the file upload API.
        max_upload_mb: Default upload size limit for file fields.
        fetch_concurrency: Upper bound on parallel option fetches.
    """

    api_base_url: str = Field(default="http://localhost:5000", min_length=1)
    api_token: Optional[str] = None
    http_timeout: float = Field(default=30.0, gt=0)
    verify_tls: bool = True
    frontend_url: str = Field(default="http://localhost:5174", min_length=1)
    upload_folder: str = "langzy/forms"
    max_upload_mb: float = Field(default=DEFAULT_MAX_UPLOAD_MB, gt=0)
    fetch_concurrency: int = Field(default=8, ge=1)

    @field_validator("api_base_url", "frontend_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


_settings: Optional[EngineSettings] = None


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for suffix, key in ENV_KEYS.items():
        value = os.getenv(ENV_PREFIX + suffix)
        if value is not None and value != "":
            overrides[key] = value
    return overrides


def load_settings(path: Optional[str | Path] = None) -> EngineSettings:
    """Load settings from YAML and environment.

    Args:
        path: YAML settings file. When None, ``forms.yaml`` in the working
            directory is used if present.

    Returns:
        Validated EngineSettings.

    Raises:
        ConfigError: If the file is unreadable or a value is invalid.
    """
    load_dotenv(Path.cwd() / ".env")

    data: Dict[str, Any] = {}
    settings_path = Path(path) if path else Path.cwd() / DEFAULT_SETTINGS_FILE
    if settings_path.exists():
        try:
            with open(settings_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in settings file {settings_path}: {e}")
        if not isinstance(loaded, dict):
            raise ConfigError(f"Settings file {settings_path} must contain a mapping")
        data.update(loaded)
        logger.debug(f"Loaded settings from {settings_path}")
    elif path:
        raise ConfigError(f"Settings file not found: {settings_path}")

    data.update(_env_overrides())

    try:
        return EngineSettings.model_validate(data)
    except PydanticValidationError as e:
        keys = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise ConfigError(f"Invalid settings ({keys}): {e}") from e


def get_settings() -> EngineSettings:
    """Process-wide settings, loaded on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Forget cached settings (tests, CLI --config)."""
    global _settings
    _settings = None
