"""Unit tests for engine settings loading."""

import pytest

from form_engine.config.settings import EngineSettings, get_settings, load_settings, reset_settings
from form_engine.errors import ConfigError


class TestEngineSettings:
    """Test the settings model."""

    def test_defaults(self):
        settings = EngineSettings()
        assert settings.api_base_url == "http://localhost:5000"
        assert settings.frontend_url == "http://localhost:5174"
        assert settings.upload_folder == "langzy/forms"
        assert settings.verify_tls is True
        assert settings.fetch_concurrency == 8

    def test_trailing_slash_stripped(self):
        assert EngineSettings(api_base_url="https://api.test/").api_base_url == "https://api.test"


class TestLoadSettings:
    """Test YAML + environment layering."""

    def test_no_file_uses_defaults(self):
        assert load_settings() == EngineSettings()

    def test_forms_yaml_in_working_directory(self, tmp_path):
        (tmp_path / "forms.yaml").write_text("api_base_url: https://api.langzy.test\nhttp_timeout: 12\n")
        settings = load_settings()
        assert settings.api_base_url == "https://api.langzy.test"
        assert settings.http_timeout == 12

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("frontend_url: https://apply.test\n")
        assert load_settings(path).frontend_url == "https://apply.test"

    def test_explicit_missing_path(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "nope.yaml")

    def test_environment_wins(self, tmp_path, monkeypatch):
        (tmp_path / "forms.yaml").write_text("api_base_url: https://from-yaml.test\n")
        monkeypatch.setenv("FORM_ENGINE_API_BASE_URL", "https://from-env.test")
        monkeypatch.setenv("FORM_ENGINE_VERIFY_TLS", "false")
        settings = load_settings()
        assert settings.api_base_url == "https://from-env.test"
        assert settings.verify_tls is False

    def test_dotenv_loaded(self, tmp_path, monkeypatch):
        # Registers the variable with monkeypatch so the value .env sets is removed afterwards
        monkeypatch.setenv("FORM_ENGINE_API_TOKEN", "placeholder")
        monkeypatch.delenv("FORM_ENGINE_API_TOKEN")
        (tmp_path / ".env").write_text("FORM_ENGINE_API_TOKEN=secret-token\n")
        settings = load_settings()
        assert settings.api_token == "secret-token"

    def test_invalid_value(self, monkeypatch):
        monkeypatch.setenv("FORM_ENGINE_HTTP_TIMEOUT", "soon")
        with pytest.raises(ConfigError, match="http_timeout"):
            load_settings()

    def test_non_mapping_yaml(self, tmp_path):
        (tmp_path / "forms.yaml").write_text("- just\n- a list\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings()

    def test_broken_yaml(self, tmp_path):
        (tmp_path / "forms.yaml").write_text("api_base_url: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings()


class TestGetSettings:
    """Test the process-wide cache."""

    def test_cached_until_reset(self, tmp_path):
        first = get_settings()
        assert get_settings() is first
        (tmp_path / "forms.yaml").write_text("upload_folder: elsewhere\n")
        assert get_settings().upload_folder == "langzy/forms"
        reset_settings()
        assert get_settings().upload_folder == "elsewhere"
