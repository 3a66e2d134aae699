"""Unit tests for environment-driven settings."""

from pathlib import Path

import pytest

from chat_microservice.config import DEFAULT_PUBLIC_DIR, Settings

ENV_KEYS = [
    "DATABASE_URL",
    "LLM_MODE",
    "OPENAI_API_KEY",
    "OPENAI_ORG_ID",
    "OPENAI_MODEL",
    "OPENAI_TIMEOUT",
    "PERSIST_MODE",
    "HOST",
    "PORT",
    "PUBLIC_DIR",
    "LOG_LEVEL",
    "APP_ENV",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestSettingsFromEnv:
    """Test Settings.from_env()."""

    def test_defaults(self, clean_env):
        settings = Settings.from_env()

        assert settings.port == 3000
        assert settings.llm_mode == "mock"
        assert settings.persist_mode == "background"
        assert settings.database_url == "sqlite:///./chat_microservice.db"
        assert settings.openai_api_key is None
        assert settings.openai_model == "gpt-3.5-turbo"
        assert settings.public_dir == DEFAULT_PUBLIC_DIR
        assert Path(settings.public_dir, "index.html").is_file()

    def test_overrides(self, clean_env):
        clean_env.setenv("PORT", "8080")
        clean_env.setenv("DATABASE_URL", "postgresql://u:p@db/chat")
        clean_env.setenv("LLM_MODE", "OpenAI")
        clean_env.setenv("OPENAI_API_KEY", "sk-test")
        clean_env.setenv("OPENAI_ORG_ID", "org-1")
        clean_env.setenv("OPENAI_TIMEOUT", "2.5")
        clean_env.setenv("PERSIST_MODE", "sync")
        clean_env.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_env()

        assert settings.port == 8080
        assert settings.database_url == "postgresql://u:p@db/chat"
        assert settings.llm_mode == "openai"
        assert settings.openai_api_key == "sk-test"
        assert settings.openai_org_id == "org-1"
        assert settings.openai_timeout == 2.5
        assert settings.persist_mode == "sync"
        assert settings.log_level == "DEBUG"

    def test_empty_app_env_uses_default(self, clean_env):
        clean_env.setenv("APP_ENV", "")

        assert Settings.from_env().app_env == "dev"

    def test_app_env_override(self, clean_env):
        clean_env.setenv("APP_ENV", "prod")

        assert Settings.from_env().app_env == "prod"

    def test_empty_port_uses_default(self, clean_env):
        clean_env.setenv("PORT", "")

        assert Settings.from_env().port == 3000

    def test_non_numeric_port(self, clean_env):
        clean_env.setenv("PORT", "http")

        with pytest.raises(ValueError, match="PORT must be an integer"):
            Settings.from_env()

    def test_non_numeric_timeout(self, clean_env):
        clean_env.setenv("OPENAI_TIMEOUT", "soon")

        with pytest.raises(ValueError, match="OPENAI_TIMEOUT"):
            Settings.from_env()


class TestSettingsValidation:
    """Test invariants checked on construction."""

    @pytest.mark.parametrize("port", [0, -1, 70000])
    def test_port_out_of_range(self, port):
        with pytest.raises(ValueError, match="PORT"):
            Settings(port=port)

    def test_unknown_llm_mode(self):
        with pytest.raises(ValueError, match="LLM_MODE"):
            Settings(llm_mode="claude")

    def test_unknown_persist_mode(self):
        with pytest.raises(ValueError, match="PERSIST_MODE"):
            Settings(persist_mode="later")
