"""
Unit tests for settings and startup configuration checks.
"""

import pytest

from bookcatalog.api.dependencies import Settings
from bookcatalog.api.main import create_app, lifespan
from bookcatalog.exceptions import ConfigurationError


class TestRequireBackend:

    def test_complete_settings_pass(self):
        Settings(supabase_url="https://example.supabase.co", supabase_key="k").require_backend()

    def test_missing_url(self):
        with pytest.raises(ConfigurationError, match="SUPABASE_URL") as exc_info:
            Settings(supabase_url=None, supabase_key="k").require_backend()

        assert "SUPABASE_ANON_KEY" not in str(exc_info.value)

    def test_missing_key(self):
        with pytest.raises(ConfigurationError, match="SUPABASE_ANON_KEY"):
            Settings(supabase_url="https://example.supabase.co", supabase_key="").require_backend()

    def test_both_missing_are_named(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings().require_backend()

        assert "SUPABASE_URL" in str(exc_info.value)
        assert "SUPABASE_ANON_KEY" in str(exc_info.value)


class TestFromEnv:

    def test_prefixed_names_are_accepted(self, monkeypatch):
        for name in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_KEY"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("VITE_SUPABASE_URL", "https://vite.supabase.co")
        monkeypatch.setenv("VITE_SUPABASE_ANON_KEY", "vite-key")

        settings = Settings.from_env()

        assert settings.supabase_url == "https://vite.supabase.co"
        assert settings.supabase_key == "vite-key"

    def test_plain_names_win(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://plain.supabase.co")
        monkeypatch.setenv("VITE_SUPABASE_URL", "https://vite.supabase.co")

        assert Settings.from_env().supabase_url == "https://plain.supabase.co"


class TestStartup:

    @pytest.mark.asyncio
    async def test_lifespan_aborts_without_backend(self):
        app = create_app(Settings(environment="test"))

        with pytest.raises(ConfigurationError):
            async with lifespan(app):
                pass
