"""
Tests for environment-driven configuration.
"""

from examforge.config import Settings, parse_api_keys


class TestParseApiKeys:

    def test_parse_when_comma_separated_then_split_and_trimmed(self):
        assert parse_api_keys(" k1, k2 ,,k3") == ["k1", "k2", "k3"]

    def test_parse_when_json_array_then_loaded(self):
        assert parse_api_keys('["k1", "k2"]') == ["k1", "k2"]

    def test_parse_when_placeholder_or_empty_then_ignored(self):
        assert parse_api_keys("your-gemini-api-key-here") == []
        assert parse_api_keys("") == []
        assert parse_api_keys(None) == []

    def test_parse_when_broken_json_then_single_key(self):
        assert parse_api_keys("[k1") == ["[k1"]


class TestSettings:

    def test_settings_when_env_set_then_read(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "k1,k2")
        monkeypatch.setenv("GEMINI_MODEL", "gemini-custom")
        monkeypatch.setenv("GEMINI_REQUEST_TIMEOUT_MS", "3000")
        monkeypatch.setenv("PDF_RENDER_SCALE", "1.5")

        settings = Settings()

        assert settings.GEMINI_API_KEYS == ["k1", "k2"]
        assert settings.GEMINI_MODEL == "gemini-custom"
        assert settings.request_timeout_seconds == 3.0
        assert settings.PDF_RENDER_SCALE == 1.5

    def test_settings_when_only_google_key_then_used_as_fallback(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.setenv("GOOGLE_API_KEY", "g1")

        assert Settings().GEMINI_API_KEYS == ["g1"]

    def test_settings_when_unset_then_defaults(self, monkeypatch):
        for name in ("GEMINI_MODEL", "GEMINI_REQUEST_TIMEOUT_MS", "GEMINI_MAX_RETRIES", "PDF_RENDER_SCALE"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.GEMINI_MODEL == "gemini-2.5-flash"
        assert settings.GEMINI_REQUEST_TIMEOUT_MS == 120_000
        assert settings.GEMINI_MAX_RETRIES == 1
        assert settings.PDF_RENDER_SCALE == 2.0
