"""Tests for the ``hardia`` console entry point."""
import logging

import pytest

from hardia import server
from hardia.config import get_settings


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No API key in the environment and no .env file in the working directory."""
    monkeypatch.delenv("GOOGLE_GEMINI_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


@pytest.fixture
def uvicorn_calls(monkeypatch):
    calls = []
    monkeypatch.setattr(server.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    return calls


class TestMain:
    def test_missing_api_key_exits_with_error(self, clean_env, uvicorn_calls, caplog):
        with caplog.at_level(logging.ERROR, logger="hardia.server"):
            with pytest.raises(SystemExit) as exc_info:
                server.main()

        assert exc_info.value.code == 1
        assert "GOOGLE_GEMINI_API_KEY" in caplog.text
        assert uvicorn_calls == []

    def test_empty_api_key_exits_with_error(self, clean_env, uvicorn_calls):
        clean_env.setenv("GOOGLE_GEMINI_API_KEY", "")

        with pytest.raises(SystemExit) as exc_info:
            server.main()

        assert exc_info.value.code == 1
        assert uvicorn_calls == []

    def test_serves_on_configured_address(self, clean_env, uvicorn_calls):
        clean_env.setenv("GOOGLE_GEMINI_API_KEY", "test-key")
        clean_env.setenv("HOST", "127.0.0.1")
        clean_env.setenv("PORT", "8123")
        clean_env.setenv("STATIC_DIR", "no-static")

        server.main()

        assert len(uvicorn_calls) == 1
        app, kwargs = uvicorn_calls[0]
        assert app.title == "HardIA"
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 8123
