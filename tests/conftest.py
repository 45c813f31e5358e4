import pytest
from fastapi.testclient import TestClient

from hardia.config import Settings
from hardia.main import create_app
from tests.fakes import SessionRecorder


@pytest.fixture
def test_settings(tmp_path):
    """Settings isolated from the host environment and .env files."""
    return Settings(
        _env_file=None,
        google_gemini_api_key="test-key",
        gemini_model="gemini-test",
        node_env="production",
        api_limit=100,
        chat_timeout_seconds=15.0,
        static_dir=str(tmp_path / "no-static"),
    )


@pytest.fixture
def make_client(test_settings):
    """Build a TestClient around an app wired to a fake session factory."""
    clients = []

    def _make(recorder: SessionRecorder | None = None, **overrides):
        settings = test_settings.model_copy(update=overrides)
        recorder = recorder or SessionRecorder()
        app = create_app(settings, session_factory=recorder)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client, recorder

    yield _make

    for client in clients:
        client.__exit__(None, None, None)
