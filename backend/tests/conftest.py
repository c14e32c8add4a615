import pytest
from datetime import datetime, timezone
from fastapi.testclient import TestClient

from recordvault.api.deps import get_clock
from recordvault.config import Settings
from recordvault.main import create_app

FIXED_NOW = datetime(2024, 3, 1, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture(scope="function")
def settings(tmp_path, upload_dir):
    return Settings(
        upload_dir=upload_dir,
        public_dir=tmp_path / "public",
        session_backend="memory",
        max_upload_size=8 * 1024,
    )


@pytest.fixture(scope="function")
def app(settings):
    application = create_app(settings)
    application.dependency_overrides[get_clock] = lambda: (lambda: FIXED_NOW)
    yield application
    application.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="function")
def auth_client(client):
    response = client.post("/api/login", json={"username": "admin", "password": "123456"})
    assert response.status_code == 200
    return client

