"""
Tests for the main FastAPI application.
"""

from unittest.mock import patch

from fastapi.testclient import TestClient

from unison.api.deps import get_user_store
from unison.core.config import Settings, settings
from unison.core.errors import StorageError
from unison.db.store import InMemoryUserStore
from unison.main import app, handler


class FailingStore(InMemoryUserStore):
    def load(self):
        raise StorageError()


class CrashingStore(InMemoryUserStore):
    def load(self):
        raise RuntimeError("disk on fire at /var/secret/path")


class TestMainApp:
    """Test cases for the main FastAPI application."""

    def test_app_creation(self):
        """Test that the FastAPI app is created correctly."""
        assert app.title == settings.app_name
        assert app.version == settings.app_version

    def test_auth_routes_registered(self):
        """Test that the auth routes are mounted under /api."""
        paths = app.openapi()["paths"]

        assert "/api/auth/register" in paths
        assert "/api/auth/login" in paths
        assert "/api/auth/login/phone" in paths
        assert "/api/auth/forgot-password" in paths
        assert "/api/auth/reset-password" in paths
        assert "/api/auth/{provider}/callback" in paths
        assert "/api/health" in paths

    def test_exception_handlers_registered(self):
        assert Exception in app.exception_handlers

    def test_root(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client: TestClient):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["status"] == "healthy"
        assert "time" in data


class TestErrorEnvelope:
    """Errors come back as {ok, error, code} without internals."""

    def teardown_method(self):
        app.dependency_overrides.clear()

    def test_storage_error_is_internal_error(self):
        app.dependency_overrides[get_user_store] = lambda: FailingStore()
        client = TestClient(app)

        response = client.post(
            "/api/auth/login", json={"email": "a@x.com", "password": "longpass1"}
        )

        assert response.status_code == 500
        assert response.json() == {
            "ok": False,
            "error": "Internal server error",
            "code": "StorageError",
        }

    def test_unexpected_exception_hides_details(self):
        app.dependency_overrides[get_user_store] = lambda: CrashingStore()
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post(
            "/api/auth/login", json={"email": "a@x.com", "password": "longpass1"}
        )

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Internal server error"
        assert "/var/secret/path" not in response.text

    def test_malformed_body_is_validation_error(self, client: TestClient):
        response = client.post("/api/auth/login", json={"email": ["not", "a", "string"]})

        assert response.status_code == 400
        assert response.json()["code"] == "ValidationError"

    def test_unknown_route_uses_envelope(self, client: TestClient):
        response = client.get("/api/nowhere")

        assert response.status_code == 404
        assert response.json() == {"ok": False, "error": "Not Found", "code": "NotFound"}


class TestLambdaHandler:
    def test_loads_secrets_once_in_lambda(self, monkeypatch):
        import unison.main as main_module

        monkeypatch.setenv("AWS_EXECUTION_ENV", "AWS_Lambda_python3.12")
        monkeypatch.setattr(main_module, "_aws_secrets_loaded", False)

        with patch.object(Settings, "load_aws_secrets") as load_secrets, patch.object(
            main_module, "asgi_handler", return_value={"statusCode": 200}
        ) as asgi:
            handler({"path": "/"}, None)
            handler({"path": "/"}, None)

        load_secrets.assert_called_once()
        assert asgi.call_count == 2
