"""
Unit tests for the backend greeting API.
Each test gets its own TestClient; the app itself holds no state.
"""

import logging
import socket
from unittest import mock

import pytest
from fastapi.testclient import TestClient

from hello_stack import backend
from hello_stack.backend import app


@pytest.fixture
def client():
    """Create isolated test client for each test."""
    return TestClient(app)


class TestMessageEndpoint:
    """Test suite for GET /api."""

    def test_returns_success_status(self, client):
        """Verify the endpoint returns 200 OK."""
        response = client.get("/api")

        assert response.status_code == 200

    def test_returns_backend_message(self, client):
        """Verify the body is exactly the greeting object."""
        response = client.get("/api")

        assert response.json() == {"message": "Hello from the backend!"}
        assert response.headers["content-type"] == "application/json"

    def test_repeated_calls_are_identical(self, client):
        """Verify the endpoint is idempotent across many calls."""
        bodies = {client.get("/api").content for _ in range(5)}

        assert len(bodies) == 1

    def test_ignores_query_parameters(self, client):
        """Verify extra parameters do not change the payload."""
        response = client.get("/api", params={"name": "ignored"})

        assert response.json() == {"message": "Hello from the backend!"}


class TestCrossOrigin:
    """Any origin may read the greeting."""

    def test_header_present_without_origin(self, client):
        """Verify plain requests still carry the wildcard header."""
        response = client.get("/api")

        assert response.headers["access-control-allow-origin"] == "*"

    def test_header_present_for_browser_origin(self, client):
        """Verify a browser-style request from another origin is allowed."""
        response = client.get("/api", headers={"Origin": "http://localhost:3000"})

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    def test_preflight_is_allowed(self, client):
        """Verify CORS preflight succeeds for any origin."""
        response = client.options(
            "/api",
            headers={
                "Origin": "http://example.com",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    def test_header_present_on_not_found(self, client):
        """Verify error responses carry the header too."""
        response = client.get("/nonexistent")

        assert response.headers["access-control-allow-origin"] == "*"


class TestErrorHandling:
    """Test error scenarios and edge cases."""

    def test_nonexistent_endpoint_returns_404(self, client):
        """Verify proper 404 handling for undefined routes."""
        response = client.get("/nonexistent")

        assert response.status_code == 404

    def test_root_is_not_routed(self, client):
        """Verify only /api is served."""
        response = client.get("/")

        assert response.status_code == 404

    def test_invalid_method_returns_405(self, client):
        """Verify proper method not allowed handling."""
        response = client.post("/api")

        assert response.status_code == 405


class TestServe:
    """Startup sequence: bind, announce, run."""

    def test_logs_readiness_after_bind(self, caplog):
        """Verify the readiness line follows a successful bind."""
        calls = []
        sock = object()

        with mock.patch.object(backend.uvicorn, "Config") as config_cls, \
                mock.patch.object(backend.uvicorn, "Server") as server_cls:
            config = config_cls.return_value
            config.bind_socket.side_effect = lambda: calls.append("bind") or sock
            server_cls.return_value.run.side_effect = lambda sockets: calls.append("run")

            with caplog.at_level(logging.INFO, logger="hello_stack.backend"):
                backend.serve()

        config_cls.assert_called_once_with(app, host="0.0.0.0", port=5000)
        server_cls.return_value.run.assert_called_once_with(sockets=[sock])
        assert calls == ["bind", "run"]
        assert "Backend is running on port 5000" in caplog.messages

    def test_bind_failure_is_fatal(self, caplog):
        """Verify nothing is announced or served when the port is taken."""
        with mock.patch.object(backend.uvicorn, "Config") as config_cls, \
                mock.patch.object(backend.uvicorn, "Server") as server_cls:
            config_cls.return_value.bind_socket.side_effect = SystemExit(1)

            with caplog.at_level(logging.INFO, logger="hello_stack.backend"):
                with pytest.raises(SystemExit):
                    backend.serve()

        server_cls.return_value.run.assert_not_called()
        assert "Backend is running on port 5000" not in caplog.messages

    def test_port_in_use_exits(self, caplog):
        """Verify a real port clash stops startup before the readiness line."""
        taken = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        taken.bind(("127.0.0.1", 0))
        taken.listen()
        port = taken.getsockname()[1]

        try:
            with mock.patch.object(backend.uvicorn, "Server") as server_cls:
                with caplog.at_level(logging.INFO, logger="hello_stack.backend"):
                    with pytest.raises(SystemExit) as exc_info:
                        backend.serve(host="127.0.0.1", port=port)
        finally:
            taken.close()

        assert exc_info.value.code != 0
        server_cls.return_value.run.assert_not_called()
        assert f"Backend is running on port {port}" not in caplog.messages
