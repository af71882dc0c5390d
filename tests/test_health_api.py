"""
Test health endpoints, middleware and configuration.
"""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from microtools.api.health import HEALTH_TEXT
from microtools.api.responses import content_disposition
from microtools.config import Settings


class TestHealthEndpoints:
    """Test liveness, health and readiness."""

    def test_root(self, client):
        """Test the plain-text liveness string."""
        response = client.get("/")
        assert response.status_code == 200
        assert response.text == HEALTH_TEXT
        assert response.headers["content-type"].startswith("text/plain")

    def test_request_id_header(self, client):
        """Test that every response carries a request id."""
        response = client.get("/")
        assert len(response.headers["x-request-id"]) == 8

    def test_detailed_health(self, client):
        """Test the detailed health document."""
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert set(body["dependencies"]) == {"ghostscript", "ffmpeg", "soffice", "yt-dlp"}
        assert "memory_percent" in body["metrics"]

    def test_ready_when_tools_present(self, client):
        """Test readiness with every tool installed."""
        with patch("microtools.api.health.check_command_available", return_value=True):
            response = client.get("/api/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_when_tool_missing(self, client):
        """Test readiness with a missing converter."""
        with patch("microtools.api.health.check_command_available", return_value=False):
            response = client.get("/api/ready")
        assert response.status_code == 503
        assert response.json()["missing_dependencies"] == ["ghostscript", "ffmpeg", "soffice"]

    def test_unknown_route(self, client):
        """Test that unknown paths are 404."""
        assert client.get("/api/does-not-exist").status_code == 404


class TestContentDisposition:
    """Test download header construction."""

    def test_plain_name(self):
        """Test a harmless filename."""
        assert content_disposition("report.pdf") == 'attachment; filename="report.pdf"'

    def test_header_injection(self):
        """Test that quotes and line breaks cannot escape the header value."""
        header = content_disposition('evil"\r\nSet-Cookie: x=1.pdf')
        assert "\r" not in header and "\n" not in header
        assert header.count('"') == 2

    def test_non_ascii_replaced(self):
        """Test that non-ASCII characters are replaced."""
        assert content_disposition("résumé.pdf") == 'attachment; filename="r_sum_.pdf"'


class TestSettings:
    """Test configuration validation."""

    def test_defaults(self):
        """Test the documented defaults."""
        settings = Settings(RAZORPAY_KEY_ID=None, RAZORPAY_KEY_SECRET=None)
        assert settings.MAX_CONCURRENT_PER_TOOL > 0
        assert settings.RAZORPAY_CURRENCY == "INR"
        assert not settings.payments_configured

    def test_payments_configured(self):
        """Test that both credentials are required."""
        assert Settings(RAZORPAY_KEY_ID="id", RAZORPAY_KEY_SECRET="secret").payments_configured
        assert not Settings(RAZORPAY_KEY_ID="id", RAZORPAY_KEY_SECRET=None).payments_configured

    def test_log_level_normalized(self):
        """Test that log levels are upper-cased."""
        assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    @pytest.mark.parametrize("field,value", [
        ("ENVIRONMENT", "qa"),
        ("LOG_LEVEL", "LOUD"),
        ("MAX_FILE_SIZE", 0),
        ("MAX_FILE_SIZE", 2 * 1024 * 1024 * 1024),
        ("TOOL_TIMEOUT", 0),
        ("MAX_CONCURRENT_PER_TOOL", -1),
    ])
    def test_rejects_invalid_values(self, field, value):
        """Test that invalid settings fail at startup."""
        with pytest.raises(ValidationError):
            Settings(**{field: value})

    def test_frozen(self):
        """Test that settings cannot be mutated at runtime."""
        settings = Settings()
        with pytest.raises(ValidationError):
            settings.PORT = 1
