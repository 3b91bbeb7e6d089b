"""
Test centralized configuration management.
"""
import io
import logging
import os
import pytest
from unittest.mock import patch
from fastapi import status

from job_tracker_app.backend.config.settings import Settings
from job_tracker_app.backend.utils.logging_config import get_logger, setup_logging

# Variables conftest sets for the whole run
TEST_ENV_KEYS = ("TESTING", "ENVIRONMENT", "AUTH_SECRET_KEY", "STORE_BACKEND", "LOG_LEVEL")


@pytest.fixture
def clean_env(monkeypatch):
    for key in TEST_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestConfigurationManagement:
    """Test centralized configuration system."""

    def test_settings_loading_with_defaults(self, clean_env):
        """Test that settings load with appropriate defaults."""
        settings = Settings(_env_file=None)

        assert settings.app_name == "Job Application Tracker"
        assert settings.environment == "development"
        assert settings.auth_algorithm == "HS256"
        assert settings.log_level == "INFO"
        assert settings.store_backend == "memory"
        assert settings.store_in_filter_limit == 10
        assert settings.query_in_batch_size == 10
        assert settings.automation_user_id is None
        assert settings.mcp_port == 3001

    def test_settings_with_environment_variables(self):
        """Test settings loading from environment variables."""
        test_env = {
            "AUTH_SECRET_KEY": "env-secret",
            "LOG_LEVEL": "WARNING",
            "STORE_BACKEND": "MongoDB",
            "MONGODB_URI": "mongodb://db.internal:27017",
            "QUERY_IN_BATCH_SIZE": "30",
            "AUTOMATION_USER_ID": "agent-user",
            "MCP_PORT": "4010",
        }

        with patch.dict(os.environ, test_env):
            settings = Settings(_env_file=None)

            assert settings.auth_secret_key == "env-secret"
            assert settings.log_level == "WARNING"
            assert settings.store_backend == "mongodb"
            assert settings.mongodb_uri == "mongodb://db.internal:27017"
            assert settings.query_in_batch_size == 30
            assert settings.automation_user_id == "agent-user"
            assert settings.mcp_port == 4010
            assert settings.store_in_filter_limit == 10

    def test_environment_detection_methods(self, clean_env):
        """Test environment detection helper methods."""
        with patch.dict(os.environ, {"ENVIRONMENT": "development"}):
            settings = Settings(_env_file=None)
            assert settings.is_development()
            assert not settings.is_production()
            assert not settings.is_testing()

        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            settings = Settings(_env_file=None)
            assert settings.is_production()
            assert not settings.is_development()

        with patch.dict(os.environ, {"TESTING": "true"}):
            assert Settings(_env_file=None).is_testing()

    def test_invalid_store_backend(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, store_backend="sqlite")

    def test_batch_size_must_be_positive(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, query_in_batch_size=0)

    def test_batch_size_over_store_limit_reported(self):
        settings = Settings(_env_file=None, query_in_batch_size=20)

        assert "QUERY_IN_BATCH_SIZE (20) exceeds STORE_IN_FILTER_LIMIT (10)" in settings.validate_required_settings()
        assert Settings(_env_file=None, query_in_batch_size=20, store_in_filter_limit=30).validate_required_settings() == []

    def test_production_validation(self):
        settings = Settings(_env_file=None, environment="production", store_backend="memory", debug=True,
                            auth_secret_key="change-this-secret")

        issues = settings.validate_required_settings()

        assert any("AUTH_SECRET_KEY" in issue for issue in issues)
        assert any("STORE_BACKEND" in issue for issue in issues)
        assert any("DEBUG" in issue for issue in issues)

    def test_valid_production_configuration(self):
        settings = Settings(_env_file=None, environment="production", store_backend="mongodb",
                            auth_secret_key="a-real-secret", log_level="INFO")

        assert settings.validate_required_settings() == []

    def test_invalid_log_level_reported(self):
        settings = Settings(_env_file=None, log_level="LOUD")

        assert "Invalid LOG_LEVEL: LOUD" in settings.validate_required_settings()


class TestLoggingConfiguration:

    def test_setup_logging_writes_to_given_stream(self):
        stream = io.StringIO()
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(level="INFO", stream=stream)
            get_logger("job_tracker_app.test").info("store ready")
            get_logger("job_tracker_app.test").debug("hidden")
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

        output = stream.getvalue()
        assert "job_tracker_app.test - INFO - store ready" in output
        assert "hidden" not in output

    def test_setup_logging_quiets_driver(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(level="DEBUG", stream=io.StringIO())
            assert logging.getLogger("pymongo").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestHealthEndpoints:

    def test_basic_health(self, test_client):
        response = test_client.get("/api/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["environment"] == "testing"

    def test_detailed_health(self, test_client):
        response = test_client.get("/api/health/detailed")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["store"]["backend"] == "memory"
        assert data["store"]["reachable"] is True
        assert data["app_info"]["name"] == "Job Application Tracker"
