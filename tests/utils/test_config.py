"""
Tests for centralized configuration system.
Verifies environment variable loading and default values.
"""
import pytest

from intent_engine.config import Settings, get_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestConfigurationSystem:
    """Test suite for configuration management."""

    def test_default_values(self):
        """Verify all configuration fields have sensible defaults."""
        settings = Settings()

        # Scoring rules
        assert settings.signal_retention_days == 90
        assert settings.score_scale_factor == 20.0
        assert settings.urgency_window_days == 7
        assert settings.trend_window_days == 7

        # Workflow thresholds
        assert settings.high_intent_score_threshold == 70.0
        assert settings.high_intent_urgency_threshold == 80.0
        assert settings.medium_intent_score_threshold == 40.0

        # Scheduler
        assert settings.processing_batch_size == 10
        assert settings.pattern_refresh_interval_seconds == 3600
        assert settings.retention_cleanup_interval_seconds == 86400

        # Observability
        assert settings.log_level == "INFO"
        assert settings.enable_structured_logging is False

    def test_environment_variable_override(self, monkeypatch):
        """Verify environment variables override defaults."""
        monkeypatch.setenv("SIGNAL_RETENTION_DAYS", "30")
        monkeypatch.setenv("PROCESSING_BATCH_SIZE", "25")
        monkeypatch.setenv("SIGNAL_STORE_BACKEND", "mongodb")
        monkeypatch.setenv("WORKFLOW_WEBHOOK_URL", "https://hooks.example.com/intent")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = get_settings()

        assert settings.signal_retention_days == 30
        assert settings.processing_batch_size == 25
        assert settings.signal_store_backend == "mongodb"
        assert settings.workflow_webhook_url == "https://hooks.example.com/intent"
        assert settings.log_level == "DEBUG"

    def test_settings_singleton(self):
        """get_settings returns the cached instance."""
        assert get_settings() is get_settings()

    def test_invalid_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("SIGNAL_STORE_BACKEND", "redis")

        with pytest.raises(ValueError):
            Settings()
