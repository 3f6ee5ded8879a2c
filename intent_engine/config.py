"""
Centralized Configuration System
Environment-aware settings for the intent engine, its scheduler and collaborators.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal, Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow"
    )
    """
    Production-grade configuration management.
    Loads from environment variables with sensible defaults.
    """

    # ============================================
    # SCORING RULES
    # ============================================
    signal_retention_days: int = 90
    score_scale_factor: float = 20.0      # Points per unit of decayed weight
    urgency_window_days: int = 7
    trend_window_days: int = 7
    tracked_repository: str = "openconductor/openconductor"

    # ============================================
    # WORKFLOW THRESHOLDS
    # ============================================
    high_intent_score_threshold: float = 70.0
    high_intent_urgency_threshold: float = 80.0
    medium_intent_score_threshold: float = 40.0

    # ============================================
    # PROCESSING SCHEDULER
    # ============================================
    processing_tick_seconds: float = 30.0
    processing_batch_size: int = 10
    processing_max_concurrent: int = 10
    pattern_refresh_interval_seconds: int = 3600
    retention_cleanup_interval_seconds: int = 86400

    # ============================================
    # EXTERNAL COLLABORATORS
    # ============================================
    workflow_webhook_url: Optional[str] = None
    workflow_trigger_timeout_seconds: float = 5.0
    profile_service_url: Optional[str] = None
    profile_service_timeout_seconds: float = 5.0

    # ============================================
    # CIRCUIT BREAKER (workflow triggers)
    # ============================================
    circuit_breaker_failure_threshold: int = 5
    circuit_breaker_recovery_timeout: float = 60.0
    circuit_breaker_half_open_max_calls: int = 1

    # ============================================
    # PERSISTENCE
    # ============================================
    signal_store_backend: Literal["memory", "mongodb"] = "memory"
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "intent_engine"
    mongodb_max_pool_size: int = 10
    mongodb_min_pool_size: int = 1
    mongodb_server_selection_timeout_ms: int = 5000

    # ============================================
    # OBSERVABILITY
    # ============================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    enable_structured_logging: bool = False  # Set to True for production JSON logs

    # ============================================
    # ENVIRONMENT
    # ============================================
    environment: Literal["development", "staging", "production", "test"] = "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Singleton pattern for settings.
    Uses LRU cache to ensure only one Settings instance exists.
    """
    return Settings()


# Convenience accessor for common use
settings = get_settings()
