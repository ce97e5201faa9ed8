"""Settings management module."""

from src.commons.settings.loader import (
    SettingsLoader,
    coerce_env_value,
    get_settings,
    merge_config,
    reset_settings,
)
from src.commons.settings.models import (
    AppSettings,
    BacklogSettings,
    BlobStorageSettings,
    BucketSettings,
    ChunkingSettings,
    CleanupSettings,
    DocumentCollectionSettings,
    DocumentDBSettings,
    EmbeddingsSettings,
    LangfuseSettings,
    LimitConfig,
    LLMSettings,
    ProcessingSettings,
    QuerySettings,
    RateLimitSettings,
    ServerSettings,
    Settings,
    StageTimeoutSettings,
    TelemetrySettings,
    TranscriptionSettings,
    VectorDBSettings,
)

__all__ = [
    # Loader
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    "coerce_env_value",
    "merge_config",
    # Main settings
    "Settings",
    "AppSettings",
    "ServerSettings",
    # Storage
    "BlobStorageSettings",
    "BucketSettings",
    "VectorDBSettings",
    "DocumentDBSettings",
    "DocumentCollectionSettings",
    # AI Services
    "TranscriptionSettings",
    "EmbeddingsSettings",
    "LLMSettings",
    # Pipeline
    "ChunkingSettings",
    "ProcessingSettings",
    "StageTimeoutSettings",
    "BacklogSettings",
    "CleanupSettings",
    "QuerySettings",
    # Telemetry & Rate Limiting
    "TelemetrySettings",
    "LangfuseSettings",
    "RateLimitSettings",
    "LimitConfig",
]
