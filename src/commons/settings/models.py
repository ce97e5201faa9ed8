"""Pydantic settings models for application configuration.

Every section can be overridden from ``appsettings*.json`` or from
``VIDEO_MEMORY__<SECTION>__<FIELD>`` environment variables.
"""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseModel):
    name: str = "video-memory-server"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ServerSettings(BaseModel):
    """Uvicorn and HTTP surface settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/v1"
    docs_enabled: bool = True


class BucketSettings(BaseModel):
    videos: str = "conversation-media"


class BlobStorageSettings(BaseModel):
    """MinIO / S3 connection and media key layout."""

    endpoint: str = "localhost:9000"
    access_key: str = ""
    secret_key: str = ""
    use_ssl: bool = False
    region: str = "us-east-1"
    buckets: BucketSettings = Field(default_factory=BucketSettings)
    media_path_template: str = Field(
        default="chats/{conversation_id}/videos/{video_id}.mp4",
        description="Media key used when a record carries no explicit media_ref",
    )
    thumbnail_path_template: str = "chats/{conversation_id}/thumbnails/{video_id}.gif"


class VectorDBSettings(BaseModel):
    """Qdrant connection and transcript index layout."""

    host: str = "localhost"
    port: int = 6333
    grpc_port: int = 6334
    url: str | None = Field(default=None, description="Overrides host/port (Qdrant Cloud)")
    api_key: str | None = None
    prefer_grpc: bool = True
    index_name: str = "conversation-transcripts"
    dimensions: int = Field(default=1536, ge=1)
    metric: Literal["cosine", "euclidean", "dot"] = "cosine"
    upsert_batch_size: int = Field(default=100, ge=1, le=1000)
    ready_poll_attempts: int = Field(default=30, ge=1)
    ready_poll_interval_seconds: float = Field(default=2.0, ge=0)


class DocumentCollectionSettings(BaseModel):
    videos: str = "videos"
    conversations: str = "conversations"


class DocumentDBSettings(BaseModel):
    """MongoDB connection settings."""

    host: str = "localhost"
    port: int = 27017
    username: str = ""
    password: str = ""
    database: str = "video_memory"
    auth_source: str = "admin"
    collections: DocumentCollectionSettings = Field(
        default_factory=DocumentCollectionSettings
    )


class TranscriptionSettings(BaseModel):
    """Whisper speech-to-text settings."""

    api_key: str = ""
    endpoint: str | None = None
    model: str = "whisper-1"
    language: str = Field(default="en", description="Language hint sent with audio")
    timeout_seconds: int = 300


class EmbeddingsSettings(BaseModel):
    api_key: str = ""
    endpoint: str | None = None
    model: str = "text-embedding-ada-002"
    dimensions: int = 1536
    inter_call_delay_ms: int = Field(
        default=20, ge=0, description="Pause between chunk embedding calls"
    )


class LLMSettings(BaseModel):
    """Chat completion settings for answer synthesis."""

    provider: Literal["openai", "azure_openai", "anthropic"] = "openai"
    api_key: str = ""
    endpoint: str | None = None
    model: str = "gpt-4"
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=300, ge=1)
    timeout_seconds: int = 60


class ChunkingSettings(BaseModel):
    """Token-approximate transcript chunking."""

    chunk_size: int = Field(default=250, description="Target tokens per chunk")
    overlap_size: int = Field(default=50, description="Overlap tokens between chunks")
    chars_per_token: int = 4
    tokens_per_overlap_segment: int = 50


class StageTimeoutSettings(BaseModel):
    """Optional per-stage time limits in seconds. None disables a limit."""

    extract: float | None = None
    transcribe: float | None = None
    embed: float | None = None
    index: float | None = None


class ProcessingSettings(BaseModel):
    pipeline_timeout_seconds: float | None = 540.0  # 9 minutes
    stage_timeouts: StageTimeoutSettings = Field(default_factory=StageTimeoutSettings)
    ffmpeg_path: str = "ffmpeg"
    audio_sample_rate: int = 16000
    audio_channels: int = 1


class BacklogSettings(BaseModel):
    """Periodic recovery pass over unfinished videos."""

    enabled: bool = True
    interval_seconds: int = Field(default=7200, ge=1)  # 2 hours
    batch_limit: int = Field(default=10, ge=1)
    failure_cooldown_hours: float = Field(
        default=6.0, ge=0, description="Failed videos are retried after this long"
    )


class CleanupSettings(BaseModel):
    """Periodic expiry sweep."""

    enabled: bool = True
    interval_seconds: int = Field(default=86400, ge=1)  # daily
    batch_limit: int = Field(default=500, ge=1)


class QuerySettings(BaseModel):
    """Question answering and summary settings."""

    max_query_length: int = 500
    default_max_results: int = 5
    max_results_cap: int = 20
    fallback_response: str = "I don't have enough context to help with that query."
    empty_completion_response: str = "No suggestions available."
    source_preview_chars: int = 150
    summary_max_results: int = 3
    summary_fallback: str = "Recent conversation covered various topics."
    summary_query: str = (
        "Summarize the most recent video conversation. What were the main "
        "topics discussed? What was the overall tone and key takeaways?"
    )


class LangfuseSettings(BaseModel):
    """Langfuse tracing of chat completions. Off unless keys are set."""

    enabled: bool = False
    public_key: str = ""
    secret_key: str = ""
    host: str = "https://cloud.langfuse.com"
    debug: bool = False
    sample_rate: float = Field(default=1.0, ge=0, le=1)
    flush_at: int = 15
    flush_interval: float = 0.5


class TelemetrySettings(BaseModel):
    log_format: Literal["json", "text"] = "json"
    log_level: str | None = Field(
        default="INFO", description="Overrides app.log_level when set"
    )
    langfuse: LangfuseSettings = Field(default_factory=LangfuseSettings)


class LimitConfig(BaseModel):
    """Requests allowed per caller within one fixed window."""

    requests: int = Field(ge=1)
    window_seconds: int = Field(ge=1)


class RateLimitSettings(BaseModel):
    """Per endpoint group limits, keyed by group name."""

    enabled: bool = True
    limits: dict[str, LimitConfig] = Field(
        default_factory=lambda: {
            "query": LimitConfig(requests=100, window_seconds=60),
            "ingest": LimitConfig(requests=30, window_seconds=60),
            "maintenance": LimitConfig(requests=10, window_seconds=3600),
        }
    )


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    blob_storage: BlobStorageSettings = Field(default_factory=BlobStorageSettings)
    vector_db: VectorDBSettings = Field(default_factory=VectorDBSettings)
    document_db: DocumentDBSettings = Field(default_factory=DocumentDBSettings)
    transcription: TranscriptionSettings = Field(default_factory=TranscriptionSettings)
    embeddings: EmbeddingsSettings = Field(default_factory=EmbeddingsSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    backlog: BacklogSettings = Field(default_factory=BacklogSettings)
    cleanup: CleanupSettings = Field(default_factory=CleanupSettings)
    query: QuerySettings = Field(default_factory=QuerySettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)
    rate_limiting: RateLimitSettings = Field(default_factory=RateLimitSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VIDEO_MEMORY__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
