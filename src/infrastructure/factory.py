"""Infrastructure factory for creating service instances from configuration."""

from collections.abc import Callable
from typing import Any, TypeVar, cast

from src.commons.infrastructure.blob import BlobStorageBase, MinioBlobStorage
from src.commons.infrastructure.documentdb import DocumentDBBase, MongoDBDocumentDB
from src.commons.infrastructure.vectordb import QdrantVectorDB, VectorDBBase
from src.commons.settings.models import DocumentDBSettings, Settings
from src.commons.telemetry import get_logger
from src.infrastructure.audio import AudioExtractorBase, FFmpegAudioExtractor
from src.infrastructure.embeddings import EmbeddingServiceBase, OpenAIEmbeddingService
from src.infrastructure.llm import AnthropicLLMService, LLMServiceBase, OpenAILLMService
from src.infrastructure.membership import (
    DocumentMembershipService,
    MembershipServiceBase,
)
from src.infrastructure.transcription import (
    OpenAIWhisperTranscription,
    TranscriptionServiceBase,
)

T = TypeVar("T")


def mongo_uri(settings: DocumentDBSettings) -> str:
    """Connection string, with credentials only when both are configured."""
    address = f"{settings.host}:{settings.port}"
    if settings.username and settings.password:
        return (
            f"mongodb://{settings.username}:{settings.password}@{address}"
            f"/?authSource={settings.auth_source}"
        )
    return f"mongodb://{address}"


class InfrastructureFactory:
    """Creates client handles once per process and hands them out.

    Each client is constructed on first request and cached, so every
    service sharing the factory shares one connection pool per backend.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._instances: dict[str, Any] = {}
        self._logger = get_logger(__name__)

    @property
    def settings(self) -> Settings:
        return self._settings

    def _lazy(self, key: str, build: Callable[[], T]) -> T:
        if key not in self._instances:
            self._instances[key] = build()
        return cast("T", self._instances[key])

    def get_blob_storage(self) -> BlobStorageBase:
        blob = self._settings.blob_storage
        return self._lazy(
            "blob_storage",
            lambda: MinioBlobStorage(
                endpoint=blob.endpoint,
                access_key=blob.access_key,
                secret_key=blob.secret_key,
                secure=blob.use_ssl,
                region=blob.region,
            ),
        )

    def get_vector_db(self) -> VectorDBBase:
        vector = self._settings.vector_db
        return self._lazy(
            "vector_db",
            lambda: QdrantVectorDB(
                host=vector.host,
                port=vector.port,
                grpc_port=vector.grpc_port,
                api_key=vector.api_key,
                url=vector.url,
                prefer_grpc=vector.prefer_grpc,
            ),
        )

    def get_document_db(self) -> DocumentDBBase:
        docs = self._settings.document_db
        return self._lazy(
            "document_db",
            lambda: MongoDBDocumentDB(
                connection_string=mongo_uri(docs),
                database_name=docs.database,
            ),
        )

    def get_audio_extractor(self) -> AudioExtractorBase:
        """Audio extractor pulling media from the conversation media bucket."""
        processing = self._settings.processing
        return self._lazy(
            "audio_extractor",
            lambda: FFmpegAudioExtractor(
                blob_storage=self.get_blob_storage(),
                bucket=self._settings.blob_storage.buckets.videos,
                ffmpeg_path=processing.ffmpeg_path,
                sample_rate=processing.audio_sample_rate,
                channels=processing.audio_channels,
            ),
        )

    def get_transcription_service(self) -> TranscriptionServiceBase:
        whisper = self._settings.transcription
        return self._lazy(
            "transcription",
            lambda: OpenAIWhisperTranscription(
                api_key=whisper.api_key,
                model=whisper.model,
                base_url=whisper.endpoint,
                timeout_seconds=whisper.timeout_seconds,
            ),
        )

    def get_embedding_service(self) -> EmbeddingServiceBase:
        embeddings = self._settings.embeddings
        return self._lazy(
            "embedding",
            lambda: OpenAIEmbeddingService(
                api_key=embeddings.api_key,
                model=embeddings.model,
                base_url=embeddings.endpoint,
                dimensions=embeddings.dimensions,
            ),
        )

    def get_llm_service(self) -> LLMServiceBase:
        """Chat completion client for the configured provider.

        Raises:
            ValueError: If provider is not supported.
        """
        return self._lazy("llm", self._build_llm)

    def _build_llm(self) -> LLMServiceBase:
        llm = self._settings.llm
        if llm.provider == "anthropic":
            return AnthropicLLMService(
                api_key=llm.api_key,
                model=llm.model,
                base_url=llm.endpoint,
            )
        if llm.provider in ("openai", "azure_openai"):
            return OpenAILLMService(
                api_key=llm.api_key,
                model=llm.model,
                base_url=llm.endpoint,
                timeout_seconds=llm.timeout_seconds,
            )
        raise ValueError(f"Unsupported LLM provider: {llm.provider}")

    def get_membership_service(self) -> MembershipServiceBase:
        return self._lazy(
            "membership",
            lambda: DocumentMembershipService(
                document_db=self.get_document_db(),
                collection=self._settings.document_db.collections.conversations,
            ),
        )

    async def close_all(self) -> None:
        """Close every created client; a failing close is logged and skipped."""
        for name, instance in self._instances.items():
            close = getattr(instance, "close", None)
            if close is None:
                continue
            try:
                result = close()
                if hasattr(result, "__await__"):
                    await result
            except Exception as e:
                self._logger.warning(
                    "Error closing client", extra={"client": name, "error": str(e)}
                )

        self._instances.clear()


class _FactoryHolder:
    """Holder for the factory singleton to avoid global statements."""

    instance: InfrastructureFactory | None = None


def get_factory(settings: Settings | None = None) -> InfrastructureFactory:
    """Get or create the infrastructure factory singleton.

    Args:
        settings: Settings to use. Required on first call.

    Returns:
        Infrastructure factory instance.

    Raises:
        ValueError: If settings not provided on first call.
    """
    if _FactoryHolder.instance is None:
        if settings is None:
            raise ValueError("Settings required to initialize factory")
        _FactoryHolder.instance = InfrastructureFactory(settings)

    return _FactoryHolder.instance


def reset_factory() -> None:
    """Reset the factory singleton (for testing)."""
    _FactoryHolder.instance = None
