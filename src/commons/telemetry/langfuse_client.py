"""Langfuse tracing of chat completions.

Tracing is best effort: with Langfuse disabled, unconfigured or failing,
``traced_generation`` still yields a handle whose calls do nothing, and
errors from the Langfuse SDK are logged, never raised to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from langfuse import Langfuse

if TYPE_CHECKING:
    from langfuse.client import StatefulGenerationClient

    from src.commons.settings.models import LangfuseSettings

logger = logging.getLogger(__name__)


@dataclass
class _LangfuseState:
    client: Langfuse | None = None


_state = _LangfuseState()


def init_langfuse(settings: LangfuseSettings) -> None:
    """Create the process-wide client when tracing is enabled and keyed."""
    _state.client = None
    if not settings.enabled:
        logger.info("Langfuse is disabled")
        return
    if not (settings.public_key and settings.secret_key):
        logger.warning("Langfuse keys not configured, tracing disabled")
        return

    try:
        _state.client = Langfuse(
            public_key=settings.public_key,
            secret_key=settings.secret_key,
            host=settings.host,
            debug=settings.debug,
            sample_rate=settings.sample_rate,
            flush_at=settings.flush_at,
            flush_interval=settings.flush_interval,
        )
    except Exception as e:
        logger.error("Failed to initialize Langfuse", extra={"error": str(e)})
        return
    logger.info("Langfuse initialized", extra={"host": settings.host})


def shutdown_langfuse() -> None:
    """Flush pending events and drop the client."""
    client, _state.client = _state.client, None
    if client is None:
        return
    try:
        client.flush()
        client.shutdown()
    except Exception as e:
        logger.error("Error shutting down Langfuse", extra={"error": str(e)})


def is_langfuse_enabled() -> bool:
    return _state.client is not None


class GenerationTrace:
    """One traced completion.

    Providers call ``record`` with the model output; the surrounding
    ``traced_generation`` block closes the generation.
    """

    def __init__(self, generation: StatefulGenerationClient | None) -> None:
        self._generation = generation
        self._output: str | None = None
        self._usage: dict[str, int] | None = None

    @property
    def active(self) -> bool:
        return self._generation is not None

    def record(self, output: str, usage: dict[str, int] | None = None) -> None:
        self._output = output
        self._usage = usage

    def end(self, level: str = "DEFAULT", status_message: str | None = None) -> None:
        if self._generation is None:
            return
        try:
            self._generation.end(
                output=self._output,
                usage=self._usage,
                level=level,
                status_message=status_message,
            )
        except Exception as e:
            logger.error("Error ending LLM generation", extra={"error": str(e)})


def _start_generation(
    name: str,
    model: str,
    input_messages: list[dict[str, Any]],
    model_parameters: dict[str, Any],
    metadata: dict[str, Any],
    session_id: str | None,
) -> StatefulGenerationClient | None:
    if _state.client is None:
        return None
    try:
        trace = _state.client.trace(name=name, session_id=session_id, metadata=metadata)
        return trace.generation(
            name=name,
            model=model,
            input=input_messages,
            model_parameters=model_parameters,
            metadata=metadata,
        )
    except Exception as e:
        logger.error("Error creating LLM generation", extra={"error": str(e)})
        return None


@contextmanager
def traced_generation(
    name: str,
    model: str,
    input_messages: list[dict[str, Any]],
    model_parameters: dict[str, Any] | None = None,
    metadata: dict[str, Any] | None = None,
    session_id: str | None = None,
) -> Iterator[GenerationTrace]:
    """Trace one completion call inside a fresh Langfuse trace.

    Args:
        name: Generation name, e.g. ``openai_chat_completion``.
        model: Model identifier.
        input_messages: Messages sent to the model.
        model_parameters: Temperature, max_tokens and similar.
        metadata: Additional metadata such as the provider.
        session_id: Groups traces; the conversation id is used here.

    Yields:
        The generation handle. An exception escaping the block ends the
        generation at ERROR level and is re-raised.
    """
    trace = GenerationTrace(
        _start_generation(
            name,
            model,
            input_messages,
            model_parameters or {},
            metadata or {},
            session_id,
        )
    )
    try:
        yield trace
    except Exception as e:
        trace.end(level="ERROR", status_message=str(e))
        raise
    trace.end()
