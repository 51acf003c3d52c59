"""
Simulated streaming for toolchat.

The endpoint is called without streaming; the final answer is then emitted
in fixed-size chunks with a short pause between them.
"""

from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional
import asyncio
import logging

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 5
DEFAULT_CHUNK_DELAY = 0.05


class StreamEvent(Enum):
    """Types of streaming events."""
    CONTENT = "content"
    FINISHED = "finished"
    USER_CANCELLED = "user_cancelled"


class StreamingEvent(BaseModel):
    """Base class for all streaming events."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: StreamEvent
    value: Optional[Any] = None


class ContentStreamEvent(StreamingEvent):
    """Event containing a chunk of the answer."""
    type: StreamEvent = StreamEvent.CONTENT
    value: str = Field(description="Chunk text")


class FinishedStreamEvent(StreamingEvent):
    """Event indicating streaming has finished."""
    type: StreamEvent = StreamEvent.FINISHED
    value: Optional[Dict[str, Any]] = Field(default=None, description="Final metadata")


class UserCancelledEvent(StreamingEvent):
    """Event indicating emission stopped on the abort signal."""
    type: StreamEvent = StreamEvent.USER_CANCELLED
    value: Optional[str] = Field(default=None, description="Cancellation reason")


def split_into_chunks(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> List[str]:
    """
    Split text into consecutive chunks of ``chunk_size`` characters.

    The last chunk may be shorter; an empty text gives no chunks.

    Raises:
        ValueError: If ``chunk_size`` is not positive
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return [text[i:i + chunk_size] for i in range(0, len(text), chunk_size)]


async def stream_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    delay: float = DEFAULT_CHUNK_DELAY,
    abort_signal: Optional[asyncio.Event] = None,
) -> AsyncIterator[str]:
    """
    Emit ``text`` chunk by chunk.

    Args:
        text: Complete text to emit
        chunk_size: Characters per chunk
        delay: Pause between chunks in seconds, not applied after the last one
        abort_signal: When set, emission stops after the current chunk

    Yields:
        Chunks whose concatenation is ``text``
    """
    chunks = split_into_chunks(text, chunk_size)
    for index, chunk in enumerate(chunks):
        if abort_signal is not None and abort_signal.is_set():
            logger.debug(f"Streaming stopped after {index} of {len(chunks)} chunks")
            return
        yield chunk
        if delay > 0 and index < len(chunks) - 1:
            await asyncio.sleep(delay)


async def stream_events(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    delay: float = DEFAULT_CHUNK_DELAY,
    abort_signal: Optional[asyncio.Event] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AsyncIterator[StreamingEvent]:
    """
    Emit ``text`` as content events followed by a terminal event.

    The terminal event is ``FinishedStreamEvent`` carrying ``metadata``, or
    ``UserCancelledEvent`` if the abort signal stopped emission early.
    """
    emitted = 0
    async for chunk in stream_text(text, chunk_size, delay, abort_signal):
        emitted += len(chunk)
        yield ContentStreamEvent(value=chunk)

    if emitted < len(text):
        yield UserCancelledEvent(value="Streaming cancelled")
    else:
        yield FinishedStreamEvent(value=metadata)
