"""Server-sent event decoding for streaming chat completions.

The stream is framed as ``data: {...}`` lines separated by blank lines and
terminated by ``data: [DONE]``. Decoding is pull-based: the next network
read only happens when the consumer asks for the next chunk.
"""

import codecs
from typing import AsyncIterable, AsyncIterator, Generic, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from venice_client.core.logging import get_logger
from venice_client.exceptions import NetworkError, ParseError, RequestTimeoutError
from venice_client.models.chat import ChatCompletionChunk
from venice_client.models.rate_limit import RateLimitSnapshot

logger = get_logger(__name__)

DATA_PREFIX = "data: "
DONE_LINE = "data: [DONE]"

ChunkT = TypeVar("ChunkT", bound=BaseModel)


def _data_payload(line: str) -> Optional[str]:
    if not line.startswith(DATA_PREFIX):
        return None
    return line[len(DATA_PREFIX):]


async def iter_sse_data(byte_chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """Yield the payload of every ``data:`` line in an SSE byte stream.

    Bytes are decoded incrementally, so multi-byte characters and lines split
    across reads are reassembled. Iteration ends at ``data: [DONE]`` or when
    the byte stream ends.

    Raises:
        ParseError: If the bytes are not valid UTF-8
    """
    decoder = codecs.getincrementaldecoder("utf-8")()
    buffer = ""

    async for chunk in byte_chunks:
        try:
            buffer += decoder.decode(chunk)
        except UnicodeDecodeError as e:
            raise ParseError(f"Invalid UTF-8: {e}") from e

        *lines, buffer = buffer.split("\n")
        for line in lines:
            line = line.rstrip("\r")
            if line == DONE_LINE:
                return
            payload = _data_payload(line)
            if payload is not None:
                yield payload

    try:
        buffer += decoder.decode(b"", final=True)
    except UnicodeDecodeError as e:
        raise ParseError(f"Invalid UTF-8: {e}") from e

    line = buffer.rstrip("\r")
    if line and line != DONE_LINE:
        payload = _data_payload(line)
        if payload is not None:
            yield payload


class ChatCompletionStream(Generic[ChunkT]):
    """Lazy, single-pass sequence of decoded stream chunks.

    Use as an async iterator, ideally inside ``async with`` so the
    connection is released as soon as iteration stops early (a dropped
    stream is otherwise released when the event loop finalizes it):

        async with await client.stream_chat_completion(request) as stream:
            async for chunk in stream:
                print(chunk.content, end="")

    The stream closes itself when it ends or fails. A ``data:`` line that
    does not parse raises :class:`ParseError` and closes the stream, unless
    ``skip_invalid`` is set, in which case the line is logged and skipped.

    Attributes:
        rate_limit: Snapshot from the headers of the streaming response
    """

    def __init__(
        self,
        response: httpx.Response,
        rate_limit: Optional[RateLimitSnapshot] = None,
        chunk_model: Type[ChunkT] = ChatCompletionChunk,  # type: ignore[assignment]
        skip_invalid: bool = False,
    ):
        self._response = response
        self.rate_limit = rate_limit or RateLimitSnapshot.from_headers(response.headers)
        self._chunk_model = chunk_model
        self._skip_invalid = skip_invalid
        self._bytes = self._read_bytes()
        self._payloads = iter_sse_data(self._bytes)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def _read_bytes(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes():
                yield chunk
        except httpx.TimeoutException as e:
            raise RequestTimeoutError("Timed out reading stream", cause=e) from e
        except (httpx.RequestError, httpx.StreamError) as e:
            raise NetworkError(f"HTTP error: {type(e).__name__}: {e}", cause=e) from e
        finally:
            # Also runs when an abandoned stream's generator is finalized
            await self._response.aclose()

    def __aiter__(self) -> "ChatCompletionStream[ChunkT]":
        return self

    async def __anext__(self) -> ChunkT:
        if self._closed:
            raise StopAsyncIteration

        while True:
            try:
                payload = await self._payloads.__anext__()
            except StopAsyncIteration:
                await self.aclose()
                raise
            except Exception:
                await self.aclose()
                raise

            try:
                return self._chunk_model.model_validate_json(payload)
            except ValidationError as e:
                if self._skip_invalid:
                    logger.warning(f"Skipping malformed stream chunk: {e.error_count()} error(s)")
                    continue
                await self.aclose()
                raise ParseError(f"Failed to parse JSON: {e}", rate_limit=self.rate_limit) from e

    async def collect(self) -> List[ChunkT]:
        """Drain the stream into a list."""
        return [chunk async for chunk in self]

    async def aclose(self) -> None:
        """Stop iteration and release the underlying connection."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._payloads.aclose()
            await self._bytes.aclose()
        finally:
            await self._response.aclose()

    async def __aenter__(self) -> "ChatCompletionStream[ChunkT]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
