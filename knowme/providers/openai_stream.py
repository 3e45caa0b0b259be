"""Raw streamed response bodies from the openai SDK.

``client.<resource>.with_streaming_response.create(..., stream=True)``
returns an async context manager around the undecoded HTTP response.  The
context is entered here and kept open on an :class:`AsyncExitStack`
until the consumer finishes or disconnects, so the SSE bytes can be
handed to the stream transcoder untouched.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, AsyncExitStack
from typing import Any

import httpx
import openai

from knowme.interfaces.stream import IByteStream
from knowme.providers.openai_errors import classify_openai_error


class OpenAIByteStream(IByteStream):
    """An open streaming response; closing it releases the HTTP connection."""

    def __init__(self, stack: AsyncExitStack, response: Any, provider_name: str = "openai") -> None:
        self._stack = stack
        self._response = response
        self._provider_name = provider_name
        self._closed = False

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """Yield body bytes; read failures surface as classified knowme errors."""
        try:
            async for chunk in self._response.iter_bytes():
                yield chunk
        except (httpx.HTTPError, openai.APIError) as exc:
            raise classify_openai_error(exc, provider_name=self._provider_name) from exc
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._stack.aclose()


async def open_byte_stream(
    open_response: Callable[[], AbstractAsyncContextManager[Any]],
    provider_name: str = "openai",
) -> OpenAIByteStream:
    """Enter the SDK's streaming context and wrap the response.

    Any error raised while the request is being sent (status errors,
    timeouts, connection failures) propagates to the caller with the
    context already unwound.
    """
    stack = AsyncExitStack()
    try:
        response = await stack.enter_async_context(open_response())
    except BaseException:
        await stack.aclose()
        raise
    return OpenAIByteStream(stack, response, provider_name=provider_name)
