"""Public chat responder.

Turns a visitor message into a streamed, citation-aware answer.  The
upstream request is opened eagerly inside :meth:`ChatService.respond`, so
anything that goes wrong before the first byte (no content, rate limit,
quota, timeout) is raised as a classified
:class:`~knowme.utils.errors.KnowMeError` the route can turn into a JSON
error.  Once streaming has begun, failures become an in-stream error
event followed by ``[DONE]``.

Answer paths
------------
- **Indexed** -- the space has a knowledge index: OpenAI Responses API
  with the ``file_search`` tool bound to it.
- **Stored text** -- no index yet, but ready documents have chunks: the
  chunk text is placed in the instructions and a plain chat completion is
  streamed.
- Neither -- :class:`NoIndexedContentError`, before any model call.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import structlog

from knowme.interfaces.knowledge_index_provider import IKnowledgeIndexProvider
from knowme.interfaces.llm_provider import ILLMProvider
from knowme.interfaces.record_store import IRecordStore
from knowme.interfaces.stream import IByteStream
from knowme.models.chat import ChatTurn
from knowme.models.space import Space
from knowme.services.chat.prompt_builder import build_context_instructions, build_instructions
from knowme.services.chat.stream_transcoder import StreamTranscoder
from knowme.utils.errors import KnowMeError, NoIndexedContentError

logger = structlog.get_logger(logger_name=__name__)

MAX_HISTORY_TURNS = 10


class ChatService:
    """Answers visitor questions for one space at a time.

    Parameters
    ----------
    store:
        Record store; read for the stored-text path.
    llm:
        Plain chat completion provider (stored-text path).
    index_provider:
        Knowledge index provider (indexed path), or ``None`` when disabled.
    history_turns:
        How many prior turns to send (clamped to 0..10).
    max_output_tokens:
        Upper bound on generated tokens.
    context_chars:
        Character budget for stored text placed in the instructions.
    """

    def __init__(
        self,
        store: IRecordStore,
        llm: ILLMProvider,
        index_provider: IKnowledgeIndexProvider | None,
        history_turns: int = MAX_HISTORY_TURNS,
        max_output_tokens: int = 1000,
        context_chars: int = 15_000,
    ) -> None:
        self._store = store
        self._llm = llm
        self._index = index_provider
        self._history_turns = max(0, min(history_turns, MAX_HISTORY_TURNS))
        self._max_output_tokens = max_output_tokens
        self._context_chars = context_chars

    async def respond(
        self,
        space: Space,
        message: str,
        history: list[ChatTurn] | None = None,
    ) -> AsyncIterator[bytes]:
        """Open the upstream answer and return the client-facing SSE stream.

        Raises:
            NoIndexedContentError: The space has nothing to answer from.
            KnowMeError: The upstream request could not be opened.
        """
        conversation = self.conversation(history or [], message)

        if space.index_id and self._index is not None:
            upstream = await self._index.open_response_stream(
                index_id=space.index_id,
                instructions=build_instructions(space),
                messages=conversation,
                model=space.ai_model,
                max_output_tokens=self._max_output_tokens,
            )
            mode = "indexed"
        else:
            context = await self._stored_context(space)
            if not context:
                raise NoIndexedContentError()
            upstream = await self._llm.open_chat_stream(
                [{"role": "system", "content": build_context_instructions(space, context)}, *conversation],
                model=space.ai_model,
                max_tokens=self._max_output_tokens,
            )
            mode = "stored_text"

        logger.info(
            "chat_stream_started",
            space_id=space.id,
            mode=mode,
            history_turns=len(conversation) - 1,
        )
        return self._relay(upstream, space.id)

    def conversation(self, history: list[ChatTurn], message: str) -> list[dict[str, Any]]:
        """Last N history turns plus the new user message, oldest first."""
        window = history[-self._history_turns :] if self._history_turns else []
        turns = [{"role": t.role.value, "content": t.content} for t in window]
        turns.append({"role": "user", "content": message})
        return turns

    async def _stored_context(self, space: Space) -> str:
        chunks = await self._store.get_space_chunks(space.id)
        parts: list[str] = []
        used = 0
        for chunk in chunks:
            if used >= self._context_chars:
                break
            piece = chunk.content[: self._context_chars - used]
            parts.append(piece)
            used += len(piece)
        return "".join(parts).strip()

    async def _relay(self, upstream: IByteStream, space_id: str) -> AsyncIterator[bytes]:
        transcoder = StreamTranscoder()
        try:
            async for event in transcoder.transcode(upstream.iter_bytes()):
                yield event
        except KnowMeError as exc:
            logger.warning("chat_stream_interrupted", space_id=space_id, error=str(exc))
            for event in transcoder.fail(exc.message):
                yield event
        finally:
            # Also runs when the client disconnects and the generator is closed.
            await upstream.aclose()
