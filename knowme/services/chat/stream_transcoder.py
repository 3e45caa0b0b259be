"""Upstream SSE -> client SSE transcoding.

Reads the raw event stream of either OpenAI streaming shape and re-emits
it in the single shape the chat client understands::

    data: {"choices":[{"delta":{"content":"<fragment>"}}]}\\n\\n
    ...
    data: [DONE]\\n\\n

Recognised upstream events:

- Responses API: ``response.output_text.delta`` (text),
  ``response.output_text.annotation.added`` (file citations),
  ``response.completed`` (end), ``response.failed`` / ``error`` (failure).
- Chat completions: ``choices[0].delta.content`` chunks and ``[DONE]``.

Bytes may arrive split anywhere, including inside a line or inside a
multi-byte UTF-8 character: a partial-line buffer and an incremental
decoder carry state across :meth:`StreamTranscoder.feed` calls.  Lines
that are not ``data:`` lines, or whose payload is not valid JSON, are
skipped.  Citations ride on the next emitted chunk, or on a final empty
chunk before ``[DONE]``.  ``[DONE]`` is emitted exactly once.
"""

from __future__ import annotations

import codecs
import json
from collections.abc import AsyncIterator
from typing import Any

import structlog

from knowme.models.chat import Citation
from knowme.providers.openai_errors import classify_stream_error

logger = structlog.get_logger(logger_name=__name__)

DONE_EVENT = b"data: [DONE]\n\n"


def content_event(content: str, citations: list[Citation] | None = None) -> bytes:
    """Encode one client-facing chunk."""
    payload: dict[str, Any] = {"choices": [{"delta": {"content": content}}]}
    if citations:
        payload["citations"] = [c.model_dump(exclude_none=True) for c in citations]
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode()


def error_event(message: str) -> bytes:
    return f"data: {json.dumps({'error': message}, ensure_ascii=False)}\n\n".encode()


class StreamTranscoder:
    """Stateful transcoder for one upstream response."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._pending_citations: list[Citation] = []
        self._cited_files: set[str] = set()
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def feed(self, chunk: bytes) -> list[bytes]:
        """Consume upstream bytes; return every complete client event they finish."""
        if self._done:
            return []
        self._buffer += self._decoder.decode(chunk)
        out: list[bytes] = []
        while not self._done and "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            out.extend(self._handle_line(line.rstrip("\r")))
        return out

    def finish(self) -> list[bytes]:
        """Flush any trailing line and close the client stream if still open."""
        if self._done:
            return []
        self._buffer += self._decoder.decode(b"", final=True)
        out: list[bytes] = []
        if self._buffer:
            line, self._buffer = self._buffer, ""
            out.extend(self._handle_line(line.rstrip("\r")))
        if not self._done:
            out.extend(self._close())
        return out

    def fail(self, message: str) -> list[bytes]:
        """Append an error event and the end marker (once)."""
        if self._done:
            return []
        self._done = True
        return [error_event(message), DONE_EVENT]

    async def transcode(self, source: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
        """Yield client events as soon as each upstream fragment is parsed."""
        async for chunk in source:
            for event in self.feed(chunk):
                yield event
            if self._done:
                return
        for event in self.finish():
            yield event

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _handle_line(self, line: str) -> list[bytes]:
        if not line.startswith("data:"):
            return []
        data = line[5:].strip()
        if not data:
            return []
        if data == "[DONE]":
            return self._close()
        try:
            payload = json.loads(data)
        except ValueError:
            logger.debug("sse_line_skipped", length=len(data))
            return []
        if not isinstance(payload, dict):
            return []

        event_type = payload.get("type")
        if event_type == "response.output_text.delta":
            return self._emit(payload.get("delta"))
        if event_type == "response.output_text.annotation.added":
            self._add_citation(payload.get("annotation"))
            return []
        if event_type == "response.completed":
            return self._close()
        if event_type == "response.failed":
            error = (payload.get("response") or {}).get("error") or {}
            return self._upstream_failed(error.get("code"), error.get("message"))
        if event_type == "error":
            return self._upstream_failed(payload.get("code"), payload.get("message"))
        if isinstance(payload.get("error"), dict):
            # Chat completions report mid-stream failures without a type.
            return self._upstream_failed(payload["error"].get("code"), payload["error"].get("message"))

        choices = payload.get("choices")
        if isinstance(choices, list) and choices:
            delta = (choices[0] or {}).get("delta") or {}
            return self._emit(delta.get("content"))
        return []

    def _emit(self, fragment: Any) -> list[bytes]:
        if not isinstance(fragment, str) or not fragment:
            return []
        citations, self._pending_citations = self._pending_citations, []
        return [content_event(fragment, citations)]

    def _add_citation(self, annotation: Any) -> None:
        if not isinstance(annotation, dict) or annotation.get("type") != "file_citation":
            return
        file_id = annotation.get("file_id")
        if file_id in self._cited_files:
            return
        if file_id:
            self._cited_files.add(file_id)
        self._pending_citations.append(
            Citation(
                file_id=file_id,
                filename=annotation.get("filename"),
                index=annotation.get("index"),
            )
        )

    def _upstream_failed(self, code: Any, message: Any) -> list[bytes]:
        error = classify_stream_error(
            code if isinstance(code, str) else None,
            message if isinstance(message, str) else None,
        )
        logger.warning("upstream_stream_failed", code=code, error=str(error))
        return self.fail(error.message)

    def _close(self) -> list[bytes]:
        out: list[bytes] = []
        if self._pending_citations:
            out.append(content_event("", self._pending_citations))
            self._pending_citations = []
        out.append(DONE_EVENT)
        self._done = True
        return out
