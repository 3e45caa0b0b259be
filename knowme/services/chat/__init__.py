"""Public chat: instruction building, upstream streaming and SSE transcoding."""

from knowme.services.chat.chat_service import ChatService
from knowme.services.chat.stream_transcoder import StreamTranscoder

__all__ = ["ChatService", "StreamTranscoder"]
