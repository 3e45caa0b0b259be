"""Knowledge index adapters (OpenAI vector stores + Responses API)."""

from knowme.providers.index.openai_vector_store_provider import OpenAIVectorStoreProvider

__all__ = ["OpenAIVectorStoreProvider"]
