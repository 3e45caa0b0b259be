"""LLM provider adapters.

OpenAILLMProvider (knowme/interfaces/llm_provider.py contract) handles
vision transcription, native PDF extraction and the streamed chat
completion used by spaces without a knowledge index.  main.py builds one
AsyncOpenAI client and shares it with the vector store provider.
"""

from knowme.providers.llm.openai_provider import OpenAILLMProvider, build_openai_client

__all__ = ["OpenAILLMProvider", "build_openai_client"]
