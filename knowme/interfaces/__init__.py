"""Public interface definitions for all external collaborators.

Every external API or service in knowme is accessed exclusively through
the abstract base classes defined in this package.  Concrete adapters
implement them and are wired together in ``knowme/main.py``; unit tests
inject mocks instead.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementation (in knowme/providers/)
    ─────────────────────────────────────────────────────────────────────
    ILLMProvider               →  OpenAILLMProvider
    IKnowledgeIndexProvider    →  OpenAIVectorStoreProvider
    IStorageProvider           →  LocalStorageProvider
    IRecordStore               →  SQLiteRecordStore
    IPageProvider              →  WebPageProvider
"""

from knowme.interfaces.knowledge_index_provider import IKnowledgeIndexProvider
from knowme.interfaces.llm_provider import ILLMProvider
from knowme.interfaces.page_provider import FetchedPage, IPageProvider
from knowme.interfaces.record_store import IRecordStore
from knowme.interfaces.storage_provider import IStorageProvider
from knowme.interfaces.stream import IByteStream

__all__ = [
    "FetchedPage",
    "IByteStream",
    "IKnowledgeIndexProvider",
    "ILLMProvider",
    "IPageProvider",
    "IRecordStore",
    "IStorageProvider",
]
