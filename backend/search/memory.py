"""Embeddings-only memory store over a SearchIndex."""

import logging

from backend.core.errors import ConfigurationError
from .client import RetrievalMode, SearchHit
from .index import SearchIndex

logger = logging.getLogger(__name__)


class VectorMemory:
    """Search client whose only backend is the index's vector store.

    The store has a single backend, so ``mode`` selects nothing; category
    exclusion, ``top`` and the ranker and caption flags reach the index as
    given.
    """

    def __init__(self, index: SearchIndex):
        if not index.vectors_enabled:
            raise ConfigurationError(
                "Vector memory needs vector search: set ENABLE_VECTOR_SEARCH and install the ml extra"
            )
        self._index = index

    def search(
        self,
        query: str,
        top: int,
        *,
        mode: RetrievalMode = RetrievalMode.VECTOR,
        exclude_category: str | None = None,
        semantic_ranker: bool = False,
        semantic_captions: bool = False,
    ) -> list[SearchHit]:
        return self._index.search(
            query,
            top,
            mode=RetrievalMode.VECTOR,
            exclude_category=exclude_category,
            semantic_ranker=semantic_ranker,
            semantic_captions=semantic_captions,
        )
