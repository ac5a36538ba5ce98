"""BM25 retrieval implementation (no ML dependencies)."""

import re
from dataclasses import dataclass
from typing import Callable

from rank_bm25 import BM25Okapi


@dataclass
class BM25Document:
    """A document in the BM25 index."""

    id: str
    text: str
    tokens: list[str]
    metadata: dict


def tokenize(text: str) -> list[str]:
    """Tokenize text for BM25 and lexical re-ranking."""
    text = text.lower()
    # Keep alphanumeric and spaces
    text = re.sub(r"[^a-z0-9\s]", " ", text)
    return [t for t in text.split() if len(t) > 1]


class BM25Index:
    """BM25 index for text retrieval."""

    def __init__(self):
        self._documents: list[BM25Document] = []
        self._index: BM25Okapi | None = None

    def add_documents(self, documents: list[dict]) -> None:
        """Add documents to the index.

        Args:
            documents: List of dicts with 'id', 'text', and optional 'metadata'.
        """
        for doc in documents:
            self._documents.append(
                BM25Document(
                    id=doc["id"],
                    text=doc["text"],
                    tokens=tokenize(doc["text"]),
                    metadata=doc.get("metadata", {}),
                )
            )

        # Rebuild index
        if self._documents:
            self._index = BM25Okapi([doc.tokens for doc in self._documents])

    def search(
        self,
        query: str,
        top_k: int = 5,
        where: Callable[[BM25Document], bool] | None = None,
    ) -> list[tuple[BM25Document, float]]:
        """Search the index.

        Args:
            query: Search query.
            top_k: Number of results to return.
            where: Optional predicate; documents failing it are skipped
                before the top-k cut.

        Returns:
            List of (document, score) tuples, best first.
        """
        if not self._index or not self._documents:
            return []

        query_tokens = tokenize(query)
        if not query_tokens:
            return []

        scores = self._index.get_scores(query_tokens)

        ranked = sorted(enumerate(scores), key=lambda x: x[1], reverse=True)

        # A document matches when it shares a query term; scores only order
        # matches (IDF can be zero or negative on tiny corpora)
        wanted = set(query_tokens)
        results = []
        for idx, score in ranked:
            if len(results) >= top_k:
                break
            doc = self._documents[idx]
            if wanted.isdisjoint(doc.tokens):
                continue
            if where is not None and not where(doc):
                continue
            results.append((doc, float(score)))

        return results

    def __len__(self) -> int:
        return len(self._documents)
