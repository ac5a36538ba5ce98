"""Search collaborator contract."""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class RetrievalMode(str, Enum):
    """How retrieval selects candidates."""

    TEXT = "text"
    VECTOR = "vectors"
    HYBRID = "hybrid"


@dataclass(frozen=True)
class SearchHit:
    """A single retrieved candidate."""

    id: str
    text: str
    score: float


class SearchClient(Protocol):
    """Anything that can answer a search query with ranked hits."""

    def search(
        self,
        query: str,
        top: int,
        *,
        mode: RetrievalMode = RetrievalMode.TEXT,
        exclude_category: str | None = None,
        semantic_ranker: bool = False,
        semantic_captions: bool = False,
    ) -> list[SearchHit]:
        """Return up to `top` hits for the query, best first."""
        ...
