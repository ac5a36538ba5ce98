"""Citations and the assembled result of one run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from backend.search.client import SearchHit


@dataclass(frozen=True)
class ContentSource:
    """A cited snippet: where it came from and what it says."""

    id: str
    text: str

    @classmethod
    def from_hit(cls, hit: SearchHit) -> ContentSource:
        return cls(id=hit.id, text=hit.text)

    def as_line(self) -> str:
        """Render as ``id: text`` on a single line."""
        flat = self.text.replace("\r", "").replace("\n", "")
        return f"{self.id}: {flat}\n"


def sources_as_text(sources: Iterable[ContentSource]) -> str:
    """Flatten sources to one ``id: text`` line each, preserving order."""
    return "".join(source.as_line() for source in sources)


@dataclass(frozen=True)
class RAGResponse:
    """Result of an ask/chat run. Built once, never mutated."""

    prompt: str
    answer: str
    sources: tuple[ContentSource, ...]
    question: str
    followup_questions: tuple[str, ...] | None = None

    @property
    def sources_as_text(self) -> str:
        return sources_as_text(self.sources)

    @staticmethod
    def builder() -> RAGResponseBuilder:
        return RAGResponseBuilder()


class RAGResponseBuilder:
    """Collects the parts of a RAGResponse; ``build()`` is all-or-nothing."""

    _REQUIRED = ("prompt", "answer", "sources", "question")

    def __init__(self):
        self._values: dict = {}

    def prompt(self, prompt: str) -> RAGResponseBuilder:
        self._values["prompt"] = prompt
        return self

    def answer(self, answer: str) -> RAGResponseBuilder:
        self._values["answer"] = answer
        return self

    def sources(self, sources: Iterable[ContentSource]) -> RAGResponseBuilder:
        self._values["sources"] = tuple(sources)
        return self

    def question(self, question: str) -> RAGResponseBuilder:
        self._values["question"] = question
        return self

    def followup_questions(self, questions: Iterable[str] | None) -> RAGResponseBuilder:
        self._values["followup_questions"] = tuple(questions) if questions is not None else None
        return self

    def build(self) -> RAGResponse:
        missing = [name for name in self._REQUIRED if name not in self._values]
        if missing:
            raise ValueError(f"RAGResponse is missing: {', '.join(missing)}")
        return RAGResponse(**self._values)
