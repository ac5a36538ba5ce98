"""Per-request options controlling retrieval and generation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from backend.core.errors import InvalidInputError
from backend.search.client import RetrievalMode

DEFAULT_TOP = 3


class RAGType(str, Enum):
    """Single-question ask vs multi-turn chat."""

    ASK = "ask"
    CHAT = "chat"


def _blank_to_none(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value


@dataclass(frozen=True)
class RAGOptions:
    """Immutable options for one ask/chat run.

    Only ``exclude_category`` and ``prompt_template`` may be None; every other
    field has a usable default.
    """

    retrieval_mode: RetrievalMode = RetrievalMode.TEXT
    semantic_kernel_mode: bool = False
    semantic_ranker: bool = False
    semantic_captions: bool = False
    exclude_category: str | None = None
    prompt_template: str | None = None
    top: int = DEFAULT_TOP
    suggest_followup_questions: bool = False

    def __post_init__(self):
        try:
            mode = RetrievalMode(self.retrieval_mode)
        except ValueError as e:
            raise InvalidInputError(f"Unknown retrieval mode: {self.retrieval_mode}") from e
        if isinstance(self.top, bool) or not isinstance(self.top, int) or self.top < 1:
            raise InvalidInputError(f"top must be a positive integer, got {self.top!r}")

        object.__setattr__(self, "retrieval_mode", mode)
        object.__setattr__(self, "exclude_category", _blank_to_none(self.exclude_category))
        object.__setattr__(self, "prompt_template", _blank_to_none(self.prompt_template))

    @staticmethod
    def builder() -> RAGOptionsBuilder:
        return RAGOptionsBuilder()


class RAGOptionsBuilder:
    """Fluent builder for RAGOptions.

    Usage:
        options = (
            RAGOptions.builder()
            .retrieval_mode("hybrid")
            .semantic_ranker(True)
            .top(5)
            .build()
        )
    """

    def __init__(self):
        self._values: dict = {}

    def retrieval_mode(self, mode: RetrievalMode | str | None) -> RAGOptionsBuilder:
        if mode is not None:
            self._values["retrieval_mode"] = mode
        return self

    def semantic_kernel_mode(self, enabled: bool | None) -> RAGOptionsBuilder:
        return self._flag("semantic_kernel_mode", enabled)

    def semantic_ranker(self, enabled: bool | None) -> RAGOptionsBuilder:
        return self._flag("semantic_ranker", enabled)

    def semantic_captions(self, enabled: bool | None) -> RAGOptionsBuilder:
        return self._flag("semantic_captions", enabled)

    def suggest_followup_questions(self, enabled: bool | None) -> RAGOptionsBuilder:
        return self._flag("suggest_followup_questions", enabled)

    def exclude_category(self, category: str | None) -> RAGOptionsBuilder:
        self._values["exclude_category"] = category
        return self

    def prompt_template(self, template: str | None) -> RAGOptionsBuilder:
        self._values["prompt_template"] = template
        return self

    def top(self, top: int | None) -> RAGOptionsBuilder:
        if top is not None:
            self._values["top"] = top
        return self

    def _flag(self, name: str, enabled: bool | None) -> RAGOptionsBuilder:
        # None keeps the default (an absent override)
        if enabled is not None:
            self._values[name] = bool(enabled)
        return self

    def build(self) -> RAGOptions:
        return RAGOptions(**self._values)
