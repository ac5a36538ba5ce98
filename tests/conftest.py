"""Pytest fixtures for test suite."""

import pytest
from fastapi.testclient import TestClient

from backend.approaches import RAGApproachFactory, build_approach_factory
from backend.search import RetrievalMode, SearchHit, SearchIndex


# =============================================================================
# Collaborator Fakes
# =============================================================================


class FakeChatClient:
    """Chat client returning scripted replies and recording every call."""

    def __init__(self, replies=None, stream_chunks=None, error=None):
        self.replies = list(replies or [])
        self.default_reply = "Employees accrue fifteen vacation days [handbook/vacation.txt#p0]."
        self.stream_chunks = list(stream_chunks if stream_chunks is not None else ["Hello", " world"])
        self.error = error
        self.calls: list[dict] = []
        self.stream_closed = False

    def complete(self, messages, *, temperature=None, max_tokens=None):
        self.calls.append(
            {"messages": messages, "temperature": temperature, "max_tokens": max_tokens, "stream": False}
        )
        if self.error is not None:
            raise self.error
        return self.replies.pop(0) if self.replies else self.default_reply

    def complete_stream(self, messages, *, temperature=None, max_tokens=None):
        self.calls.append(
            {"messages": messages, "temperature": temperature, "max_tokens": max_tokens, "stream": True}
        )
        if self.error is not None:
            raise self.error
        return self._deltas()

    def _deltas(self):
        try:
            yield from self.stream_chunks
        finally:
            self.stream_closed = True


class RecordingSearch:
    """Search client returning fixed hits and recording every call."""

    def __init__(self, hits=None, error=None):
        self.hits = list(hits if hits is not None else DEFAULT_HITS)
        self.error = error
        self.calls: list[dict] = []

    def search(
        self,
        query,
        top,
        *,
        mode=RetrievalMode.TEXT,
        exclude_category=None,
        semantic_ranker=False,
        semantic_captions=False,
    ):
        self.calls.append(
            {
                "query": query,
                "top": top,
                "mode": mode,
                "exclude_category": exclude_category,
                "semantic_ranker": semantic_ranker,
                "semantic_captions": semantic_captions,
            }
        )
        if self.error is not None:
            raise self.error
        return self.hits[:top]


DEFAULT_HITS = [
    SearchHit(
        id="benefits/plans.md#p0",
        text="Northwind Health Plus covers\nemergency services.",
        score=2.0,
    ),
    SearchHit(
        id="handbook/vacation.txt#p0",
        text="Employees accrue fifteen vacation days each year.",
        score=1.0,
    ),
]

SAMPLE_DOCUMENTS = [
    {
        "id": "benefits/plans.md",
        "category": "benefits",
        "text": "Northwind Health Plus covers emergency services, mental health and prescription drugs.",
    },
    {
        "id": "benefits/dental.md",
        "category": "benefits",
        "text": "Dental coverage includes two cleanings per year. Orthodontics are covered for children.",
    },
    {
        "id": "handbook/vacation.txt",
        "category": "handbook",
        "text": "Employees accrue fifteen vacation days each year. Unused vacation rolls over.",
    },
    {
        "id": "handbook/remote.txt",
        "category": "handbook",
        "text": "Remote work requires manager approval. Laptops are provided by the IT department.",
    },
    {
        "id": "policies/security.md",
        "category": "policies",
        "text": (
            "Passwords must be rotated every ninety days. "
            "Report phishing emails to the security team. "
            "Badges must be worn inside the building."
        ),
    },
]


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def chat() -> FakeChatClient:
    """Chat client with the default scripted reply."""
    return FakeChatClient()


@pytest.fixture
def search() -> RecordingSearch:
    """Search client returning two fixed hits."""
    return RecordingSearch()


@pytest.fixture
def search_index() -> SearchIndex:
    """Search index with sample documents (BM25 only)."""
    index = SearchIndex(use_vectors=False)
    index.add_documents(SAMPLE_DOCUMENTS)
    return index


@pytest.fixture
def factory(search_index: SearchIndex, chat: FakeChatClient) -> RAGApproachFactory:
    """Factory with the built-in approaches over the sample index."""
    return build_approach_factory(search_index, chat)


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def client(search_index: SearchIndex, factory: RAGApproachFactory) -> TestClient:
    """Test client with collaborators set on app state; lifespan is not run."""
    from backend.main import create_app

    app = create_app()
    app.state.search_index = search_index
    app.state.approach_factory = factory
    return TestClient(app)


# =============================================================================
# Fake Builders
# =============================================================================


@pytest.fixture
def make_chat():
    """Build a FakeChatClient with custom replies, stream chunks or error."""
    return FakeChatClient


@pytest.fixture
def make_search():
    """Build a RecordingSearch with custom hits or error."""
    return RecordingSearch
