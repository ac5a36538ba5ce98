"""Search domain - document indexing and retrieval."""

from .client import RetrievalMode, SearchHit, SearchClient
from .bm25 import BM25Document, BM25Index, tokenize
from .chunker import Chunk, chunk_text, chunk_id
from .index import SearchIndex
from .memory import VectorMemory
from .corpus import (
    CorpusDocument,
    CorpusError,
    load_document,
    load_corpus,
    index_corpus,
)

__all__ = [
    # Contract
    "RetrievalMode",
    "SearchHit",
    "SearchClient",
    # BM25
    "BM25Document",
    "BM25Index",
    "tokenize",
    # Chunking
    "Chunk",
    "chunk_text",
    "chunk_id",
    # Index
    "SearchIndex",
    "VectorMemory",
    # Corpus
    "CorpusDocument",
    "CorpusError",
    "load_document",
    "load_corpus",
    "index_corpus",
]
