"""In-process search index with text, vector and hybrid retrieval."""

import logging
import re

from backend.core.config import get_settings, ml_available
from backend.core.errors import SearchError
from .bm25 import BM25Document, BM25Index, tokenize
from .chunker import Chunk, chunk_text
from .client import RetrievalMode, SearchHit

logger = logging.getLogger(__name__)

# Reciprocal rank fusion constant for hybrid retrieval
RRF_K = 60
# Candidate pool multiplier when the re-ranking pass is requested
RERANK_POOL_FACTOR = 3
MAX_CAPTION_SENTENCES = 2

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


class SearchIndex:
    """Search index combining BM25 and optional vector search."""

    def __init__(self, use_vectors: bool | None = None, embedding_model: str | None = None):
        """Initialize the index.

        Args:
            use_vectors: Whether to use vector search. If None, auto-detect.
            embedding_model: sentence-transformers model name for vectors.
        """
        self._bm25 = BM25Index()
        self._vector_store = None
        self._embedder = None
        self._collection = None

        settings = get_settings()
        if use_vectors is None:
            use_vectors = settings.enable_vector_search and ml_available()

        if use_vectors:
            self._init_vector_store(embedding_model or settings.embedding_model)

    def _init_vector_store(self, model_name: str) -> None:
        """Initialize vector store if ML dependencies available."""
        try:
            import chromadb
            from sentence_transformers import SentenceTransformer
        except ImportError:
            logger.warning("Vector search requested but ML extras are not installed")
            return

        self._embedder = SentenceTransformer(model_name)
        self._vector_store = chromadb.Client()
        self._collection = self._vector_store.get_or_create_collection(
            name="documents",
            metadata={"hnsw:space": "cosine"},
        )

    @property
    def vectors_enabled(self) -> bool:
        return self._collection is not None

    # -------------------------------------------------------------------------
    # Indexing
    # -------------------------------------------------------------------------

    def add_chunks(self, chunks: list[Chunk]) -> None:
        """Add chunks to the index.

        Args:
            chunks: List of Chunk objects.
        """
        if not chunks:
            return

        self._bm25.add_documents(
            [
                {
                    "id": chunk.id,
                    "text": chunk.text,
                    "metadata": {
                        "document_id": chunk.document_id,
                        "chunk_index": chunk.chunk_index,
                        **chunk.metadata,
                    },
                }
                for chunk in chunks
            ]
        )

        if self._collection is not None and self._embedder is not None:
            texts = [chunk.text for chunk in chunks]
            embeddings = self._embedder.encode(texts).tolist()

            self._collection.add(
                ids=[chunk.id for chunk in chunks],
                embeddings=embeddings,
                documents=texts,
                metadatas=[
                    {
                        "document_id": chunk.document_id,
                        "chunk_index": chunk.chunk_index,
                        "category": chunk.metadata.get("category") or "",
                    }
                    for chunk in chunks
                ],
            )

    def add_documents(
        self,
        documents: list[dict],
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
    ) -> int:
        """Add raw documents (chunked internally).

        Args:
            documents: List of dicts with 'id', 'text', and optional
                'category' / 'metadata'.

        Returns:
            Number of chunks added.
        """
        settings = get_settings()
        all_chunks = []
        for doc in documents:
            metadata = dict(doc.get("metadata", {}))
            if doc.get("category"):
                metadata["category"] = doc["category"]
            all_chunks.extend(
                chunk_text(
                    text=doc["text"],
                    document_id=doc["id"],
                    chunk_size=chunk_size or settings.chunk_size,
                    chunk_overlap=chunk_overlap if chunk_overlap is not None else settings.chunk_overlap,
                    metadata=metadata,
                )
            )

        self.add_chunks(all_chunks)
        return len(all_chunks)

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

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
        """Search for relevant chunks.

        Args:
            query: Search query.
            top: Maximum number of hits to return.
            mode: Text (BM25), vector, or hybrid (rank fusion of both).
            exclude_category: Category whose chunks are filtered out.
            semantic_ranker: Re-rank a wider candidate pool by query coverage.
            semantic_captions: Return the best matching sentences instead of
                the full chunk text.

        Returns:
            List of SearchHit, best first.
        """
        if top < 1:
            raise SearchError(f"top must be a positive integer, got {top}")
        try:
            mode = RetrievalMode(mode)
        except ValueError as e:
            raise SearchError(f"Unsupported retrieval mode: {mode}") from e

        pool = top * RERANK_POOL_FACTOR if semantic_ranker else top

        if mode is RetrievalMode.TEXT:
            candidates = self._search_bm25(query, pool, exclude_category)
        elif mode is RetrievalMode.VECTOR:
            candidates = self._search_vector(query, pool, exclude_category)
        else:
            candidates = self._fuse(
                self._search_bm25(query, pool, exclude_category),
                self._search_vector(query, pool, exclude_category),
            )

        if semantic_ranker:
            candidates = self._rerank(query, candidates)

        hits = candidates[:top]
        if semantic_captions:
            hits = [SearchHit(id=h.id, text=self._caption(query, h.text), score=h.score) for h in hits]

        logger.debug("Search mode=%s returned %d hits for query [%s]", mode.value, len(hits), query)
        return hits

    def _search_bm25(self, query: str, top: int, exclude_category: str | None) -> list[SearchHit]:
        """Search using BM25."""

        def allowed(doc: BM25Document) -> bool:
            return exclude_category is None or doc.metadata.get("category") != exclude_category

        return [
            SearchHit(id=doc.id, text=doc.text, score=score)
            for doc, score in self._bm25.search(query, top, where=allowed)
        ]

    def _search_vector(self, query: str, top: int, exclude_category: str | None) -> list[SearchHit]:
        """Search using vector similarity."""
        if self._collection is None or self._embedder is None:
            return []

        query_embedding = self._embedder.encode([query]).tolist()
        where = {"category": {"$ne": exclude_category}} if exclude_category else None

        try:
            results = self._collection.query(
                query_embeddings=query_embedding,
                n_results=top,
                where=where,
            )
        except Exception as e:
            raise SearchError(f"Vector query failed: {e}") from e

        hits = []
        if results["ids"] and results["ids"][0]:
            for i, hit_id in enumerate(results["ids"][0]):
                # ChromaDB returns distances, convert to similarity score
                distance = results["distances"][0][i] if results["distances"] else 0
                hits.append(
                    SearchHit(
                        id=hit_id,
                        text=results["documents"][0][i] if results["documents"] else "",
                        score=1.0 / (1.0 + distance),
                    )
                )
        return hits

    def _fuse(self, *ranked_lists: list[SearchHit]) -> list[SearchHit]:
        """Combine ranked lists with reciprocal rank fusion."""
        scores: dict[str, float] = {}
        texts: dict[str, str] = {}
        for ranked in ranked_lists:
            for rank, hit in enumerate(ranked, 1):
                scores[hit.id] = scores.get(hit.id, 0.0) + 1.0 / (RRF_K + rank)
                texts.setdefault(hit.id, hit.text)

        ordered = sorted(scores.items(), key=lambda x: x[1], reverse=True)
        return [SearchHit(id=hit_id, text=texts[hit_id], score=score) for hit_id, score in ordered]

    def _rerank(self, query: str, candidates: list[SearchHit]) -> list[SearchHit]:
        """Re-rank candidates by the share of query terms they contain."""
        query_tokens = set(tokenize(query))
        if not query_tokens:
            return candidates

        def coverage(hit: SearchHit) -> float:
            return len(query_tokens & set(tokenize(hit.text))) / len(query_tokens)

        # sorted() is stable, so first-stage order breaks ties
        return sorted(candidates, key=coverage, reverse=True)

    def _caption(self, query: str, text: str) -> str:
        """Extract the sentences that best match the query."""
        sentences = [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]
        if len(sentences) <= MAX_CAPTION_SENTENCES:
            return text

        query_tokens = set(tokenize(query))
        scored = [
            (len(query_tokens & set(tokenize(sentence))), i)
            for i, sentence in enumerate(sentences)
        ]
        best = sorted(scored, key=lambda x: (-x[0], x[1]))[:MAX_CAPTION_SENTENCES]
        return " ".join(sentences[i] for _, i in sorted(best, key=lambda x: x[1]))

    def __len__(self) -> int:
        return len(self._bm25)
