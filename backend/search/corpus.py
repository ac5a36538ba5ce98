"""Corpus loader for private documents.

Documents live as plain text or markdown files under a corpus directory:

    data/documents/
        benefits/Benefit_Options.md
        handbook/employee_handbook.txt

The first directory level below the corpus root is the document category,
which retrieval can exclude. The document id is the file path relative to
the corpus root.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".txt", ".md")


@dataclass
class CorpusDocument:
    """A document ready for indexing."""

    document_id: str
    category: str | None
    text: str

    def to_dict(self) -> dict:
        return {"id": self.document_id, "text": self.text, "category": self.category}


class CorpusError(Exception):
    """Raised when the corpus cannot be loaded."""

    pass


def load_document(path: Path, corpus_dir: Path) -> CorpusDocument:
    """Load a single document file.

    Args:
        path: Path to the document file.
        corpus_dir: Corpus root the document id is relative to.

    Raises:
        CorpusError: If the file is missing or cannot be decoded.
    """
    if not path.is_file():
        raise CorpusError(f"Document not found: {path}")

    relative = path.relative_to(corpus_dir)
    category = relative.parts[0] if len(relative.parts) > 1 else None

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise CorpusError(f"Document is not valid UTF-8: {relative.as_posix()}") from e

    return CorpusDocument(document_id=relative.as_posix(), category=category, text=text)


def load_corpus(corpus_dir: Path) -> list[CorpusDocument]:
    """Load every supported document under the corpus directory.

    Hidden files and directories are skipped, as are empty documents.

    Raises:
        CorpusError: If the corpus directory does not exist.
    """
    if not corpus_dir.is_dir():
        raise CorpusError(f"Corpus directory not found: {corpus_dir}")

    documents = []
    for path in sorted(corpus_dir.rglob("*")):
        relative = path.relative_to(corpus_dir)
        if any(part.startswith(".") for part in relative.parts):
            continue
        if not path.is_file() or path.suffix.lower() not in SUPPORTED_SUFFIXES:
            continue

        doc = load_document(path, corpus_dir)
        if not doc.text.strip():
            logger.warning("Skipping empty document %s", doc.document_id)
            continue
        documents.append(doc)

    return documents


def index_corpus(index, corpus_dir: Path) -> int:
    """Index all corpus documents into a SearchIndex.

    Args:
        index: Object with an ``add_documents`` method.
        corpus_dir: Corpus root directory.

    Returns:
        Number of documents indexed.
    """
    docs = load_corpus(corpus_dir)
    if docs:
        index.add_documents([doc.to_dict() for doc in docs])
    logger.info("Indexed %d documents from %s", len(docs), corpus_dir)
    return len(docs)
