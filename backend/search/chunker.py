"""Document chunking utilities."""

from dataclasses import dataclass


@dataclass
class Chunk:
    """A chunk of text from a document."""

    id: str
    text: str
    document_id: str
    chunk_index: int
    start_char: int
    end_char: int
    metadata: dict


def chunk_id(document_id: str, chunk_index: int) -> str:
    """Citation id of a chunk, e.g. ``benefits.pdf#p2``."""
    return f"{document_id}#p{chunk_index}"


def chunk_text(
    text: str,
    document_id: str,
    chunk_size: int = 1000,
    chunk_overlap: int = 100,
    metadata: dict | None = None,
) -> list[Chunk]:
    """Split text into overlapping chunks.

    Args:
        text: The text to chunk.
        document_id: Identifier for the source document.
        chunk_size: Target size of each chunk in characters.
        chunk_overlap: Overlap between chunks in characters.
        metadata: Additional metadata to attach to each chunk.

    Returns:
        List of Chunk objects.
    """
    if not text:
        return []

    metadata = metadata or {}
    chunks: list[Chunk] = []
    start = 0
    chunk_index = 0

    while start < len(text):
        end = start + chunk_size

        # Prefer breaking at a sentence boundary in the second half of the window
        if end < len(text):
            for punct in [". ", ".\n", "? ", "?\n", "! ", "!\n"]:
                last_punct = text.rfind(punct, start, end)
                if last_punct > start + chunk_size // 2:
                    end = last_punct + 1
                    break

        end = min(end, len(text))

        piece = text[start:end].strip()
        if piece:
            chunks.append(
                Chunk(
                    id=chunk_id(document_id, chunk_index),
                    text=piece,
                    document_id=document_id,
                    chunk_index=chunk_index,
                    start_char=start,
                    end_char=end,
                    metadata=metadata.copy(),
                )
            )
            chunk_index += 1

        if end >= len(text):
            break

        # Move start position with overlap, always making progress
        next_start = end - chunk_overlap
        start = next_start if next_start > start else end

    return chunks
