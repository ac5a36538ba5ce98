"""Routes for asking questions, chatting and indexing documents."""

import json
import logging
from contextlib import closing, contextmanager
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from backend.approaches import RAGApproachFactory, RAGOptions, RAGType
from backend.core.errors import (
    CollaboratorError,
    InvalidInputError,
    UnknownApproachError,
    UnsupportedOperationError,
)
from backend.search import SearchIndex
from .schemas import (
    ChatAppRequest,
    ChatResponse,
    DocumentIn,
    IndexResult,
    IndexStatus,
    StreamChunk,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Ask & Chat"])

NDJSON_MEDIA_TYPE = "application/x-ndjson"


def get_factory(request: Request) -> RAGApproachFactory:
    return request.app.state.approach_factory


def get_index(request: Request) -> SearchIndex:
    return request.app.state.search_index


@contextmanager
def approach_errors():
    """Translate approach failures into HTTP errors."""
    try:
        yield
    except (InvalidInputError, UnknownApproachError, UnsupportedOperationError) as e:
        logger.warning("Rejected request: %s", e)
        raise HTTPException(status_code=400, detail=str(e)) from e
    except CollaboratorError as e:
        logger.error("Collaborator failure: %s", e)
        raise HTTPException(status_code=502, detail=str(e)) from e


def _options(body: ChatAppRequest) -> RAGOptions:
    return body.context.overrides.to_options()


def _ndjson(fragments: Iterator[str]) -> Iterator[str]:
    """Serialize answer fragments as NDJSON, closing the model stream when done."""
    with closing(fragments):
        try:
            for fragment in fragments:
                yield StreamChunk.from_fragment(fragment).model_dump_json() + "\n"
        except CollaboratorError as e:
            # Headers are already sent; report the failure in-band
            logger.error("Stream aborted: %s", e)
            yield json.dumps({"error": str(e)}) + "\n"


def _stream_response(body: ChatAppRequest, factory: RAGApproachFactory, rag_type: RAGType) -> StreamingResponse:
    with approach_errors():
        options = _options(body)
        approach = factory.create_approach(body.approach, rag_type, options)
        question = body.last_question() if rag_type is RAGType.ASK else body.conversation()
        fragments = approach.stream(question, options)
    return StreamingResponse(_ndjson(fragments), media_type=NDJSON_MEDIA_TYPE)


@router.post("/ask", response_model=ChatResponse)
def ask(body: ChatAppRequest, factory: RAGApproachFactory = Depends(get_factory)):
    """Answer the last message as a single question."""
    if body.stream:
        return _stream_response(body, factory, RAGType.ASK)

    with approach_errors():
        options = _options(body)
        approach = factory.create_approach(body.approach, RAGType.ASK, options)
        response = approach.run(body.last_question(), options)
    return ChatResponse.from_rag_response(response)


@router.post("/chat", response_model=ChatResponse)
def chat(body: ChatAppRequest, factory: RAGApproachFactory = Depends(get_factory)):
    """Answer the last user message in the context of the whole conversation."""
    if body.stream:
        return _stream_response(body, factory, RAGType.CHAT)

    with approach_errors():
        options = _options(body)
        approach = factory.create_approach(body.approach, RAGType.CHAT, options)
        response = approach.run(body.conversation(), options)
    return ChatResponse.from_rag_response(response)


@router.post("/chat/stream")
def chat_stream(body: ChatAppRequest, factory: RAGApproachFactory = Depends(get_factory)) -> StreamingResponse:
    """Stream the chat answer as NDJSON delta chunks."""
    return _stream_response(body, factory, RAGType.CHAT)


@router.post("/documents", response_model=IndexResult)
def index_document(document: DocumentIn, index: SearchIndex = Depends(get_index)) -> IndexResult:
    """Index a document for retrieval."""
    chunks = index.add_documents([document.model_dump()])
    logger.info("Indexed document [%s] as %d chunks", document.id, chunks)
    return IndexResult(document_id=document.id, chunks=chunks)


@router.get("/status", response_model=IndexStatus)
def status(
    index: SearchIndex = Depends(get_index),
    factory: RAGApproachFactory = Depends(get_factory),
) -> IndexStatus:
    """Get index statistics and the registered approaches."""
    return IndexStatus(
        chunks=len(index),
        vectors_enabled=index.vectors_enabled,
        approaches=[f"{name}/{rag_type.value}" for name, rag_type in factory.registered()],
    )
