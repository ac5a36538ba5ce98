"""Pydantic models for the ask/chat API requests and responses."""

from typing import Literal

from pydantic import BaseModel, Field

from backend.approaches import ChatMessage, RAGOptions, RAGResponse
from backend.search import RetrievalMode


class ChatMessageModel(BaseModel):
    """One conversation turn on the wire."""

    role: Literal["user", "assistant", "system"] = "user"
    content: str

    def to_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)


class RequestOverrides(BaseModel):
    """Per-request retrieval and generation settings."""

    retrieval_mode: RetrievalMode = RetrievalMode.TEXT
    semantic_kernel_mode: bool = False
    semantic_ranker: bool = False
    semantic_captions: bool = False
    exclude_category: str | None = None
    prompt_template: str | None = None
    top: int = Field(3, ge=1, description="Number of sources to retrieve")
    suggest_followup_questions: bool = False

    def to_options(self) -> RAGOptions:
        return (
            RAGOptions.builder()
            .retrieval_mode(self.retrieval_mode)
            .semantic_kernel_mode(self.semantic_kernel_mode)
            .semantic_ranker(self.semantic_ranker)
            .semantic_captions(self.semantic_captions)
            .exclude_category(self.exclude_category)
            .prompt_template(self.prompt_template)
            .top(self.top)
            .suggest_followup_questions(self.suggest_followup_questions)
            .build()
        )


class RequestContext(BaseModel):
    overrides: RequestOverrides = Field(default_factory=RequestOverrides)


class ChatAppRequest(BaseModel):
    """Request for both ask and chat endpoints."""

    messages: list[ChatMessageModel] = Field(..., min_length=1)
    approach: str = Field("plain", description="Approach name: plain, memory or chains")
    context: RequestContext = Field(default_factory=RequestContext)
    stream: bool = False

    def last_question(self) -> str:
        return self.messages[-1].content

    def conversation(self) -> list[ChatMessage]:
        return [m.to_message() for m in self.messages]


class ResponseMessage(BaseModel):
    role: str = "assistant"
    content: str


class ResponseContext(BaseModel):
    """Supporting material for an answer."""

    data_points: list[str] = Field(default_factory=list, description="Sources as 'id: text' lines")
    thoughts: str = Field("", description="Prompt transcript sent to the model")
    followup_questions: list[str] | None = None


class ResponseChoice(BaseModel):
    index: int = 0
    message: ResponseMessage
    context: ResponseContext


class ChatResponse(BaseModel):
    """Response for ask and chat."""

    choices: list[ResponseChoice]

    @classmethod
    def from_rag_response(cls, response: RAGResponse) -> "ChatResponse":
        followups = response.followup_questions
        return cls(
            choices=[
                ResponseChoice(
                    message=ResponseMessage(content=response.answer),
                    context=ResponseContext(
                        data_points=[f"{s.id}: {s.text}" for s in response.sources],
                        thoughts=response.prompt,
                        followup_questions=list(followups) if followups is not None else None,
                    ),
                )
            ]
        )


class ResponseDelta(BaseModel):
    role: str = "assistant"
    content: str


class StreamChunk(BaseModel):
    """One NDJSON line of a streamed answer."""

    choices: list[dict]

    @classmethod
    def from_fragment(cls, fragment: str) -> "StreamChunk":
        return cls(choices=[{"index": 0, "delta": ResponseDelta(content=fragment).model_dump()}])


class DocumentIn(BaseModel):
    """Document to index."""

    id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    category: str | None = None


class IndexResult(BaseModel):
    document_id: str
    chunks: int


class IndexStatus(BaseModel):
    chunks: int
    vectors_enabled: bool
    approaches: list[str]
