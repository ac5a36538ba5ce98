"""Approaches domain - interchangeable retrieval + generation strategies."""

from .options import RAGOptions, RAGOptionsBuilder, RAGType, RetrievalMode
from .response import ContentSource, RAGResponse, RAGResponseBuilder, sources_as_text
from .base import (
    ChatMessage,
    RAGApproach,
    extract_question,
    extract_followup_questions,
    format_transcript,
)
from .templates import PromptTemplate, TemplateNotFoundError, load_template
from .plain import PlainAskApproach, PlainChatApproach
from .memory import VectorMemoryAskApproach, VectorMemoryChatApproach
from .chains import ChainsAskApproach, ChainsChatApproach
from .factory import (
    PLAIN,
    MEMORY,
    CHAINS,
    RAGApproachFactory,
    build_approach_factory,
)

__all__ = [
    # Options
    "RAGOptions",
    "RAGOptionsBuilder",
    "RAGType",
    "RetrievalMode",
    # Response
    "ContentSource",
    "RAGResponse",
    "RAGResponseBuilder",
    "sources_as_text",
    # Contract
    "ChatMessage",
    "RAGApproach",
    "extract_question",
    "extract_followup_questions",
    "format_transcript",
    # Templates
    "PromptTemplate",
    "TemplateNotFoundError",
    "load_template",
    # Variants
    "PlainAskApproach",
    "PlainChatApproach",
    "VectorMemoryAskApproach",
    "VectorMemoryChatApproach",
    "ChainsAskApproach",
    "ChainsChatApproach",
    # Factory
    "PLAIN",
    "MEMORY",
    "CHAINS",
    "RAGApproachFactory",
    "build_approach_factory",
]
