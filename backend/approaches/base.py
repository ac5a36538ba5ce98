"""Approach contract and the orchestration steps shared by every variant.

An approach answers a question (ask) or a conversation (chat) in five steps:

1. extract the active question
2. retrieve candidates from the search collaborator
3. augment: turn hits into ContentSource citations and a flat sources block
4. generate: render a prompt template and call the model
5. assemble the RAGResponse
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from contextlib import closing
from dataclasses import dataclass
from typing import Iterator, Protocol, Sequence, Union

from backend.core.errors import InvalidInputError, UnsupportedOperationError
from backend.search.client import SearchClient, SearchHit
from .options import RAGOptions, RAGType
from .response import ContentSource, RAGResponse

logger = logging.getLogger(__name__)

FOLLOW_UP_QUESTIONS_PROMPT = (
    "Generate three very brief follow-up questions that the user would likely ask next. "
    "Enclose each follow-up question in double angle brackets, for example:\n"
    "<<Are there exclusions for prescriptions?>>\n"
    "<<Which pharmacies can be ordered from?>>\n"
    "Do not repeat questions that have already been asked. "
    'Make sure the last question ends with ">>".'
)

_FOLLOWUP_PATTERN = re.compile(r"<<([^<>]+)>>")


@dataclass(frozen=True)
class ChatMessage:
    """One turn of a conversation."""

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


Conversation = Sequence[ChatMessage]
QuestionOrConversation = Union[str, Conversation]


class TextSink(Protocol):
    """Where streamed answer text is written."""

    def write(self, text: str) -> object:
        ...


# =============================================================================
# Orchestration helpers
# =============================================================================


def extract_question(question_or_conversation: QuestionOrConversation) -> str:
    """Return the active question.

    A plain string is the question itself; for a conversation it is the
    content of the last message authored by the user.

    Raises:
        InvalidInputError: If no non-blank question can be found.
    """
    if isinstance(question_or_conversation, str):
        question = question_or_conversation
    else:
        question = next(
            (m.content for m in reversed(question_or_conversation) if m.role == "user"),
            None,
        )

    if question is None or not question.strip():
        raise InvalidInputError("question cannot be blank")
    return question


def conversation_history(question_or_conversation: QuestionOrConversation) -> list[dict[str, str]]:
    """Turns before the last user message, as chat API messages."""
    if isinstance(question_or_conversation, str):
        return []

    messages = list(question_or_conversation)
    for i in range(len(messages) - 1, -1, -1):
        if messages[i].role == "user":
            return [m.to_dict() for m in messages[:i] if m.role in ("user", "assistant")]
    return []


def format_transcript(messages: Sequence[ChatMessage | dict[str, str]]) -> str:
    """Render messages as a role-tagged (ChatML style) transcript."""
    parts = []
    for message in messages:
        if isinstance(message, ChatMessage):
            message = message.to_dict()
        parts.append(f"<|im_start|>{message['role']}\n{message['content']}\n<|im_end|>\n")
    return "".join(parts)


def to_content_sources(hits: Sequence[SearchHit]) -> list[ContentSource]:
    """Convert search hits to citations, preserving rank order."""
    return [ContentSource.from_hit(hit) for hit in hits]


def extract_followup_questions(content: str) -> tuple[str, list[str]]:
    """Split generated text into the answer body and follow-up questions.

    Follow-up questions are the ``<<...>>`` segments; the answer is the
    text before the first of them.
    """
    questions = [q.strip() for q in _FOLLOWUP_PATTERN.findall(content) if q.strip()]
    if not questions:
        return content, []
    return content.split("<<", 1)[0].strip(), questions


def template_variables(
    question: str,
    sources_text: str,
    question_or_conversation: QuestionOrConversation,
    options: RAGOptions,
) -> dict[str, str]:
    """Values substituted into every prompt template."""
    if isinstance(question_or_conversation, str):
        conversation = format_transcript([ChatMessage("user", question)])
    else:
        conversation = format_transcript(question_or_conversation)

    return {
        "question": question,
        "sources": sources_text,
        "conversation": conversation,
        "follow_up_questions_prompt": (
            FOLLOW_UP_QUESTIONS_PROMPT if options.suggest_followup_questions else ""
        ),
    }


# =============================================================================
# Approach contract
# =============================================================================


class RAGApproach(ABC):
    """A retrieval + generation strategy.

    Subclasses own their collaborators and implement ``run``. Variants that
    can stream override ``stream``; the rest reject streaming up front.
    """

    name: str = ""
    rag_type: RAGType = RAGType.ASK

    @abstractmethod
    def run(self, question_or_conversation: QuestionOrConversation, options: RAGOptions) -> RAGResponse:
        """Answer and return a fully populated response."""

    def stream(self, question_or_conversation: QuestionOrConversation, options: RAGOptions) -> Iterator[str]:
        """Retrieve eagerly, then return an iterator over answer fragments.

        Raises:
            UnsupportedOperationError: If this variant cannot stream.
        """
        raise UnsupportedOperationError(
            f"Streaming is not supported for approach [{self.name}] and rag type [{self.rag_type.value}]"
        )

    def run_streaming(
        self,
        question_or_conversation: QuestionOrConversation,
        options: RAGOptions,
        sink: TextSink,
    ) -> None:
        """Write the answer to ``sink`` as it is generated."""
        fragments = self.stream(question_or_conversation, options)
        with closing(fragments):
            for fragment in fragments:
                sink.write(fragment)

    def _search(self, search: SearchClient, query: str, options: RAGOptions) -> list[ContentSource]:
        """Retrieve with the options forwarded unchanged."""
        hits = search.search(
            query,
            options.top,
            mode=options.retrieval_mode,
            exclude_category=options.exclude_category,
            semantic_ranker=options.semantic_ranker,
            semantic_captions=options.semantic_captions,
        )
        sources = to_content_sources(hits)
        logger.info(
            "Total %d sources found by approach [%s] for search query [%s]",
            len(sources),
            self.name,
            query,
        )
        return sources

    def _assemble(
        self,
        question: str,
        prompt_messages: Sequence[dict[str, str]],
        content: str,
        sources: Sequence[ContentSource],
        options: RAGOptions,
    ) -> RAGResponse:
        """Build the response, parsing follow-up questions when requested."""
        builder = (
            RAGResponse.builder()
            .prompt(format_transcript(prompt_messages))
            .sources(sources)
            .question(question)
        )
        if options.suggest_followup_questions:
            answer, followups = extract_followup_questions(content)
            builder.answer(answer).followup_questions(followups)
        else:
            builder.answer(content)
        return builder.build()
