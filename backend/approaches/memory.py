"""Vector-memory approaches: answers from an embeddings memory store, no streaming."""

from __future__ import annotations

from backend.core.logging import log_latency
from backend.generation.client import ChatClient
from backend.search.client import SearchClient
from .base import (
    QuestionOrConversation,
    RAGApproach,
    conversation_history,
    extract_question,
    template_variables,
)
from .options import RAGOptions, RAGType
from .response import RAGResponse, sources_as_text
from .templates import load_template


class VectorMemoryAskApproach(RAGApproach):
    """Answer from the nearest chunks in an embeddings memory store.

    ``memory`` is a vector-backed search client (see ``VectorMemory``); the
    options are forwarded to it unchanged.
    """

    name = "memory"
    rag_type = RAGType.ASK
    template_name = "ask_answer"

    def __init__(self, memory: SearchClient, chat: ChatClient):
        self._memory = memory
        self._chat = chat

    @log_latency("approach.memory.ask")
    def run(self, question_or_conversation: QuestionOrConversation, options: RAGOptions) -> RAGResponse:
        return self._answer(question_or_conversation, options)

    def _answer(self, question_or_conversation: QuestionOrConversation, options: RAGOptions) -> RAGResponse:
        question = extract_question(question_or_conversation)
        sources = self._search(self._memory, question, options)

        variables = template_variables(question, sources_as_text(sources), question_or_conversation, options)
        messages = load_template(self.template_name).render_messages(
            variables,
            system_override=options.prompt_template,
            history=conversation_history(question_or_conversation),
        )
        content = self._chat.complete(messages)
        return self._assemble(question, messages, content, sources, options)


class VectorMemoryChatApproach(VectorMemoryAskApproach):
    """Vector-memory answer for a conversation; retrieval uses the last question."""

    rag_type = RAGType.CHAT
    template_name = "chat_answer"

    @log_latency("approach.memory.chat")
    def run(self, question_or_conversation: QuestionOrConversation, options: RAGOptions) -> RAGResponse:
        return self._answer(question_or_conversation, options)
