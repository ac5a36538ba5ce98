"""Direct-call approaches: search index and chat model called straight from Python."""

from __future__ import annotations

import logging
from typing import Iterator

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
from .response import ContentSource, RAGResponse, sources_as_text
from .templates import load_template

logger = logging.getLogger(__name__)

QUERY_TEMPERATURE = 0.0
QUERY_MAX_TOKENS = 32
NO_QUERY = "0"
# Keyword extraction never asks for follow-up questions
_QUERY_OPTIONS = RAGOptions()


class PlainAskApproach(RAGApproach):
    """Retrieve-then-read for a single question.

    Searches with the question as typed, then asks the model to answer from
    the retrieved sources.
    """

    name = "plain"
    rag_type = RAGType.ASK
    template_name = "ask_answer"

    def __init__(self, search: SearchClient, chat: ChatClient):
        self._search_client = search
        self._chat = chat

    @log_latency("approach.plain.ask")
    def run(self, question_or_conversation: QuestionOrConversation, options: RAGOptions) -> RAGResponse:
        return self._answer(question_or_conversation, options)

    def stream(self, question_or_conversation: QuestionOrConversation, options: RAGOptions) -> Iterator[str]:
        _, _, messages = self._prepare(question_or_conversation, options)
        return self._chat.complete_stream(messages)

    def _answer(self, question_or_conversation: QuestionOrConversation, options: RAGOptions) -> RAGResponse:
        question, sources, messages = self._prepare(question_or_conversation, options)
        content = self._chat.complete(messages)
        return self._assemble(question, messages, content, sources, options)

    def _search_query(self, question: str, question_or_conversation: QuestionOrConversation) -> str:
        return question

    def _prepare(
        self,
        question_or_conversation: QuestionOrConversation,
        options: RAGOptions,
    ) -> tuple[str, list[ContentSource], list[dict[str, str]]]:
        """Extract, retrieve and render the answer prompt."""
        question = extract_question(question_or_conversation)
        query = self._search_query(question, question_or_conversation)
        sources = self._search(self._search_client, query, options)

        variables = template_variables(question, sources_as_text(sources), question_or_conversation, options)
        messages = load_template(self.template_name).render_messages(
            variables,
            system_override=options.prompt_template,
            history=conversation_history(question_or_conversation),
        )
        return question, sources, messages


class PlainChatApproach(PlainAskApproach):
    """Read-retrieve-read for a conversation.

    A first completion turns the whole conversation into a keyword search
    query; retrieval uses that query instead of the raw last question.
    """

    rag_type = RAGType.CHAT
    template_name = "chat_answer"
    query_template_name = "chat_query"

    @log_latency("approach.plain.chat")
    def run(self, question_or_conversation: QuestionOrConversation, options: RAGOptions) -> RAGResponse:
        return self._answer(question_or_conversation, options)

    def _search_query(self, question: str, question_or_conversation: QuestionOrConversation) -> str:
        variables = template_variables(question, "", question_or_conversation, _QUERY_OPTIONS)
        messages = load_template(self.query_template_name).render_messages(variables)
        query = self._chat.complete(
            messages,
            temperature=QUERY_TEMPERATURE,
            max_tokens=QUERY_MAX_TOKENS,
        ).strip().strip('"')

        if not query or query == NO_QUERY:
            logger.info("No search query could be generated; searching with the question")
            return question
        return query
