"""Chain-orchestrated approaches built from LangChain runnables.

The run is expressed as a pipeline of runnables over a dict of state:

    retrieve -> augment -> render prompt -> generate

Each step adds keys to the state; the final state holds everything the
response needs. Only selected when the request asks for kernel mode.
"""

from __future__ import annotations

from typing import Any

from langchain_core.prompt_values import PromptValue
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from langchain_core.runnables import Runnable, RunnableLambda, RunnablePassthrough

from backend.core.errors import InvalidInputError
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

TEMPLATE_VARIABLES = frozenset({"question", "sources", "conversation", "follow_up_questions_prompt"})

# LangChain message types -> chat API roles
_ROLES = {"system": "system", "human": "user", "ai": "assistant"}
_LANGCHAIN_TYPES = {"user": "human", "assistant": "ai"}


def to_chat_messages(prompt_value: PromptValue) -> list[dict[str, str]]:
    """Convert a rendered LangChain prompt to chat API messages."""
    return [
        {"role": _ROLES.get(message.type, message.type), "content": message.content}
        for message in prompt_value.to_messages()
    ]


class ChainsAskApproach(RAGApproach):
    """Retrieve-then-read expressed as a runnable chain."""

    name = "chains"
    rag_type = RAGType.ASK
    template_name = "ask_answer"

    def __init__(self, search: SearchClient, chat: ChatClient):
        self._search_client = search
        self._chat = chat

    @log_latency("approach.chains.ask")
    def run(self, question_or_conversation: QuestionOrConversation, options: RAGOptions) -> RAGResponse:
        return self._answer(question_or_conversation, options)

    def _answer(self, question_or_conversation: QuestionOrConversation, options: RAGOptions) -> RAGResponse:
        question = extract_question(question_or_conversation)
        history = [
            (_LANGCHAIN_TYPES[m["role"]], m["content"])
            for m in conversation_history(question_or_conversation)
        ]

        variables = template_variables(question, "", question_or_conversation, options)
        state = self.build_chain(options).invoke({**variables, "history": history})

        return self._assemble(question, state["messages"], state["answer"], state["content_sources"], options)

    def build_prompt(self, options: RAGOptions) -> ChatPromptTemplate:
        """Chat prompt for this approach, with the system override applied."""
        template = load_template(self.template_name)
        messages: list[Any] = [("system", (options.prompt_template or template.system).strip())]
        for user, assistant in template.examples:
            messages.append(("human", user.strip()))
            messages.append(("ai", assistant.strip()))
        messages.append(MessagesPlaceholder("history", optional=True))
        messages.append(("human", template.user.strip()))

        try:
            prompt = ChatPromptTemplate.from_messages(messages)
        except ValueError as e:
            raise InvalidInputError(f"Malformed prompt template: {e}") from e

        unknown = set(prompt.input_variables) - TEMPLATE_VARIABLES - {"history"}
        if unknown:
            raise InvalidInputError(f"Unknown prompt template variables: {', '.join(sorted(unknown))}")
        return prompt

    def build_chain(self, options: RAGOptions) -> Runnable:
        """Assemble retrieve -> augment -> prompt -> generate for one run."""
        prompt = self.build_prompt(options)

        retrieve = RunnableLambda(
            lambda state: self._search(self._search_client, state["question"], options)
        )
        augment = RunnableLambda(lambda state: sources_as_text(state["content_sources"]))
        generate = RunnableLambda(lambda state: self._chat.complete(state["messages"]))

        return (
            RunnablePassthrough.assign(content_sources=retrieve)
            .assign(sources=augment)
            .assign(messages=prompt | RunnableLambda(to_chat_messages))
            .assign(answer=generate)
        )


class ChainsChatApproach(ChainsAskApproach):
    """Chain-orchestrated answer for a conversation; retrieval uses the last question."""

    rag_type = RAGType.CHAT
    template_name = "chat_answer"

    @log_latency("approach.chains.chat")
    def run(self, question_or_conversation: QuestionOrConversation, options: RAGOptions) -> RAGResponse:
        return self._answer(question_or_conversation, options)
