"""Tests for the direct-call and vector-memory approaches."""

import io

import pytest

from backend.approaches import (
    ChatMessage,
    ContentSource,
    PlainAskApproach,
    PlainChatApproach,
    RAGOptions,
    RetrievalMode,
    VectorMemoryAskApproach,
    VectorMemoryChatApproach,
)
from backend.core.errors import (
    GenerationError,
    InvalidInputError,
    SearchError,
    UnsupportedOperationError,
)
from backend.search import SearchHit


CONVERSATION = [
    ChatMessage("user", "Does my plan cover emergency services?"),
    ChatMessage("assistant", "Yes [benefits/plans.md#p0]."),
    ChatMessage("user", "And how many vacation days do I get?"),
]


# =============================================================================
# Plain ask
# =============================================================================


class TestPlainAsk:
    def test_run(self, search, chat):
        approach = PlainAskApproach(search, chat)
        response = approach.run("What is covered?", RAGOptions())

        assert response.question == "What is covered?"
        assert response.answer == chat.default_reply
        assert response.sources == (
            ContentSource("benefits/plans.md#p0", "Northwind Health Plus covers\nemergency services."),
            ContentSource("handbook/vacation.txt#p0", "Employees accrue fifteen vacation days each year."),
        )
        assert response.followup_questions is None

    def test_options_forwarded_to_search(self, search, chat):
        options = RAGOptions(
            retrieval_mode=RetrievalMode.HYBRID,
            semantic_ranker=True,
            semantic_captions=True,
            exclude_category="handbook",
            top=1,
        )
        PlainAskApproach(search, chat).run("What is covered?", options)

        assert search.calls == [
            {
                "query": "What is covered?",
                "top": 1,
                "mode": RetrievalMode.HYBRID,
                "exclude_category": "handbook",
                "semantic_ranker": True,
                "semantic_captions": True,
            }
        ]

    def test_prompt_contains_sources(self, search, chat):
        response = PlainAskApproach(search, chat).run("What is covered?", RAGOptions())

        user_message = chat.calls[0]["messages"][-1]["content"]
        assert "benefits/plans.md#p0: Northwind Health Plus coversemergency services." in user_message
        assert "What is covered?" in user_message
        assert response.prompt.startswith("<|im_start|>system\n")
        assert "benefits/plans.md#p0" in response.prompt

    def test_three_sources_in_rank_order(self, make_search, chat):
        search = make_search(
            hits=[
                SearchHit(id="doc1#p2", text="In-network deductible is\n$500.", score=3.0),
                SearchHit(id="doc3#p1", text="The downtown clinic\r\nis in-network.", score=2.0),
                SearchHit(id="doc3#p5", text="Open on weekdays.", score=1.0),
            ]
        )

        response = PlainAskApproach(search, chat).run("What is the deductible?", RAGOptions())

        assert [s.id for s in response.sources] == ["doc1#p2", "doc3#p1", "doc3#p5"]
        assert response.sources_as_text == (
            "doc1#p2: In-network deductible is$500.\n"
            "doc3#p1: The downtown clinicis in-network.\n"
            "doc3#p5: Open on weekdays.\n"
        )
        assert response.sources_as_text.splitlines() == [s.as_line().rstrip("\n") for s in response.sources]
        assert response.sources_as_text.rstrip("\n") in chat.calls[0]["messages"][-1]["content"]

    def test_zero_hits_still_generates(self, make_search, chat):
        response = PlainAskApproach(make_search(hits=[]), chat).run("Anything?", RAGOptions())

        assert len(chat.calls) == 1
        assert response.sources == ()
        assert response.sources_as_text == ""

    def test_followup_questions(self, search, make_chat):
        chat = make_chat(replies=["Fifteen days [handbook/vacation.txt#p0]. <<Do they roll over?>><<Who approves?>>"])
        options = RAGOptions(suggest_followup_questions=True)

        response = PlainAskApproach(search, chat).run("How many vacation days?", options)

        assert response.answer == "Fifteen days [handbook/vacation.txt#p0]."
        assert response.followup_questions == ("Do they roll over?", "Who approves?")
        assert "double angle brackets" in chat.calls[0]["messages"][0]["content"]

    def test_followups_left_in_answer_when_not_requested(self, search, make_chat):
        chat = make_chat(replies=["Fifteen days. <<Do they roll over?>>"])

        response = PlainAskApproach(search, chat).run("How many vacation days?", RAGOptions())

        assert response.answer == "Fifteen days. <<Do they roll over?>>"
        assert response.followup_questions is None

    def test_prompt_template_override(self, search, chat):
        options = RAGOptions(prompt_template="Answer like a pirate.")
        PlainAskApproach(search, chat).run("What is covered?", options)

        assert chat.calls[0]["messages"][0] == {"role": "system", "content": "Answer like a pirate."}

    def test_blank_question_rejected_before_search(self, search, chat):
        with pytest.raises(InvalidInputError):
            PlainAskApproach(search, chat).run("  ", RAGOptions())

        assert search.calls == []
        assert chat.calls == []

    def test_search_failure_propagates(self, make_search, chat):
        search = make_search(error=SearchError("index unavailable"))

        with pytest.raises(SearchError):
            PlainAskApproach(search, chat).run("What is covered?", RAGOptions())
        assert chat.calls == []

    def test_generation_failure_propagates(self, search, make_chat):
        chat = make_chat(error=GenerationError("model unavailable"))

        with pytest.raises(GenerationError):
            PlainAskApproach(search, chat).run("What is covered?", RAGOptions())


class TestPlainStreaming:
    def test_stream_fragments(self, search, chat):
        fragments = PlainAskApproach(search, chat).stream("What is covered?", RAGOptions())

        assert len(search.calls) == 1
        assert list(fragments) == ["Hello", " world"]
        assert chat.calls[0]["stream"] is True

    def test_run_streaming_writes_to_sink(self, search, chat):
        sink = io.StringIO()
        PlainAskApproach(search, chat).run_streaming("What is covered?", RAGOptions(), sink)

        assert sink.getvalue() == "Hello world"
        assert chat.stream_closed

    def test_sink_failure_closes_stream(self, search, chat):
        class BrokenSink:
            def write(self, text):
                raise ConnectionResetError("client went away")

        with pytest.raises(ConnectionResetError):
            PlainAskApproach(search, chat).run_streaming("What is covered?", RAGOptions(), BrokenSink())
        assert chat.stream_closed

    def test_chat_streaming(self, search, make_chat):
        chat = make_chat(replies=["vacation days"], stream_chunks=["Fifteen", " days."])
        sink = io.StringIO()

        PlainChatApproach(search, chat).run_streaming(CONVERSATION, RAGOptions(), sink)

        assert sink.getvalue() == "Fifteen days."
        assert search.calls[0]["query"] == "vacation days"


# =============================================================================
# Plain chat
# =============================================================================


class TestPlainChat:
    def test_keyword_query_used_for_search(self, search, make_chat):
        chat = make_chat(replies=['"vacation days allowance"', "Fifteen days."])

        response = PlainChatApproach(search, chat).run(CONVERSATION, RAGOptions())

        assert search.calls[0]["query"] == "vacation days allowance"
        assert response.question == "And how many vacation days do I get?"
        assert response.answer == "Fifteen days."

    def test_keyword_call_settings(self, search, chat):
        PlainChatApproach(search, chat).run(CONVERSATION, RAGOptions())

        query_call = chat.calls[0]
        assert query_call["temperature"] == 0.0
        assert query_call["max_tokens"] == 32
        assert "<|im_start|>assistant" in query_call["messages"][-1]["content"]

    @pytest.mark.parametrize("generated", ["0", "   "])
    def test_falls_back_to_question(self, search, make_chat, generated):
        chat = make_chat(replies=[generated, "answer"])

        PlainChatApproach(search, chat).run(CONVERSATION, RAGOptions())

        assert search.calls[0]["query"] == "And how many vacation days do I get?"

    def test_history_sent_with_answer_prompt(self, search, make_chat):
        chat = make_chat(replies=["vacation", "answer"])

        PlainChatApproach(search, chat).run(CONVERSATION, RAGOptions())

        messages = chat.calls[1]["messages"]
        assert {"role": "assistant", "content": "Yes [benefits/plans.md#p0]."} in messages
        assert messages[-1]["role"] == "user"
        assert "And how many vacation days do I get?" in messages[-1]["content"]

    def test_conversation_without_user_message(self, search, chat):
        with pytest.raises(InvalidInputError):
            PlainChatApproach(search, chat).run([ChatMessage("assistant", "hello")], RAGOptions())


# =============================================================================
# Vector memory
# =============================================================================


class TestVectorMemory:
    def test_options_forwarded_unchanged(self, search, chat):
        options = RAGOptions(
            retrieval_mode=RetrievalMode.TEXT,
            semantic_ranker=True,
            semantic_captions=True,
            exclude_category="policies",
            top=2,
        )
        VectorMemoryAskApproach(search, chat).run("What is covered?", options)

        assert search.calls == [
            {
                "query": "What is covered?",
                "top": 2,
                "mode": RetrievalMode.TEXT,
                "exclude_category": "policies",
                "semantic_ranker": True,
                "semantic_captions": True,
            }
        ]

    def test_run(self, search, chat):
        response = VectorMemoryAskApproach(search, chat).run("What is covered?", RAGOptions())

        assert response.answer == chat.default_reply
        assert len(response.sources) == 2

    def test_chat_searches_with_last_question(self, search, chat):
        response = VectorMemoryChatApproach(search, chat).run(CONVERSATION, RAGOptions())

        assert search.calls[0]["query"] == "And how many vacation days do I get?"
        assert len(chat.calls) == 1
        assert response.question == "And how many vacation days do I get?"

    @pytest.mark.parametrize("approach_cls", [VectorMemoryAskApproach, VectorMemoryChatApproach])
    def test_streaming_unsupported(self, search, chat, approach_cls):
        approach = approach_cls(search, chat)

        with pytest.raises(UnsupportedOperationError):
            approach.stream("What is covered?", RAGOptions())
        with pytest.raises(UnsupportedOperationError):
            approach.run_streaming("What is covered?", RAGOptions(), io.StringIO())

        assert search.calls == []
        assert chat.calls == []
