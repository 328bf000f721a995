"""Tests for the AI assistant: intent detection, prompt context and reply streaming."""

import json
from types import SimpleNamespace
from uuid import uuid4

import litellm
import pytest

from calcrm.core.modules.chat.context import LIMIT_PER_COLLECTION, build_context, detect_intent
from calcrm.core.modules.chat.models import ChatMessage, ChatRequest
from calcrm.core.modules.chat.prompts import NO_CONTEXT_NOTE, build_system_prompt
from calcrm.core.modules.chat.service import (
    DONE_EVENT,
    NOT_CONFIGURED_MESSAGE,
    STREAM_ERROR_MESSAGE,
    last_user_message,
    sse_event,
    trim_messages,
)


def chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


@pytest.fixture
def configured(core, config):
    core.config = config.model_copy(update={"llm_api_key": "sk-test"})
    return core


class TestDetectIntent:
    """Tests for detect_intent function."""

    def test_keywords_select_collections(self):
        assert detect_intent("Which gauges are overdue?") == ["gauges"]
        assert detect_intent("Show the REPORT for project P-001") == ["projects", "reports"]

    def test_account_words_select_users(self):
        assert detect_intent("list user accounts") == ["users"]

    def test_generic_message_gets_entity_collections(self):
        assert detect_intent("hello there") == ["projects", "calibrations", "gauges", "reports"]

    def test_empty_message(self):
        assert detect_intent("") == []
        assert detect_intent(None) == []

    def test_whole_words_only(self):
        """Test that keywords inside longer words do not match."""
        assert detect_intent("reporting structure") == ["projects", "calibrations", "gauges", "reports"]


class TestBuildContext:
    """Tests for fetching prompt context from the database."""

    async def test_sections_for_detected_collections(self, database):
        database.get_collection("gauges").docs.append({"_id": uuid4(), "gauge_id": "G-001", "gauge_name": "Dial"})
        database.get_collection("projects").docs.append({"_id": uuid4(), "project_id": "P-001"})

        intents, context = await build_context(database, "any gauge due?")

        assert intents == ["gauges"]
        assert context.startswith("Gauges:\n")
        assert '"gauge_id":"G-001"' in context
        assert "P-001" not in context

    async def test_passwords_never_included(self, database):
        database.get_collection("users").docs.append({"_id": uuid4(), "email": "a@b.co", "password_hash": "$2b$12$x"})

        _, context = await build_context(database, "which users exist")

        assert context.startswith("Users (no passwords):\n")
        assert "a@b.co" in context
        assert "password_hash" not in context

    async def test_bounded_sample(self, database):
        database.get_collection("reports").docs += [{"_id": n, "report_id": f"R-{n:03d}"} for n in range(50)]

        _, context = await build_context(database, "reports please")

        docs = json.loads(context.removeprefix("Reports:\n"))
        assert len(docs) == LIMIT_PER_COLLECTION

    async def test_empty_collections_give_empty_context(self, database):
        intents, context = await build_context(database, "hi")
        assert intents == ["projects", "calibrations", "gauges", "reports"]
        assert context == ""


class TestPrompt:
    """Tests for the system prompt."""

    def test_context_appended(self):
        prompt = build_system_prompt("Gauges:\n[]")
        assert prompt.endswith("Context:\nGauges:\n[]")

    def test_note_when_nothing_found(self):
        assert build_system_prompt("").endswith(NO_CONTEXT_NOTE)
        assert build_system_prompt("   ").endswith(NO_CONTEXT_NOTE)


class TestMessages:
    """Tests for message helpers and request validation."""

    def test_trim_keeps_most_recent(self):
        messages = [ChatMessage(role="user", content=str(n)) for n in range(8)]
        assert [m.content for m in trim_messages(messages)] == ["3", "4", "5", "6", "7"]
        assert trim_messages(messages[:2]) == messages[:2]

    def test_last_user_message(self):
        messages = [
            ChatMessage(role="user", content="first"),
            ChatMessage(role="assistant", content="reply"),
            ChatMessage(role="user", content="second"),
            ChatMessage(role="assistant", content="another reply"),
        ]
        assert last_user_message(messages) == "second"
        assert last_user_message([ChatMessage(role="assistant", content="x")]) is None

    def test_sse_event(self):
        assert sse_event("Hi ✅") == 'data: {"content": "Hi ✅"}\n\n'

    def test_request_validation(self):
        with pytest.raises(ValueError):
            ChatRequest.model_validate({"messages": []})
        with pytest.raises(ValueError):
            ChatRequest.model_validate({"messages": [{"role": "system", "content": "x"}]})
        with pytest.raises(ValueError):
            ChatRequest.model_validate({"messages": [{"role": "user", "content": 42}]})


class TestStreamChat:
    """Tests for streaming assistant replies."""

    async def test_not_configured(self, core, mock_user):
        events = [e async for e in core.services.chat.stream_chat([ChatMessage(role="user", content="hi")], mock_user.id)]
        assert events == [sse_event(NOT_CONFIGURED_MESSAGE)]

    async def test_streams_reply_and_logs(self, configured, database, monkeypatch, mock_user):
        captured = {}

        async def fake_completion(**kwargs):
            captured.update(kwargs)

            async def stream():
                for part in ("Two ", None, "gauges."):
                    yield chunk(part)

            return stream()

        monkeypatch.setattr(litellm, "acompletion", fake_completion)
        messages = [ChatMessage(role="user", content="How many gauges?")]

        events = [e async for e in configured.services.chat.stream_chat(messages, mock_user.id)]

        assert events == [sse_event("Two "), sse_event("gauges."), DONE_EVENT]
        assert captured["stream"] is True
        assert captured["api_key"] == "sk-test"
        assert captured["messages"][0]["role"] == "system"
        assert captured["messages"][1:] == [{"role": "user", "content": "How many gauges?"}]
        [log] = database.get_collection("chat_logs").docs
        assert log["response"] == "Two gauges."
        assert log["intents"] == ["gauges"]
        assert log["error_message"] is None

    async def test_provider_failure_reported_in_stream(self, configured, database, monkeypatch, mock_user):
        async def failing_completion(**kwargs):
            raise RuntimeError("provider down")

        monkeypatch.setattr(litellm, "acompletion", failing_completion)

        events = [
            e async for e in configured.services.chat.stream_chat([ChatMessage(role="user", content="hi")], mock_user.id)
        ]

        assert events == [sse_event(STREAM_ERROR_MESSAGE)]
        [log] = database.get_collection("chat_logs").docs
        assert log["error_message"] == "provider down"
