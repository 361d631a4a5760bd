"""Tests for the chat orchestrator."""

import pytest
from unittest.mock import MagicMock

from aurora.engine.chat import ChatOrchestrator
from aurora.errors import BadGatewayError, BadRequestError, NotFoundError, UpstreamTimeoutError


@pytest.fixture
def orchestrator(conversation_repository, completion_client):
    return ChatOrchestrator(conversation_repository, completion_client)


class TestNewConversation:
    """Prompts without a conversation id start a new conversation."""

    def test_creates_conversation_with_prompt_and_answer(
        self, orchestrator, conversation_repository, test_user_id
    ):
        result = orchestrator.handle(test_user_id, "  What is the weather like?  ")

        assert result.is_new is True
        assert result.answer == "Hello there."
        assert result.title == "What is the weather like?"

        stored = conversation_repository.get(test_user_id, result.conversation_id)
        assert [(m.role, m.content) for m in stored.messages] == [
            ("user", "What is the weather like?"),
            ("bot", "Hello there."),
        ]

    def test_completion_receives_prompt_as_sent(self, orchestrator, completion_client, test_user_id):
        """Only the stored message and the title are trimmed."""
        orchestrator.handle(test_user_id, "  padded prompt\n")
        assert completion_client.calls[-1]["prompt"] == "  padded prompt\n"

    def test_continued_prompt_is_sent_untrimmed_and_stored_trimmed(
        self, orchestrator, completion_client, conversation_repository, test_user_id
    ):
        first = orchestrator.handle(test_user_id, "First question")
        orchestrator.handle(test_user_id, "  Follow up  ", first.conversation_id)

        assert completion_client.calls[-1]["prompt"] == "  Follow up  "
        stored = conversation_repository.get(test_user_id, first.conversation_id)
        assert stored.messages[2].content == "Follow up"

    def test_long_prompt_title_is_truncated(self, orchestrator, test_user_id):
        result = orchestrator.handle(test_user_id, "z" * 60)
        assert result.title == "z" * 50 + "…"

    def test_reply_is_formatted(self, orchestrator, completion_client, test_user_id):
        completion_client.reply = "**One.** Two. Three."
        result = orchestrator.handle(test_user_id, "List things")
        assert result.answer == "1. One.\n2. Two.\n3. Three."

    @pytest.mark.parametrize("prompt", [None, "", "   ", 42])
    def test_invalid_prompt_is_rejected_before_any_call(
        self, orchestrator, completion_client, conversation_repository, test_user_id, prompt
    ):
        with pytest.raises(BadRequestError):
            orchestrator.handle(test_user_id, prompt)
        assert completion_client.calls == []
        assert conversation_repository.list_for_user(test_user_id) == []

    @pytest.mark.parametrize("reply", [None, "", "   ", "<b></b>"])
    def test_unusable_reply_is_bad_gateway_and_nothing_is_stored(
        self, orchestrator, completion_client, conversation_repository, test_user_id, reply
    ):
        completion_client.reply = reply
        with pytest.raises(BadGatewayError):
            orchestrator.handle(test_user_id, "Hello")
        assert conversation_repository.list_for_user(test_user_id) == []

    def test_upstream_timeout_propagates(self, conversation_repository, test_user_id):
        completion = MagicMock()
        completion.complete.side_effect = UpstreamTimeoutError()
        orchestrator = ChatOrchestrator(conversation_repository, completion)

        with pytest.raises(UpstreamTimeoutError):
            orchestrator.handle(test_user_id, "Hello")
        assert conversation_repository.list_for_user(test_user_id) == []


class TestContinueConversation:
    """Prompts with a conversation id append to that conversation."""

    def test_appends_two_messages_and_bumps_activity(
        self, orchestrator, conversation_repository, test_user_id
    ):
        first = orchestrator.handle(test_user_id, "First question")
        second = orchestrator.handle(test_user_id, "Second question", first.conversation_id)

        assert second.is_new is False
        assert second.conversation_id == first.conversation_id
        assert second.last_activity > first.last_activity

        stored = conversation_repository.get(test_user_id, first.conversation_id)
        assert len(stored.messages) == 4
        assert stored.messages[2].content == "Second question"
        assert stored.title == "First question"

    def test_unknown_conversation_is_not_found_without_calling_completion(
        self, orchestrator, completion_client, test_user_id
    ):
        with pytest.raises(NotFoundError):
            orchestrator.handle(test_user_id, "Hello", "does-not-exist")
        assert completion_client.calls == []

    def test_other_users_conversation_is_not_found(
        self, orchestrator, conversation_repository, completion_client, test_user_id, other_user_id
    ):
        theirs = orchestrator.handle(other_user_id, "Private thoughts")
        completion_client.calls.clear()

        with pytest.raises(NotFoundError):
            orchestrator.handle(test_user_id, "Let me in", theirs.conversation_id)

        assert completion_client.calls == []
        assert len(conversation_repository.get(other_user_id, theirs.conversation_id).messages) == 2

    def test_history_is_not_forwarded_by_default(self, orchestrator, completion_client, test_user_id):
        first = orchestrator.handle(test_user_id, "First question")
        orchestrator.handle(test_user_id, "Follow up", first.conversation_id)

        assert completion_client.calls[-1] == {"prompt": "Follow up", "history": None}

    def test_history_is_forwarded_when_enabled(
        self, conversation_repository, completion_client, test_user_id
    ):
        orchestrator = ChatOrchestrator(conversation_repository, completion_client, forward_history=True)
        first = orchestrator.handle(test_user_id, "First question")
        orchestrator.handle(test_user_id, "Follow up", first.conversation_id)

        history = completion_client.calls[-1]["history"]
        assert [m.content for m in history] == ["First question", "Hello there."]

    def test_failed_reply_leaves_conversation_unchanged(
        self, orchestrator, completion_client, conversation_repository, test_user_id
    ):
        first = orchestrator.handle(test_user_id, "First question")
        completion_client.reply = None

        with pytest.raises(BadGatewayError):
            orchestrator.handle(test_user_id, "Follow up", first.conversation_id)

        stored = conversation_repository.get(test_user_id, first.conversation_id)
        assert len(stored.messages) == 2
        assert stored.last_activity == first.last_activity
