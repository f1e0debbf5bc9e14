from __future__ import annotations

import asyncio
import json
from datetime import date

import httpx
import pytest

from healthbot_core import ChatLogClient, ChatServiceClient, ConversationOrchestrator
from healthbot_core.errors import ConsentError, RegistrationValidationError
from healthbot_core.models import Sender

BASE_URL = "http://healthbot.test"


class FakeBackend:
    def __init__(self, chat_response=None, chat_error: Exception | None = None, log_status: int = 200) -> None:
        self.chat_response = chat_response or httpx.Response(200, json={"reply": "Hi there"})
        self.chat_error = chat_error
        self.log_status = log_status
        self.chat_requests: list[dict] = []
        self.log_requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content or b"{}")
        if request.url.path == "/api/chat":
            self.chat_requests.append(body)
            if self.chat_error is not None:
                raise self.chat_error
            return self.chat_response
        if request.url.path == "/api/chatlog":
            self.log_requests.append(body)
            return httpx.Response(self.log_status, json={"success": self.log_status == 200})
        return httpx.Response(404, json={"error": "not found"})


def _orchestrator(context, backend: FakeBackend) -> ConversationOrchestrator:
    transport = httpx.MockTransport(backend)
    return ConversationOrchestrator(
        context,
        ChatServiceClient(BASE_URL, timeout_seconds=2.0, transport=transport),
        ChatLogClient(BASE_URL, transport=transport),
    )


def _send(orchestrator: ConversationOrchestrator, text: str) -> None:
    async def _run() -> None:
        await orchestrator.send_message(text)
        await orchestrator.drain()

    asyncio.run(_run())


def _register(orchestrator: ConversationOrchestrator) -> None:
    orchestrator.register("Ann", "Lee", "2010-05-01", True, today=date(2024, 5, 1))


def test_register_derives_age_and_session_id(context):
    backend = FakeBackend()
    orchestrator = _orchestrator(context, backend)
    welcome = context.state.welcome_message

    state = orchestrator.register(" Ann ", "Lee", "2010-05-01", True, today=date(2024, 5, 1))

    assert state.is_registered is True
    assert state.user_details.age == 14
    assert state.user_details.full_name == "Ann Lee"
    assert state.user_details.date_of_birth == "2010-05-01"
    assert state.session_id and "_" in state.session_id
    assert state.welcome_message == welcome


def test_register_rejections_leave_state_untouched(context):
    orchestrator = _orchestrator(context, FakeBackend())
    before = context.state
    with pytest.raises(RegistrationValidationError):
        orchestrator.register("Ann", "Lee", "2012-01-01", True, today=date(2024, 5, 1))
    with pytest.raises(ConsentError):
        orchestrator.register("Ann", "Lee", "2010-05-01", False, today=date(2024, 5, 1))
    assert context.state is before
    assert context.state.error is None


@pytest.mark.parametrize("text", ["", "   "])
def test_blank_messages_change_nothing(context, text):
    backend = FakeBackend()
    orchestrator = _orchestrator(context, backend)
    _register(orchestrator)
    before = context.state

    _send(orchestrator, text)

    assert context.state is before
    assert backend.chat_requests == []


def test_successful_exchange_strips_emphasis_and_logs_original_reply(context):
    backend = FakeBackend(chat_response=httpx.Response(200, json={"reply": "**Hello** there"}))
    orchestrator = _orchestrator(context, backend)
    _register(orchestrator)

    _send(orchestrator, "I have a headache")

    state = context.state
    assert [message.sender for message in state.messages] == [Sender.USER, Sender.BOT]
    assert state.messages[0].content == "I have a headache"
    assert state.messages[1].content == "Hello there"
    assert state.is_loading is False
    assert state.error is None

    assert backend.chat_requests == [
        {"userInput": "I have a headache", "healthcareContext": state.healthcare_context.value}
    ]
    assert len(backend.log_requests) == 1
    log = backend.log_requests[0]
    assert log["botReply"] == "**Hello** there"
    assert log["userInput"] == "I have a headache"
    assert log["sessionId"] == state.session_id
    assert log["privacyStyle"] == state.privacy_style.value
    assert log["userDetails"]["firstName"] == "Ann"


def test_http_failure_sets_error_without_bot_message(context):
    backend = FakeBackend(chat_response=httpx.Response(500, json={"error": "boom"}))
    orchestrator = _orchestrator(context, backend)
    _register(orchestrator)

    _send(orchestrator, "hello")

    state = context.state
    assert state.error == "HTTP error! status: 500"
    assert state.is_loading is False
    assert [message.sender for message in state.messages] == [Sender.USER]
    assert backend.log_requests == []


def test_missing_reply_field_is_an_error(context):
    backend = FakeBackend(chat_response=httpx.Response(200, json={"error": "Upstream said no"}))
    orchestrator = _orchestrator(context, backend)
    _register(orchestrator)

    _send(orchestrator, "hello")

    assert context.state.error == "Upstream said no"
    assert len(context.state.messages) == 1


def test_missing_reply_without_error_uses_default_message(context):
    backend = FakeBackend(chat_response=httpx.Response(200, json={}))
    orchestrator = _orchestrator(context, backend)
    _register(orchestrator)

    _send(orchestrator, "hello")

    assert context.state.error == "Failed to get response"


def test_timeout_surfaces_as_distinct_error(context):
    backend = FakeBackend(chat_error=httpx.ReadTimeout("timed out"))
    orchestrator = _orchestrator(context, backend)
    _register(orchestrator)

    _send(orchestrator, "hello")

    assert context.state.error.startswith("Request timed out after 2 seconds")
    assert context.state.is_loading is False


def test_connection_failure_sets_error(context):
    backend = FakeBackend(chat_error=httpx.ConnectError("connection refused"))
    orchestrator = _orchestrator(context, backend)
    _register(orchestrator)

    _send(orchestrator, "hello")

    assert context.state.error == "connection refused"


def test_log_failures_never_reach_the_conversation(context):
    backend = FakeBackend(log_status=500)
    orchestrator = _orchestrator(context, backend)
    _register(orchestrator)

    _send(orchestrator, "hello")

    state = context.state
    assert state.error is None
    assert [message.content for message in state.messages] == ["hello", "Hi there"]
    assert len(backend.log_requests) == 1


def test_next_send_clears_previous_error(context):
    backend = FakeBackend(chat_response=httpx.Response(503, json={"error": "down"}))
    orchestrator = _orchestrator(context, backend)
    _register(orchestrator)
    _send(orchestrator, "hello")
    assert context.state.error

    backend.chat_response = httpx.Response(200, json={"reply": "Back online"})
    _send(orchestrator, "again")

    assert context.state.error is None
    assert [message.content for message in context.state.messages] == ["hello", "again", "Back online"]


def test_loading_is_true_only_while_the_exchange_is_in_flight(context):
    backend = FakeBackend()
    orchestrator = _orchestrator(context, backend)
    _register(orchestrator)
    loading_trace: list[bool] = []
    context.add_listener(lambda state: loading_trace.append(state.is_loading))

    _send(orchestrator, "hello")

    assert loading_trace[0] is False
    assert True in loading_trace
    assert loading_trace[-1] is False


def test_toggle_and_reset_go_through_the_context(context):
    orchestrator = _orchestrator(context, FakeBackend())
    _register(orchestrator)
    assert orchestrator.toggle_privacy_box().privacy_box_visible is True

    state = orchestrator.reset()
    assert state.is_registered is False
    assert state.messages == ()
