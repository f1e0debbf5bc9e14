from __future__ import annotations

from typing import Any

import httpx

from .errors import ChatTimeoutError, LoggingError, TransportError, UpstreamDataError
from .models import ConversationState, HealthcareContext

CHAT_PATH = "/api/chat"
CHATLOG_PATH = "/api/chatlog"
DEFAULT_SEND_FAILURE = "Failed to send message. Please try again."


class ChatServiceClient:
    """Async client for the chat endpoint. One POST per exchange, no retries."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout_seconds, connect=8.0),
            transport=self._transport,
        )

    async def send(self, *, user_input: str, healthcare_context: HealthcareContext | None) -> str:
        payload = {
            "userInput": user_input,
            "healthcareContext": healthcare_context.value if healthcare_context else None,
        }
        try:
            async with self._client() as client:
                response = await client.post(CHAT_PATH, json=payload)
        except httpx.TimeoutException as exc:
            raise ChatTimeoutError(
                f"Request timed out after {self._timeout_seconds:g} seconds. Please try again."
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or DEFAULT_SEND_FAILURE) from exc

        if not response.is_success:
            raise TransportError(f"HTTP error! status: {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamDataError("Chat service returned invalid JSON.") from exc
        reply = data.get("reply") if isinstance(data, dict) else None
        if not isinstance(reply, str) or not reply:
            error = data.get("error") if isinstance(data, dict) else None
            raise UpstreamDataError(error if isinstance(error, str) and error else "Failed to get response")
        return reply


class ChatLogClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def append(self, payload: dict[str, Any]) -> None:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._timeout_seconds, connect=8.0),
                transport=self._transport,
            ) as client:
                response = await client.post(CHATLOG_PATH, json=payload)
        except httpx.HTTPError as exc:
            raise LoggingError(f"Chat log append failed: {exc}") from exc
        if not response.is_success:
            raise LoggingError(f"Chat log append failed: HTTP {response.status_code}")


def chatlog_payload(state: ConversationState, *, user_input: str, bot_reply: str) -> dict[str, Any]:
    return {
        "sessionId": state.session_id,
        "healthcareContext": state.healthcare_context.value if state.healthcare_context else None,
        "privacyStyle": state.privacy_style.value if state.privacy_style else None,
        "userInput": user_input,
        "botReply": bot_reply,
        "userDetails": state.user_details.to_dict() if state.user_details else None,
    }
