from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import date

from healthbot_memory.time_utils import to_iso, utc_now

from .chat_client import ChatLogClient, ChatServiceClient, chatlog_payload
from .context import ChatContext
from .errors import LoggingError, TransportError, UpstreamDataError
from .models import ConversationState, Message, Sender, UserDetails
from .registration import calculate_age, check_registration
from .session_identity import derive_session_id
from .transitions import AddMessage, ClearError, RegisterUser, SetError, SetLoading, TogglePrivacyBox
from .welcome import strip_emphasis

logger = logging.getLogger(__name__)


def _new_message(content: str, sender: Sender) -> Message:
    return Message(
        id=uuid.uuid4().hex,
        content=content,
        timestamp=to_iso(utc_now()),
        sender=sender,
    )


class ConversationOrchestrator:
    def __init__(
        self,
        context: ChatContext,
        chat_client: ChatServiceClient,
        log_client: ChatLogClient,
    ) -> None:
        self._context = context
        self._chat_client = chat_client
        self._log_client = log_client
        self._log_tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> ConversationState:
        return self._context.state

    def register(
        self,
        first_name: str,
        last_name: str,
        date_of_birth: date | str,
        accepted_privacy: bool,
        *,
        today: date | None = None,
    ) -> ConversationState:
        dob = check_registration(first_name, last_name, date_of_birth, accepted_privacy, today)
        details = UserDetails(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            date_of_birth=dob.isoformat(),
            age=calculate_age(dob, today),
            full_name=f"{first_name.strip()} {last_name.strip()}",
        )
        session_id = derive_session_id(details.first_name, details.last_name, dob)
        return self._context.dispatch(RegisterUser(user_details=details, session_id=session_id))

    async def send_message(self, text: str) -> None:
        if not text or not text.strip():
            return

        dispatch = self._context.dispatch
        dispatch(AddMessage(message=_new_message(text, Sender.USER)))
        dispatch(SetLoading(loading=True))
        dispatch(ClearError())

        try:
            reply = await self._chat_client.send(
                user_input=text,
                healthcare_context=self._context.state.healthcare_context,
            )
        except (TransportError, UpstreamDataError) as exc:
            logger.warning("Chat exchange failed: %s", exc)
            dispatch(SetError(text=str(exc) or "Failed to send message. Please try again."))
        else:
            dispatch(AddMessage(message=_new_message(strip_emphasis(reply), Sender.BOT)))
            self._spawn_log_append(
                chatlog_payload(self._context.state, user_input=text, bot_reply=reply)
            )
        finally:
            dispatch(SetLoading(loading=False))

    def toggle_privacy_box(self) -> ConversationState:
        return self._context.dispatch(TogglePrivacyBox())

    def reset(self) -> ConversationState:
        return self._context.reset()

    async def drain(self) -> None:
        if self._log_tasks:
            await asyncio.gather(*list(self._log_tasks), return_exceptions=True)

    def _spawn_log_append(self, payload: dict) -> None:
        task = asyncio.create_task(self._append_log(payload))
        self._log_tasks.add(task)
        task.add_done_callback(self._log_tasks.discard)

    async def _append_log(self, payload: dict) -> None:
        try:
            await self._log_client.append(payload)
        except LoggingError as exc:
            logger.warning("Discarding chat log failure for session %s: %s", payload.get("sessionId"), exc)
        except Exception:
            logger.exception("Unexpected chat log failure for session %s", payload.get("sessionId"))
