from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class HealthcareContext(str, Enum):
    SYMPTOM_CHECKING = "symptom checking"
    MENTAL_HEALTH_SUPPORT = "mental health support"
    CHRONIC_CARE_MANAGEMENT = "chronic care management"


class PrivacyStyle(str, Enum):
    MINIMAL = "minimal"
    CONTEXTUAL = "contextual"
    PROGRESSIVE = "progressive"


class Sender(str, Enum):
    USER = "user"
    BOT = "bot"


def _enum_or_none(enum_cls, value: Any):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class Message:
    id: str
    content: str
    timestamp: str
    sender: Sender
    is_welcome: bool = False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "content": self.content,
            "timestamp": self.timestamp,
            "sender": self.sender.value,
        }
        if self.is_welcome:
            payload["isWelcome"] = True
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Message":
        return cls(
            id=str(payload.get("id") or ""),
            content=str(payload.get("content") or ""),
            timestamp=str(payload.get("timestamp") or ""),
            sender=_enum_or_none(Sender, payload.get("sender")) or Sender.BOT,
            is_welcome=bool(payload.get("isWelcome", False)),
        )


@dataclass(frozen=True)
class UserDetails:
    first_name: str
    last_name: str
    date_of_birth: str
    age: int
    full_name: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "dateOfBirth": self.date_of_birth,
            "age": self.age,
            "fullName": self.full_name,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "UserDetails":
        first_name = str(payload.get("firstName") or "")
        last_name = str(payload.get("lastName") or "")
        return cls(
            first_name=first_name,
            last_name=last_name,
            date_of_birth=str(payload.get("dateOfBirth") or ""),
            age=int(payload.get("age") or 0),
            full_name=str(payload.get("fullName") or f"{first_name} {last_name}"),
        )


@dataclass(frozen=True)
class ConversationState:
    session_id: str | None = None
    healthcare_context: HealthcareContext | None = None
    privacy_style: PrivacyStyle | None = None
    user_details: UserDetails | None = None
    is_registered: bool = False
    messages: tuple[Message, ...] = field(default_factory=tuple)
    is_loading: bool = False
    error: str | None = None
    privacy_box_visible: bool = False
    welcome_message: str | None = None

    def to_snapshot(self) -> dict[str, Any]:
        # isLoading, error and privacyBoxVisible are transient.
        return {
            "sessionId": self.session_id,
            "healthcareContext": self.healthcare_context.value if self.healthcare_context else None,
            "privacyStyle": self.privacy_style.value if self.privacy_style else None,
            "userDetails": self.user_details.to_dict() if self.user_details else None,
            "isRegistered": self.is_registered,
            "messages": [message.to_dict() for message in self.messages],
            "welcomeMessage": self.welcome_message,
        }

    @classmethod
    def from_snapshot(cls, snapshot: dict[str, Any]) -> "ConversationState":
        raw_details = snapshot.get("userDetails")
        user_details = UserDetails.from_dict(raw_details) if isinstance(raw_details, dict) else None
        session_id = snapshot.get("sessionId") or None
        is_registered = bool(snapshot.get("isRegistered", False))
        if is_registered and (not session_id or user_details is None):
            is_registered = False
        raw_messages = snapshot.get("messages")
        messages = tuple(
            Message.from_dict(item)
            for item in (raw_messages if isinstance(raw_messages, list) else [])
            if isinstance(item, dict)
        )
        return cls(
            session_id=session_id,
            healthcare_context=_enum_or_none(HealthcareContext, snapshot.get("healthcareContext")),
            privacy_style=_enum_or_none(PrivacyStyle, snapshot.get("privacyStyle")),
            user_details=user_details,
            is_registered=is_registered,
            messages=messages,
            welcome_message=snapshot.get("welcomeMessage") or None,
        )
