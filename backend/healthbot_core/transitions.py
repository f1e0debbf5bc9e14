from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Union

from .models import ConversationState, HealthcareContext, Message, PrivacyStyle, UserDetails


@dataclass(frozen=True)
class InitializeSession:
    healthcare_context: HealthcareContext
    privacy_style: PrivacyStyle


@dataclass(frozen=True)
class SetWelcomeMessage:
    text: str


@dataclass(frozen=True)
class RegisterUser:
    user_details: UserDetails
    session_id: str


@dataclass(frozen=True)
class AddMessage:
    message: Message


@dataclass(frozen=True)
class SetLoading:
    loading: bool


@dataclass(frozen=True)
class SetError:
    text: str


@dataclass(frozen=True)
class ClearError:
    pass


@dataclass(frozen=True)
class TogglePrivacyBox:
    pass


Action = Union[
    InitializeSession,
    SetWelcomeMessage,
    RegisterUser,
    AddMessage,
    SetLoading,
    SetError,
    ClearError,
    TogglePrivacyBox,
]


def transition(state: ConversationState, action: Action) -> ConversationState:
    """Apply one action to the conversation record and return the new record.

    Pure and total: no transition raises, unknown actions leave the state as is,
    and the input state is never mutated.
    """
    if isinstance(action, InitializeSession):
        if state.is_registered:
            return state
        privacy_box_visible = state.privacy_box_visible
        if state.privacy_style != action.privacy_style:
            privacy_box_visible = False
        return replace(
            state,
            session_id=None,
            healthcare_context=action.healthcare_context,
            privacy_style=action.privacy_style,
            privacy_box_visible=privacy_box_visible,
        )

    if isinstance(action, SetWelcomeMessage):
        return replace(state, welcome_message=action.text)

    if isinstance(action, RegisterUser):
        if state.is_registered:
            return state
        return replace(
            state,
            user_details=action.user_details,
            session_id=action.session_id,
            is_registered=True,
        )

    if isinstance(action, AddMessage):
        return replace(state, messages=state.messages + (action.message,), error=None)

    if isinstance(action, SetLoading):
        return replace(state, is_loading=bool(action.loading))

    if isinstance(action, SetError):
        return replace(state, error=action.text, is_loading=False)

    if isinstance(action, ClearError):
        return replace(state, error=None)

    if isinstance(action, TogglePrivacyBox):
        if state.privacy_style == PrivacyStyle.PROGRESSIVE:
            return replace(state, privacy_box_visible=not state.privacy_box_visible)
        return replace(state, privacy_box_visible=False)

    return state
