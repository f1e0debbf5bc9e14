from __future__ import annotations

import logging
import random
from typing import Callable

from healthbot_memory import ConversationSlot

from .models import ConversationState, HealthcareContext, PrivacyStyle
from .transitions import Action, InitializeSession, SetWelcomeMessage, transition
from .welcome import build_welcome_message

logger = logging.getLogger(__name__)

StateListener = Callable[[ConversationState], None]


class ChatContext:
    """Holds the single conversation record and its durable slot.

    ``dispatch`` is the only way the record changes. Every dispatch writes the
    snapshot to the slot before listeners run; the write is not atomic with the
    in-memory change, so a crash in between can lose the last transition.
    """

    def __init__(self, slot: ConversationSlot, *, rng: random.Random | None = None) -> None:
        self._slot = slot
        self._rng = rng or random.Random()
        self._state = ConversationState()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> ConversationState:
        return self._state

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def dispatch(self, action: Action) -> ConversationState:
        self._state = transition(self._state, action)
        self._slot.save(self._state.to_snapshot())
        for listener in self._listeners:
            listener(self._state)
        return self._state

    def start(self) -> ConversationState:
        self._state = ConversationState.from_snapshot(self._slot.load())
        if not self._state.is_registered:
            self._initialize_session()
        return self._state

    def reset(self) -> ConversationState:
        logger.info("Returning to registration; clearing slot %s", self._slot.slot_key)
        self._slot.clear()
        self._state = ConversationState()
        return self.start()

    def _initialize_session(self) -> None:
        healthcare_context = self._rng.choice(list(HealthcareContext))
        privacy_style = self._rng.choice(list(PrivacyStyle))
        logger.info(
            "Initializing session with context=%s privacy_style=%s",
            healthcare_context.value,
            privacy_style.value,
        )
        self.dispatch(InitializeSession(healthcare_context=healthcare_context, privacy_style=privacy_style))
        self.dispatch(SetWelcomeMessage(text=build_welcome_message(healthcare_context, privacy_style)))
