from __future__ import annotations

from healthbot_core import ChatContext
from healthbot_core.models import ConversationState, HealthcareContext, Message, PrivacyStyle, Sender, UserDetails
from healthbot_core.transitions import AddMessage, RegisterUser, SetError, SetLoading, TogglePrivacyBox
from healthbot_core.welcome import build_welcome_message
from healthbot_memory import ConversationSlot

from conftest import LastChoice


def _details() -> UserDetails:
    return UserDetails(first_name="Ann", last_name="Lee", date_of_birth="2010-05-01", age=14, full_name="Ann Lee")


def test_first_start_picks_context_style_and_welcome(context, slot):
    state = context.state
    assert state.is_registered is False
    assert state.session_id is None
    assert state.healthcare_context == HealthcareContext.CHRONIC_CARE_MANAGEMENT
    assert state.privacy_style == PrivacyStyle.PROGRESSIVE
    assert state.welcome_message == build_welcome_message(state.healthcare_context, state.privacy_style)
    assert slot.load()["welcomeMessage"] == state.welcome_message


def test_welcome_message_has_no_emphasis_markers():
    for context_value in HealthcareContext:
        for style in PrivacyStyle:
            text = build_welcome_message(context_value, style)
            assert "*" not in text
            assert "Ready to begin?" in text
            assert text.startswith("# Welcome to Your Healthcare Assistant")


def test_every_dispatch_is_written_to_the_slot(context, slot):
    message = Message(id="m1", content="hi", timestamp="2024-05-01T00:00:00Z", sender=Sender.USER)
    context.dispatch(AddMessage(message=message))
    stored = slot.load()
    assert stored["messages"] == [message.to_dict()]
    assert "isLoading" not in stored
    assert "error" not in stored


def test_listeners_see_each_new_state(context):
    seen: list[ConversationState] = []
    context.add_listener(seen.append)
    context.dispatch(SetLoading(loading=True))
    context.dispatch(SetLoading(loading=False))
    assert [state.is_loading for state in seen] == [True, False]


def test_round_trip_restores_persisted_fields_and_resets_transient_ones(context, slot):
    context.dispatch(RegisterUser(user_details=_details(), session_id="abc_1"))
    context.dispatch(
        AddMessage(message=Message(id="m1", content="hi", timestamp="2024-05-01T00:00:00Z", sender=Sender.USER))
    )
    context.dispatch(TogglePrivacyBox())
    context.dispatch(SetError(text="HTTP error! status: 500"))
    context.dispatch(SetLoading(loading=True))
    before = context.state

    reloaded = ChatContext(slot, rng=LastChoice()).start()
    for field_name in (
        "session_id",
        "healthcare_context",
        "privacy_style",
        "user_details",
        "is_registered",
        "messages",
        "welcome_message",
    ):
        assert getattr(reloaded, field_name) == getattr(before, field_name)
    assert reloaded.is_loading is False
    assert reloaded.error is None
    assert reloaded.privacy_box_visible is False


def test_registered_reload_does_not_reroll_context(slot):
    first = ChatContext(slot, rng=LastChoice())
    first.start()
    first.dispatch(RegisterUser(user_details=_details(), session_id="abc_1"))
    welcome = first.state.welcome_message

    class FirstChoice(LastChoice):
        def choice(self, seq):
            return seq[0]

    reloaded = ChatContext(slot, rng=FirstChoice()).start()
    assert reloaded.healthcare_context == HealthcareContext.CHRONIC_CARE_MANAGEMENT
    assert reloaded.privacy_style == PrivacyStyle.PROGRESSIVE
    assert reloaded.welcome_message == welcome


def test_reset_clears_slot_and_starts_a_fresh_session(context, slot):
    context.dispatch(RegisterUser(user_details=_details(), session_id="abc_1"))
    context.dispatch(
        AddMessage(message=Message(id="m1", content="hi", timestamp="2024-05-01T00:00:00Z", sender=Sender.USER))
    )
    state = context.reset()
    assert state.is_registered is False
    assert state.session_id is None
    assert state.user_details is None
    assert state.messages == ()
    assert state.welcome_message
    assert slot.load()["isRegistered"] is False


def test_corrupt_snapshot_degrades_to_fresh_session(state_db):
    slot = ConversationSlot(state_db, "corrupt")
    slot.save(
        {
            "sessionId": None,
            "healthcareContext": "dentistry",
            "privacyStyle": "loud",
            "isRegistered": True,
            "messages": "nope",
        }
    )
    state = ChatContext(slot, rng=LastChoice()).start()
    assert state.is_registered is False
    assert state.healthcare_context == HealthcareContext.CHRONIC_CARE_MANAGEMENT
    assert state.messages == ()


def test_slots_are_isolated_by_key(state_db):
    ConversationSlot(state_db, "a").save({"sessionId": "a"})
    assert ConversationSlot(state_db, "b").load() == {}
    ConversationSlot(state_db, "a").clear()
    assert ConversationSlot(state_db, "a").load() == {}
