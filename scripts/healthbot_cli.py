#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = ROOT / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from healthbot_core import (
    ChatContext,
    ChatLogClient,
    ChatServiceClient,
    ClientSettings,
    ConsentError,
    ConversationOrchestrator,
    ConversationState,
    PrivacyStyle,
    RegistrationValidationError,
)
from healthbot_memory import ConversationSlot, SQLiteHealthbotDB

HELP_TEXT = "Commands: /home (return to registration), /privacy (toggle privacy details), /quit"


class TerminalView:
    """Prints messages appended since the last render."""

    def __init__(self) -> None:
        self._rendered = 0
        self._last_error: str | None = None

    def reset(self) -> None:
        self._rendered = 0
        self._last_error = None

    def __call__(self, state: ConversationState) -> None:
        if not state.is_registered:
            return
        for message in state.messages[self._rendered :]:
            label = "you" if message.sender.value == "user" else "bot"
            print(f"\n[{label}] {message.content}")
        self._rendered = len(state.messages)
        if state.error and state.error != self._last_error:
            print(f"\n[error] {state.error}")
        self._last_error = state.error


async def _ask(prompt: str) -> str:
    return (await asyncio.to_thread(input, prompt)).strip()


async def _register(orchestrator: ConversationOrchestrator) -> None:
    state = orchestrator.state
    print(f"\nHealthcare context: {state.healthcare_context.value.capitalize()}")
    print(f"Privacy style: {state.privacy_style.value.capitalize()}")
    print("Session ID: will be generated based on your information\n")
    while True:
        first_name = await _ask("First name: ")
        last_name = await _ask("Last name: ")
        date_of_birth = await _ask("Date of birth (YYYY-MM-DD): ")
        accepted = (await _ask("Accept the Terms of Use and Privacy Policy? [y/N]: ")).lower() in {"y", "yes"}
        try:
            orchestrator.register(first_name, last_name, date_of_birth, accepted)
        except RegistrationValidationError as exc:
            for message in exc.errors.values():
                print(f"  ! {message}")
            continue
        except ConsentError as exc:
            print(f"\n*** {exc} ***\n")
            continue
        return


def _print_privacy(state: ConversationState) -> None:
    if state.privacy_style != PrivacyStyle.PROGRESSIVE:
        print("\nPrivacy details are shown in the welcome message for this session.")
        return
    if state.privacy_box_visible:
        print(
            "\nYour privacy is important to us. We collect conversation data to provide personalized "
            "health guidance. Data is encrypted, anonymized, and never shared with third parties. "
            "You can request data deletion at any time."
        )
    else:
        print("\n(privacy details hidden)")


async def run(settings: ClientSettings) -> int:
    slot = ConversationSlot(SQLiteHealthbotDB(settings.state_db_path), settings.slot_key)
    context = ChatContext(slot)
    view = TerminalView()
    context.add_listener(view)
    orchestrator = ConversationOrchestrator(
        context,
        ChatServiceClient(settings.api_base_url, timeout_seconds=settings.chat_timeout_seconds),
        ChatLogClient(settings.api_base_url),
    )

    context.start()
    while True:
        state = orchestrator.state
        if not state.is_registered:
            print(f"\n{state.welcome_message}\n")
            await _register(orchestrator)
            state = orchestrator.state
            print(f"\nWelcome, {state.user_details.first_name}! {HELP_TEXT}")
        view(orchestrator.state)

        line = await _ask("> ")
        if line == "/quit":
            break
        if line == "/home":
            view.reset()
            orchestrator.reset()
            continue
        if line == "/privacy":
            _print_privacy(orchestrator.toggle_privacy_box())
            continue
        if orchestrator.state.is_loading:
            continue
        await orchestrator.send_message(line)

    await orchestrator.drain()
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Terminal client for the CAPS Healthbot backend.")
    parser.add_argument("--api-base-url", default=None)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    settings = ClientSettings.from_env()
    if args.api_base_url:
        settings = replace(settings, api_base_url=args.api_base_url.rstrip("/"))
    try:
        return asyncio.run(run(settings))
    except (KeyboardInterrupt, EOFError):
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
