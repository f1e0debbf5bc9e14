from __future__ import annotations

import importlib
import random
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from healthbot_core import ChatContext  # noqa: E402
from healthbot_memory import ConversationSlot, SQLiteHealthbotDB  # noqa: E402

PROVIDER_ENV_KEYS = ("ANTHROPIC_API_KEY", "OPENROUTER_API_KEY", "OPENAI_API_KEY", "HEALTHBOT_CHAT_PROVIDER")


class LastChoice(random.Random):
    def choice(self, seq):
        return seq[-1]


@pytest.fixture
def backend_module(tmp_path, monkeypatch):
    db_path = tmp_path / "healthbot-test.sqlite"
    monkeypatch.setenv("HEALTHBOT_DB_PATH", str(db_path))
    # Keep CI deterministic; provider tests set their own keys.
    for key in PROVIDER_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)

    if "main" in sys.modules:
        module = importlib.reload(sys.modules["main"])
    else:
        module = importlib.import_module("main")
    return module


@pytest.fixture
def client(backend_module):
    with TestClient(backend_module.app) as test_client:
        yield test_client


@pytest.fixture
def state_db(tmp_path) -> SQLiteHealthbotDB:
    return SQLiteHealthbotDB(str(tmp_path / "client-state.sqlite"))


@pytest.fixture
def slot(state_db) -> ConversationSlot:
    return ConversationSlot(state_db)


@pytest.fixture
def context(slot) -> ChatContext:
    ctx = ChatContext(slot, rng=LastChoice())
    ctx.start()
    return ctx
