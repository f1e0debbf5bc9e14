#!/usr/bin/env python3
from __future__ import annotations

import importlib
import json
import os
import sys
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi.testclient import TestClient


@dataclass
class Scenario:
    name: str
    healthcare_context: str
    privacy_style: str
    message: str


def _provider_configured() -> bool:
    return any((os.getenv(key) or "").strip() for key in ("ANTHROPIC_API_KEY", "OPENROUTER_API_KEY", "OPENAI_API_KEY"))


def run() -> int:
    repo_root = Path(__file__).resolve().parents[1]
    backend_dir = repo_root / "backend"
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))

    os.environ.setdefault("HEALTHBOT_DB_PATH", str(Path(tempfile.mkdtemp()) / "smoke.sqlite"))
    backend_module = importlib.import_module("main")
    backend_module = importlib.reload(backend_module)

    session_id = f"smoke_{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')}"
    scenarios = [
        Scenario("Symptom Checking", "symptom checking", "minimal", "I have had a mild headache since this morning."),
        Scenario("Mental Health Support", "mental health support", "contextual", "I have been feeling stressed at work."),
        Scenario("Chronic Care", "chronic care management", "progressive", "How can I remember my blood pressure pills?"),
    ]
    live_chat = _provider_configured()
    results: list[dict[str, Any]] = []

    with TestClient(backend_module.app) as client:
        for scenario in scenarios:
            result: dict[str, Any] = {"name": scenario.name}
            reply = "(stub reply: no LLM provider configured)"
            if live_chat:
                chat_response = client.post(
                    "/api/chat",
                    json={
                        "userInput": scenario.message,
                        "healthcareContext": scenario.healthcare_context,
                        "privacyStyle": scenario.privacy_style,
                        "sessionId": session_id,
                    },
                )
                result["chat_status_code"] = chat_response.status_code
                if chat_response.status_code != 200:
                    result["pass"] = False
                    result["error"] = chat_response.json().get("error")
                    results.append(result)
                    continue
                reply = chat_response.json().get("reply") or ""
                result["reply_preview"] = reply[:240]

            log_response = client.post(
                "/api/chatlog",
                json={
                    "sessionId": session_id,
                    "healthcareContext": scenario.healthcare_context,
                    "privacyStyle": scenario.privacy_style,
                    "userInput": scenario.message,
                    "botReply": reply,
                    "userDetails": {"firstName": "Smoke", "lastName": "Test", "age": 40, "dateOfBirth": "1985-01-01"},
                },
            )
            result["chatlog_status_code"] = log_response.status_code
            result["pass"] = log_response.status_code == 200
            results.append(result)

        history = client.get(f"/api/chatlog/{session_id}").json()
        stats = client.get("/api/chatlog").json()

    summary = {
        "live_chat": live_chat,
        "session_id": session_id,
        "logged_count": history.get("count"),
        "statistics": stats.get("statistics"),
        "results": results,
    }
    print(json.dumps(summary, indent=2))
    ok = all(item.get("pass") for item in results) and history.get("count") == len(scenarios)
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(run())
