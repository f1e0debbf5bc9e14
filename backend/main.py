from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from healthbot_core.models import HealthcareContext, PrivacyStyle
from healthbot_core.prompts import CONTEXT_NAMES, build_system_prompt
from healthbot_memory import ChatLogStore, SQLiteHealthbotDB
from healthbot_memory.time_utils import to_iso, utc_now

_ENV_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

logger = logging.getLogger("healthbot.server")


def _load_local_env_file(path: Path) -> None:
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError:
        return
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if not _ENV_KEY_RE.fullmatch(key):
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        os.environ.setdefault(key, value)


def _bootstrap_local_env() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    for candidate in (repo_root / ".env", repo_root / "backend/.env"):
        if candidate.exists():
            _load_local_env_file(candidate)


_bootstrap_local_env()


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class ChatRequest(_CamelModel):
    user_input: str = Field(alias="userInput", min_length=1, max_length=2000)
    healthcare_context: HealthcareContext = Field(alias="healthcareContext")
    privacy_style: PrivacyStyle | None = Field(default=None, alias="privacyStyle")
    session_id: str | None = Field(default=None, alias="sessionId", max_length=255)


class ChatLogUserDetails(_CamelModel):
    first_name: str | None = Field(default=None, alias="firstName", max_length=100)
    last_name: str | None = Field(default=None, alias="lastName", max_length=100)
    age: int | None = None
    date_of_birth: str | None = Field(default=None, alias="dateOfBirth")
    full_name: str | None = Field(default=None, alias="fullName")


class ChatLogRequest(_CamelModel):
    session_id: str = Field(alias="sessionId", min_length=1, max_length=255)
    healthcare_context: str = Field(alias="healthcareContext", min_length=1, max_length=100)
    privacy_style: str = Field(alias="privacyStyle", min_length=1, max_length=50)
    user_input: str = Field(alias="userInput", min_length=1, max_length=2000)
    bot_reply: str = Field(alias="botReply", min_length=1, max_length=5000)
    user_details: ChatLogUserDetails | None = Field(default=None, alias="userDetails")


class HealthbotApp:
    def __init__(self) -> None:
        db_path = os.getenv(
            "HEALTHBOT_DB_PATH",
            str((Path(__file__).resolve().parent / "healthbot.sqlite")),
        )
        self.db = SQLiteHealthbotDB(db_path)
        self.chat_logs = ChatLogStore(self.db)


logging.basicConfig(level=os.getenv("HEALTHBOT_LOG_LEVEL", "INFO").upper())

container = HealthbotApp()
app = FastAPI(title="CAPS Healthbot Backend")

allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in allowed_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(StarletteHTTPException)
async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


_OPENAI_API_BASE = os.getenv("OPENAI_API_BASE_URL", "https://api.openai.com/v1").rstrip("/")
_OPENROUTER_API_BASE = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1").rstrip("/")
_ANTHROPIC_API_BASE = os.getenv("ANTHROPIC_API_BASE_URL", "https://api.anthropic.com/v1").rstrip("/")
_MAX_REPLY_TOKENS = 500
_TEMPERATURE = 0.7


class ProviderError(RuntimeError):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ChatProviderUnavailable(RuntimeError):
    pass


class ChatProviderRejected(RuntimeError):
    pass


def _provider_error_message(response: httpx.Response) -> str:
    message = response.text.strip()
    try:
        payload = response.json()
    except Exception:
        payload = None
    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, dict):
            msg = err.get("message")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
        msg = payload.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
    return message or f"HTTP {response.status_code}"


def _coerce_completion_text(response_json: dict[str, Any]) -> str:
    choices = response_json.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    message = choices[0].get("message", {})
    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict):
                text_value = item.get("text")
                if isinstance(text_value, str):
                    parts.append(text_value)
        return "\n".join(parts)
    return ""


def _coerce_anthropic_text(response_json: dict[str, Any]) -> str:
    content = response_json.get("content")
    if not isinstance(content, list):
        return ""
    parts: list[str] = []
    for item in content:
        if not isinstance(item, dict) or item.get("type") != "text":
            continue
        text_value = item.get("text")
        if isinstance(text_value, str) and text_value.strip():
            parts.append(text_value.strip())
    return "\n".join(parts).strip()


def _chat_provider_candidates() -> list[dict[str, Any]]:
    provider_preference = (os.getenv("HEALTHBOT_CHAT_PROVIDER") or "auto").strip().lower()
    candidates: list[dict[str, Any]] = []

    anthropic_api_key = (os.getenv("ANTHROPIC_API_KEY") or "").strip()
    if anthropic_api_key:
        candidates.append(
            {
                "provider": "anthropic",
                "base_url": _ANTHROPIC_API_BASE,
                "api_key": anthropic_api_key,
                "model": (os.getenv("ANTHROPIC_MODEL") or "claude-3-5-sonnet-latest").strip(),
            }
        )

    openrouter_api_key = (os.getenv("OPENROUTER_API_KEY") or "").strip()
    if openrouter_api_key:
        candidates.append(
            {
                "provider": "openrouter",
                "base_url": _OPENROUTER_API_BASE,
                "api_key": openrouter_api_key,
                "model": (os.getenv("OPENROUTER_MODEL") or "openai/gpt-4o-mini").strip(),
            }
        )

    openai_api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
    if openai_api_key:
        candidates.append(
            {
                "provider": "openai",
                "base_url": _OPENAI_API_BASE,
                "api_key": openai_api_key,
                "model": (os.getenv("HEALTHBOT_CHAT_MODEL") or "gpt-4-turbo-preview").strip(),
            }
        )

    if provider_preference in {"", "auto"}:
        return candidates

    aliases = {
        "claude": "anthropic",
        "anthropic": "anthropic",
        "openrouter": "openrouter",
        "openai": "openai",
    }
    canonical = aliases.get(provider_preference)
    if not canonical:
        return candidates
    preferred = [candidate for candidate in candidates if candidate["provider"] == canonical]
    others = [candidate for candidate in candidates if candidate["provider"] != canonical]
    return preferred + others


def _openai_compatible_chat(
    *,
    provider: dict[str, Any],
    system_prompt: str,
    user_message: str,
    timeout_seconds: float,
) -> str | None:
    payload = {
        "model": provider["model"],
        "max_tokens": _MAX_REPLY_TOKENS,
        "temperature": _TEMPERATURE,
        "presence_penalty": 0.1,
        "frequency_penalty": 0.1,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ],
    }
    headers: dict[str, str] = {
        "Authorization": f"Bearer {provider['api_key']}",
        "Content-Type": "application/json",
    }
    if provider["provider"] == "openrouter":
        site_url = (os.getenv("OPENROUTER_SITE_URL") or "").strip()
        if site_url:
            headers["HTTP-Referer"] = site_url
        headers["X-Title"] = (os.getenv("OPENROUTER_APP_NAME") or "CAPS Healthbot").strip()
    with httpx.Client(timeout=httpx.Timeout(timeout_seconds, connect=8.0)) as client:
        response = client.post(f"{provider['base_url']}/chat/completions", headers=headers, json=payload)
    if response.status_code >= 400:
        raise ProviderError(_provider_error_message(response), response.status_code)
    text = _coerce_completion_text(response.json()).strip()
    return text or None


def _anthropic_chat(
    *,
    provider: dict[str, Any],
    system_prompt: str,
    user_message: str,
    timeout_seconds: float,
) -> str | None:
    payload = {
        "model": provider["model"],
        "max_tokens": _MAX_REPLY_TOKENS,
        "temperature": _TEMPERATURE,
        "system": system_prompt,
        "messages": [{"role": "user", "content": user_message}],
    }
    headers = {
        "x-api-key": str(provider["api_key"]),
        "anthropic-version": os.getenv("ANTHROPIC_API_VERSION", "2023-06-01"),
        "Content-Type": "application/json",
    }
    with httpx.Client(timeout=httpx.Timeout(timeout_seconds, connect=8.0)) as client:
        response = client.post(f"{provider['base_url']}/messages", headers=headers, json=payload)
    if response.status_code >= 400:
        raise ProviderError(_provider_error_message(response), response.status_code)
    text = _coerce_anthropic_text(response.json())
    return text or None


def _llm_chat_reply(
    *,
    message: str,
    healthcare_context: HealthcareContext,
    privacy_style: PrivacyStyle | None,
) -> str:
    providers = _chat_provider_candidates()
    if not providers:
        raise ChatProviderUnavailable("No chat provider key found in runtime env.")

    system_prompt = build_system_prompt(healthcare_context, privacy_style)
    timeout_seconds = float(os.getenv("HEALTHBOT_LLM_TIMEOUT_SECONDS", "25"))
    rejected: list[str] = []
    for provider in providers:
        provider_name = str(provider.get("provider") or "unknown")
        call = _anthropic_chat if provider_name == "anthropic" else _openai_compatible_chat
        try:
            text = call(
                provider=provider,
                system_prompt=system_prompt,
                user_message=message,
                timeout_seconds=timeout_seconds,
            )
        except ProviderError as exc:
            logger.warning("chat llm call failed (%s, status %s): %s", provider_name, exc.status_code, exc)
            if exc.status_code in {401, 403}:
                rejected.append(provider_name)
            continue
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("chat llm call failed (%s): %s", provider_name, exc)
            continue
        if text:
            logger.info("chat llm provider used (%s)", provider_name)
            return text
        logger.info("chat llm provider empty response (%s)", provider_name)
    if rejected and len(rejected) == len(providers):
        raise ChatProviderRejected(f"Every provider rejected its API key: {', '.join(rejected)}")
    raise RuntimeError("No chat provider produced a reply.")


@app.get("/health")
def health():
    return {"ok": True, "service": "caps-healthbot"}


@app.post("/api/chat")
def chat(payload: ChatRequest):
    try:
        reply = _llm_chat_reply(
            message=payload.user_input,
            healthcare_context=payload.healthcare_context,
            privacy_style=payload.privacy_style,
        )
    except ChatProviderUnavailable as exc:
        logger.error("chat unavailable: %s", exc)
        raise HTTPException(status_code=503, detail="Chat provider is not configured.") from exc
    except ChatProviderRejected as exc:
        logger.error("chat provider rejected: %s", exc)
        raise HTTPException(
            status_code=401,
            detail="LLM API configuration error. Please check your API key and quota.",
        ) from exc
    except Exception as exc:
        logger.exception("chat error: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to generate response") from exc

    return {
        "success": True,
        "reply": reply,
        "sessionId": payload.session_id,
        "healthcareContext": CONTEXT_NAMES[payload.healthcare_context],
        "privacyStyle": payload.privacy_style.value if payload.privacy_style else None,
        "timestamp": to_iso(utc_now()),
    }


@app.post("/api/chatlog")
def chatlog_append(payload: ChatLogRequest):
    details = payload.user_details.model_dump() if payload.user_details else None
    try:
        record = container.chat_logs.append(
            session_id=payload.session_id,
            healthcare_context=payload.healthcare_context,
            privacy_style=payload.privacy_style,
            user_input=payload.user_input,
            bot_reply=payload.bot_reply,
            user_details=details,
        )
    except Exception as exc:
        logger.exception("chat log insert failed: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to save chat log") from exc
    return {
        "success": True,
        "message": "Chat log saved successfully",
        "logId": record["id"],
        "sessionId": payload.session_id,
        "timestamp": record["timestamp"],
    }


@app.get("/api/chatlog/{session_id}")
def chatlog_for_session(session_id: str):
    if len(session_id.strip()) < 3:
        raise HTTPException(status_code=400, detail="Invalid session ID format")
    rows = container.chat_logs.list_for_session(session_id)
    return {"success": True, "sessionId": session_id, "chatLogs": rows, "count": len(rows)}


@app.get("/api/chatlog")
def chatlog_statistics():
    stats = container.chat_logs.statistics()
    return {
        "success": True,
        "statistics": {
            "totalConversations": stats["total_conversations"],
            "uniqueSessions": stats["unique_sessions"],
            "breakdown": stats["breakdown"],
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "3001")))
