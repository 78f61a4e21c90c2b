from __future__ import annotations  # Chat-completion gateway for feedback synthesis

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence

import httpx

from config import LlmRoute


logger = logging.getLogger(__name__)

PREVIEW_CHARS = 120

_route_locks: Dict[str, threading.Lock] = {}
_route_locks_guard = threading.Lock()


class HttpResponse(Protocol):  # Subset of httpx.Response the gateway reads
    @property
    def status_code(self) -> int: ...

    @property
    def text(self) -> str: ...

    def json(self) -> Any: ...


class HttpClient(Protocol):  # Anything with an httpx-style post
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> HttpResponse: ...


class LlmGatewayError(RuntimeError):
    """Completion call failed; ``status`` and ``details`` mirror the provider answer when there was one."""

    def __init__(self, message: str, *, status: Optional[int] = None, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.details = details


def complete(
    messages: Sequence[Dict[str, str]],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> str:
    """Send one chat completion on ``cfg`` and return the reply text.

    ``options`` (temperature, max_tokens, ...) are merged into the payload.
    There is no retry: any transport failure, error status or shapeless
    answer raises ``LlmGatewayError``.
    """
    payload: Dict[str, Any] = {"model": cfg.model, "messages": _chat_messages(messages)}
    payload.update(options or {})
    headers = {"Content-Type": "application/json", **_auth_headers(cfg)}

    with _serialized(cfg):
        logger.info(
            "LLM request send route=%s model=%s preview=%s",
            cfg.name,
            cfg.model,
            _first_line(payload["messages"]),
        )
        with _http(client, cfg.timeout_s) as http:
            try:
                response = http.post(f"{cfg.base_url}{cfg.endpoint}", json=payload, headers=headers, timeout=cfg.timeout_s)
            except Exception as exc:  # noqa: BLE001
                logger.error("LLM transport failure route=%s: %s", cfg.name, exc)
                raise LlmGatewayError("LLM transport failed") from exc
            content = _reply_text(response)
    logger.info("LLM request done route=%s model=%s chars=%d", cfg.name, cfg.model, len(content))
    return content


def _auth_headers(cfg: LlmRoute) -> Dict[str, str]:
    headers = dict(cfg.extra_headers)
    if cfg.api_key:
        headers["Authorization"] = f"Bearer {cfg.api_key}"
    return headers


@contextmanager
def _serialized(cfg: LlmRoute) -> Iterator[None]:  # One in-flight call per route when sequential
    if not cfg.sequential:
        yield
        return
    key = cfg.name or f"{cfg.base_url}{cfg.endpoint}"
    with _route_locks_guard:
        lock = _route_locks.setdefault(key, threading.Lock())
    with lock:
        yield


@contextmanager
def _http(client: Optional[HttpClient], timeout: float) -> Iterator[HttpClient]:
    if client is not None:
        yield client
        return
    with httpx.Client(timeout=timeout) as owned:
        yield owned


def _reply_text(response: HttpResponse) -> str:
    if response.status_code >= 400:
        logger.error("LLM error status=%s body=%s", response.status_code, response.text[:500])
        raise LlmGatewayError(
            f"OpenAI API error: {response.status_code} {response.text}",
            status=response.status_code,
            details=response.text,
        )
    try:
        data = response.json()
    except Exception as exc:  # noqa: BLE001
        logger.error("LLM answer was not JSON: %s", exc)
        raise LlmGatewayError("LLM payload was not JSON", status=response.status_code) from exc
    choices = data.get("choices") if isinstance(data, dict) else None
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message") or {}
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"]
    raise LlmGatewayError("LLM response missing content", status=response.status_code)


def _chat_messages(messages: Sequence[Dict[str, str]]) -> List[Dict[str, str]]:  # Validate role/content pairs
    chat: List[Dict[str, str]] = []
    for item in messages:
        if not isinstance(item, dict):
            raise TypeError("Each chat message must be a dict with role/content")
        role = str(item.get("role", "")).strip()
        if not role:
            raise ValueError("Chat message missing role")
        chat.append({"role": role, "content": str(item.get("content", ""))})
    return chat


def _first_line(messages: Sequence[Dict[str, str]]) -> str:
    text = next((m["content"].strip() for m in messages if m["content"].strip()), "")
    line = text.splitlines()[0] if text else ""
    return line if len(line) <= PREVIEW_CHARS else line[: PREVIEW_CHARS - 3] + "..."
