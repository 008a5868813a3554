from __future__ import annotations  # Chat-completions client for configured LLM routes

import logging
import os
import re
import threading
from contextlib import nullcontext
from typing import Any, Dict, List, NamedTuple, Optional, Protocol, Sequence

import httpx

from config import LlmRoute


logger = logging.getLogger(__name__)

PREVIEW_CHARS = 120

_FENCED = re.compile(r"^```[\w-]*[ \t]*\n?(.*?)\n?\s*```$", re.DOTALL)

_ROUTE_LOCKS: Dict[str, threading.Lock] = {}
_ROUTE_LOCKS_GUARD = threading.Lock()


class HttpResponse(Protocol):  # Subset of httpx.Response the gateway reads
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...


class HttpClient(Protocol):  # Subset of httpx.Client the gateway calls
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> HttpResponse: ...


class TextGenerator(Protocol):  # Prompt-in, text-out collaborator used by services
    def generate(self, prompt: str) -> str: ...


class LlmGatewayError(RuntimeError):  # Raised when a route cannot produce reply text
    pass


class _Retryable(Exception):
    pass


class _ChatRequest(NamedTuple):
    url: str
    payload: Dict[str, Any]
    headers: Dict[str, str]


class RouteTextGenerator:  # Text generator bound to a single configured route
    def __init__(self, route: LlmRoute, *, client: Optional[HttpClient] = None) -> None:
        self._route = route
        self._client = client

    @property
    def route(self) -> LlmRoute:
        return self._route

    def generate(self, prompt: str) -> str:
        return generate_text(prompt, cfg=self._route, client=self._client)


def generate_text(
    prompt: str,
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> str:  # Single user-turn completion
    return chat([{"role": "user", "content": prompt}], cfg=cfg, client=client, options=options)


def chat(
    messages: Sequence[Dict[str, str]],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> str:
    """Return the reply text for ``messages``.

    Transport failures and 5xx replies are retried up to ``cfg.max_retries``
    times; 4xx replies and malformed bodies fail immediately. Routes marked
    ``sequential`` serialize their calls within the process.
    """

    request = _build_request(cfg, messages, options)
    with _route_lock(cfg) if cfg.sequential else nullcontext():
        return _send_with_retries(cfg, request, client)


def _build_request(
    cfg: LlmRoute,
    messages: Sequence[Dict[str, str]],
    options: Optional[Dict[str, Any]],
) -> _ChatRequest:
    payload: Dict[str, Any] = {"model": cfg.model, "messages": _normalize_messages(messages)}
    if cfg.temperature is not None:
        payload["temperature"] = cfg.temperature
    payload.update(options or {})

    headers = {"Content-Type": "application/json"}
    api_key = os.getenv(cfg.api_key_env) if cfg.api_key_env else None
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    headers.update(cfg.extra_headers)
    return _ChatRequest(url=f"{cfg.base_url}{cfg.endpoint}", payload=payload, headers=headers)


def _send_with_retries(cfg: LlmRoute, request: _ChatRequest, client: Optional[HttpClient]) -> str:
    attempts = cfg.max_retries + 1
    logger.info(
        "LLM request start route=%s model=%s attempts=%d preview=%s",
        cfg.name,
        cfg.model,
        attempts,
        _preview(request.payload["messages"]),
    )
    failure: Optional[BaseException] = None
    for attempt in range(1, attempts + 1):
        try:
            content = _send_once(request, cfg.timeout_s, client)
        except _Retryable as exc:
            logger.warning("LLM attempt %d/%d failed route=%s: %s", attempt, attempts, cfg.name, exc)
            failure = exc.__cause__ or exc
            continue
        logger.info("LLM request done route=%s attempt=%d chars=%d", cfg.name, attempt, len(content))
        return content
    logger.error("LLM request failed route=%s after %d attempts", cfg.name, attempts)
    raise LlmGatewayError(f"LLM request failed after {attempts} attempts") from failure


def _send_once(request: _ChatRequest, timeout: float, client: Optional[HttpClient]) -> str:
    if client is not None:
        return _read_reply(_post(client, request, timeout))
    with httpx.Client(timeout=timeout) as owned:
        return _read_reply(_post(owned, request, timeout))


def _post(client: HttpClient, request: _ChatRequest, timeout: float) -> HttpResponse:
    try:
        return client.post(request.url, json=request.payload, headers=request.headers, timeout=timeout)
    except Exception as exc:  # noqa: BLE001
        raise _Retryable(f"transport error: {exc}") from exc


def _read_reply(response: HttpResponse) -> str:
    status = response.status_code
    if status >= 500:
        raise _Retryable(f"server returned status {status}")
    if status >= 400:
        logger.error("LLM rejected request status=%s", status)
        raise LlmGatewayError(f"LLM returned status {status}")
    try:
        data = response.json()
    except ValueError as exc:
        raise LlmGatewayError("LLM payload was not JSON") from exc
    return _extract_content(data)


def _route_lock(cfg: LlmRoute) -> threading.Lock:
    with _ROUTE_LOCKS_GUARD:
        return _ROUTE_LOCKS.setdefault(cfg.name or f"{cfg.base_url}{cfg.endpoint}", threading.Lock())


def _normalize_messages(messages: Sequence[Dict[str, str]]) -> List[Dict[str, str]]:
    normalized: List[Dict[str, str]] = []
    for index, item in enumerate(messages):
        if not isinstance(item, dict):
            raise TypeError(f"Chat message {index} must be a mapping with role and content")
        role = str(item.get("role") or "").strip()
        if not role:
            raise ValueError(f"Chat message {index} is missing a role")
        normalized.append({"role": role, "content": str(item.get("content") or "")})
    return normalized


def _preview(messages: Sequence[Dict[str, str]]) -> str:  # First non-empty line, truncated for logs
    first = next((m["content"].strip() for m in messages if m["content"].strip()), "")
    line = first.splitlines()[0] if first else ""
    return line if len(line) <= PREVIEW_CHARS else line[: PREVIEW_CHARS - 3] + "..."


def _extract_content(data: Any) -> str:
    """Read reply text from an OpenAI-style body, or a bare ``content`` field."""

    if isinstance(data, dict):
        choices = data.get("choices")
        first = choices[0] if isinstance(choices, list) and choices else None
        message = first.get("message") if isinstance(first, dict) else None
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"]
        if isinstance(data.get("content"), str):
            return data["content"]
    raise LlmGatewayError("LLM response missing content")


def strip_code_fences(content: str) -> str:  # Unwrap a markdown code block around model output
    text = content.strip()
    match = _FENCED.match(text)
    if match:
        return match.group(1).strip()
    if text.startswith("```"):
        return text.partition("\n")[2].strip()
    return text
