"""
Content filter middleware for WordGuard Gateway

Screens relay request bodies for sensitive words. Blocked requests get a 403
and a violation log entry written in the background; a failing filter lets
the request through.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, List

from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from .auth import get_api_key_identity
from .content_filter import ContentFilter
from .models import ViolationData
from .violation_store import ViolationStore

logger = logging.getLogger(__name__)

BLOCKED_MESSAGE = "Request content contains sensitive words and was rejected"


def _text_parts(parts: Any) -> List[str]:
    return [
        part["text"]
        for part in parts
        if isinstance(part, dict) and part.get("type") == "text" and part.get("text")
    ]


def extract_text_from_request(body: Any) -> str:
    """
    Flatten the text fields of a completion request body.

    Covers chat ``messages`` (string or text-part content), ``system``
    (string or text parts), ``prompt`` and Gemini-style ``contents``.
    """
    if not isinstance(body, dict):
        return ""

    texts: List[str] = []

    messages = body.get("messages")
    if isinstance(messages, list):
        for message in messages:
            if not isinstance(message, dict):
                continue
            content = message.get("content")
            if isinstance(content, str):
                texts.append(content)
            elif isinstance(content, list):
                texts.extend(_text_parts(content))

    system = body.get("system")
    if isinstance(system, str):
        texts.append(system)
    elif isinstance(system, list):
        texts.extend(_text_parts(system))

    prompt = body.get("prompt")
    if isinstance(prompt, str) and prompt:
        texts.append(prompt)

    contents = body.get("contents")
    if isinstance(contents, list):
        for content in contents:
            parts = content.get("parts") if isinstance(content, dict) else None
            if isinstance(parts, list):
                texts.extend(
                    part["text"] for part in parts if isinstance(part, dict) and part.get("text")
                )

    return "\n".join(texts)


class ContentFilterMiddleware(BaseHTTPMiddleware):
    """Rejects requests whose text matches an enabled sensitive word."""

    def __init__(
        self,
        app,
        content_filter: ContentFilter,
        violation_store: ViolationStore,
        enabled: bool = True,
    ):
        super().__init__(app)
        self.content_filter = content_filter
        self.violation_store = violation_store
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next):
        if not self.enabled or request.method not in ("POST", "PUT", "PATCH"):
            return await call_next(request)

        api_key = get_api_key_identity(request)
        if api_key is None:
            return await call_next(request)

        try:
            body = json.loads(await request.body() or b"null")
        except ValueError:
            return await call_next(request)

        text = extract_text_from_request(body)
        if not text.strip():
            return await call_next(request)

        outcome = await run_in_threadpool(self.content_filter.try_check, text)
        # A failed check counts as no violation
        result = outcome.fail_open()
        if not result.is_violation:
            return await call_next(request)

        categories = result.matched_categories()
        logger.warning(
            f"Content filter blocked request from {api_key.name} ({api_key.id}): "
            f"matched {len(result.matches)} sensitive word(s) in categories: {', '.join(categories)}"
        )

        violation = ViolationData(
            api_key_name=api_key.name,
            matched_words=result.matches,
            content=text,
            request_path=request.url.path,
            client_ip=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
            request_id=request.headers.get("x-request-id"),
            details={
                "method": request.method,
                "model": body.get("model") or "unknown",
                "message_count": len(body["messages"]) if isinstance(body.get("messages"), list) else 0,
            },
        )

        return JSONResponse(
            status_code=403,
            content={
                "error": {"type": "content_violation", "message": BLOCKED_MESSAGE},
                "matched_categories": categories,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            background=BackgroundTask(self.violation_store.record, api_key.id, violation),
        )
