"""Server-Sent Events framing for the chat stream."""
from __future__ import annotations

import json
from typing import Any, Dict
from uuid import uuid4

EVENT_DELIMITER = "\n\n"
DATA_PREFIX = "data:"

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def event_id() -> str:
    return str(uuid4())


def encode_event(payload: Dict[str, Any]) -> str:
    return f"{DATA_PREFIX} {json.dumps(payload, ensure_ascii=False)}{EVENT_DELIMITER}"


def content_event(fragment: str) -> str:
    return encode_event({"content": fragment})


def done_event() -> str:
    return encode_event({"done": True, "id": event_id()})


def error_event(message: str) -> str:
    return encode_event({"error": message, "id": event_id()})

