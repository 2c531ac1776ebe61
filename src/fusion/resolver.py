"""Turn generation replies and failures into fusion results.

Reply inspection yields one of two variants:

- ``ImageReply``: the first candidate carries an inline-data part.
- ``TextReply``: no inline data; any text parts are kept as diagnostics.

Failure classification is a pure function from an arbitrary exception to a
``RateLimited`` or ``GenerationFailed`` result. The status code is looked up
both on the exception itself and on a nested ``response`` object, since client
libraries disagree on where they keep it.
"""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

from src.fusion.models import (
    DEFAULT_IMAGE_MIME_TYPE,
    FusionImage,
    FusionResult,
    GenerationFailed,
    RateLimited,
    UpstreamNoImage,
)


RATE_LIMIT_STATUS = 429
DEFAULT_RETRY_AFTER_SECONDS = 10
NO_CONTENT_PLACEHOLDER = "No content."

_RETRY_DELAY_PATTERN = re.compile(r"(\d+)(?:\.\d+)?s\s*$")


@dataclass(frozen=True)
class ImageReply:
    data: str
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class TextReply:
    texts: List[str]


ReplyVariant = Union[ImageReply, TextReply]


def _first_candidate_parts(body: Any) -> List[Dict[str, Any]]:
    if not isinstance(body, dict):
        return []
    candidates = body.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return []
    candidate = candidates[0]
    if not isinstance(candidate, dict):
        return []
    content = candidate.get("content")
    if not isinstance(content, dict):
        return []
    parts = content.get("parts")
    if not isinstance(parts, list):
        return []
    return [part for part in parts if isinstance(part, dict)]


def _inline_data(part: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    inline_data = part.get("inlineData") or part.get("inline_data")
    if isinstance(inline_data, dict) and inline_data.get("data"):
        return inline_data
    return None


def inspect_reply(body: Any) -> ReplyVariant:
    """Classify a generateContent body; only the first candidate is inspected."""

    parts = _first_candidate_parts(body)
    for part in parts:
        inline_data = _inline_data(part)
        if inline_data is not None:
            mime_type = inline_data.get("mimeType") or inline_data.get("mime_type")
            return ImageReply(data=str(inline_data["data"]), mime_type=mime_type or None)

    texts = [part["text"] for part in parts if isinstance(part.get("text"), str) and part["text"]]
    return TextReply(texts=texts)


def resolve_reply(body: Any) -> FusionResult:
    variant = inspect_reply(body)
    if isinstance(variant, ImageReply):
        return FusionImage(
            image_bytes=base64.b64decode(variant.data),
            mime_type=variant.mime_type or DEFAULT_IMAGE_MIME_TYPE,
        )
    if isinstance(variant, TextReply):
        return UpstreamNoImage(model_text="\n".join(variant.texts) or NO_CONTENT_PLACEHOLDER)
    raise TypeError(f"unhandled reply variant: {type(variant).__name__}")


def _status_of(value: Any) -> Optional[int]:
    for attr in ("status", "status_code"):
        status = getattr(value, attr, None)
        if isinstance(status, int) and not isinstance(status, bool):
            return status
    return None


def failure_status(exc: BaseException) -> Optional[int]:
    status = _status_of(exc)
    if status is not None:
        return status
    return _status_of(getattr(exc, "response", None))


def _error_details(exc: BaseException) -> Iterable[Any]:
    for attr in ("error_details", "errorDetails", "details"):
        details = getattr(exc, attr, None)
        if isinstance(details, (list, tuple)):
            return details
    return ()


def parse_retry_delay(value: Any) -> Optional[int]:
    """Parse a protobuf duration string such as ``"37s"`` into whole seconds."""

    if value is None:
        return None
    match = _RETRY_DELAY_PATTERN.search(str(value))
    if match is None:
        return None
    return int(match.group(1))


def retry_after_seconds(exc: BaseException) -> int:
    for detail in _error_details(exc):
        if not isinstance(detail, dict):
            continue
        if "RetryInfo" not in str(detail.get("@type") or ""):
            continue
        seconds = parse_retry_delay(detail.get("retryDelay") or detail.get("retry_delay"))
        if seconds is not None:
            return seconds
        break
    return DEFAULT_RETRY_AFTER_SECONDS


def failure_message(exc: BaseException) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message.strip():
        return message
    return str(exc) or type(exc).__name__


def classify_failure(exc: BaseException) -> FusionResult:
    if failure_status(exc) == RATE_LIMIT_STATUS:
        return RateLimited(retry_after_seconds=retry_after_seconds(exc))
    return GenerationFailed(message=failure_message(exc))
