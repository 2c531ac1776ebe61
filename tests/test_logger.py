import base64
import json

import structlog
from structlog.testing import CapturingLogger

from src.core.logger import REDACTED, build_processors, redact_sensitive_values


def _render(**event) -> dict:
    capturing = CapturingLogger()
    logger = structlog.wrap_logger(capturing, processors=build_processors())
    logger.info("test_event", **event)
    return json.loads(capturing.calls[0].args[0])


def test_credential_keys_are_redacted() -> None:
    payload = _render(api_key="secret-key", headers={"x-goog-api-key": "secret-key", "accept": "json"})

    assert payload["api_key"] == REDACTED
    assert payload["headers"] == {"x-goog-api-key": REDACTED, "accept": "json"}
    assert "secret-key" not in json.dumps(payload)


def test_binary_values_are_replaced_by_length() -> None:
    payload = _render(image=b"\x89PNG\r\n", size=6)

    assert payload["image"] == "<6 bytes>"
    assert payload["size"] == 6


def test_base64_blobs_are_replaced() -> None:
    blob = base64.b64encode(b"x" * 600).decode("ascii")
    payload = _render(part={"inlineData": {"mimeType": "image/png", "data": blob}})

    assert payload["part"]["inlineData"]["mimeType"] == "image/png"
    assert payload["part"]["inlineData"]["data"] == f"<{len(blob)} chars base64>"


def test_event_name_and_plain_values_are_kept() -> None:
    event = redact_sensitive_values(None, "info", {"event": "fusion_generation_started", "mime_type": "image/png"})

    assert event == {"event": "fusion_generation_started", "mime_type": "image/png"}
