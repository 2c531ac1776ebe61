from __future__ import annotations

import base64

import pytest

from src.fusion import service
from src.fusion.models import (
    ConfigError,
    FusionImage,
    FusionRequest,
    GenerationFailed,
    ImageAsset,
    RateLimited,
    UpstreamNoImage,
)
from src.fusion.providers import GeminiApiError


class _FakeGenerator:
    provider_name = "fake"

    def __init__(self, *, body=None, error: Exception | None = None) -> None:
        self.calls = []
        self._body = body
        self._error = error

    def generate_content(self, parts):
        self.calls.append(parts)
        if self._error is not None:
            raise self._error
        return self._body


class _Factory:
    def __init__(self, generator: _FakeGenerator) -> None:
        self.generator = generator
        self.api_keys = []

    def __call__(self, api_key: str) -> _FakeGenerator:
        self.api_keys.append(api_key)
        return self.generator


def _request(instruction: str = "swap the bottle") -> FusionRequest:
    return FusionRequest(
        base_image=ImageAsset(data=b"base-bytes", mime_type="image/jpeg"),
        product_image=ImageAsset(data=b"product-bytes", mime_type=None),
        instruction=instruction,
    )


def _image_body(data: bytes, mime_type: str = "image/png") -> dict:
    return {
        "candidates": [
            {
                "content": {
                    "parts": [
                        {"inlineData": {"mimeType": mime_type, "data": base64.b64encode(data).decode("ascii")}}
                    ]
                }
            }
        ]
    }


@pytest.fixture
def api_key(monkeypatch) -> str:
    monkeypatch.setenv("GOOGLE_API_KEY", "secret-key")
    return "secret-key"


def test_builds_parts_in_order(api_key) -> None:
    factory = _Factory(_FakeGenerator(body=_image_body(b"out")))

    service.fuse_images(_request(), generator_factory=factory)

    assert factory.api_keys == [api_key]
    parts = factory.generator.calls[0]
    assert len(parts) == 3
    assert parts[0] == {
        "inlineData": {"mimeType": "image/jpeg", "data": base64.b64encode(b"base-bytes").decode("ascii")}
    }
    assert parts[1] == {
        "inlineData": {"mimeType": "image/png", "data": base64.b64encode(b"product-bytes").decode("ascii")}
    }
    assert parts[2] == {"text": f"{service.SYSTEM_FRAMING}\nUser instruction: swap the bottle"}


def test_returns_decoded_image(api_key) -> None:
    factory = _Factory(_FakeGenerator(body=_image_body(b"composed", "image/webp")))

    result = service.fuse_images(_request(), generator_factory=factory)

    assert result == FusionImage(image_bytes=b"composed", mime_type="image/webp")
    assert len(factory.generator.calls) == 1


def test_text_only_reply_is_upstream_no_image(api_key) -> None:
    body = {"candidates": [{"content": {"parts": [{"text": "a"}, {"text": "b"}]}}]}
    factory = _Factory(_FakeGenerator(body=body))

    assert service.fuse_images(_request(), generator_factory=factory) == UpstreamNoImage(model_text="a\nb")


def test_rate_limit_failure_is_classified(api_key) -> None:
    error = GeminiApiError(
        "quota exhausted",
        status=429,
        error_details=[{"@type": "type.googleapis.com/google.rpc.RetryInfo", "retryDelay": "37s"}],
    )
    factory = _Factory(_FakeGenerator(error=error))

    assert service.fuse_images(_request(), generator_factory=factory) == RateLimited(retry_after_seconds=37)


def test_unexpected_failure_is_generation_failed(api_key, monkeypatch) -> None:
    captured = []
    monkeypatch.setattr(service, "capture_exception", captured.append)
    error = ConnectionError("connection reset")
    factory = _Factory(_FakeGenerator(error=error))

    result = service.fuse_images(_request(), generator_factory=factory)

    assert result == GenerationFailed(message="connection reset")
    assert captured == [error]


def test_undecodable_inline_data_is_generation_failed(api_key) -> None:
    body = {"candidates": [{"content": {"parts": [{"inlineData": {"data": "!!not-base64"}}]}}]}
    factory = _Factory(_FakeGenerator(body=body))

    result = service.fuse_images(_request(), generator_factory=factory)

    assert isinstance(result, GenerationFailed)


def test_missing_credential_raises_before_any_call(monkeypatch) -> None:
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    factory = _Factory(_FakeGenerator(body=_image_body(b"never")))

    with pytest.raises(ConfigError) as exc_info:
        service.fuse_images(_request(), generator_factory=factory)

    assert exc_info.value.setting_name == "GOOGLE_API_KEY"
    assert factory.api_keys == []
    assert factory.generator.calls == []


def test_default_factory_builds_gemini_generator() -> None:
    generator = service.build_gemini_generator("abc")

    assert generator.provider_name == "gemini"
