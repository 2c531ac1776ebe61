"""Domain types for the image fusion pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


DEFAULT_IMAGE_MIME_TYPE = "image/png"


class ValidationError(ValueError):
    """Raised when the caller's multipart payload breaks the input policy."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.message = message


class ConfigError(RuntimeError):
    """Raised when the deployment is missing required configuration."""

    def __init__(self, setting_name: str) -> None:
        super().__init__(f"{setting_name.lower()}_missing")
        self.setting_name = setting_name


@dataclass(frozen=True)
class ImageAsset:
    data: bytes
    mime_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def effective_mime_type(self) -> str:
        return (self.mime_type or "").strip() or DEFAULT_IMAGE_MIME_TYPE


@dataclass(frozen=True)
class FusionRequest:
    base_image: ImageAsset
    product_image: ImageAsset
    instruction: str


@dataclass(frozen=True)
class FusionImage:
    image_bytes: bytes
    mime_type: str = DEFAULT_IMAGE_MIME_TYPE


@dataclass(frozen=True)
class RateLimited:
    retry_after_seconds: int


@dataclass(frozen=True)
class UpstreamNoImage:
    model_text: str


@dataclass(frozen=True)
class GenerationFailed:
    message: str


FusionFailure = Union[RateLimited, UpstreamNoImage, GenerationFailed]
FusionResult = Union[FusionImage, FusionFailure]
