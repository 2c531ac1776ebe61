"""Image fusion pipeline: build the generation call and resolve its outcome."""

from __future__ import annotations

import base64
from typing import Any, Callable, Dict, List, Optional

from src.core.config import get_settings, read_google_api_key
from src.core.logger import get_logger
from src.core.metrics import record_fusion_outcome
from src.core.observability import capture_exception
from src.fusion.models import (
    ConfigError,
    FusionImage,
    FusionRequest,
    FusionResult,
    GenerationFailed,
    ImageAsset,
    RateLimited,
    UpstreamNoImage,
)
from src.fusion.providers import ContentGenerator, GeminiContentGenerator
from src.fusion.resolver import classify_failure, resolve_reply
from src.fusion.validator import validate_fusion_request


SYSTEM_FRAMING = (
    "Create a new image by combining the provided images. "
    "Maintain photorealism, perspective, and lighting. Output only the final composed image."
)

logger = get_logger("image_fusion.fusion")

GeneratorFactory = Callable[[str], ContentGenerator]


def build_gemini_generator(api_key: str) -> ContentGenerator:
    settings = get_settings()
    return GeminiContentGenerator(
        api_key=api_key,
        model=settings.gemini_image_model,
        base_url=settings.gemini_api_base_url,
        timeout_seconds=settings.gemini_timeout_seconds,
    )


def image_part(asset: ImageAsset) -> Dict[str, Any]:
    return {
        "inlineData": {
            "mimeType": asset.effective_mime_type,
            "data": base64.b64encode(asset.data).decode("ascii"),
        }
    }


def combined_instruction(instruction: str) -> str:
    return f"{SYSTEM_FRAMING}\nUser instruction: {instruction}"


def build_generation_parts(request: FusionRequest) -> List[Dict[str, Any]]:
    return [
        image_part(request.base_image),
        image_part(request.product_image),
        {"text": combined_instruction(request.instruction)},
    ]


def _outcome_label(result: FusionResult) -> str:
    if isinstance(result, FusionImage):
        return "succeeded"
    if isinstance(result, RateLimited):
        return "rate_limited"
    if isinstance(result, UpstreamNoImage):
        return "upstream_no_image"
    if isinstance(result, GenerationFailed):
        return "generation_failed"
    raise TypeError(f"unhandled fusion result: {type(result).__name__}")


def _log_outcome(result: FusionResult) -> None:
    if isinstance(result, FusionImage):
        logger.info(
            "fusion_generation_succeeded",
            mime_type=result.mime_type,
            image_size=len(result.image_bytes),
        )
    elif isinstance(result, RateLimited):
        logger.warning("fusion_upstream_rate_limited", retry_after_seconds=result.retry_after_seconds)
    elif isinstance(result, UpstreamNoImage):
        logger.warning("fusion_upstream_no_image", model_text=result.model_text[:240])
    elif isinstance(result, GenerationFailed):
        logger.error("fusion_generation_failed", error=result.message[:240])


def fuse_images(
    request: FusionRequest,
    *,
    generator_factory: Optional[GeneratorFactory] = None,
) -> FusionResult:
    """Run exactly one generation call for the request and resolve its result.

    Raises ``ValidationError`` for a request that breaks the input policy and
    ``ConfigError`` when the credential is missing, both before any network
    activity. Every other failure is converted into a ``FusionResult``.
    """

    request = validate_fusion_request(request)
    api_key = read_google_api_key()
    if not api_key:
        logger.error("fusion_config_missing", setting="GOOGLE_API_KEY")
        record_fusion_outcome(outcome="config_error")
        raise ConfigError("GOOGLE_API_KEY")

    factory = generator_factory or build_gemini_generator
    parts = build_generation_parts(request)

    logger.info(
        "fusion_generation_started",
        base_image_size=request.base_image.size,
        base_image_mime_type=request.base_image.effective_mime_type,
        product_image_size=request.product_image.size,
        product_image_mime_type=request.product_image.effective_mime_type,
        instruction_chars=len(request.instruction),
    )

    try:
        generator = factory(api_key)
        body = generator.generate_content(parts)
        result = resolve_reply(body)
    except Exception as exc:
        result = classify_failure(exc)
        if isinstance(result, GenerationFailed):
            capture_exception(exc)

    _log_outcome(result)
    record_fusion_outcome(outcome=_outcome_label(result))
    return result
