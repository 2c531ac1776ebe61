"""Multipart input validation for fusion requests."""

from __future__ import annotations

from typing import Any, Mapping

from starlette.datastructures import UploadFile

from src.fusion.models import FusionRequest, ImageAsset, ValidationError


BASE_IMAGE_FIELD = "baseImage"
PRODUCT_IMAGE_FIELD = "productImage"
PROMPT_FIELD = "prompt"

PROMPT_MAX_CHARS = 300
DEFAULT_INSTRUCTION = (
    "Replace the product in the base image with the product from the second image, "
    "matching perspective, lighting, shadows, and scale. Keep everything else unchanged."
)

MISSING_IMAGE_MESSAGE = f"Both {BASE_IMAGE_FIELD} and {PRODUCT_IMAGE_FIELD} are required."
PROMPT_TOO_LONG_MESSAGE = f"Prompt too long (max {PROMPT_MAX_CHARS} chars)."


def _missing_image() -> ValidationError:
    return ValidationError("missing image", MISSING_IMAGE_MESSAGE)


def _prompt_too_long() -> ValidationError:
    return ValidationError("instruction too long", PROMPT_TOO_LONG_MESSAGE)


def normalize_instruction(raw: Any) -> str:
    """Trim user text, enforce the length policy, and fall back to the default."""

    text = str(raw or "").strip()
    if len(text) > PROMPT_MAX_CHARS:
        raise _prompt_too_long()
    return text or DEFAULT_INSTRUCTION


async def _read_asset(upload: UploadFile) -> ImageAsset:
    data = await upload.read()
    return ImageAsset(data=data, mime_type=upload.content_type)


async def parse_fusion_form(form: Mapping[str, Any]) -> FusionRequest:
    """Build a FusionRequest from a parsed multipart form.

    Both image fields must be file entries; a plain text value under either
    name counts as missing. The prompt is optional.
    """

    base = form.get(BASE_IMAGE_FIELD)
    product = form.get(PRODUCT_IMAGE_FIELD)
    if not isinstance(base, UploadFile) or not isinstance(product, UploadFile):
        raise _missing_image()

    prompt = form.get(PROMPT_FIELD)
    if isinstance(prompt, UploadFile):
        prompt = None
    instruction = normalize_instruction(prompt)

    return FusionRequest(
        base_image=await _read_asset(base),
        product_image=await _read_asset(product),
        instruction=instruction,
    )


def validate_fusion_request(request: FusionRequest) -> FusionRequest:
    """Re-check an already built request. Valid requests pass through unchanged."""

    if not isinstance(request.base_image, ImageAsset) or not isinstance(request.product_image, ImageAsset):
        raise _missing_image()
    instruction = normalize_instruction(request.instruction)
    if instruction == request.instruction:
        return request
    return FusionRequest(
        base_image=request.base_image,
        product_image=request.product_image,
        instruction=instruction,
    )
