"""Image fusion API route."""

from __future__ import annotations

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import FormData
from starlette.exceptions import HTTPException

from src.core.logger import get_logger
from src.core.metrics import record_fusion_outcome
from src.fusion.models import (
    ConfigError,
    FusionImage,
    FusionResult,
    GenerationFailed,
    RateLimited,
    UpstreamNoImage,
    ValidationError,
)
from src.fusion.service import fuse_images
from src.fusion.validator import MISSING_IMAGE_MESSAGE, parse_fusion_form
from src.schemas.fusion import FusionErrorResponse


router = APIRouter(prefix="/api", tags=["fusion"])
logger = get_logger("image_fusion.api")


def _error_response(
    status_code: int,
    payload: FusionErrorResponse,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=payload.to_content(), headers=headers)


def render_fusion_result(result: FusionResult) -> Response:
    if isinstance(result, FusionImage):
        return Response(content=result.image_bytes, media_type=result.mime_type)
    if isinstance(result, RateLimited):
        return _error_response(
            status.HTTP_429_TOO_MANY_REQUESTS,
            FusionErrorResponse(
                error="Rate limited by Gemini API. Please wait and try again.",
                retry_after_sec=result.retry_after_seconds,
            ),
            headers={"Retry-After": str(result.retry_after_seconds)},
        )
    if isinstance(result, UpstreamNoImage):
        return _error_response(
            status.HTTP_502_BAD_GATEWAY,
            FusionErrorResponse(error="Model did not return an image.", model_text=result.model_text),
        )
    if isinstance(result, GenerationFailed):
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            FusionErrorResponse(error="Failed to generate image.", details=result.message),
        )
    raise TypeError(f"unhandled fusion result: {type(result).__name__}")


@router.post("/fuse")
async def fuse(request: Request) -> Response:
    try:
        async with request.form() as form:
            return await _fuse_form(form)
    except HTTPException as exc:
        logger.info("fusion_request_rejected", reason="malformed multipart")
        record_fusion_outcome(outcome="validation_error")
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            FusionErrorResponse(error=MISSING_IMAGE_MESSAGE, details=str(exc.detail)),
        )


async def _fuse_form(form: FormData) -> Response:
    try:
        fusion_request = await parse_fusion_form(form)
        result = await run_in_threadpool(fuse_images, fusion_request)
    except ValidationError as exc:
        logger.info("fusion_request_rejected", reason=exc.reason)
        record_fusion_outcome(outcome="validation_error")
        return _error_response(status.HTTP_400_BAD_REQUEST, FusionErrorResponse(error=exc.message))
    except ConfigError as exc:
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            FusionErrorResponse(error=f"Server misconfigured: missing {exc.setting_name}."),
        )

    return render_fusion_result(result)
