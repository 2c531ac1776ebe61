"""Gemini multimodal generation client."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from src.fusion.providers.base import ContentGenerator, GeminiApiError


class GeminiContentGenerator(ContentGenerator):
    provider_name = "gemini"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_seconds: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._api_key = api_key.strip()
        self._model = model.strip()
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._client = client

    def _endpoint(self) -> str:
        if not self._model:
            raise GeminiApiError("gemini_model_missing")
        return f"{self._base_url}/models/{self._model}:generateContent"

    def _headers(self) -> Dict[str, str]:
        if not self._api_key:
            raise GeminiApiError("gemini_api_key_missing")
        return {
            "x-goog-api-key": self._api_key,
            "Content-Type": "application/json",
        }

    @staticmethod
    def _error_from_response(response: httpx.Response) -> GeminiApiError:
        message = ""
        details: List[Dict[str, Any]] = []
        try:
            body = response.json()
        except ValueError:
            body = None

        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            message = str(error.get("message") or "").strip()
            raw_details = error.get("details")
            if isinstance(raw_details, list):
                details = [item for item in raw_details if isinstance(item, dict)]

        if not message:
            message = response.text.strip()
            if len(message) > 240:
                message = message[:240] + "..."
        if not message:
            message = f"gemini_request_failed status={response.status_code}"

        return GeminiApiError(message, status=response.status_code, error_details=details)

    def generate_content(self, parts: List[Dict[str, Any]]) -> Dict[str, Any]:
        request_body = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "responseModalities": ["TEXT", "IMAGE"],
            },
        }

        if self._client is not None:
            response = self._client.post(self._endpoint(), headers=self._headers(), json=request_body)
        else:
            with httpx.Client(timeout=self._timeout_seconds) as client:
                response = client.post(self._endpoint(), headers=self._headers(), json=request_body)

        if response.status_code < 200 or response.status_code >= 300:
            raise self._error_from_response(response)

        try:
            body = response.json()
        except ValueError as exc:
            raise GeminiApiError("gemini_invalid_json_response", status=response.status_code) from exc

        if not isinstance(body, dict):
            raise GeminiApiError("gemini_invalid_payload", status=response.status_code)
        return body
