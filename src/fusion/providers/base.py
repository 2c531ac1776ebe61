"""Provider contracts for the generation backend."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol


class GeminiApiError(RuntimeError):
    """Raised when the generation backend rejects or fails a call.

    Carries the HTTP status and the structured ``error.details`` list from the
    Google RPC error body so callers can look for retry hints.
    """

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        error_details: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.error_details = list(error_details or [])


class ContentGenerator(Protocol):
    provider_name: str

    def generate_content(self, parts: List[Dict[str, Any]]) -> Dict[str, Any]:
        raise NotImplementedError
