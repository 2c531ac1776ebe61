"""Schemas for the image fusion endpoint."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class FusionErrorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    error: str
    details: Optional[str] = None
    model_text: Optional[str] = Field(default=None, alias="modelText")
    retry_after_sec: Optional[int] = Field(default=None, alias="retryAfterSec")

    def to_content(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
