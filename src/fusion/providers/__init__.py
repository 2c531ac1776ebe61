"""Generation backend integrations."""

from src.fusion.providers.base import ContentGenerator, GeminiApiError
from src.fusion.providers.gemini_provider import GeminiContentGenerator

__all__ = [
    "ContentGenerator",
    "GeminiApiError",
    "GeminiContentGenerator",
]
