"""
Integrations package initialization.
Exports the generation backend contract and the Gemini implementation.
"""
from .base import GenerationBackend
from .gemini import GeminiClient

__all__ = [
    "GenerationBackend",
    "GeminiClient",
]
