from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class GenerationBackend(ABC):
    """Transport to a generative AI model. Implementations raise CollaboratorError on failure."""

    @abstractmethod
    async def generate_json(self, prompt: str, schema: Optional[Dict[str, Any]] = None) -> Any:
        """Return the model's answer parsed from JSON."""

    @abstractmethod
    async def generate_text(self, prompt: str) -> str:
        """Return the model's plain-text answer (may be empty)."""

    @abstractmethod
    async def generate_image(self, prompt: str) -> str:
        """Return a generated image as a data URI."""
