"""
Gemini generateContent integration over the public REST API.

Wraps every call with the process-local circuit breaker and a short
exponential backoff; anything that does not end in usable content is raised
as CollaboratorError so callers only ever handle one failure type.
"""
import asyncio
import base64
import json
import time
from typing import Any, Dict, List, Optional

import aiohttp

from adpilot.config import (
    BACKOFF_POLICY,
    GEMINI_API_BASE_URL,
    GEMINI_API_KEY,
    GEMINI_IMAGE_MODEL,
    GEMINI_TEXT_MODEL,
    GEMINI_TIMEOUT_SECONDS,
)
from adpilot.exceptions import CollaboratorError
from adpilot.integrations.base import GenerationBackend
from adpilot.utils import get_logger, log_performance
from adpilot.utils.backoff import compute_backoff_seconds, parse_retry_after
from adpilot.utils.circuit_breaker import GLOBAL_CIRCUIT_BREAKER, CircuitBreaker, model_key

logger = get_logger(__name__)

RETRYABLE_STATUSES = {429, 500, 502, 503, 504}


class GeminiClient(GenerationBackend):
    """Async Gemini client (text, JSON and image generation)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        text_model: str = GEMINI_TEXT_MODEL,
        image_model: str = GEMINI_IMAGE_MODEL,
        base_url: str = GEMINI_API_BASE_URL,
        timeout_seconds: float = GEMINI_TIMEOUT_SECONDS,
        max_attempts: Optional[int] = None,
        breaker: Optional[CircuitBreaker] = None,
    ):
        self.api_key = api_key or GEMINI_API_KEY
        self.text_model = text_model
        self.image_model = image_model
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.max_attempts = int(max_attempts or BACKOFF_POLICY["max_attempts"])
        self.breaker = breaker or GLOBAL_CIRCUIT_BREAKER
        self.logger = get_logger("integration.gemini")

    # ----------------------------- public API ----------------------------- #
    async def generate_json(self, prompt: str, schema: Optional[Dict[str, Any]] = None) -> Any:
        generation_config: Dict[str, Any] = {"responseMimeType": "application/json"}
        if schema:
            generation_config["responseSchema"] = schema
        data = await self._generate(self.text_model, prompt, generation_config)
        text = self._first_text(data)
        if not text:
            raise CollaboratorError("Model returned no content", operation="generate_json")
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            self.logger.error("Unparseable JSON from model", error=str(exc), preview=text[:200])
            raise CollaboratorError("Model returned malformed JSON", operation="generate_json") from exc

    async def generate_text(self, prompt: str) -> str:
        data = await self._generate(self.text_model, prompt, None)
        return self._first_text(data)

    async def generate_image(self, prompt: str) -> str:
        # Image models reject responseMimeType; send no generation config.
        data = await self._generate(self.image_model, prompt, None)
        for part in self._parts(data):
            inline = part.get("inlineData") or part.get("inline_data")
            if isinstance(inline, dict) and inline.get("data"):
                mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
                payload = inline["data"]
                # Reject payloads that are not valid base64 before they reach a draft.
                try:
                    base64.b64decode(payload, validate=True)
                except (ValueError, TypeError) as exc:
                    raise CollaboratorError("Model returned an invalid image payload", operation="generate_image") from exc
                return f"data:{mime};base64,{payload}"
        raise CollaboratorError("No image generated", operation="generate_image")

    # ---------------------------- internals ---------------------------- #
    @staticmethod
    def _parts(data: Dict[str, Any]) -> List[Dict[str, Any]]:
        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not candidates or not isinstance(candidates, list):
            return []
        content = candidates[0].get("content") or {}
        parts = content.get("parts") or []
        return [p for p in parts if isinstance(p, dict)]

    def _first_text(self, data: Dict[str, Any]) -> str:
        return "".join(p.get("text", "") for p in self._parts(data) if isinstance(p.get("text"), str)).strip()

    async def _generate(self, model: str, prompt: str, generation_config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if not self.api_key:
            raise CollaboratorError("GEMINI_API_KEY is not configured", operation=model)

        breaker_key = model_key("gemini", model)
        allow, reason = self.breaker.allow_call(breaker_key)
        if not allow:
            retry_in = self.breaker.retry_after(breaker_key)
            self.logger.warning(
                "Gemini call skipped due to circuit breaker",
                model=model,
                reason=reason,
                retry_after_seconds=round(retry_in, 1),
            )
            raise CollaboratorError(f"Generation temporarily unavailable ({reason})", operation=model)

        url = f"{self.base_url}/models/{model}:generateContent"
        body: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        if generation_config:
            body["generationConfig"] = generation_config
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

        attempts = 0
        last_error = "unknown error"
        start_time = time.time()
        while attempts < self.max_attempts:
            attempts += 1
            retryable = True
            retry_after = None
            try:
                async with aiohttp.ClientSession(timeout=self.timeout) as session:
                    async with session.post(url, json=body, headers=headers) as response:
                        if response.status == 200:
                            data = await response.json(content_type=None)
                            self.breaker.record_success(breaker_key)
                            log_performance(
                                operation="gemini_generate",
                                duration_ms=(time.time() - start_time) * 1000,
                                additional_data={"model": model, "attempts": attempts},
                            )
                            return data if isinstance(data, dict) else {}
                        detail = (await response.text())[:300]
                        last_error = f"HTTP {response.status}: {detail}"
                        retryable = response.status in RETRYABLE_STATUSES
                        retry_after = parse_retry_after(response.headers.get("Retry-After"))
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = str(e) or e.__class__.__name__
            except ValueError as e:
                # Body was not JSON
                last_error = f"invalid response body: {e}"
                retryable = False

            self.breaker.record_failure(breaker_key, last_error)
            if not retryable or attempts >= self.max_attempts:
                break
            backoff = compute_backoff_seconds(attempts, retry_after=retry_after)
            self.logger.warning(
                "Gemini call retry scheduled",
                model=model,
                attempt=attempts,
                backoff_seconds=round(backoff, 2),
                error=last_error,
            )
            await asyncio.sleep(backoff)

        self.logger.error("Gemini call failed", model=model, attempts=attempts, error=last_error)
        raise CollaboratorError(f"Generation failed: {last_error}", operation=model)


__all__ = ["GeminiClient"]
