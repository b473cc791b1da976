"""HTTP client for the Gemini generateContent endpoint."""

from __future__ import annotations

import base64
import logging
import time
from typing import Protocol

import httpx

from ...config import settings
from ...errors import InferenceUnavailable

logger = logging.getLogger(__name__)


class InferenceService(Protocol):
    def generate(
        self,
        prompt: str,
        *,
        image: bytes | None = None,
        mime_type: str = "image/jpeg",
        json_response: bool = False,
    ) -> str:
        ...


class InferenceClient:
    """Single request/response text generation with an optional image attachment.

    Every failure mode (missing key, HTTP error, timeout, empty candidate)
    surfaces as ``InferenceUnavailable`` so callers can fall back uniformly.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.api_key = api_key or settings.gemini_api_key
        if not self.api_key:
            raise InferenceUnavailable("Gemini API key is not configured.")
        self.model = model or settings.gemini_model
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.inference_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.inference_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.inference_backoff_seconds

    def _get_client(self) -> httpx.Client:
        return httpx.Client(timeout=httpx.Timeout(self.timeout, connect=10.0))

    def _build_payload(self, prompt: str, image: bytes | None, mime_type: str, json_response: bool) -> dict:
        parts: list[dict] = [{"text": prompt}]
        if image is not None:
            parts.append(
                {
                    "inline_data": {
                        "mime_type": mime_type,
                        "data": base64.b64encode(image).decode("ascii"),
                    }
                }
            )
        generation_config: dict = {"maxOutputTokens": settings.gemini_max_output_tokens}
        if json_response:
            generation_config["responseMimeType"] = "application/json"
        return {"contents": [{"parts": parts}], "generationConfig": generation_config}

    def generate(
        self,
        prompt: str,
        *,
        image: bytes | None = None,
        mime_type: str = "image/jpeg",
        json_response: bool = False,
    ) -> str:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = self._build_payload(prompt, image, mime_type, json_response)
        headers = {"x-goog-api-key": self.api_key}

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.post(url, json=payload, headers=headers)
                    response.raise_for_status()
                    return extract_text(response.json())
                except httpx.HTTPStatusError as e:
                    status_code = e.response.status_code
                    # client errors other than rate limiting will not improve on retry
                    if status_code < 500 and status_code != 429:
                        raise InferenceUnavailable(f"Inference request rejected with HTTP {status_code}.") from e
                    attempt += 1
                    if attempt > self.max_retries:
                        raise InferenceUnavailable(f"Inference service returned HTTP {status_code}.") from e
                    time.sleep(self.backoff_seconds * attempt)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"Inference request timed out after {attempt} attempt(s): {e}")
                        raise InferenceUnavailable("Inference request timed out.") from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Inference timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except httpx.HTTPError as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise InferenceUnavailable(f"Failed to reach inference service: {e}") from e
                    time.sleep(self.backoff_seconds * attempt)
                except ValueError as e:
                    # body was not JSON
                    raise InferenceUnavailable(f"Inference service returned an unreadable body: {e}") from e
                except InferenceUnavailable:
                    raise
                except Exception as e:
                    logger.warning(f"Unexpected inference failure: {e!r}")
                    raise InferenceUnavailable(f"Inference call failed: {e}") from e
        finally:
            client.close()


def extract_text(body: dict) -> str:
    """Concatenate the text parts of the first candidate."""

    candidates = body.get("candidates") if isinstance(body, dict) else None
    if not isinstance(candidates, list) or not candidates:
        raise InferenceUnavailable("Inference response contained no candidates.")
    candidate = candidates[0]
    content = candidate.get("content") if isinstance(candidate, dict) else None
    if not isinstance(content, dict):
        raise InferenceUnavailable("Inference response candidate has no content.")
    parts = content.get("parts")
    if not isinstance(parts, list):
        raise InferenceUnavailable("Inference response content has no parts.")
    text = "".join(
        part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)
    )
    if not text.strip():
        raise InferenceUnavailable("Inference response contained no text.")
    return text


def check_health() -> bool:
    """Whether an inference client can be constructed from the current settings."""

    try:
        InferenceClient()
    except InferenceUnavailable:
        return False
    return True
