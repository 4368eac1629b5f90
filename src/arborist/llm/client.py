"""Minimal client for the Ollama HTTP API."""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, Sequence

import requests

from arborist.errors import LLMError

LOGGER = logging.getLogger(__name__)

DEFAULT_OLLAMA_URL = "http://localhost:11434"


class OllamaClient:
    """Synchronous, non-streaming text generation against a local Ollama server."""

    def __init__(
        self,
        base_url: str = DEFAULT_OLLAMA_URL,
        *,
        timeout: float = 120.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    def is_available(self) -> bool:
        try:
            response = self.session.get(f"{self.base_url}/api/tags", timeout=5)
        except requests.RequestException as exc:
            LOGGER.debug("Ollama availability check failed: %s", exc)
            return False
        return response.ok

    def generate(
        self,
        model: str,
        prompt: str,
        *,
        system: str | None = None,
        images: Sequence[bytes] | None = None,
    ) -> str:
        """Return the model's response text for ``prompt``.

        Images are sent inline as base64, which requires a vision-capable model.
        """
        payload: Dict[str, Any] = {"model": model, "prompt": prompt, "stream": False}
        if system:
            payload["system"] = system
        if images:
            payload["images"] = [base64.b64encode(data).decode("ascii") for data in images]

        try:
            response = self.session.post(
                f"{self.base_url}/api/generate", json=payload, timeout=self.timeout
            )
        except requests.Timeout as exc:
            raise LLMError(f"Ollama did not answer within {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise LLMError(f"Could not reach Ollama at {self.base_url}: {exc}") from exc

        if not response.ok:
            raise LLMError(f"Ollama returned HTTP {response.status_code}: {response.text[:200]}")
        try:
            body = response.json()
        except ValueError as exc:
            raise LLMError("Ollama returned a non-JSON response") from exc

        text = body.get("response") if isinstance(body, dict) else None
        if not isinstance(text, str):
            raise LLMError("Ollama response has no 'response' field")
        return text.strip()
