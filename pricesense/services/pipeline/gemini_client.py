from __future__ import annotations

import logging
from typing import Any

import requests

from ...config import Settings, get_api_key, get_settings
from ..errors import (
    ConfigurationError,
    UpstreamTimeout,
    UpstreamUnavailable,
    upstream_error_for_status,
)

logger = logging.getLogger("pricesense-ai")


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.reason or ""
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
        if payload.get("message"):
            return str(payload["message"])
    return response.reason or ""


def extract_generated_text(payload: Any) -> str:
    try:
        parts = payload["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    if not isinstance(parts, list):
        return ""
    texts = [part.get("text", "") for part in parts if isinstance(part, dict)]
    return "".join(text for text in texts if isinstance(text, str))


class GeminiClient:
    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.settings.LLM_TEMPERATURE,
                "topP": self.settings.LLM_TOP_P,
                "topK": self.settings.LLM_TOP_K,
                "maxOutputTokens": self.settings.LLM_MAX_OUTPUT_TOKENS,
                "responseMimeType": "application/json",
            },
        }

    def generate(self, prompt: str) -> str:
        """Single POST to generateContent. Returns the candidate text, possibly empty."""
        api_key = get_api_key()
        if not api_key:
            logger.error("GEMINI_API_KEY not found in environment")
            raise ConfigurationError()

        timeout = self.settings.REQUEST_TIMEOUT_SEC
        logger.info("Making request to Gemini model=%s", self.settings.GEMINI_MODEL)
        try:
            response = requests.post(
                self.settings.generate_url,
                json=self.build_payload(prompt),
                headers={
                    "Content-Type": "application/json",
                    "User-Agent": self.settings.USER_AGENT,
                    "x-goog-api-key": api_key,
                },
                timeout=timeout,
            )
        except requests.Timeout as exc:
            logger.warning("Gemini request timed out after %ss", timeout)
            raise UpstreamTimeout(timeout) from exc
        except requests.RequestException as exc:
            logger.warning("Gemini request failed: %s", type(exc).__name__)
            raise UpstreamUnavailable(None, type(exc).__name__) from exc

        logger.info("Gemini API response status: %s", response.status_code)
        if not 200 <= response.status_code < 300:
            message = _error_message(response)
            logger.error(
                "Gemini API error status=%s message=%s", response.status_code, message
            )
            raise upstream_error_for_status(response.status_code, message)

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Gemini response body is not JSON")
            return ""

        text = extract_generated_text(payload)
        if not text:
            logger.warning("No generated text in Gemini response")
        else:
            logger.info("Generated text length: %s", len(text))
        return text
