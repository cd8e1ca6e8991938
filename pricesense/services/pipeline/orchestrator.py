from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from ...contracts_models import PredictionResult
from .gemini_client import GeminiClient
from .normalize import normalize_prediction
from .prompts import build_price_prompt
from .validator import validate_request

logger = logging.getLogger("pricesense-ai")


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...


def get_generator() -> TextGenerator:
    return GeminiClient()


def predict_price(
    specs: str,
    generator: TextGenerator | None = None,
    now: datetime | None = None,
) -> PredictionResult:
    llm = generator or get_generator()
    prompt = build_price_prompt(specs, now)
    logger.info("Requesting price prediction for specs: %s...", specs[:50])
    raw = llm.generate(prompt)
    return normalize_prediction(raw, specs, now)


def run_pipeline(
    method: str,
    body: str | bytes | None,
    generator: TextGenerator | None = None,
    now: datetime | None = None,
) -> PredictionResult:
    payload = validate_request(method, body)
    result = predict_price(payload.specs, generator=generator, now=now)
    logger.info(
        "Successful prediction: %s - INR %s (source=%s)",
        result.product_name,
        result.predicted_price,
        result.price_source,
    )
    return result
