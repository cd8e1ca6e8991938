from __future__ import annotations

import hashlib
import json
import logging
import random
import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from pydantic import ValidationError

from ...config import get_settings
from ...contracts_models import PredictionResult, PriceRange, UpstreamPrediction
from .prompts import utc_timestamp

settings = get_settings()
logger = logging.getLogger("pricesense-ai")

RAW_LOG_MAX_CHARS = 500

FALLBACK_CONFIDENCE = 0.5
FALLBACK_RANGE_LOW = 0.9
FALLBACK_RANGE_HIGH = 1.1
SYNTHETIC_PRICE_MIN = 5_000
SYNTHETIC_PRICE_MAX = 105_000
# amounts quoted in text above this are not treated as prices
MAX_CURRENCY_AMOUNT = Decimal("1000000000000")
FALLBACK_PRODUCT = "Unknown Product"
FALLBACK_CATEGORY = "Unknown"
FALLBACK_BULLET = (
    "This is an approximate estimate; verify against current listings "
    "on Indian marketplaces before relying on it."
)
FALLBACK_ANOMALY = (
    "The AI response could not be parsed, so a fallback estimate was used."
)

# currency marker followed by an amount, e.g. "₹1,19,900" or "Rs. 65000.50"
_CURRENCY_AMOUNT = re.compile(
    r"(?:₹|\bRs\.?|\bINR)\s*([0-9][0-9,]*(?:\.[0-9]+)?)",
    re.IGNORECASE,
)
_FENCE_OPEN = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```\s*$")


def round_currency(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def strip_code_fences(text: str) -> str:
    stripped = _FENCE_OPEN.sub("", text or "", count=1)
    stripped = _FENCE_CLOSE.sub("", stripped, count=1)
    return stripped.strip()


def parse_upstream_prediction(raw: str) -> tuple[UpstreamPrediction | None, str | None]:
    """Strict JSON parse plus schema check. Returns (prediction, error)."""
    candidate = strip_code_fences(raw)
    if not candidate:
        return None, "Empty response."
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        return None, str(exc)
    if not isinstance(parsed, dict):
        return None, "Parsed JSON must be an object."
    try:
        return UpstreamPrediction.model_validate(parsed), None
    except ValidationError as exc:
        return None, "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )


def _reconcile_range(price: float, low: float, high: float) -> PriceRange:
    if low > high:
        low, high = high, low
    if not low <= price <= high:
        logger.warning(
            "Predicted price %s outside range [%s, %s]; widening range", price, low, high
        )
        low = min(low, price)
        high = max(high, price)
    return PriceRange(min=low, max=high)


def result_from_upstream(
    prediction: UpstreamPrediction, now: datetime | None = None
) -> PredictionResult:
    confidence = prediction.confidence
    if confidence is None:
        confidence = FALLBACK_CONFIDENCE
    elif not 0 <= confidence <= 1:
        logger.warning("Confidence %s out of range; clamping", confidence)
        confidence = min(1.0, max(0.0, confidence))

    return PredictionResult(
        predicted_price=prediction.predicted_price_inr,
        price_range=_reconcile_range(
            prediction.predicted_price_inr,
            prediction.range_inr.min,
            prediction.range_inr.max,
        ),
        confidence=confidence,
        product_name=prediction.product,
        category=prediction.category or FALLBACK_CATEGORY,
        extracted_specs=prediction.specs_extracted or {},
        explanation_bullets=prediction.explanation_bullets or [],
        anomalies=prediction.anomalies or [],
        market_sources=prediction.market_sources or [],
        generated_at=prediction.last_updated or utc_timestamp(now),
        price_source="model",
    )


def extract_currency_amount(text: str) -> int | None:
    for match in _CURRENCY_AMOUNT.finditer(text or ""):
        digits = match.group(1).replace(",", "")
        try:
            value = Decimal(digits)
            if not value.is_finite() or value > MAX_CURRENCY_AMOUNT:
                continue
            amount = int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        except (ValueError, ArithmeticError):
            continue
        if amount >= 1:
            return amount
    return None


def synthetic_price(specs: str) -> int:
    # seeded from the input so the same specs always yield the same price
    seed = int(hashlib.sha256(specs.encode("utf-8")).hexdigest()[:16], 16)
    rng = random.Random(seed)
    return rng.randint(SYNTHETIC_PRICE_MIN, SYNTHETIC_PRICE_MAX)


def product_name_from_specs(specs: str) -> str:
    first = (specs or "").split(",", 1)[0].strip()
    return first or FALLBACK_PRODUCT


def fallback_result(raw: str, specs: str, now: datetime | None = None) -> PredictionResult:
    price = extract_currency_amount(raw)
    source = "fallback_extracted"
    if price is None:
        price = synthetic_price(specs)
        source = "fallback_synthetic"

    return PredictionResult(
        predicted_price=price,
        price_range=PriceRange(
            min=round_currency(price * FALLBACK_RANGE_LOW),
            max=round_currency(price * FALLBACK_RANGE_HIGH),
        ),
        confidence=FALLBACK_CONFIDENCE,
        product_name=product_name_from_specs(specs),
        category=FALLBACK_CATEGORY,
        extracted_specs={},
        explanation_bullets=[FALLBACK_BULLET],
        anomalies=[FALLBACK_ANOMALY],
        market_sources=[],
        generated_at=utc_timestamp(now),
        price_source=source,
    )


def normalize_prediction(
    raw: str, specs: str, now: datetime | None = None
) -> PredictionResult:
    prediction, error = parse_upstream_prediction(raw)
    if prediction is not None:
        try:
            result = result_from_upstream(prediction, now)
        except ValidationError as exc:
            prediction, error = None, str(exc)
    if prediction is not None:
        logger.info(
            "Parsed AI response for product=%s price=%s",
            result.product_name,
            result.predicted_price,
        )
        if settings.DEBUG_AI:
            logger.info("AI raw output (truncated): %s", (raw or "")[:RAW_LOG_MAX_CHARS])
        return result

    logger.warning("Failed to parse AI JSON response: %s", error)
    logger.warning("Raw AI response (truncated): %s", (raw or "")[:RAW_LOG_MAX_CHARS])
    result = fallback_result(raw, specs, now)
    logger.info(
        "Fallback estimate source=%s price=%s", result.price_source, result.predicted_price
    )
    return result
