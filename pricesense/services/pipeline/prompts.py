from __future__ import annotations

import json
from datetime import datetime, timezone

MARKET = "India"
CURRENCY = "INR"

ANALYST_ROLE = (
    f"You are an expert {MARKET} market price analyst. "
    f"All prices are in {CURRENCY} (Indian Rupees)."
)

RESPONSE_FIELDS = (
    "predicted_price_inr",
    "range_inr",
    "confidence",
    "product",
    "category",
    "specs_extracted",
    "explanation_bullets",
    "anomalies",
    "market_sources",
    "last_updated",
)


def utc_timestamp(now: datetime | None = None) -> str:
    moment = now or datetime.now(timezone.utc)
    return moment.isoformat().replace("+00:00", "Z")


def response_schema_example(now: datetime | None = None) -> dict[str, object]:
    return {
        "predicted_price_inr": 50000,
        "range_inr": {"min": 45000, "max": 55000},
        "confidence": 0.8,
        "product": "Clean Product Name",
        "category": "Product Category",
        "specs_extracted": {"brand": "value", "model": "value"},
        "explanation_bullets": [
            "Price based on current market analysis",
            "Considered brand positioning in India",
            "Factored in local demand and availability",
        ],
        "anomalies": [],
        "market_sources": ["Amazon India", "Flipkart"],
        "last_updated": utc_timestamp(now),
    }


def build_price_prompt(specs: str, now: datetime | None = None) -> str:
    schema_json = json.dumps(response_schema_example(now), ensure_ascii=False, indent=4)
    return f"""
{ANALYST_ROLE}
Analyze these product specifications and predict the current market price in {MARKET}: "{specs.strip()}"

Consider:
- Current {MARKET} market prices from major platforms (Amazon India, Flipkart, etc.)
- Product condition, brand, specifications
- Local demand and supply factors
- GST and import duties if applicable
- Regional price variations

Field types:
- predicted_price_inr: number
- range_inr.min, range_inr.max: numbers
- confidence: number between 0 and 1
- product, category: text
- specs_extracted: object mapping text to text
- explanation_bullets, anomalies, market_sources: lists of text
- last_updated: ISO-8601 timestamp

Respond with ONLY valid JSON in this exact format:
{schema_json}

Ensure all prices are realistic for the {MARKET} market and in {CURRENCY}.
""".strip()
