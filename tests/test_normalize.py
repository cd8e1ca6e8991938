import json
from datetime import datetime, timezone

import pytest

from pricesense.services.pipeline.normalize import (
    FALLBACK_ANOMALY,
    FALLBACK_BULLET,
    FALLBACK_CONFIDENCE,
    SYNTHETIC_PRICE_MAX,
    SYNTHETIC_PRICE_MIN,
    extract_currency_amount,
    normalize_prediction,
    product_name_from_specs,
    round_currency,
    synthetic_price,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
SPECS = "iPhone 15 Pro 256GB used condition"
UPSTREAM = {
    "predicted_price_inr": 65000,
    "range_inr": {"min": 60000, "max": 70000},
    "confidence": 0.8,
    "product": "iPhone 15 Pro 256GB",
    "category": "Smartphones",
    "specs_extracted": {"storage": "256GB", "condition": "used"},
    "explanation_bullets": ["..."],
    "anomalies": [],
}


def test_normalize_passes_valid_result_through():
    result = normalize_prediction(json.dumps(UPSTREAM), SPECS, NOW).to_contract_dict()
    for key, value in UPSTREAM.items():
        assert result[key] == value
    assert result["last_updated"] == "2024-05-01T12:00:00Z"
    assert result["price_source"] == "model"


def test_normalize_keeps_upstream_timestamp():
    data = dict(UPSTREAM, last_updated="2024-04-30T08:00:00Z")
    result = normalize_prediction(json.dumps(data), SPECS, NOW)
    assert result.generated_at == "2024-04-30T08:00:00Z"


def test_normalize_backfills_optional_fields():
    data = {
        "predicted_price_inr": 1200,
        "range_inr": {"min": 1000, "max": 1500},
        "product": "USB-C cable",
    }
    result = normalize_prediction(json.dumps(data), "USB-C cable 1m", NOW)
    assert result.category == "Unknown"
    assert result.extracted_specs == {}
    assert result.anomalies == []
    assert 0 <= result.confidence <= 1
    assert result.price_source == "model"


def test_normalize_widens_range_to_contain_price():
    data = dict(UPSTREAM, range_inr={"min": 70000, "max": 60000}, predicted_price_inr=72000)
    result = normalize_prediction(json.dumps(data), SPECS, NOW)
    assert result.price_range.min == 60000
    assert result.price_range.max == 72000


def test_normalize_clamps_confidence():
    data = dict(UPSTREAM, confidence=85)
    result = normalize_prediction(json.dumps(data), SPECS, NOW)
    assert result.confidence == 1.0


def _assert_fallback(result, point):
    assert result.confidence == FALLBACK_CONFIDENCE
    assert result.anomalies == [FALLBACK_ANOMALY]
    assert result.explanation_bullets == [FALLBACK_BULLET]
    assert result.category == "Unknown"
    assert result.extracted_specs == {}
    assert result.predicted_price == point
    assert result.price_range.min == round_currency(point * 0.9)
    assert result.price_range.max == round_currency(point * 1.1)
    assert result.price_range.min <= result.predicted_price <= result.price_range.max


def test_normalize_falls_back_on_plain_text():
    result = normalize_prediction("Sorry, I cannot provide an exact price.", SPECS, NOW)
    _assert_fallback(result, synthetic_price(SPECS))
    assert result.product_name == "iPhone 15 Pro 256GB used condition"
    assert result.price_source == "fallback_synthetic"


def test_normalize_fallback_uses_currency_amount_from_text():
    raw = "The phone usually sells for around ₹1,19,900 on Flipkart."
    result = normalize_prediction(raw, "iPhone 15 Pro, 256GB, sealed", NOW)
    _assert_fallback(result, 119900)
    assert result.price_range.min == 107910
    assert result.price_range.max == 131890
    assert result.product_name == "iPhone 15 Pro"
    assert result.price_source == "fallback_extracted"


@pytest.mark.parametrize(
    "data",
    [
        {k: v for k, v in UPSTREAM.items() if k != "predicted_price_inr"},
        {k: v for k, v in UPSTREAM.items() if k != "range_inr"},
        {k: v for k, v in UPSTREAM.items() if k != "product"},
        dict(UPSTREAM, predicted_price_inr=0),
        dict(UPSTREAM, predicted_price_inr=-100),
        dict(UPSTREAM, range_inr={"min": 60000, "max": -1}),
    ],
)
def test_normalize_falls_back_on_schema_failure(data):
    result = normalize_prediction(json.dumps(data), SPECS, NOW)
    _assert_fallback(result, synthetic_price(SPECS))


def test_normalize_fallback_on_empty_output():
    result = normalize_prediction("", ", , ", NOW)
    assert result.product_name == "Unknown Product"
    assert result.price_source == "fallback_synthetic"


def test_normalize_is_reproducible():
    first = normalize_prediction("garbage", SPECS, NOW).to_contract_dict()
    second = normalize_prediction("garbage", SPECS, NOW).to_contract_dict()
    assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)


def test_synthetic_price_within_bounds():
    for specs in ["a", "Dell XPS 13", "Bajaj ceiling fan", SPECS]:
        assert SYNTHETIC_PRICE_MIN <= synthetic_price(specs) <= SYNTHETIC_PRICE_MAX


@pytest.mark.parametrize(
    "text,expected",
    [
        ("costs ₹65,000", 65000),
        ("Rs. 2,499.50 only", 2500),
        ("INR 899", 899),
        ("price ₹ 12000 approx", 12000),
        ("no price here", None),
        ("₹0 is not a price, ₹450 is", 450),
        ("$499", None),
    ],
)
def test_extract_currency_amount(text, expected):
    assert extract_currency_amount(text) == expected


def test_product_name_from_specs():
    assert product_name_from_specs("  Sony WH-1000XM5 , black, wireless") == "Sony WH-1000XM5"
    assert product_name_from_specs("") == "Unknown Product"


def test_extract_currency_amount_skips_oversized_amounts():
    assert extract_currency_amount("roughly ₹" + "9" * 30) is None
    assert extract_currency_amount("₹" + "9" * 400 + " or ₹45,000") == 45000


def test_normalize_falls_back_on_oversized_amount_in_text():
    raw = "Sorry, roughly ₹" + "9" * 30 + " maybe"
    result = normalize_prediction(raw, "Rolex, gold", NOW)
    _assert_fallback(result, synthetic_price("Rolex, gold"))
    assert result.product_name == "Rolex"
    assert result.price_source == "fallback_synthetic"
