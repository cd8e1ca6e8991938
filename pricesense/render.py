"""Presentation helpers for prediction results.

History is always an explicit list owned by the caller; nothing here keeps
state between calls.
"""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone

from jinja2 import DictLoader, Environment

from .contracts_models import PredictionResult

IST = timezone(timedelta(hours=5, minutes=30), "IST")

_CARD_TEMPLATE = """\
<div class="prediction-card" data-source="{{ r.price_source }}">
  <div class="card-header">
    <h3>{{ r.product_name }}</h3>
    <small>{{ rendered_at }}</small>
  </div>
  <div class="price-section">
    <div class="predicted-price">&#8377;{{ r.predicted_price | inr }}</div>
    <div class="price-range">Range: &#8377;{{ r.price_range.min | inr }} - &#8377;{{ r.price_range.max | inr }}</div>
  </div>
  <div class="info-grid">
    <div class="info-item"><strong>Category</strong><span>{{ r.category }}</span></div>
    <div class="info-item"><strong>Confidence</strong><span class="confidence-{{ level }}">{{ percent }}%</span></div>
    <div class="info-item"><strong>Market</strong><span>Indian Market</span></div>
    <div class="info-item"><strong>Currency</strong><span>INR (&#8377;)</span></div>
  </div>
  <div class="explanation-box">
    <h4>Analysis</h4>
    <ul>
    {%- for bullet in bullets %}
      <li>{{ bullet }}</li>
    {%- endfor %}
    </ul>
  </div>
  {%- if r.anomalies %}
  <div class="anomaly-box">
    <h4>Potential Issues</h4>
    <ul>
    {%- for anomaly in r.anomalies %}
      <li>{{ anomaly }}</li>
    {%- endfor %}
    </ul>
  </div>
  {%- endif %}
</div>
"""

_EMPTY_TEMPLATE = """\
<div class="empty-state">
  <h3>No Predictions Yet</h3>
  <p>Enter product details to get started</p>
</div>
"""


def format_inr(price: float | int | None) -> str:
    """Whole rupees with Indian digit grouping, e.g. 1234567 -> '12,34,567'."""
    if price is None or isinstance(price, bool):
        return "0"
    try:
        value = int(round(float(price)))
    except (TypeError, ValueError, OverflowError):
        return "0"
    sign = "-" if value < 0 else ""
    digits = str(abs(value))
    if len(digits) <= 3:
        return sign + digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return sign + ",".join(groups + [tail])


def confidence_percent(confidence: float) -> int:
    return int(round((confidence or 0) * 100))


def confidence_level(percent: int) -> str:
    if percent >= 80:
        return "high"
    if percent >= 60:
        return "medium"
    return "low"


_env = Environment(
    loader=DictLoader({"card.html": _CARD_TEMPLATE, "empty.html": _EMPTY_TEMPLATE}),
    autoescape=True,
)
_env.filters["inr"] = format_inr


def render_prediction_card(result: PredictionResult, rendered_at: datetime | None = None) -> str:
    moment = (rendered_at or datetime.now(timezone.utc)).astimezone(IST)
    percent = confidence_percent(result.confidence)
    return _env.get_template("card.html").render(
        r=result,
        rendered_at=moment.strftime("%d %b %Y, %I:%M %p"),
        percent=percent,
        level=confidence_level(percent),
        bullets=result.explanation_bullets or ["No explanation provided"],
    )


def add_prediction(history: list[PredictionResult], result: PredictionResult) -> list[PredictionResult]:
    """Return a new history with ``result`` first."""
    return [result, *history]


def render_history(history: list[PredictionResult], rendered_at: datetime | None = None) -> str:
    if not history:
        return _env.get_template("empty.html").render()
    return "\n".join(render_prediction_card(result, rendered_at) for result in history)


def render_text_card(result: PredictionResult) -> str:
    percent = confidence_percent(result.confidence)
    lines = [
        result.product_name,
        f"  Price:      INR {format_inr(result.predicted_price)}",
        f"  Range:      INR {format_inr(result.price_range.min)} - INR {format_inr(result.price_range.max)}",
        f"  Category:   {result.category}",
        f"  Confidence: {percent}% ({confidence_level(percent)})",
    ]
    if result.price_source != "model":
        lines.append(f"  Source:     {result.price_source}")
    lines.extend(f"  - {bullet}" for bullet in result.explanation_bullets)
    lines.extend(f"  ! {anomaly}" for anomaly in result.anomalies)
    return "\n".join(lines)


def export_filename(day: date | None = None) -> str:
    return f"price_predictions_{(day or date.today()).isoformat()}.json"


def export_predictions(history: list[PredictionResult]) -> str:
    return json.dumps(
        [result.to_contract_dict() for result in history],
        ensure_ascii=False,
        indent=2,
    )
