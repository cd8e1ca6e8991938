from __future__ import annotations

import json
import logging

from ...config import get_settings
from ...contracts_models import PredictRequest
from ..errors import InvalidInput, MethodNotAllowed

settings = get_settings()
logger = logging.getLogger("pricesense-ai")


def _decode_body(body: str | bytes | None) -> object:
    if body is None:
        return {}
    if isinstance(body, (bytes, bytearray)):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidInput("malformed_json", "Invalid JSON in request body") from exc
    if not body.strip():
        return {}
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        logger.info("Request body is not valid JSON: %s", exc)
        raise InvalidInput("malformed_json", "Invalid JSON in request body") from exc


def validate_request(method: str, body: str | bytes | None) -> PredictRequest:
    if (method or "").upper() != "POST":
        logger.info("Method not allowed: %s", method)
        raise MethodNotAllowed(method)

    parsed = _decode_body(body)
    specs = parsed.get("specs") if isinstance(parsed, dict) else None
    logger.info("Parsed request body: has_specs=%s", bool(specs))

    if not isinstance(specs, str) or not specs.strip():
        raise InvalidInput(
            "missing",
            "Product specifications are required and must be a non-empty string",
        )

    specs = specs.strip()
    if len(specs) > settings.SPECS_MAX_CHARS:
        raise InvalidInput(
            "too_long",
            "Product specifications are too long. "
            f"Please limit to {settings.SPECS_MAX_CHARS} characters.",
        )
    return PredictRequest(specs=specs)
