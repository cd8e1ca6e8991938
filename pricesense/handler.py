from __future__ import annotations

import base64
import json
import logging
from datetime import datetime, timezone
from typing import Any

from .config import get_settings
from .services.errors import AiServiceError, InvalidInput
from .services.pipeline import orchestrator
from .services.pipeline.orchestrator import TextGenerator

settings = get_settings()
logger = logging.getLogger("pricesense-ai")

SERVER_ERROR_MESSAGE = "Internal server error. Please try again later."


def cors_headers() -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": settings.CORS_ALLOW_ORIGIN,
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Content-Type": "application/json",
    }


def server_error_body() -> dict[str, Any]:
    return {
        "error": SERVER_ERROR_MESSAGE,
        "code": "SERVER_ERROR",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def handle_request(
    method: str,
    body: str | bytes | None,
    generator: TextGenerator | None = None,
) -> tuple[int, dict[str, Any]]:
    """Run one prediction request and map the outcome to (status, JSON body)."""
    logger.info("Function called with method: %s", method)
    if (method or "").upper() == "OPTIONS":
        return 200, {"message": "CORS preflight"}
    try:
        result = orchestrator.run_pipeline(method, body, generator=generator)
        return 200, result.to_contract_dict()
    except AiServiceError as exc:
        logger.warning("Request failed: %s", exc)
        return exc.http_status, exc.to_contract_dict()
    except Exception:
        logger.exception("Function execution error")
        return 500, server_error_body()


def _event_body(event: dict[str, Any]) -> str | bytes | None:
    body = event.get("body")
    if body is None or not event.get("isBase64Encoded"):
        return body
    try:
        return base64.b64decode(body, validate=True)
    except ValueError as exc:
        raise InvalidInput("malformed_json", "Invalid JSON in request body") from exc


def lambda_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Serverless entry point taking an ``httpMethod``/``body`` event."""
    method = event.get("httpMethod", "")
    if (method or "").upper() != "POST":
        # preflight and method checks never look at the body
        status, payload = handle_request(method, None)
    else:
        try:
            body = _event_body(event)
        except InvalidInput as exc:
            status, payload = exc.http_status, exc.to_contract_dict()
        else:
            status, payload = handle_request(method, body)
    return {
        "statusCode": status,
        "headers": cors_headers(),
        "body": json.dumps(payload, ensure_ascii=False),
    }
