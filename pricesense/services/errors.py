from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class AiServiceError(Exception):
    code: str
    message: str
    details: Optional[Any] = None
    http_status: int = 500

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_contract_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code}


class MethodNotAllowed(AiServiceError):
    def __init__(self, method: str) -> None:
        super().__init__(
            code="METHOD_NOT_ALLOWED",
            message="Method Not Allowed",
            details={"method": method},
            http_status=405,
        )


class InvalidInput(AiServiceError):
    """Rejected request body. ``reason`` is one of missing, malformed_json, too_long."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(
            code="INVALID_INPUT",
            message=message,
            details={"reason": reason},
            http_status=400,
        )
        self.reason = reason


class ConfigurationError(AiServiceError):
    def __init__(self, message: str = "Server configuration error - API key missing") -> None:
        super().__init__(code="CONFIGURATION_ERROR", message=message, http_status=500)


class UpstreamTimeout(AiServiceError):
    def __init__(self, timeout_sec: float) -> None:
        super().__init__(
            code="UPSTREAM_TIMEOUT",
            message="AI service took too long to respond. Please try again.",
            details={"timeout_sec": timeout_sec},
            http_status=504,
        )


class UpstreamError(AiServiceError):
    user_message = "AI service temporarily unavailable. Please try again."

    def __init__(self, upstream_status: int | None, upstream_message: str = "") -> None:
        if upstream_status is None:
            code = "UPSTREAM_UNAVAILABLE"
            http_status = 502
        else:
            code = f"GEMINI_{upstream_status}"
            http_status = upstream_status if upstream_status >= 400 else 502
        super().__init__(
            code=code,
            message=self.user_message,
            details={"upstream_status": upstream_status, "upstream_message": upstream_message},
            http_status=http_status,
        )
        self.upstream_status = upstream_status
        self.upstream_message = upstream_message


class RateLimited(UpstreamError):
    user_message = "Too many requests. Please wait a moment and try again."


class AccessDenied(UpstreamError):
    user_message = "API access restricted. Please contact support."


class BadUpstreamRequest(UpstreamError):
    user_message = "Invalid request format. Please try different product specifications."


class UpstreamUnavailable(UpstreamError):
    pass


_STATUS_ERRORS: dict[int, type[UpstreamError]] = {
    429: RateLimited,
    403: AccessDenied,
    400: BadUpstreamRequest,
}


def upstream_error_for_status(status: int, upstream_message: str = "") -> UpstreamError:
    error_cls = _STATUS_ERRORS.get(status, UpstreamUnavailable)
    return error_cls(status, upstream_message)
