"""
Failure Normalization

Error payloads from the remote service come in several shapes: a JSON
envelope with a "message" (or "error") field, a bare JSON string, a
plain-text body, or nothing usable at all. They are normalized here,
once, into a GatewayFailure before any orchestration code sees them.
"""

import json
from enum import Enum
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field


DEFAULT_ERROR_MESSAGE = "An unexpected error occurred."

# Plain-text bodies longer than this are assumed to be error pages
MAX_TEXT_MESSAGE_LENGTH = 300


class FailureKind(str, Enum):
    """What kind of failure the gateway observed."""
    UNAUTHORIZED = "unauthorized"  # HTTP 401; session is force-invalidated
    REJECTED = "rejected"          # error response carrying a structured message
    TRANSPORT = "transport"        # no response, or no structured message


class GatewayFailure(BaseModel):
    """Tagged, displayable failure value."""

    kind: FailureKind
    message: str = Field(
        default=DEFAULT_ERROR_MESSAGE,
        min_length=1,
    )
    status_code: Optional[int] = None
    structured: bool = Field(
        default=False,
        description="Was the message extracted from the response body?"
    )


class GatewayError(Exception):
    """Raised by the gateway for every failed call."""

    def __init__(self, failure: GatewayFailure):
        self.failure = failure
        super().__init__(failure.message)

    @property
    def kind(self) -> FailureKind:
        return self.failure.kind

    @property
    def message(self) -> str:
        return self.failure.message

    @property
    def status_code(self) -> Optional[int]:
        return self.failure.status_code


def extract_message(body: Any) -> Optional[str]:
    """Pull a message out of a decoded response body, if it has one."""
    if isinstance(body, str):
        text = body.strip()
        return text or None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


def _decode_error_body(response: httpx.Response) -> Optional[str]:
    if not response.content:
        return None

    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return extract_message(response.json())
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None

    if content_type.startswith("text/plain"):
        text = response.text.strip()
        if text and len(text) <= MAX_TEXT_MESSAGE_LENGTH:
            return text

    return None


def normalize_response(response: httpx.Response) -> GatewayFailure:
    """Normalize an unsuccessful HTTP response."""
    message = _decode_error_body(response)

    if response.status_code == 401:
        return GatewayFailure(
            kind=FailureKind.UNAUTHORIZED,
            message=message or DEFAULT_ERROR_MESSAGE,
            status_code=401,
            structured=message is not None,
        )

    if message is None:
        return GatewayFailure(
            kind=FailureKind.TRANSPORT,
            status_code=response.status_code,
        )

    return GatewayFailure(
        kind=FailureKind.REJECTED,
        message=message,
        status_code=response.status_code,
        structured=True,
    )


def normalize_transport_error(error: httpx.HTTPError) -> GatewayFailure:
    """Normalize a failure that produced no response at all."""
    return GatewayFailure(kind=FailureKind.TRANSPORT)
