"""Classification of remote model failures into retryable and fatal errors.

Structured ``google.genai`` API errors are classified from their HTTP code
and RPC status. Every other exception falls back to pattern matching on its
text, since not every failure path in the SDK surfaces a structured error.
"""

import asyncio
import logging
import re
from http import HTTPStatus
from typing import Any

import httpx
from google.genai import errors as genai_errors

from lgtm_reviewer.models.retry import ClassifiedError, ErrorDisposition
from lgtm_reviewer.utils.durations import parse_duration

logger = logging.getLogger(__name__)

RETRYABLE_HTTP_CODES = frozenset(
    {
        HTTPStatus.REQUEST_TIMEOUT,
        HTTPStatus.TOO_MANY_REQUESTS,
        HTTPStatus.INTERNAL_SERVER_ERROR,
        HTTPStatus.BAD_GATEWAY,
        HTTPStatus.SERVICE_UNAVAILABLE,
        HTTPStatus.GATEWAY_TIMEOUT,
    }
)

RETRYABLE_RPC_STATUSES = frozenset(
    {"RESOURCE_EXHAUSTED", "INTERNAL", "UNAVAILABLE", "DEADLINE_EXCEEDED"}
)

# 501 is absent from both patterns.
_RETRYABLE_TEXT_PATTERNS = [
    re.compile(r"\bError (?:408|429|500|502|503|504)\b"),
    re.compile(r"^(?:408|429|500|502|503|504) "),
    re.compile(r"\b(?:RESOURCE_EXHAUSTED|INTERNAL|UNAVAILABLE|DEADLINE_EXCEEDED)\b"),
]

_RETRY_DELAY_TEXT = re.compile(
    r"""retryDelay['"]?\s*[:=]\s*['"]?([0-9.]+(?:ns|us|µs|ms|s|m|h)(?:[0-9.]+(?:ns|us|µs|ms|s|m|h))*)"""
)

_TRANSIENT_TRANSPORT_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    asyncio.TimeoutError,
)


def is_retryable_error(error: BaseException | None) -> bool:
    """Check whether an error is a transient failure worth retrying.

    Retryable: request timeout, rate limiting, and 5xx server errors except
    501 Not Implemented, plus the equivalent RPC statuses. Authentication
    and malformed-request errors are not retryable.
    """
    if error is None:
        return False

    if isinstance(error, genai_errors.APIError):
        code = error.code
        if code == HTTPStatus.NOT_IMPLEMENTED:
            return False
        if code in RETRYABLE_HTTP_CODES:
            return True
        return error.status in RETRYABLE_RPC_STATUSES

    if isinstance(error, _TRANSIENT_TRANSPORT_ERRORS):
        return True

    text = str(error)
    return any(pattern.search(text) for pattern in _RETRYABLE_TEXT_PATTERNS)


def _retry_info_entries(details: Any) -> list[dict[str, Any]]:
    """Collect the ``details`` entries of an API error response body."""
    if isinstance(details, list):
        return [entry for entry in details if isinstance(entry, dict)]
    if not isinstance(details, dict):
        return []

    nested = details.get("error")
    if isinstance(nested, dict):
        return _retry_info_entries(nested.get("details"))
    return _retry_info_entries(details.get("details"))


def extract_retry_delay(error: BaseException | None) -> float | None:
    """Extract a provider-suggested retry delay in seconds, if present."""
    if error is None:
        return None

    if isinstance(error, genai_errors.APIError):
        for entry in _retry_info_entries(getattr(error, "details", None)):
            if "RetryInfo" not in str(entry.get("@type", "")):
                continue
            retry_delay = entry.get("retryDelay")
            if not isinstance(retry_delay, str):
                continue
            try:
                delay = parse_duration(retry_delay)
            except ValueError:
                logger.debug(f"Ignoring unparseable retryDelay: {retry_delay!r}")
                continue
            if delay > 0:
                return delay

    match = _RETRY_DELAY_TEXT.search(str(error))
    if match:
        try:
            delay = parse_duration(match.group(1))
        except ValueError:
            return None
        if delay > 0:
            return delay

    return None


def classify_error(error: BaseException) -> ClassifiedError:
    """Annotate an error with its retry disposition and suggested delay."""
    if not is_retryable_error(error):
        return ClassifiedError(error=error, disposition=ErrorDisposition.FATAL)

    return ClassifiedError(
        error=error,
        disposition=ErrorDisposition.RETRYABLE,
        retry_delay=extract_retry_delay(error),
    )
