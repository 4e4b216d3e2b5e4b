"""Utility functions and helpers."""

from .error_classifier import classify_error, extract_retry_delay, is_retryable_error
from .retry import RetryCoordinator, compute_backoff

__all__ = [
    "classify_error",
    "extract_retry_delay",
    "is_retryable_error",
    "RetryCoordinator",
    "compute_backoff",
]
