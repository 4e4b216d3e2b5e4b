"""LLM-driven code review engine backed by Gemini."""

from .agents.code_reviewer import Reviewer
from .errors import (
    ConversationFailedError,
    EmptyDiffError,
    ProtocolViolationError,
    RetryExhaustedError,
    ReviewCancelledError,
    ReviewError,
    TransportError,
)
from .models.outputs import ReviewResult, UsageMetadata

__all__ = [
    "Reviewer",
    "ReviewResult",
    "UsageMetadata",
    "ReviewError",
    "EmptyDiffError",
    "ConversationFailedError",
    "ProtocolViolationError",
    "TransportError",
    "RetryExhaustedError",
    "ReviewCancelledError",
]
