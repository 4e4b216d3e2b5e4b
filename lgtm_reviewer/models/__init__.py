"""Data models for the review engine."""

from .dependencies import ReviewRequest
from .outputs import ReviewResult, ReviewVerdict, UsageMetadata
from .retry import Attempt, ClassifiedError, ErrorDisposition, RetryPolicy
from .review_state import ConversationState, ReviewState
from .tool_types import AccessDecision, DenialReason, ToolCall, ToolResponse

__all__ = [
    "ReviewRequest",
    "ReviewResult",
    "ReviewVerdict",
    "UsageMetadata",
    "RetryPolicy",
    "ErrorDisposition",
    "ClassifiedError",
    "Attempt",
    "ConversationState",
    "ReviewState",
    "ToolCall",
    "ToolResponse",
    "AccessDecision",
    "DenialReason",
]
