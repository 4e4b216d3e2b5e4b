"""Retry policy and error classification types."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RetryPolicy(BaseModel):
    """Immutable retry configuration shared by every review call.

    ``max_retries`` counts retries, not attempts: a retryable failure is
    attempted ``max_retries + 1`` times in total, and ``0`` disables the
    retry path entirely.
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=5, ge=0)
    initial_backoff: float = Field(default=1.0, gt=0, description="Seconds")
    max_backoff: float = Field(default=60.0, gt=0, description="Seconds")
    backoff_multiplier: float = Field(default=1.4, gt=1.0)

    @model_validator(mode="after")
    def validate_backoff_bounds(self) -> "RetryPolicy":
        """Ensure the backoff ceiling is not below the starting delay."""
        if self.max_backoff < self.initial_backoff:
            raise ValueError(
                f"max_backoff ({self.max_backoff}s) must be >= "
                f"initial_backoff ({self.initial_backoff}s)"
            )
        return self

    @property
    def max_attempts(self) -> int:
        """Total number of attempts a retryable failure gets."""
        return self.max_retries + 1


class ErrorDisposition(str, Enum):
    """Whether a failed remote call is worth trying again."""

    RETRYABLE = "retryable"
    FATAL = "fatal"


class ClassifiedError(BaseModel):
    """An error annotated with its retry disposition."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    error: BaseException
    disposition: ErrorDisposition
    retry_delay: float | None = Field(
        default=None, description="Provider-suggested delay in seconds"
    )

    @property
    def is_retryable(self) -> bool:
        return self.disposition is ErrorDisposition.RETRYABLE


class Attempt(BaseModel):
    """One failed try inside the retry loop."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    index: int
    error: BaseException
    wait: float
    provider_delay: bool = False
