"""Exception hierarchy for the review engine.

A refused file request has no exception class here: it is a successful
tool response carrying an error string.
"""


class ReviewError(Exception):
    """Base exception for all review engine errors."""


class EmptyDiffError(ReviewError):
    """Raised when a review is requested for an empty diff."""

    def __init__(self) -> None:
        super().__init__("diff cannot be empty")


class ConfigurationError(ReviewError):
    """Raised when settings cannot produce a working reviewer."""


class NoAuthMethodError(ConfigurationError):
    """Raised when neither an API key nor ADC is configured."""

    def __init__(self) -> None:
        super().__init__(
            "no authentication method configured: either google_api_key must be "
            "set or google_use_adc must be true"
        )


class PromptError(ReviewError):
    """Raised when a prompt template cannot be loaded or rendered."""


class TransportError(ReviewError):
    """Raised when a call to the remote model fails."""

    def __init__(self, message: str, operation: str) -> None:
        self.operation = operation
        super().__init__(message)


class RetryExhaustedError(TransportError):
    """Raised when a retryable failure persists past the retry budget."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"operation {operation} failed after {attempts} attempts: {last_error}",
            operation,
        )


class ReviewCancelledError(ReviewError):
    """Raised when the caller signals cancellation through its cancel event."""

    def __init__(self, operation: str | None = None) -> None:
        self.operation = operation
        message = "review cancelled"
        if operation:
            message = f"review cancelled during {operation}"
        super().__init__(message)


class ConversationFailedError(ReviewError):
    """Raised when the exploration conversation cannot be carried out."""


class ProtocolViolationError(ReviewError):
    """Raised when the model breaks the conversation contract.

    These are never retried: asking again does not fix a model that
    ignores its instructions.
    """


class NoResponseError(ProtocolViolationError):
    """Raised when the model returns no candidates."""

    def __init__(self) -> None:
        super().__init__("no response from Gemini")


class EmptyResponseError(ProtocolViolationError):
    """Raised when the model's candidate carries no text."""

    def __init__(self) -> None:
        super().__init__("empty response from Gemini")


class MalformedVerdictError(ProtocolViolationError):
    """Raised when the decision text is not a valid verdict object."""

    def __init__(self, detail: str, raw_text: str) -> None:
        self.raw_text = raw_text
        super().__init__(f"failed to parse review response: {detail}")


class ExplorationLimitError(ProtocolViolationError):
    """Raised when the model keeps requesting files past the turn cap."""

    def __init__(self, max_turns: int) -> None:
        self.max_turns = max_turns
        super().__init__(
            f"model was still requesting files after {max_turns} exploration turns"
        )
