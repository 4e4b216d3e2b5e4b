"""Types exchanged between the model and the file retrieval tool."""

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

FILE_TOOL_NAME = "get_file_content"
FILE_TOOL_ARGUMENT = "filepath"


class ToolCall(BaseModel):
    """A function call emitted by the model.

    ``arguments`` is kept as the raw mapping the model sent, so a call with a
    missing or non-string ``filepath`` can still be answered with an error.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    call_id: str | None = None

    @property
    def requested_path(self) -> str | None:
        """The requested path, or None if the argument is missing or not a string."""
        value = self.arguments.get(FILE_TOOL_ARGUMENT)
        return value if isinstance(value, str) else None


class ToolResponse(BaseModel):
    """Result of answering one tool call: file content or an error, never both."""

    model_config = ConfigDict(frozen=True)

    content: str | None = None
    error: str | None = None

    @model_validator(mode="after")
    def validate_exactly_one(self) -> "ToolResponse":
        """Ensure exactly one of content and error is set."""
        if (self.content is None) == (self.error is None):
            raise ValueError("ToolResponse must carry exactly one of content or error")
        return self

    @classmethod
    def success(cls, content: str) -> "ToolResponse":
        return cls(content=content)

    @classmethod
    def failure(cls, error: str) -> "ToolResponse":
        return cls(error=error)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_payload(self) -> dict[str, str]:
        """Render the response body sent back to the model."""
        if self.error is not None:
            return {"error": self.error}
        return {"content": self.content or ""}


class DenialReason(str, Enum):
    """Why the accessor refused a requested path."""

    MALFORMED_PATH = "malformed-path"
    ESCAPES_REPOSITORY = "escapes-repository"
    IGNORED_BY_POLICY = "ignored-by-policy"
    NOT_REGULAR_FILE = "not-regular-file"
    UNREADABLE = "unreadable"


class AccessDecision(BaseModel):
    """Outcome of validating one requested path: allowed or denied."""

    model_config = ConfigDict(frozen=True)

    resolved_path: Path | None = None
    reason: DenialReason | None = None
    detail: str = ""

    @classmethod
    def allowed(cls, resolved_path: Path) -> "AccessDecision":
        return cls(resolved_path=resolved_path)

    @classmethod
    def denied(cls, reason: DenialReason, detail: str) -> "AccessDecision":
        return cls(reason=reason, detail=detail)

    @property
    def is_allowed(self) -> bool:
        return self.reason is None and self.resolved_path is not None

    def describe(self) -> str:
        """Human-readable denial message for the model."""
        if self.is_allowed:
            return "allowed"
        return f"access denied ({self.reason.value}): {self.detail}"  # type: ignore[union-attr]
