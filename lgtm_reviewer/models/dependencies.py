"""Inputs of a single review call."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReviewRequest(BaseModel):
    """Everything the engine needs to review one change.

    Created once per ``review_diff`` call and discarded when it returns.
    """

    model_config = ConfigDict(frozen=True)

    diff: str = Field(description="Unified diff of the change under review")
    changed_files: tuple[str, ...] = Field(
        default=(), description="Changed paths, relative to the repository root"
    )
    repo_root: Path = Field(description="Root of the repository the model may read")
    repository_instructions: str | None = Field(
        default=None,
        description="Repository-specific reviewer instructions merged into the prompts",
    )

    @field_validator("diff")
    @classmethod
    def validate_diff_not_empty(cls, v: str) -> str:
        """Reject empty and whitespace-only diffs."""
        if not v or not v.strip():
            raise ValueError("diff cannot be empty")
        return v

    @field_validator("repository_instructions")
    @classmethod
    def blank_instructions_to_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v
