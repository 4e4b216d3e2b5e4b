"""Output models for the review engine."""

from pydantic import BaseModel, ConfigDict, Field, StrictBool


class ReviewVerdict(BaseModel):
    """The structured object the model returns in the decision phase."""

    lgtm: StrictBool
    comments: str


class UsageMetadata(BaseModel):
    """Token counts and timing for one review, summed over every remote call."""

    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = 0
    response_tokens: int = 0
    total_tokens: int = 0
    remote_calls: int = 0
    exploration_turns: int = 0
    tool_calls: int = 0
    duration_seconds: float = 0.0

    def add_tokens(
        self, prompt_tokens: int, response_tokens: int, total_tokens: int
    ) -> "UsageMetadata":
        """Return a copy with one more remote call's token counts added."""
        return self.model_copy(
            update={
                "prompt_tokens": self.prompt_tokens + prompt_tokens,
                "response_tokens": self.response_tokens + response_tokens,
                "total_tokens": self.total_tokens + total_tokens,
                "remote_calls": self.remote_calls + 1,
            }
        )


class ReviewResult(BaseModel):
    """Final outcome of a review.

    ``lgtm`` is True when the model judged the change safe to land.
    """

    model_config = ConfigDict(frozen=True)

    lgtm: bool
    comments: str
    usage: UsageMetadata = Field(default_factory=UsageMetadata)

    def format_summary_markdown(self) -> str:
        """Format the verdict as markdown for display to a human."""
        status = ":white_check_mark: LGTM" if self.lgtm else ":x: Changes requested"
        lines = [f"## Review: {status}\n", self.comments.strip() or "_No comments._", ""]
        lines.append(
            f"_{self.usage.total_tokens} tokens over {self.usage.remote_calls} calls, "
            f"{self.usage.tool_calls} files requested, "
            f"{self.usage.duration_seconds:.1f}s_"
        )
        return "\n".join(lines)
