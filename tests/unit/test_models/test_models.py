"""Unit tests for the request, tool and result models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from lgtm_reviewer.models.dependencies import ReviewRequest
from lgtm_reviewer.models.outputs import ReviewResult, ReviewVerdict, UsageMetadata
from lgtm_reviewer.models.retry import RetryPolicy
from lgtm_reviewer.models.tool_types import AccessDecision, DenialReason, ToolCall, ToolResponse


class TestReviewRequest:
    """Tests for ReviewRequest."""

    def test_valid_request(self):
        """Test a request keeps its inputs."""
        request = ReviewRequest(
            diff="+x", changed_files=("a.py", "b.py"), repo_root=Path("/repo")
        )

        assert request.changed_files == ("a.py", "b.py")
        assert request.repository_instructions is None

    @pytest.mark.parametrize("diff", ["", "  \n\t"])
    def test_empty_diff_rejected(self, diff):
        """Test empty and whitespace-only diffs are rejected."""
        with pytest.raises(ValidationError, match="diff cannot be empty"):
            ReviewRequest(diff=diff, repo_root=Path("/repo"))

    def test_blank_instructions_become_none(self):
        """Test whitespace-only instructions are dropped."""
        request = ReviewRequest(diff="+x", repo_root=Path("/repo"), repository_instructions="  ")

        assert request.repository_instructions is None

    def test_immutable(self):
        """Test the request cannot be modified."""
        request = ReviewRequest(diff="+x", repo_root=Path("/repo"))

        with pytest.raises(ValidationError):
            request.diff = "+y"


class TestRetryPolicy:
    """Tests for RetryPolicy validation."""

    def test_defaults(self):
        """Test the default policy values."""
        policy = RetryPolicy()

        assert policy.max_retries == 5
        assert policy.initial_backoff == 1.0
        assert policy.max_backoff == 60.0
        assert policy.backoff_multiplier == 1.4
        assert policy.max_attempts == 6

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_retries": -1},
            {"backoff_multiplier": 1.0},
            {"initial_backoff": 0},
            {"initial_backoff": 10.0, "max_backoff": 5.0},
        ],
    )
    def test_invalid_policies(self, kwargs):
        """Test out-of-range policies are rejected."""
        with pytest.raises(ValidationError):
            RetryPolicy(**kwargs)


class TestToolResponse:
    """Tests for ToolResponse."""

    def test_content_payload(self):
        """Test a success renders as a content payload."""
        response = ToolResponse.success("hello")

        assert not response.is_error
        assert response.to_payload() == {"content": "hello"}

    def test_empty_file_is_content(self):
        """Test an empty file is still a success."""
        assert ToolResponse.success("").to_payload() == {"content": ""}

    def test_error_payload(self):
        """Test a failure renders as an error payload."""
        response = ToolResponse.failure("nope")

        assert response.is_error
        assert response.to_payload() == {"error": "nope"}

    @pytest.mark.parametrize("kwargs", [{}, {"content": "a", "error": "b"}])
    def test_exactly_one_field(self, kwargs):
        """Test content and error are mutually exclusive and required."""
        with pytest.raises(ValidationError):
            ToolResponse(**kwargs)


class TestToolCall:
    """Tests for ToolCall."""

    def test_requested_path(self):
        """Test the filepath argument is exposed only when it is a string."""
        assert ToolCall(name="get_file_content", arguments={"filepath": "a"}).requested_path == "a"
        assert ToolCall(name="get_file_content", arguments={"filepath": 1}).requested_path is None
        assert ToolCall(name="get_file_content").requested_path is None


class TestAccessDecision:
    """Tests for AccessDecision."""

    def test_allowed(self):
        """Test an allowed decision carries the path."""
        decision = AccessDecision.allowed(Path("/repo/a.py"))

        assert decision.is_allowed
        assert decision.describe() == "allowed"

    def test_denied(self):
        """Test a denial names its reason."""
        decision = AccessDecision.denied(DenialReason.NOT_REGULAR_FILE, "path is a directory")

        assert not decision.is_allowed
        assert decision.describe() == "access denied (not-regular-file): path is a directory"


class TestOutputs:
    """Tests for the verdict and result models."""

    def test_verdict_requires_real_boolean(self):
        """Test a string lgtm is not coerced."""
        with pytest.raises(ValidationError):
            ReviewVerdict.model_validate_json('{"lgtm": "true", "comments": "x"}')

    def test_usage_accumulates(self):
        """Test add_tokens sums counts and counts calls."""
        usage = UsageMetadata().add_tokens(10, 5, 15).add_tokens(1, 2, 3)

        assert usage.prompt_tokens == 11
        assert usage.response_tokens == 7
        assert usage.total_tokens == 18
        assert usage.remote_calls == 2

    def test_summary_markdown(self):
        """Test the markdown summary shows verdict and comments."""
        result = ReviewResult(lgtm=False, comments="SQL injection in db.py:12")

        summary = result.format_summary_markdown()

        assert "Changes requested" in summary
        assert "SQL injection in db.py:12" in summary
