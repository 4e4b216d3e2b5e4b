"""Code review facade: the single entry point of the review engine."""

import asyncio
import logging
import time
from collections.abc import Sequence
from pathlib import Path

from lgtm_reviewer.agents.conversation_agent import (
    DEFAULT_MAX_EXPLORATION_TURNS,
    ConversationOrchestrator,
)
from lgtm_reviewer.config.settings import Settings, settings as default_settings
from lgtm_reviewer.errors import EmptyDiffError, NoResponseError
from lgtm_reviewer.models.dependencies import ReviewRequest
from lgtm_reviewer.models.outputs import ReviewResult
from lgtm_reviewer.models.retry import RetryPolicy
from lgtm_reviewer.prompts.manager import PromptManager
from lgtm_reviewer.services.gemini_transport import (
    GeminiTransport,
    ModelTransport,
    create_client,
)
from lgtm_reviewer.tools.file_tools import DEFAULT_MAX_FILE_BYTES, SandboxedRepositoryAccessor
from lgtm_reviewer.tools.git_ignore import GitIgnoreOracle, IgnoreOracle
from lgtm_reviewer.utils.retry import RetryCoordinator

logger = logging.getLogger(__name__)


class Reviewer:
    """Reviews a diff with Gemini and decides whether it is safe to land.

    A ``Reviewer`` owns the transport, the retry coordinator and the prompt
    manager. It is safe to share between concurrent ``review_diff`` calls:
    each call builds its own conversation state and discards it when done.
    """

    def __init__(
        self,
        transport: ModelTransport,
        model_name: str = "gemini-3-pro-preview",
        temperature: float = 0.2,
        retry_policy: RetryPolicy | None = None,
        prompt_manager: PromptManager | None = None,
        ignore_oracle: IgnoreOracle | None = None,
        max_exploration_turns: int = DEFAULT_MAX_EXPLORATION_TURNS,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
        logger: logging.Logger | None = None,
    ) -> None:
        self.transport = transport
        self.model_name = model_name
        self.temperature = temperature
        self.logger = logger or logging.getLogger(__name__)
        self.retry = RetryCoordinator(retry_policy or RetryPolicy(), logger=self.logger)
        self.prompt_manager = prompt_manager or PromptManager()
        self.ignore_oracle = ignore_oracle or GitIgnoreOracle()
        self.max_exploration_turns = max_exploration_turns
        self.max_file_bytes = max_file_bytes

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        logger: logging.Logger | None = None,
    ) -> "Reviewer":
        """Build a reviewer talking to the real Gemini API.

        Raises:
            NoAuthMethodError: If no API key or ADC is configured
        """
        settings = settings or default_settings
        return cls(
            transport=GeminiTransport(create_client(settings)),
            model_name=settings.gemini_model,
            temperature=settings.gemini_temperature,
            retry_policy=settings.retry_policy(),
            prompt_manager=PromptManager(
                review_prompt_path=settings.review_prompt_path,
                context_gathering_prompt_path=settings.context_gathering_prompt_path,
            ),
            max_exploration_turns=settings.max_exploration_turns,
            max_file_bytes=settings.max_file_bytes,
            logger=logger,
        )

    async def review_diff(
        self,
        diff: str,
        changed_files: Sequence[str],
        repo_root: str | Path,
        repository_instructions: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> ReviewResult:
        """Review a diff and return the verdict.

        Args:
            diff: Unified diff of the change
            changed_files: Paths touched by the diff, relative to ``repo_root``
            repo_root: Repository the model may read files from
            repository_instructions: Optional maintainer instructions for the prompts
            cancel_event: Optional external cancellation signal

        Returns:
            ReviewResult with the verdict, comments and usage metadata

        Raises:
            EmptyDiffError: If the diff is empty (before any network call)
            ConversationFailedError: If the chat session cannot be started
            ProtocolViolationError: If the model returns no usable verdict
            TransportError: If a remote call fails fatally or exhausts retries
            ReviewCancelledError: If ``cancel_event`` is set mid-review
        """
        if not diff or not diff.strip():
            raise EmptyDiffError()

        request = ReviewRequest(
            diff=diff,
            changed_files=tuple(changed_files),
            repo_root=Path(repo_root),
            repository_instructions=repository_instructions,
        )
        accessor = SandboxedRepositoryAccessor(
            request.repo_root, self.ignore_oracle, self.max_file_bytes
        )
        orchestrator = ConversationOrchestrator(
            transport=self.transport,
            retry=self.retry,
            prompts=self.prompt_manager,
            model_name=self.model_name,
            temperature=self.temperature,
            max_exploration_turns=self.max_exploration_turns,
            logger=self.logger,
        )

        self.logger.info(
            f"Starting review of {len(request.changed_files)} changed files "
            f"in {request.repo_root} with {self.model_name}"
        )
        started = time.monotonic()
        state = await orchestrator.run(request, accessor, cancel_event)
        duration = time.monotonic() - started

        verdict = state.verdict
        if verdict is None:
            raise NoResponseError()

        usage = state.usage.model_copy(
            update={
                "exploration_turns": state.exploration_turns,
                "tool_calls": state.tool_calls,
                "duration_seconds": duration,
            }
        )
        self.logger.info(
            f"Review finished lgtm={verdict.lgtm} total_tokens={usage.total_tokens} "
            f"remote_calls={usage.remote_calls} duration={duration:.1f}s"
        )
        return ReviewResult(lgtm=verdict.lgtm, comments=verdict.comments, usage=usage)
