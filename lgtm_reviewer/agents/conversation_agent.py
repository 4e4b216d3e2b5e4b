"""Two-phase review conversation with the Gemini model.

Phase 1 (EXPLORING) is a chat with the file retrieval tool enabled. Every
function call the model makes is answered through the sandboxed accessor,
and the latest free-text analysis is kept. Phase 2 (DECIDING) is a single
structured-output request with tools disabled, since the API accepts
either tools or a response schema per call but not both.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from google.genai import types
from pydantic import ValidationError

from lgtm_reviewer.errors import (
    ConversationFailedError,
    EmptyResponseError,
    ExplorationLimitError,
    MalformedVerdictError,
    NoResponseError,
    ReviewError,
    TransportError,
)
from lgtm_reviewer.models.dependencies import ReviewRequest
from lgtm_reviewer.models.outputs import ReviewVerdict
from lgtm_reviewer.models.review_state import ConversationState, ReviewState
from lgtm_reviewer.prompts.manager import PromptManager
from lgtm_reviewer.services.gemini_transport import (
    ChatMessage,
    ModelChat,
    ModelTransport,
    decision_config,
    exploration_config,
    extract_text,
    extract_tool_calls,
    extract_usage,
    first_text_part,
    has_candidates,
    tool_response_part,
)
from lgtm_reviewer.tools.file_tools import SandboxedRepositoryAccessor
from lgtm_reviewer.utils.retry import RetryCoordinator

logger = logging.getLogger(__name__)

DEFAULT_MAX_EXPLORATION_TURNS = 25


def parse_verdict(text: str) -> ReviewVerdict:
    """Parse the decision-phase text into a verdict.

    Raises:
        MalformedVerdictError: If the text is not a JSON object with a
            boolean ``lgtm`` and a string ``comments``
    """
    try:
        return ReviewVerdict.model_validate_json(text.strip())
    except ValidationError as e:
        raise MalformedVerdictError(str(e), text) from e


class ConversationOrchestrator:
    """Drives one review conversation from the first prompt to the verdict.

    An orchestrator is built per review call from values owned by the
    ``Reviewer`` (transport, retry coordinator, prompts); it keeps no state
    between calls.
    """

    def __init__(
        self,
        transport: ModelTransport,
        retry: RetryCoordinator,
        prompts: PromptManager,
        model_name: str,
        temperature: float,
        max_exploration_turns: int = DEFAULT_MAX_EXPLORATION_TURNS,
        logger: logging.Logger | None = None,
    ) -> None:
        self.transport = transport
        self.retry = retry
        self.prompts = prompts
        self.model_name = model_name
        self.temperature = temperature
        self.max_exploration_turns = max_exploration_turns
        self.logger = logger or logging.getLogger(__name__)

    async def run(
        self,
        request: ReviewRequest,
        accessor: SandboxedRepositoryAccessor,
        cancel_event: asyncio.Event | None = None,
    ) -> ReviewState:
        """Run both phases and return the final conversation state.

        The returned state is DONE and carries the verdict. On any failure
        the state moves to FAILED and the error propagates.
        """
        state = ReviewState()
        try:
            await self._explore(request, accessor, state, cancel_event)

            state.transition(ConversationState.DECIDING)
            self.logger.info(
                f"Exploration finished turns={state.exploration_turns} "
                f"tool_calls={state.tool_calls} analysis_chars={len(state.analysis)}"
            )

            state.verdict = await self._decide(request, state, cancel_event)
            state.transition(ConversationState.DONE)
        except (Exception, asyncio.CancelledError) as e:
            state.fail(f"{type(e).__name__}: {e}")
            self.logger.warning(f"Review conversation failed: {type(e).__name__}: {e}")
            raise

        return state

    # === PHASE 1 ===

    async def _explore(
        self,
        request: ReviewRequest,
        accessor: SandboxedRepositoryAccessor,
        state: ReviewState,
        cancel_event: asyncio.Event | None,
    ) -> None:
        prompt = self.prompts.build_context_gathering_prompt(
            request.diff, request.changed_files, request.repository_instructions
        )

        try:
            chat = await self.transport.create_chat(
                self.model_name, exploration_config(self.temperature)
            )
        except Exception as e:
            raise ConversationFailedError(f"failed to create chat session: {e}") from e

        response = await self._send(chat, prompt, "initial_prompt", state, cancel_event)

        while True:
            if not has_candidates(response):
                self.logger.warning("Model returned no candidates during exploration")
                return

            state.record_analysis(extract_text(response))

            tool_calls = extract_tool_calls(response)
            if not tool_calls:
                return

            if state.exploration_turns >= self.max_exploration_turns:
                raise ExplorationLimitError(self.max_exploration_turns)
            state.exploration_turns += 1

            parts = []
            for tool_call in tool_calls:
                tool_response = await asyncio.to_thread(
                    accessor.handle_tool_call, tool_call
                )
                state.tool_calls += 1
                self.logger.debug(
                    f"Sending function response function={tool_call.name} "
                    f"filepath={tool_call.requested_path} "
                    f"outcome={'error' if tool_response.is_error else 'content'}"
                )
                parts.append(tool_response_part(tool_call, tool_response))

            response = await self._send(
                chat, parts, "function_response", state, cancel_event
            )

    async def _send(
        self,
        chat: ModelChat,
        message: ChatMessage,
        operation_name: str,
        state: ReviewState,
        cancel_event: asyncio.Event | None,
    ) -> types.GenerateContentResponse:
        return await self._call(
            lambda: chat.send_message(message), operation_name, state, cancel_event
        )

    # === PHASE 2 ===

    async def _decide(
        self,
        request: ReviewRequest,
        state: ReviewState,
        cancel_event: asyncio.Event | None,
    ) -> ReviewVerdict:
        prompt = self.prompts.build_review_prompt(
            request.diff,
            request.changed_files,
            state.analysis,
            request.repository_instructions,
        )
        contents = [types.Content(role="user", parts=[types.Part(text=prompt)])]
        config = decision_config(self.temperature)

        response = await self._call(
            lambda: self.transport.generate_content(self.model_name, contents, config),
            "review_prompt",
            state,
            cancel_event,
        )

        if not has_candidates(response):
            raise NoResponseError()

        text = first_text_part(response)
        if text is None:
            raise EmptyResponseError()

        self.logger.debug(f"Raw review response from Gemini: {text}")
        return parse_verdict(text)

    # === TRANSPORT ===

    async def _call(
        self,
        operation: Callable[[], Awaitable[types.GenerateContentResponse]],
        operation_name: str,
        state: ReviewState,
        cancel_event: asyncio.Event | None,
    ) -> types.GenerateContentResponse:
        try:
            response = await self.retry.execute(
                operation, operation_name, cancel_event=cancel_event
            )
        except ReviewError:
            raise
        except Exception as e:
            raise TransportError(
                f"{operation_name} to Gemini failed: {e}", operation_name
            ) from e

        state.usage = state.usage.add_tokens(*extract_usage(response))
        return response
