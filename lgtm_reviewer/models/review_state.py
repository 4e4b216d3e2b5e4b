"""Lifecycle state of a single review conversation."""

from enum import Enum

from pydantic import BaseModel, Field, PrivateAttr

from lgtm_reviewer.models.outputs import ReviewVerdict, UsageMetadata


class ConversationState(str, Enum):
    """Phases of the two-phase review protocol.

    EXPLORING: the model may request files; analysis text accumulates.
    DECIDING: the analysis is frozen and the structured verdict is requested.
    DONE / FAILED: terminal; no transitions out.
    """

    EXPLORING = "exploring"
    DECIDING = "deciding"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ConversationState.DONE, ConversationState.FAILED)


_ALLOWED_TRANSITIONS: dict[ConversationState, frozenset[ConversationState]] = {
    ConversationState.EXPLORING: frozenset(
        {ConversationState.DECIDING, ConversationState.FAILED}
    ),
    ConversationState.DECIDING: frozenset(
        {ConversationState.DONE, ConversationState.FAILED}
    ),
    ConversationState.DONE: frozenset(),
    ConversationState.FAILED: frozenset(),
}


class InvalidTransitionError(RuntimeError):
    """Raised on an attempt to leave a terminal state or skip a phase."""


class ReviewState(BaseModel):
    """Mutable state owned by one review call for its lifetime.

    Tracks the current phase, the latest analysis text seen while exploring,
    and the usage counters accumulated across remote calls.
    """

    state: ConversationState = ConversationState.EXPLORING
    analysis: str = ""
    exploration_turns: int = 0
    tool_calls: int = 0
    usage: UsageMetadata = Field(default_factory=UsageMetadata)
    verdict: ReviewVerdict | None = None
    failure: str | None = None

    _history: list[ConversationState] = PrivateAttr(
        default_factory=lambda: [ConversationState.EXPLORING]
    )

    @property
    def history(self) -> tuple[ConversationState, ...]:
        """Every state visited, in order."""
        return tuple(self._history)

    def transition(self, target: ConversationState) -> None:
        """Move to ``target``.

        Raises:
            InvalidTransitionError: If the transition is not allowed
        """
        if target not in _ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"cannot transition from {self.state.value} to {target.value}"
            )
        self.state = target
        self._history.append(target)

    def record_analysis(self, text: str) -> None:
        """Remember the latest analysis text while still exploring."""
        if self.state is not ConversationState.EXPLORING:
            raise InvalidTransitionError(
                f"analysis is frozen once the conversation is {self.state.value}"
            )
        if text.strip():
            self.analysis = text

    def fail(self, reason: str) -> None:
        """Enter FAILED unless already terminal."""
        if self.state.is_terminal:
            return
        self.failure = reason
        self.transition(ConversationState.FAILED)
