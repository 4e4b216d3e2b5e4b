"""Pytest configuration and fixtures."""

import json
from pathlib import Path
from typing import Any

import pytest
from google.genai import types

from lgtm_reviewer.tools.git_ignore import StaticIgnoreOracle
from lgtm_reviewer.utils.logging import get_null_logger


def text_response(text: str, tokens: tuple[int, int, int] = (10, 5, 15)) -> types.GenerateContentResponse:
    """Build a model response carrying a single text part."""
    return _response([types.Part(text=text)], tokens)


def verdict_response(lgtm: bool, comments: str) -> types.GenerateContentResponse:
    """Build a decision-phase response with a JSON verdict."""
    return text_response(json.dumps({"lgtm": lgtm, "comments": comments}))


def tool_call_response(
    *paths: str, text: str | None = None, tokens: tuple[int, int, int] = (10, 5, 15)
) -> types.GenerateContentResponse:
    """Build a response requesting one get_file_content call per path."""
    parts = []
    if text is not None:
        parts.append(types.Part(text=text))
    for index, path in enumerate(paths):
        parts.append(
            types.Part(
                function_call=types.FunctionCall(
                    id=f"call-{index}", name="get_file_content", args={"filepath": path}
                )
            )
        )
    return _response(parts, tokens)


def empty_response() -> types.GenerateContentResponse:
    """Build a response with no candidates."""
    return types.GenerateContentResponse(candidates=[])


def _response(
    parts: list[types.Part], tokens: tuple[int, int, int]
) -> types.GenerateContentResponse:
    prompt, candidates, total = tokens
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(content=types.Content(role="model", parts=parts))
        ],
        usage_metadata=types.GenerateContentResponseUsageMetadata(
            prompt_token_count=prompt,
            candidates_token_count=candidates,
            total_token_count=total,
        ),
    )


class StubChat:
    """Chat that replays scripted responses and records every message sent.

    A scripted item that is an exception is raised instead of returned.
    """

    def __init__(self, responses: list[Any]) -> None:
        self.responses = list(responses)
        self.sent: list[Any] = []

    async def send_message(self, message: Any) -> types.GenerateContentResponse:
        self.sent.append(message)
        if not self.responses:
            raise AssertionError("StubChat ran out of scripted responses")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class StubTransport:
    """Transport with a scripted exploration chat and scripted decision responses."""

    def __init__(
        self,
        chat_responses: list[Any] | None = None,
        decision_responses: list[Any] | None = None,
    ) -> None:
        self.chat = StubChat(chat_responses or [])
        self.decision_responses = list(decision_responses or [])
        self.chats_created: list[tuple[str, types.GenerateContentConfig]] = []
        self.generate_calls: list[tuple[str, list[types.Content], types.GenerateContentConfig]] = []

    @property
    def call_count(self) -> int:
        return len(self.chats_created) + len(self.chat.sent) + len(self.generate_calls)

    async def create_chat(self, model: str, config: types.GenerateContentConfig) -> StubChat:
        self.chats_created.append((model, config))
        return self.chat

    async def generate_content(
        self,
        model: str,
        contents: list[types.Content],
        config: types.GenerateContentConfig,
    ) -> types.GenerateContentResponse:
        self.generate_calls.append((model, contents, config))
        if not self.decision_responses:
            raise AssertionError("StubTransport ran out of decision responses")
        item = self.decision_responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


@pytest.fixture
def null_logger():
    """Return a logger that discards everything."""
    return get_null_logger()


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """Return a small repository tree on disk."""
    root = tmp_path / "repo"
    (root / "config").mkdir(parents=True)
    (root / "main.go").write_text("package main\n\nfunc main() {}\n")
    (root / "config" / "app.json").write_text('{"debug": false}\n')
    return root


@pytest.fixture
def no_ignores() -> StaticIgnoreOracle:
    """Return an ignore oracle that ignores nothing."""
    return StaticIgnoreOracle()
