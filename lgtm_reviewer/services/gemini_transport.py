"""Transport to the Gemini API.

The orchestrator talks to the model through two small protocols,
``ModelTransport`` and ``ModelChat``, so tests can substitute
deterministic stubs without touching the conversation logic.
"""

import logging
from typing import Protocol

from google import genai
from google.genai import types

from lgtm_reviewer.config.settings import Settings
from lgtm_reviewer.errors import NoAuthMethodError
from lgtm_reviewer.models.tool_types import (
    FILE_TOOL_ARGUMENT,
    FILE_TOOL_NAME,
    ToolCall,
    ToolResponse,
)

logger = logging.getLogger(__name__)

ChatMessage = str | types.Part | list[types.Part]


class ModelChat(Protocol):
    """A multi-turn chat session with tool declarations."""

    async def send_message(self, message: ChatMessage) -> types.GenerateContentResponse: ...


class ModelTransport(Protocol):
    """Starts chats and performs single-shot structured generation."""

    async def create_chat(
        self, model: str, config: types.GenerateContentConfig
    ) -> ModelChat: ...

    async def generate_content(
        self,
        model: str,
        contents: list[types.Content],
        config: types.GenerateContentConfig,
    ) -> types.GenerateContentResponse: ...


class GeminiChat:
    """``ModelChat`` backed by a google-genai async chat session."""

    def __init__(self, chat: "genai.chats.AsyncChat") -> None:
        self._chat = chat

    async def send_message(self, message: ChatMessage) -> types.GenerateContentResponse:
        return await self._chat.send_message(message)


class GeminiTransport:
    """``ModelTransport`` backed by a ``google.genai.Client``."""

    def __init__(self, client: genai.Client) -> None:
        self.client = client

    async def create_chat(
        self, model: str, config: types.GenerateContentConfig
    ) -> ModelChat:
        return GeminiChat(self.client.aio.chats.create(model=model, config=config))

    async def generate_content(
        self,
        model: str,
        contents: list[types.Content],
        config: types.GenerateContentConfig,
    ) -> types.GenerateContentResponse:
        return await self.client.aio.models.generate_content(
            model=model, contents=contents, config=config
        )


def create_client(settings: Settings) -> genai.Client:
    """Create a google-genai client from settings.

    An API key takes precedence over Application Default Credentials when
    both are configured.

    Raises:
        NoAuthMethodError: If neither authentication method is configured
    """
    if settings.google_api_key:
        logger.info("Using API key authentication")
        return genai.Client(api_key=settings.google_api_key)

    if settings.google_use_adc:
        logger.info("Using Application Default Credentials")
        return genai.Client(
            vertexai=True,
            project=settings.google_cloud_project,
            location=settings.google_cloud_location,
        )

    raise NoAuthMethodError()


# === DECLARATIONS ===


def file_retrieval_tool() -> types.Tool:
    """Declaration of the single tool the model may call."""
    return types.Tool(
        function_declarations=[
            types.FunctionDeclaration(
                name=FILE_TOOL_NAME,
                description="Retrieve the content of a file from the repository",
                parameters=types.Schema(
                    type=types.Type.OBJECT,
                    properties={
                        FILE_TOOL_ARGUMENT: types.Schema(
                            type=types.Type.STRING,
                            description="Path to the file relative to repository root",
                        ),
                    },
                    required=[FILE_TOOL_ARGUMENT],
                ),
            )
        ]
    )


def verdict_schema() -> types.Schema:
    """Response schema for the decision phase."""
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            "lgtm": types.Schema(
                type=types.Type.BOOLEAN,
                description="Whether the code is approved for production",
            ),
            "comments": types.Schema(
                type=types.Type.STRING,
                description="Review comments or issues found",
            ),
        },
        required=["lgtm", "comments"],
    )


def exploration_config(temperature: float) -> types.GenerateContentConfig:
    """Chat configuration for phase 1: tools enabled, manual function calling."""
    return types.GenerateContentConfig(
        temperature=temperature,
        tools=[file_retrieval_tool()],
        automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
    )


def decision_config(temperature: float) -> types.GenerateContentConfig:
    """Generation configuration for phase 2: structured JSON, no tools."""
    return types.GenerateContentConfig(
        temperature=temperature,
        response_mime_type="application/json",
        response_schema=verdict_schema(),
    )


# === RESPONSE HELPERS ===


def _first_candidate_parts(response: types.GenerateContentResponse | None) -> list[types.Part]:
    if response is None or not response.candidates:
        return []
    content = response.candidates[0].content
    if content is None or not content.parts:
        return []
    return list(content.parts)


def has_candidates(response: types.GenerateContentResponse | None) -> bool:
    return bool(response is not None and response.candidates)


def extract_tool_calls(response: types.GenerateContentResponse | None) -> list[ToolCall]:
    """Collect every function call in the first candidate, in order."""
    calls = []
    for part in _first_candidate_parts(response):
        function_call = part.function_call
        if function_call is None:
            continue
        calls.append(
            ToolCall(
                name=function_call.name or "",
                arguments=dict(function_call.args or {}),
                call_id=function_call.id,
            )
        )
    return calls


def extract_text(response: types.GenerateContentResponse | None) -> str:
    """Join the non-thought text parts of the first candidate."""
    texts = [
        part.text
        for part in _first_candidate_parts(response)
        if part.text and not part.thought
    ]
    return "".join(texts)


def first_text_part(response: types.GenerateContentResponse | None) -> str | None:
    """The first non-empty, non-thought text part of the first candidate."""
    for part in _first_candidate_parts(response):
        if part.text and not part.thought:
            return part.text
    return None


def extract_usage(response: types.GenerateContentResponse | None) -> tuple[int, int, int]:
    """Return (prompt, response, total) token counts, zero when absent."""
    if response is None or response.usage_metadata is None:
        return 0, 0, 0
    usage = response.usage_metadata
    return (
        usage.prompt_token_count or 0,
        usage.candidates_token_count or 0,
        usage.total_token_count or 0,
    )


def tool_response_part(tool_call: ToolCall, tool_response: ToolResponse) -> types.Part:
    """Wrap a tool response as the function-response part sent back to the model."""
    return types.Part(
        function_response=types.FunctionResponse(
            id=tool_call.call_id,
            name=tool_call.name,
            response=tool_response.to_payload(),
        )
    )
