"""Services for external API interactions."""

from lgtm_reviewer.services.gemini_transport import (
    GeminiTransport,
    ModelChat,
    ModelTransport,
    create_client,
)

__all__ = ["GeminiTransport", "ModelChat", "ModelTransport", "create_client"]
