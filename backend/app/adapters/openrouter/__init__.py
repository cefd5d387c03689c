"""OpenRouter chat-completion client."""

from .client import OpenRouterClient
from .exceptions import (
    OpenRouterConfigError,
    OpenRouterError,
    OpenRouterHTTPError,
    OpenRouterResponseError,
    OpenRouterTransportError,
)
from .schemas import StructuredTravelPlan
from .types import (
    AIResponse,
    ChatMessage,
    CompletionStream,
    RawJsonSchema,
    StructuredAIResponse,
    ValidatingSchema,
    jsonschema_validator,
)

__all__ = [
    "OpenRouterClient",
    "OpenRouterError",
    "OpenRouterConfigError",
    "OpenRouterTransportError",
    "OpenRouterHTTPError",
    "OpenRouterResponseError",
    "StructuredTravelPlan",
    "AIResponse",
    "ChatMessage",
    "CompletionStream",
    "StructuredAIResponse",
    "ValidatingSchema",
    "RawJsonSchema",
    "jsonschema_validator",
]
