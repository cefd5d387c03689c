"""Type definitions for the OpenRouter chat-completion client."""

from collections.abc import AsyncIterator, Callable
from typing import Any, Literal

import httpx
from jsonschema.validators import validator_for
from pydantic import BaseModel, ConfigDict, Field

# Validator for raw JSON schemas: returns the (possibly coerced) data or raises
Validator = Callable[[Any], Any]


class ChatMessage(BaseModel):
    """One message of a chat conversation."""

    role: Literal["system", "user", "assistant"]
    content: str = Field(min_length=1)


class AIResponse(BaseModel):
    """Result of a chat completion."""

    content: str
    model: str
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    provider: str | None = None
    request_id: str


class StructuredAIResponse(AIResponse):
    """Chat completion whose content was parsed and validated against a schema."""

    data: Any


class CompletionStream:
    """Raw body of an open streaming completion.

    Owns the HTTP response: it is released when iteration finishes, on
    ``aclose()``, or on leaving ``async with``, whichever comes first.
    """

    def __init__(self, response: httpx.Response, request_id: str):
        self.response = response
        self.request_id = request_id

    @property
    def closed(self) -> bool:
        return self.response.is_closed

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self.response.aiter_bytes():
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if not self.response.is_closed:
            await self.response.aclose()

    async def __aenter__(self) -> "CompletionStream":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


class ValidatingSchema(BaseModel):
    """Schema backed by a pydantic model that validates on its own."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    kind: Literal["validating"] = "validating"
    model: type[BaseModel]
    name: str | None = None

    @property
    def schema_name(self) -> str:
        return self.name or self.model.__name__

    def json_schema(self) -> dict[str, Any]:
        return self.model.model_json_schema(by_alias=True)


class RawJsonSchema(BaseModel):
    """Plain JSON-schema document; validation needs an explicit validator."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    kind: Literal["raw"] = "raw"
    json_schema_doc: dict[str, Any] = Field(alias="schema")
    name: str = "response"
    validator: Validator | None = None

    @property
    def schema_name(self) -> str:
        return self.name

    def json_schema(self) -> dict[str, Any]:
        return self.json_schema_doc


ResponseSchema = ValidatingSchema | RawJsonSchema


def jsonschema_validator(schema: dict[str, Any]) -> Validator:
    """Build a validator for a raw JSON schema using ``jsonschema``.

    Args:
        schema: JSON-schema document.

    Returns:
        Callable that returns the data unchanged or raises
        ``jsonschema.ValidationError``.
    """
    validator_cls = validator_for(schema)
    validator_cls.check_schema(schema)
    checker = validator_cls(schema)

    def validate(data: Any) -> Any:
        checker.validate(data)
        return data

    return validate
