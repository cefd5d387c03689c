"""HTTP client for the OpenRouter chat-completions API."""

import asyncio
import json
import logging
import time
import uuid
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import httpx
from jsonschema import ValidationError as JsonSchemaValidationError
from pydantic import ValidationError as PydanticValidationError

from backend.app.exec.retry import RetryPolicy, Sleep, call_with_retry
from backend.app.metrics.core import record_provider_call

from .exceptions import (
    OpenRouterConfigError,
    OpenRouterError,
    OpenRouterHTTPError,
    OpenRouterResponseError,
    OpenRouterTransportError,
)
from .types import (
    AIResponse,
    ChatMessage,
    CompletionStream,
    RawJsonSchema,
    ResponseSchema,
    StructuredAIResponse,
)

if TYPE_CHECKING:  # pragma: no cover
    from backend.app.config import Settings

logger = logging.getLogger(__name__)

PLANNER_SYSTEM_PROMPT = (
    "You are an experienced travel planner. You write practical, well-paced "
    "day-by-day itineraries tailored to the traveler's style, interests and "
    "budget. Answer in Markdown using clear headings for each day, keep cost "
    "estimates realistic for the destination, and never invent bookings or "
    "reservations on the traveler's behalf."
)

DEFAULT_PLAN_PARAMS: dict[str, Any] = {"temperature": 0.7, "max_tokens": 4000}

MessageInput = ChatMessage | dict[str, Any]


def _is_missing_key(api_key: str | None) -> bool:
    return not api_key or not api_key.strip() or api_key.startswith("dummy-")


def _error_detail(response: httpx.Response) -> str:
    """Extract a short error description from a failed response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return response.text[:200]


class OpenRouterClient:
    """Async client for OpenRouter chat completions.

    Every logical call is retried under ``retry_policy``; each attempt has its
    own timeout and carries the same ``X-Request-Id`` header.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://openrouter.ai/api/v1",
        model: str = "openai/gpt-4o-mini",
        timeout_s: float = 60.0,
        retry_policy: RetryPolicy | None = None,
        app_url: str | None = None,
        app_title: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """Initialize the client.

        Args:
            api_key: OpenRouter API key. Blank or ``dummy-`` keys count as missing.
            base_url: API base URL.
            model: Default model for requests that do not name one.
            timeout_s: Default per-attempt timeout in seconds.
            retry_policy: Retry policy; defaults to two retries with backoff.
            app_url: Sent as ``HTTP-Referer`` for attribution.
            app_title: Sent as ``X-Title`` for attribution.
            transport: Optional httpx transport (e.g. ``httpx.MockTransport``).
            sleep: Awaitable sleep used between attempts.
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_s = timeout_s
        self.retry_policy = retry_policy or RetryPolicy()
        self.app_url = app_url
        self.app_title = app_title
        self._sleep = sleep
        # Per-attempt deadlines are enforced with asyncio.wait_for
        self._client = httpx.AsyncClient(
            base_url=self.base_url, transport=transport, timeout=None
        )

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> "OpenRouterClient":
        """Build a client from application settings."""
        return cls(
            settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            model=settings.openrouter_model,
            timeout_s=settings.openrouter_timeout_s,
            retry_policy=RetryPolicy(
                max_retries=settings.openrouter_max_retries,
                base_delay_ms=settings.openrouter_backoff_base_ms,
                max_delay_ms=settings.openrouter_backoff_cap_ms,
            ),
            app_url=settings.openrouter_app_url,
            app_title=settings.openrouter_app_title,
            transport=transport,
            sleep=sleep,
        )

    async def __aenter__(self) -> "OpenRouterClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def chat_completion(
        self,
        messages: Sequence[MessageInput],
        *,
        model: str | None = None,
        params: dict[str, Any] | None = None,
        response_format: dict[str, Any] | None = None,
        request_id: str | None = None,
        timeout_s: float | None = None,
    ) -> AIResponse:
        """Generate a completion for a conversation.

        Args:
            messages: Conversation; at least one message with non-empty content.
            model: Model override.
            params: Extra provider parameters (temperature, max_tokens, ...).
            response_format: Provider ``response_format`` payload.
            request_id: Caller correlation id; generated when omitted.
            timeout_s: Per-attempt timeout override in seconds.

        Returns:
            Generated content with model, token usage and request id.

        Raises:
            OpenRouterConfigError: If no API key is configured.
            OpenRouterTransportError: On timeouts or network failures.
            OpenRouterHTTPError: On non-2xx responses.
            OpenRouterResponseError: If the response body is unusable.
        """
        return await self._complete(
            "chat_completion",
            messages,
            model=model,
            params=params,
            response_format=response_format,
            request_id=request_id,
            timeout_s=timeout_s,
        )

    async def structured_completion(
        self,
        messages: Sequence[MessageInput],
        schema: ResponseSchema,
        *,
        model: str | None = None,
        params: dict[str, Any] | None = None,
        request_id: str | None = None,
        timeout_s: float | None = None,
    ) -> StructuredAIResponse:
        """Generate a completion constrained to a JSON schema and validate it.

        Malformed output is reported as ``OpenRouterResponseError`` and is not
        retried.

        Args:
            messages: Conversation.
            schema: ``ValidatingSchema`` (pydantic model) or ``RawJsonSchema``
                with an explicit validator.

        Returns:
            The completion plus the parsed, validated ``data``.
        """
        if isinstance(schema, RawJsonSchema) and schema.validator is None:
            raise OpenRouterConfigError(
                "Raw JSON schemas require an explicit validator",
                code="missing_validator",
                request_id=request_id,
            )

        response_format = {
            "type": "json_schema",
            "json_schema": {
                "name": schema.schema_name,
                "strict": True,
                "schema": schema.json_schema(),
            },
        }
        response = await self._complete(
            "structured_completion",
            messages,
            model=model,
            params=params,
            response_format=response_format,
            request_id=request_id,
            timeout_s=timeout_s,
        )

        try:
            raw = json.loads(response.content)
        except json.JSONDecodeError as e:
            raise OpenRouterResponseError(
                "Provider output is not valid JSON",
                code="invalid_json",
                request_id=response.request_id,
                cause=e,
            ) from e

        data = self._validate(schema, raw, response.request_id)
        return StructuredAIResponse(**response.model_dump(), data=data)

    async def chat_completion_stream(
        self,
        messages: Sequence[MessageInput],
        *,
        model: str | None = None,
        params: dict[str, Any] | None = None,
        request_id: str | None = None,
        timeout_s: float | None = None,
    ) -> CompletionStream:
        """Open a streaming completion and return its raw body.

        Retries cover opening the response only. The caller decodes the
        server-sent-event framing.

        Returns:
            The open stream. Iterate it to the end, or close it with
            ``aclose()`` or ``async with``, to release the connection.
        """
        self._ensure_api_key(request_id)
        request_id = request_id or str(uuid.uuid4())
        resolved_model = model or self.model
        body = self._build_body(messages, resolved_model, params, None)
        body["stream"] = True
        attempts = 0
        start = time.perf_counter()

        async def attempt(index: int) -> httpx.Response:
            nonlocal attempts
            attempts = index + 1
            request = self._client.build_request(
                "POST",
                "/chat/completions",
                json=body,
                headers=self._headers(request_id),
            )
            response = await self._send(request, request_id, timeout_s, stream=True)
            return response

        try:
            response = await call_with_retry(
                attempt,
                self.retry_policy,
                name="openrouter.chat_completion_stream",
                sleep=self._sleep,
                on_retry=lambda exc, index, delay: self._log_retry(
                    exc, index, delay, request_id
                ),
            )
        except OpenRouterError as e:
            self._record("chat_completion_stream", resolved_model, start, False, attempts, e.code)
            raise

        self._record("chat_completion_stream", resolved_model, start, True, attempts, None)
        return CompletionStream(response, request_id)

    async def generate_plan(
        self,
        prompt: str,
        *,
        model: str | None = None,
        params: dict[str, Any] | None = None,
        request_id: str | None = None,
        timeout_s: float | None = None,
    ) -> AIResponse:
        """Generate a travel plan for a rendered prompt.

        Prepends the travel-planner system message and delegates to
        ``chat_completion``.
        """
        messages = [
            ChatMessage(role="system", content=PLANNER_SYSTEM_PROMPT),
            ChatMessage(role="user", content=prompt),
        ]
        return await self.chat_completion(
            messages,
            model=model,
            params={**DEFAULT_PLAN_PARAMS, **(params or {})},
            request_id=request_id,
            timeout_s=timeout_s,
        )

    async def _complete(
        self,
        operation: str,
        messages: Sequence[MessageInput],
        *,
        model: str | None,
        params: dict[str, Any] | None,
        response_format: dict[str, Any] | None,
        request_id: str | None,
        timeout_s: float | None,
    ) -> AIResponse:
        self._ensure_api_key(request_id)
        caller_request_id = request_id
        request_id = request_id or str(uuid.uuid4())
        resolved_model = model or self.model
        body = self._build_body(messages, resolved_model, params, response_format)
        attempts = 0
        start = time.perf_counter()

        async def attempt(index: int) -> httpx.Response:
            nonlocal attempts
            attempts = index + 1
            request = self._client.build_request(
                "POST",
                "/chat/completions",
                json=body,
                headers=self._headers(request_id),
            )
            return await self._send(request, request_id, timeout_s)

        try:
            response = await call_with_retry(
                attempt,
                self.retry_policy,
                name=f"openrouter.{operation}",
                sleep=self._sleep,
                on_retry=lambda exc, index, delay: self._log_retry(
                    exc, index, delay, request_id
                ),
            )
            result = self._parse_completion(
                response, resolved_model, caller_request_id, request_id
            )
        except OpenRouterError as e:
            self._record(operation, resolved_model, start, False, attempts, e.code)
            raise

        self._record(
            operation,
            result.model,
            start,
            True,
            attempts,
            None,
            tokens_in=result.prompt_tokens,
            tokens_out=result.completion_tokens,
        )
        return result

    def _ensure_api_key(self, request_id: str | None) -> None:
        if _is_missing_key(self.api_key):
            raise OpenRouterConfigError(
                "OpenRouter API key is not configured",
                code="missing_api_key",
                request_id=request_id,
            )

    def _headers(self, request_id: str) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Request-Id": request_id,
        }
        if self.app_url:
            headers["HTTP-Referer"] = self.app_url
        if self.app_title:
            headers["X-Title"] = self.app_title
        return headers

    @staticmethod
    def _build_body(
        messages: Sequence[MessageInput],
        model: str,
        params: dict[str, Any] | None,
        response_format: dict[str, Any] | None,
    ) -> dict[str, Any]:
        if not messages:
            raise ValueError("messages must contain at least one message")
        validated = [
            message if isinstance(message, ChatMessage) else ChatMessage(**message)
            for message in messages
        ]
        body: dict[str, Any] = {
            **(params or {}),
            "model": model,
            "messages": [message.model_dump() for message in validated],
        }
        if response_format is not None:
            body["response_format"] = response_format
        return body

    async def _send(
        self,
        request: httpx.Request,
        request_id: str,
        timeout_s: float | None,
        stream: bool = False,
    ) -> httpx.Response:
        """Send one attempt and classify its failure."""
        timeout = timeout_s if timeout_s is not None else self.timeout_s
        try:
            response = await asyncio.wait_for(
                self._client.send(request, stream=stream), timeout=timeout
            )
        except (TimeoutError, httpx.TimeoutException) as e:
            raise OpenRouterTransportError(
                f"Request timed out after {timeout}s",
                code="timeout",
                request_id=request_id,
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise OpenRouterTransportError(
                f"Unable to reach OpenRouter: {e}",
                code="network_error",
                request_id=request_id,
                cause=e,
            ) from e

        if not response.is_success:
            if stream:
                await response.aread()
                await response.aclose()
            raise OpenRouterHTTPError(
                f"OpenRouter returned error {response.status_code}: "
                f"{_error_detail(response)}",
                status=response.status_code,
                request_id=request_id,
            )
        return response

    @staticmethod
    def _parse_completion(
        response: httpx.Response,
        requested_model: str,
        caller_request_id: str | None,
        request_id: str,
    ) -> AIResponse:
        try:
            payload = response.json()
        except ValueError as e:
            raise OpenRouterResponseError(
                "Provider returned a non-JSON body",
                code="invalid_json",
                status=response.status_code,
                request_id=request_id,
                cause=e,
            ) from e

        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise OpenRouterResponseError(
                "Provider response has no message content",
                code="invalid_response",
                status=response.status_code,
                request_id=request_id,
                cause=e,
            ) from e
        if not isinstance(content, str):
            raise OpenRouterResponseError(
                "Provider message content is not text",
                code="invalid_response",
                status=response.status_code,
                request_id=request_id,
            )

        usage = payload.get("usage") or {}
        return AIResponse(
            content=content,
            model=payload.get("model") or requested_model,
            prompt_tokens=usage.get("prompt_tokens"),
            completion_tokens=usage.get("completion_tokens"),
            provider=payload.get("provider"),
            request_id=caller_request_id or payload.get("id") or request_id,
        )

    @staticmethod
    def _validate(schema: ResponseSchema, raw: Any, request_id: str) -> Any:
        if isinstance(schema, RawJsonSchema):
            try:
                return schema.validator(raw)
            except (JsonSchemaValidationError, ValueError) as e:
                raise OpenRouterResponseError(
                    f"Provider output does not match schema '{schema.schema_name}'",
                    code="invalid_schema",
                    request_id=request_id,
                    cause=e,
                ) from e
            except Exception as e:
                raise OpenRouterResponseError(
                    f"Validator for schema '{schema.schema_name}' failed: {e}",
                    code="validator_error",
                    request_id=request_id,
                    cause=e,
                ) from e

        try:
            return schema.model.model_validate(raw)
        except PydanticValidationError as e:
            raise OpenRouterResponseError(
                f"Provider output does not match schema '{schema.schema_name}'",
                code="invalid_schema",
                request_id=request_id,
                cause=e,
            ) from e

    @staticmethod
    def _log_retry(
        exc: BaseException, attempt: int, delay_ms: int, request_id: str
    ) -> None:
        logger.warning(
            f"OpenRouter attempt {attempt + 1} failed ({getattr(exc, 'code', type(exc).__name__)}), "
            f"retrying in {delay_ms}ms",
            extra={
                "attempt": attempt + 1,
                "delay_ms": delay_ms,
                "error_code": getattr(exc, "code", None),
                "status": getattr(exc, "status", None),
                "request_id": request_id,
            },
        )

    @staticmethod
    def _record(
        operation: str,
        model: str,
        start: float,
        ok: bool,
        attempts: int,
        error_code: str | None,
        tokens_in: int | None = None,
        tokens_out: int | None = None,
    ) -> None:
        record_provider_call(
            operation=operation,
            model=model,
            latency_ms=int((time.perf_counter() - start) * 1000),
            ok=ok,
            attempts=attempts,
            error_code=error_code,
            tokens_in=tokens_in,
            tokens_out=tokens_out,
        )
