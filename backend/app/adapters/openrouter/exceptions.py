"""OpenRouter client exceptions."""

from backend.app.exec.retry import is_retryable_status


class OpenRouterError(Exception):
    """Base exception for OpenRouter client errors.

    Attributes:
        code: Machine-readable error code.
        status: HTTP status of the failed response, if any.
        request_id: Correlation id sent with the request.
        cause: Underlying exception, kept for logging.
    """

    code = "openrouter_error"
    retryable = False

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
        request_id: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.status = status
        self.request_id = request_id
        self.cause = cause

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, status={self.status!r}, "
            f"request_id={self.request_id!r}, message={self.message!r})"
        )


class OpenRouterConfigError(OpenRouterError):
    """Raised when the client is misconfigured (missing key or validator)."""

    code = "missing_api_key"


class OpenRouterTransportError(OpenRouterError):
    """Raised on timeouts and network failures; always retryable."""

    code = "network_error"
    retryable = True


class OpenRouterHTTPError(OpenRouterError):
    """Raised for non-2xx responses."""

    code = "http_error"

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return is_retryable_status(self.status)


class OpenRouterResponseError(OpenRouterError):
    """Raised when a 2xx response body is unusable. Never retried."""

    code = "invalid_response"
