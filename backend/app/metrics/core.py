"""Metrics façade for provider call tracking."""

import logging

logger = logging.getLogger(__name__)


def record_provider_call(
    operation: str,
    model: str,
    latency_ms: int,
    ok: bool,
    attempts: int,
    error_code: str | None,
    tokens_in: int | None = None,
    tokens_out: int | None = None,
) -> None:
    """Record metrics for one logical provider call.

    Emitted as a structured log record; a metrics backend can consume the
    ``provider_call_metric`` records from the log stream.

    Args:
        operation: Client operation (chat_completion, structured_completion, ...).
        model: Model the request was sent to.
        latency_ms: Latency across all attempts in milliseconds.
        ok: Whether the call succeeded.
        attempts: Number of HTTP attempts performed.
        error_code: Machine error code if the call failed, None if it succeeded.
        tokens_in: Optional prompt token count.
        tokens_out: Optional completion token count.
    """
    logger.info(
        "provider_call_metric",
        extra={
            "operation": operation,
            "model": model,
            "latency_ms": latency_ms,
            "ok": ok,
            "attempts": attempts,
            "error_code": error_code,
            "tokens_in": tokens_in,
            "tokens_out": tokens_out,
        },
    )
