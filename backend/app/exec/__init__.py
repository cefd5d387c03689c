"""Retry policy and helpers for outbound calls."""

from backend.app.exec.retry import RetryPolicy, call_with_retry, is_retryable_status

__all__ = [
    "RetryPolicy",
    "call_with_retry",
    "is_retryable_status",
]
