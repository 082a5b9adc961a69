"""
Resilience Infrastructure.

Structured logging hooks for tenacity retry loops.

Usage:
    from notecore.backend.core.resilience import log_retry

    retrying = AsyncRetrying(
        stop=stop_after_attempt(3),
        wait=wait_chain(wait_fixed(1), wait_fixed(3)),
        before_sleep=log_retry,
    )
    await retrying(save, note_id, patch)

Resilience events can be filtered from the JSON log:

    jq 'select(.resilience_event != null)' logs/system.jsonl
"""

from typing import Any

from notecore.backend.core.logging import get_logger

logger = get_logger(__name__)


def log_retry(retry_state: Any) -> None:
    """Tenacity before_sleep callback that emits structured retry events.

    Args:
        retry_state: tenacity.RetryCallState instance
    """
    error = None
    if retry_state.outcome and retry_state.outcome.failed:
        error = str(retry_state.outcome.exception())

    fn_name = getattr(retry_state.fn, "__name__", "unknown")
    sleep_seconds = None
    if retry_state.next_action is not None:
        sleep_seconds = retry_state.next_action.sleep

    logger.warning(
        f"Retrying {fn_name} (attempt {retry_state.attempt_number})",
        extra={
            "resilience_event": "retry_attempt",
            "dependency": fn_name,
            "attempt": retry_state.attempt_number,
            "sleep_seconds": sleep_seconds,
            "error": error,
        },
    )


def log_exhausted(dependency: str, attempts: int, error: BaseException | None) -> None:
    """Emit the structured event once every retry attempt has failed."""
    logger.error(
        f"Giving up on {dependency} after {attempts} attempts",
        extra={
            "resilience_event": "persistence_exhausted",
            "dependency": dependency,
            "attempts": attempts,
            "error": str(error) if error is not None else None,
        },
    )
