"""
Debounced Persistence.

Edits to a note are coalesced over a quiet window and written once; a
failed write is retried with a fixed sequence of delays before it is
given up on. Local state is never rolled back: the caller is told the
outcome and decides how to surface it.

Usage:
    scheduler = SaveScheduler(store.save_note, on_result=store.on_save_result)
    scheduler.schedule(note_id, {"content": text})  # resets the window
    await scheduler.drain()                          # on shutdown
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_chain,
    wait_fixed,
    wait_none,
)

from notecore.backend.core.exceptions import ValidationError
from notecore.backend.core.logging import get_logger, log_with_source
from notecore.backend.core.resilience import log_exhausted, log_retry

logger = get_logger(__name__)

DEBOUNCE_SECONDS = 1.0
MAX_SAVE_ATTEMPTS = 3
# one delay between each pair of attempts
RETRY_DELAYS: tuple[float, ...] = (1.0, 3.0)

SaveFn = Callable[[str, dict[str, Any]], Awaitable[Any]]
SleepFn = Callable[[float], Awaitable[None]]
ResultCallback = Callable[[str, bool], None]


@dataclass(frozen=True)
class AutosavePolicy:
    quiet_window: float = DEBOUNCE_SECONDS
    max_attempts: int = MAX_SAVE_ATTEMPTS
    retry_delays: tuple[float, ...] = RETRY_DELAYS


async def attempt_save(
    save: SaveFn,
    note_id: str,
    patch: dict[str, Any],
    *,
    delays: tuple[float, ...] = RETRY_DELAYS,
    max_attempts: int = MAX_SAVE_ATTEMPTS,
    sleep: SleepFn = asyncio.sleep,
) -> bool:
    """
    Call save(note_id, patch), retrying failures.

    The n-th retry waits delays[n - 1] (the last delay repeats if there
    are more retries than delays). A patch the server rejects as invalid
    is not retried.

    Returns:
        True once a call succeeds, False when every attempt failed
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_chain(*(wait_fixed(d) for d in delays)) if delays else wait_none(),
        retry=retry_if_not_exception_type(ValidationError),
        before_sleep=log_retry,
        sleep=sleep,
    )
    try:
        await retrying(save, note_id, patch)
    except RetryError as exc:
        log_exhausted(
            getattr(save, "__name__", "save"),
            exc.last_attempt.attempt_number,
            exc.last_attempt.exception(),
        )
        return False
    except ValidationError as exc:
        log_with_source(
            logger, "client", "warning", "Save rejected",
            note_id=note_id, error=exc.message,
        )
        return False
    return True


@dataclass
class _Pending:
    patch: dict[str, Any]
    handle: asyncio.TimerHandle


class SaveScheduler:
    """
    Per-note debounce timers plus the writes they start.

    At most one write per note runs at a time: a write started while an
    earlier one for the same note is still retrying waits for it, so an
    older patch can never land after a newer one.
    """

    def __init__(
        self,
        save: SaveFn,
        *,
        policy: AutosavePolicy | None = None,
        on_result: ResultCallback | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._save = save
        self.policy = policy or AutosavePolicy()
        self._on_result = on_result
        self._sleep = sleep
        self._pending: dict[str, _Pending] = {}
        self._writes: dict[str, asyncio.Task[bool]] = {}

    @property
    def pending_ids(self) -> frozenset[str]:
        return frozenset(self._pending)

    def has_pending(self, note_id: str) -> bool:
        return note_id in self._pending

    def schedule(self, note_id: str, patch: dict[str, Any]) -> None:
        """
        (Re)start the quiet window for a note.

        The patch is merged into any unsent one: when the window elapses,
        a single write carries the latest value of every field edited.
        """
        loop = asyncio.get_running_loop()
        pending = self._pending.pop(note_id, None)
        merged = dict(patch)
        if pending is not None:
            pending.handle.cancel()
            merged = {**pending.patch, **patch}

        handle = loop.call_later(self.policy.quiet_window, self._fire, note_id)
        self._pending[note_id] = _Pending(merged, handle)

    def cancel(self, note_id: str) -> bool:
        """Drop a note's unsent patch. Writes already started are not affected."""
        pending = self._pending.pop(note_id, None)
        if pending is None:
            return False
        pending.handle.cancel()
        return True

    def cancel_all(self) -> None:
        for note_id in list(self._pending):
            self.cancel(note_id)

    async def flush(self, note_id: str | None = None) -> None:
        """Send unsent patches now (one note, or all) and wait for the writes."""
        note_ids = [note_id] if note_id is not None else list(self._pending)
        tasks = []
        for target in note_ids:
            pending = self._pending.pop(target, None)
            if pending is None:
                continue
            pending.handle.cancel()
            tasks.append(self._start(target, pending.patch))
        if tasks:
            await asyncio.gather(*tasks)

    async def drain(self) -> None:
        """Flush everything and wait until no write is running."""
        await self.flush()
        while self._writes:
            await asyncio.gather(*self._writes.values())

    def _fire(self, note_id: str) -> None:
        pending = self._pending.pop(note_id, None)
        if pending is not None:
            self._start(note_id, pending.patch)

    def _start(self, note_id: str, patch: dict[str, Any]) -> "asyncio.Task[bool]":
        previous = self._writes.get(note_id)
        task = asyncio.ensure_future(self._write(note_id, patch, previous))
        self._writes[note_id] = task
        task.add_done_callback(lambda done: self._forget(note_id, done))
        return task

    def _forget(self, note_id: str, task: "asyncio.Task[bool]") -> None:
        if self._writes.get(note_id) is task:
            del self._writes[note_id]

    async def _write(
        self,
        note_id: str,
        patch: dict[str, Any],
        previous: "asyncio.Task[bool] | None",
    ) -> bool:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])

        log_with_source(
            logger, "client", "debug", "Saving note",
            note_id=note_id, fields=sorted(patch),
        )
        ok = await attempt_save(
            self._save,
            note_id,
            patch,
            delays=self.policy.retry_delays,
            max_attempts=self.policy.max_attempts,
            sleep=self._sleep,
        )
        if self._on_result is not None:
            self._on_result(note_id, ok)
        return ok
