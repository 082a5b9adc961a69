"""
Selection Race Guard.

A user can switch notes faster than fetching one completes. Each
selection gets a ticket with a fresh generation number; issuing a new
ticket cancels the fetch attached to the previous one. A response is
applied only while its ticket is still current, so the last selection
always wins.

Usage:
    ticket = guard.issue()
    note = await guard.run(ticket, gateway.get_note(note_id))
    if guard.is_current(ticket):
        ...apply note...
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


class SelectionTicket:
    """Generation number of one selection plus its in-flight fetch, if any."""

    __slots__ = ("generation", "task")

    def __init__(self, generation: int) -> None:
        self.generation = generation
        self.task: asyncio.Task | None = None

    def __repr__(self) -> str:
        return f"<SelectionTicket(generation={self.generation})>"


class SelectionGuard:
    """Generation counter and cancellation owner for one store instance."""

    def __init__(self) -> None:
        self._generation = 0
        self._current: SelectionTicket | None = None

    @property
    def generation(self) -> int:
        return self._generation

    def issue(self) -> SelectionTicket:
        """Supersede the current selection and return the new ticket."""
        self.cancel()
        self._generation += 1
        self._current = SelectionTicket(self._generation)
        return self._current

    def cancel(self) -> None:
        """Cancel the current ticket's fetch. The request may still complete."""
        current = self._current
        if current is not None and current.task is not None and not current.task.done():
            current.task.cancel()

    def is_current(self, ticket: SelectionTicket) -> bool:
        return ticket.generation == self._generation

    async def run(self, ticket: SelectionTicket, fetch: Awaitable[T]) -> T:
        """
        Run a fetch as the ticket's cancellable task.

        Raises:
            asyncio.CancelledError: if a newer ticket cancelled the fetch
                (or the caller itself was cancelled)
        """
        ticket.task = asyncio.ensure_future(fetch)
        return await ticket.task
