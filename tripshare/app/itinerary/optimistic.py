"""Optimistic editing protocol for the itinerary view.

A command applies its change to the view immediately, then commits it to the
server. If the commit fails, the view reverts to the state captured before
the change and carries a localized error message. Only one command per
entity key may be in flight at a time.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import Protocol

from tripshare.app.errors import ConflictError
from tripshare.app.models.trip import Destination

logger = logging.getLogger(__name__)

FAILURE_MESSAGES: dict[str, dict[str, str]] = {
    "reorder": {
        "es": "No se pudo reordenar los destinos.",
        "en": "Could not reorder destinations.",
    },
    "delete": {
        "es": "No se pudo eliminar el destino.",
        "en": "Could not delete destination.",
    },
}


class CommandInFlightError(ConflictError):
    """Another command for the same entity has not settled yet."""

    pass


@dataclass
class ItineraryView:
    """Client-side state of the destination list."""

    items: list[Destination] = field(default_factory=list)
    pending: bool = False
    error_message: str | None = None


class OptimisticCommand(Protocol):
    """A speculative view change backed by a server commit."""

    action: str
    prior_state: list[Destination] | None

    @property
    def key(self) -> str:
        """Entity key commands are serialized on."""
        ...

    def apply(self, view: ItineraryView) -> ItineraryView:
        """Capture the prior state and return the speculative view."""
        ...

    async def commit(self) -> None:
        """Persist the change; raises on failure."""
        ...

    def rollback(self, view: ItineraryView) -> ItineraryView:
        """Return the view restored to the prior state."""
        ...


class ReorderCommand:
    """Move destinations into a new order."""

    action = "reorder"

    def __init__(
        self,
        trip_id: int,
        ordered_ids: list[int],
        commit: Callable[[int, list[int]], Awaitable[None]],
    ) -> None:
        self.trip_id = trip_id
        self.ordered_ids = list(ordered_ids)
        self.prior_state: list[Destination] | None = None
        self._commit = commit

    @property
    def key(self) -> str:
        return f"trip:{self.trip_id}"

    def apply(self, view: ItineraryView) -> ItineraryView:
        self.prior_state = list(view.items)
        by_id = {item.destination_id: item for item in view.items}
        items = [by_id[i] for i in self.ordered_ids if i in by_id]
        return ItineraryView(items=items, pending=True)

    async def commit(self) -> None:
        await self._commit(self.trip_id, self.ordered_ids)

    def rollback(self, view: ItineraryView) -> ItineraryView:
        return replace(view, items=list(self.prior_state or []), pending=False)


class DeleteDestinationCommand:
    """Remove one destination from the list."""

    action = "delete"

    def __init__(
        self,
        trip_id: int,
        destination_id: int,
        commit: Callable[[int, int], Awaitable[None]],
    ) -> None:
        self.trip_id = trip_id
        self.destination_id = destination_id
        self.prior_state: list[Destination] | None = None
        self._commit = commit

    @property
    def key(self) -> str:
        return f"trip:{self.trip_id}"

    def apply(self, view: ItineraryView) -> ItineraryView:
        self.prior_state = list(view.items)
        items = [item for item in view.items if item.destination_id != self.destination_id]
        return ItineraryView(items=items, pending=True)

    async def commit(self) -> None:
        await self._commit(self.destination_id, self.trip_id)

    def rollback(self, view: ItineraryView) -> ItineraryView:
        return replace(view, items=list(self.prior_state or []), pending=False)


class CommandController:
    """Runs optimistic commands, one at a time per entity key."""

    def __init__(self, locale: str = "es") -> None:
        self.locale = locale if locale in ("es", "en") else "es"
        self._locks: dict[str, asyncio.Lock] = {}

    def is_busy(self, key: str) -> bool:
        """Whether a command for key is in flight."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @property
    def in_flight_keys(self) -> frozenset[str]:
        """Keys with a command still awaiting its commit."""
        return frozenset(self._locks)

    async def execute(self, view: ItineraryView, command: OptimisticCommand) -> ItineraryView:
        """Apply a command speculatively and settle it against the server.

        Args:
            view: Current view state
            command: Command to run

        Returns:
            The committed view, or the prior view with an error message if
            the commit failed

        Raises:
            CommandInFlightError: If a command for the same key has not settled
        """
        lock = self._locks.setdefault(command.key, asyncio.Lock())
        if lock.locked():
            raise CommandInFlightError(f"A command for {command.key} is still in flight.")

        try:
            async with lock:
                return await self._settle(view, command)
        finally:
            # Concurrent callers are rejected, so the lock never has waiters
            self._locks.pop(command.key, None)

    async def _settle(self, view: ItineraryView, command: OptimisticCommand) -> ItineraryView:
        speculative = command.apply(view)
        speculative.error_message = None

        try:
            await command.commit()
        except Exception as e:
            logger.warning(
                "Optimistic command rolled back",
                extra={
                    "structured": {
                        "action": command.action,
                        "key": command.key,
                        "error": type(e).__name__,
                    }
                },
            )
            reverted = command.rollback(speculative)
            reverted.error_message = FAILURE_MESSAGES[command.action][self.locale]
            return reverted

        return replace(speculative, pending=False)
