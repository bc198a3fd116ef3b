"""Unit tests for the optimistic command protocol."""

import asyncio
from collections.abc import Callable

import pytest

from tripshare.app.db.inmemory import InMemoryTableStore
from tripshare.app.errors import StorageError
from tripshare.app.itinerary.optimistic import (
    CommandController,
    CommandInFlightError,
    DeleteDestinationCommand,
    ItineraryView,
    ReorderCommand,
)
from tripshare.app.itinerary.positions import DestinationService


@pytest.fixture
def seeded(store: InMemoryTableStore, make_trip: Callable[..., int]) -> tuple[int, ItineraryView]:
    """Trip with three destinations and its initial view."""
    trip_id = make_trip(store)
    service = DestinationService(store)
    for city in ("A", "B", "C"):
        service.create(trip_id, city, 1)
    return trip_id, ItineraryView(items=service.list_ordered(trip_id))


def _cities(view: ItineraryView) -> list[str]:
    return [item.city for item in view.items]


@pytest.mark.asyncio
async def test_reorder_commits_against_service(
    store: InMemoryTableStore, seeded: tuple[int, ItineraryView]
) -> None:
    """A successful reorder keeps the speculative order and persists it."""
    trip_id, view = seeded
    service = DestinationService(store)

    async def commit(trip: int, ordered_ids: list[int]) -> None:
        await asyncio.to_thread(service.reorder, trip, ordered_ids)

    ids = [item.destination_id for item in view.items]
    result = await CommandController().execute(
        view, ReorderCommand(trip_id, [ids[2], ids[0], ids[1]], commit)
    )

    assert _cities(result) == ["C", "A", "B"]
    assert result.pending is False
    assert result.error_message is None
    assert [d.city for d in service.list_ordered(trip_id)] == ["C", "A", "B"]


@pytest.mark.asyncio
async def test_failed_reorder_rolls_back_with_message(
    seeded: tuple[int, ItineraryView],
) -> None:
    """A failing commit restores the prior order and sets a localized error."""
    trip_id, view = seeded

    async def commit(trip: int, ordered_ids: list[int]) -> None:
        raise StorageError("connection lost")

    ids = [item.destination_id for item in view.items]
    command = ReorderCommand(trip_id, list(reversed(ids)), commit)

    result = await CommandController(locale="en").execute(view, command)

    assert _cities(result) == ["A", "B", "C"]
    assert result.pending is False
    assert result.error_message == "Could not reorder destinations."
    assert command.prior_state == view.items


@pytest.mark.asyncio
async def test_failed_delete_restores_item_in_spanish(
    seeded: tuple[int, ItineraryView],
) -> None:
    """A failing delete brings the item back; unknown locales use Spanish."""
    trip_id, view = seeded

    async def commit(destination_id: int, trip: int) -> None:
        raise StorageError("boom")

    result = await CommandController(locale="fr").execute(
        view, DeleteDestinationCommand(trip_id, view.items[1].destination_id, commit)
    )

    assert _cities(result) == ["A", "B", "C"]
    assert result.error_message == "No se pudo eliminar el destino."


@pytest.mark.asyncio
async def test_delete_removes_item(
    store: InMemoryTableStore, seeded: tuple[int, ItineraryView]
) -> None:
    """A successful delete drops the item from the view and the store."""
    trip_id, view = seeded
    service = DestinationService(store)

    async def commit(destination_id: int, trip: int) -> None:
        service.delete(destination_id, trip)

    result = await CommandController().execute(
        view, DeleteDestinationCommand(trip_id, view.items[0].destination_id, commit)
    )

    assert _cities(result) == ["B", "C"]
    assert [d.city for d in service.list_ordered(trip_id)] == ["B", "C"]


@pytest.mark.asyncio
async def test_second_command_for_same_trip_is_rejected(
    seeded: tuple[int, ItineraryView],
) -> None:
    """Only one command per trip may be in flight."""
    trip_id, view = seeded
    release = asyncio.Event()

    async def slow_commit(trip: int, ordered_ids: list[int]) -> None:
        await release.wait()

    controller = CommandController()
    ids = [item.destination_id for item in view.items]
    first = asyncio.create_task(controller.execute(view, ReorderCommand(trip_id, ids, slow_commit)))
    await asyncio.sleep(0)

    assert controller.is_busy(f"trip:{trip_id}")
    with pytest.raises(CommandInFlightError):
        await controller.execute(view, ReorderCommand(trip_id, ids, slow_commit))

    release.set()
    result = await first

    assert result.pending is False
    assert not controller.is_busy(f"trip:{trip_id}")


@pytest.mark.asyncio
async def test_settled_commands_release_their_keys(
    seeded: tuple[int, ItineraryView],
) -> None:
    """Keys are only tracked while their command is in flight."""
    trip_id, view = seeded
    release = asyncio.Event()

    async def slow_commit(trip: int, ordered_ids: list[int]) -> None:
        await release.wait()

    async def failing_commit(trip: int, ordered_ids: list[int]) -> None:
        raise StorageError("network down")

    controller = CommandController()
    ids = [item.destination_id for item in view.items]
    pending = asyncio.create_task(controller.execute(view, ReorderCommand(trip_id, ids, slow_commit)))
    await asyncio.sleep(0)

    assert controller.in_flight_keys == {f"trip:{trip_id}"}

    release.set()
    await pending
    for other_trip in range(100, 110):
        await controller.execute(view, ReorderCommand(other_trip, ids, failing_commit))

    assert controller.in_flight_keys == frozenset()
