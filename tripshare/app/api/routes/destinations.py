"""Destination endpoints - create, update, delete, reorder and details."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from tripshare.app.api.auth import current_user_id, require_user
from tripshare.app.api.deps import ensure_trip_owner, get_store
from tripshare.app.db.context import RequestContext
from tripshare.app.db.repositories import TableStore
from tripshare.app.itinerary.positions import DestinationService
from tripshare.app.itinerary.subentities import DestinationDetailsInput, SubEntityUpserter
from tripshare.app.models.trip import Destination, DestinationDetail

router = APIRouter(prefix="/trips/{trip_id}/destinations", tags=["destinations"])

NULLABLE_FIELDS = ("notes", "budget")


class CreateDestinationRequest(BaseModel):
    """Request body for POST /trips/{trip_id}/destinations."""

    city: str = Field(..., description="City name")
    duration: float = Field(1, description="Days; truncated and clamped to at least 1")
    position: float | None = Field(None, description="Explicit position; appended if omitted")


class UpdateDestinationRequest(BaseModel):
    """Request body for PATCH. Omitted fields are left unchanged."""

    city: str | None = None
    duration: float | None = None
    position: float | None = Field(None, ge=0)
    notes: str | None = None
    budget: float | None = None


class ReorderRequest(BaseModel):
    """Request body for PUT /trips/{trip_id}/destinations/order."""

    ordered_ids: list[int]


@router.post("", response_model=Destination, status_code=status.HTTP_201_CREATED)
def create_destination(
    trip_id: int,
    request: CreateDestinationRequest,
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
) -> Destination:
    """Add a destination to a trip."""
    ensure_trip_owner(store, trip_id, current_user_id(ctx))
    return DestinationService(store).create(
        trip_id, request.city, request.duration, request.position
    )


@router.put("/order", status_code=status.HTTP_204_NO_CONTENT)
def reorder_destinations(
    trip_id: int,
    request: ReorderRequest,
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
) -> Response:
    """Persist a new destination order.

    The body must list every destination of the trip exactly once.
    """
    ensure_trip_owner(store, trip_id, current_user_id(ctx))
    DestinationService(store).reorder(trip_id, request.ordered_ids)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{destination_id}", response_model=Destination)
def update_destination(
    trip_id: int,
    destination_id: int,
    request: UpdateDestinationRequest,
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
) -> Destination:
    """Update the supplied destination fields."""
    ensure_trip_owner(store, trip_id, current_user_id(ctx))
    updates = request.model_dump(include=request.model_fields_set)
    # Only notes and budget are nullable columns
    updates = {
        key: value
        for key, value in updates.items()
        if value is not None or key in NULLABLE_FIELDS
    }
    return DestinationService(store).update(destination_id, trip_id, **updates)


@router.delete("/{destination_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_destination(
    trip_id: int,
    destination_id: int,
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
) -> Response:
    """Delete a destination; remaining positions are not renumbered."""
    ensure_trip_owner(store, trip_id, current_user_id(ctx))
    DestinationService(store).delete(destination_id, trip_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{destination_id}/details", response_model=DestinationDetail)
def save_destination_details(
    trip_id: int,
    destination_id: int,
    request: DestinationDetailsInput,
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
) -> DestinationDetail:
    """Save a destination together with its transport and accommodation."""
    ensure_trip_owner(store, trip_id, current_user_id(ctx))
    return SubEntityUpserter(store).save_destination_details(trip_id, destination_id, request)
