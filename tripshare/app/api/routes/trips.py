"""Trip endpoints - CRUD, end-date changes, trip-leg transports, export and import."""

from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Response, status
from pydantic import BaseModel, Field

from tripshare.app.api.auth import current_user_id, require_user
from tripshare.app.api.deps import ensure_trip_owner, get_store
from tripshare.app.config import Settings, get_settings
from tripshare.app.db.context import RequestContext
from tripshare.app.db.repositories import TableStore
from tripshare.app.itinerary.aggregator import TripAggregator, TripView, build_trip_view
from tripshare.app.itinerary.codec import TripImporter, export_trip
from tripshare.app.itinerary.dates import EndDatePolicy, EndDateValidation
from tripshare.app.itinerary.subentities import TransportInput
from tripshare.app.itinerary.trips import TripService
from tripshare.app.models.common import TripLegRole
from tripshare.app.models.trip import Transport, Trip, TripSummary

router = APIRouter(prefix="/trips", tags=["trips"])


class CreateTripRequest(BaseModel):
    """Request body for POST /trips."""

    title: str | None = Field(None, max_length=200, description="Trip title; blank uses the default")


class UpdateTripRequest(BaseModel):
    """Request body for PATCH /trips/{trip_id}. Omitted fields are left unchanged."""

    title: str | None = Field(None, max_length=200)
    start_date: date | None = None
    departure_city: str | None = None
    return_city: str | None = None


class ChangeEndDateRequest(BaseModel):
    """Request body for POST /trips/{trip_id}/end-date."""

    end_date: date
    policy: EndDatePolicy = EndDatePolicy.append


class ImportTripResponse(BaseModel):
    """Response for POST /trips/import."""

    trip_id: int


@router.get("", response_model=list[TripSummary])
def list_trips(
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
) -> list[TripSummary]:
    """List the caller's trips, newest first."""
    return TripAggregator(store).list_trips(current_user_id(ctx))


@router.post("", response_model=Trip, status_code=status.HTTP_201_CREATED)
def create_trip(
    request: CreateTripRequest,
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Trip:
    """Create an empty trip."""
    return TripService(store, settings).create_trip(current_user_id(ctx), request.title)


@router.post("/import", response_model=ImportTripResponse, status_code=status.HTTP_201_CREATED)
def import_trip(
    document: Annotated[Any, Body()],
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ImportTripResponse:
    """Create a new trip from an exported document.

    Args:
        document: Decoded trip document
        ctx: Request context
        store: Table store
        settings: Application settings

    Returns:
        ID of the created trip
    """
    trip_id = TripImporter(store, settings).apply_import(document, current_user_id(ctx))
    return ImportTripResponse(trip_id=trip_id)


@router.get("/{trip_id}", response_model=TripView)
def get_trip(
    trip_id: int,
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
) -> TripView:
    """Get a trip with its ordered destinations and derived dates."""
    detail = TripAggregator(store).get_owned_trip(trip_id, current_user_id(ctx))
    return build_trip_view(detail)


@router.patch("/{trip_id}", response_model=Trip)
def update_trip(
    trip_id: int,
    request: UpdateTripRequest,
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Trip:
    """Update the supplied trip fields."""
    ensure_trip_owner(store, trip_id, current_user_id(ctx))
    updates = request.model_dump(include=request.model_fields_set)
    return TripService(store, settings).update_trip(trip_id, **updates)


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_trip(
    trip_id: int,
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """Delete a trip and everything attached to it."""
    ensure_trip_owner(store, trip_id, current_user_id(ctx))
    TripService(store, settings).delete_trip(trip_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{trip_id}/end-date", response_model=EndDateValidation)
def change_end_date(
    trip_id: int,
    request: ChangeEndDateRequest,
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> EndDateValidation:
    """Move the trip end date and fill surplus days per the chosen policy.

    An invalid end date is reported in the body (valid=false) and nothing
    is written.
    """
    ensure_trip_owner(store, trip_id, current_user_id(ctx))
    return TripService(store, settings).change_end_date(trip_id, request.end_date, request.policy)


@router.put("/{trip_id}/transports/{role}", response_model=Transport | None)
def upsert_trip_transport(
    trip_id: int,
    role: TripLegRole,
    request: TransportInput,
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Transport | None:
    """Upsert the departure or return transport; null when skipped as empty."""
    ensure_trip_owner(store, trip_id, current_user_id(ctx))
    return TripService(store, settings).upsert_trip_transport(trip_id, role, request)


@router.get("/{trip_id}/export")
def export_trip_document(
    trip_id: int,
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
) -> dict[str, Any]:
    """Export a trip as a portable document."""
    detail = TripAggregator(store).get_owned_trip(trip_id, current_user_id(ctx))
    return export_trip(detail)
