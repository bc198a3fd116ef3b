"""Share-link endpoints - issue, list, deactivate and the public shared view."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from tripshare.app.api.auth import current_user_id, get_current_context, require_user
from tripshare.app.api.deps import ensure_trip_owner, get_store
from tripshare.app.config import Settings, get_settings
from tripshare.app.db.context import RequestContext
from tripshare.app.db.repositories import TableStore
from tripshare.app.errors import NotFoundError
from tripshare.app.itinerary.aggregator import TripView, build_trip_view
from tripshare.app.itinerary.shares import IssuedShareLink, ShareLinkIssuer
from tripshare.app.models.trip import ShareLink

router = APIRouter(tags=["shares"])


class IssueShareRequest(BaseModel):
    """Request body for POST /trips/{trip_id}/shares."""

    expires_at: datetime | None = Field(None, description="Expiry; the link never expires if omitted")


@router.post(
    "/trips/{trip_id}/shares",
    response_model=IssuedShareLink,
    status_code=status.HTTP_201_CREATED,
)
def issue_share_link(
    trip_id: int,
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    request: IssueShareRequest | None = None,
) -> IssuedShareLink:
    """Issue a new share link in the caller's locale."""
    ensure_trip_owner(store, trip_id, current_user_id(ctx))
    expires_at = request.expires_at if request else None
    return ShareLinkIssuer(store, settings).issue(trip_id, ctx.locale, expires_at)


@router.get("/trips/{trip_id}/shares", response_model=list[ShareLink])
def list_share_links(
    trip_id: int,
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> list[ShareLink]:
    """List a trip's share links, newest first."""
    ensure_trip_owner(store, trip_id, current_user_id(ctx))
    return ShareLinkIssuer(store, settings).list_for_trip(trip_id)


@router.delete("/trips/{trip_id}/shares/{share_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_share_link(
    trip_id: int,
    share_id: int,
    ctx: Annotated[RequestContext, Depends(require_user)],
    store: Annotated[TableStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """Deactivate a share link. Repeating the call is harmless."""
    ensure_trip_owner(store, trip_id, current_user_id(ctx))

    issuer = ShareLinkIssuer(store, settings)
    link = issuer.get_link(share_id)
    if link is None or link.trip_id != trip_id:
        raise NotFoundError(f"Share link {share_id} not found.")

    issuer.deactivate(share_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/shared/{token}", response_model=TripView)
def get_shared_trip(
    token: str,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    store: Annotated[TableStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TripView:
    """Public read-only view of a shared trip. No authentication required.

    Raises:
        HTTPException: 404 if the token is unknown, inactive or expired
    """
    detail = ShareLinkIssuer(store, settings).resolve(token)
    if detail is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Trip not found or share link is no longer active"
            if ctx.locale == "en"
            else "Viaje no encontrado o el enlace ya no está activo",
        )
    return build_trip_view(detail)
