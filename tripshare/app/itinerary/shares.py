"""Share-link issuance and resolution.

Tokens are random and fixed length, so a collision is possible but rare. On
a unique-constraint conflict issuance retries with a fresh token, within a
small fixed budget.
"""

import logging
import secrets
import string
from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import BaseModel

from tripshare.app.config import Settings, get_settings
from tripshare.app.db.repositories import Table, TableStore
from tripshare.app.errors import ConflictError, NotFoundError, ShareTokenExhaustedError, ValidationError
from tripshare.app.itinerary.aggregator import TripAggregator
from tripshare.app.models.trip import ShareLink, TripDetail
from tripshare.app.utils.metrics import (
    share_links_issued_total,
    share_resolutions_total,
    share_token_collisions_total,
)

logger = logging.getLogger(__name__)

TOKEN_ALPHABET = string.ascii_letters + string.digits + "_-"


def generate_share_token(length: int = 12) -> str:
    """Generate a URL-safe random token."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def normalize_share_locale(locale: str | None, settings: Settings | None = None) -> str:
    """Map any locale to a supported one, falling back to the default."""
    settings = settings or get_settings()
    if locale in settings.supported_locales:
        return locale  # type: ignore[return-value]
    return settings.default_locale


def _as_utc(value: datetime) -> datetime:
    # Some drivers return naive timestamps for timezone-aware columns
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class IssuedShareLink(BaseModel):
    """Result of issuing a share link."""

    share_id: int
    share_token: str
    share_url: str


class ShareLinkIssuer:
    """Issues, resolves and deactivates share links."""

    def __init__(
        self,
        store: TableStore,
        settings: Settings | None = None,
        token_factory: Callable[[int], str] = generate_share_token,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or get_settings()
        self._token_factory = token_factory
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._aggregator = TripAggregator(store)

    def issue(
        self, trip_id: int, locale: str | None = None, expires_at: datetime | None = None
    ) -> IssuedShareLink:
        """Issue a new share link for a trip.

        Args:
            trip_id: Trip to share
            locale: UI locale embedded in the URL
            expires_at: Optional expiry; None never expires

        Returns:
            Share id, token and fully-qualified share URL

        Raises:
            ValidationError: If trip_id is not a positive id
            NotFoundError: If the trip does not exist
            ShareTokenExhaustedError: If every attempt collided
        """
        if isinstance(trip_id, bool) or not isinstance(trip_id, int) or trip_id <= 0:
            raise ValidationError("tripId must be a positive number.")

        if self._store.get(Table.trips, {"trip_id": trip_id}) is None:
            raise NotFoundError(f"Trip {trip_id} not found.")

        safe_locale = normalize_share_locale(locale, self._settings)
        attempts = self._settings.share_token_max_attempts

        for attempt in range(1, attempts + 1):
            token = self._token_factory(self._settings.share_token_length)

            try:
                row = self._store.insert(
                    Table.trip_shares,
                    {
                        "trip_id": trip_id,
                        "share_token": token,
                        "is_active": True,
                        "expires_at": expires_at,
                    },
                )
            except ConflictError:
                share_token_collisions_total.inc()
                logger.warning(
                    "Share token collision",
                    extra={"structured": {"trip_id": trip_id, "attempt": attempt}},
                )
                continue

            share_links_issued_total.inc()
            logger.info(
                "Share link issued",
                extra={"structured": {"trip_id": trip_id, "share_id": row["share_id"]}},
            )

            return IssuedShareLink(
                share_id=row["share_id"],
                share_token=token,
                share_url=self._build_url(safe_locale, token),
            )

        raise ShareTokenExhaustedError("Could not generate a unique share token.")

    def resolve(self, token: str) -> TripDetail | None:
        """Resolve a token to a read-only trip snapshot.

        Returns:
            Trip read model, or None if the token is unknown, inactive or expired
        """
        normalized = token.strip() if isinstance(token, str) else ""
        if not normalized:
            share_resolutions_total.labels(outcome="not_found").inc()
            return None

        row = self._store.get(Table.trip_shares, {"share_token": normalized})
        if row is None:
            share_resolutions_total.labels(outcome="not_found").inc()
            return None

        link = ShareLink.model_validate(row)

        if not link.is_active:
            share_resolutions_total.labels(outcome="inactive").inc()
            return None

        if link.expires_at is not None and _as_utc(link.expires_at) <= self._clock():
            share_resolutions_total.labels(outcome="expired").inc()
            return None

        detail = self._aggregator.get_trip(link.trip_id)
        share_resolutions_total.labels(outcome="resolved" if detail else "not_found").inc()
        return detail

    def deactivate(self, share_id: int) -> None:
        """Deactivate a share link. Idempotent.

        Raises:
            ValidationError: If share_id is not a positive id
            NotFoundError: If the share link does not exist
        """
        if isinstance(share_id, bool) or not isinstance(share_id, int) or share_id <= 0:
            raise ValidationError("shareId must be a positive number.")

        row = self._store.update(Table.trip_shares, {"share_id": share_id}, {"is_active": False})
        if row is None:
            raise NotFoundError(f"Share link {share_id} not found.")

        logger.info("Share link deactivated", extra={"structured": {"share_id": share_id}})

    def get_link(self, share_id: int) -> ShareLink | None:
        """Get a share link by id."""
        row = self._store.get(Table.trip_shares, {"share_id": share_id})
        return ShareLink.model_validate(row) if row else None

    def list_for_trip(self, trip_id: int) -> list[ShareLink]:
        """List a trip's share links, newest first."""
        rows = self._store.list(Table.trip_shares, {"trip_id": trip_id}, order_by="-share_id")
        return [ShareLink.model_validate(row) for row in rows]

    def _build_url(self, locale: str, token: str) -> str:
        return f"{self._settings.app_url.rstrip('/')}/{locale}/share/{token}"
