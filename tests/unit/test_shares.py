"""Unit tests for share-link issuance, resolution and deactivation."""

from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone

import pytest

from tripshare.app.config import Settings
from tripshare.app.db.inmemory import InMemoryTableStore
from tripshare.app.db.repositories import Table
from tripshare.app.errors import NotFoundError, ShareTokenExhaustedError, ValidationError
from tripshare.app.itinerary.positions import DestinationService
from tripshare.app.itinerary.shares import (
    TOKEN_ALPHABET,
    ShareLinkIssuer,
    generate_share_token,
    normalize_share_locale,
)

NOW = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)


def _tokens(*values: str) -> Callable[[int], str]:
    """Token factory yielding the given tokens in order."""
    iterator: Iterator[str] = iter(values)
    return lambda _length: next(iterator)


def test_generated_tokens_are_url_safe() -> None:
    """Tokens have the configured length and use the URL-safe alphabet."""
    token = generate_share_token(12)

    assert len(token) == 12
    assert set(token) <= set(TOKEN_ALPHABET)


@pytest.mark.parametrize(("locale", "expected"), [("en", "en"), ("es", "es"), ("fr", "es"), (None, "es")])
def test_normalize_share_locale(locale: str | None, expected: str, settings: Settings) -> None:
    """Unsupported locales fall back to Spanish."""
    assert normalize_share_locale(locale, settings) == expected


class TestIssue:
    """Tests for ShareLinkIssuer.issue."""

    def test_builds_url_from_app_url_and_locale(
        self, store: InMemoryTableStore, settings: Settings, make_trip: Callable[..., int]
    ) -> None:
        """The URL strips the trailing slash of the app URL."""
        trip_id = make_trip(store)
        issuer = ShareLinkIssuer(store, settings, token_factory=_tokens("abcDEF123_-x"))

        issued = issuer.issue(trip_id, "en")

        assert issued.share_token == "abcDEF123_-x"
        assert issued.share_url == "https://trips.example.com/en/share/abcDEF123_-x"
        row = store.get(Table.trip_shares, {"share_id": issued.share_id})
        assert row is not None
        assert row["is_active"] is True
        assert row["expires_at"] is None

    def test_retries_on_collision(
        self, store: InMemoryTableStore, settings: Settings, make_trip: Callable[..., int]
    ) -> None:
        """A colliding token is replaced by a fresh one."""
        trip_id = make_trip(store)
        ShareLinkIssuer(store, settings, token_factory=_tokens("taken")).issue(trip_id)

        issued = ShareLinkIssuer(
            store, settings, token_factory=_tokens("taken", "taken", "fresh")
        ).issue(trip_id, "es")

        assert issued.share_token == "fresh"
        assert issued.share_url.endswith("/es/share/fresh")

    def test_gives_up_after_three_collisions(
        self, store: InMemoryTableStore, settings: Settings, make_trip: Callable[..., int]
    ) -> None:
        """Three collisions in a row exhaust the attempts."""
        trip_id = make_trip(store)
        ShareLinkIssuer(store, settings, token_factory=_tokens("taken")).issue(trip_id)

        issuer = ShareLinkIssuer(
            store, settings, token_factory=_tokens("taken", "taken", "taken", "never-used")
        )

        with pytest.raises(ShareTokenExhaustedError):
            issuer.issue(trip_id)

        assert len(store.list(Table.trip_shares, {})) == 1

    def test_invalid_trip_id(self, store: InMemoryTableStore, settings: Settings) -> None:
        """Non-positive ids are rejected."""
        with pytest.raises(ValidationError):
            ShareLinkIssuer(store, settings).issue(0)

    def test_missing_trip(self, store: InMemoryTableStore, settings: Settings) -> None:
        """The trip must exist."""
        with pytest.raises(NotFoundError):
            ShareLinkIssuer(store, settings).issue(404)


class TestResolve:
    """Tests for ShareLinkIssuer.resolve."""

    def _issuer(self, store: InMemoryTableStore, settings: Settings) -> ShareLinkIssuer:
        return ShareLinkIssuer(store, settings, clock=lambda: NOW)

    def test_resolves_active_link_to_trip(
        self, store: InMemoryTableStore, settings: Settings, make_trip: Callable[..., int]
    ) -> None:
        """An active link resolves to the ordered trip read model."""
        trip_id = make_trip(store, title="Andes")
        service = DestinationService(store)
        service.create(trip_id, "Cusco", 2, position=1)
        service.create(trip_id, "Lima", 3, position=0)
        issued = self._issuer(store, settings).issue(trip_id)

        detail = self._issuer(store, settings).resolve(issued.share_token)

        assert detail is not None
        assert detail.title == "Andes"
        assert [d.city for d in detail.destinations] == ["Lima", "Cusco"]

    def test_blank_and_unknown_tokens(self, store: InMemoryTableStore, settings: Settings) -> None:
        """Blank or unknown tokens resolve to nothing."""
        issuer = self._issuer(store, settings)

        assert issuer.resolve("") is None
        assert issuer.resolve("   ") is None
        assert issuer.resolve("nope") is None

    def test_inactive_link(
        self, store: InMemoryTableStore, settings: Settings, make_trip: Callable[..., int]
    ) -> None:
        """Deactivated links stop resolving."""
        trip_id = make_trip(store)
        issuer = self._issuer(store, settings)
        issued = issuer.issue(trip_id)

        issuer.deactivate(issued.share_id)

        assert issuer.resolve(issued.share_token) is None

    def test_expiry_boundary(
        self, store: InMemoryTableStore, settings: Settings, make_trip: Callable[..., int]
    ) -> None:
        """A link expiring exactly now is already expired."""
        trip_id = make_trip(store)
        issuer = self._issuer(store, settings)
        expired = issuer.issue(trip_id, expires_at=NOW)
        valid = issuer.issue(trip_id, expires_at=NOW + timedelta(seconds=1))

        assert issuer.resolve(expired.share_token) is None
        assert issuer.resolve(valid.share_token) is not None

    def test_naive_expiry_is_treated_as_utc(
        self, store: InMemoryTableStore, settings: Settings, make_trip: Callable[..., int]
    ) -> None:
        """Naive timestamps from the store compare as UTC."""
        trip_id = make_trip(store)
        issuer = self._issuer(store, settings)
        issued = issuer.issue(trip_id, expires_at=datetime(2025, 5, 1, 11, 0))

        assert issuer.resolve(issued.share_token) is None

    def test_resolve_does_not_mutate(
        self, store: InMemoryTableStore, settings: Settings, make_trip: Callable[..., int]
    ) -> None:
        """Resolution is read-only."""
        trip_id = make_trip(store)
        issuer = self._issuer(store, settings)
        issued = issuer.issue(trip_id)
        before = store.list(Table.trip_shares, {})

        issuer.resolve(issued.share_token)

        assert store.list(Table.trip_shares, {}) == before


class TestDeactivate:
    """Tests for ShareLinkIssuer.deactivate."""

    def test_idempotent(
        self, store: InMemoryTableStore, settings: Settings, make_trip: Callable[..., int]
    ) -> None:
        """Deactivating twice is fine."""
        trip_id = make_trip(store)
        issuer = ShareLinkIssuer(store, settings)
        issued = issuer.issue(trip_id)

        issuer.deactivate(issued.share_id)
        issuer.deactivate(issued.share_id)

        link = issuer.get_link(issued.share_id)
        assert link is not None
        assert link.is_active is False

    def test_invalid_and_unknown_ids(self, store: InMemoryTableStore, settings: Settings) -> None:
        """Invalid ids are validation errors; unknown ids are not found."""
        issuer = ShareLinkIssuer(store, settings)

        with pytest.raises(ValidationError):
            issuer.deactivate(-1)
        with pytest.raises(NotFoundError):
            issuer.deactivate(404)


def test_list_for_trip_newest_first(
    store: InMemoryTableStore, settings: Settings, make_trip: Callable[..., int]
) -> None:
    """Share links are listed newest first and scoped to the trip."""
    trip_id = make_trip(store)
    other_trip_id = make_trip(store)
    issuer = ShareLinkIssuer(store, settings)
    first = issuer.issue(trip_id)
    issuer.issue(other_trip_id)
    second = issuer.issue(trip_id)

    links = issuer.list_for_trip(trip_id)

    assert [link.share_id for link in links] == [second.share_id, first.share_id]
