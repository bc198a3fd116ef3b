"""Request context for ownership enforcement."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Request context containing the caller's identity and locale.

    Used to scope trip reads and writes to their owner.
    """

    user_id: int | None
    locale: str = "es"
