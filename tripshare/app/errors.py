"""Domain error taxonomy shared by the itinerary engine and its adapters."""


class TripShareError(Exception):
    """Base class for all domain errors."""

    pass


class ValidationError(TripShareError):
    """Malformed or out-of-range input. Never retried."""

    pass


class NotFoundError(TripShareError):
    """Referenced row is absent."""

    pass


class ConflictError(TripShareError):
    """Unique-constraint violation reported by the store."""

    pass


class ShareTokenExhaustedError(ConflictError):
    """Every share token attempt collided with an existing token."""

    pass


class StorageError(TripShareError):
    """Opaque failure from the storage collaborator."""

    pass
