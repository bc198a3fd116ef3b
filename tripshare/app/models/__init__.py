"""Models package - re-exports for convenience."""

from tripshare.app.models.common import (
    DestinationLeg,
    TransportParent,
    TransportRole,
    TransportType,
    TripLeg,
    TripLegRole,
)
from tripshare.app.models.export import (
    ExportedAccommodation,
    ExportedDeparture,
    ExportedDestination,
    ExportedReturn,
    ExportedTransport,
    ExportedTrip,
)
from tripshare.app.models.trip import (
    Accommodation,
    Destination,
    DestinationDetail,
    ShareLink,
    Transport,
    Trip,
    TripDetail,
    TripSummary,
)

__all__ = [
    # Common
    "TransportType",
    "TransportRole",
    "TripLegRole",
    "DestinationLeg",
    "TripLeg",
    "TransportParent",
    # Stored rows
    "Trip",
    "Destination",
    "Transport",
    "Accommodation",
    "ShareLink",
    # Read models
    "DestinationDetail",
    "TripDetail",
    "TripSummary",
    # Portable document
    "ExportedTrip",
    "ExportedDeparture",
    "ExportedReturn",
    "ExportedDestination",
    "ExportedTransport",
    "ExportedAccommodation",
]
