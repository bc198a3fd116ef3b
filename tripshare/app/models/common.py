"""Common types and enums shared across all models."""

from dataclasses import dataclass
from enum import Enum
from typing import Literal


class TransportType(str, Enum):
    """Means of transport."""

    plane = "plane"
    train = "train"
    bus = "bus"


TransportRole = Literal["destination", "departure", "return"]
TripLegRole = Literal["departure", "return"]


@dataclass(frozen=True)
class DestinationLeg:
    """Transport parent: the leg that arrives at a destination."""

    destination_id: int
    kind: Literal["destination"] = "destination"


@dataclass(frozen=True)
class TripLeg:
    """Transport parent: the trip's outbound or inbound leg."""

    trip_id: int
    kind: TripLegRole


# Exactly one parent kind, and the role is implied by the variant
TransportParent = DestinationLeg | TripLeg
