"""Portable trip document models (import/export format).

Field names are part of the persisted file format and must stay stable:
previously exported files are imported with these exact keys.
"""

from typing import Annotated, Literal

from pydantic import (
    AllowInfNan,
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)

# Booleans and numeric strings are not numbers here
Number = StrictInt | StrictFloat
FiniteNumber = StrictInt | Annotated[StrictFloat, AllowInfNan(False)]
TransportTypeName = Literal["plane", "train", "bus"]


class _DocumentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ExportedTransport(_DocumentModel):
    """Transport block; every key optional."""

    type: TransportTypeName | None = None
    leave_accommodation_time: StrictStr | None = Field(default=None, alias="leaveAccommodationTime")
    terminal: StrictStr | None = None
    company: StrictStr | None = None
    booking_number: StrictStr | None = Field(default=None, alias="bookingNumber")
    booking_code: StrictStr | None = Field(default=None, alias="bookingCode")
    departure_time: StrictStr | None = Field(default=None, alias="departureTime")

    @field_validator("type", mode="before")
    @classmethod
    def reject_explicit_null_type(cls, v: object) -> object:
        """The type key may be omitted but not null."""
        if v is None:
            raise ValueError("type must be one of plane, train, bus")
        return v


class ExportedAccommodation(_DocumentModel):
    """Accommodation block; every key optional."""

    check_in: StrictStr | None = Field(default=None, alias="checkIn")
    check_out: StrictStr | None = Field(default=None, alias="checkOut")
    name: StrictStr | None = None
    booking_link: StrictStr | None = Field(default=None, alias="bookingLink")
    booking_code: StrictStr | None = Field(default=None, alias="bookingCode")
    address: StrictStr | None = None


class ExportedDestination(_DocumentModel):
    """One destination of the document, in itinerary order."""

    id: StrictStr | StrictInt | None = None
    city: StrictStr
    duration: FiniteNumber
    transport: ExportedTransport = Field(default_factory=ExportedTransport)
    accommodation: ExportedAccommodation = Field(default_factory=ExportedAccommodation)
    notes: StrictStr = ""
    budget: Number | None = None

    @field_validator("city")
    @classmethod
    def validate_city_not_blank(cls, v: str) -> str:
        """Ensure city has content after trimming."""
        if not v.strip():
            raise ValueError("city must not be blank")
        return v

    @field_validator("id", "notes", mode="before")
    @classmethod
    def reject_explicit_null(cls, v: object) -> object:
        """id and notes may be omitted but not null."""
        if v is None:
            raise ValueError("value must not be null")
        return v

    @field_validator("transport", "accommodation", mode="before")
    @classmethod
    def null_block_is_empty(cls, v: object) -> object:
        """A null sub-entity block reads as an empty one."""
        return {} if v is None else v


class ExportedDeparture(_DocumentModel):
    """Outbound leg."""

    type: Literal["departure"]
    city: StrictStr
    date: StrictStr | None = None
    transport: ExportedTransport = Field(default_factory=ExportedTransport)

    @field_validator("transport", mode="before")
    @classmethod
    def null_block_is_empty(cls, v: object) -> object:
        """A null transport block reads as an empty one."""
        return {} if v is None else v


class ExportedReturn(_DocumentModel):
    """Inbound leg."""

    type: Literal["return"]
    city: StrictStr
    transport: ExportedTransport = Field(default_factory=ExportedTransport)

    @field_validator("transport", mode="before")
    @classmethod
    def null_block_is_empty(cls, v: object) -> object:
        """A null transport block reads as an empty one."""
        return {} if v is None else v


class ExportedTrip(_DocumentModel):
    """Complete portable trip document."""

    title: StrictStr
    start_date: StrictStr | None = Field(default=None, alias="startDate")
    departure: ExportedDeparture | None = None
    destinations: list[ExportedDestination]
    return_: ExportedReturn | None = Field(default=None, alias="return")
