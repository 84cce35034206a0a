from __future__ import annotations

import logging
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from facility_navigator.errors import InvalidCoordinate
from facility_navigator.models import (
    Address,
    Contact,
    Coordinates,
    Facility,
    OpeningHours,
    Weekday,
)

logger = logging.getLogger(__name__)


def _blank_if_null(value: Any) -> Any:
    return "" if value is None else value


def _empty_if_null(value: Any) -> Any:
    return {} if value is None else value


def _services(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, list):
        return [item for item in value if item is not None]
    return value


# The directory sends explicit nulls for blank text fields.
Text = Annotated[str, BeforeValidator(_blank_if_null)]


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AddressPayload(_WireModel):
    street: Text = ""
    city: Text = ""
    state: Text = ""
    postal_code: Text = Field(default="", alias="postalCode")


class ContactPayload(_WireModel):
    phone: Text = ""
    email: Text = ""
    address: Annotated[AddressPayload, BeforeValidator(_empty_if_null)] = Field(default_factory=AddressPayload)


class OpeningHoursPayload(_WireModel):
    open: str | None = None
    close: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.open) and bool(self.close)


class LocationPayload(_WireModel):
    type: str = "Point"
    coordinates: list[Any] = Field(default_factory=list)

    def to_coordinates(self) -> Coordinates:
        if len(self.coordinates) < 2:
            raise InvalidCoordinate("INVALID_COORDINATE", "location needs latitude and longitude")
        try:
            point = Coordinates(latitude=float(self.coordinates[0]), longitude=float(self.coordinates[1]))
        except (TypeError, ValueError) as exc:
            raise InvalidCoordinate("INVALID_COORDINATE", "location values are not numeric") from exc
        if not point.is_valid:
            raise InvalidCoordinate("INVALID_COORDINATE", f"location out of range: {point}")
        return point


class FacilityPayload(_WireModel):
    id: str = Field(alias="_id")
    name: str
    description: Text = ""
    contact: Annotated[ContactPayload, BeforeValidator(_empty_if_null)] = Field(default_factory=ContactPayload)
    services: Annotated[list[str], BeforeValidator(_services)] = Field(default_factory=list)
    operating_hours: Annotated[dict[str, OpeningHoursPayload | None], BeforeValidator(_empty_if_null)] = Field(
        default_factory=dict, alias="operatingHours"
    )
    location: LocationPayload | None = None

    def to_entity(self) -> Facility:
        return Facility(
            id=self.id,
            name=self.name,
            description=self.description,
            contact=Contact(phone=self.contact.phone, email=self.contact.email),
            address=Address(
                street=self.contact.address.street,
                city=self.contact.address.city,
                state=self.contact.address.state,
                postal_code=self.contact.address.postal_code,
            ),
            services=tuple(self.services),
            operating_hours=self._hours(),
            location=self._location(),
        )

    def _hours(self) -> dict[Weekday, OpeningHours]:
        hours: dict[Weekday, OpeningHours] = {}
        for raw_day, slot in self.operating_hours.items():
            day = Weekday.parse(raw_day)
            if day is None:
                logger.warning("facility_unknown_weekday", extra={"facility_id": self.id, "day": raw_day})
                continue
            if slot is None or not slot.is_complete:
                logger.info("facility_hours_slot_skipped", extra={"facility_id": self.id, "day": raw_day})
                continue
            hours[day] = OpeningHours(open=slot.open, close=slot.close)
        return hours

    def _location(self) -> Coordinates | None:
        if self.location is None:
            logger.warning("facility_location_missing", extra={"facility_id": self.id})
            return None
        try:
            return self.location.to_coordinates()
        except InvalidCoordinate as exc:
            logger.warning(
                "facility_location_invalid",
                extra={"facility_id": self.id, "reason": exc.message},
            )
            return None
