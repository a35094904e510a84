"""Pydantic models for places, feedback and bookings."""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def escape_markup(value: str) -> str:
    """Neutralize HTML tags in user-supplied text."""
    return value.replace("<", "&lt;").replace(">", "&gt;")


class SanitizedInput(BaseModel):
    """Request body base: unknown keys rejected, text trimmed and tag-escaped."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    @field_validator("*", mode="after")
    @classmethod
    def _escape_text(cls, value: Any) -> Any:
        return escape_markup(value) if isinstance(value, str) else value


class CatalogRecord(BaseModel):
    """Stored document; ``id`` is serialized as ``_id`` like the old API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # Old documents may hold explicit nulls for optional fields.
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class PlaceFields(SanitizedInput):
    placetitle: str = Field(min_length=1, max_length=200)
    placelocation: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=5000)
    guidename: str = Field(default="", max_length=100)
    guidemobile: str = Field(default="", max_length=20)
    guidelanguage: str = Field(default="", max_length=100)
    residentialdetails: str = Field(default="", max_length=1000)
    policestation: str = Field(default="", max_length=500)
    firestation: str = Field(default="", max_length=500)
    maplink: str = Field(default="", max_length=2000)
    image: str = Field(default="", max_length=2000)
    latitude: str = Field(default="", max_length=32)
    longitude: str = Field(default="", max_length=32)


class PlaceUpdate(SanitizedInput):
    """Partial place update; only supplied fields change."""

    placetitle: str | None = Field(default=None, min_length=1, max_length=200)
    placelocation: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=5000)
    guidename: str | None = Field(default=None, max_length=100)
    guidemobile: str | None = Field(default=None, max_length=20)
    guidelanguage: str | None = Field(default=None, max_length=100)
    residentialdetails: str | None = Field(default=None, max_length=1000)
    policestation: str | None = Field(default=None, max_length=500)
    firestation: str | None = Field(default=None, max_length=500)
    maplink: str | None = Field(default=None, max_length=2000)
    image: str | None = Field(default=None, max_length=2000)
    latitude: str | None = Field(default=None, max_length=32)
    longitude: str | None = Field(default=None, max_length=32)

    @field_validator("placetitle", "placelocation", "description", mode="before")
    @classmethod
    def _required_not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("cannot be null")
        return value


class Place(CatalogRecord):
    placetitle: str
    placelocation: str
    description: str
    guidename: str = ""
    guidemobile: str = ""
    guidelanguage: str = ""
    residentialdetails: str = ""
    policestation: str = ""
    firestation: str = ""
    maplink: str = ""
    image: str = ""
    latitude: str = ""
    longitude: str = ""


class FeedbackFields(SanitizedInput):
    name: str = Field(min_length=1, max_length=100)
    feedback: str = Field(min_length=1, max_length=2000)
    phone: str = Field(default="", max_length=20)
    place: str = Field(default="", max_length=200)


class Feedback(CatalogRecord):
    name: str
    feedback: str
    phone: str = ""
    place: str = ""


class BookingFields(SanitizedInput):
    name: str = Field(min_length=1, max_length=100)
    mobileNumber: str = Field(pattern=r"^\d{10,15}$")
    place: str = Field(min_length=1, max_length=200)
    participants: int = Field(ge=1, le=500)
    date: dt.date
    time: str = Field(min_length=1, max_length=20)
    language: str = Field(min_length=1, max_length=50)
    totalPrice: float = Field(ge=0)


class Booking(CatalogRecord):
    name: str
    mobileNumber: str
    place: str
    participants: int
    date: dt.date
    time: str
    language: str
    totalPrice: float

    @field_validator("date", mode="before")
    @classmethod
    def _date_from_datetime(cls, value: Any) -> Any:
        if isinstance(value, dt.datetime):
            return value.date()
        return value
