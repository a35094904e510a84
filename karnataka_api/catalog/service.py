"""Catalog service for places, feedback and bookings."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import ValidationError

from karnataka_api.api.errors import ApiError, ApiErrorCode
from karnataka_api.catalog.models import (
    Booking,
    BookingFields,
    CatalogRecord,
    Feedback,
    FeedbackFields,
    Place,
    PlaceFields,
    PlaceUpdate,
)
from karnataka_api.catalog.repository import DocumentCollection

LOGGER = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=CatalogRecord)


def _records(
    collection: DocumentCollection, model: type[RecordT], rows: list[dict[str, Any]]
) -> list[RecordT]:
    items: list[RecordT] = []
    for row in rows:
        try:
            items.append(model.model_validate(row))
        except ValidationError:
            LOGGER.warning(
                "catalog_record_invalid",
                extra={"collection": collection.name, "document_id": row.get("_id")},
            )
    return items


class CatalogService:
    """CRUD operations behind the places, feedback and bookings routes."""

    def __init__(
        self,
        *,
        places: DocumentCollection,
        feedback: DocumentCollection,
        bookings: DocumentCollection,
    ) -> None:
        self._places = places
        self._feedback = feedback
        self._bookings = bookings

    @staticmethod
    def _not_found(error_code: ApiErrorCode, label: str) -> ApiError:
        return ApiError(status_code=404, error_code=error_code, message=f"{label} not found")

    def _log(self, event: str, collection: DocumentCollection, document_id: str) -> None:
        LOGGER.info(event, extra={"collection": collection.name, "document_id": document_id})

    # places

    def create_place(self, fields: PlaceFields) -> Place:
        place = Place.model_validate(self._places.insert(fields.model_dump()))
        self._log("place_created", self._places, place.id)
        return place

    def list_places(self) -> list[Place]:
        return _records(self._places, Place, self._places.list_all())

    def get_place(self, place_id: str) -> Place:
        doc = self._places.get(place_id)
        if doc is None:
            raise self._not_found(ApiErrorCode.PLACE_NOT_FOUND, "Place")
        return Place.model_validate(doc)

    def update_place(self, place_id: str, changes: PlaceUpdate) -> Place:
        doc = self._places.update(
            place_id, changes.model_dump(exclude_unset=True, exclude_none=True)
        )
        if doc is None:
            raise self._not_found(ApiErrorCode.PLACE_NOT_FOUND, "Place")
        self._log("place_updated", self._places, place_id)
        return Place.model_validate(doc)

    def delete_place(self, place_id: str) -> Place:
        doc = self._places.delete(place_id)
        if doc is None:
            raise self._not_found(ApiErrorCode.PLACE_NOT_FOUND, "Place")
        self._log("place_deleted", self._places, place_id)
        return Place.model_validate(doc)

    # feedback

    def create_feedback(self, fields: FeedbackFields) -> Feedback:
        feedback = Feedback.model_validate(self._feedback.insert(fields.model_dump()))
        self._log("feedback_created", self._feedback, feedback.id)
        return feedback

    def list_feedback(self) -> list[Feedback]:
        return _records(self._feedback, Feedback, self._feedback.list_all())

    def delete_feedback(self, feedback_id: str) -> Feedback:
        doc = self._feedback.delete(feedback_id)
        if doc is None:
            raise self._not_found(ApiErrorCode.FEEDBACK_NOT_FOUND, "Feedback entry")
        self._log("feedback_deleted", self._feedback, feedback_id)
        return Feedback.model_validate(doc)

    # bookings

    def create_booking(self, fields: BookingFields) -> Booking:
        booking = Booking.model_validate(
            self._bookings.insert(fields.model_dump(mode="json"))
        )
        self._log("booking_created", self._bookings, booking.id)
        return booking

    def list_bookings(self) -> list[Booking]:
        return _records(self._bookings, Booking, self._bookings.list_all())

    def delete_booking(self, booking_id: str) -> Booking:
        doc = self._bookings.delete(booking_id)
        if doc is None:
            raise self._not_found(ApiErrorCode.BOOKING_NOT_FOUND, "Booking")
        self._log("booking_deleted", self._bookings, booking_id)
        return Booking.model_validate(doc)
