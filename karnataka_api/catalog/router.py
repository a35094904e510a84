"""FastAPI router for place, feedback and booking endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from karnataka_api.api.contracts import (
    ApiErrorResponse,
    BookingDeletedResponse,
    FeedbackCreatedResponse,
    FeedbackDeletedResponse,
    PlaceCreatedResponse,
    PlaceDeletedResponse,
    PlaceUpdatedResponse,
)
from karnataka_api.catalog.models import (
    Booking,
    BookingFields,
    Feedback,
    FeedbackFields,
    Place,
    PlaceFields,
    PlaceUpdate,
)
from karnataka_api.catalog.service import CatalogService

NOT_FOUND = {404: {"model": ApiErrorResponse}}


class CatalogRouter:
    """Factory wrapper that builds catalog API router from a service."""

    def __init__(self, service: CatalogService) -> None:
        """Store service dependency used by route handlers."""
        self._service = service

    def build(self) -> APIRouter:
        """Create and return configured catalog router."""
        router = APIRouter()
        self._add_place_routes(router)
        self._add_feedback_routes(router)
        self._add_booking_routes(router)
        return router

    def _add_place_routes(self, router: APIRouter) -> None:
        @router.post("/Createplaces", response_model=PlaceCreatedResponse, tags=["places"])
        def create_place(req: PlaceFields) -> PlaceCreatedResponse:
            """Create a place (admin)."""
            return PlaceCreatedResponse(place=self._service.create_place(req))

        @router.get("/places", response_model=list[Place], tags=["places"])
        def list_places() -> list[Place]:
            """List all places."""
            return self._service.list_places()

        @router.get(
            "/places/{place_id}", response_model=Place, responses=NOT_FOUND, tags=["places"]
        )
        def get_place(place_id: str) -> Place:
            """Get one place."""
            return self._service.get_place(place_id)

        @router.put(
            "/places/{place_id}",
            response_model=PlaceUpdatedResponse,
            responses=NOT_FOUND,
            tags=["places"],
        )
        def update_place(place_id: str, req: PlaceUpdate) -> PlaceUpdatedResponse:
            """Update supplied fields of a place (admin)."""
            return PlaceUpdatedResponse(updatedPlace=self._service.update_place(place_id, req))

        @router.delete(
            "/places/{place_id}",
            response_model=PlaceDeletedResponse,
            responses=NOT_FOUND,
            tags=["places"],
        )
        def delete_place(place_id: str) -> PlaceDeletedResponse:
            """Delete a place (admin)."""
            deleted = self._service.delete_place(place_id)
            return PlaceDeletedResponse(
                message="Place deleted successfully", deletedPlace=deleted
            )

    def _add_feedback_routes(self, router: APIRouter) -> None:
        @router.post("/Feedback", response_model=FeedbackCreatedResponse, tags=["feedback"])
        def create_feedback(req: FeedbackFields) -> FeedbackCreatedResponse:
            """Submit feedback."""
            return FeedbackCreatedResponse(feedback=self._service.create_feedback(req))

        @router.get("/Feedback", response_model=list[Feedback], tags=["feedback"])
        def list_feedback() -> list[Feedback]:
            """List feedback entries (admin)."""
            return self._service.list_feedback()

        @router.delete(
            "/Feedback/{feedback_id}",
            response_model=FeedbackDeletedResponse,
            responses=NOT_FOUND,
            tags=["feedback"],
        )
        def delete_feedback(feedback_id: str) -> FeedbackDeletedResponse:
            """Delete a feedback entry (admin)."""
            deleted = self._service.delete_feedback(feedback_id)
            return FeedbackDeletedResponse(
                message="Feedback entry deleted successfully", deletedFeedback=deleted
            )

    def _add_booking_routes(self, router: APIRouter) -> None:
        @router.post(
            "/bookings", response_model=Booking, status_code=201, tags=["bookings"]
        )
        def create_booking(req: BookingFields) -> Booking:
            """Book a guided visit."""
            return self._service.create_booking(req)

        @router.get("/bookings", response_model=list[Booking], tags=["bookings"])
        def list_bookings() -> list[Booking]:
            """List all bookings (admin)."""
            return self._service.list_bookings()

        @router.delete(
            "/bookings/{booking_id}",
            response_model=BookingDeletedResponse,
            responses=NOT_FOUND,
            tags=["bookings"],
        )
        def delete_booking(booking_id: str) -> BookingDeletedResponse:
            """Delete a booking (admin)."""
            self._service.delete_booking(booking_id)
            return BookingDeletedResponse(message="Booking deleted successfully")


def create_catalog_router(service: CatalogService) -> APIRouter:
    """Create catalog router using provided application service."""
    return CatalogRouter(service=service).build()
