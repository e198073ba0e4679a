"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the booking services, registers routers, and runs startup checks.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from frontdesk.controllers.booking_controller import router as booking_router
from frontdesk.controllers.operations_controller import router as operations_router
from frontdesk.controllers.selection_controller import router as selection_router
from frontdesk.domain.seasons import ConfigurationError, validate_season_table
from frontdesk.repository.data_repository import (
    DataRepository,
    ReservationGateway,
    SqliteReservationGateway,
)
from frontdesk.services.availability_service import AvailabilityIndex
from frontdesk.services.notification_service import LoggingNotifier, Notifier
from frontdesk.services.optimistic_service import OptimisticMutationCoordinator
from frontdesk.services.pricing_service import PricingService
from frontdesk.services.reservation_service import ReservationWorkflowService
from frontdesk.services.selection_service import SelectionRegistry
from frontdesk.utils.config import Settings, get_settings
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[ReservationGateway] = None,
    notifier: Optional[Notifier] = None,
) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Every service is constructed here and handed its collaborators explicitly;
    controllers resolve them from app.state. Tests pass their own settings,
    gateway or notifier to swap the persistence and notification edges.
    """
    settings = settings or get_settings()

    # --- Repository (single SQLite connection factory) ---
    repository = DataRepository(settings)

    # --- Engine components ---
    availability = AvailabilityIndex()
    pricing_service = PricingService(settings=settings)
    coordinator = OptimisticMutationCoordinator(settings=settings)
    reservation_service = ReservationWorkflowService(
        repository=repository,
        settings=settings,
        availability=availability,
        pricing_service=pricing_service,
        coordinator=coordinator,
        gateway=gateway or SqliteReservationGateway(repository),
        notifier=notifier or LoggingNotifier(),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app, settings)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(booking_router)
    app.include_router(operations_router)
    app.include_router(selection_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.settings = settings
    app.state.repository = repository
    app.state.availability = availability
    app.state.pricing_service = pricing_service
    app.state.coordinator = coordinator
    app.state.reservation_service = reservation_service
    app.state.selections = SelectionRegistry(settings)

    return app


def _startup(app: FastAPI, settings: Settings) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Order matters:
      1. The season table must partition the year before anything is priced.
      2. Schema must exist before seeding.
      3. Rooms are read back from the store so the validator sees persisted rules.
      4. The availability horizon is loaded last.
    """
    repository: DataRepository = app.state.repository
    reservation_service: ReservationWorkflowService = app.state.reservation_service

    logger.info("Startup: validating seasonal period table")
    try:
        validate_season_table()
    except ConfigurationError:
        logger.exception("Startup aborted: seasonal period table is invalid")
        raise

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    if settings.seed_catalog_on_startup:
        logger.info("Startup: seeding room catalog (skipped if Rooms table not empty)")
        repository.seed_catalog()

    rooms = repository.list_rooms()
    if rooms:
        reservation_service.load_rooms(rooms)

    logger.info("Startup: loading availability horizon")
    reservation_service.load_horizon()

    logger.info("Startup complete | rooms=%s", len(reservation_service.rooms))


# Module-level app object for uvicorn
app = create_app()
