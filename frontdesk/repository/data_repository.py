"""Repository layer responsible for all database access."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Protocol
from uuid import uuid4

from frontdesk.domain.catalog import build_hotel_rooms
from frontdesk.domain.models import (
    GuestChild,
    NewGuestDraft,
    Reservation,
    ReservationStatus,
    Room,
    RoomRules,
)
from frontdesk.utils.config import Settings, get_settings
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)

_RESERVATION_COLUMNS = {
    "room_id",
    "check_in",
    "check_out",
    "status",
    "guest_id",
    "guest_name",
    "adults",
    "children",
    "total_amount",
    "has_pets",
    "needs_parking",
    "additional_charges",
    "pricing_tier_id",
    "vip_discount_percentage",
}


class ReservationGateway(Protocol):
    """Asynchronous persistence boundary used by the reservation workflow."""

    async def create(self, reservation: Reservation) -> Reservation: ...

    async def update(self, reservation_id: str, changes: Mapping[str, Any]) -> None: ...

    async def delete(self, reservation_id: str) -> None: ...


def _to_column(field_name: str, value: Any) -> Any:
    if field_name in ("check_in", "check_out"):
        return value.isoformat()
    if field_name == "status":
        return ReservationStatus(value).value
    if field_name == "children":
        return json.dumps([child.age for child in value])
    if field_name in ("total_amount", "additional_charges"):
        return str(value)
    if field_name in ("has_pets", "needs_parking"):
        return int(bool(value))
    return value


def _row_to_reservation(row: sqlite3.Row) -> Reservation:
    return Reservation(
        reservation_id=str(row["id"]),
        room_id=str(row["room_id"]),
        check_in=datetime.fromisoformat(str(row["check_in"])),
        check_out=datetime.fromisoformat(str(row["check_out"])),
        status=ReservationStatus(str(row["status"])),
        guest_id=row["guest_id"],
        guest_name=str(row["guest_name"] or ""),
        adults=int(row["adults"]),
        children=tuple(GuestChild(age=int(age)) for age in json.loads(row["children"] or "[]")),
        total_amount=Decimal(str(row["total_amount"])),
        has_pets=bool(row["has_pets"]),
        needs_parking=bool(row["needs_parking"]),
        additional_charges=Decimal(str(row["additional_charges"])),
        pricing_tier_id=row["pricing_tier_id"],
        vip_discount_percentage=float(row["vip_discount_percentage"]),
    )


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Rooms (
                        id TEXT PRIMARY KEY,
                        number TEXT NOT NULL UNIQUE,
                        floor INTEGER NOT NULL,
                        room_type TEXT NOT NULL,
                        max_occupancy INTEGER NOT NULL CHECK (max_occupancy > 0),
                        seasonal_rates TEXT NOT NULL,
                        is_premium INTEGER NOT NULL DEFAULT 0,
                        minimum_nights INTEGER NOT NULL DEFAULT 1,
                        cleaning_days_between INTEGER NOT NULL DEFAULT 0,
                        fixed_pricing INTEGER NOT NULL DEFAULT 0,
                        included_parking_spaces INTEGER NOT NULL DEFAULT 0
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Guests (
                        id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        email TEXT,
                        phone TEXT,
                        nationality TEXT,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Reservations (
                        id TEXT PRIMARY KEY,
                        room_id TEXT NOT NULL,
                        check_in TEXT NOT NULL,
                        check_out TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'confirmed',
                        guest_id TEXT,
                        guest_name TEXT,
                        adults INTEGER NOT NULL DEFAULT 1,
                        children TEXT NOT NULL DEFAULT '[]',
                        total_amount TEXT NOT NULL DEFAULT '0.00',
                        has_pets INTEGER NOT NULL DEFAULT 0,
                        needs_parking INTEGER NOT NULL DEFAULT 0,
                        additional_charges TEXT NOT NULL DEFAULT '0.00',
                        pricing_tier_id TEXT,
                        vip_discount_percentage REAL NOT NULL DEFAULT 0,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        CHECK (check_in < check_out),
                        FOREIGN KEY (room_id) REFERENCES Rooms(id),
                        FOREIGN KEY (guest_id) REFERENCES Guests(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_reservations_room_dates
                    ON Reservations(room_id, check_in, check_out);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_catalog(self, rooms: Optional[Iterable[Room]] = None) -> int:
        """Insert the room inventory only when the Rooms table is empty."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) AS count FROM Rooms;")
                if int(cursor.fetchone()["count"]) > 0:
                    logger.info("Room catalog already present; skipping seed")
                    return 0

                rows = [
                    (
                        room.room_id,
                        room.number,
                        room.floor,
                        room.room_type,
                        room.max_occupancy,
                        json.dumps(dict(room.seasonal_rates)),
                        int(room.is_premium),
                        room.rules.minimum_nights,
                        room.rules.cleaning_days_between,
                        int(room.rules.fixed_pricing),
                        room.rules.included_parking_spaces,
                    )
                    for room in (rooms if rooms is not None else build_hotel_rooms())
                ]
                cursor.executemany(
                    """
                    INSERT INTO Rooms (
                        id,
                        number,
                        floor,
                        room_type,
                        max_occupancy,
                        seasonal_rates,
                        is_premium,
                        minimum_nights,
                        cleaning_days_between,
                        fixed_pricing,
                        included_parking_spaces
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    rows,
                )
                conn.commit()
            logger.info("Room catalog seeded | rooms=%s", len(rows))
            return len(rows)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Room catalog seeding failed: {exc}") from exc

    def list_rooms(self) -> list[Room]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Rooms ORDER BY floor ASC, number ASC;")
            return [
                Room(
                    room_id=str(row["id"]),
                    number=str(row["number"]),
                    floor=int(row["floor"]),
                    room_type=str(row["room_type"]),
                    max_occupancy=int(row["max_occupancy"]),
                    seasonal_rates=json.loads(row["seasonal_rates"]),
                    is_premium=bool(row["is_premium"]),
                    rules=RoomRules(
                        minimum_nights=int(row["minimum_nights"]),
                        cleaning_days_between=int(row["cleaning_days_between"]),
                        fixed_pricing=bool(row["fixed_pricing"]),
                        included_parking_spaces=int(row["included_parking_spaces"]),
                    ),
                )
                for row in cursor.fetchall()
            ]

    def create_guest(self, guest: NewGuestDraft) -> str:
        """Insert a guest row and return the generated id."""
        guest_id = f"guest-{uuid4().hex[:12]}"
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO Guests (id, name, email, phone, nationality)
                VALUES (?, ?, ?, ?, ?);
                """,
                (guest_id, guest.name, guest.email, guest.phone, guest.nationality),
            )
            conn.commit()
        return guest_id

    def get_guest_name(self, guest_id: str) -> Optional[str]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM Guests WHERE id = ?;", (guest_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            return str(row["name"])

    def delete_guest(self, guest_id: str) -> None:
        """Remove a guest that no reservation references."""
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    DELETE FROM Guests
                    WHERE id = ?
                      AND NOT EXISTS (SELECT 1 FROM Reservations WHERE guest_id = ?);
                    """,
                    (guest_id, guest_id),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise RuntimeError(f"Guest delete failed: {exc}") from exc

    def count_guests(self) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS count FROM Guests;")
            return int(cursor.fetchone()["count"])

    def list_reservations(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[Reservation]:
        """Return reservations overlapping ``[start, end)``; open bounds load everything."""
        clauses: list[str] = []
        params: list[str] = []
        if end is not None:
            clauses.append("check_in < ?")
            params.append(end.isoformat())
        if start is not None:
            clauses.append("check_out > ?")
            params.append(start.isoformat())
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT * FROM Reservations {where} ORDER BY check_in ASC, id ASC;",
                tuple(params),
            )
            return [_row_to_reservation(row) for row in cursor.fetchall()]

    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Reservations WHERE id = ?;", (reservation_id,))
            row = cursor.fetchone()
            return None if row is None else _row_to_reservation(row)

    def create_reservation(self, reservation: Reservation) -> Reservation:
        """Persist a reservation under a fresh id and return the stored record."""
        reservation_id = f"res-{uuid4().hex[:12]}"
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO Reservations (
                        id,
                        room_id,
                        check_in,
                        check_out,
                        status,
                        guest_id,
                        guest_name,
                        adults,
                        children,
                        total_amount,
                        has_pets,
                        needs_parking,
                        additional_charges,
                        pricing_tier_id,
                        vip_discount_percentage
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    (
                        reservation_id,
                        reservation.room_id,
                        _to_column("check_in", reservation.check_in),
                        _to_column("check_out", reservation.check_out),
                        _to_column("status", reservation.status),
                        reservation.guest_id,
                        reservation.guest_name,
                        reservation.adults,
                        _to_column("children", reservation.children),
                        _to_column("total_amount", reservation.total_amount),
                        _to_column("has_pets", reservation.has_pets),
                        _to_column("needs_parking", reservation.needs_parking),
                        _to_column("additional_charges", reservation.additional_charges),
                        reservation.pricing_tier_id,
                        reservation.vip_discount_percentage,
                    ),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise RuntimeError(f"Reservation insert failed: {exc}") from exc
        stored = self.get_reservation(reservation_id)
        if stored is None:
            raise RuntimeError(f"Reservation {reservation_id} missing after insert")
        return stored

    def update_reservation(self, reservation_id: str, changes: Mapping[str, Any]) -> None:
        unknown = set(changes) - _RESERVATION_COLUMNS
        if unknown:
            raise ValueError(f"Unsupported reservation fields: {sorted(unknown)}")
        if not changes:
            return
        assignments = ", ".join(f"{field_name} = ?" for field_name in changes)
        values = tuple(_to_column(field_name, value) for field_name, value in changes.items())
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"UPDATE Reservations SET {assignments} WHERE id = ?;",
                    values + (reservation_id,),
                )
                conn.commit()
                if cursor.rowcount == 0:
                    raise LookupError(f"Reservation {reservation_id} not found")
        except sqlite3.Error as exc:
            raise RuntimeError(f"Reservation update failed: {exc}") from exc

    def delete_reservation(self, reservation_id: str) -> None:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM Reservations WHERE id = ?;", (reservation_id,))
                conn.commit()
                if cursor.rowcount == 0:
                    raise LookupError(f"Reservation {reservation_id} not found")
        except sqlite3.Error as exc:
            raise RuntimeError(f"Reservation delete failed: {exc}") from exc

    def count_reservations(self) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS count FROM Reservations;")
            return int(cursor.fetchone()["count"])


class SqliteReservationGateway:
    """Runs blocking repository writes off the event loop."""

    def __init__(self, repository: DataRepository) -> None:
        self._repository = repository

    async def create(self, reservation: Reservation) -> Reservation:
        return await asyncio.to_thread(self._repository.create_reservation, reservation)

    async def update(self, reservation_id: str, changes: Mapping[str, Any]) -> None:
        await asyncio.to_thread(self._repository.update_reservation, reservation_id, dict(changes))

    async def delete(self, reservation_id: str) -> None:
        await asyncio.to_thread(self._repository.delete_reservation, reservation_id)
