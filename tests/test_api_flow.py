from __future__ import annotations

from dataclasses import replace

from fastapi.testclient import TestClient

from app import create_app
from frontdesk.services.notification_service import RecordingNotifier
from frontdesk.utils.config import get_settings


class OfflineGateway:
    async def create(self, reservation):
        raise ConnectionError("store offline")

    async def update(self, reservation_id, changes):
        raise ConnectionError("store offline")

    async def delete(self, reservation_id):
        raise ConnectionError("store offline")


def _build_test_settings(tmp_path, filename: str):
    get_settings.cache_clear()
    return replace(get_settings(), database_path=tmp_path / filename)


def _booking_payload(**overrides):
    payload = {
        "room_id": "room-102",
        "check_in": "2026-07-20",
        "check_out": "2026-07-23",
        "new_guest": {"name": "Ana Horvat", "email": "ana@example.com", "phone": "+385 91 000"},
        "adults": 2,
    }
    payload.update(overrides)
    return payload


def test_booking_end_to_end_flow(tmp_path):
    settings = _build_test_settings(tmp_path, "api_flow.db")
    notifier = RecordingNotifier()
    app = create_app(settings=settings, notifier=notifier)

    with TestClient(app) as client:
        health = client.get("/health")
        assert health.status_code == 200
        assert health.json()["rooms"] == 55

        rooms = client.get("/rooms").json()
        rooftop = next(room for room in rooms if room["room_id"] == "room-401")
        assert rooftop["minimum_nights"] == 4
        assert rooftop["fixed_pricing"] is True

        quote = client.post("/quote", json=_booking_payload())
        assert quote.status_code == 200
        assert quote.json()["total"] == 549.6
        assert quote.json()["tourism_tax"] == 9.6

        assert client.post("/quote", json=_booking_payload(room_id="room-999")).status_code == 404
        assert client.post("/quote", json=_booking_payload(check_out="2026-07-20")).status_code == 422

        validation = client.post("/validate", json=_booking_payload(adults=3)).json()
        assert validation["valid"] is False
        assert validation["errors"][0]["type"] == "capacity_violation"

        created = client.post("/reservations", json=_booking_payload())
        assert created.status_code == 201
        reservation = created.json()["reservation"]
        reservation_id = reservation["reservation_id"]
        assert reservation["total_amount"] == 549.6

        occupied = client.get(
            "/rooms/room-102/occupied_dates",
            params={"start": "2026-07-01", "end": "2026-08-01"},
        ).json()
        assert occupied["dates"] == ["2026-07-20", "2026-07-21", "2026-07-22"]

        free = client.get("/rooms/room-102/is_free", params={"day": "2026-07-23"}).json()
        assert free["free"] is True
        limit = client.get("/rooms/room-102/max_checkout", params={"check_in": "2026-07-10"}).json()
        assert limit["max_checkout"] == "2026-07-20"

        conflict = client.post("/reservations", json=_booking_payload(check_in="2026-07-21"))
        assert conflict.status_code == 422
        assert conflict.json()["detail"]["errors"][0]["type"] == "date_conflict"

        patched = client.patch(f"/reservations/{reservation_id}", json={"status": "checked-in"})
        assert patched.status_code == 200
        assert patched.json()["reservation"]["status"] == "checked-in"

        moved = client.post(
            f"/reservations/{reservation_id}/move",
            json={"room_id": "room-103", "check_in": "2026-07-21", "check_out": "2026-07-24"},
        )
        assert moved.status_code == 200
        assert moved.json()["reservation"]["room_id"] == "room-103"

        stats = client.get("/statistics", params={"start": "2026-07-01", "end": "2026-08-01"}).json()
        assert stats["total_reservations"] == 1
        assert stats["status_breakdown"] == {"checked-in": 1}

        assert client.get("/operations/statistics").json()["pending"] == 0
        assert client.post("/operations/unknown/rollback").status_code == 404
        summary = client.post("/operations/rollback_all").json()
        assert summary == {"success": True, "operations_rolled_back": 0, "error": None}

        assert client.delete(f"/reservations/{reservation_id}").status_code == 200
        assert client.delete(f"/reservations/{reservation_id}").status_code == 404

    assert "error" not in notifier.levels()


def test_reservation_survives_restart(tmp_path):
    settings = replace(
        _build_test_settings(tmp_path, "restart.db"),
        availability_horizon_days=3650,
    )

    with TestClient(create_app(settings=settings)) as client:
        assert client.post("/reservations", json=_booking_payload(
            check_in="2030-07-20",
            check_out="2030-07-23",
        )).status_code == 201

    with TestClient(create_app(settings=settings)) as client:
        free = client.get("/rooms/room-102/is_free", params={"day": "2030-07-21"}).json()
        assert free["free"] is False


def test_store_failure_is_rolled_back(tmp_path):
    settings = _build_test_settings(tmp_path, "offline.db")
    app = create_app(settings=settings, gateway=OfflineGateway())

    with TestClient(app) as client:
        response = client.post("/reservations", json=_booking_payload())
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "store offline"

        assert client.get("/reservations").json() == []
        rolled_back = client.get("/operations", params={"status": "rolled_back"}).json()
        assert len(rolled_back) == 1
        assert rolled_back[0]["kind"] == "create"


def test_calendar_selection_hands_range_to_validation(tmp_path):
    settings = _build_test_settings(tmp_path, "selection.db")

    with TestClient(create_app(settings=settings)) as client:
        assert client.post("/reservations", json=_booking_payload()).status_code == 201

        started = client.post(
            "/selections/desk-1/click_pm",
            json={"room_id": "room-102", "day": "2026-07-23"},
        ).json()
        assert started["state"] == "selecting"

        hovered = client.post(
            "/selections/desk-1/hover_am",
            json={"room_id": "room-102", "day": "2026-07-25"},
        ).json()
        assert hovered["preview"]["check_out"] == "2026-07-25T11:00:00"

        committed = client.post(
            "/selections/desk-1/click_am",
            json={"room_id": "room-102", "day": "2026-07-25"},
        ).json()
        assert committed["state"] == "committed"
        assert committed["selection"]["check_in"] == "2026-07-23T15:00:00"
        assert committed["valid"] is True

        client.delete("/selections/desk-1")
        client.post("/selections/desk-1/click_pm", json={"room_id": "room-102", "day": "2026-07-19"})
        overlapping = client.post(
            "/selections/desk-1/click_am",
            json={"room_id": "room-102", "day": "2026-07-22"},
        ).json()
        assert overlapping["valid"] is False
        assert overlapping["errors"][0]["type"] == "date_conflict"

        wrong_room = client.post(
            "/selections/desk-2/click_am",
            json={"room_id": "room-102", "day": "2026-07-22"},
        )
        assert wrong_room.status_code == 409
        assert client.post(
            "/selections/desk-2/click_pm",
            json={"room_id": "room-999", "day": "2026-07-22"},
        ).status_code == 404
