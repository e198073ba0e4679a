#!/usr/bin/env python3
"""Validate local booking engine environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import date
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from frontdesk.domain.models import GuestComposition
from frontdesk.domain.seasons import validate_season_table
from frontdesk.repository.data_repository import DataRepository
from frontdesk.services.availability_service import stay_instants
from frontdesk.services.pricing_service import PricingRequest, PricingService
from frontdesk.utils.config import get_settings

SEPARATOR_LINE = "=" * 44
EXPECTED_ROOM_COUNT = 55


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="frontdesk-env-")

    # CHECK 1 — Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2 — Required packages importable with versions
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("numpy", "numpy"),
        ("pandas", "pandas"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 3 — Seasonal periods cover every day exactly once
    try:
        validate_season_table()
        ok, line = _print_result("Seasonal period table: 366 days covered", True)
    except Exception as exc:
        ok, line = _print_result("Seasonal period table", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "frontdesk_validation.db",
        )
        repository = DataRepository(validation_settings)

        # CHECK 4 — Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5 — Room catalog seeding
        try:
            seeded = repository.seed_catalog()
            if seeded != EXPECTED_ROOM_COUNT:
                raise RuntimeError(f"expected {EXPECTED_ROOM_COUNT} rooms, got {seeded}")
            ok, line = _print_result(f"Room catalog: {seeded} rooms", True)
        except Exception as exc:
            ok, line = _print_result("Room catalog", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 6 — Reference quote (double room, 3 nights in July, 2 adults)
        try:
            room = next(room for room in repository.list_rooms() if room.room_type == "double")
            check_in, check_out = stay_instants(date(2026, 7, 20), date(2026, 7, 23))
            breakdown = PricingService(settings=validation_settings).calculate(
                PricingRequest(
                    room=room,
                    check_in=check_in,
                    check_out=check_out,
                    guests=GuestComposition(adults=2),
                )
            )
            if str(breakdown.total) != "549.60":
                raise RuntimeError(f"expected total 549.60, got {breakdown.total}")
            ok, line = _print_result("Reference quote", True, f": total={breakdown.total}")
        except Exception as exc:
            ok, line = _print_result("Reference quote", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Front Desk Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
