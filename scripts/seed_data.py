#!/usr/bin/env python3
"""
Seed the database with a small demo fleet.

Drops all tables, recreates them, and loads three vehicles, five cities,
the standard expense categories, three trips and a handful of expenses
through the kernel services (so trip totals are reconciled the normal way).

Usage:
    python3 scripts/seed_data.py                 # URL from fleet_config
    python3 scripts/seed_data.py sqlite:///fleet.db
"""

import logging
import sys
from datetime import timedelta
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

VEHICLES = [
    ("B 1234 CD", "Tronton", "Hino", 2020, "8.00"),
    ("B 5678 EF", "Engkel", "Mitsubishi", 2021, "3.50"),
    ("B 9012 GH", "CDE", "Isuzu", 2019, "5.00"),
]

CITIES = ["Jakarta", "Surabaya", "Bandung", "Semarang", "Yogyakarta"]

CATEGORIES = [
    ("Ganti Oli", "maintenance"),
    ("Servis Rutin", "maintenance"),
    ("Ganti Ban", "maintenance"),
    ("Ganti Aki", "maintenance"),
    ("Sparepart", "maintenance"),
    ("Listrik Kantor", "general"),
    ("Sewa Kantor", "general"),
    ("Gaji Staff", "general"),
]


def main(argv: list[str]) -> int:
    logging.disable(logging.CRITICAL)

    from fleet_config import build_expense_policy, get_active_config
    from fleet_kernel.db.engine import (
        create_tables,
        drop_tables,
        init_engine_from_url,
        session_scope,
    )
    from fleet_kernel.domain.clock import SystemClock
    from fleet_kernel.services import (
        ExpenseCategoryService,
        ExpenseService,
        LocationService,
        TripService,
        VehicleService,
    )

    config = get_active_config()
    policy = build_expense_policy(config)
    db_url = argv[1] if len(argv) > 1 else config.database.url
    clock = SystemClock()
    today = clock.today()

    print()
    print(f"  [1/4] Connecting to {db_url.split('@')[-1]}...")
    try:
        init_engine_from_url(
            db_url,
            echo=config.database.echo,
            pool_size=config.database.pool_size,
            max_overflow=config.database.max_overflow,
        )
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    print("  [2/4] Dropping old tables and recreating schema...")
    drop_tables()
    create_tables()

    print("  [3/4] Loading master data...")
    with session_scope() as session:
        vehicles = VehicleService(session, clock)
        vehicle_ids = [
            vehicles.create_vehicle(
                plate_number=plate, vehicle_type=kind, brand=brand,
                year=year, capacity_tons=capacity,
            ).id
            for plate, kind, brand, year, capacity in VEHICLES
        ]

        locations = LocationService(session, clock)
        city_ids = {city: locations.create_location(city).id for city in CITIES}

        categories = ExpenseCategoryService(session, policy, clock)
        category_ids = {
            name: categories.create_category(name, kind).id
            for name, kind in CATEGORIES
        }

    print("  [4/4] Loading trips and expenses...")
    with session_scope() as session:
        trips = TripService(session, clock, override_role=config.override_role, policy=policy)
        expenses = ExpenseService(session, policy, clock)

        surabaya = trips.create_trip(
            trip_date=today - timedelta(days=10),
            vehicle_id=vehicle_ids[0],
            allowance="2000000",
            origin_id=city_ids["Jakarta"],
            destination_id=city_ids["Surabaya"],
            notes="Pengiriman barang ke Surabaya",
        )
        bandung = trips.create_trip(
            trip_date=today - timedelta(days=5),
            vehicle_id=vehicle_ids[1],
            allowance="1000000",
            origin_id=city_ids["Jakarta"],
            destination_id=city_ids["Bandung"],
            notes="Kirim ke distributor Bandung",
        )
        semarang = trips.create_trip(
            trip_date=today - timedelta(days=2),
            vehicle_id=vehicle_ids[0],
            allowance="1500000",
            origin_id=city_ids["Surabaya"],
            destination_id=city_ids["Semarang"],
            notes="Trip ke Semarang",
        )
        for trip in (surabaya, bandung):
            trips.request_transition(trip.id, "ongoing")
            trips.request_transition(trip.id, "completed")
        trips.request_transition(semarang.id, "ongoing")

        seed_expenses = [
            (15, vehicle_ids[0], None, "Ganti Oli", "500000", "Ganti oli mesin + filter"),
            (12, vehicle_ids[0], None, "Servis Rutin", "800000", "Servis 10.000 km"),
            (8, vehicle_ids[1], bandung.id, "Ganti Ban", "1200000", "Ganti 2 ban depan"),
            (3, None, None, "Listrik Kantor", "750000", "Listrik bulan ini"),
            (1, vehicle_ids[0], semarang.id, "Sparepart", "300000", "Lampu sein"),
        ]
        for days_ago, vehicle_id, trip_id, category, amount, note in seed_expenses:
            expenses.create_expense(
                expense_date=today - timedelta(days=days_ago),
                category_id=category_ids[category],
                amount=amount,
                trip_id=trip_id,
                vehicle_id=vehicle_id,
                notes=note,
            )

    print()
    print(
        f"  Done. {len(VEHICLES)} vehicles, {len(CITIES)} cities, "
        f"{len(CATEGORIES)} categories, 3 trips, {len(seed_expenses)} expenses."
    )
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
