#!/usr/bin/env python3
"""Seed materials catalog script.

Loads materials from a JSON file (a list of objects with code, name,
unit, cost_price and sale_price) or a small built-in starter set, and
inserts the ones whose code is not in the catalog yet.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --file materials.json
    python scripts/seed_catalog.py --create-tables
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from obras.catalog.service import CatalogService
from obras.infrastructure import models  # noqa: F401  (registers all tables)
from obras.infrastructure.database import async_session_factory, engine, Base

STARTER_MATERIALS = [
    {"code": "CEM-50", "name": "Cemento portland 50kg", "unit": "u", "cost_price": "7.80", "sale_price": "10.50"},
    {"code": "ARE-M3", "name": "Arena gruesa", "unit": "m3", "cost_price": "18.00", "sale_price": "25.00"},
    {"code": "LAD-HUE", "name": "Ladrillo hueco 12x18x33", "unit": "u", "cost_price": "0.45", "sale_price": "0.65"},
    {"code": "PIN-LAT", "name": "Pintura latex interior 20l", "unit": "u", "cost_price": "42.00", "sale_price": "58.00"},
    {"code": "CAB-2.5", "name": "Cable unipolar 2.5mm", "unit": "m", "cost_price": "0.60", "sale_price": "0.95"},
    {"code": "CER-60", "name": "Ceramico 60x60", "unit": "m2", "cost_price": "12.40", "sale_price": "17.90"},
]


async def create_tables() -> None:
    """Create database tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed(rows: list[dict]) -> dict:
    """Seed the catalog in a single transaction.

    Args:
        rows: Material rows.

    Returns:
        Seeding result.
    """
    async with async_session_factory() as session:
        result = await CatalogService(session).seed_catalog(rows)
        await session.commit()
        return result


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed the materials catalog",
    )
    parser.add_argument(
        "--file",
        type=Path,
        help="JSON file with a list of materials (default: built-in starter set)",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create tables from the models before seeding (development only)",
    )

    args = parser.parse_args()

    rows = json.loads(args.file.read_text()) if args.file else STARTER_MATERIALS

    print("=" * 60)
    print("Obras Catalog Seeder")
    print("=" * 60)
    print(f"Source: {args.file or 'built-in starter set'}")
    print(f"Materials: {len(rows)}")
    print()

    if args.create_tables:
        print("Creating database tables...")
        await create_tables()
        print("Tables ready.")
        print()

    result = await seed(rows)
    print(f"  Created: {result['materials_created']} materials")
    print(f"  Skipped: {result['skipped']} existing codes")
    print()

    await engine.dispose()

    print("=" * 60)
    print("Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
