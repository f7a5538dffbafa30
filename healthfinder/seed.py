"""
HealthFinder API — Dataset Seeding Command
============================================

What:  Explicit administrative operation that imports the static clinic
       dataset into the store, optionally wiping existing data first.
How:   Reads the JSON array with aiofiles, connects with the same retrying
       connect used at server startup, creates missing tables and
       bulk-inserts clinics in one transaction.
When:  Run by an operator before serving traffic. The server never seeds
       on its own.

Usage:
    python -m healthfinder.seed                 # import into an empty store
    python -m healthfinder.seed --reset         # drop reviews + clinics, re-import
    python -m healthfinder.seed --data other.json

    --reset defaults to the RESET_DATABASE setting.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import aiofiles
from sqlalchemy import delete, func, select

from healthfinder.config import settings
from healthfinder.database import (
    async_session_factory,
    connect_store,
    create_tables,
    dispose_engine,
)
from healthfinder.exceptions import HealthFinderError
from healthfinder.models import Clinic, Review

logger = logging.getLogger(__name__)

SEED_FIELDS = (
    "region",
    "clinic_operation",
    "clinic_type",
    "clinic_name",
    "address",
    "open_hours",
    "drop_in",
)


async def load_dataset(path: str) -> List[Dict[str, str]]:
    """
    Read the clinic dataset (a JSON array of objects).

    Only the descriptive clinic columns are taken; aggregates always start
    at zero. Missing or null values become empty strings.

    Raises:
        ValueError: the file is not a JSON array of objects.
    """
    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        raw = await f.read()

    records = json.loads(raw)
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        raise ValueError(f"{path} must contain a JSON array of clinic objects")

    return [
        {name: str(record.get(name) or "").strip() for name in SEED_FIELDS}
        for record in records
    ]


async def seed_database(data_path: str, reset: bool = False) -> int:
    """
    Import the dataset. Returns the number of clinics inserted.

    Without reset, the import only runs against an empty clinics table.
    """
    records = await load_dataset(data_path)
    await connect_store()
    await create_tables()

    async with async_session_factory() as session:
        async with session.begin():
            if reset:
                removed_reviews = (await session.execute(delete(Review))).rowcount
                removed_clinics = (await session.execute(delete(Clinic))).rowcount
                logger.warning(
                    "Reset: removed %s reviews and %s clinics", removed_reviews, removed_clinics
                )
            else:
                existing = (
                    await session.execute(select(func.count(Clinic.id)))
                ).scalar_one()
                if existing:
                    logger.info(
                        "Store already holds %d clinics; skipping import (use --reset to reload)",
                        existing,
                    )
                    return 0

            session.add_all([Clinic(**record) for record in records])

    logger.info("Imported %d clinics from %s", len(records), data_path)
    return len(records)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="healthfinder-seed",
        description="Import the static clinic dataset into the store.",
    )
    parser.add_argument(
        "--data",
        default=settings.seed_data_path,
        help="Path to the clinic dataset (JSON array). Default: %(default)s",
    )
    parser.add_argument(
        "--reset",
        action=argparse.BooleanOptionalAction,
        default=settings.reset_database,
        help="Delete all reviews and clinics before importing (destructive).",
    )
    return parser


async def _run(data_path: str, reset: bool) -> int:
    try:
        return await seed_database(data_path, reset=reset)
    finally:
        await dispose_engine()


def main(argv: Optional[Sequence[str]] = None) -> int:
    from healthfinder.main import setup_logging

    args = build_parser().parse_args(argv)
    setup_logging()

    if not Path(args.data).is_file():
        logger.error("Dataset not found: %s", args.data)
        return 1

    try:
        asyncio.run(_run(args.data, args.reset))
    except (HealthFinderError, ValueError) as e:
        logger.error("Seeding failed: %s", str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
