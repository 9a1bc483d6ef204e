#!/usr/bin/env python3
"""
Database Schema Setup for the Facility Maintenance Tracker

Creates the tables:
- machines: Tracked equipment and its service interval
- maintenance_records: Scheduled and completed maintenance tasks

Optionally drops existing tables first and seeds demo data.

Usage:
    python setup_schema.py            # create missing tables
    python setup_schema.py --seed     # ... and add demo data to an empty database
    python setup_schema.py --drop     # drop and recreate (destroys data)
"""

import argparse
import asyncio

from config import get_settings
from database import Database
from logger import configure_logging, get_logger
from services.seed_service import seed_demo_data

logger = get_logger(__name__)


async def setup_schema(drop: bool = False, seed: bool = False) -> None:
    settings = get_settings()
    database = Database(settings.database)
    await database.connect()
    try:
        if drop:
            await database.drop_all()
        await database.create_all()
        if seed:
            async with database.session() as db:
                await seed_demo_data(db)
    finally:
        await database.disconnect()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the maintenance tracker schema")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables first (destroys data)")
    parser.add_argument("--seed", action="store_true", help="Insert demo data into an empty database")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(environment=settings.environment, log_level=settings.log.level)
    logger.info("Setting up schema", database=settings.database.dsn_safe, drop=args.drop, seed=args.seed)

    asyncio.run(setup_schema(drop=args.drop, seed=args.seed))
    logger.info("Schema setup complete")


if __name__ == "__main__":
    main()
