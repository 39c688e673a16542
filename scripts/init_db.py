"""Script to initialize the database.

Usage:
    python -m scripts.init_db            # create tables
    python -m scripts.init_db --seed     # create tables and a demo doctor and patient
"""

import argparse
import asyncio
from uuid import uuid4

import structlog
from sqlalchemy import insert

from app.database import engine
from app.middleware.logging import configure_logging
from app.models import doctors, metadata, patients

logger = structlog.get_logger(__name__)


async def init_db(seed: bool = False) -> None:
    """
    Create all tables, including the PostgreSQL overlap exclusion constraint.

    Args:
        seed: Insert a demo doctor and patient after creating the schema
    """
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
        logger.info("database_schema_created", tables=sorted(metadata.tables))

        if seed:
            doctor_id = uuid4()
            patient_id = uuid4()
            await conn.execute(
                insert(doctors).values(id=doctor_id, full_name="Dr. Ada Park", specialty="General")
            )
            await conn.execute(
                insert(patients).values(
                    id=patient_id, full_name="Sam Rivera", email="sam.rivera@example.com"
                )
            )
            logger.info("demo_data_seeded", doctor_id=str(doctor_id), patient_id=str(patient_id))

    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the clinic scheduling schema")
    parser.add_argument("--seed", action="store_true", help="insert a demo doctor and patient")
    args = parser.parse_args()

    configure_logging()
    asyncio.run(init_db(seed=args.seed))
