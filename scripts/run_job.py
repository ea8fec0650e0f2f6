"""
Launch a weather batch job from the command line.

Cron-friendly entry point that runs one job (or statistics followed by
alerts) against the configured database and exits non-zero when a job does
not complete.

Usage:
    python scripts/run_job.py collection
    python scripts/run_job.py statistics --date 2024-05-01
    python scripts/run_job.py alerts
    python scripts/run_job.py all
    python scripts/run_job.py sample-data --reset
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from weather_batch.batch.jobs import ALERTS_JOB, JOB_ALIASES, STATISTICS_JOB, create_job
from weather_batch.batch.runtime import JobLaunchError, JobLauncher, with_run_id
from weather_batch.config import settings
from weather_batch.database import async_session, create_tables, drop_tables
from weather_batch.models.job_execution import BatchStatus
from weather_batch.services.sample_data import generate_sample_data
from weather_batch.utils.logging_config import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)


async def prepare_database(reset: bool = False):
    """Create missing tables, dropping every table first when `reset` is set."""
    if reset:
        logger.warning("Dropping all tables before the run")
        await drop_tables()
    await create_tables()


async def run_jobs(job_names: list[str], parameters: dict, reset: bool = False) -> bool:
    """
    Run jobs in order, stopping at the first one that does not complete.

    Returns:
        True when every job completed
    """
    await prepare_database(reset)
    launcher = JobLauncher(async_session)

    for job_name in job_names:
        params = with_run_id(parameters)
        logger.info("=" * 70)
        logger.info(f"Launching {job_name} with {params}")
        logger.info("=" * 70)

        try:
            execution = await launcher.run(create_job(job_name, params), params)
        except (JobLaunchError, ValueError) as e:
            logger.error(f"  ✗ {e}")
            return False

        for step in execution.step_executions:
            logger.info(
                f"  {step.step_name}: {step.status.value} "
                f"(read={step.read_count}, written={step.write_count}, "
                f"filtered={step.filter_count}, commits={step.commit_count})"
            )
        if execution.status != BatchStatus.COMPLETED:
            logger.error(f"  ✗ {job_name} ended {execution.status.value}: {execution.exit_message}")
            return False
        logger.info(f"  ✓ {job_name} completed")

    return True


async def load_sample_data(reset: bool = False) -> int:
    await prepare_database(reset)
    async with async_session() as db:
        count = await generate_sample_data(db)
        await db.commit()
    return count


def main(argv: Optional[list[str]] = None):
    """Main entry point for the job launcher script."""
    parser = argparse.ArgumentParser(
        description="Run weather batch jobs"
    )
    parser.add_argument(
        "job",
        choices=sorted(JOB_ALIASES) + ["all", "sample-data"],
        help="Job to run; 'all' runs statistics then alerts"
    )
    parser.add_argument(
        "--date",
        help="Statistics date (YYYY-MM-DD, default: today)"
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop and recreate all tables first (deletes all data)"
    )

    args = parser.parse_args(argv)

    if args.job == "sample-data":
        count = asyncio.run(load_sample_data(args.reset))
        logger.info(f"Inserted {count} sample observations")
        return

    if args.job == "collection" and not settings.is_api_key_configured:
        logger.error("WEATHER_API_KEY is not set; cannot run collection")
        sys.exit(2)

    parameters = {"date": args.date} if args.date else {}
    if args.job == "all":
        job_names = [STATISTICS_JOB, ALERTS_JOB]
    else:
        job_names = [JOB_ALIASES[args.job]]

    if not asyncio.run(run_jobs(job_names, parameters, args.reset)):
        sys.exit(1)


if __name__ == "__main__":
    main()
