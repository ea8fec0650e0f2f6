"""
Batch dependencies.

Provides the process-wide JobLauncher bound to the application's session
factory. Tests override `get_job_launcher` to run jobs against their own
database.
"""

from weather_batch.batch.runtime import JobLauncher
from weather_batch.database import async_session

_launcher = JobLauncher(async_session)


def get_job_launcher() -> JobLauncher:
    return _launcher
