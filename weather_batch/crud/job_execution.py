"""
Job execution repository.

Queries over the batch bookkeeping tables used by the launcher (run
identity checks) and by the execution listing endpoints.
"""

from typing import List, Optional

from sqlalchemy import and_, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from weather_batch.crud.base import CRUDBase
from weather_batch.models.job_execution import JobExecution


class CRUDJobExecution(CRUDBase[JobExecution]):
    """
    Repository for JobExecution.
    """

    async def get_for_instance(
        self, db: AsyncSession, *, job_name: str, job_key: str
    ) -> List[JobExecution]:
        """
        Get every execution of one job instance, newest first.

        Args:
            db: Database session
            job_name: Job name
            job_key: Hash of the canonical parameter map

        Returns:
            Executions sharing the job name and key
        """
        result = await db.execute(
            select(JobExecution)
            .where(
                and_(
                    JobExecution.job_name == job_name,
                    JobExecution.job_key == job_key,
                )
            )
            .order_by(desc(JobExecution.id))
        )
        return result.scalars().all()

    async def get_recent(
        self, db: AsyncSession, *, job_name: Optional[str] = None, limit: int = 20
    ) -> List[JobExecution]:
        """Get the latest executions, optionally for one job."""
        query = select(JobExecution)
        if job_name:
            query = query.where(JobExecution.job_name == job_name)
        result = await db.execute(query.order_by(desc(JobExecution.id)).limit(limit))
        return result.scalars().all()


job_execution = CRUDJobExecution(JobExecution)
