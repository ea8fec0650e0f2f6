"""
Chunk-oriented batch runtime.

A job is a named sequence of steps launched with a parameter map. A step
reads one item at a time, passes it through a processor (which may return
None to drop the item) and hands every `chunk_size` processed items to a
writer. Reading, processing and writing of one chunk share a single database
transaction: if anything raises, the chunk is rolled back and the step and
job end FAILED. Chunks committed earlier stay committed.

Executions are recorded in the job_executions / step_executions tables. A
launch whose job name and parameters match an already completed execution
is refused, so callers add a monotonic `time` parameter to every trigger.
"""

import asyncio
import hashlib
import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, TypeVar

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from weather_batch.crud.job_execution import job_execution as job_execution_crud
from weather_batch.models.job_execution import BatchStatus, JobExecution, StepExecution
from weather_batch.utils.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
U = TypeVar("U")

JobParameters = Dict[str, Any]


class JobLaunchError(Exception):
    """Base class for errors refusing a launch."""


class JobInstanceAlreadyCompleteError(JobLaunchError):
    """The job already completed with identical parameters."""


class JobExecutionAlreadyRunningError(JobLaunchError):
    """An execution with identical parameters is still running."""


def with_run_id(parameters: Optional[JobParameters] = None) -> JobParameters:
    """Return a copy of `parameters` carrying a `time` run id (epoch millis)."""
    params = dict(parameters or {})
    params.setdefault("time", int(time.time() * 1000))
    return params


def job_key(parameters: JobParameters) -> str:
    """Identify a job instance by the MD5 of its canonical parameter JSON."""
    canonical = json.dumps(parameters, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.md5(canonical.encode("utf-8")).hexdigest()


# ============================================================================
# ITEM CONTRACTS
# ============================================================================

class ItemReader(ABC, Generic[T]):
    """Produces items one at a time; None signals the end of input."""

    @abstractmethod
    async def read(self, session: AsyncSession) -> Optional[T]:
        ...


class ItemProcessor(ABC, Generic[T, U]):
    """Maps one item to zero or one output; None drops the item."""

    @abstractmethod
    async def process(self, session: AsyncSession, item: T) -> Optional[U]:
        ...


class ItemWriter(ABC, Generic[U]):
    """Persists one chunk of processed items inside the chunk transaction."""

    @abstractmethod
    async def write(self, session: AsyncSession, items: List[U]) -> None:
        ...

    async def after_commit(self, session: AsyncSession, items: List[U]) -> None:
        """Hook run once the chunk transaction has committed."""
        return None


class ListItemReader(ItemReader[T]):
    """Reads items from a fixed sequence, in order."""

    def __init__(self, items: Iterable[T]):
        self._items = list(items)
        self._index = 0

    async def read(self, session: AsyncSession) -> Optional[T]:
        if self._index < len(self._items):
            item = self._items[self._index]
            self._index += 1
            return item
        return None


class RepositoryItemWriter(ItemWriter[U]):
    """Saves each chunk through a repository's `save_all`."""

    def __init__(self, repository: Any, description: str = "items"):
        self.repository = repository
        self.description = description

    async def write(self, session: AsyncSession, items: List[U]) -> None:
        await self.repository.save_all(session, items)
        logger.info(f"Saved {len(items)} {self.description}")


# ============================================================================
# EXECUTION BOOKKEEPING
# ============================================================================

class JobRepository:
    """
    Persists job and step execution records.

    Every update runs in its own short transaction so execution state
    survives a rolled-back chunk.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def find_instance_executions(self, job_name: str, key: str) -> List[JobExecution]:
        async with self.session_factory() as session:
            return await job_execution_crud.get_for_instance(session, job_name=job_name, job_key=key)

    async def create_job_execution(self, job_name: str, key: str, parameters: JobParameters) -> int:
        async with self.session_factory() as session, session.begin():
            execution = JobExecution(
                job_name=job_name,
                job_key=key,
                parameters=json.loads(json.dumps(parameters, default=str)),
                status=BatchStatus.STARTING,
            )
            session.add(execution)
            await session.flush()
            return execution.id

    async def create_step_execution(self, job_execution_id: int, step_name: str) -> int:
        async with self.session_factory() as session, session.begin():
            execution = StepExecution(
                job_execution_id=job_execution_id,
                step_name=step_name,
                status=BatchStatus.STARTING,
            )
            session.add(execution)
            await session.flush()
            return execution.id

    async def update_job_execution(self, execution_id: int, **values: Any) -> None:
        async with self.session_factory() as session, session.begin():
            await session.execute(
                update(JobExecution)
                .where(JobExecution.id == execution_id)
                .values(updated_at=datetime.now(), **values)
            )

    async def update_step_execution(self, execution_id: int, **values: Any) -> None:
        async with self.session_factory() as session, session.begin():
            await session.execute(
                update(StepExecution)
                .where(StepExecution.id == execution_id)
                .values(updated_at=datetime.now(), **values)
            )

    async def get_job_execution(self, execution_id: int) -> Optional[JobExecution]:
        async with self.session_factory() as session:
            return await job_execution_crud.get(session, execution_id)


@dataclass
class StepContribution:
    """Running counters of one step execution."""

    read_count: int = 0
    write_count: int = 0
    filter_count: int = 0
    commit_count: int = 0
    rollback_count: int = 0

    def as_values(self) -> Dict[str, int]:
        return {
            "read_count": self.read_count,
            "write_count": self.write_count,
            "filter_count": self.filter_count,
            "commit_count": self.commit_count,
            "rollback_count": self.rollback_count,
        }


def describe_error(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


# ============================================================================
# STEP / JOB
# ============================================================================

@dataclass
class Step(Generic[T, U]):
    """A reader -> processor -> writer pipeline committed in chunks."""

    name: str
    reader: ItemReader[T]
    writer: ItemWriter[U]
    processor: Optional[ItemProcessor[T, U]] = None
    chunk_size: int = 10

    async def execute(
        self,
        session_factory: async_sessionmaker,
        repository: JobRepository,
        job_execution_id: int,
    ) -> BatchStatus:
        """
        Run the step to completion.

        Returns:
            Terminal status: COMPLETED, FAILED or STOPPED
        """
        step_id = await repository.create_step_execution(job_execution_id, self.name)
        contribution = StepContribution()
        await repository.update_step_execution(
            step_id, status=BatchStatus.STARTED, start_time=datetime.now()
        )
        logger.info(f"Executing step: [{self.name}] (chunk size {self.chunk_size})")

        try:
            async with session_factory() as session:
                exhausted = False
                while not exhausted:
                    exhausted = await self._run_chunk(session, contribution)
                    await repository.update_step_execution(step_id, **contribution.as_values())
        except asyncio.CancelledError:
            contribution.rollback_count += 1
            logger.warning(f"Step [{self.name}] interrupted; in-flight chunk rolled back")
            await repository.update_step_execution(
                step_id,
                status=BatchStatus.STOPPED,
                exit_message="Interrupted",
                end_time=datetime.now(),
                **contribution.as_values(),
            )
            raise
        except Exception as e:
            contribution.rollback_count += 1
            logger.error(f"Step [{self.name}] failed, chunk rolled back: {describe_error(e)}")
            await repository.update_step_execution(
                step_id,
                status=BatchStatus.FAILED,
                exit_message=describe_error(e),
                end_time=datetime.now(),
                **contribution.as_values(),
            )
            return BatchStatus.FAILED

        await repository.update_step_execution(
            step_id,
            status=BatchStatus.COMPLETED,
            end_time=datetime.now(),
            **contribution.as_values(),
        )
        logger.info(
            f"Step [{self.name}] completed: read={contribution.read_count}, "
            f"written={contribution.write_count}, filtered={contribution.filter_count}, "
            f"commits={contribution.commit_count}"
        )
        return BatchStatus.COMPLETED

    async def _run_chunk(self, session: AsyncSession, contribution: StepContribution) -> bool:
        """
        Read, process and write one chunk in a single transaction.

        Returns:
            True once the reader is exhausted
        """
        exhausted = False
        read = 0
        outputs: List[U] = []

        async with session.begin():
            while read < self.chunk_size:
                item = await self.reader.read(session)
                if item is None:
                    exhausted = True
                    break
                read += 1
                contribution.read_count += 1
                result = await self.processor.process(session, item) if self.processor else item
                if result is not None:
                    outputs.append(result)
            if outputs:
                await self.writer.write(session, outputs)

        if read:
            contribution.commit_count += 1
            contribution.filter_count += read - len(outputs)
            contribution.write_count += len(outputs)
        if outputs:
            await self.writer.after_commit(session, outputs)
        return exhausted


@dataclass
class Job:
    """A named, ordered list of steps."""

    name: str
    steps: List[Step] = field(default_factory=list)


JobFactory = Callable[[JobParameters], Job]


class JobLauncher:
    """
    Launches jobs and records their executions.

    Launches of the same job instance (name + parameters) are serialized so
    two concurrent triggers cannot both pass the run-identity check.
    """

    def __init__(self, session_factory: async_sessionmaker, repository: Optional[JobRepository] = None):
        self.session_factory = session_factory
        self.repository = repository or JobRepository(session_factory)
        self._lock = asyncio.Lock()

    async def run(self, job: Job, parameters: JobParameters) -> JobExecution:
        """
        Run `job` with `parameters` to completion.

        Args:
            job: Job to run
            parameters: Parameter map identifying the run

        Returns:
            The recorded JobExecution, with its step executions

        Raises:
            JobInstanceAlreadyCompleteError: identical parameters already completed
            JobExecutionAlreadyRunningError: identical parameters still running
        """
        key = job_key(parameters)
        async with self._lock:
            for previous in await self.repository.find_instance_executions(job.name, key):
                if previous.status.is_running:
                    raise JobExecutionAlreadyRunningError(
                        f"Job '{job.name}' is already running with parameters {parameters}"
                    )
                if previous.status == BatchStatus.COMPLETED:
                    raise JobInstanceAlreadyCompleteError(
                        f"Job '{job.name}' already completed with parameters {parameters}"
                    )
            execution_id = await self.repository.create_job_execution(job.name, key, parameters)

        logger.info(f"Job: [{job.name}] launched with parameters: {parameters}")
        await self.repository.update_job_execution(
            execution_id, status=BatchStatus.STARTED, start_time=datetime.now()
        )

        status = BatchStatus.COMPLETED
        try:
            for step in job.steps:
                status = await step.execute(self.session_factory, self.repository, execution_id)
                if status != BatchStatus.COMPLETED:
                    break
        except asyncio.CancelledError:
            await self.repository.update_job_execution(
                execution_id,
                status=BatchStatus.STOPPED,
                exit_message="Interrupted",
                end_time=datetime.now(),
            )
            logger.warning(f"Job: [{job.name}] stopped")
            raise

        exit_message = None
        if status != BatchStatus.COMPLETED:
            failed = await self.repository.get_job_execution(execution_id)
            exit_message = next(
                (s.exit_message for s in reversed(failed.step_executions) if s.exit_message),
                None,
            )
        await self.repository.update_job_execution(
            execution_id, status=status, exit_message=exit_message, end_time=datetime.now()
        )
        logger.info(f"Job: [{job.name}] finished with status: [{status.value}]")
        return await self.repository.get_job_execution(execution_id)
