"""
Batch execution bookkeeping models.

Every launch of a job is recorded as a JobExecution with one StepExecution
per step. The job key (hash of the canonical parameter map) identifies a job
instance: two launches with identical parameters are the same run.
"""

import enum

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from weather_batch.models.base import BaseModel


class BatchStatus(str, enum.Enum):
    """Execution states. STARTING -> STARTED -> COMPLETED | FAILED | STOPPED."""

    STARTING = "STARTING"
    STARTED = "STARTED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    STOPPED = "STOPPED"

    @property
    def is_running(self) -> bool:
        return self in (BatchStatus.STARTING, BatchStatus.STARTED)


class JobExecution(BaseModel):
    """One launch of a named job with a parameter map."""

    __tablename__ = "job_executions"

    job_name = Column(String(100), nullable=False, index=True)
    job_key = Column(String(32), nullable=False, comment="MD5 of the canonical parameter map")
    parameters = Column(JSON, nullable=False, default=dict)
    status = Column(Enum(BatchStatus, native_enum=False, length=20), nullable=False,
                    default=BatchStatus.STARTING)
    exit_message = Column(Text, nullable=True)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)

    step_executions = relationship(
        "StepExecution",
        back_populates="job_execution",
        cascade="all, delete-orphan",
        order_by="StepExecution.id",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_job_execution_name_key", "job_name", "job_key"),
    )

    def __repr__(self):
        return f"<JobExecution(id={self.id}, job_name={self.job_name}, status={self.status})>"


class StepExecution(BaseModel):
    """Counters and state of one step inside a job execution."""

    __tablename__ = "step_executions"

    job_execution_id = Column(
        Integer,
        ForeignKey("job_executions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    step_name = Column(String(100), nullable=False)
    status = Column(Enum(BatchStatus, native_enum=False, length=20), nullable=False,
                    default=BatchStatus.STARTING)
    read_count = Column(Integer, nullable=False, default=0)
    write_count = Column(Integer, nullable=False, default=0)
    filter_count = Column(Integer, nullable=False, default=0, comment="Items the processor skipped")
    commit_count = Column(Integer, nullable=False, default=0)
    rollback_count = Column(Integer, nullable=False, default=0)
    exit_message = Column(Text, nullable=True)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)

    job_execution = relationship("JobExecution", back_populates="step_executions")

    def __repr__(self):
        return f"<StepExecution(id={self.id}, step_name={self.step_name}, status={self.status})>"
