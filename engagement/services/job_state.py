"""Persistence of batch job state between chunk invocations."""

from abc import ABC, abstractmethod
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from engagement.db.base import utc_now
from engagement.models.notification import BatchStatus, NotificationBatchJob
from engagement.services.domain import BatchSummary, DispatchContext, JobState
from engagement.services.errors import PersistenceError


class JobStateStore(ABC):
    """Abstract store for the batch resume cursor."""

    @abstractmethod
    async def create(self, context: DispatchContext) -> JobState:
        """Register a new batch and return its initial state."""
        pass

    @abstractmethod
    async def save(self, state: JobState) -> None:
        """Persist the cursor after a chunk."""
        pass

    @abstractmethod
    async def mark_finished(self, state: JobState, summary: BatchSummary) -> None:
        """Record the final status and counts."""
        pass


class SqlJobStateStore(JobStateStore):
    """Job state backed by the notification_batch_jobs table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, context: DispatchContext) -> JobState:
        job = NotificationBatchJob(
            id=str(uuid4()),
            status=BatchStatus.RUNNING,
            template_key=context.template_key,
            destination_url=context.destination_url,
            notification_date=context.notification_date,
            contact_ids=list(context.contact_ids),
            user_names=list(context.user_names),
            patient_names=list(context.patient_names),
        )
        self.session.add(job)
        await self._commit()
        return JobState(batch_id=job.id)

    async def get(self, batch_id: str) -> NotificationBatchJob | None:
        """Get a batch job by id."""
        try:
            result = await self.session.execute(
                select(NotificationBatchJob).where(NotificationBatchJob.id == batch_id)
            )
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError(f"Failed to load batch job {batch_id}: {e}") from e
        return result.scalar_one_or_none()

    async def save(self, state: JobState) -> None:
        job = await self._require(state.batch_id)
        job.next_user_name_index = state.next_user_name_index
        job.next_patient_name_index = state.next_patient_name_index
        job.processed_count = state.processed_count
        await self._commit()

    async def mark_finished(self, state: JobState, summary: BatchSummary) -> None:
        job = await self._require(state.batch_id)
        job.status = BatchStatus(summary.status)
        job.next_user_name_index = state.next_user_name_index
        job.next_patient_name_index = state.next_patient_name_index
        job.processed_count = state.processed_count
        job.resolved_count = summary.resolved
        job.sent_count = summary.sent
        job.failed_count = summary.failed
        job.logged_count = summary.logged
        job.error_message = "; ".join(summary.errors) or None
        job.finished_at = utc_now()
        await self._commit()

    async def _require(self, batch_id: str) -> NotificationBatchJob:
        job = await self.get(batch_id)
        if job is None:
            raise PersistenceError(f"Batch job not found: {batch_id}")
        return job

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError(f"Failed to save batch job: {e}") from e
