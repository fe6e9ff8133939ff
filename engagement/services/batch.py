"""Notification batch orchestration.

A batch runs three phases strictly in order:

- start: resolve the requested contact ids to recipients
- execute: build and send one payload per recipient, chunk by chunk
- finish: write every outcome to the log store in one bulk insert

Username and patient-name overrides are handed out by a cursor held in
``JobState``. The cursor is global to the batch and is persisted after each
chunk, so chunk boundaries never reset it.

``run_batch`` never raises. Validation problems, empty recipient lists,
send failures and log write failures are all logged and reflected in the
returned ``BatchSummary``.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Iterator, Sequence
from uuid import uuid4

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from engagement.core.config import settings
from engagement.models.notification import BatchStatus
from engagement.services.configuration import ConfigurationService
from engagement.services.dispatch import DispatchClient
from engagement.services.domain import (
    BatchSummary,
    DispatchContext,
    DispatchOutcome,
    DispatchStatus,
    JobState,
    NotificationTemplate,
    PolicyUrls,
    Recipient,
)
from engagement.services.errors import BatchValidationError, PersistenceError
from engagement.services.job_state import JobStateStore, SqlJobStateStore
from engagement.services.outcome_log import OutcomeLogStore, SqlOutcomeLogStore
from engagement.services.payload import build_payload
from engagement.services.recipients import RecipientResolver, SqlRecipientDirectory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchConfiguration:
    """Configuration resolved once before any recipient is processed."""

    template: NotificationTemplate
    policy_urls: PolicyUrls
    client: DispatchClient


def chunked(items: Sequence[Recipient], size: int) -> Iterator[Sequence[Recipient]]:
    """Yield consecutive slices of at most ``size`` items."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def validate_context(context: DispatchContext) -> None:
    """Check the inputs a batch cannot start without.

    Raises BatchValidationError describing the first problem found.
    """
    if not context.contact_ids:
        raise BatchValidationError("No contact ids supplied")
    if not context.template_key or not context.template_key.strip():
        raise BatchValidationError("Template key is blank")
    if not context.destination_url or not context.destination_url.strip():
        raise BatchValidationError("Destination URL is blank")


class BatchOrchestrator:
    """Drive a notification batch from contact ids to logged outcomes."""

    def __init__(
        self,
        resolver: RecipientResolver,
        configuration: ConfigurationService,
        outcome_store: OutcomeLogStore,
        job_store: JobStateStore | None = None,
        http_client: httpx.AsyncClient | None = None,
        chunk_size: int | None = None,
    ):
        self.resolver = resolver
        self.configuration = configuration
        self.outcome_store = outcome_store
        self.job_store = job_store
        self.http_client = http_client
        self.chunk_size = chunk_size or settings.batch_chunk_size

    @classmethod
    def for_session(
        cls,
        session: AsyncSession,
        http_client: httpx.AsyncClient | None = None,
        chunk_size: int | None = None,
    ) -> "BatchOrchestrator":
        """Build an orchestrator wired to database-backed collaborators."""
        return cls(
            resolver=RecipientResolver(SqlRecipientDirectory(session)),
            configuration=ConfigurationService(session),
            outcome_store=SqlOutcomeLogStore(session),
            job_store=SqlJobStateStore(session),
            http_client=http_client,
            chunk_size=chunk_size,
        )

    async def run_batch(self, context: DispatchContext) -> BatchSummary:
        """Run every phase of a batch and return its summary.

        Outcomes gathered before an unexpected failure are still written by
        the finish phase.
        """
        summary = BatchSummary(
            batch_id=None,
            status=BatchStatus.RUNNING.value,
            requested=len(context.contact_ids or []),
        )
        state: JobState | None = None
        outcomes: list[DispatchOutcome] = []

        try:
            validate_context(context)
            state = await self._create_state(context)
            summary.batch_id = state.batch_id

            async with self._batch_client() as client:
                config = await self.configure(context, client=client)

                recipients = await self.start(context)
                summary.resolved = len(recipients)
                if not recipients:
                    message = "No recipients resolved; batch aborted before dispatch"
                    logger.error(message, extra={"batch_id": state.batch_id})
                    summary.status = BatchStatus.ABORTED.value
                    summary.errors.append(message)
                else:
                    for chunk in chunked(recipients, self.chunk_size):
                        outcomes.extend(await self.execute(state, context, config, chunk))
                        await self._save_state(state)
                    summary.status = BatchStatus.COMPLETED.value

        except BatchValidationError as e:
            logger.error(
                f"Notification batch rejected: {e}",
                extra={"batch_id": summary.batch_id, "action": "validate"},
            )
            summary.status = BatchStatus.INVALID.value
            summary.errors.append(str(e))
        except Exception as e:
            logger.exception(
                f"Notification batch failed: {e}",
                extra={"batch_id": summary.batch_id},
            )
            summary.status = BatchStatus.ERROR.value
            summary.errors.append(str(e))

        if outcomes:
            summary.dispatched = len(outcomes)
            summary.sent = sum(1 for outcome in outcomes if outcome.is_sent)
            summary.failed = summary.dispatched - summary.sent
            await self._flush(summary, outcomes)

        if state is not None:
            await self._mark_finished(state, summary)

        logger.info(
            f"Notification batch complete: {summary.to_dict()}",
            extra={"batch_id": summary.batch_id, "action": "batch_complete"},
        )
        return summary

    async def configure(
        self,
        context: DispatchContext,
        client: httpx.AsyncClient | None = None,
    ) -> BatchConfiguration:
        """Resolve template, endpoint and policy links for the batch.

        Raises BatchValidationError when any of them is missing.
        """
        template = await self.configuration.get_template(context.template_key)
        if template is None:
            raise BatchValidationError(f"Unknown template: {context.template_key}")

        endpoint_key = context.endpoint_key or settings.default_endpoint_key
        endpoint = await self.configuration.get_endpoint(endpoint_key)
        if endpoint is None:
            raise BatchValidationError(f"Unknown messaging endpoint: {endpoint_key}")

        policy_key = context.policy_key or settings.default_policy_key
        policy_urls = await self.configuration.get_policy_urls(policy_key)
        if policy_urls is None:
            raise BatchValidationError(f"Unknown policy URL set: {policy_key}")

        return BatchConfiguration(
            template=template,
            policy_urls=policy_urls,
            client=DispatchClient(endpoint, client=client or self.http_client),
        )

    async def start(self, context: DispatchContext) -> list[Recipient]:
        """Resolve recipients in request order, duplicates included."""
        return await self.resolver.resolve(context.contact_ids)

    async def execute(
        self,
        state: JobState,
        context: DispatchContext,
        config: BatchConfiguration,
        chunk: Sequence[Recipient],
    ) -> list[DispatchOutcome]:
        """Send to every recipient in ``chunk`` and return their outcomes.

        Advances ``state`` once per recipient. A failure for one recipient is
        recorded as a Failed outcome and processing moves on.
        """
        outcomes: list[DispatchOutcome] = []

        for recipient in chunk:
            user_name = state.take_user_name(context.user_names)
            patient_name = state.take_patient_name(context.patient_names)
            state.processed_count += 1

            try:
                payload = build_payload(
                    recipient,
                    config.template,
                    config.policy_urls,
                    context.destination_url,
                    user_name=user_name,
                    patient_name=patient_name,
                    notification_date=context.notification_date,
                )
                outcome = await config.client.send(payload, recipient, config.template)
            except Exception as e:
                logger.exception(
                    f"Failed to prepare notification for {recipient.id}: {e}",
                    extra={"batch_id": state.batch_id, "recipient_id": recipient.id},
                )
                outcome = DispatchOutcome(
                    recipient=recipient,
                    template=config.template,
                    status=DispatchStatus.FAILED.value,
                    error_message=str(e),
                )

            if outcome.error_message:
                logger.error(
                    f"Notification dispatch failed for {recipient.id}: {outcome.error_message}",
                    extra={"batch_id": state.batch_id, "recipient_id": recipient.id},
                )

            outcomes.append(outcome)

        return outcomes

    async def finish(
        self,
        batch_id: str | None,
        outcomes: Sequence[DispatchOutcome],
        summary: BatchSummary | None = None,
    ) -> int:
        """Write all outcomes in one bulk insert and return the count written."""
        if not outcomes:
            message = "No dispatch outcomes to log"
            logger.error(message, extra={"batch_id": batch_id})
            if summary is not None:
                summary.errors.append(message)
            return 0

        try:
            return await self.outcome_store.bulk_insert(batch_id, outcomes)
        except PersistenceError as e:
            logger.error(
                f"Could not log notification outcomes: {e}",
                extra={"batch_id": batch_id, "action": "log_write"},
            )
            if summary is not None:
                summary.errors.append(str(e))
            return 0

    async def _create_state(self, context: DispatchContext) -> JobState:
        if self.job_store is None:
            return JobState(batch_id=str(uuid4()))
        return await self.job_store.create(context)

    async def _save_state(self, state: JobState) -> None:
        if self.job_store is None:
            return
        try:
            await self.job_store.save(state)
        except PersistenceError as e:
            # The in-memory cursor stays authoritative for this run
            logger.error(
                f"Could not persist batch cursor: {e}",
                extra={"batch_id": state.batch_id},
            )

    async def _mark_finished(self, state: JobState, summary: BatchSummary) -> None:
        if self.job_store is None:
            return
        try:
            await self.job_store.mark_finished(state, summary)
        except Exception as e:
            logger.exception(
                f"Could not record batch result: {e}",
                extra={"batch_id": state.batch_id},
            )

    async def _flush(self, summary: BatchSummary, outcomes: Sequence[DispatchOutcome]) -> None:
        try:
            summary.logged = await self.finish(summary.batch_id, outcomes, summary)
        except Exception as e:
            logger.exception(
                f"Could not log notification outcomes: {e}",
                extra={"batch_id": summary.batch_id, "action": "log_write"},
            )
            summary.status = BatchStatus.ERROR.value
            summary.errors.append(str(e))

    @asynccontextmanager
    async def _batch_client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the injected client, or one client shared by the whole batch."""
        if self.http_client is not None:
            yield self.http_client
            return
        async with httpx.AsyncClient(timeout=settings.messaging_timeout_seconds) as client:
            yield client
