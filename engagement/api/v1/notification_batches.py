"""Notification batch endpoints."""

from fastapi import APIRouter, HTTPException, status

from engagement.api.deps import DbSession, HttpClient
from engagement.schemas.notification import (
    BatchJobRead,
    BatchSummaryRead,
    NotificationBatchCreate,
    NotificationLogRead,
)
from engagement.services.batch import BatchOrchestrator
from engagement.services.domain import DispatchContext
from engagement.services.job_state import SqlJobStateStore
from engagement.services.outcome_log import SqlOutcomeLogStore

router = APIRouter()


@router.post(
    "",
    response_model=BatchSummaryRead,
    status_code=status.HTTP_200_OK,
    summary="Run a notification batch",
    description=(
        "Resolves the contacts, sends one notification each and logs the "
        "outcomes. Rejected batches are reported with status 'invalid'."
    ),
)
async def run_notification_batch(
    request: NotificationBatchCreate,
    session: DbSession,
    http_client: HttpClient,
) -> BatchSummaryRead:
    """Run a batch synchronously and return its summary."""
    context = DispatchContext(
        contact_ids=request.contact_ids,
        template_key=request.template_key,
        destination_url=request.destination_url,
        notification_date=request.notification_date,
        user_names=request.user_names,
        patient_names=request.patient_names,
        endpoint_key=request.endpoint_key,
        policy_key=request.policy_key,
    )
    orchestrator = BatchOrchestrator.for_session(session, http_client=http_client)
    summary = await orchestrator.run_batch(context)
    return BatchSummaryRead(**summary.to_dict())


@router.get(
    "/{batch_id}",
    response_model=BatchJobRead,
    summary="Get batch state",
)
async def get_notification_batch(batch_id: str, session: DbSession) -> BatchJobRead:
    """Get the persisted state of a batch."""
    job = await SqlJobStateStore(session).get(batch_id)
    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Batch not found",
        )
    return BatchJobRead.model_validate(job)


@router.get(
    "/{batch_id}/logs",
    response_model=list[NotificationLogRead],
    summary="List batch outcomes",
)
async def list_notification_logs(
    batch_id: str,
    session: DbSession,
) -> list[NotificationLogRead]:
    """List the logged outcomes of a batch in recipient order."""
    job = await SqlJobStateStore(session).get(batch_id)
    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Batch not found",
        )
    logs = await SqlOutcomeLogStore(session).list_for_batch(batch_id)
    return [NotificationLogRead.model_validate(log) for log in logs]
