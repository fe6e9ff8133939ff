"""End-to-end batch tests against the SQLite test database."""

import httpx
import pytest
from sqlalchemy import Text, select
from sqlalchemy.exc import OperationalError

from engagement.models.notification import BatchStatus, NotificationBatchJob, NotificationLog
from engagement.services.batch import BatchOrchestrator
from engagement.services.domain import DispatchContext, JobState
from engagement.services.errors import PersistenceError
from engagement.services.job_state import SqlJobStateStore


@pytest.mark.asyncio
async def test_batch_logs_one_row_per_resolved_recipient(
    async_session, seeded_configuration, make_contact, provider, http_client
) -> None:
    """Duplicates are logged twice and unknown ids not at all."""
    alex = await make_contact("Alex", "alex@example.com")
    blair = await make_contact("Blair", "blair@example.com")
    provider.responses.append(httpx.Response(503))

    orchestrator = BatchOrchestrator.for_session(async_session, http_client=http_client, chunk_size=2)
    summary = await orchestrator.run_batch(
        DispatchContext(
            contact_ids=[alex.id, "missing-id", alex.id, blair.id],
            template_key="QuestionnaireDueReminder",
            destination_url="https://portal.test/q",
            user_names=["u1"],
        )
    )

    assert summary.status == BatchStatus.COMPLETED.value
    assert summary.requested == 4
    assert summary.resolved == 3
    assert summary.logged == 3

    result = await async_session.execute(
        select(NotificationLog)
        .where(NotificationLog.batch_id == summary.batch_id)
        .order_by(NotificationLog.position)
    )
    logs = result.scalars().all()
    assert [log.recipient_id for log in logs] == [alex.id, alex.id, blair.id]
    assert [log.status for log in logs] == ["Failed", "Sent", "Sent"]
    assert [log.response_code for log in logs] == ["503", "200", "200"]
    assert logs[0].provider_message_id is None
    assert logs[1].provider_message_id == "msg-1"
    assert logs[0].subject == "Your questionnaire is ready"
    assert logs[0].body_template == "questionnaire_due_body"
    assert logs[0].event_name == "QuestionnaireDue"
    assert logs[0].event_type == "Email"
    assert logs[0].template_id == "TPL-001"
    assert logs[2].recipient_email == "blair@example.com"


@pytest.mark.asyncio
async def test_batch_job_state_is_persisted(
    async_session, seeded_configuration, make_contact, http_client
) -> None:
    alex = await make_contact("Alex", "alex@example.com")

    orchestrator = BatchOrchestrator.for_session(async_session, http_client=http_client, chunk_size=1)
    summary = await orchestrator.run_batch(
        DispatchContext(
            contact_ids=[alex.id, alex.id],
            template_key="QuestionnaireDueReminder",
            destination_url="https://portal.test/q",
            user_names=["u1", "u2", "u3"],
            patient_names=["Sam"],
        )
    )

    job = await async_session.get(NotificationBatchJob, summary.batch_id)
    assert job.status == BatchStatus.COMPLETED
    assert job.next_user_name_index == 2
    assert job.next_patient_name_index == 1
    assert job.processed_count == 2
    assert job.sent_count == 2
    assert job.logged_count == 2
    assert job.finished_at is not None


@pytest.mark.asyncio
async def test_missing_configuration_is_invalid(
    async_session, make_contact, http_client, provider
) -> None:
    """Without seeded configuration the batch stops before dispatch."""
    alex = await make_contact("Alex", "alex@example.com")

    orchestrator = BatchOrchestrator.for_session(async_session, http_client=http_client)
    summary = await orchestrator.run_batch(
        DispatchContext(
            contact_ids=[alex.id],
            template_key="QuestionnaireDueReminder",
            destination_url="https://portal.test/q",
        )
    )

    assert summary.status == BatchStatus.INVALID.value
    assert provider.requests == []
    job = await async_session.get(NotificationBatchJob, summary.batch_id)
    assert job.status == BatchStatus.INVALID
    assert "QuestionnaireDueReminder" in job.error_message


def fail_job_reads_once(session, monkeypatch) -> list[str]:
    """Make the next SELECT on notification_batch_jobs raise OperationalError."""
    failures: list[str] = []
    execute = session.execute

    async def flaky_execute(statement, *args, **kwargs):
        if not failures and "notification_batch_jobs" in str(statement):
            failures.append(str(statement))
            raise OperationalError(str(statement), {}, Exception("connection reset"))
        return await execute(statement, *args, **kwargs)

    monkeypatch.setattr(session, "execute", flaky_execute)
    return failures


@pytest.mark.asyncio
async def test_job_state_read_error_is_wrapped(async_session, monkeypatch) -> None:
    store = SqlJobStateStore(async_session)
    state = await store.create(
        DispatchContext(
            contact_ids=["a"],
            template_key="QuestionnaireDueReminder",
            destination_url="https://portal.test/q",
        )
    )
    fail_job_reads_once(async_session, monkeypatch)

    with pytest.raises(PersistenceError):
        await store.save(JobState(batch_id=state.batch_id, processed_count=1))

    # The session is usable again after the failed read
    job = await store.get(state.batch_id)
    assert job is not None


@pytest.mark.asyncio
async def test_cursor_save_error_does_not_stop_batch(
    async_session, seeded_configuration, make_contact, provider, http_client, monkeypatch
) -> None:
    """Every recipient is sent and logged even when a cursor save fails."""
    alex = await make_contact("Alex", "alex@example.com")
    blair = await make_contact("Blair", "blair@example.com")
    contact_ids = [alex.id, blair.id]
    failures = fail_job_reads_once(async_session, monkeypatch)

    orchestrator = BatchOrchestrator.for_session(async_session, http_client=http_client, chunk_size=1)
    summary = await orchestrator.run_batch(
        DispatchContext(
            contact_ids=contact_ids,
            template_key="QuestionnaireDueReminder",
            destination_url="https://portal.test/q",
        )
    )

    assert len(failures) == 1
    assert summary.status == BatchStatus.COMPLETED.value
    assert len(provider.requests) == 2
    assert summary.logged == 2

    result = await async_session.execute(
        select(NotificationLog)
        .where(NotificationLog.batch_id == summary.batch_id)
        .order_by(NotificationLog.position)
    )
    assert [log.recipient_id for log in result.scalars().all()] == contact_ids


@pytest.mark.asyncio
async def test_long_provider_values_are_logged(
    async_session, seeded_configuration, make_contact, provider, http_client
) -> None:
    """Provider status and message id are stored whatever their length."""
    alex = await make_contact("Alex", "alex@example.com")
    long_status = "Queued: " + "x" * 300
    long_message_id = "m" * 400
    provider.responses.append(
        httpx.Response(200, json={"status": long_status, "messageId": long_message_id})
    )

    orchestrator = BatchOrchestrator.for_session(async_session, http_client=http_client)
    summary = await orchestrator.run_batch(
        DispatchContext(
            contact_ids=[alex.id],
            template_key="QuestionnaireDueReminder",
            destination_url="https://portal.test/q",
        )
    )

    assert summary.logged == 1
    log = (
        await async_session.execute(
            select(NotificationLog).where(NotificationLog.batch_id == summary.batch_id)
        )
    ).scalar_one()
    assert log.status == long_status
    assert log.provider_message_id == long_message_id
    columns = NotificationLog.__table__.c
    assert isinstance(columns.status.type, Text)
    assert isinstance(columns.provider_message_id.type, Text)
