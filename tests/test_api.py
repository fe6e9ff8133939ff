"""API endpoint tests."""

from unittest.mock import MagicMock

import httpx
import pytest

from engagement.api.deps import get_http_client
from engagement.main import app, lifespan


@pytest.mark.asyncio
async def test_health_check(api_client) -> None:
    response = await api_client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_readiness_check(api_client) -> None:
    """Readiness runs a query against the database."""
    response = await api_client.get("/api/v1/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_root_endpoint(api_client) -> None:
    response = await api_client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "Patient Engagement Notifications API"
    assert "version" in data


@pytest.mark.asyncio
async def test_lifespan_shares_one_http_client() -> None:
    """Requests receive the client opened for the application lifetime."""
    async with lifespan(app):
        client = app.state.http_client
        assert isinstance(client, httpx.AsyncClient)

        request = MagicMock()
        request.app = app
        provided = [c async for c in get_http_client(request)]

        assert provided == [client]

    assert client.is_closed


class TestNotificationBatchEndpoints:
    """Running a batch and reading back its state."""

    @pytest.mark.asyncio
    async def test_run_batch_and_read_logs(
        self, api_client, seeded_configuration, make_contact, provider
    ) -> None:
        alex = await make_contact("Alex", "alex@example.com")
        blair = await make_contact("Blair", "blair@example.com")

        response = await api_client.post(
            "/api/v1/notification-batches",
            json={
                "contact_ids": [alex.id, blair.id],
                "template_key": "QuestionnaireDueReminder",
                "destination_url": "https://portal.test/q",
                "notification_date": "2026-10-19",
                "patient_names": ["Sam"],
            },
        )

        assert response.status_code == 200
        summary = response.json()
        assert summary["status"] == "completed"
        assert summary["sent"] == 2
        assert summary["logged"] == 2
        assert provider.payloads[0]["body"]["patientname"] == "Sam"
        assert "patientname" not in provider.payloads[1]["body"]

        batch_id = summary["batch_id"]
        job_response = await api_client.get(f"/api/v1/notification-batches/{batch_id}")
        assert job_response.status_code == 200
        job = job_response.json()
        assert job["status"] == "completed"
        assert job["next_patient_name_index"] == 1

        logs_response = await api_client.get(f"/api/v1/notification-batches/{batch_id}/logs")
        assert logs_response.status_code == 200
        logs = logs_response.json()
        assert [log["recipient_id"] for log in logs] == [alex.id, blair.id]
        assert [log["response_code"] for log in logs] == ["200", "200"]

    @pytest.mark.asyncio
    async def test_invalid_batch_reports_status(self, api_client, provider) -> None:
        """A blank template key is reported, not raised."""
        response = await api_client.post(
            "/api/v1/notification-batches",
            json={
                "contact_ids": ["a"],
                "template_key": "",
                "destination_url": "https://portal.test/q",
            },
        )

        assert response.status_code == 200
        assert response.json()["status"] == "invalid"
        assert provider.requests == []

    @pytest.mark.asyncio
    async def test_unknown_batch_returns_404(self, api_client) -> None:
        response = await api_client.get("/api/v1/notification-batches/nope")
        assert response.status_code == 404

        response = await api_client.get("/api/v1/notification-batches/nope/logs")
        assert response.status_code == 404
