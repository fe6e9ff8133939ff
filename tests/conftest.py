"""Pytest configuration and fixtures."""

import os

# Must be set before engagement modules read settings
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import json
from collections.abc import AsyncGenerator, Callable

import httpx
import pytest
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from engagement.api.deps import get_http_client
from engagement.db.base import Base
from engagement.db.session import get_db
from engagement.main import app
from engagement.models.configuration import (
    MessagingEndpoint,
    NotificationTemplateConfig,
    PolicyUrlSet,
)
from engagement.models.contact import Contact
from engagement.services.domain import (
    DispatchStatus,
    MessagingEndpointConfig,
    NotificationTemplate,
    PolicyUrls,
    Recipient,
)

# Use SQLite for testing (simpler than spinning up postgres)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def async_engine():
    """Create async test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def async_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session


class ProviderStub:
    """Records posted payloads and answers from a queue of responses.

    Each queued item is either an ``httpx.Response`` or an exception to raise.
    When the queue is empty the default success response is returned.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response | Exception] = []
        self._counter = 0

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(request.content) for request in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        self._counter += 1
        return httpx.Response(
            200,
            json={"status": DispatchStatus.SENT.value, "messageId": f"msg-{self._counter}"},
        )


@pytest.fixture
def provider() -> ProviderStub:
    """Stub messaging provider."""
    return ProviderStub()


@pytest.fixture
async def http_client(provider: ProviderStub) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client routed to the stub provider."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(provider)) as client:
        yield client


@pytest.fixture
async def api_client(
    async_session: AsyncSession,
    http_client: httpx.AsyncClient,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """ASGI test client with database and provider dependencies overridden."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield async_session

    async def override_get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
        yield http_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_http_client] = override_get_http_client

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def template() -> NotificationTemplate:
    """Questionnaire reminder template descriptor."""
    return NotificationTemplate(
        developer_name="QuestionnaireDueReminder",
        subject="Your questionnaire is ready",
        body_template="questionnaire_due_body",
        template_id="TPL-001",
        event_name="QuestionnaireDue",
        event_type="Email",
    )


@pytest.fixture
def policy_urls() -> PolicyUrls:
    """Legal links."""
    return PolicyUrls(
        unsubscribe_url="https://portal.test/unsubscribe",
        terms_of_use_url="https://portal.test/terms",
        privacy_notice_url="https://portal.test/privacy",
    )


@pytest.fixture
def endpoint() -> MessagingEndpointConfig:
    """Endpoint at https://messaging.test/omni/v1/email/GB/pspb."""
    return MessagingEndpointConfig(
        base_url="https://messaging.test/omni/v1",
        channel_id="email",
        country="GB",
        config_item="pspb",
    )


@pytest.fixture
def recipient() -> Recipient:
    """A single resolved recipient."""
    return Recipient(id="contact-1", display_name="Alex", email_address="alex@example.com")


@pytest.fixture
async def seeded_configuration(async_session: AsyncSession) -> None:
    """Store the default template, endpoint and policy links."""
    async_session.add_all(
        [
            NotificationTemplateConfig(
                developer_name="QuestionnaireDueReminder",
                subject="Your questionnaire is ready",
                body_template="questionnaire_due_body",
                template_id="TPL-001",
                event_name="QuestionnaireDue",
                event_type="Email",
            ),
            MessagingEndpoint(
                key="omnichannel_email",
                base_url="https://messaging.test/omni/v1",
                channel_id="email",
                country="GB",
                config_item="pspb",
            ),
            PolicyUrlSet(
                key="default",
                unsubscribe_url="https://portal.test/unsubscribe",
                terms_of_use_url="https://portal.test/terms",
                privacy_notice_url="https://portal.test/privacy",
            ),
        ]
    )
    await async_session.commit()


@pytest.fixture
def make_contact(async_session: AsyncSession) -> Callable:
    """Factory storing a contact and returning it."""

    async def _make(first_name: str, email: str, **kwargs) -> Contact:
        contact = Contact(first_name=first_name, email=email, **kwargs)
        async_session.add(contact)
        await async_session.commit()
        await async_session.refresh(contact)
        return contact

    return _make
