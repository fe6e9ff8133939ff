"""Dispatch client for the omnichannel messaging API.

Posts one JSON payload per call and turns the HTTP exchange into a
``DispatchOutcome``. Only HTTP 200 counts as a successful exchange; the
response body is read only in that case. Transport errors and non-200
responses produce a ``Failed`` outcome instead of raising, and logging them
is left to the caller.
"""

import httpx

from engagement.core.config import settings
from engagement.schemas.notification import NotificationPayload, ProviderResponse
from engagement.services.domain import (
    DispatchOutcome,
    DispatchStatus,
    MessagingEndpointConfig,
    NotificationTemplate,
    Recipient,
)
from engagement.services.errors import DispatchError

JSON_HEADERS = {"Content-Type": "application/json"}


class DispatchClient:
    """Sends payloads to one configured messaging endpoint.

    Parameters
    ----------
    endpoint:
        Endpoint configuration the request URL is assembled from.
    client:
        Optional shared ``httpx.AsyncClient``. When ``None`` a short-lived
        client is opened per request.
    timeout_seconds:
        Request timeout. Defaults to ``settings.messaging_timeout_seconds``.
    """

    def __init__(
        self,
        endpoint: MessagingEndpointConfig,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float | None = None,
    ):
        self.endpoint = endpoint
        self.client = client
        self.timeout_seconds = (
            timeout_seconds
            if timeout_seconds is not None
            else settings.messaging_timeout_seconds
        )

    @property
    def url(self) -> str:
        return self.endpoint.url

    async def send(
        self,
        payload: NotificationPayload,
        recipient: Recipient,
        template: NotificationTemplate,
    ) -> DispatchOutcome:
        """Send ``payload`` and return the outcome for ``recipient``."""
        try:
            response = await self._post(payload.to_wire())
        except DispatchError as e:
            return DispatchOutcome(
                recipient=recipient,
                template=template,
                status=DispatchStatus.FAILED.value,
                error_message=str(e),
            )

        if response.status_code != 200:
            return DispatchOutcome(
                recipient=recipient,
                template=template,
                status=DispatchStatus.FAILED.value,
                http_status_code=response.status_code,
                error_message=f"Provider returned HTTP {response.status_code}",
            )

        parsed = ProviderResponse.parse_body(response.text)

        # A 200 without a status field is still recorded as Failed
        return DispatchOutcome(
            recipient=recipient,
            template=template,
            status=parsed.status or DispatchStatus.FAILED.value,
            provider_message_id=parsed.message_id,
            http_status_code=response.status_code,
        )

    async def _post(self, body: dict) -> httpx.Response:
        """POST ``body`` as JSON, wrapping transport failures."""
        try:
            if self.client is not None:
                return await self.client.post(
                    self.url,
                    json=body,
                    headers=JSON_HEADERS,
                    timeout=self.timeout_seconds,
                )
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                return await client.post(self.url, json=body, headers=JSON_HEADERS)
        except httpx.TimeoutException as exc:
            raise DispatchError(
                f"Messaging request timed out after {self.timeout_seconds}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise DispatchError(f"Messaging HTTP error: {exc}") from exc
