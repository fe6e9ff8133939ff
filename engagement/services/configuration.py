"""Read-only lookups of notification configuration."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from engagement.models.configuration import (
    MessagingEndpoint,
    NotificationTemplateConfig,
    PolicyUrlSet,
)
from engagement.services.domain import (
    MessagingEndpointConfig,
    NotificationTemplate,
    PolicyUrls,
)


class ConfigurationService:
    """Resolve templates, endpoints and policy links by logical key."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_template(self, developer_name: str) -> NotificationTemplate | None:
        """Get an active template descriptor by developer name."""
        result = await self.session.execute(
            select(NotificationTemplateConfig).where(
                NotificationTemplateConfig.developer_name == developer_name,
                NotificationTemplateConfig.is_active == True,
            )
        )
        record = result.scalar_one_or_none()
        if record is None:
            return None

        return NotificationTemplate(
            developer_name=record.developer_name,
            subject=record.subject,
            body_template=record.body_template,
            template_id=record.template_id,
            event_name=record.event_name,
            event_type=record.event_type,
        )

    async def get_endpoint(self, key: str) -> MessagingEndpointConfig | None:
        """Get messaging endpoint settings by key."""
        result = await self.session.execute(
            select(MessagingEndpoint).where(MessagingEndpoint.key == key)
        )
        record = result.scalar_one_or_none()
        if record is None:
            return None

        return MessagingEndpointConfig(
            base_url=record.base_url,
            channel_id=record.channel_id,
            country=record.country,
            config_item=record.config_item,
        )

    async def get_policy_urls(self, key: str) -> PolicyUrls | None:
        """Get the policy URL set by key."""
        result = await self.session.execute(
            select(PolicyUrlSet).where(PolicyUrlSet.key == key)
        )
        record = result.scalar_one_or_none()
        if record is None:
            return None

        return PolicyUrls(
            unsubscribe_url=record.unsubscribe_url,
            terms_of_use_url=record.terms_of_use_url,
            privacy_notice_url=record.privacy_notice_url,
        )
