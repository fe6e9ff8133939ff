"""Provider payload construction."""

from engagement.schemas.notification import NotificationBody, NotificationPayload
from engagement.services.domain import NotificationTemplate, PolicyUrls, Recipient


def build_payload(
    recipient: Recipient,
    template: NotificationTemplate,
    policy_urls: PolicyUrls,
    destination_url: str,
    user_name: str | None = None,
    patient_name: str | None = None,
    notification_date: str | None = None,
) -> NotificationPayload:
    """Build the payload for one recipient.

    ``patientname`` and ``date`` appear only when given a non-empty value.
    Pure function: no I/O, same inputs give an equal payload.
    """
    body = NotificationBody(
        first_name=recipient.display_name,
        patient_name=patient_name or None,
        unsubscribe_url=policy_urls.unsubscribe_url,
        terms_of_use_url=policy_urls.terms_of_use_url,
        privacy_notice_url=policy_urls.privacy_notice_url,
        user_name=user_name or "",
        date=notification_date or None,
        url=destination_url,
    )

    return NotificationPayload(
        email_id=recipient.email_address,
        body=body,
        subject=template.subject,
        template_id=template.template_id,
    )
