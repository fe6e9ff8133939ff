"""Scheduled task that runs one notification batch.

Usage:
    python -m engagement.tasks.notification_batch \
        --template QuestionnaireDueReminder \
        --url https://portal.example.com/questionnaires \
        --contact-id <id> --contact-id <id> \
        --user-name jdoe --patient-name "Jane Doe"

    # Environment variables:
    DATABASE_URL - PostgreSQL connection string
"""

import asyncio
import logging
import sys

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from engagement.core.config import settings
from engagement.core.logging import setup_logging
from engagement.models.notification import BatchStatus
from engagement.services.batch import BatchOrchestrator
from engagement.services.domain import BatchSummary, DispatchContext

logger = logging.getLogger(__name__)


async def run_notification_batch_task(
    context: DispatchContext,
    database_url: str | None = None,
) -> BatchSummary:
    """Run a notification batch against its own database engine.

    Args:
        context: Batch inputs
        database_url: Database connection string. Defaults to settings.database_url.

    Returns:
        Batch summary
    """
    db_url = database_url or settings.database_url

    # Convert sync URL to async if needed
    if db_url.startswith("postgresql://"):
        db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    logger.info(
        f"Starting notification batch for {len(context.contact_ids)} contacts "
        f"(template={context.template_key})"
    )

    engine = create_async_engine(db_url, echo=False)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    try:
        async with session_factory() as session:
            orchestrator = BatchOrchestrator.for_session(session)
            return await orchestrator.run_batch(context)
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Run a questionnaire notification batch")
    parser.add_argument(
        "--contact-id",
        dest="contact_ids",
        action="append",
        default=[],
        help="Recipient contact id (repeat for each recipient, order is kept)",
    )
    parser.add_argument("--template", required=True, help="Template developer name")
    parser.add_argument("--url", required=True, help="Destination URL for the message")
    parser.add_argument("--date", default=None, help="Notification date shown in the message")
    parser.add_argument(
        "--user-name",
        dest="user_names",
        action="append",
        default=[],
        help="Username override, consumed in recipient order",
    )
    parser.add_argument(
        "--patient-name",
        dest="patient_names",
        action="append",
        default=[],
        help="Patient name override, consumed in recipient order",
    )
    parser.add_argument("--endpoint-key", default=None)
    parser.add_argument("--policy-key", default=None)
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL (overrides DATABASE_URL env var)",
    )
    args = parser.parse_args(argv)

    setup_logging()

    context = DispatchContext(
        contact_ids=args.contact_ids,
        template_key=args.template,
        destination_url=args.url,
        notification_date=args.date,
        user_names=args.user_names,
        patient_names=args.patient_names,
        endpoint_key=args.endpoint_key,
        policy_key=args.policy_key,
    )

    summary = asyncio.run(
        run_notification_batch_task(context, database_url=args.database_url)
    )
    print(f"Batch finished: {summary.to_dict()}")
    return 1 if summary.status == BatchStatus.ERROR.value else 0


if __name__ == "__main__":
    sys.exit(main())
