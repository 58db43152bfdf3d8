"""Scheduled daily summary runs."""

import logging

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from .config import Config, load_config
from .core.errors import CadenceError
from .ports import SummarySink
from .workflows import Store, get_outbox, get_store, org_settings, send_daily_summaries

logger = logging.getLogger(__name__)


def parse_time(value: str) -> tuple[int, int]:
    """Parse HH:MM (seconds ignored). Raises ValueError on bad input."""
    parts = value.strip().split(":")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Time out of range: {value}")
    return hour, minute


def run_organization_summaries(store: Store, sink: SummarySink, config: Config, organization_id: str):
    """Job body: compile and deliver one organization's summaries."""
    logger.info(f"Running daily summaries for organization {organization_id}")
    try:
        send_daily_summaries(store, sink, config, organization_ids=[organization_id])
    except Exception as e:
        logger.error(f"Daily summaries failed for organization {organization_id}: {e}")


def setup_scheduler(store: Store, sink: SummarySink, config: Config | None = None) -> BlockingScheduler:
    """
    Set up one daily job per organization.

    Each job fires at the organization's summary time in its own timezone.
    Organizations with an unparseable time fall back to the configured one.
    """
    if config is None:
        config = load_config()

    scheduler = BlockingScheduler(timezone=config.timezone)

    for organization_id in store.fetch_organizations():
        try:
            settings = org_settings(store, config, organization_id)
        except CadenceError as e:
            logger.warning(f"Skipping organization {organization_id}: {e}")
            continue

        try:
            hour, minute = parse_time(settings.summary_time)
        except (ValueError, IndexError):
            logger.warning(
                f"Invalid summary time for {organization_id}: {settings.summary_time}, using {config.summary_time}"
            )
            hour, minute = parse_time(config.summary_time)

        scheduler.add_job(
            run_organization_summaries,
            CronTrigger(hour=hour, minute=minute, timezone=settings.timezone),
            args=[store, sink, config, organization_id],
            id=f"daily_summary_{organization_id}",
        )
        logger.info(f"Scheduled summaries for {organization_id} at {hour:02d}:{minute:02d} {settings.timezone}")

    return scheduler


def run_scheduler():
    """Run the summary scheduler until interrupted."""
    config = load_config()
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, config.log_level, logging.INFO),
        force=True,
    )

    scheduler = setup_scheduler(get_store(config), get_outbox(config), config)
    if not scheduler.get_jobs():
        logger.warning("No organizations found - nothing scheduled")

    logger.info("Starting Cadence summary scheduler...")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")
