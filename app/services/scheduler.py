"""
APScheduler Configuration

Runs the hourly "needs attention" scan over the active marketplace backend and
logs what an admin should follow up on.
"""
import logging
import time
from typing import Any, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app import config
from app.services.backends import MarketplaceBackend, get_backend
from app.services.metrics import needs_attention

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


async def scan_attention_items(backend: Optional[MarketplaceBackend] = None) -> Dict[str, Any]:
    """
    Hourly job listing unlogged sessions, overdue payments and recent no-shows.

    Returns:
        Dict with:
            - unlogged_sessions: open sessions dated on or before today
            - overdue_payments: outstanding payments past the grace period
            - recent_no_shows: no-shows inside the lookback window
            - duration_ms: scan time
    """
    start_time = time.time()
    backend = backend or get_backend()

    state = await backend.snapshot()
    report = needs_attention(state, backend.today())

    summary = {
        "unlogged_sessions": len(report.unlogged_sessions),
        "overdue_payments": len(report.overdue_payments),
        "recent_no_shows": len(report.recent_no_shows),
        "duration_ms": (time.time() - start_time) * 1000,
    }

    if report.has_items:
        logger.warning(
            f"Attention needed: {summary['unlogged_sessions']} unlogged sessions, "
            f"{summary['overdue_payments']} overdue payments, "
            f"{summary['recent_no_shows']} recent no-shows"
        )
    else:
        logger.info("Attention scan clean")

    return summary


async def run_attention_scan():
    """Scheduled wrapper: a failed scan is logged and retried next hour"""
    logger.info("Starting hourly attention scan")
    try:
        summary = await scan_attention_items()
        logger.info(f"Attention scan finished in {summary['duration_ms']:.2f}ms")
    except Exception as e:
        logger.error(f"Attention scan failed: {e}", exc_info=True)


def configure_scheduler():
    """
    Configure APScheduler jobs.

    Jobs:
        - Attention scan: every hour at ATTENTION_SCAN_MINUTE
    """
    scheduler.add_job(
        run_attention_scan,
        trigger=CronTrigger(hour='*', minute=config.ATTENTION_SCAN_MINUTE),
        id='attention_scan',
        name='Scan For Items Needing Attention',
        replace_existing=True,
        coalesce=True,  # Combine missed runs into single execution
        max_instances=1  # Only one instance at a time
    )

    logger.info(f"Scheduler configured with attention scan at :{config.ATTENTION_SCAN_MINUTE:02d}")


def start_scheduler():
    """Start the APScheduler"""
    configure_scheduler()
    scheduler.start()
    logger.info("Scheduler started")


def stop_scheduler():
    """Stop the APScheduler"""
    if scheduler.running:
        scheduler.shutdown()
    logger.info("Scheduler stopped")
