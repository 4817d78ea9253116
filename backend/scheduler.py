#!/usr/bin/env python
"""
Weekly industry-insights refresh job.

Runs the refresh cycle on a cron schedule (default: every Sunday at midnight
UTC), or once with --run-once for cron/CI style invocations.

Usage:
  python scheduler.py             # blocking scheduler
  python scheduler.py --run-once  # single cycle, exit code 1 on failure
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Optional

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import sessionmaker

from ai.provider import InsightGenerator, get_provider
from config import Settings, load_settings
from db import Base, SessionLocal, engine
from errors import CycleAlreadyRunning, ProviderNotConfigured, RefreshCycleFailed, RefreshError
from models import RefreshCycleSummary
from refresh_engine import RefreshCycleController

logger = logging.getLogger(__name__)

JOB_ID = "generate-industry-insights"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    # Suppress verbose library logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)
    logging.getLogger("google.genai").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def build_controller(
    settings: Optional[Settings] = None,
    session_factory: Optional[sessionmaker] = None,
    generator: Optional[InsightGenerator] = None,
) -> RefreshCycleController:
    """Wire the refresh controller to the configured database and provider."""
    settings = settings or load_settings()
    generator = generator or get_provider(timeout_seconds=settings.generation_timeout_seconds)
    return RefreshCycleController(
        session_factory=session_factory or SessionLocal,
        generator=generator,
        interval=settings.refresh_interval,
        generation_timeout_seconds=settings.generation_timeout_seconds,
        failure_policy=settings.failure_policy,
        lease_ttl=settings.lease_ttl,
    )


def refresh_job(controller: RefreshCycleController) -> Optional[RefreshCycleSummary]:
    """One scheduled invocation; failures are logged, never raised into the scheduler."""
    started = time.perf_counter()
    logger.info("Refresh cycle started | provider=%s", controller.provider_name)
    try:
        summary = controller.run_cycle()
    except CycleAlreadyRunning as exc:
        logger.warning("Refresh cycle skipped: %s", exc)
        return None
    except RefreshCycleFailed as exc:
        for err in exc.errors:
            logger.error("  %s %s: %s", err.error_type, err.industry, err.detail)
        logger.error(
            "Refresh cycle run_id=%s failed after %.1fs: %s", exc.run_id, time.perf_counter() - started, exc
        )
        return None
    except RefreshError as exc:
        logger.error(
            "Refresh cycle aborted after %.1fs on %s: %s", time.perf_counter() - started, exc.industry, exc
        )
        return None
    except Exception:
        logger.exception("Refresh cycle failed after %.1fs", time.perf_counter() - started)
        return None

    logger.info(
        "Refresh cycle run_id=%s completed in %.1fs | refreshed=%d",
        summary.run_id,
        time.perf_counter() - started,
        len(summary.refreshed_industries),
    )
    return summary


def build_scheduler(controller: RefreshCycleController, cron: str) -> BlockingScheduler:
    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        refresh_job,
        trigger=CronTrigger.from_crontab(cron, timezone="UTC"),
        args=[controller],
        id=JOB_ID,
        name="Generate Industry Insights",
        max_instances=1,  # never overlap within this process; the lease covers other processes
        coalesce=True,
        misfire_grace_time=3600,
        replace_existing=True,
    )
    return scheduler


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Refresh stale industry insights on a schedule.")
    parser.add_argument(
        "--run-once",
        action="store_true",
        help="Run a single refresh cycle and exit.",
    )
    parser.add_argument(
        "--cron",
        type=str,
        default=None,
        help="Override REFRESH_CRON (5-field crontab expression, UTC).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ...).",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    settings = load_settings()
    Base.metadata.create_all(bind=engine)
    try:
        controller = build_controller(settings)
    except ProviderNotConfigured as exc:
        logger.error("Cannot start refresh job: %s", exc)
        return 2

    if args.run_once:
        summary = refresh_job(controller)
        return 0 if summary is not None else 1

    cron = args.cron or settings.refresh_cron
    scheduler = build_scheduler(controller, cron)
    logger.info("Scheduler started | cron=%r | provider=%s", cron, controller.provider_name)
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
