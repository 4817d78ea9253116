from __future__ import annotations

import logging
import os
import socket
import threading
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ai.prompt_builder import build_prompt
from ai.provider import InsightGenerator
from config import DEFAULT_GENERATION_TIMEOUT_SECONDS, DEFAULT_LEASE_TTL_SECONDS, DEFAULT_REFRESH_INTERVAL_DAYS
from cycle_lock import REFRESH_CYCLE_LEASE, acquire_lease, current_holder, release_lease, renew_lease
from errors import (
    CycleAlreadyRunning,
    GenerationFailure,
    GenerationTimeout,
    PersistenceFailure,
    RecordNotFound,
    RefreshCycleFailed,
    RefreshError,
)
from insight_parser import parse_insight_payload
from models import (
    IndustryInsight,
    IndustryInsightOut,
    InsightPayload,
    RefreshCycleSummary,
    RefreshErrorEntry,
    RefreshRun,
    RunStatus,
)
from utcnow import utcnow

logger = logging.getLogger(__name__)

REFRESH_INTERVAL = timedelta(days=DEFAULT_REFRESH_INTERVAL_DAYS)


def select_due_industries(db: Session, now: datetime, interval: timedelta = REFRESH_INTERVAL) -> List[str]:
    """Return industries whose insights are due, most overdue first.

    A record is due when its next_update has passed, or when its last_updated
    is older than one interval (covers rows whose next_update is wrong).
    """
    stmt = (
        select(IndustryInsight.industry)
        .where(
            or_(
                IndustryInsight.next_update <= now,
                IndustryInsight.last_updated <= now - interval,
            )
        )
        .order_by(IndustryInsight.next_update.asc(), IndustryInsight.industry.asc())
    )
    return list(db.execute(stmt).scalars().all())


def _default_holder() -> str:
    return f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"


class RefreshCycleController:
    """Runs one refresh cycle over all due industry insights.

    Industries are processed strictly in order, one at a time. With
    ``failure_policy="isolate"`` every due industry is attempted and failures
    are reported together at the end; with ``"abort"`` the first failure is
    re-raised and later industries are left for the next cycle.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        generator: InsightGenerator,
        *,
        interval: timedelta = REFRESH_INTERVAL,
        generation_timeout_seconds: float = DEFAULT_GENERATION_TIMEOUT_SECONDS,
        failure_policy: str = "isolate",
        lease_ttl: timedelta = timedelta(seconds=DEFAULT_LEASE_TTL_SECONDS),
        lease_name: str = REFRESH_CYCLE_LEASE,
        holder: Optional[str] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if failure_policy not in {"isolate", "abort"}:
            raise ValueError(f"unknown failure policy: {failure_policy!r}")
        self._session_factory = session_factory
        self._generator = generator
        self._interval = interval
        self._generation_timeout_seconds = generation_timeout_seconds
        self._failure_policy = failure_policy
        self._lease_ttl = lease_ttl
        self._lease_name = lease_name
        self._holder = holder or _default_holder()
        self._clock = clock

    @property
    def provider_name(self) -> str:
        return getattr(self._generator, "name", "unknown")

    def select_due_keys(self, now: Optional[datetime] = None) -> List[str]:
        now = now or self._clock()
        with self._session_factory() as db:
            return select_due_industries(db, now, self._interval)

    # ---------- single industry ----------

    def refresh_one(self, industry: str, now: Optional[datetime] = None) -> IndustryInsightOut:
        """Regenerate and persist the insight for ``industry``.

        Raises a RefreshError subclass on failure; the stored row is left
        untouched in that case.
        """
        now = now or self._clock()
        self._log_state("Before refresh", industry)

        prompt = build_prompt(industry)
        raw_text = self._generate(industry, prompt)
        payload = parse_insight_payload(industry, raw_text)

        return self._persist(industry, payload, now)

    def _generate(self, industry: str, prompt: str) -> str:
        outcome: Dict[str, Any] = {}

        def _call() -> None:
            try:
                outcome["text"] = self._generator.generate(prompt)
            except Exception as exc:
                outcome["error"] = exc

        # Daemon thread: a hung call must not hold the interpreter open at exit.
        worker = threading.Thread(target=_call, name=f"insight-generation-{industry}", daemon=True)
        worker.start()
        worker.join(self._generation_timeout_seconds)

        if worker.is_alive():
            raise GenerationTimeout(industry, f"generation exceeded {self._generation_timeout_seconds:g}s")
        if "error" in outcome:
            exc = outcome["error"]
            raise GenerationFailure(industry, f"{type(exc).__name__}: {exc}") from exc
        return outcome["text"]

    def _persist(self, industry: str, payload: InsightPayload, now: datetime) -> IndustryInsightOut:
        next_update = now + self._interval
        logger.info("Updating %s with next update date: %s", industry, next_update.isoformat())

        with self._session_factory() as db:
            try:
                result = db.execute(
                    update(IndustryInsight)
                    .where(IndustryInsight.industry == industry)
                    .values(**payload.to_columns(), last_updated=now, next_update=next_update)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    db.rollback()
                    raise RecordNotFound(industry, "no insight row exists for this industry")
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise PersistenceFailure(industry, f"{type(exc).__name__}: {exc}") from exc

            row = db.execute(
                select(IndustryInsight).where(IndustryInsight.industry == industry)
            ).scalar_one()
            updated = IndustryInsightOut.model_validate(row)

        logger.info(
            "Successfully updated %s: demand=%s outlook=%s growth=%.1f%% next_update=%s",
            industry,
            updated.demand_level.value,
            updated.market_outlook.value,
            updated.growth_rate,
            updated.next_update.isoformat(),
        )
        return updated

    def _log_state(self, label: str, industry: str) -> None:
        with self._session_factory() as db:
            try:
                row = db.execute(
                    select(IndustryInsight.last_updated, IndustryInsight.next_update).where(
                        IndustryInsight.industry == industry
                    )
                ).first()
            except SQLAlchemyError as exc:
                raise PersistenceFailure(industry, f"{type(exc).__name__}: {exc}") from exc
        if row is None:
            logger.info("%s %s: no stored row", label, industry)
        else:
            logger.info(
                "%s %s: last_updated=%s next_update=%s",
                label,
                industry,
                row.last_updated.isoformat(),
                row.next_update.isoformat(),
            )

    # ---------- full cycle ----------

    def run_cycle(self, now: Optional[datetime] = None) -> RefreshCycleSummary:
        """Refresh every due industry once.

        Every industry refreshed in this cycle is stamped with the cycle start
        time, so the whole batch becomes due again together one interval later.
        """
        now = now or self._clock()

        with self._session_factory() as db:
            acquired = acquire_lease(db, self._lease_name, self._holder, self._lease_ttl, now)
            holder = None if acquired else current_holder(db, self._lease_name)
        if not acquired:
            self._record_skipped_run(now)
            logger.warning("Refresh cycle skipped: lease %s held by %s", self._lease_name, holder)
            raise CycleAlreadyRunning(self._lease_name, holder)

        try:
            return self._run_locked(now)
        finally:
            with self._session_factory() as db:
                release_lease(db, self._lease_name, self._holder)

    def _run_locked(self, now: datetime) -> RefreshCycleSummary:
        run_id = self._start_run(now)
        due: List[str] = []
        refreshed: List[str] = []
        errors: List[RefreshError] = []

        try:
            due = self.select_due_keys(now)
            logger.info("Found %d industries to update: %s", len(due), due)

            if not due:
                logger.info("No industries found that need updating. Current time: %s", now.isoformat())

            for industry in due:
                if not self._renew_lease():
                    self._finish_run(run_id, RunStatus.FAILED, due, refreshed, errors)
                    with self._session_factory() as db:
                        holder = current_holder(db, self._lease_name)
                    logger.error(
                        "Refresh cycle %s stopped before %s: lease %s lost to %s",
                        run_id,
                        industry,
                        self._lease_name,
                        holder,
                    )
                    raise CycleAlreadyRunning(self._lease_name, holder)

                logger.info("Processing industry: %s", industry)
                try:
                    self.refresh_one(industry, now=now)
                except RefreshError as exc:
                    logger.error("Failed to update %s: %s", industry, exc, exc_info=True)
                    errors.append(exc)
                    if self._failure_policy == "abort":
                        self._finish_run(run_id, RunStatus.FAILED, due, refreshed, errors)
                        raise
                    continue
                refreshed.append(industry)
        except (RefreshError, CycleAlreadyRunning):
            raise
        except Exception:
            logger.exception("Refresh cycle crashed")
            self._finish_run(run_id, RunStatus.FAILED, due, refreshed, errors)
            raise

        status = RunStatus.FAILED if errors else RunStatus.COMPLETED
        summary = self._finish_run(run_id, status, due, refreshed, errors)
        logger.info(
            "Refresh cycle %s finished: due=%d refreshed=%d failed=%d",
            run_id,
            len(due),
            len(refreshed),
            len(errors),
        )
        if errors:
            raise RefreshCycleFailed(run_id, errors, summary=summary)
        return summary

    def _renew_lease(self) -> bool:
        with self._session_factory() as db:
            return renew_lease(db, self._lease_name, self._holder, self._lease_ttl, self._clock())

    def _start_run(self, now: datetime) -> int:
        with self._session_factory() as db:
            run = RefreshRun(started_at=now, provider_used=self.provider_name, status=RunStatus.RUNNING)
            db.add(run)
            db.commit()
            return run.id

    def _record_skipped_run(self, now: datetime) -> None:
        with self._session_factory() as db:
            db.add(
                RefreshRun(
                    started_at=now,
                    completed_at=now,
                    provider_used=self.provider_name,
                    status=RunStatus.SKIPPED,
                )
            )
            db.commit()

    def _finish_run(
        self,
        run_id: int,
        status: RunStatus,
        due: List[str],
        refreshed: List[str],
        errors: List[RefreshError],
    ) -> RefreshCycleSummary:
        error_entries = [err.to_dict() for err in errors]
        with self._session_factory() as db:
            run = db.get(RefreshRun, run_id)
            run.completed_at = self._clock()
            run.status = status
            run.due_count = len(due)
            run.refreshed_count = len(refreshed)
            run.failed_count = len(errors)
            run.errors = error_entries
            db.commit()

        return RefreshCycleSummary(
            run_id=run_id,
            provider_used=self.provider_name,
            status=status,
            due_industries=list(due),
            refreshed_industries=list(refreshed),
            errors=[RefreshErrorEntry(**entry) for entry in error_entries],
        )
