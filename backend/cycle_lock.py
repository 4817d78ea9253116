"""Database-backed lease that keeps refresh cycles from overlapping.

A lease row is keyed by a fixed cycle name. Acquiring either inserts the row
or takes over a row whose lease has expired; both paths are single
conditional statements so two processes cannot both win. A running cycle
renews its lease before each industry so a long cycle is not taken over.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import CycleLease

logger = logging.getLogger(__name__)

REFRESH_CYCLE_LEASE = "industry-insights-refresh"


def acquire_lease(db: Session, name: str, holder: str, ttl: timedelta, now: datetime) -> bool:
    """Try to take the lease ``name`` for ``holder``; returns False if someone else holds it."""
    expires_at = now + ttl

    result = db.execute(
        update(CycleLease)
        .where(CycleLease.name == name)
        .where(or_(CycleLease.expires_at <= now, CycleLease.holder == holder))
        .values(holder=holder, acquired_at=now, expires_at=expires_at)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        db.commit()
        logger.info("Lease %s taken over by %s until %s", name, holder, expires_at.isoformat())
        return True

    try:
        db.execute(
            insert(CycleLease).values(name=name, holder=holder, acquired_at=now, expires_at=expires_at)
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Lease %s is held by %s", name, current_holder(db, name) or "unknown")
        return False

    logger.info("Lease %s acquired by %s until %s", name, holder, expires_at.isoformat())
    return True


def renew_lease(db: Session, name: str, holder: str, ttl: timedelta, now: datetime) -> bool:
    """Push the expiry of ``name`` to ``now + ttl`` if ``holder`` still owns it."""
    expires_at = now + ttl
    result = db.execute(
        update(CycleLease)
        .where(CycleLease.name == name)
        .where(CycleLease.holder == holder)
        .values(expires_at=expires_at)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    if result.rowcount != 1:
        logger.warning("Lease %s was lost by %s before renewal", name, holder)
        return False
    logger.debug("Lease %s renewed by %s until %s", name, holder, expires_at.isoformat())
    return True


def release_lease(db: Session, name: str, holder: str) -> bool:
    """Release ``name`` if ``holder`` still owns it."""
    result = db.execute(
        delete(CycleLease)
        .where(CycleLease.name == name)
        .where(CycleLease.holder == holder)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    if result.rowcount != 1:
        logger.warning("Lease %s was no longer held by %s at release", name, holder)
        return False
    return True


def current_holder(db: Session, name: str) -> Optional[str]:
    return db.execute(select(CycleLease.holder).where(CycleLease.name == name)).scalar_one_or_none()
