from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from db import get_db
from errors import CycleAlreadyRunning, ProviderNotConfigured, RefreshCycleFailed, RefreshError
from models import RefreshCycleSummary, RefreshRun, RefreshRunOut

router = APIRouter(prefix="/refresh", tags=["refresh"])
logger = logging.getLogger(__name__)


def get_controller():
    from scheduler import build_controller  # local import keeps apscheduler out of app import time

    try:
        return build_controller()
    except ProviderNotConfigured as exc:
        logger.error("Refresh provider unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.post("/run", response_model=RefreshCycleSummary)
def run_refresh_endpoint(controller=Depends(get_controller)) -> RefreshCycleSummary:
    try:
        return controller.run_cycle()
    except CycleAlreadyRunning as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except RefreshCycleFailed as exc:
        logger.error("Refresh run %s failed: %s", exc.run_id, exc)
        raise HTTPException(
            status_code=500,
            detail={
                "message": str(exc),
                "run_id": exc.run_id,
                "errors": [err.to_dict() for err in exc.errors],
            },
        ) from exc
    except RefreshError as exc:
        logger.error("Refresh run aborted: %s", exc)
        raise HTTPException(status_code=500, detail={"message": str(exc), "errors": [exc.to_dict()]}) from exc


@router.get("/runs", response_model=List[RefreshRunOut])
def list_refresh_runs(
    limit: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
) -> List[RefreshRunOut]:
    runs = db.execute(
        select(RefreshRun).order_by(RefreshRun.started_at.desc(), RefreshRun.id.desc()).limit(limit)
    ).scalars().all()
    return [RefreshRunOut.model_validate(run) for run in runs]
