from __future__ import annotations

import os
from datetime import datetime
from typing import Any, Dict

from fastapi import Depends, FastAPI
from sqlalchemy import func, select, text
from sqlalchemy.orm import Session

from ai.provider import configured_provider_name
from db import Base, engine, get_db
from models import IndustryInsight, RefreshRun
from routes import insights, refresh


app = FastAPI(title="Industry Insights Refresher")


@app.on_event("startup")
def on_startup() -> None:
    # Ensure database schema is created.
    Base.metadata.create_all(bind=engine)


app.include_router(insights.router)
app.include_router(refresh.router)


@app.get("/health")
def health(db: Session = Depends(get_db)) -> Dict[str, Any]:
    db_ok = True
    try:
        db.execute(text("SELECT 1"))
    except Exception:
        db_ok = False

    last_run_completed_at: datetime | None = None
    insight_count = 0
    if db_ok:
        last_run_completed_at = db.execute(
            select(RefreshRun.completed_at)
            .where(RefreshRun.completed_at.is_not(None))
            .order_by(RefreshRun.completed_at.desc())
            .limit(1)
        ).scalar()
        insight_count = db.execute(select(func.count(IndustryInsight.id))).scalar() or 0

    return {
        "provider": configured_provider_name(),
        "gemini_configured": bool(os.getenv("GEMINI_API_KEY", "").strip()),
        "db_ok": db_ok,
        "insight_count": insight_count,
        "last_run_completed_at": last_run_completed_at,
    }


@app.get("/")
def root() -> Dict[str, str]:
    return {
        "message": "Industry insights refresher is running.",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    reload_enabled = os.getenv("UVICORN_RELOAD", "").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=reload_enabled)
