from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from db import get_db
from models import IndustryInsight, IndustryInsightOut

router = APIRouter(prefix="/insights", tags=["insights"])


@router.get("", response_model=List[IndustryInsightOut])
def list_insights(db: Session = Depends(get_db)) -> List[IndustryInsightOut]:
    rows = db.execute(select(IndustryInsight).order_by(IndustryInsight.industry.asc())).scalars().all()
    return [IndustryInsightOut.model_validate(row) for row in rows]


@router.get("/{industry}", response_model=IndustryInsightOut)
def get_insight(industry: str, db: Session = Depends(get_db)) -> IndustryInsightOut:
    row = db.execute(
        select(IndustryInsight).where(IndustryInsight.industry == industry)
    ).scalar_one_or_none()
    if row is None:
        raise HTTPException(status_code=404, detail=f"No insight for industry {industry!r}")
    return IndustryInsightOut.model_validate(row)
