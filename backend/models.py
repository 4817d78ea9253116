from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy import (
    JSON,
    DateTime,
    Enum as SAEnum,
    Float,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from db import Base
from utcnow import utcnow


class DemandLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class MarketOutlook(str, Enum):
    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"


class RunStatus(str, Enum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class IndustryInsight(Base):
    __tablename__ = "industry_insights"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    industry: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)

    salary_ranges: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    growth_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    demand_level: Mapped[DemandLevel] = mapped_column(SAEnum(DemandLevel), nullable=False)
    top_skills: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    market_outlook: Mapped[MarketOutlook] = mapped_column(SAEnum(MarketOutlook), nullable=False)
    key_trends: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    recommended_skills: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    last_updated: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    next_update: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)


class RefreshRun(Base):
    __tablename__ = "refresh_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    provider_used: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[RunStatus] = mapped_column(
        SAEnum(RunStatus), default=RunStatus.RUNNING, nullable=False, index=True
    )
    due_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    refreshed_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failed_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    errors: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)


class CycleLease(Base):
    __tablename__ = "cycle_leases"

    name: Mapped[str] = mapped_column(String, primary_key=True)
    holder: Mapped[str] = mapped_column(String, nullable=False)
    acquired_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


# ---------- Pydantic Schemas ----------


class SalaryRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    role: str
    min_salary: float = Field(alias="min", ge=0, allow_inf_nan=False)
    max_salary: float = Field(alias="max", ge=0, allow_inf_nan=False)
    median_salary: float = Field(alias="median", ge=0, allow_inf_nan=False)
    location: str

    @model_validator(mode="after")
    def check_ordering(self) -> "SalaryRange":
        if not self.min_salary <= self.median_salary <= self.max_salary:
            raise ValueError(
                f"salary range for {self.role!r} must satisfy min <= median <= max "
                f"(got {self.min_salary}, {self.median_salary}, {self.max_salary})"
            )
        return self


class InsightPayload(BaseModel):
    """Structured content returned by the generator for one industry."""

    model_config = ConfigDict(populate_by_name=True)

    salary_ranges: List[SalaryRange] = Field(alias="salaryRanges")
    growth_rate: float = Field(alias="growthRate", ge=-100, allow_inf_nan=False)
    demand_level: DemandLevel = Field(alias="demandLevel")
    top_skills: List[str] = Field(alias="topSkills")
    market_outlook: MarketOutlook = Field(alias="marketOutlook")
    key_trends: List[str] = Field(alias="keyTrends")
    recommended_skills: List[str] = Field(alias="recommendedSkills")

    def to_columns(self) -> Dict[str, Any]:
        """Column values for a full replacement of an IndustryInsight payload."""
        return {
            "salary_ranges": [item.model_dump(by_alias=True) for item in self.salary_ranges],
            "growth_rate": self.growth_rate,
            "demand_level": self.demand_level,
            "top_skills": list(self.top_skills),
            "market_outlook": self.market_outlook,
            "key_trends": list(self.key_trends),
            "recommended_skills": list(self.recommended_skills),
        }


class IndustryInsightOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    industry: str
    salary_ranges: List[Dict[str, Any]]
    growth_rate: float
    demand_level: DemandLevel
    top_skills: List[str]
    market_outlook: MarketOutlook
    key_trends: List[str]
    recommended_skills: List[str]
    last_updated: datetime
    next_update: datetime


class RefreshErrorEntry(BaseModel):
    industry: Optional[str]
    error_type: str
    detail: str


class RefreshRunOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    started_at: datetime
    completed_at: Optional[datetime]
    provider_used: str
    status: RunStatus
    due_count: int
    refreshed_count: int
    failed_count: int
    errors: List[RefreshErrorEntry]


class RefreshCycleSummary(BaseModel):
    run_id: Optional[int]
    provider_used: str
    status: RunStatus
    due_industries: List[str]
    refreshed_industries: List[str]
    errors: List[RefreshErrorEntry]
