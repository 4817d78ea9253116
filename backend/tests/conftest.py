"""Shared fixtures for the insights refresher tests."""

import os
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

# The app-level engine is created at import time; keep it off disk.
os.environ.setdefault("SQLALCHEMY_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("PROVIDER", "mock")

import json
from datetime import datetime, timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from db import Base
from db_utils import create_database_engine
from models import DemandLevel, IndustryInsight, MarketOutlook


NOW = datetime(2026, 10, 18, 0, 0, 0)
WEEK = timedelta(days=7)


def valid_payload(**overrides):
    payload = {
        "salaryRanges": [
            {"role": f"Role {idx}", "min": 50000 + idx, "max": 150000, "median": 90000, "location": "Remote"}
            for idx in range(5)
        ],
        "growthRate": 6.5,
        "demandLevel": "High",
        "topSkills": ["Python", "SQL", "Cloud", "Security", "Communication"],
        "marketOutlook": "Positive",
        "keyTrends": ["AI", "Automation", "Remote work", "Regulation", "Consolidation"],
        "recommendedSkills": ["ML", "Kubernetes", "Rust", "Data Governance", "Leadership"],
    }
    payload.update(overrides)
    return payload


class StaticGenerator:
    """Generator that returns canned text and records every prompt it sees."""

    name = "static"

    def __init__(self, text=None, per_industry=None):
        self.text = text if text is not None else json.dumps(valid_payload())
        self.per_industry = per_industry or {}
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        for industry, response in self.per_industry.items():
            if f"state of the {industry} industry" in prompt:
                if isinstance(response, Exception):
                    raise response
                return response
        return self.text


@pytest.fixture
def engine():
    eng = create_database_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def add_insight(session_factory):
    def _add(industry, last_updated, next_update, **fields):
        values = {
            "salary_ranges": [],
            "growth_rate": 1.0,
            "demand_level": DemandLevel.MEDIUM,
            "top_skills": ["old skill"],
            "market_outlook": MarketOutlook.NEUTRAL,
            "key_trends": ["old trend"],
            "recommended_skills": ["old recommendation"],
        }
        values.update(fields)
        with session_factory() as db:
            db.add(IndustryInsight(industry=industry, last_updated=last_updated, next_update=next_update, **values))
            db.commit()

    return _add


@pytest.fixture
def load_insight(session_factory):
    def _load(industry):
        with session_factory() as db:
            row = db.query(IndustryInsight).filter(IndustryInsight.industry == industry).one_or_none()
            if row is not None:
                db.expunge(row)
            return row

    return _load
