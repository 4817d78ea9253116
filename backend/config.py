from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv


# Load backend/.env so PROVIDER / GEMINI_API_KEY are available to every entry point
load_dotenv(dotenv_path=Path(__file__).with_name(".env"), override=False)

# APScheduler numbers weekdays from Monday=0, so the weekday is spelled out
DEFAULT_REFRESH_CRON = "0 0 * * sun"  # every Sunday at midnight (UTC)
DEFAULT_REFRESH_INTERVAL_DAYS = 7
DEFAULT_GENERATION_TIMEOUT_SECONDS = 120.0
DEFAULT_LEASE_TTL_SECONDS = 6 * 60 * 60

FAILURE_POLICIES = {"isolate", "abort"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    refresh_interval: timedelta
    refresh_cron: str
    generation_timeout_seconds: float
    failure_policy: str
    lease_ttl: timedelta


def load_settings() -> Settings:
    """Read refresh-cycle settings from the environment."""
    interval_days = _env_float("REFRESH_INTERVAL_DAYS", DEFAULT_REFRESH_INTERVAL_DAYS)
    if interval_days <= 0:
        raise ValueError("REFRESH_INTERVAL_DAYS must be > 0")

    timeout = _env_float("GENERATION_TIMEOUT_SECONDS", DEFAULT_GENERATION_TIMEOUT_SECONDS)
    if timeout <= 0:
        raise ValueError("GENERATION_TIMEOUT_SECONDS must be > 0")

    lease_ttl = _env_float("REFRESH_LEASE_TTL_SECONDS", DEFAULT_LEASE_TTL_SECONDS)
    if lease_ttl <= 0:
        raise ValueError("REFRESH_LEASE_TTL_SECONDS must be > 0")

    policy = os.getenv("REFRESH_FAILURE_POLICY", "isolate").lower().strip() or "isolate"
    if policy not in FAILURE_POLICIES:
        raise ValueError(
            f"REFRESH_FAILURE_POLICY must be one of {sorted(FAILURE_POLICIES)}, got {policy!r}"
        )

    return Settings(
        refresh_interval=timedelta(days=interval_days),
        refresh_cron=os.getenv("REFRESH_CRON", DEFAULT_REFRESH_CRON).strip() or DEFAULT_REFRESH_CRON,
        generation_timeout_seconds=timeout,
        failure_policy=policy,
        lease_ttl=timedelta(seconds=lease_ttl),
    )
