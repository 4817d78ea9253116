from __future__ import annotations

from typing import Any, List, Optional


class RefreshError(Exception):
    """Base class for failures while refreshing a single industry insight."""

    error_type = "RefreshError"

    def __init__(self, industry: Optional[str], detail: str) -> None:
        self.industry = industry
        self.detail = detail
        prefix = f"[{industry}] " if industry else ""
        super().__init__(f"{prefix}{detail}")

    def to_dict(self) -> dict:
        return {"industry": self.industry, "error_type": self.error_type, "detail": self.detail}


class MalformedGenerationOutput(RefreshError):
    """Generated text was not valid JSON after fence stripping, or failed schema checks."""

    error_type = "MalformedGenerationOutput"


class GenerationFailure(RefreshError):
    """The external generation call itself errored."""

    error_type = "GenerationFailure"


class GenerationTimeout(GenerationFailure):
    """The external generation call exceeded the configured timeout."""

    error_type = "GenerationTimeout"


class RecordNotFound(RefreshError):
    """An update targeted an industry with no corresponding row."""

    error_type = "RecordNotFound"


class PersistenceFailure(RefreshError):
    """The database update failed for reasons other than a missing row."""

    error_type = "PersistenceFailure"


class CycleAlreadyRunning(Exception):
    """Another refresh cycle currently holds the cycle lease."""

    def __init__(self, lease_name: str, holder: Optional[str] = None) -> None:
        self.lease_name = lease_name
        self.holder = holder
        super().__init__(f"Refresh cycle lease {lease_name!r} is held by {holder or 'another process'}")


class RefreshCycleFailed(Exception):
    """Raised at cycle end when one or more industries failed to refresh."""

    def __init__(self, run_id: Optional[int], errors: List[RefreshError], summary: Any = None) -> None:
        self.run_id = run_id
        self.errors = list(errors)
        self.summary = summary
        failed = ", ".join(str(err.industry) for err in self.errors)
        super().__init__(f"{len(self.errors)} industry refresh(es) failed: {failed}")


class ProviderNotConfigured(RuntimeError):
    """A real generation provider was requested but cannot be constructed."""
