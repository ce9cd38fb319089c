# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: request counters and recent lookup errors.
In-memory, reset on demand; nothing survives a restart.
"""

import time
from datetime import datetime, timezone
from typing import Any, Optional

from oncall_phone.core.config import settings


class StatsRepository:
    """Per-team lookup counters plus a bounded list of recent errors."""

    def __init__(self, max_errors: Optional[int] = None) -> None:
        self._max_errors = max_errors or settings.MAX_RECENT_ERRORS
        self._started_at = datetime.now(timezone.utc)
        self._started_monotonic = time.monotonic()
        self._reset_counters()

    def _reset_counters(self) -> None:
        self._total = 0
        self._success = 0
        self._error = 0
        self._teams: dict[str, int] = {}
        self._errors: list[dict[str, Any]] = []

    # ── Write ──

    def record_request(self, team: str, success: bool) -> None:
        self._total += 1
        if success:
            self._success += 1
        else:
            self._error += 1
        self._teams[team] = self._teams.get(team, 0) + 1

    def record_error(self, message: str, team: Optional[str] = None,
                     stage: Optional[str] = None) -> dict[str, Any]:
        """Prepend an error, trimming the oldest beyond the limit."""
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "message": message,
            "team": team,
            "stage": stage,
        }
        self._errors.insert(0, entry)
        del self._errors[self._max_errors:]
        return entry

    def reset(self) -> None:
        self._reset_counters()

    # ── Read ──

    @property
    def started_at(self) -> datetime:
        return self._started_at

    def uptime_seconds(self) -> float:
        return time.monotonic() - self._started_monotonic

    def error_rate(self) -> int:
        """Whole-number percentage of failed lookups."""
        if self._total == 0:
            return 0
        return round(self._error / self._total * 100)

    def snapshot(self) -> dict[str, Any]:
        return {
            "total": self._total,
            "success": self._success,
            "error": self._error,
            "error_rate": f"{self.error_rate()}%",
            "teams": dict(self._teams),
            "last_error": self._errors[0] if self._errors else None,
        }

    def recent_errors(self) -> list[dict[str, Any]]:
        return list(self._errors)
