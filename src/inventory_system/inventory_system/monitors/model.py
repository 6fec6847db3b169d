from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class MonitorAssignment:
    """One (possibly historical) elevation of a user to the monitor role.

    `end_date` is an exclusive upper bound. Rows are deactivated, never deleted.
    """

    assignment_id: int
    user_id: int
    assigned_by: int
    start_date: datetime
    end_date: datetime
    is_active: bool = True

    def is_expired(self, as_of: datetime) -> bool:
        return self.end_date < as_of


@dataclass(frozen=True)
class ActiveMonitor:
    user_id: int
    full_name: str
    username: str
    assignment_id: Optional[int]
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    assigned_by: Optional[int] = None
    assigned_by_name: Optional[str] = None


@dataclass(frozen=True)
class ExpiredMonitor:
    """A user whose assignment was closed by the expiry sweep."""

    user_id: int
    full_name: str
    assignment_id: int
    end_date: datetime


@dataclass(frozen=True)
class AssignmentHistoryRow:
    assignment_id: int
    user_id: int
    full_name: str
    assigned_by: int
    assigned_by_name: Optional[str]
    start_date: datetime
    end_date: datetime
    is_active: bool
