from __future__ import annotations

from datetime import datetime
from typing import ContextManager, Optional, Protocol, Sequence

from ..core.enums import Role
from ..users.model import User
from .model import ActiveMonitor, AssignmentHistoryRow, MonitorAssignment


class MonitorUnitOfWork(Protocol):
    """Operations available inside one atomic transaction.

    Everything done through a unit of work commits together or not at all.
    `lock_capacity` must be the first call: it serializes every unit of work
    that can change the number of monitors.
    """

    def lock_capacity(self) -> None:
        raise NotImplementedError

    def get_user(self, user_id: int, *, for_update: bool = False) -> Optional[User]:
        raise NotImplementedError

    def count_by_role(self, role: Role) -> int:
        raise NotImplementedError

    def set_role(self, user_id: int, role: Role) -> None:
        raise NotImplementedError

    def get_assignment(self, assignment_id: int, *, for_update: bool = False) -> Optional[MonitorAssignment]:
        raise NotImplementedError

    def get_active_assignment(self, user_id: int, *, for_update: bool = False) -> Optional[MonitorAssignment]:
        raise NotImplementedError

    def insert_assignment(
        self,
        *,
        user_id: int,
        assigned_by: int,
        start_date: datetime,
        end_date: datetime,
    ) -> int:
        raise NotImplementedError

    def close_assignment(self, assignment_id: int, *, end_date: Optional[datetime] = None) -> bool:
        """Deactivate an active row; with `end_date`, also cut the window short."""

        raise NotImplementedError


class MonitorAssignmentRepository(Protocol):
    def unit_of_work(self) -> ContextManager[MonitorUnitOfWork]:
        raise NotImplementedError

    def list_expired(self, *, as_of: datetime) -> Sequence[MonitorAssignment]:
        raise NotImplementedError

    def list_active_monitors(self) -> Sequence[ActiveMonitor]:
        raise NotImplementedError

    def list_history(self, *, user_id: Optional[int] = None, limit: int = 200) -> Sequence[AssignmentHistoryRow]:
        raise NotImplementedError
