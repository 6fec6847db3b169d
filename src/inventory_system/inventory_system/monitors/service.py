from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, List, Optional, Sequence

from ..common.datetime_utils import end_of_day, now_local
from ..common.retry import retry_read
from ..common.validators import require_after, require_positive_id
from ..core.constants import DEFAULT_HISTORY_LIMIT, MAX_ACTIVE_MONITORS
from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    CapacityExceeded,
    InvalidRoleTransition,
    NotAMonitor,
    NotFound,
)
from ..users.model import User
from ..users.repository import UserRepository
from .model import ActiveMonitor, AssignmentHistoryRow, ExpiredMonitor, MonitorAssignment
from .repository import MonitorAssignmentRepository

logger = logging.getLogger(__name__)


class MonitorService:
    """Use case: rotate employees through the capacity-limited monitor role.

    This is the only writer of `users.role` for the employee/monitor
    transition and of the `is_active`/`end_date` columns of assignments.
    Every mutation runs inside one unit of work that first takes the
    capacity lock, so the count check and the write cannot interleave with
    another assignment.
    """

    def __init__(
        self,
        assignments: MonitorAssignmentRepository,
        users: UserRepository,
        *,
        max_monitors: int = MAX_ACTIVE_MONITORS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._assignments = assignments
        self._users = users
        self._max_monitors = int(max_monitors)
        self._clock = clock

    @property
    def max_monitors(self) -> int:
        return self._max_monitors

    def assign_monitor(
        self,
        *,
        user_id: int,
        assigned_by: int,
        end_date: date | datetime,
        now: Optional[datetime] = None,
    ) -> MonitorAssignment:
        now = now or self._clock()
        user_id = require_positive_id(user_id, "Employee")
        assigned_by = require_positive_id(assigned_by, "Admin")
        end_at = require_after(end_of_day(end_date), now, "End date")

        admin = self._users.get_by_id(assigned_by)
        if not admin or admin.role != Role.ADMIN:
            raise AuthorizationError("Only admins can assign monitors")

        with self._assignments.unit_of_work() as uow:
            uow.lock_capacity()

            user = uow.get_user(user_id, for_update=True)
            if not user:
                raise NotFound(user_id)
            self._require_eligible(user)

            current = uow.count_by_role(Role.MONITOR)
            if current >= self._max_monitors:
                logger.warning(
                    "Refused monitor assignment for user %s: %d/%d slots taken",
                    user_id, current, self._max_monitors,
                )
                raise CapacityExceeded(self._max_monitors)

            stale = uow.get_active_assignment(user_id, for_update=True)
            if stale:
                logger.warning("Closing stale active assignment %s of employee %s", stale.assignment_id, user_id)
                uow.close_assignment(stale.assignment_id, end_date=now)

            uow.set_role(user_id, Role.MONITOR)
            assignment_id = uow.insert_assignment(
                user_id=user_id,
                assigned_by=assigned_by,
                start_date=now,
                end_date=end_at,
            )

        logger.info(
            "User %s assigned as monitor by admin %s until %s (assignment %s)",
            user_id, assigned_by, end_at.isoformat(), assignment_id,
        )
        return MonitorAssignment(
            assignment_id=assignment_id,
            user_id=user_id,
            assigned_by=assigned_by,
            start_date=now,
            end_date=end_at,
            is_active=True,
        )

    @staticmethod
    def _require_eligible(user: User) -> None:
        if user.role == Role.MONITOR:
            raise InvalidRoleTransition("User is already a monitor")
        if user.role == Role.ADMIN:
            raise InvalidRoleTransition("Admins cannot be assigned as monitors")
        if not user.is_active:
            raise InvalidRoleTransition("Inactive users cannot be assigned as monitors")

    def revoke_monitor(self, *, user_id: int, now: Optional[datetime] = None) -> Optional[MonitorAssignment]:
        """End a monitor assignment early.

        Returns the closed assignment, or None when only a monitor role without
        an active assignment had to be reset. Raises NotAMonitor (benign) when
        there is nothing to revoke.
        """
        now = now or self._clock()
        user_id = require_positive_id(user_id, "User")

        with self._assignments.unit_of_work() as uow:
            uow.lock_capacity()

            user = uow.get_user(user_id, for_update=True)
            if not user:
                raise NotFound(user_id)

            active = uow.get_active_assignment(user_id, for_update=True)
            if not active and user.role != Role.MONITOR:
                raise NotAMonitor(user_id)

            if user.role == Role.MONITOR:
                uow.set_role(user_id, Role.EMPLOYEE)

            closed = None
            if active:
                uow.close_assignment(active.assignment_id, end_date=now)
                closed = replace(active, is_active=False, end_date=min(active.end_date, now))

        if closed:
            logger.info("Monitor assignment %s of user %s revoked", closed.assignment_id, user_id)
        else:
            logger.warning("User %s had the monitor role without an active assignment; role reset", user_id)
        return closed

    def sweep_expired_assignments(self, *, as_of: Optional[datetime] = None) -> List[ExpiredMonitor]:
        """Close every active assignment whose end date passed before `as_of`.

        Each row is handled in its own unit of work and re-checked under lock,
        so concurrent or repeated sweeps never transition a row twice.
        """
        as_of = as_of or self._clock()
        affected: List[ExpiredMonitor] = []

        for candidate in self._assignments.list_expired(as_of=as_of):
            expired = self._expire_one(candidate.assignment_id, as_of=as_of)
            if expired:
                logger.info(
                    "Monitor %s (%s) expired and deactivated (assignment %s)",
                    expired.user_id, expired.full_name, expired.assignment_id,
                )
                affected.append(expired)

        if not affected:
            logger.debug("No expired monitors as of %s", as_of.isoformat())
        return affected

    def _expire_one(self, assignment_id: int, *, as_of: datetime) -> Optional[ExpiredMonitor]:
        with self._assignments.unit_of_work() as uow:
            uow.lock_capacity()

            current = uow.get_assignment(assignment_id, for_update=True)
            if not current or not current.is_active or not current.is_expired(as_of):
                return None

            user = uow.get_user(current.user_id, for_update=True)
            if user and user.role == Role.MONITOR:
                uow.set_role(current.user_id, Role.EMPLOYEE)
            uow.close_assignment(current.assignment_id)

        return ExpiredMonitor(
            user_id=current.user_id,
            full_name=user.full_name if user else "",
            assignment_id=current.assignment_id,
            end_date=current.end_date,
        )

    @retry_read
    def get_active_monitors(self) -> Sequence[ActiveMonitor]:
        return self._assignments.list_active_monitors()

    @retry_read
    def count_active_monitors(self) -> int:
        """Advisory count for the UI; assign_monitor re-checks under lock."""
        return self._users.count_by_role(Role.MONITOR)

    def remaining_slots(self) -> int:
        return max(0, self._max_monitors - self.count_active_monitors())

    @retry_read
    def list_eligible_employees(self) -> Sequence[User]:
        return self._users.list_by_role(Role.EMPLOYEE, active_only=True)

    @retry_read
    def list_assignment_history(
        self,
        *,
        user_id: Optional[int] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> Sequence[AssignmentHistoryRow]:
        if user_id is not None:
            user_id = require_positive_id(user_id, "User")
        return self._assignments.list_history(user_id=user_id, limit=int(limit))
