from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Optional

import pytest

from src.inventory_system.inventory_system.core.enums import Role
from src.inventory_system.inventory_system.core.exceptions import PersistenceFailure
from src.inventory_system.inventory_system.monitors.model import (
    ActiveMonitor,
    AssignmentHistoryRow,
    MonitorAssignment,
)
from src.inventory_system.inventory_system.monitors.service import MonitorService
from src.inventory_system.inventory_system.users.model import User

NOW = datetime(2026, 3, 2, 9, 0, 0)


class InMemoryUnitOfWork:
    """Takes the store lock in lock_capacity() and works on copies of the
    store tables made under it; the store swaps them in on commit."""

    def __init__(self, store: "InMemoryMonitorStore"):
        self._store = store
        self.users: dict[int, User] = {}
        self.assignments: dict[int, MonitorAssignment] = {}
        self.next_id = 0
        self.capacity_locked = False

    def _require_lock(self) -> None:
        assert self.capacity_locked, "unit of work used before the capacity lock"

    def _write(self, name: str) -> None:
        self._require_lock()
        if self._store.fail_write == name:
            raise PersistenceFailure("Database operation failed")

    def lock_capacity(self) -> None:
        assert not self.capacity_locked, "capacity lock taken twice"
        self._store._lock.acquire()
        self.capacity_locked = True
        self.users = dict(self._store.users)
        self.assignments = dict(self._store.assignments)
        self.next_id = self._store.next_id

    def release(self) -> None:
        if self.capacity_locked:
            self.capacity_locked = False
            self._store._lock.release()

    def get_user(self, user_id: int, *, for_update: bool = False) -> Optional[User]:
        self._require_lock()
        return self.users.get(int(user_id))

    def count_by_role(self, role: Role) -> int:
        self._require_lock()
        if self._store.count_delay:
            time.sleep(self._store.count_delay)
        return sum(1 for u in self.users.values() if u.role == role)

    def set_role(self, user_id: int, role: Role) -> None:
        self._write("set_role")
        self.users[int(user_id)] = replace(self.users[int(user_id)], role=role)

    def get_assignment(self, assignment_id: int, *, for_update: bool = False) -> Optional[MonitorAssignment]:
        self._require_lock()
        return self.assignments.get(int(assignment_id))

    def get_active_assignment(self, user_id: int, *, for_update: bool = False) -> Optional[MonitorAssignment]:
        self._require_lock()
        active = [a for a in self.assignments.values() if a.user_id == int(user_id) and a.is_active]
        return max(active, key=lambda a: a.assignment_id) if active else None

    def insert_assignment(self, *, user_id, assigned_by, start_date, end_date) -> int:
        self._write("insert_assignment")
        aid = self.next_id
        self.next_id += 1
        self.assignments[aid] = MonitorAssignment(
            assignment_id=aid,
            user_id=int(user_id),
            assigned_by=int(assigned_by),
            start_date=start_date,
            end_date=end_date,
            is_active=True,
        )
        return aid

    def close_assignment(self, assignment_id: int, *, end_date: Optional[datetime] = None) -> bool:
        self._write("close_assignment")
        a = self.assignments.get(int(assignment_id))
        if not a or not a.is_active:
            return False
        new_end = min(a.end_date, end_date) if end_date else a.end_date
        self.assignments[a.assignment_id] = replace(a, is_active=False, end_date=new_end)
        return True


class InMemoryMonitorStore:
    """UserRepository + MonitorAssignmentRepository backed by dicts.

    The lock stands in for the capacity row: taken by lock_capacity() and held
    until the unit of work ends.
    """

    def __init__(self):
        self.users: dict[int, User] = {}
        self.assignments: dict[int, MonitorAssignment] = {}
        self.next_id = 1
        self.count_delay = 0.0
        self.fail_reads = 0
        self.fail_unit_of_work = 0
        self.fail_write: Optional[str] = None
        self.unit_of_work_calls = 0
        self._lock = threading.Lock()

    def add_user(self, user_id: int, *, role: Role = Role.EMPLOYEE, is_active: bool = True) -> User:
        user = User(
            user_id=user_id,
            full_name=f"User {user_id}",
            username=f"user{user_id}",
            role=role,
            is_active=is_active,
        )
        self.users[user_id] = user
        return user

    def snapshot(self):
        return dict(self.users), dict(self.assignments), self.next_id

    def _read(self):
        if self.fail_reads > 0:
            self.fail_reads -= 1
            raise PersistenceFailure("Database operation failed")

    @contextmanager
    def unit_of_work(self):
        self.unit_of_work_calls += 1
        if self.fail_unit_of_work > 0:
            self.fail_unit_of_work -= 1
            raise PersistenceFailure("Database operation failed")
        uow = InMemoryUnitOfWork(self)
        try:
            yield uow
            assert uow.capacity_locked, "unit of work used without the capacity lock"
            self.users = uow.users
            self.assignments = uow.assignments
            self.next_id = uow.next_id
        finally:
            uow.release()

    # UserRepository
    def get_by_id(self, user_id: int) -> Optional[User]:
        self._read()
        return self.users.get(int(user_id))

    def list_by_role(self, role: Role, *, active_only: bool = True):
        self._read()
        users = [u for u in self.users.values() if u.role == role and (u.is_active or not active_only)]
        return sorted(users, key=lambda u: u.full_name)

    def count_by_role(self, role: Role) -> int:
        self._read()
        return sum(1 for u in self.users.values() if u.role == role)

    # MonitorAssignmentRepository reads
    def list_expired(self, *, as_of: datetime):
        self._read()
        rows = [a for a in self.assignments.values() if a.is_active and a.end_date < as_of]
        return sorted(rows, key=lambda a: (a.end_date, a.assignment_id))

    def list_active_monitors(self):
        self._read()
        out = []
        for u in sorted(self.users.values(), key=lambda u: u.full_name):
            if u.role != Role.MONITOR:
                continue
            active = next((a for a in self.assignments.values() if a.user_id == u.user_id and a.is_active), None)
            out.append(
                ActiveMonitor(
                    user_id=u.user_id,
                    full_name=u.full_name,
                    username=u.username,
                    assignment_id=active.assignment_id if active else None,
                    start_date=active.start_date if active else None,
                    end_date=active.end_date if active else None,
                    assigned_by=active.assigned_by if active else None,
                    assigned_by_name=self.users[active.assigned_by].full_name if active else None,
                )
            )
        return out

    def list_history(self, *, user_id: Optional[int] = None, limit: int = 200):
        self._read()
        rows = [a for a in self.assignments.values() if user_id is None or a.user_id == user_id]
        rows.sort(key=lambda a: (a.start_date, a.assignment_id), reverse=True)
        return [
            AssignmentHistoryRow(
                assignment_id=a.assignment_id,
                user_id=a.user_id,
                full_name=self.users[a.user_id].full_name,
                assigned_by=a.assigned_by,
                assigned_by_name=self.users[a.assigned_by].full_name,
                start_date=a.start_date,
                end_date=a.end_date,
                is_active=a.is_active,
            )
            for a in rows[:limit]
        ]


@pytest.fixture
def store():
    s = InMemoryMonitorStore()
    s.add_user(1, role=Role.ADMIN)
    for user_id in range(2, 13):
        s.add_user(user_id)
    return s


@pytest.fixture
def service(store):
    return MonitorService(store, store, clock=lambda: NOW)


@pytest.fixture
def now():
    return NOW
