from __future__ import annotations

from datetime import datetime

import pytest

from src.inventory_system.inventory_system.core.enums import Role
from src.inventory_system.inventory_system.core.exceptions import PersistenceFailure
from src.inventory_system.inventory_system.monitors.mysql_monitor_repository import MySQLMonitorUnitOfWork


class RecordingCursor:
    def __init__(self, rows=None):
        self.rows = list(rows or [])
        self.executed: list[tuple[str, tuple]] = []
        self.rowcount = 1
        self.lastrowid = 42

    def execute(self, sql, params=()):
        self.executed.append((" ".join(sql.split()), params))

    def fetchone(self):
        return self.rows.pop(0) if self.rows else None


def test_lock_capacity_selects_for_update():
    cur = RecordingCursor(rows=[{"id": 1}])

    MySQLMonitorUnitOfWork(cur).lock_capacity()

    assert cur.executed[0][0] == "SELECT id FROM monitor_capacity WHERE id=1 FOR UPDATE"


def test_lock_capacity_without_row_fails():
    with pytest.raises(PersistenceFailure):
        MySQLMonitorUnitOfWork(RecordingCursor()).lock_capacity()


def test_get_user_for_update_maps_row():
    cur = RecordingCursor(
        rows=[{"user_id": 7, "full_name": "Chen Wei", "username": "chen", "role": "employee", "is_active": 1}]
    )

    user = MySQLMonitorUnitOfWork(cur).get_user(7, for_update=True)

    assert user.role == Role.EMPLOYEE
    assert user.is_active
    assert cur.executed[0][0].endswith("FOR UPDATE")
    assert cur.executed[0][1] == (7,)


def test_get_active_assignment_maps_row():
    row = {
        "assignment_id": 3,
        "user_id": 7,
        "assigned_by": 1,
        "start_date": datetime(2026, 1, 1, 9, 0),
        "end_date": datetime(2027, 1, 1, 9, 0),
        "is_active": 1,
    }
    cur = RecordingCursor(rows=[row])

    a = MySQLMonitorUnitOfWork(cur).get_active_assignment(7)

    assert a.assignment_id == 3
    assert a.is_active
    assert "FOR UPDATE" not in cur.executed[0][0]


def test_insert_assignment_returns_new_id():
    cur = RecordingCursor()

    new_id = MySQLMonitorUnitOfWork(cur).insert_assignment(
        user_id=7, assigned_by=1, start_date=datetime(2026, 1, 1), end_date=datetime(2027, 1, 1)
    )

    assert new_id == 42
    assert cur.executed[0][1] == (7, 1, datetime(2026, 1, 1), datetime(2027, 1, 1))


def test_close_assignment_never_extends_window():
    cur = RecordingCursor()
    cut = datetime(2026, 6, 1)

    assert MySQLMonitorUnitOfWork(cur).close_assignment(3, end_date=cut)

    sql, params = cur.executed[0]
    assert "end_date=LEAST(end_date, %s)" in sql
    assert "is_active=1" in sql
    assert params == (cut, 3)


def test_close_assignment_keeps_end_date_on_expiry():
    cur = RecordingCursor()
    cur.rowcount = 0

    assert not MySQLMonitorUnitOfWork(cur).close_assignment(3)
    assert "end_date" not in cur.executed[0][0]
