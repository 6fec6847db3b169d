from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, Optional, Sequence

from ..core.enums import Role
from ..core.exceptions import PersistenceFailure
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, transaction
from ..users.model import User
from ..users.mysql_user_repository import USER_COLUMNS, user_from_row
from .model import ActiveMonitor, AssignmentHistoryRow, MonitorAssignment
from .repository import MonitorAssignmentRepository, MonitorUnitOfWork

ASSIGNMENT_COLUMNS = "ma.assignment_id, ma.user_id, ma.assigned_by, ma.start_date, ma.end_date, ma.is_active"


def _to_assignment(row: Dict[str, Any]) -> MonitorAssignment:
    return MonitorAssignment(
        assignment_id=int(row["assignment_id"]),
        user_id=int(row["user_id"]),
        assigned_by=int(row["assigned_by"]),
        start_date=row["start_date"],
        end_date=row["end_date"],
        is_active=bool(row["is_active"]),
    )


class MySQLMonitorUnitOfWork(MonitorUnitOfWork):
    """Runs on the cursor of an open transaction owned by the repository."""

    def __init__(self, cur):
        self._cur = cur

    def lock_capacity(self) -> None:
        self._cur.execute("SELECT id FROM monitor_capacity WHERE id=1 FOR UPDATE")
        if not fetchone(self._cur):
            raise PersistenceFailure("monitor_capacity row is missing, run scripts/init_db.py")

    def get_user(self, user_id: int, *, for_update: bool = False) -> Optional[User]:
        lock = " FOR UPDATE" if for_update else ""
        self._cur.execute(
            f"SELECT {USER_COLUMNS} FROM users u WHERE u.user_id=%s{lock}",
            (int(user_id),),
        )
        row = fetchone(self._cur)
        return user_from_row(row) if row else None

    def count_by_role(self, role: Role) -> int:
        self._cur.execute("SELECT COUNT(*) AS n FROM users WHERE role=%s", (role.value,))
        row = fetchone(self._cur)
        return int(row["n"]) if row else 0

    def set_role(self, user_id: int, role: Role) -> None:
        self._cur.execute("UPDATE users SET role=%s WHERE user_id=%s", (role.value, int(user_id)))

    def get_assignment(self, assignment_id: int, *, for_update: bool = False) -> Optional[MonitorAssignment]:
        lock = " FOR UPDATE" if for_update else ""
        self._cur.execute(
            f"SELECT {ASSIGNMENT_COLUMNS} FROM monitor_assignments ma WHERE ma.assignment_id=%s{lock}",
            (int(assignment_id),),
        )
        row = fetchone(self._cur)
        return _to_assignment(row) if row else None

    def get_active_assignment(self, user_id: int, *, for_update: bool = False) -> Optional[MonitorAssignment]:
        lock = " FOR UPDATE" if for_update else ""
        self._cur.execute(
            f"""
            SELECT {ASSIGNMENT_COLUMNS}
            FROM monitor_assignments ma
            WHERE ma.user_id=%s AND ma.is_active=1
            ORDER BY ma.assignment_id DESC
            LIMIT 1{lock}
            """,
            (int(user_id),),
        )
        row = fetchone(self._cur)
        return _to_assignment(row) if row else None

    def insert_assignment(
        self,
        *,
        user_id: int,
        assigned_by: int,
        start_date: datetime,
        end_date: datetime,
    ) -> int:
        self._cur.execute(
            """
            INSERT INTO monitor_assignments(user_id, assigned_by, start_date, end_date, is_active)
            VALUES(%s,%s,%s,%s,1)
            """,
            (int(user_id), int(assigned_by), start_date, end_date),
        )
        return int(self._cur.lastrowid)

    def close_assignment(self, assignment_id: int, *, end_date: Optional[datetime] = None) -> bool:
        if end_date is None:
            self._cur.execute(
                "UPDATE monitor_assignments SET is_active=0 WHERE assignment_id=%s AND is_active=1",
                (int(assignment_id),),
            )
        else:
            self._cur.execute(
                """
                UPDATE monitor_assignments
                SET is_active=0, end_date=LEAST(end_date, %s)
                WHERE assignment_id=%s AND is_active=1
                """,
                (end_date, int(assignment_id)),
            )
        return self._cur.rowcount > 0


class MySQLMonitorAssignmentRepository(MonitorAssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def unit_of_work(self) -> Iterator[MySQLMonitorUnitOfWork]:
        with transaction(self._conn_factory) as (_, cur):
            yield MySQLMonitorUnitOfWork(cur)

    def list_expired(self, *, as_of: datetime) -> Sequence[MonitorAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {ASSIGNMENT_COLUMNS}
                FROM monitor_assignments ma
                WHERE ma.is_active=1 AND ma.end_date < %s
                ORDER BY ma.end_date, ma.assignment_id
                """,
                (as_of,),
            )
            return [_to_assignment(r) for r in fetchall(cur)]

    def list_active_monitors(self) -> Sequence[ActiveMonitor]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id, u.full_name, u.username,
                       ma.assignment_id, ma.start_date, ma.end_date, ma.assigned_by,
                       a.full_name AS assigned_by_name
                FROM users u
                LEFT JOIN monitor_assignments ma ON ma.user_id = u.user_id AND ma.is_active = 1
                LEFT JOIN users a ON a.user_id = ma.assigned_by
                WHERE u.role=%s
                ORDER BY u.full_name
                """,
                (Role.MONITOR.value,),
            )
            out: list[ActiveMonitor] = []
            for r in fetchall(cur):
                out.append(
                    ActiveMonitor(
                        user_id=int(r["user_id"]),
                        full_name=r["full_name"],
                        username=r["username"],
                        assignment_id=(int(r["assignment_id"]) if r.get("assignment_id") else None),
                        start_date=r.get("start_date"),
                        end_date=r.get("end_date"),
                        assigned_by=(int(r["assigned_by"]) if r.get("assigned_by") else None),
                        assigned_by_name=r.get("assigned_by_name"),
                    )
                )
            return out

    def list_history(self, *, user_id: Optional[int] = None, limit: int = 200) -> Sequence[AssignmentHistoryRow]:
        clauses = ["1=1"]
        params: list[object] = []
        if user_id is not None:
            clauses.append("ma.user_id=%s")
            params.append(int(user_id))
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {ASSIGNMENT_COLUMNS},
                       u.full_name, a.full_name AS assigned_by_name
                FROM monitor_assignments ma
                JOIN users u ON u.user_id = ma.user_id
                LEFT JOIN users a ON a.user_id = ma.assigned_by
                WHERE {where}
                ORDER BY ma.start_date DESC, ma.assignment_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [
                AssignmentHistoryRow(
                    assignment_id=int(r["assignment_id"]),
                    user_id=int(r["user_id"]),
                    full_name=r["full_name"],
                    assigned_by=int(r["assigned_by"]),
                    assigned_by_name=r.get("assigned_by_name"),
                    start_date=r["start_date"],
                    end_date=r["end_date"],
                    is_active=bool(r["is_active"]),
                )
                for r in fetchall(cur)
            ]
