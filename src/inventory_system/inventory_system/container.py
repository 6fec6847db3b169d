from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .core.constants import DEFAULT_SWEEP_INTERVAL_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .monitors.mysql_monitor_repository import MySQLMonitorAssignmentRepository
from .monitors.service import MonitorService
from .monitors.sweeper import ExpirySweeper
from .users.mysql_user_repository import MySQLUserRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    monitor_assignments_repo: MySQLMonitorAssignmentRepository

    monitor_service: MonitorService
    sweeper: Optional[ExpirySweeper] = None

    def close(self) -> None:
        """Stop background work, then release the persistence handle."""
        if self.sweeper:
            self.sweeper.stop()
        self.conn.close()


def build_container(
    *,
    db_config: dict,
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        connection_timeout=int(db_config.get("connection_timeout", 10)),
    )
    conn = DatabaseConnection(config)

    users_repo = MySQLUserRepository(conn)
    monitor_assignments_repo = MySQLMonitorAssignmentRepository(conn)

    monitor_service = MonitorService(monitor_assignments_repo, users_repo)
    sweeper = ExpirySweeper(monitor_service, interval_seconds=sweep_interval_seconds)

    return Container(
        conn=conn,
        users_repo=users_repo,
        monitor_assignments_repo=monitor_assignments_repo,
        monitor_service=monitor_service,
        sweeper=sweeper,
    )
