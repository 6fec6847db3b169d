from __future__ import annotations

from dataclasses import dataclass

import mysql.connector

from ..core.exceptions import PersistenceFailure


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connection_timeout: int = 10


class DatabaseConnection:
    """DB connection factory shared by every repository.

    Built once by the container at process start and closed at shutdown.
    Connections are short-lived (one per unit of work).
    """

    def __init__(self, config: DBConfig):
        self._config = config
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def connect(self):
        if self._closed:
            raise PersistenceFailure("Database connection factory is closed")
        try:
            return mysql.connector.connect(
                host=self._config.host,
                port=int(self._config.port),
                user=self._config.user,
                password=self._config.password,
                database=self._config.database,
                connection_timeout=int(self._config.connection_timeout),
                autocommit=False,
            )
        except mysql.connector.Error as exc:
            raise PersistenceFailure("Could not connect to the database") from exc

    def close(self) -> None:
        self._closed = True
