from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import mysql.connector


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    lock_wait_timeout: int = 10


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: We create short-lived connections per operation (safe for simple Flask apps).
    Each connection carries the configured innodb_lock_wait_timeout so a blocked
    `SELECT ... FOR UPDATE` fails within a bounded time.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        conn = mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            autocommit=False,
        )
        try:
            cur = conn.cursor()
            try:
                cur.execute("SET SESSION innodb_lock_wait_timeout = %s", (int(self._config.lock_wait_timeout),))
            finally:
                cur.close()
        except Exception:
            conn.close()
            raise
        return conn
