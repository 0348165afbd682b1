"""Connection settings."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from mysqlkit.db.connection import DEFAULT_CHARSET, DEFAULT_PORT


@dataclass
class DatabaseConfig:
    """Everything needed to open a :class:`~mysqlkit.db.database.Database`.

    ``report_warnings`` controls whether server warnings are fetched and
    reported after statements that raised any.  ``raise_on_error`` turns
    failed queries into :class:`~mysqlkit.db.errors.QueryError` exceptions
    instead of ``False`` return values.
    """

    host: str | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    port: int = DEFAULT_PORT
    socket: str | None = None
    charset: str = DEFAULT_CHARSET
    connect_timeout: int = 10
    report_warnings: bool = True
    raise_on_error: bool = False

    @classmethod
    def from_env(cls, prefix: str = "MYSQL_") -> DatabaseConfig:
        """Read ``MYSQL_HOST``, ``MYSQL_USER``, ``MYSQL_PASSWORD``,
        ``MYSQL_DATABASE``, ``MYSQL_PORT``, ``MYSQL_SOCKET`` and
        ``MYSQL_CHARSET`` (or the same names under another *prefix*)."""
        port = os.environ.get(f"{prefix}PORT")
        return cls(
            host=os.environ.get(f"{prefix}HOST"),
            user=os.environ.get(f"{prefix}USER"),
            password=os.environ.get(f"{prefix}PASSWORD"),
            database=os.environ.get(f"{prefix}DATABASE"),
            port=int(port) if port else DEFAULT_PORT,
            socket=os.environ.get(f"{prefix}SOCKET"),
            charset=os.environ.get(f"{prefix}CHARSET", DEFAULT_CHARSET),
        )

    @classmethod
    def from_mapping(cls, auth: Mapping[str, Any]) -> DatabaseConfig:
        """Build from a plain dict such as
        ``{"host": ..., "user": ..., "password": ..., "database": ..., "port": ...}``.

        Unknown keys are ignored; ``None`` values fall back to the defaults.
        """
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in auth.items() if k in known and v is not None})
