"""Database connection capability and the PyMySQL adapter.

Everything above this module talks to a :class:`Connection`: something
that can run raw SQL, escape a string for single quoting, and report the
insert id, affected rows and pending warnings of the last statement.
:class:`PyMySQLConnection` implements it on top of ``pymysql``; tests use
an in-memory fake.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any

import pymysql
import pymysql.cursors

from mysqlkit.db.errors import DriverError
from mysqlkit.db.reporting import GENERAL_SQLSTATE, Diagnostic

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3306
DEFAULT_CHARSET = "utf8mb4"


class ResultSet:
    """Rows produced by a statement, as ``dict`` objects in column order.

    Must be closed once consumed; works as a context manager.
    """

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor
        self.closed = False

    def __iter__(self) -> Iterator[dict[str, Any]]:
        while True:
            row = self._cursor.fetchone()
            if row is None:
                return
            yield row

    def close(self) -> None:
        if not self.closed:
            self._cursor.close()
            self.closed = True

    def __enter__(self) -> ResultSet:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class Connection(ABC):
    """What the query layer needs from a live database connection."""

    charset: str = DEFAULT_CHARSET

    @abstractmethod
    def select_database(self, name: str) -> None: ...

    @abstractmethod
    def execute(self, sql: str) -> ResultSet | bool:
        """Run *sql*; return a :class:`ResultSet` for row-returning
        statements and ``True`` otherwise.  Raises :class:`DriverError`."""

    @abstractmethod
    def escape_string(self, text: str) -> str:
        """Escape *text* for use between single quotes (no quotes added)."""

    @abstractmethod
    def last_insert_id(self) -> int: ...

    @abstractmethod
    def affected_rows(self) -> int: ...

    @abstractmethod
    def pending_warnings(self) -> Iterator[Diagnostic]:
        """Yield the warnings left by the last statement."""

    @abstractmethod
    def close(self) -> None: ...


def diagnostic_from_error(exc: BaseException) -> Diagnostic:
    """Extract code and message from a ``pymysql`` exception.

    PyMySQL puts ``(errno, message)`` in ``args`` for server errors and
    does not expose the SQLSTATE, so the general state is used.
    """
    args = getattr(exc, "args", ())
    if len(args) >= 2 and isinstance(args[0], int):
        return Diagnostic(code=args[0], sqlstate=GENERAL_SQLSTATE, message=str(args[1]))
    return Diagnostic(code=0, sqlstate=GENERAL_SQLSTATE, message=str(exc))


class PyMySQLConnection(Connection):
    """:class:`Connection` backed by a ``pymysql`` connection."""

    def __init__(self, raw: Any, charset: str = DEFAULT_CHARSET) -> None:
        self.raw = raw
        self.charset = charset
        # Captured per statement: SHOW WARNINGS would overwrite the
        # connection-level values.
        self._affected_rows = 0
        self._insert_id = 0
        self._warning_count = 0

    def select_database(self, name: str) -> None:
        try:
            self.raw.select_db(name)
        except pymysql.MySQLError as exc:
            raise DriverError(diagnostic_from_error(exc)) from exc
        logger.debug("Database selected: %s", name)

    def execute(self, sql: str) -> ResultSet | bool:
        cur = self.raw.cursor()
        try:
            # No args: pymysql must not apply %-formatting to the text.
            cur.execute(sql)
        except pymysql.MySQLError as exc:
            cur.close()
            self._affected_rows = -1
            self._warning_count = 0
            raise DriverError(diagnostic_from_error(exc)) from exc
        self._affected_rows = cur.rowcount
        self._insert_id = cur.lastrowid or 0
        self._warning_count = cur.warning_count
        if cur.description is None:
            cur.close()
            return True
        return ResultSet(cur)

    def escape_string(self, text: str) -> str:
        return self.raw.escape_string(text)

    def last_insert_id(self) -> int:
        return self._insert_id

    def affected_rows(self) -> int:
        return self._affected_rows

    def pending_warnings(self) -> Iterator[Diagnostic]:
        if not self._warning_count:
            return
        self._warning_count = 0
        try:
            rows = self.raw.show_warnings()
        except pymysql.MySQLError as exc:
            raise DriverError(diagnostic_from_error(exc)) from exc
        # SHOW WARNINGS rows: (Level, Code, Message)
        for _level, code, message in rows or ():
            yield Diagnostic(code=int(code), sqlstate=GENERAL_SQLSTATE, message=message)

    def close(self) -> None:
        self.raw.close()
        logger.debug("MySQL connection closed")


def connect_mysql(
    host: str | None = None,
    user: str | None = None,
    password: str | None = None,
    port: int | None = None,
    socket: str | None = None,
    *,
    database: str | None = None,
    charset: str = DEFAULT_CHARSET,
    connect_timeout: int = 10,
) -> PyMySQLConnection:
    """Open a MySQL connection via PyMySQL.

    Args:
        host: Server host name or address (``localhost`` when omitted).
        user: Account name.
        password: Account password.
        port: TCP port (3306 when omitted).
        socket: Path of a unix socket; overrides *host*/*port*.
        database: Database to select right after connecting.
        charset: Connection character set; escaping follows it.
        connect_timeout: Seconds to wait for the server.

    Raises:
        DriverError: The server refused the connection or the database
            could not be selected.
    """
    try:
        raw = pymysql.connect(
            host=host or "localhost",
            user=user,
            password=password or "",
            port=port or DEFAULT_PORT,
            unix_socket=socket,
            charset=charset,
            connect_timeout=connect_timeout,
            autocommit=True,
            cursorclass=pymysql.cursors.DictCursor,
        )
    except pymysql.MySQLError as exc:
        raise DriverError(diagnostic_from_error(exc)) from exc

    conn = PyMySQLConnection(raw, charset=charset)
    logger.debug("MySQL connection opened: %s:%s", host or socket, port or DEFAULT_PORT)
    if database:
        try:
            conn.select_database(database)
        except DriverError:
            conn.close()
            raise
    return conn
