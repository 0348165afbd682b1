# mysqlkit — convenience layer over a MySQL client connection
# Copyright (C) 2024-2026 Dr Horst Herb
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Database facade: templated queries, read helpers and row operations.

Usage::

    from mysqlkit.db import Database, DatabaseConfig

    db = Database.connect(DatabaseConfig.from_env())
    users = db.get_table("SELECT * FROM users WHERE id IN (:ids)", {"ids": [1, 2]})
    new_id = db.insert_row_and_return_id("users", {"name": "Ann", "prefs": {"lang": "en"}})
    db.update_row_by_id("users", {"prefs.lang": "de"}, new_id)

Failed statements do not raise by default: they are reported through the
:class:`~mysqlkit.db.reporting.Reporter` and the call returns ``False``
(queries) or ``-1`` (row operations).  ``Database.last_error`` tells a
failure apart from a statement that legitimately touched zero rows.
"""

from __future__ import annotations

import logging
import traceback
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from mysqlkit.db.config import DatabaseConfig
from mysqlkit.db.connection import Connection, ResultSet, connect_mysql
from mysqlkit.db.errors import ConnectionFailure, DriverError, QueryError
from mysqlkit.db.escaping import substitute
from mysqlkit.db.reporting import (
    LoggingReporter,
    Reporter,
    Severity,
    build_error_message,
    build_warning_message,
)
from mysqlkit.db.statements import build_insert, build_update, build_upsert

logger = logging.getLogger(__name__)


@dataclass
class UpsertResult:
    """Outcome of :meth:`Database.insert_on_duplicate_key_update`.

    ``affected_rows`` follows MySQL: 1 for a fresh insert, 2 when the
    existing row was updated, 0 when the update changed nothing, -1 on
    failure (``new_id`` is then ``None``).
    """

    new_id: int | None
    affected_rows: int

    @property
    def inserted(self) -> bool:
        return self.affected_rows == 1

    @property
    def updated(self) -> bool:
        return self.affected_rows == 2


class Database:
    """Convenience wrapper around one :class:`Connection`.

    Not safe for concurrent use; every call is one blocking round trip.
    """

    def __init__(
        self,
        connection: Connection,
        reporter: Reporter | None = None,
        *,
        report_warnings: bool = True,
        raise_on_error: bool = False,
    ) -> None:
        self.connection = connection
        self.reporter = reporter if reporter is not None else LoggingReporter()
        self.report_warnings = report_warnings
        self.raise_on_error = raise_on_error
        self.last_error: QueryError | None = None

    @classmethod
    def connect(
        cls,
        config: DatabaseConfig,
        reporter: Reporter | None = None,
    ) -> Database:
        """Open a connection described by *config*.

        Raises:
            ConnectionFailure: after reporting the failure at
                :attr:`Severity.ERROR`.
        """
        reporter = reporter if reporter is not None else LoggingReporter()
        try:
            conn = connect_mysql(
                config.host,
                config.user,
                config.password,
                config.port,
                config.socket,
                charset=config.charset,
                connect_timeout=config.connect_timeout,
            )
        except DriverError as exc:
            msg = build_error_message(
                exc.diagnostic,
                "Error when connecting to database server!",
                traceback.format_exc(),
            )
            reporter.report(Severity.ERROR, msg)
            raise ConnectionFailure(str(exc)) from exc

        if config.database:
            try:
                conn.select_database(config.database)
            except DriverError as exc:
                msg = build_error_message(exc.diagnostic, trace=traceback.format_exc())
                reporter.report(Severity.ERROR, msg)
                conn.close()
                raise ConnectionFailure(str(exc)) from exc

        return cls(
            conn,
            reporter,
            report_warnings=config.report_warnings,
            raise_on_error=config.raise_on_error,
        )

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # --- Querying ---

    def substitute(self, sql: str, substitutions: Mapping[str, Any]) -> str:
        """Replace ``:name`` placeholders with escaped values."""
        return substitute(self.connection, sql, substitutions)

    def query(
        self,
        sql: str,
        substitutions: Mapping[str, Any] | None = None,
        severity: Severity = Severity.WARNING,
    ) -> ResultSet | bool:
        """Execute *sql* after placeholder substitution.

        Placeholders are only substituted when *substitutions* is
        non-empty, so literals such as ``'12:30'`` survive plain queries.

        Returns:
            A :class:`ResultSet` (caller must close it) for row-returning
            statements, ``True`` for others and ``False`` on failure.
        """
        if substitutions:
            sql = self.substitute(sql, substitutions)
        logger.debug("Executing SQL: %s", sql)
        try:
            result = self.connection.execute(sql)
        except DriverError as exc:
            return self._fail(exc, sql, severity)
        self.last_error = None
        if self.report_warnings:
            self._report_warnings(sql)
        return result

    def _fail(self, exc: DriverError, sql: str, severity: Severity) -> bool:
        diagnostic = exc.diagnostic
        seed = f"Database error on query:\n\n{sql}\n"
        self.reporter.report(
            severity,
            build_error_message(diagnostic, seed, traceback.format_exc()),
        )
        self.last_error = QueryError(
            diagnostic.code, diagnostic.sqlstate, diagnostic.message, sql
        )
        if self.raise_on_error:
            raise self.last_error from exc
        return False

    def _report_warnings(self, sql: str) -> None:
        seed = f"Database warning on query:\n\n{sql}\n"
        try:
            for warning in self.connection.pending_warnings():
                msg = build_warning_message(
                    warning, seed, "".join(traceback.format_stack(limit=8)[:-2])
                )
                self.reporter.report(Severity.NOTICE, msg)
        except DriverError:
            logger.warning("Could not fetch warnings after: %s", sql, exc_info=True)

    # --- Read helpers ---

    def get_table(
        self,
        sql: str,
        substitutions: Mapping[str, Any] | None = None,
        key_column: str | None = None,
    ) -> list[dict[str, Any]] | dict[Any, dict[str, Any]]:
        """All rows as dicts.

        With *key_column* the rows are returned as a dict keyed by that
        column's value; on duplicate keys the later row wins.
        """
        rows: list[dict[str, Any]] = []
        keyed: dict[Any, dict[str, Any]] = {}
        result = self.query(sql, substitutions)
        if isinstance(result, ResultSet):
            with result:
                for row in result:
                    if key_column:
                        keyed[row[key_column]] = row
                    else:
                        rows.append(row)
        return keyed if key_column else rows

    def get_column(
        self, sql: str, substitutions: Mapping[str, Any] | None = None
    ) -> list[Any]:
        """First column of every row."""
        return [next(iter(row.values())) for row in self.get_table(sql, substitutions)]

    def get_key_value_column(
        self, sql: str, substitutions: Mapping[str, Any] | None = None
    ) -> dict[Any, Any]:
        """``{first column: second column}`` over all rows."""
        column: dict[Any, Any] = {}
        for row in self.get_table(sql, substitutions):
            values = list(row.values())
            column[values[0]] = values[1] if len(values) > 1 else None
        return column

    def get_row(
        self, sql: str, substitutions: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """First row, or ``{}`` when there is none."""
        rows = self.get_table(sql, substitutions)
        return rows[0] if rows else {}

    def get_cell(
        self, sql: str, substitutions: Mapping[str, Any] | None = None
    ) -> Any:
        """First column of the first row, or ``None``."""
        row = self.get_row(sql, substitutions)
        return next(iter(row.values()), None)

    # --- Row operations ---

    def insert_row(
        self,
        table: str,
        row: Mapping[str, Any],
        *,
        severity: Severity = Severity.WARNING,
        ignore: bool = False,
    ) -> int:
        """Insert one row.

        Returns:
            ``1`` when inserted, ``0`` when skipped by ``INSERT IGNORE``,
            ``-1`` on error.
        """
        sql = build_insert(self.connection, table, row, ignore=ignore)
        if self.query(sql, severity=severity) is False:
            return -1
        return self.connection.affected_rows()

    def insert_row_and_return_id(
        self,
        table: str,
        row: Mapping[str, Any],
        *,
        severity: Severity = Severity.WARNING,
        ignore: bool = False,
    ) -> int:
        """Insert one row and return its generated id.

        When nothing was inserted the :meth:`insert_row` signal is returned
        unchanged: ``0`` if ignored, ``-1`` on error.
        """
        affected_rows = self.insert_row(table, row, severity=severity, ignore=ignore)
        if affected_rows > 0:
            return self.connection.last_insert_id()
        return affected_rows

    def update_row(
        self,
        table: str,
        data: Mapping[str, Any],
        unique_key_values: Mapping[str, Any],
        *,
        severity: Severity = Severity.WARNING,
    ) -> int:
        """Update the row(s) matching *unique_key_values*.

        Returns the number of changed rows, ``0`` when nothing matched (or
        nothing changed), ``-1`` on error.
        """
        sql = build_update(self.connection, table, data, unique_key_values)
        if self.query(sql, severity=severity) is False:
            return -1
        return self.connection.affected_rows()

    def update_row_by_id(
        self,
        table: str,
        data: Mapping[str, Any],
        id_value: int | str,
        id_column: str = "id",
        *,
        severity: Severity = Severity.WARNING,
    ) -> int:
        return self.update_row(table, data, {id_column: id_value}, severity=severity)

    def insert_on_duplicate_key_update(
        self,
        table: str,
        data: Mapping[str, Any],
        unique_keys: str | Iterable[str] = ("id",),
        *,
        severity: Severity = Severity.WARNING,
    ) -> UpsertResult:
        """Insert *data*, or update its non-key columns if the unique key
        already exists.

        Raises:
            ValueError: *data* is empty.  This is a caller error, not a
                failed statement, so nothing is sent or reported.
        """
        sql = build_upsert(self.connection, table, data, unique_keys)
        if self.query(sql, severity=severity) is False:
            return UpsertResult(new_id=None, affected_rows=-1)
        return UpsertResult(
            new_id=self.connection.last_insert_id(),
            affected_rows=self.connection.affected_rows(),
        )
