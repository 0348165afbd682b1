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

"""Shared fixtures: an in-memory stand-in for a MySQL connection."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

import pytest
from pymysql.converters import escape_string

from mysqlkit.db.connection import Connection, ResultSet
from mysqlkit.db.errors import DriverError
from mysqlkit.db.reporting import Diagnostic, Reporter, Severity


@dataclass
class Outcome:
    """What the fake server answers to the next statement."""

    rows: list[dict[str, Any]] | None = None
    affected_rows: int = 0
    insert_id: int = 0
    error: Diagnostic | None = None
    warnings: list[Diagnostic] = field(default_factory=list)


class FakeCursor:
    def __init__(self, rows: list[dict[str, Any]]) -> None:
        self._rows = list(rows)
        self.closed = False

    def fetchone(self) -> dict[str, Any] | None:
        return self._rows.pop(0) if self._rows else None

    def close(self) -> None:
        self.closed = True


class FakeConnection(Connection):
    def __init__(self) -> None:
        self.charset = "utf8mb4"
        self.executed: list[str] = []
        self.outcomes: list[Outcome] = []
        self.cursors: list[FakeCursor] = []
        self.closed = False
        self._affected_rows = 0
        self._insert_id = 0
        self._warnings: list[Diagnostic] = []

    def answer(self, **kwargs: Any) -> FakeConnection:
        self.outcomes.append(Outcome(**kwargs))
        return self

    def select_database(self, name: str) -> None:
        self.database = name

    def execute(self, sql: str) -> ResultSet | bool:
        self.executed.append(sql)
        outcome = self.outcomes.pop(0) if self.outcomes else Outcome()
        self._warnings = list(outcome.warnings)
        if outcome.error is not None:
            self._affected_rows = -1
            raise DriverError(outcome.error)
        self._insert_id = outcome.insert_id
        if outcome.rows is None:
            self._affected_rows = outcome.affected_rows
            return True
        self._affected_rows = len(outcome.rows)
        cursor = FakeCursor(outcome.rows)
        self.cursors.append(cursor)
        return ResultSet(cursor)

    def escape_string(self, text: str) -> str:
        return escape_string(text)

    def last_insert_id(self) -> int:
        return self._insert_id

    def affected_rows(self) -> int:
        return self._affected_rows

    def pending_warnings(self) -> Iterator[Diagnostic]:
        while self._warnings:
            yield self._warnings.pop(0)

    def close(self) -> None:
        self.closed = True


class ListReporter(Reporter):
    def __init__(self) -> None:
        self.reports: list[tuple[Severity, str]] = []

    def report(self, severity: Severity, message: str) -> None:
        self.reports.append((severity, message))


@pytest.fixture
def conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def reporter() -> ListReporter:
    return ListReporter()
