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

"""Exception hierarchy for mysqlkit."""

from __future__ import annotations

from mysqlkit.db.reporting import Diagnostic


class MySQLKitError(Exception):
    """Base class for all mysqlkit errors."""


class ConnectionFailure(MySQLKitError):
    """The server could not be reached or the database could not be selected."""


class QueryError(MySQLKitError):
    """A statement was rejected by the server.

    Only raised when the :class:`~mysqlkit.db.database.Database` was created
    with ``raise_on_error=True``; otherwise the same object is kept on
    ``Database.last_error`` and the query returns ``False``.
    """

    def __init__(
        self,
        code: int,
        sqlstate: str,
        message: str,
        sql: str = "",
    ) -> None:
        super().__init__(f"{code} ({sqlstate}): {message}")
        self.code = code
        self.sqlstate = sqlstate
        self.message = message
        self.sql = sql


class DriverError(MySQLKitError):
    """Raised by a :class:`~mysqlkit.db.connection.Connection` when the
    underlying client library reports an error.

    The driver's own exception is chained as ``__cause__``.
    """

    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__(
            f"{diagnostic.code} ({diagnostic.sqlstate}): {diagnostic.message}"
        )
        self.diagnostic = diagnostic
