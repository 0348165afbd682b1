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

"""Convenience layer over a MySQL client connection.

Usage::

    from mysqlkit.db import Database, DatabaseConfig

    db = Database.connect(DatabaseConfig(host="localhost", user="app", database="app"))
    row = db.get_row("SELECT * FROM users WHERE email = :email", {"email": "a@b.c"})
"""

from mysqlkit.db.config import DatabaseConfig
from mysqlkit.db.connection import (
    Connection,
    PyMySQLConnection,
    ResultSet,
    connect_mysql,
)
from mysqlkit.db.database import Database, UpsertResult
from mysqlkit.db.errors import ConnectionFailure, DriverError, MySQLKitError, QueryError
from mysqlkit.db.escaping import (
    assign_values,
    assignment,
    escape_scalar,
    json_path,
    prepare_value,
    quote_identifier,
    substitute,
)
from mysqlkit.db.reporting import (
    Diagnostic,
    LoggingReporter,
    Reporter,
    Severity,
    build_error_message,
    build_warning_message,
    html_message,
)
from mysqlkit.db.statements import build_insert, build_update, build_upsert

__all__ = [
    "Database",
    "DatabaseConfig",
    "UpsertResult",
    "Connection",
    "PyMySQLConnection",
    "ResultSet",
    "connect_mysql",
    "MySQLKitError",
    "ConnectionFailure",
    "DriverError",
    "QueryError",
    "substitute",
    "prepare_value",
    "escape_scalar",
    "quote_identifier",
    "json_path",
    "assignment",
    "assign_values",
    "build_insert",
    "build_update",
    "build_upsert",
    "Severity",
    "Diagnostic",
    "Reporter",
    "LoggingReporter",
    "build_error_message",
    "build_warning_message",
    "html_message",
]
