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

"""SQL text for the row operations: insert, update and upsert.

These builders only assemble text; :mod:`mysqlkit.db.database` executes it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from mysqlkit.db.escaping import assign_values, quote_identifier

if TYPE_CHECKING:
    from mysqlkit.db.connection import Connection


def build_insert(
    conn: Connection,
    table: str,
    row: Mapping[str, Any],
    *,
    ignore: bool = False,
) -> str:
    """``INSERT [IGNORE] INTO `t` SET ...``, or ``VALUES ()`` for an empty row."""
    sql = "INSERT " + ("IGNORE " if ignore else "") + f"INTO {quote_identifier(conn, table)} "
    if row:
        return sql + "SET " + assign_values(conn, row)
    return sql + "VALUES ()"


def build_update(
    conn: Connection,
    table: str,
    data: Mapping[str, Any],
    unique_key_values: Mapping[str, Any] | None = None,
) -> str:
    """``UPDATE `t` SET ... WHERE `k` = v AND ...``.

    Without key values no ``WHERE`` clause is added and every row is
    updated.
    """
    sql = f"UPDATE {quote_identifier(conn, table)} SET {assign_values(conn, data)}"
    if unique_key_values:
        sql += " WHERE " + assign_values(conn, unique_key_values, " AND ")
    return sql


def normalize_keys(unique_keys: str | Iterable[str]) -> list[str]:
    """Accept one column name or several."""
    if isinstance(unique_keys, str):
        return [unique_keys]
    return list(unique_keys)


def build_upsert(
    conn: Connection,
    table: str,
    data: Mapping[str, Any],
    unique_keys: str | Iterable[str] = ("id",),
) -> str:
    """``INSERT ... ON DUPLICATE KEY UPDATE`` touching only non-key columns.

    If every column in *data* belongs to the unique key, the update
    clause reassigns the first key column to itself so that a conflict
    becomes a no-op instead of a syntax error.
    """
    if not data:
        raise ValueError("upsert needs at least one column")
    keys = normalize_keys(unique_keys)
    to_update = {column: value for column, value in data.items() if column not in keys}
    if to_update:
        update_clause = assign_values(conn, to_update)
    else:
        column = quote_identifier(conn, keys[0])
        update_clause = f"{column} = {column}"
    return (
        f"INSERT INTO {quote_identifier(conn, table)} SET\n"
        + assign_values(conn, data)
        + "\nON DUPLICATE KEY UPDATE\n"
        + update_clause
    )
