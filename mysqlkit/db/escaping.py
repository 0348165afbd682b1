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

"""Value escaping and SQL fragment construction.

All functions take a :class:`~mysqlkit.db.connection.Connection` as their
first argument because string escaping depends on the connection's
character set.  Every value that ends up in SQL text goes through
:func:`prepare_value` (or :func:`escape_scalar`), and every identifier
through :func:`quote_identifier`.

Placeholders::

    substitute(conn, "SELECT * FROM t WHERE id IN (:ids) AND name = :name",
               {"ids": [1, 2], "name": "O'Hara"})
    # SELECT * FROM t WHERE id IN (1,2) AND name = 'O\\'Hara'

Assignments::

    assign_values(conn, {"name": "x", "prefs.notify.2.enabled": True})
    # `name` = 'x', `prefs` = JSON_SET(IFNULL(`prefs`, '{}'), '$.notify[2].enabled', 1)
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from mysqlkit.db.connection import Connection

Scalar = Union[str, int, float, Decimal, bool, None, date, datetime]
Value = Union[Scalar, list, tuple, set, frozenset, dict]

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"

_PLACEHOLDER_RE = re.compile(r":(\w+)", re.ASCII)
_NUMERIC_SEGMENT_RE = re.compile(r"[0-9]+")
_PATH_UNSAFE_RE = re.compile(r"[^\w.\[\]]", re.ASCII)

# Arrays: comma lists in placeholders, JSON documents in assignments.
_LIST_TYPES = (list, tuple, set, frozenset, dict)


def _format_temporal(value: date) -> str:
    if isinstance(value, datetime):
        return value.strftime(DATETIME_FORMAT)
    return value.strftime(DATE_FORMAT)


def _json_default(value: Any) -> Any:
    if isinstance(value, date):
        return _format_temporal(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(value: Any) -> str:
    """Encode *value* as JSON without escaping non-ASCII characters."""
    return json.dumps(value, ensure_ascii=False, default=_json_default)


def escape_scalar(conn: Connection, value: Any) -> str:
    """Render one scalar as SQL text, keeping its type.

    Strings are quoted (numeric-looking ones too), numbers are written
    verbatim, ``None`` becomes ``NULL`` and anything else is coerced to an
    integer.
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, str):
        return "'" + conn.escape_string(value) + "'"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return str(int(value))


def prepare_value(conn: Connection, value: Value, as_json: bool = False) -> str:
    """Render any supported value as SQL text.

    With ``as_json=False`` a sequence becomes a comma-joined list of its
    escaped elements (for ``IN (...)``).  With ``as_json=True`` the whole
    value is JSON-encoded and written as one string literal.
    """
    if as_json:
        return escape_scalar(conn, to_json(value))
    if isinstance(value, _LIST_TYPES):
        items = value.values() if isinstance(value, Mapping) else value
        return ",".join(prepare_value(conn, item) for item in items)
    if isinstance(value, date):
        value = _format_temporal(value)
    return escape_scalar(conn, value)


def substitute(
    conn: Connection,
    sql: str,
    substitutions: Mapping[str, Any],
) -> str:
    """Replace every ``:name`` token in *sql* with its escaped value.

    Unknown names become ``NULL``.  Sequences are expanded into comma
    lists, never JSON.
    """

    def _replace(match: re.Match[str]) -> str:
        return prepare_value(conn, substitutions.get(match.group(1)))

    return _PLACEHOLDER_RE.sub(_replace, sql)


def quote_identifier(conn: Connection, name: str) -> str:
    """Backtick-quote a table or column name."""
    escaped = conn.escape_string(name).replace("`", "``")
    return f"`{escaped}`"


def json_path(key: str) -> str:
    """Build the JSON path for a dotted column key.

    The first segment names the column and is not part of the path; empty
    segments are skipped::

        json_path("prefs.notify.2.enabled")  # '$.notify[2].enabled'
    """
    segments = [segment for segment in key.split(".")[1:] if segment]
    path = "".join(
        f"[{segment}]" if _NUMERIC_SEGMENT_RE.fullmatch(segment) else f".{segment}"
        for segment in segments
    )
    return "$" + _PATH_UNSAFE_RE.sub("", path)


def assignment(conn: Connection, key: str, value: Value) -> str:
    """Turn one ``key -> value`` pair into a ``column = expression`` fragment.

    - ``column``, scalar: plain assignment.
    - ``column``, list/tuple/set/dict: the column is overwritten with the JSON
      document.
    - ``column.key...``, anything: only that key inside the JSON column is
      set.  ``IFNULL`` is needed because ``JSON_SET(NULL, ...)`` is
      ``NULL``; arrays go through ``JSON_EXTRACT`` so they are stored as
      JSON structures rather than as a quoted JSON string.
    """
    is_json = isinstance(value, _LIST_TYPES)
    if "." not in key:
        column = quote_identifier(conn, key)
        return f"{column} = {prepare_value(conn, value, as_json=is_json)}"

    column = quote_identifier(conn, key.split(".", 1)[0])
    path = json_path(key)
    if is_json:
        expr = f"JSON_EXTRACT({prepare_value(conn, value, as_json=True)}, '$')"
    else:
        expr = prepare_value(conn, value)
    return f"{column} = JSON_SET(IFNULL({column}, '{{}}'), '{path}', {expr})"


def assign_values(
    conn: Connection,
    keys_to_values: Mapping[str, Any],
    separator: str = ", ",
) -> str:
    """Join the assignments for *keys_to_values* in input order.

    Used for ``SET a = 1, b = 2`` and, with ``separator=" AND "``, for
    ``WHERE`` conditions on unique keys.
    """
    return separator.join(
        assignment(conn, key, value) for key, value in keys_to_values.items()
    )
