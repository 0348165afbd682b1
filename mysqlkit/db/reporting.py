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

"""Diagnostics sink for connection errors, query errors and query warnings.

When a statement fails or leaves warnings behind, the database facade
formats a multi-line message and hands it to a
:class:`Reporter` together with a :class:`Severity`.  The default
:class:`LoggingReporter` writes to the standard ``logging`` tree, so
applications decide where reports end up by configuring handlers.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

# MySQL's catch-all SQLSTATE for conditions without a specific mapping.
GENERAL_SQLSTATE = "HY000"

_NEWLINE_RE = re.compile(r"(\r\n|\n\r|\n|\r)")


class Severity(Enum):
    """How serious a report is."""

    NOTICE = "notice"  # warnings drained after a statement
    WARNING = "warning"  # failed query, caller continues
    ERROR = "error"  # connection failure

    @property
    def log_level(self) -> int:
        return _LOG_LEVELS[self]


_LOG_LEVELS = {
    Severity.NOTICE: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


@dataclass
class Diagnostic:
    """One error or warning as reported by the server."""

    code: int
    sqlstate: str = GENERAL_SQLSTATE
    message: str = ""


def _build_message(diagnostic: Diagnostic, seed: str, trace: str) -> str:
    msg = "\n"
    if seed:
        msg += f"{seed}\n"
    msg += f"{diagnostic.code} ({diagnostic.sqlstate}): {diagnostic.message}\n"
    msg += "Trace:\n"
    msg += trace
    return msg


def build_error_message(
    diagnostic: Diagnostic,
    seed: str = "Database error",
    trace: str = "",
) -> str:
    """Format an error for the reporter.

    Layout::

        <seed>
        <code> (<sqlstate>): <message>
        Trace:
        <trace>
    """
    return _build_message(diagnostic, seed, trace)


def build_warning_message(
    diagnostic: Diagnostic,
    seed: str = "Database warning",
    trace: str = "",
) -> str:
    """Format a server warning; same layout as :func:`build_error_message`."""
    return _build_message(diagnostic, seed, trace)


def html_message(message: str) -> str:
    """Insert ``<br />`` before each newline, for reports shown in HTML pages."""
    return _NEWLINE_RE.sub(r"<br />\1", message)


class Reporter(ABC):
    """Receives formatted diagnostics."""

    @abstractmethod
    def report(self, severity: Severity, message: str) -> None: ...


class LoggingReporter(Reporter):
    """Sends every report to a :mod:`logging` logger at the matching level."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log if log is not None else logger

    def report(self, severity: Severity, message: str) -> None:
        self.log.log(severity.log_level, message)
