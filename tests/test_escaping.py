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

"""Tests for mysqlkit.db.escaping — values, placeholders and assignments."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from mysqlkit.db.escaping import (
    assign_values,
    assignment,
    escape_scalar,
    json_path,
    prepare_value,
    quote_identifier,
    substitute,
)


class TestEscapeScalar:
    def test_none_is_null(self, conn):
        assert escape_scalar(conn, None) == "NULL"

    def test_string_is_quoted_and_escaped(self, conn):
        assert escape_scalar(conn, "a'b") == "'a\\'b'"
        assert escape_scalar(conn, "back\\slash") == "'back\\\\slash'"

    def test_numeric_string_stays_quoted(self, conn):
        assert escape_scalar(conn, "007") == "'007'"

    def test_numbers_verbatim(self, conn):
        assert escape_scalar(conn, 42) == "42"
        assert escape_scalar(conn, -3) == "-3"
        assert escape_scalar(conn, 1.5) == "1.5"
        assert escape_scalar(conn, Decimal("10.25")) == "10.25"

    def test_bool_becomes_integer(self, conn):
        assert escape_scalar(conn, True) == "1"
        assert escape_scalar(conn, False) == "0"

    def test_multibyte_string_passes_through(self, conn):
        assert escape_scalar(conn, "Grüße ‘x’") == "'Grüße ‘x’'"

    def test_uncoercible_value_raises(self, conn):
        with pytest.raises(TypeError):
            escape_scalar(conn, object())


class TestPrepareValue:
    def test_sequence_is_comma_list(self, conn):
        assert prepare_value(conn, [1, "a'b", None]) == "1,'a\\'b',NULL"

    def test_tuple_and_set(self, conn):
        assert prepare_value(conn, (1, 2)) == "1,2"
        assert prepare_value(conn, {7}) == "7"

    def test_dict_uses_values(self, conn):
        assert prepare_value(conn, {"a": 1, "b": "x"}) == "1,'x'"

    def test_datetime_formatted(self, conn):
        value = datetime(2024, 3, 9, 7, 5, 1, 123456)
        assert prepare_value(conn, value) == "'2024-03-09 07:05:01'"

    def test_date_formatted(self, conn):
        assert prepare_value(conn, date(2024, 3, 9)) == "'2024-03-09'"

    def test_json_mode(self, conn):
        assert prepare_value(conn, {"a": [1, 2]}, as_json=True) == "'{\\\"a\\\": [1, 2]}'"

    def test_json_keeps_unicode(self, conn):
        assert prepare_value(conn, ["ä"], as_json=True) == "'[\\\"ä\\\"]'"


class TestSubstitute:
    def test_known_names_replaced_everywhere(self, conn):
        sql = substitute(conn, "SELECT :a, :a, :b", {"a": 1, "b": "x"})
        assert sql == "SELECT 1, 1, 'x'"

    def test_unknown_name_is_null(self, conn):
        assert substitute(conn, "WHERE x = :missing", {"a": 1}) == "WHERE x = NULL"

    def test_none_value_is_null(self, conn):
        assert substitute(conn, ":v", {"v": None}) == "NULL"

    def test_in_list(self, conn):
        sql = substitute(conn, "WHERE id IN (:ids)", {"ids": [1, 2, 3]})
        assert sql == "WHERE id IN (1,2,3)"

    def test_case_sensitive(self, conn):
        assert substitute(conn, ":Name :name", {"name": "n"}) == "NULL 'n'"

    def test_longest_word_match(self, conn):
        assert substitute(conn, ":id_2", {"id": 1, "id_2": 2}) == "2"

    def test_value_is_not_rescanned(self, conn):
        assert substitute(conn, ":a", {"a": ":b", "b": 1}) == "':b'"


class TestIdentifiers:
    def test_backticks(self, conn):
        assert quote_identifier(conn, "users") == "`users`"

    def test_embedded_backtick_doubled(self, conn):
        assert quote_identifier(conn, "we`ird") == "`we``ird`"


class TestJsonPath:
    def test_mixed_segments(self):
        assert json_path("prefs.notify.2.enabled") == "$.notify[2].enabled"

    def test_single_key(self):
        assert json_path("prefs.lang") == "$.lang"

    def test_empty_segments_skipped(self):
        assert json_path("prefs..a") == "$.a"
        assert json_path("prefs.a.") == "$.a"
        assert json_path("prefs.") == "$"

    def test_unsafe_characters_stripped(self):
        assert json_path("prefs.a'); DROP TABLE x; --") == "$.aDROPTABLEx"


class TestAssignment:
    def test_plain_scalar(self, conn):
        assert assignment(conn, "name", "Ann") == "`name` = 'Ann'"

    def test_plain_array_written_as_json(self, conn):
        assert assignment(conn, "tags", ["a", "b"]) == "`tags` = '[\\\"a\\\", \\\"b\\\"]'"

    def test_plain_dict_written_as_json(self, conn):
        assert assignment(conn, "prefs", {"lang": "en"}) == "`prefs` = '{\\\"lang\\\": \\\"en\\\"}'"

    def test_plain_set_written_as_json(self, conn):
        assert assignment(conn, "tags", {"a"}) == "`tags` = '[\\\"a\\\"]'"
        sql = assignment(conn, "tags", {"a", "b"})
        assert sql in (
            "`tags` = '[\\\"a\\\", \\\"b\\\"]'",
            "`tags` = '[\\\"b\\\", \\\"a\\\"]'",
        )

    def test_dotted_frozenset_stays_one_json_value(self, conn):
        sql = assignment(conn, "prefs.x", frozenset(["$.admin", "yes"]))
        prefix = "`prefs` = JSON_SET(IFNULL(`prefs`, '{}'), '$.x', JSON_EXTRACT('["
        assert sql.startswith(prefix)
        assert sql.endswith("]', '$'))")
        assert sql.count("JSON_SET(") == 1
        assert ", '$.admin'" not in sql

    def test_assign_values_with_set(self, conn):
        sql = assign_values(conn, {"id": 1, "roles": {"admin"}})
        assert sql == "`id` = 1, `roles` = '[\\\"admin\\\"]'"

    def test_dotted_scalar(self, conn):
        assert assignment(conn, "prefs.notify.2.enabled", True) == (
            "`prefs` = JSON_SET(IFNULL(`prefs`, '{}'), '$.notify[2].enabled', 1)"
        )

    def test_dotted_string(self, conn):
        assert assignment(conn, "prefs.lang", "de") == (
            "`prefs` = JSON_SET(IFNULL(`prefs`, '{}'), '$.lang', 'de')"
        )

    def test_dotted_array_uses_json_extract(self, conn):
        assert assignment(conn, "prefs.days", [1, 2]) == (
            "`prefs` = JSON_SET(IFNULL(`prefs`, '{}'), '$.days', "
            "JSON_EXTRACT('[1, 2]', '$'))"
        )

    def test_assign_values_keeps_order(self, conn):
        sql = assign_values(conn, {"b": 2, "a": 1})
        assert sql == "`b` = 2, `a` = 1"

    def test_assign_values_custom_separator(self, conn):
        sql = assign_values(conn, {"a": 1, "b": "x"}, " AND ")
        assert sql == "`a` = 1 AND `b` = 'x'"

    def test_assign_values_empty(self, conn):
        assert assign_values(conn, {}) == ""
