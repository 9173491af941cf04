"""Tests for parsing text payloads into static table rows."""

from __future__ import annotations

import pytest

from graph_tables.sources import guess_extension, parse_rows


class TestGuessExtension:
    @pytest.mark.parametrize(
        "name, expected",
        [("people.csv", "csv"), ("DATA.TSV", "tsv"), ("dump.tar.json", "json"), ("README", None)],
    )
    def test_guess(self, name, expected):
        assert guess_extension(name) == expected


class TestParseRows:
    def test_csv(self):
        rows, columns = parse_rows("a,b\n1,2\n3,\n", "csv")
        assert columns == ["a", "b"]
        assert rows == [{"a": "1", "b": "2"}, {"a": "3", "b": ""}]

    def test_tsv(self):
        rows, columns = parse_rows("a\tb\nx,y\tz\n", "TSV")
        assert columns == ["a", "b"]
        assert rows == [{"a": "x,y", "b": "z"}]

    def test_quoted_csv_fields(self):
        rows, _ = parse_rows('tags\n"a,b,c"\n', "csv")
        assert rows == [{"tags": "a,b,c"}]

    def test_json_list_and_object(self):
        assert parse_rows('[{"a": 1}]', "json") == ([{"a": 1}], None)
        assert parse_rows('{"k": {"a": 1}}', "json") == ({"k": {"a": 1}}, None)

    def test_json_scalar(self):
        with pytest.raises(ValueError):
            parse_rows("42", "json")

    def test_unsupported(self):
        with pytest.raises(ValueError, match="Unsupported file extension"):
            parse_rows("<xml/>", "xml")
