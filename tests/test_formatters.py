"""CSV and JSON serialization of result sets."""

import json

import pytest

from sqlite_gateway.formatters import CSV_MEDIA_TYPE, JSON_MEDIA_TYPE, ResultFormatter
from sqlite_gateway.models import OutputFormat


@pytest.fixture
def formatter():
    return ResultFormatter()


def test_csv_quotes_only_when_needed(formatter):
    rows = [{"a": 1, "b": "x,y"}, {"a": 2, "b": None}]
    assert formatter.to_csv(rows) == 'a,b\n1,"x,y"\n2,\n'


def test_csv_empty_result_is_empty_string(formatter):
    assert formatter.to_csv([]) == ""


def test_json_empty_result_is_empty_array(formatter):
    assert formatter.to_json([]) == "[]"


def test_csv_doubles_embedded_quotes(formatter):
    rows = [{"body": 'says "hi"'}]
    assert formatter.to_csv(rows) == 'body\n"says ""hi"""\n'


def test_csv_quotes_newlines_and_uses_lf(formatter):
    rows = [{"body": "line one\nline two"}]
    body = formatter.to_csv(rows)
    assert body == 'body\n"line one\nline two"\n'
    assert "\r" not in body


def test_csv_scalar_kinds(formatter):
    rows = [{"flag": True, "other": False, "score": 7.25, "count": 3, "name": "plain"}]
    assert formatter.to_csv(rows) == "flag,other,score,count,name\ntrue,false,7.25,3,plain\n"


def test_csv_follows_first_row_column_order(formatter):
    rows = [{"b": 1, "a": 2}, {"a": 4, "b": 3}]
    assert formatter.to_csv(rows) == "b,a\n1,2\n3,4\n"


def test_csv_missing_value_is_empty_field(formatter):
    rows = [{"a": 1, "b": 2}, {"a": 3}]
    assert formatter.to_csv(rows) == "a,b\n1,2\n3,\n"


def test_json_preserves_order_and_types(formatter):
    rows = [{"b": 1, "a": None, "c": "x", "d": 1.5, "e": True}]
    body = formatter.to_json(rows)
    assert body == '[{"b":1,"a":null,"c":"x","d":1.5,"e":true}]'
    assert list(json.loads(body)[0].keys()) == ["b", "a", "c", "d", "e"]


def test_integral_floats_drop_fraction(formatter):
    rows = [{"x": 2.0, "score": 9.5, "neg": -3.0, "huge": 1e21}]
    assert formatter.to_csv(rows) == "x,score,neg,huge\n2,9.5,-3,1e+21\n"
    assert formatter.to_json(rows) == '[{"x":2,"score":9.5,"neg":-3,"huge":1e+21}]'


def test_render_selects_format(formatter):
    rows = [{"a": 1}]
    assert formatter.render(rows, "json") == ('[{"a":1}]', JSON_MEDIA_TYPE)
    assert formatter.render(rows, "csv") == ("a\n1\n", CSV_MEDIA_TYPE)
    assert formatter.render(rows) == ("a\n1\n", CSV_MEDIA_TYPE)


@pytest.mark.parametrize("fmt", ["xml", "", None, "JSONL"])
def test_unknown_format_falls_back_to_csv(formatter, fmt):
    assert OutputFormat.parse(fmt) == OutputFormat.CSV
    assert formatter.render([{"a": 1}], fmt)[1] == CSV_MEDIA_TYPE


def test_format_parse_is_case_insensitive():
    assert OutputFormat.parse("JSON") == OutputFormat.JSON


def test_format_table(formatter):
    table = formatter.format_table([{"id": 1, "name": "Alice"}, {"id": 2, "name": None}])
    assert "id" in table and "name" in table
    assert "Alice" in table
    assert "NULL" in table


def test_format_table_null_cells(formatter):
    table = formatter.format_table([{"id": 1, "note": None}, {"id": 2, "note": "x" * 80}])
    assert "NULL" in table
    assert "nan" not in table.lower()
    assert "x" * 47 + "..." in table


def test_format_table_truncates_long_text(formatter):
    table = formatter.format_table([{"text": "x" * 200}])
    assert "x" * 200 not in table
    assert "..." in table


def test_format_table_empty(formatter):
    assert formatter.format_table([]) == "No rows returned"


def test_format_error(formatter):
    assert formatter.format_error("boom") == "Error: boom"
