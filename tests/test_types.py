import pytest
from minisheet.types import (
    EMPTY_CELL,
    ERROR,
    CellContent,
    CellKind,
    classify,
    coerce_to_number,
    is_error,
    parse_number,
)


class TestClassify:
    def test_empty(self):
        assert classify("") == EMPTY_CELL
        assert classify(None) == EMPTY_CELL

    def test_literal(self):
        assert classify("42") == CellContent(CellKind.LITERAL, "42")
        assert classify("hello") == CellContent(CellKind.LITERAL, "hello")
        # Only a leading `=` makes a formula
        assert classify(" =1+2").kind == CellKind.LITERAL

    def test_formula(self):
        content = classify("= A1 + 2 ")
        assert content.kind == CellKind.FORMULA
        assert content.raw == "= A1 + 2 "
        assert content.expression == "A1 + 2"

    def test_expression_of_literal(self):
        with pytest.raises(ValueError):
            classify("12").expression


class TestParseNumber:
    @pytest.mark.parametrize(
        "text, expected",
        [("3", 3.0), ("-2.5", -2.5), ("+4", 4.0), (".5", 0.5), ("7.", 7.0), ("1e3", 1000.0), (" 12 ", 12.0)],
    )
    def test_numbers(self, text, expected):
        assert parse_number(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "1_000", "nan", "inf", "-Infinity", "1,5", "1.2.3", "--1"])
    def test_not_numbers(self, text):
        assert parse_number(text) is None


class TestCoerceToNumber:
    def test_values(self):
        assert coerce_to_number(classify("")) == 0
        assert coerce_to_number(classify("text")) == 0
        assert coerce_to_number(classify("2.5")) == 2.5


def test_is_error():
    assert is_error(ERROR)
    assert not is_error("error")
    assert not is_error(0.0)
