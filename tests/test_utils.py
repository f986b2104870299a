import pytest
from minisheet.ast import CellRange, CellReference
from minisheet.utils import (
    decode_column,
    encode_column,
    format_number,
    number_literal,
    parse_address,
    parse_range,
)


class TestColumnCodec:
    @pytest.mark.parametrize(
        "index, name",
        [(0, "A"), (1, "B"), (25, "Z"), (26, "AA"), (27, "AB"), (51, "AZ"), (52, "BA"), (701, "ZZ"), (702, "AAA")],
    )
    def test_known_values(self, index, name):
        assert encode_column(index) == name
        assert decode_column(name) == index

    def test_bijection(self):
        names = [encode_column(n) for n in range(2001)]
        assert len(set(names)) == len(names)
        for n, name in enumerate(names):
            assert decode_column(name) == n

    def test_beyond_three_letters(self):
        # Last three-letter name and the first four-letter one
        assert encode_column(18277) == "ZZZ"
        assert encode_column(18278) == "AAAA"
        assert decode_column("ZZZ") == 18277
        assert decode_column("aaaa") == 18278
        for n in range(18200, 18400):
            assert decode_column(encode_column(n)) == n

    def test_decode_is_case_insensitive(self):
        assert decode_column("aa") == 26
        assert decode_column("zZ") == 701

    def test_negative_index(self):
        with pytest.raises(ValueError):
            encode_column(-1)

    @pytest.mark.parametrize("name", ["", "A1", "1", "A-B", "Ä"])
    def test_invalid_name(self, name):
        with pytest.raises(ValueError):
            decode_column(name)


class TestParseAddress:
    def test_simple(self):
        assert parse_address("A1") == CellReference(0, 0)
        assert parse_address("C5") == CellReference(4, 2)
        assert parse_address("AA10") == CellReference(9, 26)

    def test_lowercase_and_whitespace(self):
        assert parse_address(" b3 ") == CellReference(2, 1)

    @pytest.mark.parametrize("text", ["", "A", "1", "1A", "A0", "A1B", "A 1", "$A$1", "A1.5"])
    def test_not_an_address(self, text):
        assert parse_address(text) is None


class TestParseRange:
    def test_range(self):
        assert parse_range("A1:B2") == CellRange(CellReference(0, 0), CellReference(1, 1))

    def test_single_cell(self):
        assert parse_range("D4") == CellReference(3, 3)

    def test_reversed_corners_are_kept_and_normalized_by_bounds(self):
        rng = parse_range("B3:A1")
        assert rng == CellRange(CellReference(2, 1), CellReference(0, 0))
        assert rng.bounds() == (0, 2, 0, 1)

    @pytest.mark.parametrize("text", ["A1:B2:C3", "A1:", ":B2", "A1:XYZ", "foo"])
    def test_invalid(self, text):
        assert parse_range(text) is None


class TestFormatNumber:
    def test_integral(self):
        assert format_number(6.0) == "6"
        assert format_number(-12.0) == "-12"
        assert format_number(-0.0) == "0"

    def test_fractional_uses_two_decimals(self):
        assert format_number(2.5) == "2.50"
        assert format_number(1 / 3) == "0.33"
        assert format_number(-0.125) == "-0.12"


class TestNumberLiteral:
    def test_positional_notation(self):
        assert number_literal(3.0) == "3"
        assert number_literal(0.1) == "0.1"
        assert number_literal(1e20) == "100000000000000000000"
        assert "e" not in number_literal(1e-7)

    def test_negative_values_are_parenthesised(self):
        assert number_literal(-2.5) == "(-2.5)"

    def test_negative_zero(self):
        assert number_literal(-0.0) == "0"

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite(self, value):
        with pytest.raises(ValueError):
            number_literal(value)
