from datetime import date

import pytest
from minisheet.grid import Grid
from minisheet.reader import LoadStatus, _cell_text, read_csv, read_xlsx
from minisheet.writer import write_csv, write_xlsx


class TestCellText:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, ""),
            (3, "3"),
            (3.0, "3"),
            (2.5, "2.5"),
            (True, "TRUE"),
            ("=A1", "=A1"),
            (date(2024, 1, 31), "2024-01-31"),
        ],
    )
    def test_values(self, value, expected):
        assert _cell_text(value) == expected


class TestReadCsv:
    def test_embedded_newline(self, tmp_path):
        path = tmp_path / "multiline.csv"
        path.write_text('"a\nb",c\n', encoding="utf-8")
        result = read_csv(path)
        assert result.ok
        assert result.rows == [["a\nb", "c"]]

    def test_missing(self, tmp_path):
        result = read_csv(tmp_path / "nope.csv")
        assert result.status == LoadStatus.NOT_FOUND
        assert result.rows is None


class TestWriters:
    def test_csv_returns_path(self, tmp_path):
        grid = Grid.from_rows([["1", ""]])
        path = write_csv(grid, str(tmp_path / "out.csv"))
        assert path == tmp_path / "out.csv"
        assert path.read_text(encoding="utf-8") == "1,\n"

    def test_csv_single_empty_field_is_quoted(self, tmp_path):
        grid = Grid.from_rows([["a"], [""]])
        path = write_csv(grid, tmp_path / "column.csv")
        assert path.read_text(encoding="utf-8") == 'a\n""\n'
        assert read_csv(path).rows == [["a"], [""]]

    def test_xlsx_strips_illegal_characters(self, tmp_path):
        grid = Grid.from_rows([["bad\x01text"]])
        path = write_xlsx(grid, tmp_path / "out.xlsx")
        result = read_xlsx(path)
        assert result.rows == [["badtext"]]
