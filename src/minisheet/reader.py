import csv
import logging
from datetime import date, datetime, time
from enum import Enum, auto
from pathlib import Path
from typing import Any, List, NamedTuple
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from minisheet.utils import format_number


class LoadStatus(Enum):
    LOADED = auto()
    NOT_FOUND = auto()
    FAILED = auto()


class LoadResult(NamedTuple):
    status: LoadStatus
    message: str
    # Raw cell rows as read, possibly ragged; None unless LOADED
    rows: List[List[str]] | None = None

    @property
    def ok(self) -> bool:
        return self.status == LoadStatus.LOADED


def read_csv(path: str | Path) -> LoadResult:
    """Read raw cell text from a CSV file.

    Quoted fields may contain commas, doubled quotes and newlines. A missing
    file is reported as NOT_FOUND, any other failure as FAILED.
    """
    path = Path(path)
    try:
        with path.open(newline="", encoding="utf-8") as f:
            rows = [list(row) for row in csv.reader(f)]
    except FileNotFoundError:
        logging.warning(f"{path} not found")
        return LoadResult(LoadStatus.NOT_FOUND, f"{path.name} not found.")
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        logging.warning(f"Could not load {path}: {e}")
        return LoadResult(LoadStatus.FAILED, f"Error: {e}")

    logging.info(f"Loaded {len(rows)} rows from {path}")
    return LoadResult(LoadStatus.LOADED, f"Loaded {path.name}", rows)


def _cell_text(value: Any) -> str:
    """Raw cell text for a value read by openpyxl."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, float):
        return format_number(value) if value.is_integer() else repr(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def read_xlsx(path: str | Path) -> LoadResult:
    """Read raw cell text from the active worksheet of an xlsx workbook.

    Formulas come back as their `=...` text, not their cached values.
    """
    path = Path(path)
    try:
        wb = load_workbook(path)
    except FileNotFoundError:
        logging.warning(f"{path} not found")
        return LoadResult(LoadStatus.NOT_FOUND, f"{path.name} not found.")
    except (OSError, InvalidFileException, BadZipFile, KeyError, ValueError) as e:
        logging.warning(f"Could not load {path}: {e}")
        return LoadResult(LoadStatus.FAILED, f"Error: {e}")

    ws = wb.active
    rows = [[_cell_text(value) for value in row] for row in ws.iter_rows(values_only=True)]
    logging.info(f"Loaded {len(rows)} rows from {path} (worksheet {ws.title})")
    return LoadResult(LoadStatus.LOADED, f"Loaded {path.name}", rows)
