from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
from lxml import etree

from marcify.models.source_row import SourceRow

"""SpreadsheetML (Excel 2003 XML) reader.

The OverDrive export is a Workbook holding one Worksheet with one Table. Row 1
is the header row whose cell text become field names; every later row maps
positionally onto those names.

Reading is split in two like any tabular source: ``read_worksheet`` produces
the raw cell grid as a DataFrame (header included), ``normalize_sheet`` turns
that grid into ``SourceRow`` objects.
"""

logger = logging.getLogger(__name__)

SS_NS = "urn:schemas-microsoft-com:office:spreadsheet"
FALLBACK_ENCODING = "cp1252"


class StructuralError(Exception):
    """Raised when the document is not a single-worksheet, single-table workbook."""
    error_type = "STRUCTURAL_ERROR"


class MissingColumnsError(StructuralError):
    """Raised when expected columns are missing in the header row."""
    error_type = "MISSING_COLUMNS"


@dataclass
class SheetData:
    sheet_name: str
    columns: list[str]
    rows: list[SourceRow]


def _children(element: Any, name: str) -> list[Any]:
    return element.xpath(f"./*[local-name()='{name}']")


def _descendants(element: Any, name: str) -> list[Any]:
    return element.xpath(f".//*[local-name()='{name}']")


def _ss_attr(element: Any, name: str) -> str | None:
    value = element.get(f"{{{SS_NS}}}{name}")
    if value is None:
        value = element.get(name)
    return value


def parse_workbook(path: Path) -> Any:
    """Parse the workbook, retrying as Windows-1252 when the bytes don't match
    the declared encoding.
    """
    try:
        data = path.read_bytes()
    except OSError as e:
        raise StructuralError(f"unable to read {path}: {e}") from e

    try:
        return etree.fromstring(data)
    except etree.XMLSyntaxError as e:
        logger.warning(
            f"first attempt to parse {path.name} failed ({e}), "
            f"falling back to Windows-1252 encoding"
        )

    converted = data.decode(FALLBACK_ENCODING, errors="replace").encode("utf-8")
    # parser encoding overrides the (wrong) declaration in the prolog
    parser = etree.XMLParser(encoding="utf-8")
    try:
        return etree.fromstring(converted, parser=parser)
    except etree.XMLSyntaxError as e:
        raise StructuralError(f"unable to parse {path}: {e}") from e


def _cell_text(cell: Any) -> str:
    data = _children(cell, "Data")
    if not data:
        return ""
    return "".join(data[0].itertext())


def _row_values(row: Any) -> list[str | None]:
    """Cell texts by column position, honouring ss:Index column skips."""
    values: list[str | None] = []
    for cell in _children(row, "Cell"):
        index = _ss_attr(cell, "Index")
        if index is not None:
            try:
                position = int(index) - 1
            except ValueError as e:
                raise StructuralError(f"invalid ss:Index {index!r}") from e
            if position < len(values):
                raise StructuralError(f"ss:Index {index} moves backwards")
            values.extend([None] * (position - len(values)))
        values.append(_cell_text(cell))
    return values


def read_worksheet(path: Path) -> tuple[str, pd.DataFrame]:
    """Read the workbook's only worksheet as a raw grid.

    Returns:
        (worksheet name, DataFrame of cell text with the header as row 0;
        missing cells are None)

    Raises:
        StructuralError: if the workbook does not hold exactly one Worksheet
            with exactly one Table, or cannot be parsed at all
    """
    root = parse_workbook(path)

    sheets = _descendants(root, "Worksheet")
    if len(sheets) != 1:
        raise StructuralError(f"Didn't find exactly one sheet! (found {len(sheets)})")
    sheet = sheets[0]

    tables = _descendants(sheet, "Table")
    if len(tables) != 1:
        raise StructuralError(f"Didn't find exactly one table! (found {len(tables)})")

    grid = [_row_values(row) for row in _descendants(tables[0], "Row")]
    df = pd.DataFrame(grid, dtype=object)
    return _ss_attr(sheet, "Name") or "", df


def normalize_sheet(
    df: pd.DataFrame,
    sheet_name: str,
    expected_columns: set[str] | None = None,
) -> SheetData:
    """Normalize a raw grid using the first row as header.

    Steps:
    1. Validate a header row exists
    2. Map column position -> field name from row 0
    3. Remaining rows become SourceRows (fully empty rows are skipped, missing
       cells become empty strings, HTML entities are decoded)
    4. Validate expected columns subset
    """
    if df.shape[0] < 1:
        raise StructuralError(f"sheet '{sheet_name}' lacks a header row")

    header = df.iloc[0].tolist()
    columns = ["" if pd.isna(c) else str(c).strip() for c in header]

    if expected_columns is not None:
        missing = expected_columns - set(columns)
        if missing:
            raise MissingColumnsError(f"sheet '{sheet_name}' missing columns: {sorted(missing)}")

    rows: list[SourceRow] = []
    for index, raw in df.iloc[1:].iterrows():
        cells = raw.tolist()
        if all(pd.isna(v) or v == "" for v in cells):
            continue
        values: dict[str, str] = {}
        for col, val in zip(columns, cells, strict=False):
            if not col:
                continue
            # ShortDescription and Subject carry html entities
            values[col] = "" if pd.isna(val) else html.unescape(str(val))
        rows.append(SourceRow(row_number=int(index) + 1, values=values))

    return SheetData(sheet_name=sheet_name, columns=columns, rows=rows)


def read_source_rows(path: Path, expected_columns: set[str] | None = None) -> list[SourceRow]:
    """Read every data row of the workbook, in worksheet order."""
    sheet_name, df = read_worksheet(path)
    return normalize_sheet(df, sheet_name, expected_columns=expected_columns).rows
