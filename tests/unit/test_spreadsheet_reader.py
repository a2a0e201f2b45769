from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from marcify.spreadsheet.reader import (
    MissingColumnsError,
    StructuralError,
    normalize_sheet,
    read_source_rows,
    read_worksheet,
)

WORKBOOK_HEAD = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<Workbook xmlns="urn:schemas-microsoft-com:office:spreadsheet"'
    ' xmlns:ss="urn:schemas-microsoft-com:office:spreadsheet">\n'
)


def _write(tmp: Path, body: str, name: str = "book.xml") -> Path:
    p = tmp / name
    p.write_text(WORKBOOK_HEAD + body + "</Workbook>\n", encoding="utf-8")
    return p


def test_read_worksheet_raw_grid(temp_workdir: Path, render_workbook):
    path = temp_workdir / "grid.xml"
    path.write_text(render_workbook(["Title", "ISBN"], [["One", "1"], ["Two", "2"]]), encoding="utf-8")

    name, df = read_worksheet(path)

    assert name == "Titles"
    assert df.shape == (3, 2)
    assert df.iloc[0].tolist() == ["Title", "ISBN"]
    assert df.iloc[2].tolist() == ["Two", "2"]


def test_read_source_rows_maps_header_names(write_workbook, sample_values):
    path = write_workbook([sample_values, dict(sample_values, Title="Second")])

    rows = read_source_rows(path)

    assert [r.title for r in rows] == ["The Test Book", "Second"]
    assert [r.row_number for r in rows] == [2, 3]
    assert rows[0]["PlaceOfPublication"] == "New York"
    assert set(rows[0].values) == set(rows[1].values)


def test_read_source_rows_decodes_entities(write_workbook, sample_values):
    path = write_workbook([sample_values])
    row = read_source_rows(path)[0]
    assert row["ShortDescription"] == "<p>A <b>gripping</b> tale.</p>"


def test_short_rows_are_padded(temp_workdir: Path):
    path = _write(
        temp_workdir,
        "<Worksheet ss:Name='S'><Table>"
        "<Row><Cell><Data>Title</Data></Cell><Cell><Data>FileSize</Data></Cell></Row>"
        "<Row><Cell><Data>Only title</Data></Cell></Row>"
        "</Table></Worksheet>",
    )
    rows = read_source_rows(path)
    assert rows[0].values == {"Title": "Only title", "FileSize": ""}


def test_cell_index_skips_columns(temp_workdir: Path):
    path = _write(
        temp_workdir,
        "<Worksheet ss:Name='S'><Table>"
        "<Row><Cell><Data>A</Data></Cell><Cell><Data>B</Data></Cell><Cell><Data>C</Data></Cell></Row>"
        "<Row><Cell><Data>a</Data></Cell><Cell ss:Index='3'><Data>c</Data></Cell></Row>"
        "</Table></Worksheet>",
    )
    rows = read_source_rows(path)
    assert rows[0].values == {"A": "a", "B": "", "C": "c"}


def test_cell_without_data_is_empty(temp_workdir: Path):
    path = _write(
        temp_workdir,
        "<Worksheet ss:Name='S'><Table>"
        "<Row><Cell><Data>A</Data></Cell><Cell><Data>B</Data></Cell></Row>"
        "<Row><Cell/><Cell><Data>b</Data></Cell></Row>"
        "</Table></Worksheet>",
    )
    assert read_source_rows(path)[0].values == {"A": "", "B": "b"}


def test_rich_text_data_is_flattened(temp_workdir: Path):
    path = _write(
        temp_workdir,
        "<Worksheet ss:Name='S'><Table>"
        "<Row><Cell><Data>Title</Data></Cell></Row>"
        "<Row><Cell><ss:Data xmlns:html='http://www.w3.org/TR/REC-html40'>"
        "Bold <html:B>move</html:B></ss:Data></Cell></Row>"
        "</Table></Worksheet>",
    )
    assert read_source_rows(path)[0]["Title"] == "Bold move"


def test_empty_rows_are_skipped(temp_workdir: Path):
    path = _write(
        temp_workdir,
        "<Worksheet ss:Name='S'><Table>"
        "<Row><Cell><Data>Title</Data></Cell></Row>"
        "<Row><Cell><Data>One</Data></Cell></Row>"
        "<Row></Row>"
        "<Row><Cell><Data>Two</Data></Cell></Row>"
        "</Table></Worksheet>",
    )
    rows = read_source_rows(path)
    assert [r.title for r in rows] == ["One", "Two"]
    assert [r.row_number for r in rows] == [2, 4]


def test_two_worksheets_is_structural_error(temp_workdir: Path):
    sheet = "<Worksheet ss:Name='{0}'><Table><Row><Cell><Data>Title</Data></Cell></Row></Table></Worksheet>"
    path = _write(temp_workdir, sheet.format("A") + sheet.format("B"))
    with pytest.raises(StructuralError, match="exactly one sheet"):
        read_worksheet(path)


def test_no_worksheet_is_structural_error(temp_workdir: Path):
    path = _write(temp_workdir, "")
    with pytest.raises(StructuralError, match="exactly one sheet"):
        read_worksheet(path)


def test_two_tables_is_structural_error(temp_workdir: Path):
    path = _write(temp_workdir, "<Worksheet ss:Name='S'><Table/><Table/></Worksheet>")
    with pytest.raises(StructuralError, match="exactly one table"):
        read_worksheet(path)


def test_unparsable_file_is_structural_error(temp_workdir: Path):
    path = temp_workdir / "broken.xml"
    path.write_text("<Workbook><Worksheet>", encoding="utf-8")
    with pytest.raises(StructuralError, match="unable to parse"):
        read_worksheet(path)


def test_windows_1252_fallback(temp_workdir: Path, render_workbook):
    path = temp_workdir / "legacy.xml"
    text = render_workbook(["Title", "Creator"], [["Café “Noir”", "Renée Smith"]])
    path.write_bytes(text.encode("cp1252"))

    rows = read_source_rows(path)

    assert rows[0]["Title"] == "Café “Noir”"
    assert rows[0]["Creator"] == "Renée Smith"


def test_normalize_sheet_requires_header():
    with pytest.raises(StructuralError, match="lacks a header row"):
        normalize_sheet(pd.DataFrame([], dtype=object), "Empty")


def test_normalize_sheet_missing_expected_column():
    df = pd.DataFrame([["Title", "ISBN"], ["One", "1"]], dtype=object)
    with pytest.raises(MissingColumnsError) as e:
        normalize_sheet(df, "S", expected_columns={"Title", "ISBN", "URL"})
    assert "URL" in str(e.value)
    assert isinstance(e.value, StructuralError)


def test_normalize_sheet_header_only():
    df = pd.DataFrame([["Title", "ISBN"]], dtype=object)
    sheet = normalize_sheet(df, "S", expected_columns={"Title"})
    assert sheet.columns == ["Title", "ISBN"]
    assert sheet.rows == []
