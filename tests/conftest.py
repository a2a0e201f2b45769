# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path
from xml.sax.saxutils import escape

import pytest

from marcify.models.config_models import LinkConfig, MarcifyConfig
from marcify.models.source_row import SourceRow

COLUMNS = [
    "Title",
    "Creator",
    "ISBN",
    "DateOfPublication",
    "Language",
    "PlaceOfPublication",
    "Publisher",
    "Subject",
    "FileSize",
    "ShortDescription",
    "Format",
    "SystemRequirements",
    "OclcControlNumber",
    "URL",
]

SAMPLE_VALUES = {
    "Title": "The Test Book",
    "Creator": "John Smith",
    "ISBN": "9780134190440",
    "DateOfPublication": "1/1/2020",
    "Language": "English",
    "PlaceOfPublication": "New York",
    "Publisher": "Test Press",
    "Subject": "Fiction",
    "FileSize": "1024",
    "ShortDescription": "&lt;p&gt;A &lt;b&gt;gripping&lt;/b&gt; tale.&lt;/p&gt;",
    "Format": "Adobe EPUB eBook",
    "SystemRequirements": "Adobe Digital Editions",
    "OclcControlNumber": "123456789",
    "URL": "ContentDetails.htm?ID=ABC-123",
}

SAMPLE_INI = """[856]
lib_shortname = TESTLIB
url_prefix = https://proxy.example.org/login?url=http://lib.overdrive.com/%2F
link_text = Click here to access this e-book
"""


def workbook_xml(header: list[str], rows: list[list[str]], *, encoding: str = "UTF-8") -> str:
    """Render a minimal SpreadsheetML workbook (one worksheet, one table)."""

    def _row(cells: list[str]) -> str:
        inner = "".join(
            f'<Cell><Data ss:Type="String">{escape(c)}</Data></Cell>' for c in cells
        )
        return f"<Row>{inner}</Row>"

    body = "\n".join(_row(r) for r in [header, *rows])
    return (
        f'<?xml version="1.0" encoding="{encoding}"?>\n'
        '<?mso-application progid="Excel.Sheet"?>\n'
        '<Workbook xmlns="urn:schemas-microsoft-com:office:spreadsheet"\n'
        ' xmlns:ss="urn:schemas-microsoft-com:office:spreadsheet">\n'
        ' <Worksheet ss:Name="Titles">\n'
        f"  <Table>\n{body}\n  </Table>\n"
        " </Worksheet>\n"
        "</Workbook>\n"
    )


def sample_row_values(**overrides: str) -> dict[str, str]:
    values = dict(SAMPLE_VALUES)
    values.update(overrides)
    return values


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def write_config(temp_workdir: Path) -> Path:
    cfg = temp_workdir / "marcify.ini"
    cfg.write_text(SAMPLE_INI, encoding="utf-8")
    return cfg


@pytest.fixture()
def marcify_config() -> MarcifyConfig:
    return MarcifyConfig(
        link=LinkConfig(
            lib_shortname="TESTLIB",
            url_prefix="https://proxy.example.org/login?url=",
            link_text="Click here to access this e-book",
        )
    )


@pytest.fixture()
def make_row() -> Callable[..., SourceRow]:
    def _make(row_number: int = 2, **overrides: str) -> SourceRow:
        return SourceRow(row_number=row_number, values=sample_row_values(**overrides))
    return _make


@pytest.fixture()
def write_workbook(temp_workdir: Path) -> Callable[..., Path]:
    """Write a workbook of rows (dicts keyed by COLUMNS) and return its path."""

    def _write(rows: list[dict[str, str]], name: str = "overdrive.xml", columns: list[str] | None = None) -> Path:
        cols = columns if columns is not None else COLUMNS
        path = temp_workdir / name
        grid = [[r.get(c, "") for c in cols] for r in rows]
        path.write_text(workbook_xml(cols, grid), encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def sample_values() -> dict[str, str]:
    return sample_row_values()


@pytest.fixture()
def render_workbook() -> Callable[..., str]:
    return workbook_xml
