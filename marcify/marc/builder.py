from __future__ import annotations

from collections.abc import Sequence

from pymarc import Field, Record, Subfield

from marcify.models.config_models import MarcifyConfig
from marcify.models.source_row import SourceRow

from .control_field import build_control_field
from .normalizers import (
    ISBN_NOTE_SUFFIX,
    count_nonfiling_characters,
    extract_publication_year,
    flatten_description,
    invert_personal_name,
    lookup_country_code,
    lookup_language_code,
    lookup_literary_form_code,
    normalize_isbn,
)

"""Record builder: one SourceRow -> one pymarc Record.

Field emission order is fixed (008, 020, 020, 035, 100, 245, 260, 300, 500,
520, 538, 599, 856); downstream loads and fixtures depend on it. Normalizer
errors are not caught here.
"""

__all__ = [
    "LEADER",
    "build_record",
]

# lengths and base address are filled in by pymarc on serialization
LEADER = "     nam a22     4u 4500"

GENERAL_NOTE = "Description based on OverDrive metadata."
SOURCE_NOTE = "OVERDRIVE METADATA RECORD"
MEDIUM = "[electronic resource] /"

Indicators = tuple[str, str]
BLANK: Indicators = (" ", " ")


def _append_if_nonempty(record: Record, tag: str, indicators: Indicators, code: str, value: str) -> None:
    if value:
        _append_subfields(record, tag, indicators, [(code, value)])


def _append_subfields(
    record: Record, tag: str, indicators: Indicators, pairs: Sequence[tuple[str, str]]
) -> None:
    record.add_field(
        Field(
            tag=tag,
            indicators=list(indicators),
            subfields=[Subfield(code=code, value=value) for code, value in pairs],
        )
    )


def build_record(row: SourceRow, config: MarcifyConfig) -> Record:
    record = Record(leader=LEADER, force_utf8=True)

    year = extract_publication_year(row.get("DateOfPublication"))
    creator = row.get("Creator").strip()
    title = row.get("Title")

    control = build_control_field(
        date=year,
        country=lookup_country_code(row.get("PlaceOfPublication"), config.places),
        form=lookup_literary_form_code(row.get("Subject")),
        language=lookup_language_code(row.get("Language"), config.languages),
    )
    record.add_field(Field(tag="008", data=control))

    isbn13, isbn10 = normalize_isbn(row.get("ISBN"))
    _append_if_nonempty(record, "020", BLANK, "a", isbn13 + ISBN_NOTE_SUFFIX)
    if isbn10:
        _append_if_nonempty(record, "020", BLANK, "a", isbn10 + ISBN_NOTE_SUFFIX)

    oclc = row.get("OclcControlNumber").strip()
    if oclc:
        _append_if_nonempty(record, "035", BLANK, "a", f"(OCoLC){oclc}")

    _append_if_nonempty(record, "100", ("1", " "), "a", invert_personal_name(creator))

    nonfiling = count_nonfiling_characters(title)
    _append_subfields(
        record,
        "245",
        ("0", str(nonfiling)),
        [("a", title), ("h", MEDIUM), ("c", f"by {creator}.")],
    )

    _append_subfields(
        record,
        "260",
        BLANK,
        [
            ("a", f"{row.get('PlaceOfPublication')} :"),
            ("b", f"{row.get('Publisher')},"),
            ("c", f"{year}."),
        ],
    )

    file_size = row.get("FileSize").strip()
    if file_size:
        _append_if_nonempty(record, "300", BLANK, "a", f"1 online resource ({file_size} KB) :")

    _append_if_nonempty(record, "500", BLANK, "a", GENERAL_NOTE)

    description = flatten_description(row.get("ShortDescription")).strip()
    _append_if_nonempty(record, "520", BLANK, "a", description)

    _append_subfields(
        record,
        "538",
        BLANK,
        [("a", f"{row.get('Format')} format, {row.get('SystemRequirements')} required to access.")],
    )
    _append_subfields(record, "599", BLANK, [("a", SOURCE_NOTE)])

    link = config.link
    _append_subfields(
        record,
        "856",
        ("4", "0"),
        [
            ("9", link.lib_shortname),
            ("u", f"{link.url_prefix}{row.get('URL')}"),
            ("y", link.link_text),
        ],
    )
    return record
