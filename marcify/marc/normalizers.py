from __future__ import annotations

import html
import logging
import re
from collections.abc import Mapping

import isbnlib
from bs4 import BeautifulSoup, NavigableString
from bs4.builder import ParserRejectedMarkup

"""Field normalizers: raw OverDrive cell values -> MARC conventions.

Every function here is pure. Lookups are closed tables: an unknown value is an
error, never a default, so a feed with unexpected metadata stops the batch
instead of producing records with wrong codes.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "NormalizationError",
    "UnparsableDate",
    "UnknownLanguage",
    "UnknownPlace",
    "AmbiguousLiteraryForm",
    "InvalidISBN",
    "NameParseError",
    "LANGUAGE_CODES",
    "PLACE_CODES",
    "extract_publication_year",
    "lookup_language_code",
    "lookup_country_code",
    "lookup_literary_form_code",
    "count_nonfiling_characters",
    "invert_personal_name",
    "flatten_description",
    "normalize_isbn",
]


class NormalizationError(Exception):
    """Base class for fatal value-mapping failures."""
    error_type = "NORMALIZATION_ERROR"


class UnparsableDate(NormalizationError):
    error_type = "UNPARSABLE_DATE"


class UnknownLanguage(NormalizationError):
    error_type = "UNKNOWN_LANGUAGE"


class UnknownPlace(NormalizationError):
    error_type = "UNKNOWN_PLACE"


class AmbiguousLiteraryForm(NormalizationError):
    error_type = "AMBIGUOUS_LITERARY_FORM"


class InvalidISBN(NormalizationError):
    error_type = "INVALID_ISBN"


class NameParseError(NormalizationError):
    error_type = "NAME_PARSE_ERROR"


# MARC language codes
LANGUAGE_CODES: Mapping[str, str] = {
    "English": "eng",
}

# MARC country codes, keyed by OverDrive PlaceOfPublication
PLACE_CODES: Mapping[str, str] = {
    "New York": "nyu",
    "Ashland": "oru",
    "Carol Stream": "ilu",
    "Grand Rapids": "miu",
}

_NUMERIC_DATE_RE = re.compile(r"\d+/\d+/(\d{4})$")
_STAMP_DATE_RE = re.compile(r"\w\w\w +\d+ (\d{4}) 12:00AM$")

_ARTICLE_RE = re.compile(r"""^(['"]?(a|an|the)['"]? )""", re.IGNORECASE)

_NAME_RE = re.compile(r"(.*?) ((Van )?[^ ]+)(, Ph\.? ?D\.?)?$")

ISBN_NOTE_SUFFIX = " (electronic bk. : Adobe EPUB)"


def extract_publication_year(raw: str) -> str:
    """Return the 4-digit year of ``M/D/YYYY`` or ``Mon DD YYYY 12:00AM``."""
    for pattern in (_NUMERIC_DATE_RE, _STAMP_DATE_RE):
        m = pattern.search(raw)
        if m:
            return m.group(1)
    raise UnparsableDate(f"unable to extract year from publication date: {raw!r}")


def _lookup(table: Mapping[str, str], extra: Mapping[str, str] | None, key: str) -> str | None:
    if extra and key in extra:
        return extra[key]
    return table.get(key)


def lookup_language_code(name: str, table: Mapping[str, str] | None = None) -> str:
    """Map a Language value to its MARC code; ``table`` extends the built-ins."""
    code = _lookup(LANGUAGE_CODES, table, name)
    if code is None:
        raise UnknownLanguage(f"Unknown language {name!r}")
    return code


def lookup_country_code(place: str, table: Mapping[str, str] | None = None) -> str:
    """Map a PlaceOfPublication to its MARC country code (exact match)."""
    code = _lookup(PLACE_CODES, table, place)
    if code is None:
        raise UnknownPlace(f"Unknown location {place!r}")
    return code


def lookup_literary_form_code(subject: str) -> str:
    """Return 008/33: "0" for nonfiction, "1" for fiction.

    "Nonfiction" contains "Fiction", so it is tested first.
    """
    if "Nonfiction" in subject:
        return "0"
    if "Fiction" in subject:
        return "1"
    raise AmbiguousLiteraryForm(f"unable to determine literary form based on {subject!r}")


def count_nonfiling_characters(title: str) -> int:
    """Length of a leading article (with any quote and the trailing space)."""
    m = _ARTICLE_RE.match(title)
    return len(m.group(1)) if m else 0


def invert_personal_name(full_name: str) -> str:
    """Format ``First [Middle] [Van ]Last[, Ph.D.]`` as ``Last, First [Middle].``"""
    full_name = " ".join(full_name.split())
    m = _NAME_RE.match(full_name)
    if m is None:
        raise NameParseError(f"unable to split personal name {full_name!r}")
    output = f"{m.group(2)}, {m.group(1)}."
    if output.endswith(".."):
        output = output[:-1]
    return output


def _text_nodes(soup: BeautifulSoup) -> str:
    # comments, doctypes and CDATA are NavigableString subclasses
    return " ".join(str(s) for s in soup.find_all(string=True) if type(s) is NavigableString)


def flatten_description(markup: str) -> str:
    """Strip HTML from a description, joining its text nodes with spaces.

    Best effort: markup that ``html.parser`` refuses is re-read with the
    more forgiving lxml builder, keeping whatever text it recovers. Only
    markup both builders refuse yields an empty string.
    """
    decoded = html.unescape(markup)
    try:
        return _text_nodes(BeautifulSoup(decoded, "html.parser"))
    except ParserRejectedMarkup as e:
        logger.warning(f"description markup rejected ({e}), retrying with lxml")
    try:
        return _text_nodes(BeautifulSoup(decoded, "lxml"))
    except ParserRejectedMarkup as e:
        logger.warning(f"description markup rejected by lxml, dropping it: {e}")
        return ""


def normalize_isbn(raw: str) -> tuple[str, str | None]:
    """Validate an ISBN and return its (ISBN-13, ISBN-10) forms.

    The ISBN-10 form is None for 979-prefixed ISBNs.
    """
    canonical = isbnlib.canonical(raw or "")
    if len(canonical) == 13 and isbnlib.is_isbn13(canonical):
        isbn13 = canonical
    elif len(canonical) == 10 and isbnlib.is_isbn10(canonical):
        isbn13 = isbnlib.to_isbn13(canonical)
    else:
        raise InvalidISBN(f"invalid isbn: {raw!r}")
    isbn10 = isbnlib.to_isbn10(isbn13) or None
    return isbn13, isbn10
