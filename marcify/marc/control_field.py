from __future__ import annotations

"""008 fixed-length data elements for the e-book records.

                     0         1         2         3
                     0123456789012345678901234567890123456789
    template:        '      s{DATE}    {CTY}|||| o     ||| {F}|{LNG} d'

06 's' single known date, 07-10 date, 15-17 place of publication,
23 'o' online, 33 literary form, 35-37 language, 39 'd' cataloging source.
"""

__all__ = [
    "CONTROL_FIELD_LENGTH",
    "ControlFieldError",
    "build_control_field",
]

CONTROL_FIELD_LENGTH = 40

_TEMPLATE = "      s{date}    {country}|||| o     ||| {form}|{language} d"

# slot name -> declared width
_SLOT_WIDTHS = {
    "date": 4,
    "country": 3,
    "form": 1,
    "language": 3,
}


class ControlFieldError(Exception):
    """Raised when a slot value does not fit its declared width."""
    error_type = "CONTROL_FIELD_ERROR"


def build_control_field(date: str, country: str, form: str, language: str) -> str:
    slots = {"date": date, "country": country, "form": form, "language": language}
    for name, value in slots.items():
        if not isinstance(value, str) or len(value) != _SLOT_WIDTHS[name]:
            raise ControlFieldError(
                f"008 {name} slot needs {_SLOT_WIDTHS[name]} characters, got {value!r}"
            )
    data = _TEMPLATE.format(**slots)
    if len(data) != CONTROL_FIELD_LENGTH:  # pragma: no cover (template invariant)
        raise ControlFieldError(f"008 is {len(data)} characters, expected {CONTROL_FIELD_LENGTH}")
    return data
