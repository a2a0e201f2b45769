from __future__ import annotations

from dataclasses import dataclass

"""SourceRow model: one data row of the OverDrive worksheet."""

__all__ = [
    "SourceRow",
]


@dataclass(frozen=True)
class SourceRow:
    """Field name -> decoded cell text for one worksheet row.

    ``row_number`` is the 1-based worksheet row (the header is row 1, so the
    first data row is 2). Every row carries the full header key set; absent
    cells are empty strings.
    """
    row_number: int
    values: dict[str, str]

    def get(self, name: str) -> str:
        """Return the value for ``name`` or an empty string."""
        return self.values.get(name) or ""

    def __getitem__(self, name: str) -> str:
        return self.values[name]

    def __contains__(self, name: object) -> bool:
        return name in self.values

    @property
    def title(self) -> str:
        return self.get("Title")
