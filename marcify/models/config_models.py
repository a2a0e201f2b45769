from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for marcify.

These are the typed form of the validated configuration file; the loader in
``marcify.config.loader`` builds them, the record builder consumes them.
"""


@dataclass(frozen=True)
class LinkConfig:
    """Settings for the 856 electronic-access field."""
    lib_shortname: str  # 856 $9
    url_prefix: str  # prepended to the row's URL in 856 $u
    link_text: str  # 856 $y


@dataclass(frozen=True)
class MarcifyConfig:
    """Root configuration object passed to the record builder.

    ``places`` and ``languages`` extend the built-in MARC country and language
    code tables; an entry here overrides a built-in one with the same name.
    """
    link: LinkConfig
    places: dict[str, str] = field(default_factory=dict)
    languages: dict[str, str] = field(default_factory=dict)
