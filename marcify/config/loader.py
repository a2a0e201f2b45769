from __future__ import annotations

import configparser
import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from marcify.models.config_models import LinkConfig, MarcifyConfig

"""Config loader.

Responsibilities:
- Load ``marcify.ini`` (INI) or a ``.yml``/``.yaml`` file with the same layout
- Validate required keys against ``config_schema.json``
- Build the ``MarcifyConfig`` handed to the record builder
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"

YAML_SUFFIXES = {".yml", ".yaml"}

# Section holding the 856 link settings
LINK_SECTION = "856"


class ConfigError(Exception):
    error_type = "CONFIG_ERROR"


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails validation (missing section, missing or empty
            key, unexpected key, wrong value type).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _read_ini(text: str) -> dict[str, Any]:
    # URL prefixes routinely contain '%', so no interpolation
    parser = configparser.ConfigParser(interpolation=None)
    # place names are matched exactly, keep their case
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    try:
        parser.read_string(text)
    except configparser.Error as e:
        raise ConfigError(f"invalid ini: {e}") from e
    return {section: dict(parser.items(section)) for section in parser.sections()}


def _read_yaml(text: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("invalid yaml: top level must be a mapping")
    # an unquoted `856:` key loads as an int
    return {str(k): v for k, v in data.items()}


def load_config(path: Path) -> MarcifyConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"failure reading config file {path}: {e}") from e

    if path.suffix.lower() in YAML_SUFFIXES:
        data = _read_yaml(text)
    else:
        data = _read_ini(text)

    _validate_config_schema(data)

    link_raw = data[LINK_SECTION]
    link = LinkConfig(
        lib_shortname=link_raw["lib_shortname"],
        url_prefix=link_raw["url_prefix"],
        link_text=link_raw["link_text"],
    )
    return MarcifyConfig(
        link=link,
        places=dict(data.get("places") or {}),
        languages=dict(data.get("languages") or {}),
    )
