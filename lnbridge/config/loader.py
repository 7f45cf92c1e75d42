"""Load the lnbridge config file (JSON, camelCase or snake_case keys)."""

import json
import re
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from lnbridge.config.schema import Config
from lnbridge.utils.exceptions import ConfigurationError

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def get_config_path() -> Path:
    """Default location: ~/.lnbridge/config.json."""
    return Path.home() / ".lnbridge" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load the backend selection and its options.

    A missing file yields the defaults, with LNBRIDGE_* environment overrides
    applied. A present but malformed file is a ConfigurationError.
    """
    path = config_path or get_config_path()
    if not path.exists():
        return Config()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Failed to parse config {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {path} must hold a JSON object")

    try:
        return Config(**convert_keys(data))
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ConfigurationError(f"Invalid config {path}: {e}", fields) from e


def convert_keys(data: Any) -> Any:
    """Recursively rewrite camelCase dict keys as snake_case."""
    if isinstance(data, dict):
        return {camel_to_snake(k) if isinstance(k, str) else k: convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()
