"""Plugin options and the .protoc-gen-swagger.yml defaults file."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import yaml

CONFIG_FILE_NAME = ".protoc-gen-swagger.yml"
CONFIG_ENV_VAR = "PROTOC_GEN_SWAGGER_CONFIG"

_TRUE_VALUES = {"", "1", "t", "true", "yes"}
_FALSE_VALUES = {"0", "f", "false", "no"}


class ConfigError(RuntimeError):
    """Raised when the defaults file cannot be parsed."""


class OptionError(RuntimeError):
    """Raised when an option assignment cannot be applied."""


class UnknownOptionError(OptionError):
    """Raised for option names the plugin does not recognize."""


class InvalidOptionValueError(OptionError):
    """Raised when a value cannot be converted for a known option."""


@dataclass
class PluginOptions:
    """Recognized plugin options. Field names are the option names."""

    import_prefix: str = ""
    file: str = "stdin"
    logtostderr: bool = False
    v: int = 0
    log_file: str = ""
    allow_delete_body: bool = False
    allow_merge: bool = False
    merge_file_name: str = "apidocs"


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean value {value!r}")


def _parse_verbosity(value: str) -> int:
    level = int(value)
    if level < 0:
        raise ValueError(f"verbosity must be non-negative, got {level}")
    return level


def _parse_str(value: str) -> str:
    return value


def _parse_file_name(value: str) -> str:
    if not value or "/" in value:
        raise ValueError(f"invalid file name {value!r}")
    return value


_OPTION_PARSERS: Dict[str, Callable[[str], Any]] = {
    "import_prefix": _parse_str,
    "file": _parse_str,
    "logtostderr": _parse_bool,
    "v": _parse_verbosity,
    "log_file": _parse_str,
    "allow_delete_body": _parse_bool,
    "allow_merge": _parse_bool,
    "merge_file_name": _parse_file_name,
}


class OptionStore:
    """Applies string-valued assignments onto a :class:`PluginOptions`.

    Only names listed in the closed option table are accepted. Values are
    converted eagerly, and a later assignment of the same name replaces an
    earlier one.
    """

    def __init__(self, options: PluginOptions | None = None) -> None:
        self.options = options or PluginOptions()

    @staticmethod
    def known_options() -> list[str]:
        return sorted(_OPTION_PARSERS)

    def set(self, name: str, value: str) -> None:
        parser = _OPTION_PARSERS.get(name)
        if parser is None:
            raise UnknownOptionError(
                f"unknown option {name!r} (known options: {', '.join(self.known_options())})"
            )
        try:
            converted = parser(value)
        except ValueError as exc:
            raise InvalidOptionValueError(
                f"invalid value {value!r} for option {name!r}: {exc}"
            ) from exc
        setattr(self.options, name, converted)

    def snapshot(self) -> Dict[str, Any]:
        """Return the current option values keyed by option name."""
        return {item.name: getattr(self.options, item.name) for item in fields(self.options)}


def resolve_config_path(explicit: str | None = None) -> Optional[Path]:
    """Return the defaults file to read, or None when none is configured."""
    candidate = explicit or os.environ.get(CONFIG_ENV_VAR)
    if not candidate:
        return None
    path = Path(candidate).expanduser()
    if path.is_dir():
        return (path / CONFIG_FILE_NAME).resolve()
    return path.resolve()


def load_config(config_path: Path | None, store: OptionStore) -> OptionStore:
    """Apply option defaults from a YAML mapping onto ``store``."""
    if config_path is None or not config_path.exists():
        return store

    data = _read_config(config_path)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path.name} must contain a mapping at the root")

    for name, raw in data.items():
        value = _as_str(raw)
        if value is None:
            raise ConfigError(f"{config_path.name}: option {name!r} must be a scalar value")
        try:
            store.set(str(name), value)
        except OptionError as exc:
            raise ConfigError(f"{config_path.name}: {exc}") from exc
    return store


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def apply_assignments(store: OptionStore, assignments: Mapping[str, str]) -> OptionStore:
    """Apply already-stringified assignments, e.g. from command-line flags."""
    for name, value in assignments.items():
        store.set(name, value)
    return store


__all__ = [
    "CONFIG_ENV_VAR",
    "CONFIG_FILE_NAME",
    "ConfigError",
    "InvalidOptionValueError",
    "OptionError",
    "OptionStore",
    "PluginOptions",
    "UnknownOptionError",
    "apply_assignments",
    "load_config",
    "resolve_config_path",
]
