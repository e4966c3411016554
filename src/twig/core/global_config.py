"""Global configuration data structures and loading.

Provides immutable global config data loaded from ~/.twig/config.toml
(or $TWIG_HOME/config.toml). Loaded eagerly at the CLI entry point.
"""

import os
import tomllib
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomlkit

TWIG_HOME_ENV = "TWIG_HOME"
CONFIG_FILE_NAME = "config.toml"


@dataclass(frozen=True)
class GlobalConfig:
    """Immutable global configuration data.

    Loaded once at CLI entry point and stored in TwigContext.
    All fields are read-only after construction.
    """

    autostash: bool = False
    attach_orphans: bool = False
    max_depth: int | None = None


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "1", "on"):
        return True
    if lowered in ("false", "no", "0", "off"):
        return False
    raise ValueError(f"Expected true or false, got '{value}'")


def _parse_depth(value: str) -> int | None:
    if value.strip().lower() in ("", "none", "unlimited"):
        return None
    depth = int(value)
    if depth < 1:
        raise ValueError(f"max_depth must be at least 1, got {depth}")
    return depth


# Settable keys and how to parse a command-line value for each
CONFIG_KEYS: dict[str, Callable[[str], Any]] = {
    "autostash": _parse_bool,
    "attach_orphans": _parse_bool,
    "max_depth": _parse_depth,
}


def twig_home() -> Path:
    """Directory holding global twig files."""
    override = os.environ.get(TWIG_HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".twig"


def global_config_path() -> Path:
    """Get the path to the global config file.

    Returns:
        Path to config file (for error messages and debugging)
    """
    return twig_home() / CONFIG_FILE_NAME


def load_global_config(path: Path | None = None) -> GlobalConfig:
    """Load global config, falling back to defaults when no file exists.

    Args:
        path: Config file path (defaults to global_config_path())

    Raises:
        ValueError: If the file is not valid TOML or a value has the wrong type
    """
    config_path = path if path is not None else global_config_path()
    if not config_path.exists():
        return GlobalConfig()

    try:
        data = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

    for key in ("autostash", "attach_orphans"):
        if not isinstance(data.get(key, False), bool):
            raise ValueError(f"'{key}' in {config_path} must be true or false")

    max_depth = data.get("max_depth")
    invalid_depth = isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 1
    if max_depth is not None and invalid_depth:
        raise ValueError(f"'max_depth' in {config_path} must be a positive integer")

    return GlobalConfig(
        autostash=data.get("autostash", False),
        attach_orphans=data.get("attach_orphans", False),
        max_depth=max_depth,
    )


def set_global_config_value(key: str, raw_value: str, path: Path | None = None) -> GlobalConfig:
    """Parse and persist one setting, preserving existing formatting and comments.

    An unset max_depth is removed from the file, since TOML has no null.

    Raises:
        KeyError: If key is not a known setting
        ValueError: If the value cannot be parsed for that key
    """
    if key not in CONFIG_KEYS:
        raise KeyError(key)
    value = CONFIG_KEYS[key](raw_value)

    config_path = path if path is not None else global_config_path()
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as f:
            doc = tomlkit.load(f)
    else:
        doc = tomlkit.document()
        doc.add(tomlkit.comment("Global twig configuration"))

    if value is None:
        if key in doc:
            del doc[key]
    else:
        doc[key] = value

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as f:
        tomlkit.dump(doc, f)

    return load_global_config(config_path)


def config_items(config: GlobalConfig) -> list[tuple[str, str]]:
    """(key, display value) pairs for every setting, in CONFIG_KEYS order."""
    items: list[tuple[str, str]] = []
    for key in CONFIG_KEYS:
        value = getattr(config, key)
        if isinstance(value, bool):
            display = str(value).lower()
        elif value is None:
            display = "unlimited"
        else:
            display = str(value)
        items.append((key, display))
    return items
