"""Configuration management for zotnotes."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_DIR = Path("~/.config/zotnotes").expanduser()
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.toml"
DEFAULT_ZOTERO_DIR = "~/Zotero"
DEFAULT_DATABASE_NAME = "zotero.sqlite"
DEFAULT_FORMAT = "md"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 23119


class ConfigError(RuntimeError):
    """Base error for configuration related issues."""


class MissingConfigError(ConfigError):
    """Raised when the configuration file cannot be found."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Configuration file not found at {path}")
        self.path = path


class InvalidConfigError(ConfigError):
    """Raised when the configuration file holds malformed values."""


@dataclass(slots=True)
class ZotnotesConfig:
    """In-memory representation of the zotnotes configuration file."""

    zotero_dir: Path
    database: Path
    base_attachment_dir: Path | None = None
    default_format: str = DEFAULT_FORMAT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    source_path: Path | None = None


def load_config(path: Path | None = None) -> ZotnotesConfig:
    """Load configuration from ``path`` or the default location.

    Parameters
    ----------
    path:
        Optional location of the configuration file. When ``None`` the default
        path (``~/.config/zotnotes/config.toml``) is used.

    Raises
    ------
    MissingConfigError
        If the file cannot be found.
    InvalidConfigError
        If settings are malformed.
    """

    config_path = (path or DEFAULT_CONFIG_PATH).expanduser()
    if not config_path.exists():
        raise MissingConfigError(config_path)

    try:
        with config_path.open("rb") as fh:
            raw = tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise InvalidConfigError(f"Cannot parse {config_path}: {exc}") from exc

    section = raw.get("zotnotes", {})
    if not isinstance(section, dict):
        raise InvalidConfigError("'zotnotes' section must be a table")

    config_dir = config_path.parent

    zotero_dir = _resolve_path(section, "zotero_dir", config_dir)
    if zotero_dir is None:
        zotero_dir = Path(DEFAULT_ZOTERO_DIR).expanduser()

    database = _resolve_path(section, "database", config_dir)
    if database is None:
        database = zotero_dir / DEFAULT_DATABASE_NAME

    base_attachment_dir = _resolve_path(section, "base_attachment_dir", config_dir)

    default_format = _optional_str(section, "default_format") or DEFAULT_FORMAT
    host = _optional_str(section, "host") or DEFAULT_HOST

    port = section.get("port", DEFAULT_PORT)
    if isinstance(port, bool) or not isinstance(port, int):
        raise InvalidConfigError("'port' must be an integer when provided")
    if not 0 < port < 65536:
        raise InvalidConfigError(f"'port' out of range: {port}")

    return ZotnotesConfig(
        zotero_dir=zotero_dir,
        database=database,
        base_attachment_dir=base_attachment_dir,
        default_format=default_format.lower(),
        host=host,
        port=port,
        source_path=config_path,
    )


def _optional_str(section: dict[str, Any], key: str) -> str | None:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidConfigError(f"'{key}' must be a string when provided")
    return value.strip() or None


def _resolve_path(section: dict[str, Any], key: str, config_dir: Path) -> Path | None:
    # Relative paths are resolved against the configuration directory.
    value = _optional_str(section, key)
    if value is None:
        return None
    candidate = Path(value).expanduser()
    if not candidate.is_absolute():
        candidate = config_dir / candidate
    return candidate.resolve()


def bootstrap_config_file(path: Path) -> bool:
    """Create a default config file if missing.

    Returns True when the file was created, False if it already existed.
    """

    if path.exists():
        return False

    config_dir = path.parent
    config_dir.mkdir(parents=True, exist_ok=True)
    default_content = (
        "[zotnotes]\n"
        f'zotero_dir = "{DEFAULT_ZOTERO_DIR}"\n'
        "# database = \"~/Zotero/zotero.sqlite\"\n"
        "# base_attachment_dir = \"~/Documents/Papers\"\n"
        f'default_format = "{DEFAULT_FORMAT}"\n'
        f'host = "{DEFAULT_HOST}"\n'
        f"port = {DEFAULT_PORT}\n"
    )
    path.write_text(default_content, encoding="utf-8")
    return True


__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONFIG_PATH",
    "InvalidConfigError",
    "MissingConfigError",
    "ZotnotesConfig",
    "bootstrap_config_file",
    "load_config",
]
