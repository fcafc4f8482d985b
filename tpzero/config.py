"""Reading ``KEY=VALUE`` configuration files."""

from __future__ import annotations

import os


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or parsed."""


def parse_config(text: str) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines; blank lines and ``#`` comments are skipped."""
    config: dict[str, str] = {}
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.rstrip("\r\n")
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            raise ConfigError(f"line {number}: expected KEY=VALUE, got {line!r}")
        config[key] = value
    return config


def load_config(path: str | os.PathLike[str]) -> dict[str, str]:
    """Load and parse the configuration file at *path*."""
    try:
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
    except OSError as exc:
        raise ConfigError(f"cannot read config {os.fspath(path)!r}: {exc}") from exc
    return parse_config(text)