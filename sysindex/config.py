"""Configuration loading for sysindex.

Loads settings from TOML config files with sensible defaults.
Search order: explicit --config path → ~/.config/sysindex/config.toml → defaults only.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import tomllib
from pathlib import Path
from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "refresh_interval": 2.0,
    "input_poll_ms": 100,
    "network_probes": True,
    "concurrent_probes": True,
    "log_file": "",
    "log_level": "INFO",
    "local_ip": {"target": "8.8.8.8"},
    "public_ip": {
        "endpoints": [
            "https://api.ipify.org",
            "https://ifconfig.me/ip",
            "https://icanhazip.com",
            "https://checkip.amazonaws.com",
        ],
        "timeout": 5.0,
    },
    "bandwidth": {
        "url": "https://speed.cloudflare.com/__down?bytes=1000000",
        "timeout": 10.0,
    },
}

_DEFAULT_PATH = Path.home() / ".config" / "sysindex" / "config.toml"

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Merge overlay into base. Nested dicts are merged at the first level only."""
    merged = dict(base)
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _log_file_problem(log_file: str) -> str | None:
    path = Path(log_file).expanduser()
    if path.is_dir():
        return f"log_file is a directory: {log_file}"
    if path.exists():
        writable = os.access(path, os.W_OK)
    else:
        writable = path.parent.is_dir() and os.access(path.parent, os.W_OK)
    if not writable:
        return f"log_file is not writable: {log_file}"
    return None


def validate_config(config: dict[str, Any]) -> list[str]:
    """Return a list of problems with a merged config; empty when usable."""
    problems: list[str] = []

    for table in ("local_ip", "public_ip", "bandwidth"):
        if not isinstance(config.get(table), dict):
            problems.append(f"[{table}] must be a table")
    if problems:
        return problems

    positive = {
        "refresh_interval": config["refresh_interval"],
        "public_ip.timeout": config["public_ip"].get("timeout"),
        "bandwidth.timeout": config["bandwidth"].get("timeout"),
    }
    for name, value in positive.items():
        if not _is_number(value) or value <= 0:
            problems.append(f"{name} must be a positive number, got {value!r}")

    poll = config["input_poll_ms"]
    if not isinstance(poll, int) or isinstance(poll, bool) or poll <= 0:
        problems.append(f"input_poll_ms must be a positive integer, got {poll!r}")

    for name in ("network_probes", "concurrent_probes"):
        if not isinstance(config[name], bool):
            problems.append(f"{name} must be true or false, got {config[name]!r}")

    level = config["log_level"]
    if not isinstance(level, str) or level.upper() not in _LOG_LEVELS:
        problems.append(f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {level!r}")

    log_file = config["log_file"]
    if not isinstance(log_file, str):
        problems.append(f"log_file must be a string, got {log_file!r}")
    elif log_file:
        problem = _log_file_problem(log_file)
        if problem:
            problems.append(problem)

    endpoints = config["public_ip"].get("endpoints")
    if (
        not isinstance(endpoints, list)
        or not endpoints
        or not all(isinstance(url, str) and url for url in endpoints)
    ):
        problems.append("public_ip.endpoints must be a non-empty list of URLs")

    for name, value in (
        ("local_ip.target", config["local_ip"].get("target")),
        ("bandwidth.url", config["bandwidth"].get("url")),
    ):
        if not isinstance(value, str) or not value:
            problems.append(f"{name} must be a non-empty string")

    return problems


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration, merging user TOML over defaults.

    Args:
        path: Explicit config file path (from --config). If None, tries the
              default location ~/.config/sysindex/config.toml.

    Returns:
        Merged configuration dict.

    Raises:
        SystemExit: If an explicit path doesn't exist, can't be parsed or
            holds invalid values.
    """
    if path is not None:
        if not path.is_file():
            print(f"sysindex: config file not found: {path}", file=sys.stderr)
            raise SystemExit(1)
        try:
            user_config = tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            print(f"sysindex: invalid TOML in {path}: {e}", file=sys.stderr)
            raise SystemExit(1) from e
        config = _deep_merge(DEFAULT_CONFIG, user_config)
        problems = validate_config(config)
        if problems:
            for problem in problems:
                print(f"sysindex: invalid config in {path}: {problem}", file=sys.stderr)
            raise SystemExit(1)
        return config

    # Try default location silently
    if _DEFAULT_PATH.is_file():
        try:
            user_config = tomllib.loads(_DEFAULT_PATH.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError:
            print(
                f"sysindex: warning: ignoring invalid TOML in {_DEFAULT_PATH}",
                file=sys.stderr,
            )
        else:
            config = _deep_merge(DEFAULT_CONFIG, user_config)
            problems = validate_config(config)
            if not problems:
                return config
            print(
                f"sysindex: warning: ignoring {_DEFAULT_PATH}: {problems[0]}",
                file=sys.stderr,
            )

    return dict(DEFAULT_CONFIG)


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        # JSON string escapes are valid TOML basic-string escapes, except DEL
        return json.dumps(value, ensure_ascii=False).replace("\x7f", "\\u007f")
    if isinstance(value, list):
        return "[" + ", ".join(_toml_value(v) for v in value) + "]"
    return str(value)


def dump_default_config() -> str:
    """Return the default configuration as a TOML string."""
    lines = [
        "# sysindex configuration",
        "# Place this file at ~/.config/sysindex/config.toml",
        "",
    ]

    tables: list[str] = []
    for key, value in DEFAULT_CONFIG.items():
        if isinstance(value, dict):
            tables.append(key)
            continue
        lines.append(f"{key} = {_toml_value(value)}")
    lines.append("")

    for table in tables:
        lines.append(f"[{table}]")
        for key, value in DEFAULT_CONFIG[table].items():
            lines.append(f"{key} = {_toml_value(value)}")
        lines.append("")

    return "\n".join(lines) + "\n"


def configure_logging(
    log_file: str = "",
    level: str = "INFO",
    interactive: bool = False,
) -> None:
    """Attach handlers to the ``sysindex`` logger.

    While the dashboard owns the terminal nothing may be written to it, so
    interactive runs only log when a log file is configured.
    """
    root = logging.getLogger("sysindex")
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    root.propagate = False

    if log_file:
        handler: logging.Handler = logging.FileHandler(
            Path(log_file).expanduser(), encoding="utf-8"
        )
        root.setLevel(getattr(logging, level.upper(), logging.INFO))
    elif interactive:
        handler = logging.NullHandler()
    else:
        handler = logging.StreamHandler(sys.stderr)
        root.setLevel(logging.WARNING)

    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root.addHandler(handler)
