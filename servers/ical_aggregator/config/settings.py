"""
Runtime configuration.

Defaults come from get_default_config(); a JSON file and ICAL_* environment
variables override them, in that order.
"""

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import structlog

log = structlog.get_logger(__name__)

FORMATS = ("csv", "html", "json")

# Environment variable -> (section, key, type)
ENV_OVERRIDES = {
    "ICAL_FETCH_TIMEOUT": ("fetch", "timeout_seconds", float),
    "ICAL_USER_AGENT": ("fetch", "user_agent", str),
    "ICAL_DEFAULT_FORMAT": ("output", "default_format", str),
    "ICAL_HTML_WINDOW_DAYS": ("output", "html_window_days", int),
    "ICAL_DEDUP_THRESHOLD": ("deduplication", "threshold", float),
}


def get_default_config() -> dict[str, Any]:
    """Return default config."""
    return {
        "fetch": {
            "timeout_seconds": 30.0,
            "user_agent": "ical-aggregator/1.0 (community events calendar)",
        },
        "output": {
            "default_format": "csv",
            "html_window_days": 7,
            "summary_max_length": 55,
        },
        "deduplication": {
            "enabled": True,
            "threshold": 0.9,
        },
        "single_feed": {
            "require_https": False,
            "resolve_dns": True,
        },
        "sources_file": None,
    }


def _merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Merge overrides into base one section deep."""
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            base[key].update(value)
        else:
            base[key] = value
    return base


def load_config(
    path: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> dict[str, Any]:
    """
    Build the effective config.

    Args:
        path: Optional JSON config file
        environ: Environment to read ICAL_* overrides from (os.environ by default)

    Returns:
        Config dict

    Raises:
        ValueError: If the resulting config is invalid
    """
    environ = os.environ if environ is None else environ
    config = get_default_config()

    if path is not None:
        _merge(config, json.loads(Path(path).read_text(encoding="utf-8")))
        log.info("config_file_loaded", path=str(path))

    for name, (section, key, cast) in ENV_OVERRIDES.items():
        if name in environ:
            try:
                config[section][key] = cast(environ[name])
            except ValueError as e:
                raise ValueError(f"Invalid value for {name}: {environ[name]!r}") from e

    if "ICAL_SOURCES_FILE" in environ:
        config["sources_file"] = environ["ICAL_SOURCES_FILE"]

    errors = validate_config(config)
    if errors:
        raise ValueError("Invalid configuration: " + "; ".join(errors))

    return config


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: dict[str, Any]) -> list[str]:
    """
    Validate config and return list of errors.

    Returns:
        List of error messages (empty if valid)
    """
    errors: list[str] = []
    output = config.get("output", {})

    timeout = config.get("fetch", {}).get("timeout_seconds", 30.0)
    if not _is_number(timeout):
        errors.append(f"Invalid fetch timeout: {timeout!r} (must be a number)")
    elif timeout <= 0:
        errors.append(f"Invalid fetch timeout: {timeout} (must be positive)")

    default_format = output.get("default_format", "csv")
    if default_format not in FORMATS:
        errors.append(f"Invalid default format: {default_format} (expected one of {', '.join(FORMATS)})")

    window = output.get("html_window_days", 7)
    if not isinstance(window, int) or isinstance(window, bool):
        errors.append(f"Invalid HTML window: {window!r} (must be a whole number of days)")
    elif window < 1:
        errors.append(f"Invalid HTML window: {window} days (must be at least 1)")

    max_length = output.get("summary_max_length", 55)
    if not isinstance(max_length, int) or isinstance(max_length, bool):
        errors.append(f"Invalid summary length: {max_length!r} (must be a whole number)")
    elif max_length < 1:
        errors.append(f"Invalid summary length: {max_length} (must be at least 1)")

    threshold = config.get("deduplication", {}).get("threshold", 0.9)
    if not _is_number(threshold):
        errors.append(f"Invalid deduplication threshold: {threshold!r} (must be a number)")
    elif not 0 < threshold <= 1:
        errors.append(f"Invalid deduplication threshold: {threshold} (must be 0-1)")

    return errors
