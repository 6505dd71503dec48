import json
import os
from typing import Any, Dict, Optional

CONFIG_PATH_ENV = "SPOTIFY_MCP_CONFIG"
CONFIG_PATH = "config.json"

# Default configuration values
DEFAULT_CONFIG = {
    # Outbound request gating (100 requests per minute = 600ms between requests)
    "rate_limit_delay_ms": 600,

    # Refresh the app token this long before Spotify says it expires
    "token_refresh_margin_seconds": 60,

    # Market used for artist top tracks
    "market": "US",

    # HTTP
    "request_timeout": 30.0,
    "spotify_api_base_url": "https://api.spotify.com/v1",
    "spotify_accounts_base_url": "https://accounts.spotify.com",

    # Logging (always stderr; log_file is an optional extra sink)
    "log_level": "INFO",
    "log_file": "",
}

# Validation rules for config fields
CONFIG_SCHEMA = {
    "rate_limit_delay_ms": {"type": int, "required": True, "min": 0, "max": 60000},
    "token_refresh_margin_seconds": {"type": (int, float), "required": True, "min": 0, "max": 600},
    "market": {"type": str, "required": True, "length": 2},
    "request_timeout": {"type": (int, float), "required": True, "min": 1, "max": 300},
    "spotify_api_base_url": {"type": str, "required": True, "prefix": "http"},
    "spotify_accounts_base_url": {"type": str, "required": True, "prefix": "http"},
    "log_level": {"type": str, "required": False, "choices": ["DEBUG", "INFO", "WARNING", "ERROR"]},
    "log_file": {"type": str, "required": False},
}


def get_config_path() -> str:
    return os.environ.get(CONFIG_PATH_ENV) or CONFIG_PATH


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from file, applying defaults for missing fields.

    A missing file is not an error: the defaults are returned. Invalid JSON
    raises json.JSONDecodeError; values that fail validation raise ValueError.
    """
    path = path or get_config_path()

    config: Dict[str, Any] = {}
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            config = json.load(f)
        if not isinstance(config, dict):
            raise ValueError(f"Config file {path} must contain a JSON object.")

    # Apply defaults for missing fields
    for key, value in DEFAULT_CONFIG.items():
        if key not in config:
            config[key] = value

    if isinstance(config.get("log_level"), str):
        config["log_level"] = config["log_level"].upper()

    is_valid, errors = validate_config(config)
    if not is_valid:
        raise ValueError(f"Invalid configuration in {path}: {'; '.join(errors)}")

    return config


def validate_config(config: Dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate configuration against schema.
    Returns (is_valid, list_of_errors).
    """
    errors = []

    for key, rules in CONFIG_SCHEMA.items():
        # Check required fields
        if rules.get("required", False) and key not in config:
            errors.append(f"Missing required field: {key}")
            continue

        if key not in config:
            continue

        value = config[key]

        # Type check (bool is an int subclass; never accept it for numbers)
        expected_type = rules.get("type")
        if expected_type and (not isinstance(value, expected_type) or isinstance(value, bool)):
            type_names = expected_type.__name__ if not isinstance(expected_type, tuple) else "/".join(t.__name__ for t in expected_type)
            errors.append(f"Field '{key}' must be {type_names}, got {type(value).__name__}")
            continue

        # Choices check
        if "choices" in rules and value not in rules["choices"]:
            errors.append(f"Field '{key}' must be one of {rules['choices']}, got '{value}'")

        if "length" in rules and len(value) != rules["length"]:
            errors.append(f"Field '{key}' must be {rules['length']} characters, got '{value}'")

        if "prefix" in rules and not value.startswith(rules["prefix"]):
            errors.append(f"Field '{key}' must start with '{rules['prefix']}', got '{value}'")

        # Range check for numeric values
        if isinstance(value, (int, float)):
            if "min" in rules and value < rules["min"]:
                errors.append(f"Field '{key}' must be >= {rules['min']}, got {value}")
            if "max" in rules and value > rules["max"]:
                errors.append(f"Field '{key}' must be <= {rules['max']}, got {value}")

    return len(errors) == 0, errors
