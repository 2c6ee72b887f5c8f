"""Centralized configuration loading for patchable.

This module provides utilities for loading and accessing configuration from
patchable.json with support for environment variable fallbacks and default values.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_CONFIG_PATH = "patchable.json"

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load configuration from JSON file.

    Returns empty dict if file doesn't exist or is invalid.

    Args:
        config_path: Path to config file (default: "patchable.json")

    Returns:
        Configuration dictionary, or empty dict if file not found/invalid
    """
    path = Path(config_path)

    if not path.exists():
        return {}

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError):
        # Return empty dict on error, allowing code to use defaults
        return {}

    return data if isinstance(data, dict) else {}


def get_config_value(
    keys: List[str], default: Any = None, config: Optional[Dict[str, Any]] = None
) -> Any:
    """Get nested configuration value with fallback to environment variable.

    Supports keys like ["patchable", "strict"]. Also checks environment
    variables as fallback (e.g., PATCHABLE_STRICT for patchable.strict).

    Args:
        keys: List of keys to traverse (e.g., ["patchable", "patch_suffix"])
        default: Default value if key not found
        config: Optional config dict (uses load_config() if not provided)

    Returns:
        Configuration value, or default if not found
    """
    if config is None:
        config = load_config()

    value = config
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
            if value is None:
                break
        else:
            value = None
            break

    if value is not None:
        return value

    env_key = "_".join(k.upper() for k in keys)
    env_value = os.environ.get(env_key)
    if env_value is not None:
        return env_value

    return default


def get_config_flag(
    keys: List[str], default: bool = False, config: Optional[Dict[str, Any]] = None
) -> bool:
    """Get a boolean configuration value.

    Environment variables arrive as strings, so "true"/"false", "1"/"0",
    "yes"/"no" and "on"/"off" are accepted (case-insensitive).

    Args:
        keys: List of keys to traverse
        default: Value used when the key is missing or unparseable
        config: Optional config dict (uses load_config() if not provided)

    Returns:
        Parsed boolean flag
    """
    value = get_config_value(keys, default=None, config=config)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    return default
