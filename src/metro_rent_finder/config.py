"""Configuration loader for the rent finder."""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "./config/config.yaml"

DEFAULTS: Dict[str, Any] = {
    "upstream": {
        "source": "nobroker",
        "base_url": "https://www.nobroker.in/api/v3/multi/property/RENT/filter",
        "nearby_url": "https://www.nobroker.in/api/v3/property/{listing_id}/nearby",
        "city": "bangalore",
        "timeout": 30,
        "max_pages": 20,
        "fallback_page_size": 26,
        "max_workers": 8,
    },
    "search": {
        "radius": 2.0,
        "types": ["BHK2", "BHK1", "BHK3", "BHK4PLUS"],
        "proximity_threshold": 0.02,
        "default_cluster": "purple_east",
    },
    "wishlist": {
        "path": "./data/wishlist.json",
    },
    "logging": {
        # None falls back to the LOG_LEVEL env var, then INFO
        "level": None,
        "dir": "./logs",
    },
    # None means the built-in Bangalore metro clusters
    "clusters": None,
}


def load_config(config_path: Optional[str] = None, required: bool = False) -> Dict[str, Any]:
    """
    Load configuration from YAML file and environment variables.

    Values from the file are merged over built-in defaults, so every key
    is optional.

    Args:
        config_path: Path to the YAML configuration file. Defaults to the
                     METRO_RENT_CONFIG env var, then ./config/config.yaml
        required: If True, a missing file is an error

    Returns:
        Dictionary containing merged configuration

    Raises:
        FileNotFoundError: If required and the config file doesn't exist
        ValueError: If config is invalid
    """
    load_dotenv()

    config_path = config_path or os.getenv("METRO_RENT_CONFIG", DEFAULT_CONFIG_PATH)
    config_file = Path(config_path)

    file_config: Dict[str, Any] = {}
    if config_file.exists():
        with open(config_file, "r") as f:
            file_config = yaml.safe_load(f) or {}
    elif required:
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n"
            f"Copy config/config.example.yaml to config/config.yaml and customize it."
        )
    else:
        logger.info(f"No config file at {config_path}, using defaults")

    if not isinstance(file_config, dict):
        raise ValueError(f"Configuration must be a mapping, got {type(file_config).__name__}")

    config = _merge(copy.deepcopy(DEFAULTS), file_config)
    _validate_config(config)
    return config


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def _validate_config(config: Dict[str, Any]) -> None:
    """Validate configuration structure."""
    for section in ("upstream", "search", "wishlist", "logging"):
        if not isinstance(config.get(section), dict):
            raise ValueError(f"Missing required config section: {section}")

    upstream = config["upstream"]
    if int(upstream["max_pages"]) < 1:
        raise ValueError("upstream.max_pages must be at least 1")
    if int(upstream["fallback_page_size"]) < 1:
        raise ValueError("upstream.fallback_page_size must be at least 1")
    if int(upstream["max_workers"]) < 1:
        raise ValueError("upstream.max_workers must be at least 1")

    level = config["logging"].get("level")
    if level is not None and not isinstance(logging.getLevelName(str(level).upper()), int):
        raise ValueError(f"logging.level is not a logging level: {level}")

    search = config["search"]
    if float(search["radius"]) <= 0:
        raise ValueError("search.radius must be positive")
    if float(search["proximity_threshold"]) <= 0:
        raise ValueError("search.proximity_threshold must be positive")

    clusters = config.get("clusters")
    if clusters is not None:
        if not isinstance(clusters, list) or not clusters:
            raise ValueError("clusters must be a non-empty list when set")
        for cluster in clusters:
            if "id" not in cluster or not cluster.get("locations"):
                raise ValueError("Each cluster needs an id and at least one location")


def get_env(key: str, default: str = None, required: bool = False) -> str:
    """
    Get environment variable with optional default and required check.

    Args:
        key: Environment variable name
        default: Default value if not set
        required: If True, raise error when not set

    Returns:
        Environment variable value

    Raises:
        ValueError: If required and not set
    """
    value = os.getenv(key, default)
    if required and not value:
        raise ValueError(f"Required environment variable not set: {key}")
    return value
