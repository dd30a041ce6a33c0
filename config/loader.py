import yaml
import os
from typing import Dict, Any


def _expand(value: Any) -> Any:
    """Expand ${ENV_VAR} references inside every string of the config tree."""
    if isinstance(value, str):
        expanded = os.path.expandvars(value)
        # unset variables are left verbatim by expandvars
        if expanded.startswith("${") and expanded.endswith("}"):
            return None
        return expanded
    if isinstance(value, dict):
        return {key: _expand(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand(item) for item in value]
    return value


def load_config(config_path: str = "config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path (str): Path to the configuration file

    Returns:
        dict: Configuration dictionary
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as file:
        config = yaml.safe_load(file) or {}

    return _expand(config)

def get_database_config(config_path: str = "config.yaml") -> Dict[str, Any]:
    """
    Get database-specific configuration.

    Args:
        config_path (str): Path to the configuration file

    Returns:
        dict: Database configuration
    """
    config = load_config(config_path)
    return config.get("database", {})


def get_functions_config(config_path: str = "config.yaml") -> Dict[str, Any]:
    """
    Get handler runtime configuration (instance limits, logging).

    Args:
        config_path (str): Path to the configuration file

    Returns:
        dict: Functions configuration
    """
    config = load_config(config_path)
    return config.get("functions", {})
