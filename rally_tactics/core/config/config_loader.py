"""
Configuration loader for balance files.

This module handles loading and parsing of YAML balance files into a
validated BalanceConfig.
"""
import os
from pathlib import Path
from typing import Optional

import yaml

from .balance_config import BalanceConfig
from ..errors import ConfigError

DEFAULT_CONFIG_PATH = "assets/config/balance.yaml"


def resolve_config_path(config_path: Optional[str] = None) -> Path:
    """Resolve a config path, treating relative paths as project-root relative."""
    config_path = config_path or DEFAULT_CONFIG_PATH
    if os.path.isabs(config_path):
        return Path(config_path)
    project_root = Path(__file__).parent.parent.parent.parent
    return project_root / config_path


def load_balance_config(config_path: Optional[str] = None) -> BalanceConfig:
    """
    Load a balance configuration from a YAML file.

    Args:
        config_path: Path to the YAML file (defaults to the shipped balance file)

    Returns:
        BalanceConfig: The validated configuration

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigError: If the file is not a mapping or fails validation
    """
    config_file = resolve_config_path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_file}")

    with open(config_file, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError([f"{config_file}: {e}"]) from e

    if not isinstance(data, dict):
        raise ConfigError([f"{config_file}: top level must be a mapping"])

    return BalanceConfig.from_dict(data)


def load_balance_config_from_string(text: str) -> BalanceConfig:
    """Parse YAML text into a validated BalanceConfig."""
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError([str(e)]) from e
    if not isinstance(data, dict):
        raise ConfigError(["top level must be a mapping"])
    return BalanceConfig.from_dict(data)
