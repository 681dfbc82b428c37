"""Balance configuration.

- balance_config.py: BalanceConfig and its section dataclasses
- config_loader.py: YAML loading and path resolution
"""

from .balance_config import (
    BalanceConfig,
    StaminaCosts,
    CharacterDefaults,
    ArenaConfig,
    TurnConfig,
    LogConfig,
)
from .config_loader import (
    DEFAULT_CONFIG_PATH,
    load_balance_config,
    load_balance_config_from_string,
    resolve_config_path,
)

__all__ = [
    "BalanceConfig",
    "StaminaCosts",
    "CharacterDefaults",
    "ArenaConfig",
    "TurnConfig",
    "LogConfig",
    "DEFAULT_CONFIG_PATH",
    "load_balance_config",
    "load_balance_config_from_string",
    "resolve_config_path",
]
