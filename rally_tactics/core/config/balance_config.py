"""
Balance configuration for combat, movement and turn flow.

This module holds every tunable number the rules engine uses, grouped into
small dataclasses. A BalanceConfig is built once (from defaults or a YAML
file) and handed to each resolver at construction; nothing reads it from a
global.
"""
from dataclasses import dataclass, field, fields, asdict
from typing import Any

from ..data import ArenaBounds
from ..errors import ConfigError


@dataclass
class StaminaCosts:
    """Stamina spent by each stamina-gated action."""
    attack: int = 3
    defend: int = 2
    evade: int = 1
    move: int = 1


@dataclass
class CharacterDefaults:
    """Starting resources and base attribute value for new combatants."""
    health: int = 100
    stamina: int = 20
    stat_value: int = 10


@dataclass
class ArenaConfig:
    """Rectangular arena size used for movement bounds."""
    width: int = 16
    height: int = 16

    def to_bounds(self) -> ArenaBounds:
        return ArenaBounds(self.width, self.height)


@dataclass
class TurnConfig:
    """Turn flow limits."""
    max_actions_base: int = 1
    max_actions_after_move: int = 2
    forced_rest_restore: int = 5
    max_skip_attempts: int = 10


@dataclass
class LogConfig:
    """Capacities of the bounded history buffers."""
    combat_log_capacity: int = 50
    turn_history_capacity: int = 100
    log_buffer_capacity: int = 1000


_SECTIONS = {
    "stamina_costs": StaminaCosts,
    "characters": CharacterDefaults,
    "arena": ArenaConfig,
    "turns": TurnConfig,
    "logging": LogConfig,
}


@dataclass
class BalanceConfig:
    """Complete balance configuration.

    Attributes:
        stamina_costs: Costs of attack, defend, evade and move
        rest_stamina_restore: Stamina recovered by a voluntary rest
        attack_range: Maximum Chebyshev distance for a normal attack
        counter_maximum: Size of each combatant's counter gauge
        characters: Defaults for newly created combatants
        arena: Arena dimensions
        turns: Turn flow limits
        logging: History buffer capacities
    """
    stamina_costs: StaminaCosts = field(default_factory=StaminaCosts)
    rest_stamina_restore: int = 5
    attack_range: int = 1
    counter_maximum: int = 6
    characters: CharacterDefaults = field(default_factory=CharacterDefaults)
    arena: ArenaConfig = field(default_factory=ArenaConfig)
    turns: TurnConfig = field(default_factory=TurnConfig)
    logging: LogConfig = field(default_factory=LogConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BalanceConfig":
        """Build and validate a config from a nested mapping.

        Missing keys keep their defaults. Unknown keys are reported together
        with any validation errors.

        Raises:
            ConfigError: If keys are unknown or values are out of range
        """
        errors: list[str] = []
        kwargs: dict[str, Any] = {}
        scalar_names = {f.name for f in fields(cls)} - set(_SECTIONS)

        for key, value in (data or {}).items():
            if key in _SECTIONS:
                section_cls = _SECTIONS[key]
                if not isinstance(value, dict):
                    errors.append(f"{key} must be a mapping")
                    continue
                allowed = {f.name for f in fields(section_cls)}
                unknown = sorted(set(value) - allowed)
                for name in unknown:
                    errors.append(f"{key}.{name} is not a known setting")
                kwargs[key] = section_cls(**{k: v for k, v in value.items() if k in allowed})
            elif key in scalar_names:
                kwargs[key] = value
            else:
                errors.append(f"{key} is not a known setting")

        config = cls(**kwargs)
        errors.extend(config.collect_errors())
        if errors:
            raise ConfigError(errors)
        return config

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def collect_errors(self) -> list[str]:
        """Return a list of human-readable validation errors."""
        errors: list[str] = []

        def check_int(path: str, value: Any, minimum: int) -> None:
            if not isinstance(value, int) or isinstance(value, bool):
                errors.append(f"{path} must be an integer")
            elif value < minimum:
                errors.append(f"{path} must be >= {minimum}")

        # Combat
        check_int("stamina_costs.attack", self.stamina_costs.attack, 0)
        check_int("stamina_costs.defend", self.stamina_costs.defend, 0)
        check_int("stamina_costs.evade", self.stamina_costs.evade, 0)
        check_int("stamina_costs.move", self.stamina_costs.move, 0)
        check_int("rest_stamina_restore", self.rest_stamina_restore, 1)
        check_int("attack_range", self.attack_range, 1)
        check_int("counter_maximum", self.counter_maximum, 1)

        # Characters
        check_int("characters.health", self.characters.health, 1)
        check_int("characters.stamina", self.characters.stamina, 1)
        check_int("characters.stat_value", self.characters.stat_value, 0)

        # Arena
        check_int("arena.width", self.arena.width, 1)
        check_int("arena.height", self.arena.height, 1)

        # Turns
        check_int("turns.max_actions_base", self.turns.max_actions_base, 1)
        check_int("turns.max_actions_after_move", self.turns.max_actions_after_move, 1)
        check_int("turns.forced_rest_restore", self.turns.forced_rest_restore, 1)
        check_int("turns.max_skip_attempts", self.turns.max_skip_attempts, 1)
        if (isinstance(self.turns.max_actions_base, int)
                and isinstance(self.turns.max_actions_after_move, int)
                and self.turns.max_actions_after_move < self.turns.max_actions_base):
            errors.append("turns.max_actions_after_move must be >= turns.max_actions_base")

        # Logging
        check_int("logging.combat_log_capacity", self.logging.combat_log_capacity, 1)
        check_int("logging.turn_history_capacity", self.logging.turn_history_capacity, 1)
        check_int("logging.log_buffer_capacity", self.logging.log_buffer_capacity, 1)

        return errors

    def validate(self) -> None:
        """Raise ConfigError if any setting is out of range."""
        errors = self.collect_errors()
        if errors:
            raise ConfigError(errors)
