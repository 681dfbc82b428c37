"""Exception types for API misuse.

Gameplay failures (not enough stamina, dead targets, unreachable tiles) are
never raised; they come back as result objects. These exceptions signal a
driver calling the core incorrectly or a broken configuration.
"""


class CombatContractError(ValueError):
    """Raised when a caller violates an operation's preconditions."""


class ConfigError(ValueError):
    """Raised when a balance configuration fails validation."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Invalid config:\n  " + "\n  ".join(self.errors))


def require(value, name: str):
    """Return value, raising CombatContractError if it is None."""
    if value is None:
        raise CombatContractError(f"{name} is required")
    return value
