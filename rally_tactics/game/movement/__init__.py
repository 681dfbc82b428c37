"""Movement envelopes and repositioning."""

from .movement_resolver import MovementEnvelope, MovementOutcome, MovementResolver

__all__ = [
    "MovementEnvelope",
    "MovementOutcome",
    "MovementResolver",
]
