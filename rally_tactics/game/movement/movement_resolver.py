"""
Dice-based movement for combatants.

A movement is resolved in two steps: calculate_movement rolls the distance
and returns a MovementEnvelope listing every reachable tile, then
execute_movement commits one of those tiles. Drivers can show the envelope
to a player between the two calls.
"""
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import numpy as np

from ...core.config import BalanceConfig
from ...core.data import ArenaBounds, MovementType, Vector2, MOVEMENT_TYPE_NAMES
from ...core.dice import DiceResult, RandomSource
from ...core.errors import CombatContractError, require
from ...core.events import CombatantMoved, LogMessage

if TYPE_CHECKING:
    from ...core.events import EventManager
    from ..combat.outcomes import EvadeResult
    from ..entities.combatant import Combatant


@dataclass
class MovementEnvelope:
    """The set of tiles a combatant may move to for one movement.

    Attributes:
        character: The combatant that will move
        kind: Simple, dash or evasion
        roll: Dice rolled for the distance (None for evasion)
        max_distance: Largest Manhattan distance allowed
        stamina_cost: Stamina charged on execution
        allows_second_action: Whether the turn continues after moving
        origin: Position the envelope was computed from
        valid_positions: In-bounds tiles at distance 1..max_distance
        final_position: Destination once executed
        actual_distance: Distance travelled once executed
        expired: Set once the turn that produced the envelope has ended
    """
    character: "Combatant"
    kind: MovementType
    roll: Optional[DiceResult]
    max_distance: int
    stamina_cost: int
    allows_second_action: bool
    origin: Vector2
    valid_positions: frozenset[Vector2] = field(default_factory=frozenset)
    final_position: Optional[Vector2] = None
    actual_distance: int = 0
    expired: bool = False

    @property
    def executed(self) -> bool:
        return self.final_position is not None

    def can_reach(self, position: Vector2) -> bool:
        """Check if position is one of the valid destinations."""
        return position in self.valid_positions

    def expire(self) -> None:
        """Invalidate an unused envelope so it can no longer be executed."""
        self.expired = True

    def __str__(self) -> str:
        roll = f" {self.roll}" if self.roll else ""
        return (f"{MOVEMENT_TYPE_NAMES[self.kind]}{roll}: up to {self.max_distance} tiles, "
                f"{len(self.valid_positions)} destinations")


@dataclass(frozen=True)
class MovementOutcome:
    """Result of executing a movement envelope."""
    success: bool
    message: str
    envelope: Optional[MovementEnvelope] = None
    from_position: Optional[Vector2] = None
    to_position: Optional[Vector2] = None
    distance: int = 0


class MovementResolver:
    """Rolls movement distances and relocates combatants within the arena."""

    def __init__(
        self,
        dice: RandomSource,
        bounds: Optional[ArenaBounds] = None,
        config: Optional[BalanceConfig] = None,
        event_manager: Optional["EventManager"] = None,
    ):
        """Initialize the resolver.

        Args:
            dice: Source of movement rolls
            bounds: Arena bounds (taken from config.arena if omitted)
            config: Balance configuration (defaults apply if omitted)
            event_manager: Optional bus for movement events and log messages
        """
        self.dice = require(dice, "dice")
        self.config = config or BalanceConfig()
        self.bounds = bounds or self.config.arena.to_bounds()
        self.event_manager = event_manager
        self.round_number = 0

    def calculate_movement(self, character: "Combatant", kind: MovementType) -> MovementEnvelope:
        """Roll a movement distance and compute the reachable tiles.

        Simple movement rolls one die and leaves room for a second action;
        a dash rolls two and ends the turn. Both cost the move stamina cost,
        charged only when the envelope is executed.

        Args:
            character: The combatant that will move
            kind: MovementType.SIMPLE or MovementType.DASH

        Raises:
            CombatContractError: If character is None or kind is not simple or dash
        """
        require(character, "character")
        if kind == MovementType.SIMPLE:
            roll = self.dice.roll_one("movement")
            allows_second_action = True
        elif kind == MovementType.DASH:
            roll = self.dice.roll_two("dash")
            allows_second_action = False
        else:
            raise CombatContractError(f"Unsupported movement kind for calculate_movement: {kind}")

        max_distance = roll.total + character.movement
        envelope = MovementEnvelope(
            character=character,
            kind=kind,
            roll=roll,
            max_distance=max_distance,
            stamina_cost=self.config.stamina_costs.move,
            allows_second_action=allows_second_action,
            origin=Vector2(character.position.y, character.position.x),
            valid_positions=self._reachable_positions(character.position, max_distance),
        )
        self._emit_log(f"{character.name}: {envelope}")
        return envelope

    def calculate_evasion_movement(self, character: "Combatant", evade_result: "EvadeResult") -> MovementEnvelope:
        """Build the free reposition granted by a successful evade.

        The distance comes from the evade roll; nothing is re-rolled and the
        move costs no stamina.

        Raises:
            CombatContractError: If an argument is None, the evade failed, or
                the result belongs to another combatant
        """
        require(character, "character")
        require(evade_result, "evade_result")
        if not evade_result.evaded:
            raise CombatContractError("A failed evade grants no movement")
        if evade_result.defender_id != character.combatant_id:
            raise CombatContractError(f"Evade result does not belong to {character.name}")

        max_distance = evade_result.movement_distance
        return MovementEnvelope(
            character=character,
            kind=MovementType.EVASION,
            roll=None,
            max_distance=max_distance,
            stamina_cost=0,
            allows_second_action=False,
            origin=Vector2(character.position.y, character.position.x),
            valid_positions=self._reachable_positions(character.position, max_distance),
        )

    def execute_movement(self, envelope: MovementEnvelope, target: Vector2) -> MovementOutcome:
        """Move the envelope's combatant to target.

        Nothing changes on failure: the target must be a valid destination,
        the envelope unused and unexpired, the combatant alive, still at the envelope's
        origin and able to pay the stamina cost.

        Raises:
            CombatContractError: If envelope or target is None
        """
        require(envelope, "envelope")
        require(target, "target")
        character = envelope.character

        if envelope.executed:
            return MovementOutcome(False, "Movement has already been executed", envelope)
        if envelope.expired:
            return MovementOutcome(False, "Movement is no longer available", envelope)
        if not character.is_alive:
            return MovementOutcome(False, f"{character.name} is defeated and cannot move", envelope)
        if character.position != envelope.origin:
            return MovementOutcome(False, f"{character.name} has moved since this movement was rolled", envelope)
        if not envelope.can_reach(target):
            return MovementOutcome(
                False,
                f"{target} is not within {envelope.max_distance} tiles of {envelope.origin} inside the arena",
                envelope,
            )
        if not character.use_stamina(envelope.stamina_cost):
            return MovementOutcome(
                False,
                f"{character.name} needs {envelope.stamina_cost} stamina to move (has {character.current_stamina})",
                envelope,
            )

        origin = character.position
        distance = origin.manhattan_distance_to(target)
        character.position = target
        envelope.final_position = target
        envelope.actual_distance = distance

        message = f"{character.name} moves {origin} -> {target} ({distance} tiles, {MOVEMENT_TYPE_NAMES[envelope.kind]})"
        if self.event_manager is not None:
            self.event_manager.publish(
                CombatantMoved(self.round_number, character, origin, envelope.kind, distance),
                source="MovementResolver",
            )
        self._emit_log(message)
        return MovementOutcome(True, message, envelope, origin, target, distance)

    def _reachable_positions(self, center: Vector2, max_distance: int) -> frozenset[Vector2]:
        """Vectorized Manhattan ring 1..max_distance, clipped to the arena."""
        if max_distance < 1:
            return frozenset()

        grid = self.bounds.grid_around(center, max_distance)
        if grid is None:
            return frozenset()

        y_coords, x_coords = grid
        distances = np.abs(y_coords - center.y) + np.abs(x_coords - center.x)
        range_mask = (distances >= 1) & (distances <= max_distance)

        positions = np.column_stack((y_coords[range_mask], x_coords[range_mask])).astype(np.int16)
        return frozenset(Vector2.from_numpy(row) for row in positions)

    def _emit_log(self, message: str, category: str = "MOVEMENT", level: str = "INFO") -> None:
        """Emit a log message event."""
        if self.event_manager is None:
            return
        self.event_manager.publish(
            LogMessage(
                round_number=self.round_number,
                message=message,
                category=category,
                level=level,
                source="MovementResolver",
            ),
            source="MovementResolver",
        )
