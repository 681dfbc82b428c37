"""Game rules: combatants, combat and movement resolution, turn scheduling."""
