"""Rally Tactics: combat resolution and turn scheduling for a tactical duel game."""
