"""Engine-independent building blocks: data types, dice, config, events and errors."""
