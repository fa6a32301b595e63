"""Read PlayStation 2 disc images, identify their games and edit per-game Open PS2 Loader configuration."""

__version__ = "0.1.0"