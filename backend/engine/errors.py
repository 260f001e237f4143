"""
Dice engine exceptions.
Configuration errors and undo preconditions are separate so callers can
disable an undo button instead of reporting a broken setup.
"""


class DiceError(Exception):
    """Base exception for all dice engine errors."""


class DiceConfigError(DiceError, ValueError):
    """Invalid parameters, unknown mode, or a structurally invalid dice state."""


class UndoUnavailableError(DiceError):
    """Raised when there is no roll left to undo."""


class RandomSourceUnavailableError(DiceError, RuntimeError):
    """Raised when the host has no cryptographically strong random source."""
