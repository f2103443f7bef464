"""
Process-wide flag states for callback handlers.

Flags decide how object-owning targets are stored. They are read once, when a
handler is constructed, so changing them never affects existing handlers.
"""

from typing import TypedDict


class FlagStates(TypedDict):
    """Snapshot of the current flag states."""

    weak_references: bool
    """Store object-owning targets through weak references."""

    require_weak_references: bool
    """
    Fail construction when an owner cannot be weakly referenced, instead of
    falling back to a strong reference.
    """

    warn_on_strong_reference: bool
    """Log a warning whenever an owner ends up strongly referenced."""


_FLAG_STATES: FlagStates = {
    "weak_references": True,
    "require_weak_references": False,
    "warn_on_strong_reference": True,
}


def set_flag_states(
    weak_references: bool = True,
    require_weak_references: bool = False,
    warn_on_strong_reference: bool = True,
) -> None:
    """
    Set the flags used by handlers constructed from now on.
    Calling with no arguments restores the defaults.

    Args:
        weak_references:           if True, bound methods and callable objects
                                   are held weakly;
        require_weak_references:   if True, an owner that cannot be weakly
                                   referenced makes construction fail;
        warn_on_strong_reference:  if True, log a warning when an owner is
                                   held strongly.
    """
    _FLAG_STATES["weak_references"] = weak_references
    _FLAG_STATES["require_weak_references"] = require_weak_references
    _FLAG_STATES["warn_on_strong_reference"] = warn_on_strong_reference


def get_flag_states() -> FlagStates:
    """Return a copy of the current flag states."""
    return FlagStates(**_FLAG_STATES)
