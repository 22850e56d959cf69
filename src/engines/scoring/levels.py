"""
XP level derivation - pure functions over the level table.
"""

from typing import Optional, Sequence

from src.kernel.models.progress import XPLevel


def level_for_xp(total_xp: int, levels: Sequence[XPLevel]) -> Optional[XPLevel]:
    """Highest level whose xp_required is <= total_xp; None for an empty table."""
    reached = None
    for level in sorted(levels, key=lambda lvl: lvl.xp_required):
        if level.xp_required <= total_xp:
            reached = level
        else:
            break
    return reached


def next_level(total_xp: int, levels: Sequence[XPLevel]) -> Optional[XPLevel]:
    """First level still out of reach, or None at the top of the table."""
    for level in sorted(levels, key=lambda lvl: lvl.xp_required):
        if level.xp_required > total_xp:
            return level
    return None
