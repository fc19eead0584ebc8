"""
presence/policy.py

Pure decision rules for where the bot should sit and what to do when the
designated user moves. No Discord calls here; the router feeds in live
counts and channel IDs.
"""

from __future__ import annotations
from enum import Enum, auto
from typing import Optional

# Delays in seconds
SETTLE_DELAY   = 1.0   # let Discord finish updating voice states
RECOVERY_DELAY = 5.0   # after a drop or transport error
RELOCATE_DELAY = 0.5   # before moving the designated user


def choose_channel(
    human_count: int,
    current_target: Optional[int],
    main_channel_id: int,
    waiting_area_id: int,
) -> Optional[int]:
    """
    Return the channel the bot should join, or None to stay where it is.

        1 human in main      -> main (keep them company)
        2+ humans in main    -> waiting area (they can talk without us)
        0 humans, bot in main -> stay
        0 humans otherwise   -> waiting area
    """
    if human_count == 1:
        return main_channel_id
    if human_count >= 2:
        return waiting_area_id
    if current_target == main_channel_id:
        return None
    return waiting_area_id


class DesignatedAction(Enum):
    NONE     = auto()
    RELOCATE = auto()   # move them back to main, then re-check
    RECHECK  = auto()   # just re-run the routing policy


def classify_designated_move(
    before_id: Optional[int],
    after_id: Optional[int],
    main_channel_id: int,
) -> DesignatedAction:
    """Decide how to react to a voice state change of the designated user."""
    if before_id is None and after_id is not None:
        if after_id == main_channel_id:
            return DesignatedAction.RECHECK
        return DesignatedAction.RELOCATE

    if before_id is not None and after_id is not None and before_id != after_id:
        # Switching into main needs no move, and triggers no re-check either
        if after_id == main_channel_id:
            return DesignatedAction.NONE
        return DesignatedAction.RELOCATE

    if before_id is not None and after_id is None and before_id == main_channel_id:
        return DesignatedAction.RECHECK

    return DesignatedAction.NONE
