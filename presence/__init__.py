"""Presence package __init__.py"""
from .policy import DesignatedAction, choose_channel, classify_designated_move
from .router import PresenceRouter
from .scheduler import TaskScheduler

__all__ = [
    "DesignatedAction", "choose_channel", "classify_designated_move",
    "PresenceRouter", "TaskScheduler",
]
