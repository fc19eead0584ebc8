"""
bot/state.py

Lifecycle of the bot's single voice connection.
Owned and advanced by VoiceManager; read by the presence router.
"""

from __future__ import annotations
from enum import Enum


class ConnectionState(Enum):
    CONNECTING   = "connecting"
    READY        = "ready"
    DISCONNECTED = "disconnected"   # dropped by Discord, not by us
    DESTROYED    = "destroyed"      # torn down on purpose

    @property
    def is_live(self) -> bool:
        return self in (ConnectionState.CONNECTING, ConnectionState.READY)
