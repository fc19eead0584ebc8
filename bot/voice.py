"""
bot/voice.py
Owns the bot's single voice connection in the configured guild.
Counts humans in a channel, joins a channel idempotently and moves
members between channels. Every Discord call is wrapped so failures are
logged and returned as None/False instead of raised.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Callable, Optional

import discord

from bot.state import ConnectionState

log = logging.getLogger("greeter.voice")


class VoiceManager:
    """Manages the bot's voice connection and member moves."""

    CONNECT_TIMEOUT = 30.0

    def __init__(self, bot: discord.Client, guild_id: int,
                 on_transport_error: Optional[Callable[[], None]] = None):
        self.bot        = bot
        self.guild_id   = guild_id
        self.vc: Optional[discord.VoiceClient] = None
        self.target_channel_id: Optional[int] = None
        self.state      = ConnectionState.DESTROYED
        # Called when the voice transport fails; the router re-checks later.
        self.on_transport_error = on_transport_error
        # Channels we left on purpose, so our own leave is not seen as a drop
        self._released: set[int] = set()

    # ──────────────────────────────────────────
    # Lookups
    # ──────────────────────────────────────────

    def _get_guild(self) -> Optional[discord.Guild]:
        return self.bot.get_guild(self.guild_id)

    @property
    def current_target(self) -> Optional[int]:
        """Channel the bot is actually connected to, or None when not connected."""
        if self.vc is None or not self.state.is_live:
            return None
        # discord.py gives up on reconnects silently
        if not self.vc.is_connected():
            return None
        channel = self.vc.channel
        return channel.id if channel is not None else None

    def _set_state(self, new_state: ConnectionState) -> None:
        if new_state is self.state:
            return
        log.info("Connection state changed: %s -> %s", self.state.value, new_state.value)
        self.state = new_state

    # ──────────────────────────────────────────
    # Occupancy
    # ──────────────────────────────────────────

    def count_humans(self, channel_id: int) -> int:
        """Members connected to the channel, excluding bots. 0 if unresolvable."""
        guild = self._get_guild()
        if guild is None:
            return 0

        channel = guild.get_channel(channel_id)
        if channel is None:
            return 0
        if not isinstance(channel, discord.VoiceChannel):
            log.warning("Channel %s is not a voice channel — counting 0.", channel_id)
            return 0

        own_id = self.bot.user.id if self.bot.user else None
        return sum(1 for m in channel.members if not m.bot and m.id != own_id)

    # ──────────────────────────────────────────
    # Connection management
    # ──────────────────────────────────────────

    async def join(self, channel_id: int) -> Optional[discord.VoiceClient]:
        """
        Make sure the bot is connected to channel_id.
        Returns the existing connection when already there, a new one after
        a successful connect, or None on any failure.
        """
        guild = self._get_guild()
        if guild is None:
            log.error("Guild %s not found!", self.guild_id)
            return None

        channel = guild.get_channel(channel_id)
        if channel is None:
            log.error("Voice channel %s not found!", channel_id)
            return None
        if not isinstance(channel, discord.VoiceChannel):
            log.error("Channel %s is not a voice channel!", channel_id)
            return None

        if self.current_target == channel_id:
            log.info("Already in %s, no need to move.", channel.name)
            return self.vc

        # One connection at a time: tear down the old one before connecting
        await self.cleanup_connection()

        self.target_channel_id = channel_id
        self._released.discard(channel_id)
        self._set_state(ConnectionState.CONNECTING)
        try:
            self.vc = await channel.connect(
                timeout=self.CONNECT_TIMEOUT,
                reconnect=True,
                self_deaf=True,
                self_mute=False,
            )
        except discord.errors.ConnectionClosed as e:
            log.warning("Voice connection to %s closed (%s).", channel.name, e.code)
            self._connection_failed(transport=True)
            return None
        except asyncio.TimeoutError:
            log.warning("Timed out connecting to %s.", channel.name)
            self._connection_failed(transport=True)
            return None
        except Exception as e:
            log.error("Error joining voice channel %s: %s", channel.name, e)
            self._connection_failed(transport=False)
            return None

        self._set_state(ConnectionState.READY)
        log.info("Joined voice channel: %s", channel.name)
        return self.vc

    def _connection_failed(self, transport: bool) -> None:
        self.vc = None
        self._set_state(ConnectionState.DISCONNECTED)
        if transport and self.on_transport_error is not None:
            self.on_transport_error()

    async def cleanup_connection(self) -> None:
        """Tear down our voice client and any stale one Discord still holds."""
        clients = []
        if self.vc is not None:
            clients.append(self.vc)
        guild = self._get_guild()
        stale = guild.voice_client if guild is not None else None
        if stale is not None and stale not in clients:
            clients.append(stale)

        for vc in clients:
            channel = getattr(vc, "channel", None)
            if channel is not None:
                self._released.add(channel.id)
            try:
                await vc.disconnect(force=True)
            except Exception as e:
                log.warning("Failed to tear down voice connection: %s", e)

        self.vc = None
        if clients or self.state is not ConnectionState.DISCONNECTED:
            self._set_state(ConnectionState.DESTROYED)

    async def disconnect(self) -> bool:
        """Leave voice. Returns False (and calls nothing) when not connected."""
        if self.vc is None:
            return False
        await self.cleanup_connection()
        log.info("Left voice channel.")
        return True

    def note_disconnected(self, channel_id: int) -> bool:
        """
        Record that the bot's own voice state left channel_id.
        Returns True when the drop was involuntary, False when we caused it.
        """
        if channel_id in self._released:
            self._released.discard(channel_id)
            return False

        if self.vc is not None and self.target_channel_id == channel_id:
            self.vc = None
            self._set_state(ConnectionState.DISCONNECTED)
        return True

    def note_moved(self, channel_id: int) -> bool:
        """
        Record that the bot's own voice state switched to channel_id.
        Returns True when someone else moved us there.
        """
        if self.vc is None or channel_id == self.target_channel_id:
            return False
        log.warning("Bot was moved from %s to %s.", self.target_channel_id, channel_id)
        self.target_channel_id = channel_id
        return True

    # ──────────────────────────────────────────
    # Member moves
    # ──────────────────────────────────────────

    async def _get_member(self, guild: discord.Guild, user_id: int) -> Optional[discord.Member]:
        member = guild.get_member(user_id)
        if member is not None:
            return member
        try:
            return await guild.fetch_member(user_id)
        except discord.NotFound:
            log.error("Member %s is not in the guild.", user_id)
        except discord.HTTPException as e:
            log.error("Failed to fetch member %s: %s", user_id, e)
        return None

    async def move_member(self, user_id: int, channel_id: int) -> bool:
        """Move a member's voice session to channel_id. True on success."""
        guild = self._get_guild()
        if guild is None:
            log.error("Guild %s not found!", self.guild_id)
            return False

        member = await self._get_member(guild, user_id)
        if member is None:
            return False

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel):
            log.error("Target channel %s not found or not a voice channel.", channel_id)
            return False

        try:
            await member.move_to(channel, reason="Returning to main channel")
        except discord.Forbidden:
            log.error("Missing permission to move %s.", member.display_name)
            return False
        except discord.HTTPException as e:
            # e.g. 400 when the member is not connected to voice
            log.error("Failed to move %s: %s", member.display_name, e)
            return False

        log.info("Moved %s to %s", member.display_name, channel.name)
        return True
