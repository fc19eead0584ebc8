"""
presence/router.py

Decides which voice channel the bot should be in and keeps it there.
Driven by Discord events (via bot/events.py) and chat commands
(via bot/commands.py). All joins and leaves go through one lock so two
evaluations never interleave their disconnect/connect steps.
"""

from __future__ import annotations
import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from .policy import (
    RECOVERY_DELAY, RELOCATE_DELAY, SETTLE_DELAY,
    DesignatedAction, choose_channel, classify_designated_move,
)
from .scheduler import TaskScheduler

if TYPE_CHECKING:
    from bot.config import Settings
    from bot.voice import VoiceManager

log = logging.getLogger("greeter.router")


class PresenceRouter:
    def __init__(self, voice: VoiceManager, settings: Settings,
                 scheduler: Optional[TaskScheduler] = None):
        self.voice     = voice
        self.settings  = settings
        self.scheduler = scheduler or TaskScheduler()
        self._lock     = asyncio.Lock()
        self.voice.on_transport_error = self._on_transport_error

    @property
    def main_channel_id(self) -> int:
        return self.settings.main_channel_id

    @property
    def waiting_area_id(self) -> int:
        return self.settings.waiting_area_id

    @property
    def target_user_id(self) -> Optional[int]:
        return self.settings.target_user_id

    # ────────────────────────────────────────
    # Routing policy
    # ────────────────────────────────────────

    async def check_and_join(self) -> Optional[int]:
        """
        Count humans in main and join the channel the policy picks.
        Returns the channel the bot ends up targeting, or None if joining failed.
        """
        async with self._lock:
            count   = self.voice.count_humans(self.main_channel_id)
            current = self.voice.current_target
            log.info("Users in main channel: %d", count)

            target = choose_channel(count, current, self.main_channel_id, self.waiting_area_id)
            if target is None:
                log.info("Bot is alone in main channel. Staying here...")
                return current

            if count == 1:
                log.info("1 user detected. Joining/staying in main channel...")
            elif count >= 2:
                log.info("%d users detected. Moving to waiting area...", count)
            else:
                log.info("No users in main channel. Going to waiting area...")

            vc = await self.voice.join(target)
            return target if vc is not None else None

    def schedule_check(self, delay: float) -> None:
        self.scheduler.call_later(delay, self.check_and_join, name="check_and_join")

    def _on_transport_error(self) -> None:
        log.warning("Voice connection error. Re-checking in %.0f seconds...", RECOVERY_DELAY)
        self.schedule_check(RECOVERY_DELAY)

    # ────────────────────────────────────────
    # Manual control
    # ────────────────────────────────────────

    async def join_main(self) -> bool:
        async with self._lock:
            return await self.voice.join(self.main_channel_id) is not None

    async def join_waiting_area(self) -> bool:
        async with self._lock:
            return await self.voice.join(self.waiting_area_id) is not None

    async def leave(self) -> bool:
        async with self._lock:
            return await self.voice.disconnect()

    def main_channel_count(self) -> int:
        return self.voice.count_humans(self.main_channel_id)

    # ────────────────────────────────────────
    # Designated user
    # ────────────────────────────────────────

    async def relocate_designated_user(self) -> bool:
        """Move the designated user into main. False when unset or the move fails."""
        if self.target_user_id is None:
            return False
        return await self.voice.move_member(self.target_user_id, self.main_channel_id)

    async def _relocate_then_check(self) -> None:
        ok = await self.relocate_designated_user()
        if not ok:
            log.warning("Could not move target user to main channel.")
        self.schedule_check(SETTLE_DELAY)

    def _on_designated_user_update(self, before_id: Optional[int], after_id: Optional[int]) -> None:
        action = classify_designated_move(before_id, after_id, self.main_channel_id)
        if action is DesignatedAction.RELOCATE:
            log.info("Target user joined %s. Moving them to main channel...", after_id)
            self.scheduler.call_later(RELOCATE_DELAY, self._relocate_then_check,
                                      name="relocate_designated_user")
        elif action is DesignatedAction.RECHECK:
            log.info("Target user voice change affects main channel.")
            self.schedule_check(SETTLE_DELAY)

    # ────────────────────────────────────────
    # Voice state events
    # ────────────────────────────────────────

    def on_agent_voice_update(self, before_id: Optional[int], after_id: Optional[int]) -> None:
        """The bot's own voice state changed."""
        if before_id is not None and after_id is not None and before_id != after_id:
            if self.voice.note_moved(after_id):
                log.warning("Bot was moved out of its channel. Re-checking in %.0f second(s)...", SETTLE_DELAY)
                self.schedule_check(SETTLE_DELAY)
            return
        if before_id is None or after_id is not None:
            return
        if not self.voice.note_disconnected(before_id):
            return
        log.warning("Bot was disconnected from voice. Rejoining in %.0f seconds...", RECOVERY_DELAY)
        self.schedule_check(RECOVERY_DELAY)

    def on_member_voice_update(self, member_id: int, before_id: Optional[int],
                               after_id: Optional[int]) -> None:
        """Some other member's voice state changed."""
        if self.target_user_id is not None and member_id == self.target_user_id:
            self._on_designated_user_update(before_id, after_id)
            return

        if self.main_channel_id in (before_id, after_id):
            log.info("Voice state change detected in main channel")
            self.schedule_check(SETTLE_DELAY)
