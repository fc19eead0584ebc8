"""
bot/commands.py
Manual control via plain chat messages ($check, $join, $wait, $leave, $moveuser).
Matching is an exact, case-insensitive comparison of the whole message.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

if TYPE_CHECKING:
    from presence.router import PresenceRouter

log = logging.getLogger("greeter.commands")


class PresenceCommands(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @property
    def router(self) -> PresenceRouter:
        return self.bot.router

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return

        content = message.content.lower()
        if content == "$check":
            await self.handle_check(message)
        elif content == "$join":
            await self.handle_join(message)
        elif content == "$wait":
            await self.handle_wait(message)
        elif content == "$leave":
            await self.handle_leave(message)
        elif content == "$moveuser":
            await self.handle_move_user(message)

    # ──────────────────────────────────────────────
    # Handlers
    # ──────────────────────────────────────────────

    async def handle_check(self, message: discord.Message) -> None:
        await self.router.check_and_join()
        count = self.router.main_channel_count()
        await self._reply(message, f"Checking channels... Users in main channel: {count}")

    async def handle_join(self, message: discord.Message) -> None:
        ok = await self.router.join_main()
        await self._reply(message, "Joining main channel..." if ok else "❌ Failed to join main channel.")

    async def handle_wait(self, message: discord.Message) -> None:
        ok = await self.router.join_waiting_area()
        await self._reply(message, "Joining waiting area..." if ok else "❌ Failed to join waiting area.")

    async def handle_leave(self, message: discord.Message) -> None:
        if await self.router.leave():
            await self._reply(message, "Left voice channel!")
        else:
            await self._reply(message, "Not in a voice channel!")

    async def handle_move_user(self, message: discord.Message) -> None:
        if self.router.target_user_id is None:
            await self._reply(message, "No target user configured!")
            return
        ok = await self.router.relocate_designated_user()
        await self._reply(
            message,
            "Moved target user to main channel!" if ok else "❌ Failed to move target user.",
        )

    async def _reply(self, message: discord.Message, text: str) -> None:
        try:
            await message.reply(text)
        except discord.HTTPException as e:
            log.error("Failed to reply in #%s: %s", message.channel, e)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(PresenceCommands(bot))
