"""
bot/events.py
Discord event handlers: on_ready and on_voice_state_update.
Translates gateway events into presence router calls.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

if TYPE_CHECKING:
    from presence.router import PresenceRouter

log = logging.getLogger("greeter.events")


class PresenceEvents(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @property
    def router(self) -> PresenceRouter:
        return self.bot.router

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        log.info("Bot is ready! Logged in as %s (ID: %s)", self.bot.user, self.bot.user.id)
        await self.router.check_and_join()

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        if member.guild.id != self.bot.settings.guild_id:
            return

        before_id = before.channel.id if before.channel else None
        after_id  = after.channel.id if after.channel else None

        if self.bot.user and member.id == self.bot.user.id:
            self.router.on_agent_voice_update(before_id, after_id)
        else:
            self.router.on_member_voice_update(member.id, before_id, after_id)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(PresenceEvents(bot))
