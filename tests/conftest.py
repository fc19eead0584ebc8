"""Shared fakes for the Discord objects the presence router touches."""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from bot.config import Settings
from bot.voice import VoiceManager
from presence.router import PresenceRouter

GUILD_ID   = 1000
MAIN_ID    = 2000
WAITING_ID = 3000
OTHER_ID   = 4000
BOT_ID     = 9999
TARGET_ID  = 5555


def make_http_error(cls=discord.HTTPException, status=400, text="error"):
    response = MagicMock(status=status, reason="Error")
    return cls(response, text)


def make_member(member_id, bot=False):
    member = MagicMock(spec=discord.Member)
    member.id = member_id
    member.bot = bot
    member.display_name = f"user-{member_id}"
    member.move_to = AsyncMock()
    return member


def make_voice_client(channel):
    vc = MagicMock(spec=discord.VoiceClient)
    vc.channel = channel
    vc.disconnect = AsyncMock()
    vc.is_connected.return_value = True
    return vc


def make_voice_channel(channel_id, members=()):
    channel = MagicMock(spec=discord.VoiceChannel)
    channel.id = channel_id
    channel.name = f"voice-{channel_id}"
    channel.members = list(members)
    channel.connect = AsyncMock(side_effect=lambda **kwargs: make_voice_client(channel))
    return channel


class FakeGuild:
    """Just enough of discord.Guild for VoiceManager."""

    def __init__(self, guild_id=GUILD_ID):
        self.id = guild_id
        self.channels = {}
        self.members = {}
        self.voice_client = None
        self.fetch_member = AsyncMock(
            side_effect=make_http_error(discord.NotFound, 404, "Unknown Member")
        )

    def add_channel(self, channel):
        self.channels[channel.id] = channel
        return channel

    def add_member(self, member):
        self.members[member.id] = member
        return member

    def get_channel(self, channel_id):
        return self.channels.get(channel_id)

    def get_member(self, member_id):
        return self.members.get(member_id)


class FakeScheduler:
    """Records delayed callbacks instead of sleeping."""

    def __init__(self):
        self.calls = []

    def call_later(self, delay, callback, name=None):
        self.calls.append((delay, callback))

    def cancel_all(self):
        count = len(self.calls)
        self.calls.clear()
        return count

    @property
    def delays(self):
        return [delay for delay, _ in self.calls]

    async def run_next(self):
        _, callback = self.calls.pop(0)
        await callback()


@pytest.fixture
def guild():
    g = FakeGuild()
    g.add_channel(make_voice_channel(MAIN_ID))
    g.add_channel(make_voice_channel(WAITING_ID))
    g.add_channel(make_voice_channel(OTHER_ID))
    return g


@pytest.fixture
def main_channel(guild):
    return guild.channels[MAIN_ID]


@pytest.fixture
def waiting_channel(guild):
    return guild.channels[WAITING_ID]


@pytest.fixture
def discord_bot(guild):
    bot = MagicMock()
    bot.user.id = BOT_ID
    bot.get_guild.side_effect = lambda gid: guild if gid == GUILD_ID else None
    return bot


@pytest.fixture
def settings():
    return Settings(
        token="token",
        guild_id=GUILD_ID,
        main_channel_id=MAIN_ID,
        waiting_area_id=WAITING_ID,
        target_user_id=TARGET_ID,
    )


@pytest.fixture
def voice(discord_bot):
    return VoiceManager(discord_bot, GUILD_ID)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def router(voice, settings, scheduler):
    return PresenceRouter(voice, settings, scheduler=scheduler)
