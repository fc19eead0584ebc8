"""
main.py
Entry point for the Voice Greeter Discord Bot.
Starts the Discord bot and the liveness web server on the same event loop.
"""

from __future__ import annotations
import asyncio
import logging
import logging.handlers
import os
import sys
from pathlib import Path

import discord
from discord.ext import commands
from dotenv import load_dotenv

from bot.config import ConfigError, Settings

# ──────────────────────────────────────────────
# Environment
# ──────────────────────────────────────────────
load_dotenv()

LOG_DIR = os.getenv("LOG_DIR", "logs")

# ──────────────────────────────────────────────
# Logging setup
# ──────────────────────────────────────────────
Path(LOG_DIR).mkdir(parents=True, exist_ok=True)

log_formatter = logging.Formatter(
    "[%(asctime)s] [%(levelname)-8s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

root_logger = logging.getLogger()
root_logger.setLevel(logging.INFO)

# Console handler
console_handler = logging.StreamHandler(sys.stdout)
console_handler.setFormatter(log_formatter)
root_logger.addHandler(console_handler)

# Rotating file handler
file_handler = logging.handlers.RotatingFileHandler(
    Path(LOG_DIR) / "greeter.log",
    maxBytes=5_000_000,   # 5 MB
    backupCount=3,
    encoding="utf-8",
)
file_handler.setFormatter(log_formatter)
root_logger.addHandler(file_handler)

log = logging.getLogger("greeter.main")

# ──────────────────────────────────────────────
# Bot subclass
# ──────────────────────────────────────────────

class GreeterBot(commands.Bot):
    def __init__(self, settings: Settings):
        intents = discord.Intents.default()
        intents.message_content  = True
        intents.members           = True
        intents.voice_states      = True
        # Chat commands are matched literally in bot.commands, not via a prefix
        super().__init__(command_prefix=commands.when_mentioned, intents=intents)

        from bot.voice import VoiceManager
        from presence.router import PresenceRouter
        from liveness.server import LivenessServer

        self.settings      = settings
        self.voice_manager = VoiceManager(self, settings.guild_id)
        self.router        = PresenceRouter(self.voice_manager, settings)
        self._liveness     = LivenessServer(settings.port)

    async def setup_hook(self) -> None:
        """Called once after login, before starting the bot's event loop."""
        for ext in ("bot.commands", "bot.events"):
            await self._load_ext(ext)

        # Drop any voice sessions left over from a previous run so the
        # first join starts from a clean slate.
        for vc in self.voice_clients:
            try:
                log.info("Cleaning up zombie voice connection: %s", vc.channel)
                await vc.disconnect(force=True)
            except Exception as e:
                log.warning("Failed to clean up voice: %s", e)

        try:
            await self._liveness.start()
        except OSError as e:
            log.error("Liveness server could not bind port %s: %s", self.settings.port, e)

        if self.settings.target_user_id:
            log.info("Target user ID: %s", self.settings.target_user_id)
        log.info("Setup complete.")

    async def _load_ext(self, module: str) -> None:
        """Load a cog from its module, with error logging."""
        try:
            await self.load_extension(module)
            log.info("Loaded extension: %s", module)
        except Exception as e:
            log.exception("Failed to load extension %s: %s", module, e)

    async def close(self) -> None:
        log.info("Shutting down bot...")
        cancelled = self.router.scheduler.cancel_all()
        if cancelled:
            log.info("Cancelled %d pending channel checks.", cancelled)
        await self.voice_manager.disconnect()
        await self._liveness.stop()
        await super().close()


# ──────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────

def main() -> None:
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        log.error("Invalid configuration: %s", e)
        sys.exit(1)

    bot = GreeterBot(settings)

    try:
        asyncio.run(bot.start(settings.token))
    except KeyboardInterrupt:
        log.info("Bot interrupted by user.")
    except discord.LoginFailure as e:
        log.error("Discord login failed: %s", e)
        sys.exit(1)
    except Exception as e:
        log.exception("Unexpected error: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
