"""Async bootstrapper for VerifyBot."""

from __future__ import annotations

import asyncio
import logging
import os

import discord
from discord.ext import commands
from dotenv import load_dotenv

from verify_bot.config import VerifyBotConfig
from verify_bot.core.error_engine import ErrorEngine
from verify_bot.core.logging_utils import configure_library_logging
from verify_bot.core.role_resolver import RoleResolver
from verify_bot.core.verified_store import VerifiedStore
from verify_bot.cogs.verification_cog import VerificationCog
from verify_bot.ocr import ProfileExtractor
from verify_bot.ocr.recognizer import TextRecognizer


logger = logging.getLogger(__name__)


class VerifyBotRunner:
    """Full lifecycle manager for the discord.py bot instance."""

    def __init__(self, config: VerifyBotConfig | None = None) -> None:
        load_dotenv()
        self.config = config or VerifyBotConfig.from_env()
        configure_library_logging(level=self.config.log_level)
        self.error_engine = ErrorEngine()
        self.error_engine.catch_uncaught()

        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        intents.guilds = True

        self.bot = commands.Bot(
            command_prefix=os.getenv("BOT_PREFIX", "!"),
            intents=intents,
            help_command=None,
        )

        settings = self.config.extraction
        self.extractor = ProfileExtractor(TextRecognizer(settings=settings), settings=settings)
        self.store = VerifiedStore(self.config.storage_path)
        self.roles = RoleResolver.from_config(self.config)

        self.bot.setup_hook = self.setup_hook  # type: ignore[assignment]

        @self.bot.event  # type: ignore[misc]
        async def on_ready() -> None:
            guild_names = ", ".join(guild.name for guild in self.bot.guilds)
            bot_user = self.bot.user
            user_id = bot_user.id if bot_user else "unknown"
            logger.info("VerifyBot connected as %s (%s) in %s", bot_user, user_id, guild_names)

    def build_cog(self) -> VerificationCog:
        return VerificationCog(
            self.bot,
            self.config,
            self.extractor,
            self.roles,
            self.store,
            error_engine=self.error_engine,
        )

    async def setup_hook(self) -> None:
        await self.bot.add_cog(self.build_cog())

        guild_ids = {self.config.guild_id, *self.config.test_guild_ids}
        try:
            for gid in guild_ids:
                guild = discord.Object(id=gid)
                self.bot.tree.copy_global_to(guild=guild)
                await self.bot.tree.sync(guild=guild)
            logger.info("Slash commands synced to %s guild(s)", len(guild_ids))
        except discord.HTTPException as exc:
            logger.warning("Failed to sync slash commands: %s", exc)

    async def start(self) -> None:
        await self.bot.start(self.config.discord_token)

    async def close(self) -> None:
        await self.bot.close()


def run_verify_bot() -> None:
    runner = VerifyBotRunner()
    try:
        asyncio.run(runner.start())
    except KeyboardInterrupt:
        logger.info("VerifyBot interrupted by user")


__all__ = ["VerifyBotRunner", "run_verify_bot"]
