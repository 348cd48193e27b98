"""Discord cog driving the screenshot verification flow."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from verify_bot.config import VerifyBotConfig
from verify_bot.core.error_engine import ErrorEngine
from verify_bot.core.role_resolver import RoleResolver
from verify_bot.core.verified_store import VerifiedStore
from verify_bot.ocr import (
    ExtractionError,
    ExtractionResult,
    InvalidImageError,
    ProfileExtractor,
    RecognitionError,
)
from verify_bot.ocr.field_parser import clean_clan_tag, clean_kingdom, clean_player_name


logger = logging.getLogger(__name__)

RETRY_PREFIX = "verify_retry"
CANCEL_PREFIX = "verify_cancel"
RETRY_TEMPLATE = rf"{RETRY_PREFIX}:(?P<user_id>\d+)"
CANCEL_TEMPLATE = rf"{CANCEL_PREFIX}:(?P<user_id>\d+)"
THREAD_HISTORY_LIMIT = 50

UPLOAD_INSTRUCTIONS = "\n".join(
    [
        "📸 Upload **one screenshot** of your Kingshot **Governor Profile**.",
        "You may upload:",
        "• Full profile screen",
        "• OR just the bottom info panel",
        "",
        "⚠️ One image only.",
    ]
)


def build_nickname(tag: Optional[str], name: Optional[str]) -> Optional[str]:
    if not tag and not name:
        return None
    if not name:
        return f"[{tag}]"
    if not tag:
        return name
    return f"[{tag}] {name}"


def channel_jump(guild_id: int, channel_id: int) -> str:
    return f"https://discord.com/channels/{guild_id}/{channel_id}"


def describe_failure(exc: BaseException) -> str:
    """Short user-facing reason for a failed attempt."""
    if isinstance(exc, ExtractionError):
        return f"OCR read failed (missing {', '.join(exc.missing_fields)})."
    if isinstance(exc, InvalidImageError):
        return "That file is not a readable image."
    if isinstance(exc, RecognitionError):
        return "The text reader could not process this screenshot."
    if isinstance(exc, discord.Forbidden):
        return "I am missing permissions to update your roles or nickname."
    return str(exc) or "Unknown error"


async def _owner_only(interaction: discord.Interaction, user_id: int) -> bool:
    if interaction.user.id != user_id:
        await interaction.response.send_message("❌ This button isn’t for you.", ephemeral=True)
        return False
    return True


def _verification_cog(interaction: discord.Interaction) -> Optional["VerificationCog"]:
    cog = interaction.client.get_cog("VerificationCog")
    return cog if isinstance(cog, VerificationCog) else None


class RetryButton(discord.ui.DynamicItem[discord.ui.Button], template=RETRY_TEMPLATE):
    """Retry OCR on the latest upload. Resolved from its custom id, so it survives restarts."""

    def __init__(self, user_id: int) -> None:
        super().__init__(
            discord.ui.Button(
                label="Retry OCR",
                style=discord.ButtonStyle.primary,
                custom_id=f"{RETRY_PREFIX}:{user_id}",
            )
        )
        self.user_id = user_id

    @classmethod
    async def from_custom_id(
        cls, interaction: discord.Interaction, item: discord.ui.Button, match: re.Match[str]
    ) -> "RetryButton":
        return cls(int(match["user_id"]))

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return await _owner_only(interaction, self.user_id)

    async def callback(self, interaction: discord.Interaction) -> None:
        cog = _verification_cog(interaction)
        if cog is None:
            await interaction.response.send_message("❌ Verification is not available right now.", ephemeral=True)
            return
        await cog.handle_retry(interaction)


class CancelButton(discord.ui.DynamicItem[discord.ui.Button], template=CANCEL_TEMPLATE):
    def __init__(self, user_id: int) -> None:
        super().__init__(
            discord.ui.Button(
                label="Cancel",
                style=discord.ButtonStyle.secondary,
                custom_id=f"{CANCEL_PREFIX}:{user_id}",
            )
        )
        self.user_id = user_id

    @classmethod
    async def from_custom_id(
        cls, interaction: discord.Interaction, item: discord.ui.Button, match: re.Match[str]
    ) -> "CancelButton":
        return cls(int(match["user_id"]))

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return await _owner_only(interaction, self.user_id)

    async def callback(self, interaction: discord.Interaction) -> None:
        cog = _verification_cog(interaction)
        if cog is None:
            await interaction.response.send_message("❌ Verification is not available right now.", ephemeral=True)
            return
        await cog.handle_cancel(interaction)


class VerificationView(discord.ui.View):
    """Retry / Cancel row attached to failure messages.

    Clicks are dispatched through the registered dynamic items, not through
    this view, so the view is never kept in the bot's view store.
    """

    def __init__(self, user_id: int) -> None:
        super().__init__(timeout=None)
        self.user_id = user_id
        self.add_item(RetryButton(user_id))
        self.add_item(CancelButton(user_id))


class VerificationCog(commands.Cog):
    """Creates private verification threads and applies verified roles."""

    def __init__(
        self,
        bot: commands.Bot,
        config: VerifyBotConfig,
        extractor: ProfileExtractor,
        roles: RoleResolver,
        store: VerifiedStore,
        error_engine: Optional[ErrorEngine] = None,
    ) -> None:
        self.bot = bot
        self.config = config
        self.extractor = extractor
        self.roles = roles
        self.store = store
        self.error_engine = error_engine

    async def cog_load(self) -> None:
        """Route Retry / Cancel clicks from any earlier failure message to this cog."""
        self.bot.add_dynamic_items(RetryButton, CancelButton)

    async def cog_unload(self) -> None:
        self.bot.remove_dynamic_items(RetryButton, CancelButton)

    # --------------------------------------------------------------
    # Slash command
    # --------------------------------------------------------------

    @app_commands.command(name="verify", description="Verify your Kingshot Governor Profile")
    @app_commands.guild_only()
    async def verify(self, interaction: discord.Interaction) -> None:
        await self.start_verification(interaction)

    async def start_verification(self, interaction: discord.Interaction) -> None:
        channel = interaction.channel
        if not isinstance(channel, discord.TextChannel):
            await interaction.response.send_message(
                "❌ Verification must be run in a text channel.", ephemeral=True
            )
            return
        if channel.id != self.config.verify_channel_id:
            await interaction.response.send_message(
                f"❌ Please run **/verify** in <#{self.config.verify_channel_id}>.", ephemeral=True
            )
            return

        await interaction.response.send_message(
            "✅ Creating your private verification thread…", ephemeral=True
        )
        user = interaction.user
        guild = interaction.guild
        thread: Optional[discord.Thread] = None
        try:
            thread = await channel.create_thread(
                name=f"verify-{user.name}"[:100],
                type=discord.ChannelType.private_thread,
                auto_archive_duration=60,
                invitable=False,
            )
            await thread.add_user(user)
            await self.send_verify_log(
                guild,
                self._log_embed("🟡 Verification started", user.id, thread=thread),
            )
            await thread.send(UPLOAD_INSTRUCTIONS)

            message = await self._wait_for_upload(thread, user.id)
            if message is None:
                await thread.send(
                    content="⏳ Timed out. You can upload a screenshot and press **Retry OCR**, "
                    "or run **/verify** again.",
                    view=VerificationView(user.id),
                )
                await self.send_verify_log(
                    guild,
                    self._log_embed("❌ Verification failed", user.id, thread=thread,
                                    error="Timed out waiting for screenshot."),
                )
                return

            await self.run_ocr_attempt(guild, thread, user.id, message.attachments[0], is_retry=False)
        except Exception as exc:
            await self._report_failure(guild, thread, user.id, exc, title="❌ Verification failed")

    # --------------------------------------------------------------
    # Buttons
    # --------------------------------------------------------------

    async def handle_retry(self, interaction: discord.Interaction) -> None:
        thread = interaction.channel
        if not isinstance(thread, discord.Thread) or thread.type != discord.ChannelType.private_thread:
            await interaction.response.send_message(
                "❌ This can only be used inside your verification thread.", ephemeral=True
            )
            return
        await interaction.response.defer()

        attachment = await self.find_latest_attachment(thread, interaction.user.id)
        if attachment is None:
            await thread.send(
                "❌ I can’t find a screenshot in this thread. Upload **one** Governor Profile "
                "screenshot and press **Retry OCR** again."
            )
            return

        try:
            await self.run_ocr_attempt(interaction.guild, thread, interaction.user.id, attachment, is_retry=True)
        except Exception as exc:
            await self._report_failure(
                interaction.guild,
                thread,
                interaction.user.id,
                exc,
                title="❌ Verification retry failed",
                stage="retry",
            )

    async def handle_cancel(self, interaction: discord.Interaction) -> None:
        thread = interaction.channel
        if not isinstance(thread, discord.Thread) or thread.type != discord.ChannelType.private_thread:
            await interaction.response.send_message(
                "❌ This can only be used inside your verification thread.", ephemeral=True
            )
            return
        await interaction.response.defer()
        await thread.send("🛑 Cancelled. Run **/verify** again when you’re ready.")
        try:
            await thread.edit(archived=True)
        except discord.HTTPException as exc:
            logger.warning("Failed to archive cancelled thread %s: %s", thread.id, exc)

    # --------------------------------------------------------------
    # Verification steps
    # --------------------------------------------------------------

    async def _wait_for_upload(self, thread: discord.Thread, user_id: int) -> Optional[discord.Message]:
        def check(message: discord.Message) -> bool:
            return (
                message.channel.id == thread.id
                and message.author.id == user_id
                and bool(message.attachments)
            )

        try:
            return await self.bot.wait_for("message", check=check, timeout=self.config.upload_timeout)
        except asyncio.TimeoutError:
            return None

    async def find_latest_attachment(self, thread: discord.Thread, user_id: int) -> Optional[discord.Attachment]:
        try:
            async for message in thread.history(limit=THREAD_HISTORY_LIMIT):
                if message.author.id != user_id:
                    continue
                if message.attachments:
                    return message.attachments[0]
        except discord.HTTPException as exc:
            logger.warning("Failed to read thread history for %s: %s", thread.id, exc)
        return None

    async def run_ocr_attempt(
        self,
        guild: discord.Guild,
        thread: discord.Thread,
        user_id: int,
        attachment: discord.Attachment,
        *,
        is_retry: bool,
    ) -> ExtractionResult:
        await thread.send("🔁 Retrying OCR…" if is_retry else "🔎 Reading screenshot…")
        image_bytes = await attachment.read()
        result = await self.extractor.extract(image_bytes)
        logger.info(
            "Extracted profile for %s: id=%s kingdom=%s clan=%s name=%s",
            user_id, result.id, result.kingdom, result.clan_tag, result.player_name,
        )
        await self.apply_verification(guild, user_id, result, thread)
        return result

    async def apply_verification(
        self,
        guild: discord.Guild,
        user_id: int,
        result: ExtractionResult,
        thread: discord.Thread,
    ) -> None:
        member = guild.get_member(user_id) or await guild.fetch_member(user_id)
        clan_tag = clean_clan_tag(result.clan_tag)
        player_name = clean_player_name(result.player_name) or None
        kingdom = clean_kingdom(result.kingdom)

        role_ids = [self.config.role_verified_id, *self.roles.roles_for(clan_tag, kingdom)]
        role_ids = list(dict.fromkeys(rid for rid in role_ids if rid))
        if role_ids:
            await member.add_roles(*(discord.Object(id=rid) for rid in role_ids), reason="Profile verification")
        if self.config.role_unverified_id:
            await member.remove_roles(discord.Object(id=self.config.role_unverified_id), reason="Profile verification")

        nickname = build_nickname(clan_tag, player_name)
        if nickname:
            try:
                await member.edit(nick=nickname[:32])
            except discord.Forbidden:
                logger.warning("Missing permissions to set nickname for %s", user_id)

        await asyncio.to_thread(
            self.store.upsert_record,
            str(user_id),
            {
                "game_id": result.id,
                "clan_tag": clan_tag,
                "kingdom": kingdom,
                "player_name": player_name,
            },
        )

        name = player_name or "Unreadable"
        await thread.send(
            "\n".join(
                [
                    "✅ **Verification successful!**",
                    f"• Name: **{name}**",
                    f"• Clan: **{clan_tag}**",
                    f"• ID: **{result.id}**",
                    f"• Kingdom: **#{kingdom}**",
                ]
            )
        )

        embed = self._log_embed("✅ Verification success", user_id)
        embed.add_field(name="Name", value=name, inline=True)
        embed.add_field(name="Clan", value=clan_tag, inline=True)
        embed.add_field(name="Kingdom", value=f"#{kingdom}", inline=True)
        embed.add_field(name="Game ID", value=result.id, inline=True)
        embed.add_field(name="Thread", value=channel_jump(guild.id, thread.id), inline=False)
        await self.send_verify_log(guild, embed)

        await thread.edit(archived=True)

    # --------------------------------------------------------------
    # Reporting
    # --------------------------------------------------------------

    def _log_embed(
        self,
        title: str,
        user_id: int,
        *,
        thread: Optional[discord.Thread] = None,
        error: Optional[str] = None,
    ) -> discord.Embed:
        embed = discord.Embed(title=title, description=f"User: <@{user_id}>", timestamp=discord.utils.utcnow())
        if error:
            embed.add_field(name="Error", value=error[:1024], inline=False)
        if thread is not None:
            embed.add_field(name="Thread", value=channel_jump(thread.guild.id, thread.id), inline=False)
        return embed

    async def send_verify_log(self, guild: Optional[discord.Guild], embed: discord.Embed) -> None:
        channel_id = self.config.verify_log_channel_id
        if guild is None or not channel_id:
            return
        try:
            channel = guild.get_channel(channel_id) or await guild.fetch_channel(channel_id)
            if not isinstance(channel, discord.abc.Messageable):
                return
            await channel.send(embed=embed)
        except discord.HTTPException as exc:
            logger.warning("⚠️ Failed to send verification log: %s", exc)

    async def _report_failure(
        self,
        guild: Optional[discord.Guild],
        thread: Optional[discord.Thread],
        user_id: int,
        exc: Exception,
        *,
        title: str,
        stage: str = "verification",
    ) -> None:
        reason = describe_failure(exc)
        expected = isinstance(exc, (ExtractionError, InvalidImageError, RecognitionError))
        if expected:
            logger.info("Verification for %s failed: %s", user_id, reason)
        elif self.error_engine is not None:
            self.error_engine.log_verification_failure(
                exc, user_id=user_id, thread_id=thread.id if thread is not None else None, stage=stage
            )
        else:
            logger.exception("Verification for %s failed", user_id)

        if thread is None:
            await self.send_verify_log(guild, self._log_embed(f"{title} (no thread)", user_id, error=reason))
            return

        try:
            await thread.send(
                content=f"❌ Verification failed: **{reason}**\nUpload a clearer screenshot "
                "(or just the bottom info panel) then press **Retry OCR**.",
                view=VerificationView(user_id),
            )
        except discord.HTTPException as send_exc:
            logger.warning("Failed to report verification failure in thread %s: %s", thread.id, send_exc)
        await self.send_verify_log(guild, self._log_embed(title, user_id, thread=thread, error=reason))


__all__ = [
    "CancelButton",
    "RetryButton",
    "VerificationCog",
    "VerificationView",
    "build_nickname",
    "channel_jump",
    "describe_failure",
]
