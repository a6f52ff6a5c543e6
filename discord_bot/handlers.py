"""Prefix command handlers for the Discord verse bot."""

import logging
from typing import Awaitable, Callable

import discord

from discord_bot.formatting import render_verse
from verse_bot.config import Configuration
from verse_bot.services.verse_api import FetchError, fetch_verse

logger = logging.getLogger(__name__)

GREETING = "Hello! I'm your Bible verse bot. Type {prefix}verse for a random verse!"
PONG = "Pong! 🏓"
VERSE_UNAVAILABLE = "Sorry, I couldn't retrieve a verse right now."
UNKNOWN_COMMAND = "Unknown command. Try {prefix}hello, {prefix}ping, or {prefix}verse"

CommandHandler = Callable[[discord.Message, Configuration], Awaitable[None]]


async def safe_send(channel, content: str | None = None, embed: discord.Embed | None = None):
    """Send to a channel, logging (never raising) on failure."""
    try:
        await channel.send(content=content, embed=embed)
    except Exception:
        logger.exception("Failed to send message to channel %s", channel.id)


async def _hello(message, config):
    await safe_send(message.channel, GREETING.format(prefix=config.prefix))


async def _ping(message, config):
    await safe_send(message.channel, PONG)


async def _verse(message, config):
    try:
        payload = await fetch_verse(
            url=config.verse_api_url,
            timeout=config.request_timeout,
            max_bytes=config.max_response_bytes,
        )
    except FetchError as exc:
        logger.warning("Verse retrieval failed: %s", exc)
        await safe_send(message.channel, VERSE_UNAVAILABLE)
        return

    await safe_send(message.channel, embed=render_verse(payload))


async def _unknown(message, config):
    await safe_send(message.channel, UNKNOWN_COMMAND.format(prefix=config.prefix))


COMMANDS: dict[str, CommandHandler] = {
    "hello": _hello,
    "ping": _ping,
    "verse": _verse,
}


def parse_command(content: str, prefix: str) -> str | None:
    """Return the command name of a prefixed message, or None."""
    if not content.startswith(prefix):
        return None
    parts = content[len(prefix):].split()
    if not parts:
        return None
    return parts[0]


async def dispatch(message: discord.Message, bot_user_id: int, config: Configuration):
    """Handle one inbound message: at most one reply is sent."""
    if message.author.id == bot_user_id:
        return

    logger.info(
        "Message received in channel %s from %s: %s",
        message.channel.id, message.author, message.content,
    )

    command = parse_command(message.content, config.prefix)
    if command is None:
        return

    handler = COMMANDS.get(command, _unknown)
    await handler(message, config)


def register_handlers(client: discord.Client, config: Configuration):
    """Register the gateway event handlers on a Discord client."""

    @client.event
    async def on_ready():
        logger.info("Bot connected as %s (ID: %s)", client.user, client.user.id)
        for guild in client.guilds:
            logger.info("Connected to guild: %s (ID: %s)", guild.name, guild.id)

    @client.event
    async def on_message(message: discord.Message):
        await dispatch(message, client.user.id, config)
