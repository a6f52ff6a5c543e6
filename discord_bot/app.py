"""Discord bot entry point (gateway connection, single process).

    python -m discord_bot.app

Requires DISCORD_BOT_TOKEN in the environment or in the project root .env.
"""

import asyncio
import logging
import signal
import sys

import discord

from discord_bot.handlers import register_handlers
from verse_bot.config import ConfigError, Configuration, load

logger = logging.getLogger(__name__)

VERBOSE_FORMAT = "%(asctime)s.%(msecs)03d %(filename)s:%(lineno)d %(levelname)s %(name)s: %(message)s"
MINIMAL_FORMAT = "%(asctime)s %(levelname)s %(message)s"
DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def configure_logging(debug: bool):
    if debug:
        logging.basicConfig(level=logging.DEBUG, format=VERBOSE_FORMAT, datefmt=DATE_FORMAT, force=True)
        # Gateway payload dumps drown out the bot's own messages.
        logging.getLogger("discord").setLevel(logging.INFO)
    else:
        logging.basicConfig(level=logging.INFO, format=MINIMAL_FORMAT, datefmt=DATE_FORMAT, force=True)


def create_client(config: Configuration) -> discord.Client:
    intents = discord.Intents.default()
    intents.message_content = True
    client = discord.Client(intents=intents)
    register_handlers(client, config)
    return client


def _install_signal_handlers(stop: asyncio.Event):
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler.
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop.set))


async def run(
    config: Configuration,
    client: discord.Client | None = None,
    stop: asyncio.Event | None = None,
):
    """Connect, serve events until ``stop`` is set, then disconnect.

    Login and gateway failures propagate to the caller. Errors while closing
    the connection are only logged.
    """
    if client is None:
        client = create_client(config)
    if stop is None:
        stop = asyncio.Event()
        _install_signal_handlers(stop)

    try:
        await client.login(config.token)
    except discord.DiscordException:
        await _close(client)
        raise

    gateway = asyncio.create_task(client.connect())
    waiter = asyncio.create_task(stop.wait())
    logger.info("Bible Verse Bot is now running. Press CTRL-C to exit.")

    try:
        await asyncio.wait({gateway, waiter}, return_when=asyncio.FIRST_COMPLETED)
        if waiter.done():
            logger.info("Received termination signal. Shutting down...")
    finally:
        waiter.cancel()
        await _close(client)

    if not gateway.done():
        gateway.cancel()
    try:
        await gateway
    except asyncio.CancelledError:
        pass


async def _close(client: discord.Client):
    try:
        await client.close()
    except Exception:
        logger.exception("Error closing Discord connection")


def main():
    try:
        config = load()
    except ConfigError as exc:
        logging.basicConfig(level=logging.INFO)
        logger.error("Configuration error: %s", exc)
        sys.exit(1)

    configure_logging(config.debug)

    try:
        asyncio.run(run(config))
    except discord.DiscordException as exc:
        logger.error("Cannot open Discord connection: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
