"""Tests for the bot lifecycle — Discord client is replaced by mocks.

Run with:  py -m pytest tests/test_app.py -v
"""

import asyncio
import inspect
from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest

from discord_bot.app import create_client, main, run
from verse_bot.config import Configuration

CONFIG = Configuration(token="test-token")


def _fake_client():
    """Client whose gateway stays connected until close() is awaited."""
    closed = asyncio.Event()
    client = MagicMock()
    client.login = AsyncMock()

    async def connect():
        await closed.wait()

    client.connect = MagicMock(side_effect=connect)
    client.close = AsyncMock(side_effect=lambda: closed.set())
    return client


# ---------------------------------------------------------------------------
# 1. Startup
# ---------------------------------------------------------------------------

class TestMain:

    def test_missing_token_exits_before_connecting(self, monkeypatch):
        monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)
        with patch("discord_bot.app.create_client") as create, \
                patch("discord_bot.app.run") as run_mock:
            with pytest.raises(SystemExit) as info:
                main()

        assert info.value.code == 1
        create.assert_not_called()
        run_mock.assert_not_called()

    def test_connection_failure_exits_non_zero(self, monkeypatch):
        monkeypatch.setenv("DISCORD_BOT_TOKEN", "bad-token")
        failing = AsyncMock(side_effect=discord.LoginFailure("Improper token has been passed."))
        with patch("discord_bot.app.run", new=failing), \
                patch("discord_bot.app.configure_logging"):
            with pytest.raises(SystemExit) as info:
                main()
        assert info.value.code == 1

    def test_clean_shutdown_returns_normally(self, monkeypatch):
        monkeypatch.setenv("DISCORD_BOT_TOKEN", "good-token")
        with patch("discord_bot.app.run", new=AsyncMock()) as run_mock, \
                patch("discord_bot.app.configure_logging") as logging_mock:
            main()

        run_mock.assert_awaited_once()
        config = run_mock.await_args.args[0]
        assert config.token == "good-token"
        logging_mock.assert_called_once_with(config.debug)


class TestCreateClient:

    def test_message_content_intent_and_handlers(self):
        client = create_client(CONFIG)
        assert client.intents.message_content is True
        assert inspect.iscoroutinefunction(client.on_message)
        assert inspect.iscoroutinefunction(client.on_ready)


# ---------------------------------------------------------------------------
# 2. Run loop
# ---------------------------------------------------------------------------

class TestRun:

    @pytest.mark.asyncio
    async def test_stop_closes_connection(self):
        client = _fake_client()
        stop = asyncio.Event()

        task = asyncio.create_task(run(CONFIG, client=client, stop=stop))
        await asyncio.sleep(0.01)
        client.login.assert_awaited_once_with("test-token")
        client.connect.assert_called_once()
        client.close.assert_not_awaited()

        stop.set()
        await asyncio.wait_for(task, timeout=1)
        client.close.assert_awaited()

    @pytest.mark.asyncio
    async def test_login_failure_propagates_without_connecting(self):
        client = _fake_client()
        client.login.side_effect = discord.LoginFailure("Improper token has been passed.")

        with pytest.raises(discord.LoginFailure):
            await run(CONFIG, client=client, stop=asyncio.Event())

        client.connect.assert_not_called()
        client.close.assert_awaited()

    @pytest.mark.asyncio
    async def test_gateway_failure_propagates(self):
        client = _fake_client()
        client.connect = AsyncMock(side_effect=discord.GatewayNotFound())

        with pytest.raises(discord.GatewayNotFound):
            await asyncio.wait_for(run(CONFIG, client=client, stop=asyncio.Event()), timeout=1)

        client.close.assert_awaited()

    @pytest.mark.asyncio
    async def test_close_error_is_logged_not_raised(self, caplog):
        client = _fake_client()
        client.close.side_effect = RuntimeError("socket already closed")
        stop = asyncio.Event()
        stop.set()

        await asyncio.wait_for(run(CONFIG, client=client, stop=stop), timeout=1)

        assert "Error closing Discord connection" in caplog.text
