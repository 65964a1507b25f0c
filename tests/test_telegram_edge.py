"""Telegram adapters: Telethon message conversion, notifier and bot commands."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from telethon.tl.types import PeerChannel, PeerUser

from models.signal import CloseReason, SignalStatus
from services.telegram_service.command_bot import cmd_estado, cmd_senales, register_handlers
from services.telegram_service.notifier import Notifier
from services.telegram_service.telegram_reader import to_inbound
from utils.formatters import format_active_list, format_status_summary, format_transition

from conftest import make_signal


class TestToInbound:
    def test_channel_reply(self):
        message = SimpleNamespace(
            id=77,
            message="SL 35",
            peer_id=PeerChannel(channel_id=1234567890),
            reply_to=SimpleNamespace(reply_to_msg_id=70),
        )
        msg = to_inbound(message)
        assert msg.id == 77
        assert msg.text == "SL 35"
        assert msg.chat_id == -1001234567890
        assert msg.reply_to_id == 70
        assert msg.dedup_key == "-1001234567890-77"

    def test_plain_message(self):
        message = SimpleNamespace(id=5, message=None, peer_id=PeerUser(user_id=42), reply_to=None)
        msg = to_inbound(message)
        assert msg.chat_id == 42
        assert msg.text == ""
        assert msg.reply_to_id is None


class TestNotifier:
    def test_requires_chat_id(self):
        with pytest.raises(ValueError):
            Notifier(MagicMock(), 0)

    @pytest.mark.asyncio
    async def test_send(self):
        bot = MagicMock()
        bot.send_message = AsyncMock()
        await Notifier(bot, 99).send("hola")
        bot.send_message.assert_awaited_once_with(chat_id=99, text="hola")

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self):
        bot = MagicMock()
        bot.send_message = AsyncMock(side_effect=RuntimeError("flood wait"))
        await Notifier(bot, 99).send("hola")


class TestCommands:
    def _context(self, store):
        return SimpleNamespace(application=SimpleNamespace(bot_data={"store": store}))

    def _update(self):
        return SimpleNamespace(message=SimpleNamespace(reply_text=AsyncMock()))

    def test_register_handlers(self, store):
        app = MagicMock()
        app.bot_data = {}
        register_handlers(app, store)
        assert app.bot_data["store"] is store
        assert app.add_handler.call_count == 3

    @pytest.mark.asyncio
    async def test_estado(self, store):
        store.add(make_signal(message_id=1))
        store.add(make_signal(message_id=2))
        store.close(2, CloseReason.SL_HIT)

        update = self._update()
        await cmd_estado(update, self._context(store))
        text = update.message.reply_text.await_args.args[0]
        assert "PENDING: 1" in text
        assert "CLOSED: 1" in text

    @pytest.mark.asyncio
    async def test_senales_empty(self, store):
        update = self._update()
        await cmd_senales(update, self._context(store))
        update.message.reply_text.assert_awaited_once_with("📭 No hay señales activas.")


class TestFormatters:
    def test_transition_shows_close(self):
        signal = make_signal(
            status=SignalStatus.CLOSED, close_reason=CloseReason.PROFIT, exit_price=36.4
        )
        text = format_transition(signal, "💰 BOOK PROFIT", "Salida MARKET ORD2")
        assert "🔴 #101 BUY HINDZINC 750 CE FEB" in text
        assert "Cierre: PROFIT @ 36.4" in text
        assert "Salida MARKET ORD2" in text

    def test_status_summary_lists_every_state(self):
        text = format_status_summary([make_signal(), make_signal(status=SignalStatus.WAITING)])
        for status in SignalStatus:
            assert status.value in text

    def test_active_list_without_target(self):
        assert "T -" in format_active_list([make_signal(target=None)])
