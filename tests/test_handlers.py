"""Tests for bot handlers"""
from decimal import Decimal
from unittest.mock import AsyncMock, Mock, patch

import pytest
from aiogram.types import CallbackQuery, Chat, InlineQuery, Message
from aiogram.types import User as TgUser

from kalipos.bot.handlers.callbacks import (
    callback_add_item,
    callback_custom_quantity,
    callback_show_orders,
    callback_unknown,
    parse_add_item,
)
from kalipos.bot.handlers.commands import cmd_help, cmd_start, handle_text_message
from kalipos.bot.handlers.inline import CACHE_TIME, handle_inline_query
from kalipos.bot.keyboards import get_quantity_keyboard
from kalipos.errors import ERROR_FETCHING_ORDERS, ERROR_ITEM_NOT_FOUND, ERROR_SAVING_ORDER, ERROR_UNKNOWN_ACTION
from kalipos.orders import BotOrderEntry


def _callback(data: str) -> Mock:
    callback = Mock(spec=CallbackQuery)
    callback.data = data
    callback.from_user = Mock(spec=TgUser)
    callback.from_user.id = 42
    callback.message = Mock(spec=Message)
    callback.message.chat = Mock(spec=Chat)
    callback.message.chat.id = 42
    callback.answer = AsyncMock()
    return callback


@pytest.fixture
def mock_bot():
    bot = AsyncMock()
    bot.send_message = AsyncMock()
    return bot


@pytest.fixture
def order_entry(catalog_repo, order_repo):
    entry = BotOrderEntry(catalog_repo, order_repo)
    with patch("kalipos.bot.handlers.callbacks.get_order_entry", AsyncMock(return_value=entry)):
        yield entry


@pytest.fixture
def mock_message():
    """Mock Telegram message"""
    message = Mock(spec=Message)
    message.from_user = Mock(spec=TgUser)
    message.from_user.id = 42
    message.from_user.first_name = "Ana"
    message.text = "/start"
    message.answer = AsyncMock()
    return message


class TestParseAddItem:

    def test_plain(self):
        assert parse_add_item("add_item:Sponge:3") == ("Sponge", Decimal("3"))

    def test_name_with_colon(self):
        assert parse_add_item("add_item:Box 2:1 large:5") == ("Box 2:1 large", Decimal("5"))

    @pytest.mark.parametrize("data", ["add_item:Sponge", "add_item::3", "add_item:Sponge:0", "add_item:Sponge:x"])
    def test_malformed(self, data):
        assert parse_add_item(data) is None


class TestAddItemCallback:

    @pytest.mark.asyncio
    async def test_unknown_item_creates_no_order(self, order_entry, order_repo, mock_bot):
        callback = _callback("add_item:Unknown:1")

        await callback_add_item(callback, mock_bot)

        callback.answer.assert_awaited_once_with(ERROR_ITEM_NOT_FOUND, show_alert=False)
        order_repo.create_header.assert_not_called()
        mock_bot.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_tap_creates_order_and_confirms(self, order_entry, order_repo, mock_bot):
        callback = _callback("add_item:Sponge:2")

        await callback_add_item(callback, mock_bot)

        callback.answer.assert_awaited_once()
        assert 'Added "Sponge"' in callback.answer.call_args.args[0]
        text = mock_bot.send_message.call_args.kwargs["text"]
        assert text.startswith("✅ <b>Order Created:</b>\nTG-")
        assert "Sponge (Qty: 2)" in text
        markup = mock_bot.send_message.call_args.kwargs["reply_markup"]
        assert markup.inline_keyboard[0][0].callback_data == "show_orders"
        assert order_repo.line_batches[0][1][0]["quantity"] == 2

    @pytest.mark.asyncio
    async def test_two_taps_make_two_orders(self, order_entry, order_repo, mock_bot):
        await callback_add_item(_callback("add_item:Sponge:1"), mock_bot)
        await callback_add_item(_callback("add_item:Sponge:1"), mock_bot)

        assert order_repo.create_header.await_count == 2
        assert len(set(order_repo.headers)) == 2
        assert [len(rows) for _, rows in order_repo.line_batches] == [1, 1]

    @pytest.mark.asyncio
    async def test_header_failure(self, order_entry, order_repo, mock_bot):
        order_repo.create_header.side_effect = RuntimeError("down")
        callback = _callback("add_item:Sponge:1")

        await callback_add_item(callback, mock_bot)

        callback.answer.assert_awaited_once_with(ERROR_SAVING_ORDER, show_alert=False)
        mock_bot.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_partial_failure_reports_order_number(self, order_entry, order_repo, mock_bot):
        order_repo.add_lines.side_effect = RuntimeError("down")
        callback = _callback("add_item:Sponge:1")

        await callback_add_item(callback, mock_bot)

        text = callback.answer.call_args.args[0]
        assert order_repo.headers[0] in text
        assert callback.answer.call_args.kwargs["show_alert"] is True
        mock_bot.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_malformed_data_is_answered(self, order_entry, order_repo, mock_bot):
        callback = _callback("add_item:Sponge:-1")

        await callback_add_item(callback, mock_bot)

        callback.answer.assert_awaited_once_with(ERROR_UNKNOWN_ACTION, show_alert=False)
        order_repo.create_header.assert_not_called()


class TestOtherCallbacks:

    @pytest.mark.asyncio
    async def test_show_orders(self, order_entry, order_repo, mock_bot):
        callback = _callback("show_orders")

        await callback_show_orders(callback, mock_bot)

        order_repo.get_recent_by_user.assert_awaited_once_with(42, limit=5)
        assert "Your Recent Orders" in mock_bot.send_message.call_args.kwargs["text"]
        callback.answer.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_show_orders_failure(self, order_entry, order_repo, mock_bot):
        order_repo.get_recent_by_user.side_effect = RuntimeError("down")
        callback = _callback("show_orders")

        await callback_show_orders(callback, mock_bot)

        callback.answer.assert_awaited_once_with(ERROR_FETCHING_ORDERS, show_alert=False)
        mock_bot.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_custom_quantity_keyboard(self, mock_bot):
        callback = _callback("custom_qty:Sponge")

        await callback_custom_quantity(callback, mock_bot)

        keyboard = mock_bot.send_message.call_args.kwargs["reply_markup"]
        data = [button.callback_data for row in keyboard.inline_keyboard for button in row]
        assert data[0] == "add_item:Sponge:4"
        assert data[-1] == "add_item:Sponge:50"
        assert len(data) == 8
        callback.answer.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_callback(self):
        callback = _callback("something_else")

        await callback_unknown(callback)

        callback.answer.assert_awaited_once_with(ERROR_UNKNOWN_ACTION, show_alert=False)


class TestKeyboards:

    def test_quantity_keyboard_layout(self):
        keyboard = get_quantity_keyboard("Sponge")

        rows = [[button.text for button in row] for row in keyboard.inline_keyboard]
        assert rows == [["1", "2", "3"], ["5", "10", "Custom"]]
        assert keyboard.inline_keyboard[1][2].callback_data == "custom_qty:Sponge"

    def test_long_name_has_no_keyboard(self):
        assert get_quantity_keyboard("x" * 60) is None


class TestInlineQuery:

    @staticmethod
    def _query(text: str) -> Mock:
        query = Mock(spec=InlineQuery)
        query.query = text
        query.answer = AsyncMock()
        return query

    @pytest.fixture
    def db(self, catalog_repo):
        db = Mock(catalog=catalog_repo)
        with patch("kalipos.bot.handlers.inline.get_database_async", AsyncMock(return_value=db)):
            yield db

    @pytest.mark.asyncio
    async def test_category_menu(self, db):
        query = self._query("cat ")

        await handle_inline_query(query)

        results = query.answer.call_args.args[0]
        assert [r.title for r in results] == [
            "1. Cleaning", "2. Box", "3. Ustensil", "4. Plastic bag", "5. Kitchen roll", "6. Cheese",
        ]
        assert query.answer.call_args.kwargs["cache_time"] == CACHE_TIME

    @pytest.mark.asyncio
    async def test_category_items(self, db, catalog_repo, catalog):
        catalog_repo.get_by_category.return_value = [catalog[2]]
        query = self._query("cat 2")

        await handle_inline_query(query)

        catalog_repo.get_by_category.assert_awaited_once_with("box", limit=50)
        result = query.answer.call_args.args[0][0]
        assert result.title == "Pizza Box 33"
        assert result.reply_markup.inline_keyboard[0][0].callback_data == "add_item:Pizza Box 33:1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["cat 9", "cat 0", "cat x"])
    async def test_category_out_of_range(self, db, catalog_repo, text):
        query = self._query(text)

        await handle_inline_query(query)

        assert query.answer.call_args.args[0] == []
        catalog_repo.get_by_category.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_query_lists_items(self, db, catalog_repo):
        query = self._query("")

        await handle_inline_query(query)

        catalog_repo.get_all.assert_awaited_once_with(limit=50)
        assert len(query.answer.call_args.args[0]) == 4

    @pytest.mark.asyncio
    async def test_search(self, db, catalog_repo, sponge):
        catalog_repo.search.return_value = [sponge]
        query = self._query("spo")

        await handle_inline_query(query)

        catalog_repo.search.assert_awaited_once_with("spo", limit=50)
        assert query.answer.call_args.args[0][0].description == "Cleaning - Metro"

    @pytest.mark.asyncio
    async def test_search_failure_answers_empty(self, db, catalog_repo):
        catalog_repo.search.side_effect = RuntimeError("down")
        query = self._query("spo")

        await handle_inline_query(query)

        query.answer.assert_awaited_once_with([], cache_time=CACHE_TIME)


class TestCommands:

    @pytest.mark.asyncio
    async def test_start(self, mock_message):
        await cmd_start(mock_message)

        text = mock_message.answer.call_args.args[0]
        keyboard = mock_message.answer.call_args.kwargs["reply_markup"]
        assert text.startswith("Hi Ana!")
        assert keyboard.inline_keyboard[0][0].web_app.url.startswith("https://")
        assert keyboard.inline_keyboard[1][0].callback_data == "show_orders"

    @pytest.mark.asyncio
    async def test_help(self, mock_message):
        await cmd_help(mock_message)

        assert "How to order" in mock_message.answer.call_args.args[0]

    @pytest.mark.asyncio
    async def test_echo_escapes_text(self, mock_message):
        mock_message.text = "<b>hi</b>"

        await handle_text_message(mock_message)

        assert mock_message.answer.call_args.args[0].startswith("Received: &lt;b&gt;hi&lt;/b&gt;")
