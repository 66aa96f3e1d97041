"""Tests for chat command parsing and the paper-trading assistant."""

from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from core.models.entities import IntentType, Trade, TradeSide
from core.services.trading_assistant_service import (
    DEFAULT_REPLY,
    EMPTY_PORTFOLIO_REPLY,
    GREETING_REPLY,
    HELP_REPLY,
    MISSING_TRADE_REPLY,
    TradingAssistantService,
    build_positions,
    parse_trade_command,
)
from utils.exceptions import InvalidTradeException, MarketDataException


def _trade(symbol, quantity, side, price):
    return Trade(
        user_id='user-1', symbol=symbol, quantity=quantity, trade_type=side,
        price_at_execution=Decimal(str(price)), executed_at=datetime(2024, 1, 1),
    )


class TestParseTradeCommand:

    @pytest.mark.parametrize("message,side,quantity,symbol", [
        ("Buy 5 shares of AAPL", TradeSide.BUY, 5, 'AAPL'),
        ("please purchase 10 stocks msft", TradeSide.BUY, 10, 'MSFT'),
        ("sell 3 shares of tsla", TradeSide.SELL, 3, 'TSLA'),
        ("exit 2 share of NVDA", TradeSide.SELL, 2, 'NVDA'),
    ])
    def test_trade_instructions(self, message, side, quantity, symbol):
        intent = parse_trade_command(message)
        assert intent.type == IntentType.EXECUTE_TRADE
        assert (intent.side, intent.quantity, intent.symbol) == (side, quantity, symbol)

    @pytest.mark.parametrize("message", ["show my portfolio", "What do I own?", "list my holdings"])
    def test_portfolio_requests(self, message):
        assert parse_trade_command(message).type == IntentType.GET_PORTFOLIO

    @pytest.mark.parametrize("message", ["Yes", "ok go ahead", "Confirm"])
    def test_confirmations(self, message):
        intent = parse_trade_command(message)
        assert intent.type == IntentType.CONFIRM_TRADE
        assert intent.symbol is None

    def test_buy_takes_priority_over_confirmation(self):
        assert parse_trade_command("yes buy 5 shares of AAPL").type == IntentType.EXECUTE_TRADE

    def test_everything_else_is_general(self):
        assert parse_trade_command("what's new in tech?").type == IntentType.GENERAL
        assert parse_trade_command("").type == IntentType.GENERAL


class TestBuildPositions:

    def test_average_cost_after_partial_sell(self):
        trades = [
            _trade('AAPL', 10, TradeSide.BUY, 100),
            _trade('AAPL', 10, TradeSide.BUY, 200),
            _trade('AAPL', 5, TradeSide.SELL, 250),
        ]

        holding = build_positions(trades)['AAPL']

        assert holding['quantity'] == 15
        assert holding['cost'] / holding['quantity'] == Decimal('150')

    def test_closed_positions_are_dropped(self):
        trades = [_trade('MSFT', 2, TradeSide.BUY, 300), _trade('MSFT', 2, TradeSide.SELL, 310)]
        assert build_positions(trades) == {}


class TestTradingAssistantService:

    @pytest.fixture
    def market_client(self):
        client = MagicMock()
        client.get_quote.return_value = {'symbol': 'AAPL', 'price': 187.456}
        return client

    @pytest.fixture
    def trade_repo(self):
        repo = MagicMock()
        repo.find_for_user.return_value = []
        repo.create_trade.return_value = 1
        return repo

    @pytest.fixture
    def chat_repo(self):
        return MagicMock()

    @pytest.fixture
    def assistant(self, market_client, trade_repo, chat_repo):
        return TradingAssistantService(market_client, trade_repo, chat_repo)

    def test_trade_request_asks_for_confirmation(self, assistant, trade_repo, chat_repo):
        reply = assistant.process_chat_message('user-1', "Buy 5 shares of AAPL")

        assert reply.intent == IntentType.TRADE_CONFIRMATION
        assert reply.message.startswith("I understand you want to buy 5 shares of AAPL.")
        assert assistant.pending_trade('user-1').symbol == 'AAPL'
        trade_repo.create_trade.assert_not_called()
        chat_repo.log_exchange.assert_called_once_with(
            'user-1', "Buy 5 shares of AAPL", reply.message, 'TRADE_CONFIRMATION'
        )

    def test_confirmation_executes_pending_trade(self, assistant, trade_repo):
        assistant.process_chat_message('user-1', "Buy 5 shares of AAPL")
        reply = assistant.process_chat_message('user-1', "yes")

        assert reply.intent == IntentType.EXECUTE_TRADE
        assert "bought 5 shares of AAPL at $187.46" in reply.message
        trade: Trade = trade_repo.create_trade.call_args[0][0]
        assert trade.price_at_execution == Decimal('187.46')
        assert trade.via_chatbot is True
        assert assistant.pending_trade('user-1') is None

    def test_confirmation_without_pending_trade(self, assistant):
        reply = assistant.process_chat_message('user-1', "confirm")
        assert reply.intent == IntentType.ERROR
        assert reply.message == MISSING_TRADE_REPLY

    def test_pending_trades_are_per_user(self, assistant):
        assistant.process_chat_message('user-1', "Buy 5 shares of AAPL")
        reply = assistant.process_chat_message('user-2', "yes")
        assert reply.message == MISSING_TRADE_REPLY

    def test_selling_more_than_held_is_rejected(self, assistant, trade_repo):
        trade_repo.find_for_user.return_value = [_trade('AAPL', 2, TradeSide.BUY, 100)]

        with pytest.raises(InvalidTradeException):
            assistant.execute_trade('user-1', 'AAPL', 3, TradeSide.SELL)
        trade_repo.create_trade.assert_not_called()

    def test_failed_execution_is_reported_in_chat(self, assistant, market_client):
        market_client.get_quote.side_effect = MarketDataException("quota exceeded", "RATE_LIMITED")
        assistant.process_chat_message('user-1', "Buy 1 share of AAPL")

        reply = assistant.process_chat_message('user-1', "ok")

        assert reply.intent == IntentType.ERROR
        assert "couldn't execute your trade: quota exceeded" in reply.message
        assert assistant.pending_trade('user-1') is not None

    def test_empty_portfolio(self, assistant):
        reply = assistant.process_chat_message('user-1', "show my holdings")
        assert reply.intent == IntentType.GET_PORTFOLIO
        assert reply.message == EMPTY_PORTFOLIO_REPLY

    def test_portfolio_summary(self, assistant, trade_repo, market_client):
        trade_repo.find_for_user.return_value = [_trade('AAPL', 10, TradeSide.BUY, 150)]
        market_client.get_quote.return_value = {'symbol': 'AAPL', 'price': 160}

        positions = assistant.get_portfolio('user-1')
        reply = assistant.process_chat_message('user-1', "portfolio")

        assert positions[0].market_value == Decimal('1600.00')
        assert positions[0].unrealized_pl == Decimal('100.00')
        assert "1 positions with a total value of $1600.00" in reply.message
        assert "• AAPL: 10 shares" in reply.message

    def test_portfolio_falls_back_to_average_cost(self, assistant, trade_repo, market_client):
        trade_repo.find_for_user.return_value = [_trade('AAPL', 4, TradeSide.BUY, 150)]
        market_client.get_quote.side_effect = MarketDataException("down")

        position = assistant.get_portfolio('user-1')[0]

        assert position.market_price == Decimal('150.00')
        assert position.unrealized_pl == Decimal('0')

    @pytest.mark.parametrize("message,expected", [
        ("hello there", GREETING_REPLY),
        ("I need help", HELP_REPLY),
        ("what is this thing", DEFAULT_REPLY),
    ])
    def test_general_replies(self, assistant, message, expected):
        reply = assistant.process_chat_message('user-1', message)
        assert reply.intent == IntentType.GENERAL
        assert reply.message == expected

    def test_chat_history_failure_does_not_break_reply(self, assistant, chat_repo):
        from utils.exceptions import DatabaseException
        chat_repo.log_exchange.side_effect = DatabaseException("insert failed")

        reply = assistant.process_chat_message('user-1', "hello")

        assert reply.message == GREETING_REPLY
