"""
Trading Assistant Service — Chat-driven paper trading.

Messages are classified with regular expressions into trade, confirmation,
portfolio or general requests. Trades are filled at the current quote and
recorded in trade history; no orders reach a broker.
"""
import logging
import re
from decimal import Decimal
from typing import Dict, List, Optional

from core.clients.market_data_client import MarketDataClient
from core.repositories.trade_repository import TradeRepository, ChatHistoryRepository
from core.models.entities import (
    Trade, TradeSide, TradeIntent, IntentType, ChatReply, Position
)
from utils.exceptions import FinMateException, InvalidTradeException
from utils.validators import FinanceValidator
from utils.helpers import NumberUtils, LoggingUtils

logger = logging.getLogger(__name__)

BUY_PATTERN = re.compile(r'(?:buy|purchase)\s+(\d+)\s+(?:shares?|stocks?)?(?:\s+of)?\s+([A-Z]+)', re.IGNORECASE)
SELL_PATTERN = re.compile(r'(?:sell|exit)\s+(\d+)\s+(?:shares?|stocks?)?(?:\s+of)?\s+([A-Z]+)', re.IGNORECASE)
PORTFOLIO_PATTERN = re.compile(r'(?:portfolio|holdings|positions|what do i own|show me my stocks)', re.IGNORECASE)
CONFIRM_PATTERN = re.compile(r'\b(?:yes|confirm|execute|proceed|go ahead|ok|okay)\b', re.IGNORECASE)
RESTATED_TRADE_PATTERN = re.compile(
    r'(?:yes|confirm|execute|proceed).*?(?:buy|sell)\s+(\d+)\s+shares\s+of\s+([A-Z]+)', re.IGNORECASE
)
GREETING_PATTERN = re.compile(r'\b(?:hello|hi)\b', re.IGNORECASE)

GREETING_REPLY = ("Hello! I'm your AI trading assistant. How can I help you today? You can ask me to "
                  "buy or sell stocks, check your portfolio, or get market information.")
HELP_REPLY = ("I can help you with trading stocks. Try commands like:\n"
              "• 'Buy 5 shares of AAPL'\n"
              "• 'Sell 3 shares of MSFT'\n"
              "• 'Show my portfolio'\n"
              "• 'What's the price of TSLA?'")
MARKET_REPLY = ("The market today is generally mixed. Major indices like S&P 500 and Nasdaq are showing "
                "moderate movements. Is there a specific sector or stock you're interested in?")
RECOMMEND_REPLY = ("I'm not able to provide specific investment recommendations. However, I can help you "
                   "execute trades or analyze your existing portfolio. What would you like to do?")
DEFAULT_REPLY = ("I'm not sure how to respond to that. You can ask me to buy or sell stocks, check your "
                 "portfolio, or get general market information. How can I assist you with your trading today?")
MISSING_TRADE_REPLY = ("I couldn't find the details of the trade you want to confirm. Please provide the "
                       "complete trading instructions again.")
EMPTY_PORTFOLIO_REPLY = ("You don't have any positions in your portfolio yet. Would you like me to help you "
                         "make your first investment?")


def parse_trade_command(message: str) -> TradeIntent:
    """Classify a chat message; patterns are tried in a fixed order"""
    message = message or ''

    buy_match = BUY_PATTERN.search(message)
    if buy_match:
        return TradeIntent(IntentType.EXECUTE_TRADE, TradeSide.BUY,
                           int(buy_match.group(1)), buy_match.group(2).upper())

    sell_match = SELL_PATTERN.search(message)
    if sell_match:
        return TradeIntent(IntentType.EXECUTE_TRADE, TradeSide.SELL,
                           int(sell_match.group(1)), sell_match.group(2).upper())

    if PORTFOLIO_PATTERN.search(message):
        return TradeIntent(IntentType.GET_PORTFOLIO)

    if CONFIRM_PATTERN.search(message):
        restated = RESTATED_TRADE_PATTERN.search(message)
        if restated:
            side = TradeSide.SELL if 'sell' in message.lower() else TradeSide.BUY
            return TradeIntent(IntentType.CONFIRM_TRADE, side,
                               int(restated.group(1)), restated.group(2).upper())
        return TradeIntent(IntentType.CONFIRM_TRADE)

    return TradeIntent(IntentType.GENERAL)


def general_reply(message: str) -> str:
    lower = (message or '').lower()
    if GREETING_PATTERN.search(lower):
        return GREETING_REPLY
    if 'help' in lower:
        return HELP_REPLY
    if 'market' in lower or 'today' in lower:
        return MARKET_REPLY
    if 'recommend' in lower or 'suggest' in lower:
        return RECOMMEND_REPLY
    return DEFAULT_REPLY


def build_positions(trades: List[Trade]) -> Dict[str, Dict[str, Decimal]]:
    """Net quantity and average cost per symbol from trades in execution order"""
    holdings: Dict[str, Dict[str, Decimal]] = {}
    for trade in trades:
        holding = holdings.setdefault(trade.symbol, {'quantity': 0, 'cost': Decimal('0.00')})
        if trade.trade_type == TradeSide.BUY:
            holding['cost'] += trade.price_at_execution * trade.quantity
            holding['quantity'] += trade.quantity
        else:
            # Sells release cost at the running average
            if holding['quantity']:
                average = holding['cost'] / holding['quantity']
                holding['cost'] -= average * min(trade.quantity, holding['quantity'])
            holding['quantity'] = max(holding['quantity'] - trade.quantity, 0)

    return {symbol: h for symbol, h in holdings.items() if h['quantity'] > 0}


class TradingAssistantService:
    """Paper-trading chat assistant; pending trades are kept per user on this instance"""

    def __init__(self, market_client: MarketDataClient = None, trade_repo: TradeRepository = None,
                 chat_repo: ChatHistoryRepository = None):
        self.market_client = market_client or MarketDataClient()
        self.trade_repo = trade_repo or TradeRepository()
        self.chat_repo = chat_repo or ChatHistoryRepository()
        self.pending_trades: Dict[str, TradeIntent] = {}

    def process_chat_message(self, user_id: str, message: str) -> ChatReply:
        """Answer one chat message and store the exchange in chat history"""
        FinanceValidator.validate_user_id(user_id)
        logger.info(f"Processing chat message from user {user_id}: {message}")

        try:
            reply = self._reply_to(user_id, message)
        except FinMateException as e:
            logger.error(f"Error processing chat message for user {user_id}: {e.message}")
            reply = ChatReply(
                IntentType.ERROR,
                f"I'm sorry, I encountered an error processing your request: {e.message}. Please try again."
            )

        try:
            self.chat_repo.log_exchange(user_id, message, reply.message, reply.intent.value)
        except FinMateException as e:
            logger.error(f"Could not store chat history for user {user_id}: {e.message}")

        return reply

    def _reply_to(self, user_id: str, message: str) -> ChatReply:
        intent = parse_trade_command(message)

        if intent.type == IntentType.EXECUTE_TRADE:
            self.pending_trades[user_id] = intent
            return ChatReply(
                IntentType.TRADE_CONFIRMATION,
                f"I understand you want to {intent.side.value} {intent.quantity} shares of {intent.symbol}. "
                f"Would you like me to execute this trade? Please respond with \"Yes\" to confirm.",
                intent,
            )

        if intent.type == IntentType.CONFIRM_TRADE:
            trade_intent = intent if intent.symbol else self.pending_trades.get(user_id)
            if not trade_intent:
                return ChatReply(IntentType.ERROR, MISSING_TRADE_REPLY)

            try:
                trade = self.execute_trade(user_id, trade_intent.symbol, trade_intent.quantity,
                                           trade_intent.side, via_chatbot=True)
            except FinMateException as e:
                return ChatReply(IntentType.ERROR, f"❌ Sorry, I couldn't execute your trade: {e.message}")

            self.pending_trades.pop(user_id, None)
            verb = 'bought' if trade.trade_type == TradeSide.BUY else 'sold'
            return ChatReply(
                IntentType.EXECUTE_TRADE,
                f"✅ Trade executed successfully! I've {verb} {trade.quantity} shares of {trade.symbol} "
                f"at ${trade.price_at_execution:.2f} per share.",
                trade_intent,
            )

        if intent.type == IntentType.GET_PORTFOLIO:
            return ChatReply(IntentType.GET_PORTFOLIO, self._portfolio_summary(user_id))

        return ChatReply(IntentType.GENERAL, general_reply(message))

    def _portfolio_summary(self, user_id: str) -> str:
        positions = self.get_portfolio(user_id)
        if not positions:
            return EMPTY_PORTFOLIO_REPLY

        total_value = sum((p.market_value for p in positions), Decimal('0.00'))
        total_pl = sum((p.unrealized_pl for p in positions), Decimal('0.00'))
        lines = "".join(
            f"\n• {p.symbol}: {p.quantity} shares, Value: ${p.market_value:.2f}, P/L: ${p.unrealized_pl:.2f}"
            for p in positions
        )
        return (f"📊 Your portfolio contains {len(positions)} positions with a total value of "
                f"${total_value:.2f} and an unrealized P/L of ${total_pl:.2f}.{lines}")

    def execute_trade(self, user_id: str, symbol: str, quantity: int, side: TradeSide,
                      via_chatbot: bool = False) -> Trade:
        """Fill a paper trade at the current quote and record it"""
        FinanceValidator.validate_user_id(user_id)
        symbol = FinanceValidator.validate_symbol(symbol)
        quantity = FinanceValidator.validate_quantity(quantity)

        if side == TradeSide.SELL:
            held = build_positions(self.trade_repo.find_for_user(user_id)).get(symbol, {}).get('quantity', 0)
            if quantity > held:
                raise InvalidTradeException(f"You hold {held} shares of {symbol}, cannot sell {quantity}")

        quote = self.market_client.get_quote(symbol)
        trade = Trade(
            user_id=user_id,
            symbol=symbol,
            quantity=quantity,
            trade_type=side,
            price_at_execution=NumberUtils.round_currency(Decimal(str(quote['price']))),
            via_chatbot=via_chatbot,
        )
        trade.trade_id = self.trade_repo.create_trade(trade)

        LoggingUtils.log_business_event(
            "trade_executed", "trade", trade.trade_id,
            user_id=user_id,
            details={'symbol': symbol, 'quantity': quantity, 'side': side.value,
                     'price': str(trade.price_at_execution)}
        )
        return trade

    def get_portfolio(self, user_id: str) -> List[Position]:
        """Open positions valued at the current quote, or the average cost when no quote is available"""
        positions = []
        for symbol, holding in sorted(build_positions(self.trade_repo.find_for_user(user_id)).items()):
            average_cost = NumberUtils.round_currency(holding['cost'] / holding['quantity'])
            market_price = self._market_price(symbol, average_cost)
            positions.append(Position(
                symbol=symbol,
                quantity=holding['quantity'],
                average_cost=average_cost,
                market_price=market_price,
            ))
        return positions

    def _market_price(self, symbol: str, default: Decimal) -> Decimal:
        try:
            return NumberUtils.round_currency(Decimal(str(self.market_client.get_quote(symbol)['price'])))
        except FinMateException as e:
            LoggingUtils.log_external_failure("alpha_vantage", "quote", e)
            return default

    def get_chat_history(self, user_id: str, limit: int = 50) -> List[dict]:
        return self.chat_repo.get_recent(user_id, limit)

    def pending_trade(self, user_id: str) -> Optional[TradeIntent]:
        return self.pending_trades.get(user_id)
