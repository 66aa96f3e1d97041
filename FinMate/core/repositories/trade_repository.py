"""
Trade Repository
Handles database operations for user_trades and chat_history tables
"""

from datetime import datetime
from decimal import Decimal
from typing import List

from core.repositories.base_repository import BaseRepository
from core.models.entities import Trade, TradeSide
from utils.exceptions import ValidationException

class TradeRepository(BaseRepository):
    """Repository for user_trades table operations"""

    def __init__(self, db=None):
        super().__init__('user_trades', 'trade_id', db)

    def create_trade(self, trade: Trade) -> int:
        """Record an executed paper trade"""
        if not trade.symbol or trade.quantity <= 0:
            raise ValidationException("Symbol and positive quantity are required")

        return self.create({
            'user_id': trade.user_id,
            'symbol': trade.symbol,
            'quantity': trade.quantity,
            'trade_type': trade.trade_type.value,
            'price_at_execution': trade.price_at_execution,
            'status': trade.status,
            'via_chatbot': trade.via_chatbot,
            'executed_at': trade.executed_at or datetime.now()
        })

    def find_for_user(self, user_id: str) -> List[Trade]:
        """Get a user's trades in execution order"""
        rows = self.find_by_user(user_id, order_by='executed_at', descending=False)
        return [self._dict_to_trade(row) for row in rows]

    def _dict_to_trade(self, row: dict) -> Trade:
        return Trade(
            trade_id=row['trade_id'],
            user_id=row['user_id'],
            symbol=row['symbol'],
            quantity=int(row['quantity']),
            trade_type=TradeSide(row['trade_type']),
            price_at_execution=Decimal(str(row['price_at_execution'])),
            status=row.get('status', 'filled'),
            via_chatbot=bool(row.get('via_chatbot')),
            executed_at=row.get('executed_at')
        )

class ChatHistoryRepository(BaseRepository):
    """Repository for chat_history table operations"""

    def __init__(self, db=None):
        super().__init__('chat_history', 'chat_id', db)

    def log_exchange(self, user_id: str, message: str, response: str,
                     intent: str = None, chat_type: str = 'trading') -> int:
        return self.create({
            'user_id': user_id,
            'message': message,
            'response': response,
            'intent': intent,
            'chat_type': chat_type,
            'created_at': datetime.now()
        })

    def get_recent(self, user_id: str, limit: int = 50) -> List[dict]:
        return self.find_by_user(user_id, order_by='created_at', limit=limit)
