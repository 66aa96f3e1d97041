"""
Watchlist Repository
Handles database operations for stock_watchlist table
"""

from datetime import datetime
from typing import Optional, List

from core.repositories.base_repository import BaseRepository
from core.models.entities import WatchlistEntry

class WatchlistRepository(BaseRepository):
    """Repository for stock_watchlist table operations"""

    def __init__(self, db=None):
        super().__init__('stock_watchlist', 'entry_id', db)

    def add_entry(self, entry: WatchlistEntry) -> int:
        return self.create({
            'user_id': entry.user_id,
            'stock_symbol': entry.stock_symbol,
            'added_at': entry.added_at or datetime.now()
        })

    def find_by_symbol(self, user_id: str, symbol: str) -> Optional[WatchlistEntry]:
        rows = self.find_by_field(user_id, 'stock_symbol', symbol)
        return self._dict_to_entry(rows[0]) if rows else None

    def find_for_user(self, user_id: str) -> List[WatchlistEntry]:
        rows = self.find_by_user(user_id, order_by='added_at')
        return [self._dict_to_entry(row) for row in rows]

    def _dict_to_entry(self, row: dict) -> WatchlistEntry:
        return WatchlistEntry(
            entry_id=row['entry_id'],
            user_id=row['user_id'],
            stock_symbol=row['stock_symbol'],
            added_at=row.get('added_at')
        )
