"""
Stock Service
Watchlist management, price history and news with sample fallbacks, and stored predictions
"""

import logging
from datetime import date
from typing import List, Optional

from core.clients.market_data_client import (
    MarketDataClient, parse_time_series, sample_price_points, sample_news
)
from core.repositories.watchlist_repository import WatchlistRepository
from core.repositories.prediction_repository import PredictionRepository
from core.models.entities import (
    WatchlistEntry, StockPrediction, StockData, NewsItem, Timeframe
)
from utils.exceptions import ValidationException, NotFoundException, MarketDataException
from utils.validators import FinanceValidator
from utils.helpers import LoggingUtils

logger = logging.getLogger(__name__)

ACTION_CHANGE_PERCENT = 5
LOW_RISK_CONFIDENCE = 0.75
MEDIUM_RISK_CONFIDENCE = 0.5


def prediction_change_percent(prediction: StockPrediction) -> float:
    if not prediction.current_price:
        return 0.0
    return (prediction.predicted_price - prediction.current_price) / prediction.current_price * 100


def prediction_action(prediction: StockPrediction) -> str:
    """BUY/SELL when the predicted move is beyond 5% either way, otherwise HOLD"""
    change = prediction_change_percent(prediction)
    if change > ACTION_CHANGE_PERCENT:
        return 'BUY'
    if change < -ACTION_CHANGE_PERCENT:
        return 'SELL'
    return 'HOLD'


def prediction_risk(prediction: StockPrediction) -> str:
    if prediction.confidence_score > LOW_RISK_CONFIDENCE:
        return 'LOW'
    if prediction.confidence_score > MEDIUM_RISK_CONFIDENCE:
        return 'MEDIUM'
    return 'HIGH'


class StockService:
    """Service class for stock market features"""

    def __init__(self, market_client: MarketDataClient = None, watchlist_repo: WatchlistRepository = None,
                 prediction_repo: PredictionRepository = None):
        self.market_client = market_client or MarketDataClient()
        self.watchlist_repo = watchlist_repo or WatchlistRepository()
        self.prediction_repo = prediction_repo or PredictionRepository()

    # Watchlist

    def add_to_watchlist(self, user_id: str, symbol: str) -> WatchlistEntry:
        FinanceValidator.validate_user_id(user_id)
        symbol = FinanceValidator.validate_symbol(symbol)

        if self.watchlist_repo.find_by_symbol(user_id, symbol):
            raise ValidationException(f"{symbol} is already in your watchlist", "DUPLICATE_SYMBOL")

        entry = WatchlistEntry(user_id=user_id, stock_symbol=symbol)
        entry.entry_id = self.watchlist_repo.add_entry(entry)
        LoggingUtils.log_business_event("watchlist_added", "watchlist", entry.entry_id,
                                        user_id=user_id, details={'symbol': symbol})
        return entry

    def remove_from_watchlist(self, user_id: str, symbol: str) -> bool:
        symbol = FinanceValidator.validate_symbol(symbol)
        entry = self.watchlist_repo.find_by_symbol(user_id, symbol)
        if not entry:
            raise NotFoundException(f"{symbol} is not in your watchlist")

        self.watchlist_repo.delete(entry.entry_id, user_id)
        LoggingUtils.log_business_event("watchlist_removed", "watchlist", entry.entry_id,
                                        user_id=user_id, details={'symbol': symbol})
        return True

    def get_watchlist(self, user_id: str) -> List[WatchlistEntry]:
        return self.watchlist_repo.find_for_user(user_id)

    # Market data

    def get_stock_data(self, symbol: str, timeframe: Timeframe = Timeframe.DAILY) -> StockData:
        """Price history for symbol; sample data when the market-data API is unavailable"""
        symbol = FinanceValidator.validate_symbol(symbol)
        try:
            payload = self.market_client.get_time_series(symbol, timeframe)
            points = parse_time_series(payload, timeframe)
            if not points:
                raise MarketDataException(f"No price history returned for {symbol}", "NOT_FOUND")
            return StockData(symbol=symbol, timeframe=timeframe, points=points)
        except MarketDataException as e:
            LoggingUtils.log_external_failure("alpha_vantage", "time_series", e)
            return StockData(
                symbol=symbol, timeframe=timeframe,
                points=sample_price_points(symbol, timeframe), is_sample=True
            )

    def get_stock_news(self, symbol: str) -> List[NewsItem]:
        symbol = FinanceValidator.validate_symbol(symbol)
        try:
            news = self.market_client.get_news(symbol)
        except MarketDataException as e:
            LoggingUtils.log_external_failure("alpha_vantage", "news", e)
            return sample_news(symbol)
        return news or sample_news(symbol)

    def search_symbols(self, keywords: str) -> List[dict]:
        """Ticker matches for a search box; empty when the API is unavailable"""
        if not keywords or not keywords.strip():
            return []
        try:
            return self.market_client.search_symbols(keywords.strip())
        except MarketDataException as e:
            LoggingUtils.log_external_failure("alpha_vantage", "symbol_search", e)
            return []

    # Predictions

    def record_prediction(self, user_id: str, symbol: str, current_price: float, predicted_price: float,
                          confidence_score: float, prediction_date: Optional[date] = None) -> StockPrediction:
        FinanceValidator.validate_user_id(user_id)
        symbol = FinanceValidator.validate_symbol(symbol)
        if current_price <= 0 or predicted_price <= 0:
            raise ValidationException("Prices must be positive")

        prediction = StockPrediction(
            user_id=user_id,
            stock_symbol=symbol,
            current_price=float(current_price),
            predicted_price=float(predicted_price),
            confidence_score=float(confidence_score),
            prediction_date=prediction_date or date.today(),
        )
        prediction.prediction_id = self.prediction_repo.create_prediction(prediction)
        logger.info(f"Stored {symbol} prediction for user {user_id}: {prediction_action(prediction)}")
        return prediction

    def get_predictions(self, user_id: str, symbol: str = None) -> List[StockPrediction]:
        if symbol:
            symbol = FinanceValidator.validate_symbol(symbol)
        return self.prediction_repo.find_for_user(user_id, symbol)
