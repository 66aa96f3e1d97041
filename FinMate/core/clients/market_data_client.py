"""
Market Data Client
Alpha Vantage HTTP API: quotes, price history, news and symbol search
"""

import os
import logging
from datetime import date, timedelta
from typing import Dict, Any, List

import requests

from core.models.entities import PricePoint, NewsItem, Timeframe
from utils.exceptions import MarketDataException, RateLimitException
from utils.helpers import DateUtils

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'https://www.alphavantage.co/query'

SERIES_FUNCTIONS = {
    Timeframe.DAILY: ('TIME_SERIES_DAILY', 'Time Series (Daily)'),
    Timeframe.WEEKLY: ('TIME_SERIES_WEEKLY', 'Weekly Time Series'),
    Timeframe.MONTHLY: ('TIME_SERIES_MONTHLY', 'Monthly Time Series'),
}

# Alpha Vantage reports quota and usage problems inside a 200 response
RATE_LIMIT_KEYS = ('Note', 'Information')
ERROR_KEY = 'Error Message'

class MarketDataConfig:
    """Market data configuration management"""

    def __init__(self, api_key: str = None, base_url: str = None, timeout: float = None):
        self.api_key = api_key if api_key is not None else os.getenv('ALPHA_VANTAGE_API_KEY', '')
        self.base_url = base_url or os.getenv('ALPHA_VANTAGE_BASE_URL', DEFAULT_BASE_URL)
        self.timeout = timeout or float(os.getenv('MARKET_DATA_TIMEOUT', 10))

class MarketDataClient:
    """Client for the market-data API keyed by ticker symbol"""

    def __init__(self, config: MarketDataConfig = None, session: requests.Session = None):
        self.config = config or MarketDataConfig()
        self.session = session or requests.Session()

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def _request(self, function: str, **params) -> Dict[str, Any]:
        """Issue one query and inspect the payload for error notices"""
        if not self.is_configured:
            raise MarketDataException("Alpha Vantage API key is not configured", "MARKET_DATA_DISABLED")

        query = {'function': function, 'apikey': self.config.api_key, **params}
        try:
            response = self.session.get(self.config.base_url, params=query, timeout=self.config.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise MarketDataException(f"Market data request failed: {e}", "NETWORK_ERROR") from e
        except ValueError as e:
            raise MarketDataException(f"Malformed market data response: {e}", "BAD_RESPONSE") from e

        if not isinstance(payload, dict):
            raise MarketDataException("Unexpected market data response structure", "BAD_RESPONSE")

        for key in RATE_LIMIT_KEYS:
            if key in payload:
                raise RateLimitException(str(payload[key]), "RATE_LIMITED")
        if ERROR_KEY in payload:
            raise MarketDataException(str(payload[ERROR_KEY]), "API_ERROR")

        return payload

    def get_quote(self, symbol: str) -> Dict[str, Any]:
        """Latest price for symbol"""
        payload = self._request('GLOBAL_QUOTE', symbol=symbol)
        quote = payload.get('Global Quote') or {}
        if '05. price' not in quote:
            raise MarketDataException(f"No quote available for {symbol}", "NOT_FOUND")

        return {
            'symbol': quote.get('01. symbol', symbol),
            'price': float(quote['05. price']),
            'change': float(quote.get('09. change') or 0),
            'change_percent': quote.get('10. change percent', '0%'),
            'volume': float(quote.get('06. volume') or 0),
            'latest_trading_day': quote.get('07. latest trading day'),
        }

    def get_time_series(self, symbol: str, timeframe: Timeframe = Timeframe.DAILY) -> Dict[str, Any]:
        function, _ = SERIES_FUNCTIONS[timeframe]
        return self._request(function, symbol=symbol)

    def get_news(self, symbol: str, limit: int = 10) -> List[NewsItem]:
        payload = self._request('NEWS_SENTIMENT', tickers=symbol)
        return [
            NewsItem(
                title=item.get('title', ''),
                url=item.get('url', ''),
                source=item.get('source', ''),
                summary=item.get('summary', ''),
                published_at=item.get('time_published', ''),
                sentiment=item.get('overall_sentiment_label', ''),
            )
            for item in payload.get('feed', [])[:limit]
        ]

    def search_symbols(self, keywords: str) -> List[Dict[str, str]]:
        payload = self._request('SYMBOL_SEARCH', keywords=keywords)
        return [
            {
                'symbol': match.get('1. symbol', ''),
                'name': match.get('2. name', ''),
                'region': match.get('4. region', ''),
                'currency': match.get('8. currency', ''),
            }
            for match in payload.get('bestMatches', [])
        ]

def parse_time_series(payload: Dict[str, Any], timeframe: Timeframe, limit: int = 90) -> List[PricePoint]:
    """Convert a time series payload into ascending price points, keeping the last `limit`"""
    _, series_key = SERIES_FUNCTIONS[timeframe]
    series = payload.get(series_key) or {}

    points = []
    for day, values in series.items():
        try:
            points.append(PricePoint(
                date=DateUtils.to_date(day),
                open=float(values['1. open']),
                high=float(values['2. high']),
                low=float(values['3. low']),
                close=float(values['4. close']),
                volume=float(values['5. volume']),
            ))
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Skipping malformed price point for {day}")

    points.sort(key=lambda p: p.date)
    return points[-limit:] if limit else points

# ---------------------------------------------------------------------------
# Sample payloads shown when the API is rate-limited or unreachable
# ---------------------------------------------------------------------------

def sample_price_points(symbol: str, timeframe: Timeframe = Timeframe.DAILY,
                        count: int = 30, end: date = None) -> List[PricePoint]:
    """Deterministic placeholder series so charts still render"""
    end = end or date.today()
    step = {Timeframe.DAILY: 1, Timeframe.WEEKLY: 7, Timeframe.MONTHLY: 30}[timeframe]
    base = 100 + sum(ord(c) for c in symbol) % 200

    points = []
    for i in range(count):
        drift = ((i % 7) - 3) / 100
        close = round(base * (1 + drift), 2)
        points.append(PricePoint(
            date=end - timedelta(days=step * (count - 1 - i)),
            open=round(close * 0.995, 2),
            high=round(close * 1.01, 2),
            low=round(close * 0.99, 2),
            close=close,
            volume=float(1_000_000 + i * 10_000),
        ))
    return points

def sample_news(symbol: str) -> List[NewsItem]:
    return [
        NewsItem(
            title=f"{symbol} trades in line with broader market",
            source="FinMate",
            summary="Live market news is temporarily unavailable. Showing sample data.",
            sentiment="Neutral",
        ),
        NewsItem(
            title=f"Analysts keep watch on {symbol} ahead of earnings",
            source="FinMate",
            summary="Live market news is temporarily unavailable. Showing sample data.",
            sentiment="Neutral",
        ),
    ]
