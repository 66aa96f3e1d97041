"""
Helper Utilities
Common utility functions for finance operations
"""

from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime, date
from enum import Enum
from typing import Dict, Any, Optional
import math
import logging

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

class NumberUtils:
    """Utility functions for number operations"""

    @staticmethod
    def round_currency(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places for currency"""
        return amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    @staticmethod
    def round_half_up(value: float) -> int:
        """Round to the nearest integer, halves away from zero"""
        return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))

    @staticmethod
    def clamp(value: float, lower: float, upper: float) -> float:
        return max(lower, min(upper, value))

    @staticmethod
    def percent_change(current: float, previous: float):
        """Percentage change from previous to current, None when previous is zero"""
        if not previous:
            return None
        return (current - previous) / previous * 100

    @staticmethod
    def to_number(value) -> Optional[float]:
        """float(value), or None for missing, unreadable or NaN input"""
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        return None if math.isnan(number) else number

class DateUtils:
    """Utility functions for date operations"""

    @staticmethod
    def to_date(value) -> date:
        """Coerce a datetime or ISO string into a date"""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()

    @staticmethod
    def previous_month(check_date: date) -> date:
        """Any date shifted one calendar month back (January wraps to December)"""
        return check_date.replace(day=1) - relativedelta(months=1)

    @staticmethod
    def month_key(check_date: date) -> str:
        return check_date.strftime("%Y-%m")

class StringUtils:
    """Utility functions for string operations"""

    @staticmethod
    def clean_string(text: str) -> str:
        """Clean and normalize string input"""
        if not text:
            return ""

        # Remove extra whitespace and normalize
        return " ".join(text.strip().split())

    @staticmethod
    def mask_key(key: str) -> str:
        """Show only the first 5 and last 4 characters of an API key"""
        if not key or len(key) <= 9:
            return "***"
        return f"{key[:5]}...{key[-4:]}"

    @staticmethod
    def normalize_choice(value) -> str:
        """Lower-cased string form of an enum member or raw form value"""
        if isinstance(value, Enum):
            value = value.value
        if not isinstance(value, str):
            return ''
        return value.strip().lower()

class LoggingUtils:
    """Logging utility functions"""

    @staticmethod
    def log_business_event(event_type: str, entity_type: str, entity_id,
                          user_id: str = None, details: Dict[str, Any] = None):
        """Log business events"""
        log_data = {
            'event_type': event_type,
            'entity_type': entity_type,
            'entity_id': entity_id,
            'user_id': user_id,
            'timestamp': datetime.now().isoformat(),
            'details': details or {}
        }

        logger.info(f"Business Event: {event_type}", extra=log_data)

    @staticmethod
    def log_external_failure(service: str, operation: str, error: Exception,
                            user_id: str = None):
        """Log a failed third-party call that was answered with a fallback"""
        log_data = {
            'service': service,
            'operation': operation,
            'error': str(error),
            'user_id': user_id,
            'timestamp': datetime.now().isoformat(),
        }

        logger.warning(f"External Failure: {service}.{operation}: {error}", extra=log_data)
