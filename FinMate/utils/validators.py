"""
Input Validation Utilities
Provides validation functions for user-entered finance records
"""

import re
from decimal import Decimal, InvalidOperation
from datetime import date
from typing import Union
from utils.exceptions import ValidationException

SYMBOL_PATTERN = re.compile(r'^[A-Z][A-Z0-9]{0,9}(\.[A-Z]{1,5})?$')

class FinanceValidator:
    """Validation utilities for expenses, budgets and trades"""

    @staticmethod
    def validate_user_id(user_id: str) -> bool:
        """Every record is owned by a user"""
        if not user_id or not str(user_id).strip():
            raise ValidationException("User ID is required")
        return True

    @staticmethod
    def validate_amount(amount: Union[Decimal, int, float, str], allow_zero: bool = False) -> Decimal:
        """Validate a monetary amount and return it as Decimal"""
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError):
            raise ValidationException(f"Invalid amount: {amount}")

        if not value.is_finite():
            raise ValidationException("Amount must be a finite number")

        if value < 0 or (value == 0 and not allow_zero):
            raise ValidationException("Amount must be positive")

        # Check decimal places (max 2 for currency)
        if value.as_tuple().exponent < -2:
            raise ValidationException("Amount cannot have more than 2 decimal places")

        return value

    @staticmethod
    def validate_category(category: str) -> str:
        """Validate and normalize an expense/budget category"""
        if not category or not str(category).strip():
            raise ValidationException("Category is required")

        cleaned = " ".join(str(category).strip().split())
        if len(cleaned) > 50:
            raise ValidationException("Category cannot exceed 50 characters")

        return cleaned

    @staticmethod
    def validate_date(value, field_name: str = "Date") -> date:
        if not isinstance(value, date):
            raise ValidationException(f"{field_name} is required")
        return value

    @staticmethod
    def validate_date_range(start_date: date, end_date: date) -> bool:
        """Validate an inclusive budget period"""
        FinanceValidator.validate_date(start_date, "Start date")
        FinanceValidator.validate_date(end_date, "End date")

        if start_date > end_date:
            raise ValidationException("Start date must be on or before end date")

        return True

    @staticmethod
    def validate_symbol(symbol: str) -> str:
        """Validate a ticker symbol and return it upper-cased"""
        if not symbol or not str(symbol).strip():
            raise ValidationException("Stock symbol is required")

        normalized = str(symbol).strip().upper()
        if not SYMBOL_PATTERN.match(normalized):
            raise ValidationException(f"Invalid stock symbol: {symbol}")

        return normalized

    @staticmethod
    def validate_quantity(quantity) -> int:
        """Trade quantities are whole, positive share counts"""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationException("Quantity must be a whole number")

        if quantity <= 0:
            raise ValidationException("Quantity must be positive")

        return quantity
