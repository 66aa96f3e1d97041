"""
Expense Repository
Handles database operations for expenses table
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List

from core.repositories.base_repository import BaseRepository
from core.models.entities import Expense
from utils.exceptions import ValidationException

class ExpenseRepository(BaseRepository):
    """Repository for expenses table operations"""

    def __init__(self, db=None):
        super().__init__('expenses', 'expense_id', db)

    def create_expense(self, expense: Expense) -> int:
        """Create a new expense"""
        if not expense.user_id or not expense.category or expense.date is None:
            raise ValidationException("User ID, category and date are required")

        expense_data = {
            'user_id': expense.user_id,
            'category': expense.category,
            'amount': expense.amount,
            'date': expense.date,
            'description': expense.description,
            'created_at': expense.created_at or datetime.now()
        }

        return self.create(expense_data)

    def find_expense(self, expense_id: int, user_id: str) -> Optional[Expense]:
        row = self.find_by_id(expense_id, user_id)
        return self._dict_to_expense(row) if row else None

    def find_for_user(self, user_id: str, start_date: date = None, end_date: date = None) -> List[Expense]:
        """Get a user's expenses, newest first, optionally within a date range"""
        rows = self.find_by_user(
            user_id, order_by='date', date_field='date',
            start_date=start_date, end_date=end_date
        )
        return [self._dict_to_expense(row) for row in rows]

    def update_expense(self, expense: Expense) -> bool:
        return self.update(expense.expense_id, expense.user_id, {
            'category': expense.category,
            'amount': expense.amount,
            'date': expense.date,
            'description': expense.description,
        })

    def _dict_to_expense(self, row: dict) -> Expense:
        """Convert dictionary to Expense object"""
        return Expense(
            expense_id=row['expense_id'],
            user_id=row['user_id'],
            category=row['category'],
            amount=Decimal(str(row['amount'])),
            date=row['date'],
            description=row.get('description'),
            created_at=row.get('created_at')
        )
