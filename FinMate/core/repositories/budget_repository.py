"""
Budget Repository
Handles database operations for budgets table
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from core.repositories.base_repository import BaseRepository
from core.models.entities import Budget
from utils.exceptions import ValidationException

class BudgetRepository(BaseRepository):
    """Repository for budgets table operations"""

    def __init__(self, db=None):
        super().__init__('budgets', 'budget_id', db)

    def create_budget(self, budget: Budget) -> int:
        """Create a new budget"""
        if not budget.user_id or not budget.category:
            raise ValidationException("User ID and category are required")

        budget_data = {
            'user_id': budget.user_id,
            'category': budget.category,
            'amount': budget.amount,
            'start_date': budget.start_date,
            'end_date': budget.end_date,
            'created_at': budget.created_at or datetime.now()
        }

        return self.create(budget_data)

    def find_budget(self, budget_id: int, user_id: str) -> Optional[Budget]:
        row = self.find_by_id(budget_id, user_id)
        return self._dict_to_budget(row) if row else None

    def find_for_user(self, user_id: str) -> List[Budget]:
        """Get a user's budgets, most recently created first"""
        rows = self.find_by_user(user_id, order_by='created_at')
        return [self._dict_to_budget(row) for row in rows]

    def update_budget(self, budget: Budget) -> bool:
        return self.update(budget.budget_id, budget.user_id, {
            'category': budget.category,
            'amount': budget.amount,
            'start_date': budget.start_date,
            'end_date': budget.end_date,
        })

    def _dict_to_budget(self, row: dict) -> Budget:
        """Convert dictionary to Budget object"""
        return Budget(
            budget_id=row['budget_id'],
            user_id=row['user_id'],
            category=row['category'],
            amount=Decimal(str(row['amount'])),
            start_date=row['start_date'],
            end_date=row['end_date'],
            created_at=row.get('created_at')
        )
