"""
Expense Service
Expense records plus the category and month summaries shown on the dashboard
"""

from datetime import date
from decimal import Decimal
from typing import List, Dict, Any, Iterable

import pandas as pd

from core.repositories.expense_repository import ExpenseRepository
from core.models.entities import Expense, ExpenseInsights
from utils.exceptions import NotFoundException
from utils.validators import FinanceValidator
from utils.helpers import DateUtils, NumberUtils, StringUtils, LoggingUtils

# Month-over-month growth above this percentage counts as overspending
OVERSPENDING_CHANGE_PERCENT = 20


def _expense_frame(expenses: Iterable[Expense]) -> pd.DataFrame:
    rows = [
        {'category': e.category, 'amount': float(e.amount), 'date': pd.Timestamp(DateUtils.to_date(e.date))}
        for e in expenses
    ]
    return pd.DataFrame(rows, columns=['category', 'amount', 'date'])


def summarize_by_category(expenses: Iterable[Expense]) -> List[Dict[str, Any]]:
    """Total spent per category, largest first"""
    df = _expense_frame(expenses)
    if df.empty:
        return []

    totals = df.groupby('category')['amount'].sum().sort_values(ascending=False)
    return [
        {'category': category, 'amount': round(float(amount), 2)}
        for category, amount in totals.items()
    ]


def summarize_by_month(expenses: Iterable[Expense]) -> List[Dict[str, Any]]:
    """Total spent per calendar month, oldest first"""
    df = _expense_frame(expenses)
    if df.empty:
        return []

    df['month'] = df['date'].dt.strftime('%Y-%m')
    totals = df.groupby('month')['amount'].sum().sort_index()
    return [
        {'month': month, 'amount': round(float(amount), 2)}
        for month, amount in totals.items()
    ]


def calculate_expense_insights(expenses: Iterable[Expense], today: date = None) -> ExpenseInsights:
    """Highest category and this month against last month"""
    expenses = list(expenses)
    today = today or date.today()
    insights = ExpenseInsights()
    if not expenses:
        return insights

    by_category: Dict[str, Decimal] = {}
    for expense in expenses:
        by_category[expense.category] = by_category.get(expense.category, Decimal('0.00')) + Decimal(str(expense.amount))
    insights.highest_category, insights.highest_category_amount = max(by_category.items(), key=lambda kv: kv[1])

    current_key = DateUtils.month_key(today)
    previous_key = DateUtils.month_key(DateUtils.previous_month(today))
    insights.monthly_total = sum(
        (Decimal(str(e.amount)) for e in expenses if DateUtils.month_key(DateUtils.to_date(e.date)) == current_key),
        Decimal('0.00')
    )
    insights.previous_month_total = sum(
        (Decimal(str(e.amount)) for e in expenses if DateUtils.month_key(DateUtils.to_date(e.date)) == previous_key),
        Decimal('0.00')
    )

    change = NumberUtils.percent_change(float(insights.monthly_total), float(insights.previous_month_total))
    insights.change_percentage = round(change, 2) if change is not None else None
    insights.overspending_warning = change is not None and change > OVERSPENDING_CHANGE_PERCENT

    return insights


class ExpenseService:
    """Service class for expense operations"""

    def __init__(self, expense_repo: ExpenseRepository = None):
        self.expense_repo = expense_repo or ExpenseRepository()

    def add_expense(self, user_id: str, category: str, amount, expense_date: date,
                    description: str = None) -> Expense:
        """Validate and record an expense"""
        FinanceValidator.validate_user_id(user_id)
        expense = Expense(
            user_id=user_id,
            category=FinanceValidator.validate_category(category),
            amount=FinanceValidator.validate_amount(amount),
            date=FinanceValidator.validate_date(expense_date),
            description=StringUtils.clean_string(description) or None,
        )

        expense.expense_id = self.expense_repo.create_expense(expense)
        LoggingUtils.log_business_event(
            "expense_added", "expense", expense.expense_id,
            user_id=user_id,
            details={'category': expense.category, 'amount': str(expense.amount)}
        )
        return expense

    def update_expense(self, user_id: str, expense_id: int, **changes) -> Expense:
        expense = self.expense_repo.find_expense(expense_id, user_id)
        if not expense:
            raise NotFoundException(f"Expense {expense_id} not found")

        if 'category' in changes:
            expense.category = FinanceValidator.validate_category(changes['category'])
        if 'amount' in changes:
            expense.amount = FinanceValidator.validate_amount(changes['amount'])
        if 'date' in changes:
            expense.date = FinanceValidator.validate_date(changes['date'])
        if 'description' in changes:
            expense.description = StringUtils.clean_string(changes['description']) or None

        self.expense_repo.update_expense(expense)
        LoggingUtils.log_business_event("expense_updated", "expense", expense_id, user_id=user_id)
        return expense

    def delete_expense(self, user_id: str, expense_id: int) -> bool:
        if not self.expense_repo.exists(expense_id, user_id):
            raise NotFoundException(f"Expense {expense_id} not found")
        self.expense_repo.delete(expense_id, user_id)

        LoggingUtils.log_business_event("expense_deleted", "expense", expense_id, user_id=user_id)
        return True

    def get_expenses(self, user_id: str, start_date: date = None, end_date: date = None) -> List[Expense]:
        if start_date and end_date:
            FinanceValidator.validate_date_range(start_date, end_date)
        return self.expense_repo.find_for_user(user_id, start_date, end_date)

    def get_expense_insights(self, user_id: str, today: date = None) -> ExpenseInsights:
        return calculate_expense_insights(self.expense_repo.find_for_user(user_id), today)
