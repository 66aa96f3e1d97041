"""
Budget Service
Budget CRUD, spending progress per budget and threshold alerts
"""

import logging
import math
from decimal import Decimal
from typing import List, Dict, Any, Iterable, Optional

from core.repositories.budget_repository import BudgetRepository
from core.repositories.expense_repository import ExpenseRepository
from core.services.notification_service import NotificationService
from core.models.entities import Budget, Expense, BudgetProgress, BudgetAlert
from utils.exceptions import ValidationException, NotFoundException
from utils.validators import FinanceValidator
from utils.helpers import DateUtils, LoggingUtils

logger = logging.getLogger(__name__)

APPROACHING_THRESHOLD = 85.0
EXCEEDED_THRESHOLD = 100.0

BUDGET_ALERT_TYPE = 'budget_alert'


def _spent_ratio(spent: Decimal, amount: Decimal) -> float:
    """Uncapped spent/amount as a percentage"""
    if amount <= 0:
        return math.inf if spent > 0 else 0.0
    return float(spent / amount * 100)


def calculate_budget_progress(budget: Budget, expenses: Iterable[Expense],
                              approaching_threshold: float = APPROACHING_THRESHOLD,
                              exceeded_threshold: float = EXCEEDED_THRESHOLD) -> BudgetProgress:
    """Sum the expenses that fall in the budget's category and inclusive date range"""
    start = DateUtils.to_date(budget.start_date)
    end = DateUtils.to_date(budget.end_date)

    spent = sum(
        (Decimal(str(e.amount)) for e in expenses
         if e.category == budget.category and start <= DateUtils.to_date(e.date) <= end),
        Decimal('0.00')
    )
    amount = Decimal(str(budget.amount))
    ratio = _spent_ratio(spent, amount)

    # Flags use the uncapped ratio; only the displayed percentage is capped
    is_exceeded = ratio > exceeded_threshold
    is_approaching = approaching_threshold < ratio <= exceeded_threshold

    return BudgetProgress(
        budget=budget,
        spent=spent,
        remaining=max(amount - spent, Decimal('0.00')),
        progress_percentage=min(ratio, 100.0),
        is_exceeded=is_exceeded,
        is_approaching=is_approaching,
    )


def _check_thresholds(approaching_threshold: float, exceeded_threshold: float):
    if approaching_threshold > exceeded_threshold:
        raise ValidationException("Approaching threshold cannot be above the exceeded threshold")


class BudgetAlertTracker:
    """Emits one alert when a budget crosses into approaching or exceeded.

    The first update only records a baseline, so loading a page with
    already-overspent budgets does not produce a burst of alerts.
    """

    def __init__(self, approaching_threshold: float = APPROACHING_THRESHOLD,
                 exceeded_threshold: float = EXCEEDED_THRESHOLD):
        _check_thresholds(approaching_threshold, exceeded_threshold)
        self.approaching_threshold = approaching_threshold
        self.exceeded_threshold = exceeded_threshold
        self._previous: Optional[Dict[str, Dict[str, bool]]] = None

    @property
    def has_baseline(self) -> bool:
        return self._previous is not None

    def update(self, progress_list: List[BudgetProgress]) -> List[BudgetAlert]:
        current = {
            p.category: {'approaching': p.is_approaching, 'exceeded': p.is_exceeded}
            for p in progress_list
        }

        if self._previous is None:
            self._previous = current
            return []

        alerts = []
        for progress in progress_list:
            before = self._previous.get(progress.category, {'approaching': False, 'exceeded': False})

            if progress.is_exceeded and not before['exceeded']:
                kind = 'exceeded'
            elif progress.is_approaching and not before['approaching']:
                kind = 'approaching'
            else:
                continue

            alerts.append(BudgetAlert(
                category=progress.category,
                kind=kind,
                spent=progress.spent,
                amount=progress.budget.amount,
            ))

        self._previous = current
        return alerts


class BudgetService:
    """Service class for budget operations"""

    def __init__(self, budget_repo: BudgetRepository = None, expense_repo: ExpenseRepository = None,
                 notification_service: NotificationService = None,
                 approaching_threshold: float = APPROACHING_THRESHOLD,
                 exceeded_threshold: float = EXCEEDED_THRESHOLD):
        self.budget_repo = budget_repo or BudgetRepository()
        self.expense_repo = expense_repo or ExpenseRepository()
        self.notification_service = notification_service or NotificationService()
        _check_thresholds(approaching_threshold, exceeded_threshold)
        self.approaching_threshold = approaching_threshold
        self.exceeded_threshold = exceeded_threshold
        # Alert baselines are per user
        self._trackers: Dict[str, BudgetAlertTracker] = {}

    def tracker_for(self, user_id: str) -> BudgetAlertTracker:
        if user_id not in self._trackers:
            self._trackers[user_id] = BudgetAlertTracker(self.approaching_threshold, self.exceeded_threshold)
        return self._trackers[user_id]

    def create_budget(self, user_id: str, category: str, amount, start_date, end_date) -> Budget:
        """Validate and store a new budget"""
        FinanceValidator.validate_user_id(user_id)
        FinanceValidator.validate_date_range(start_date, end_date)
        budget = Budget(
            user_id=user_id,
            category=FinanceValidator.validate_category(category),
            amount=FinanceValidator.validate_amount(amount),
            start_date=start_date,
            end_date=end_date,
        )

        budget.budget_id = self.budget_repo.create_budget(budget)
        LoggingUtils.log_business_event(
            "budget_created", "budget", budget.budget_id,
            user_id=user_id,
            details={'category': budget.category, 'amount': str(budget.amount)}
        )
        return budget

    def get_budgets(self, user_id: str) -> List[Budget]:
        return self.budget_repo.find_for_user(user_id)

    def update_budget(self, user_id: str, budget_id: int, **changes) -> Budget:
        """Apply changes to an existing budget owned by user_id"""
        budget = self.budget_repo.find_budget(budget_id, user_id)
        if not budget:
            raise NotFoundException(f"Budget {budget_id} not found")

        if 'category' in changes:
            budget.category = FinanceValidator.validate_category(changes['category'])
        if 'amount' in changes:
            budget.amount = FinanceValidator.validate_amount(changes['amount'])
        budget.start_date = changes.get('start_date', budget.start_date)
        budget.end_date = changes.get('end_date', budget.end_date)
        FinanceValidator.validate_date_range(budget.start_date, budget.end_date)

        self.budget_repo.update_budget(budget)
        LoggingUtils.log_business_event("budget_updated", "budget", budget_id, user_id=user_id)
        return budget

    def delete_budget(self, user_id: str, budget_id: int) -> bool:
        if not self.budget_repo.exists(budget_id, user_id):
            raise NotFoundException(f"Budget {budget_id} not found")
        self.budget_repo.delete(budget_id, user_id)

        LoggingUtils.log_business_event("budget_deleted", "budget", budget_id, user_id=user_id)
        return True

    def get_budget_progress(self, user_id: str) -> List[BudgetProgress]:
        budgets = self.budget_repo.find_for_user(user_id)
        expenses = self.expense_repo.find_for_user(user_id)
        return [
            calculate_budget_progress(
                budget, expenses,
                self.approaching_threshold, self.exceeded_threshold
            )
            for budget in budgets
        ]

    def get_budget_overview(self, user_id: str) -> Dict[str, Any]:
        """Progress for every budget plus totals across them"""
        progress = self.get_budget_progress(user_id)
        total_budget = sum((p.budget.amount for p in progress), Decimal('0.00'))
        total_spent = sum((p.spent for p in progress), Decimal('0.00'))

        return {
            'budgets': progress,
            'total_budget': total_budget,
            'total_spent': total_spent,
            'total_remaining': max(total_budget - total_spent, Decimal('0.00')),
            'overall_percentage': min(_spent_ratio(total_spent, total_budget), 100.0),
            'exceeded_count': sum(1 for p in progress if p.is_exceeded),
            'approaching_count': sum(1 for p in progress if p.is_approaching),
        }

    def refresh_alerts(self, user_id: str) -> List[BudgetAlert]:
        """Recompute progress and store one notification per new threshold crossing"""
        alerts = self.tracker_for(user_id).update(self.get_budget_progress(user_id))

        for alert in alerts:
            title = "Budget exceeded" if alert.kind == 'exceeded' else "Budget warning"
            self.notification_service.notify(user_id, title, alert.message, BUDGET_ALERT_TYPE)
            logger.info(f"Budget alert for user {user_id}: {alert.category} {alert.kind}")

        return alerts

