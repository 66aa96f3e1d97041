"""
Insights Service — Free-text spending analysis generated from a user's expenses and budgets.
"""
import json
import logging
from dataclasses import asdict
from typing import List

from core.clients.gemini_client import TextGenerationClient
from core.repositories.budget_repository import BudgetRepository
from core.repositories.expense_repository import ExpenseRepository
from core.models.entities import Budget, Expense, FinancialInsights
from utils.exceptions import DatabaseException, TextGenerationException
from utils.validators import FinanceValidator
from utils.helpers import LoggingUtils

logger = logging.getLogger(__name__)

INSIGHTS_UNAVAILABLE_MESSAGE = "Financial insights are unavailable right now. Please try again later."

INSIGHTS_GENERATION_CONFIG = {
    'temperature': 0.2,
    'top_k': 40,
    'top_p': 0.8,
    'max_output_tokens': 1024,
}


def build_insights_prompt(expenses: List[Expense], budgets: List[Budget]) -> str:
    expense_rows = json.dumps([asdict(e) for e in expenses], default=str)
    budget_rows = json.dumps([asdict(b) for b in budgets], default=str)

    return f"""
    Analyze the following financial data and provide budget recommendations:

    Expenses: {expense_rows}
    Budgets: {budget_rows}

    Please provide:
    1. Spending trend analysis
    2. Category-wise budget recommendations
    3. Tips to optimize spending
    4. Potential areas for budget adjustments
    Keep the response concise, actionable, and under 300 words.
    """


class InsightsService:
    def __init__(self, generation_client: TextGenerationClient = None,
                 expense_repo: ExpenseRepository = None, budget_repo: BudgetRepository = None):
        self.generation_client = generation_client or TextGenerationClient()
        self.expense_repo = expense_repo or ExpenseRepository()
        self.budget_repo = budget_repo or BudgetRepository()

    def get_financial_insights(self, user_id: str) -> FinancialInsights:
        """Ask the generation API to analyse the user's spending.

        Any failure (loading the records or generating the text) yields an
        unavailable result carrying a retry message.
        """
        FinanceValidator.validate_user_id(user_id)

        try:
            expenses = self.expense_repo.find_for_user(user_id)
            budgets = self.budget_repo.find_for_user(user_id)
        except DatabaseException as e:
            logger.error(f"Could not load spending records for user {user_id}: {e}")
            return FinancialInsights(text=INSIGHTS_UNAVAILABLE_MESSAGE, available=False)

        logger.info(f"Generating insights for user {user_id} from {len(expenses)} expenses "
                    f"and {len(budgets)} budgets")
        try:
            text = self.generation_client.generate(
                build_insights_prompt(expenses, budgets), **INSIGHTS_GENERATION_CONFIG
            )
        except TextGenerationException as e:
            LoggingUtils.log_external_failure("gemini", "financial_insights", e, user_id=user_id)
            return FinancialInsights(text=INSIGHTS_UNAVAILABLE_MESSAGE, available=False)

        return FinancialInsights(text=text.strip())
