"""Shared fixtures for FinMate tests."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from core.clients.gemini_client import GeminiConfig, TextGenerationClient
from core.models.entities import Budget, Expense, FinancialProfile


@pytest.fixture
def poor_profile() -> FinancialProfile:
    return FinancialProfile(
        payment_history='poor',
        credit_utilization_percent=85,
        credit_age_years=1,
        account_type_diversity='limited',
        recent_inquiries=5,
        total_balance=40000,
        annual_income=50000,
    )


@pytest.fixture
def excellent_profile() -> FinancialProfile:
    return FinancialProfile(
        payment_history='excellent',
        credit_utilization_percent=5,
        credit_age_years=20,
        account_type_diversity='diverse',
        recent_inquiries=0,
        total_balance=1000,
        annual_income=100000,
    )


@pytest.fixture
def mock_db():
    """Stand-in for DatabaseManager; writes report one affected row"""
    db = MagicMock()
    db.execute_query.return_value = None
    db.execute_write.return_value = 1
    return db


@pytest.fixture
def offline_generation_client() -> TextGenerationClient:
    return TextGenerationClient(GeminiConfig(api_key=''))


@pytest.fixture
def generation_client():
    """Configured client whose generate() is controlled by the test"""
    client = MagicMock(spec=TextGenerationClient)
    client.is_configured = True
    return client


@pytest.fixture
def food_budget() -> Budget:
    return Budget(
        budget_id=1,
        user_id='user-1',
        category='Food',
        amount=Decimal('1000.00'),
        start_date=date(2024, 3, 1),
        end_date=date(2024, 3, 31),
    )


def make_expense(category: str, amount, day: date, expense_id: int = None) -> Expense:
    return Expense(
        expense_id=expense_id,
        user_id='user-1',
        category=category,
        amount=Decimal(str(amount)),
        date=day,
    )


@pytest.fixture
def expense_factory():
    return make_expense
