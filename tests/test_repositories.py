"""Repository and database manager tests against a mocked connection."""

import json
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from mysql.connector import Error

from core.models.entities import (
    AccountMix, CreditScoreRecord, Expense, FinancialProfile, Notification, PaymentHistory, Recommendation,
    StockPrediction,
)
from core.repositories.credit_score_repository import CreditScoreRepository
from core.repositories.expense_repository import ExpenseRepository
from core.repositories.notification_repository import NotificationRepository
from core.repositories.prediction_repository import PredictionRepository
from core.repositories.trade_repository import ChatHistoryRepository
from db.database import DatabaseConfig, DatabaseManager
from utils.exceptions import DatabaseException, ValidationException


class TestBaseRepositoryQueries:

    def test_every_read_is_scoped_by_user(self, mock_db):
        mock_db.execute_query.return_value = []
        repo = ExpenseRepository(db=mock_db)

        repo.find_for_user('user-1', date(2024, 1, 1), date(2024, 1, 31))

        query, params = mock_db.execute_query.call_args[0]
        assert "WHERE user_id = %s AND date >= %s AND date <= %s ORDER BY date DESC" in query
        assert params == ('user-1', date(2024, 1, 1), date(2024, 1, 31))

    def test_create_skips_none_values(self, mock_db):
        mock_db.execute_query.return_value = 5
        repo = ExpenseRepository(db=mock_db)

        new_id = repo.create_expense(Expense(
            user_id='user-1', category='Food', amount=Decimal('10.00'), date=date(2024, 1, 2)
        ))

        query, params = mock_db.execute_query.call_args[0]
        assert new_id == 5
        assert query.startswith("INSERT INTO expenses (user_id, category, amount, date, created_at)")
        assert params[:4] == ('user-1', 'Food', Decimal('10.00'), date(2024, 1, 2))

    def test_delete_is_scoped_by_user(self, mock_db):
        assert ExpenseRepository(db=mock_db).delete(3, 'user-1') is True

        query, params = mock_db.execute_write.call_args[0]
        assert query == "DELETE FROM expenses WHERE expense_id = %s AND user_id = %s"
        assert params == (3, 'user-1')

    def test_delete_of_foreign_row_reports_false(self, mock_db):
        mock_db.execute_write.return_value = 0
        assert ExpenseRepository(db=mock_db).delete(3, 'someone-else') is False

    def test_update_without_changes_skips_the_database(self, mock_db):
        assert ExpenseRepository(db=mock_db).update(3, 'user-1', {'user_id': 'user-2', 'amount': None}) is False
        mock_db.execute_write.assert_not_called()

    def test_count_is_scoped_by_user(self, mock_db):
        mock_db.execute_query.return_value = {'total': 7}

        assert ExpenseRepository(db=mock_db).count('user-1') == 7
        query, params = mock_db.execute_query.call_args[0]
        assert query.endswith("FROM expenses WHERE user_id = %s")
        assert params == ('user-1',)

    def test_write_errors_become_database_exceptions(self, mock_db):
        mock_db.execute_write.side_effect = Error("lock wait timeout")
        with pytest.raises(DatabaseException):
            ExpenseRepository(db=mock_db).delete(3, 'user-1')

    def test_driver_errors_become_database_exceptions(self, mock_db):
        mock_db.execute_query.side_effect = Error("lost connection")
        with pytest.raises(DatabaseException):
            ExpenseRepository(db=mock_db).find_for_user('user-1')

    def test_expense_requires_date(self, mock_db):
        with pytest.raises(ValidationException):
            ExpenseRepository(db=mock_db).create_expense(Expense(user_id='user-1', category='Food'))


class TestCreditScoreRepository:

    def test_save_serializes_recommendations(self, mock_db, poor_profile):
        mock_db.execute_query.return_value = 12
        record = CreditScoreRecord(
            user_id='user-1', score=372, category='Poor', profile=poor_profile,
            recommendations=[Recommendation("Pay on time", "Big", "3 months")],
        )

        assert CreditScoreRepository(db=mock_db).save_record(record) == 12

        query, params = mock_db.execute_query.call_args[0]
        assert "credit_score_history" in query
        stored = json.loads(next(p for p in params if isinstance(p, str) and p.startswith('[')))
        assert stored == [{'title': "Pay on time", 'impact': "Big", 'timeline': "3 months"}]

    def test_enum_members_and_unreadable_numbers_are_stored_as_plain_values(self, mock_db):
        mock_db.execute_query.return_value = 13
        profile = FinancialProfile(
            payment_history=PaymentHistory.GOOD, credit_utilization_percent=float('nan'),
            credit_age_years=4, account_type_diversity=AccountMix.MODERATE, recent_inquiries='many',
            total_balance=float('inf'), annual_income=60000,
        )

        CreditScoreRepository(db=mock_db).save_record(
            CreditScoreRecord(user_id='user-1', score=650, category='Fair', profile=profile)
        )

        query, params = mock_db.execute_query.call_args[0]
        row = dict(zip(query.split('(')[1].split(')')[0].split(', '), params))
        assert row['payment_history'] == 'good'
        assert row['account_mix'] == 'moderate'
        assert row['credit_age_years'] == 4.0
        assert row['annual_income'] == 60000.0
        for column in ('credit_utilization', 'recent_inquiries', 'total_balance'):
            assert column not in row

    def test_out_of_range_score_rejected(self, mock_db):
        with pytest.raises(ValidationException):
            CreditScoreRepository(db=mock_db).save_record(CreditScoreRecord(user_id='user-1', score=900))

    def test_latest_record_round_trip(self, mock_db):
        mock_db.execute_query.return_value = [{
            'record_id': 4, 'user_id': 'user-1', 'score': 850, 'category': 'Excellent',
            'payment_history': 'excellent', 'credit_utilization': Decimal('5.00'),
            'credit_age_years': Decimal('20.0'), 'account_mix': 'diverse', 'recent_inquiries': 0,
            'total_balance': Decimal('1000.00'), 'annual_income': Decimal('100000.00'),
            'recommendations': '[{"title": "Review", "impact": "", "timeline": ""}]',
            'calculated_at': datetime(2024, 5, 1, 9, 30),
        }]

        record = CreditScoreRepository(db=mock_db).get_latest_record('user-1')

        assert record.score == 850
        assert record.profile == FinancialProfile(
            payment_history='excellent', credit_utilization_percent=5.0, credit_age_years=20.0,
            account_type_diversity='diverse', recent_inquiries=0, total_balance=1000.0,
            annual_income=100000.0,
        )
        assert record.recommendations == [Recommendation("Review")]
        assert "LIMIT %s" in mock_db.execute_query.call_args[0][0]


class TestOtherRepositories:

    def test_unread_notifications(self, mock_db):
        mock_db.execute_query.return_value = [{
            'notification_id': 1, 'user_id': 'user-1', 'type': 'budget_alert',
            'title': 'Budget warning', 'content': 'Food is at 90%', 'is_read': 0, 'created_at': None,
        }]

        notifications = NotificationRepository(db=mock_db).get_unread_notifications('user-1')

        assert notifications == [Notification(
            notification_id=1, user_id='user-1', type='budget_alert',
            title='Budget warning', content='Food is at 90%', is_read=False,
        )]
        assert "is_read = FALSE" in mock_db.execute_query.call_args[0][0]

    def test_mark_read_updates_flag(self, mock_db):
        assert NotificationRepository(db=mock_db).mark_read(1, 'user-1') is True

        query, params = mock_db.execute_write.call_args[0]
        assert query.startswith("UPDATE notifications SET is_read = %s")
        assert params == (True, 1, 'user-1')

    def test_prediction_confidence_range(self, mock_db):
        with pytest.raises(ValidationException):
            PredictionRepository(db=mock_db).create_prediction(
                StockPrediction(user_id='user-1', stock_symbol='AAPL', confidence_score=1.5)
            )

    def test_chat_exchange_is_stored(self, mock_db):
        mock_db.execute_query.return_value = 8
        chat_id = ChatHistoryRepository(db=mock_db).log_exchange('user-1', 'hi', 'hello', 'GENERAL')

        query, params = mock_db.execute_query.call_args[0]
        assert chat_id == 8
        assert query.startswith("INSERT INTO chat_history")
        assert params[:5] == ('user-1', 'hi', 'hello', 'GENERAL', 'trading')


class TestDatabaseManager:

    @pytest.fixture
    def connection(self):
        conn = MagicMock()
        conn.is_connected.return_value = True
        return conn

    @pytest.fixture
    def manager(self, connection):
        config = MagicMock()
        config.get_connection.return_value = connection
        return DatabaseManager(config)

    def test_insert_commits_and_returns_last_id(self, manager, connection):
        cursor = connection.cursor.return_value
        cursor.lastrowid = 21

        assert manager.execute_query("INSERT INTO expenses (user_id) VALUES (%s)", ('user-1',)) == 21
        connection.commit.assert_called_once()
        connection.close.assert_called_once()
        cursor.close.assert_called_once()

    def test_fetch_all_returns_rows(self, manager, connection):
        connection.cursor.return_value.fetchall.return_value = [{'id': 1}]
        assert manager.execute_query("SELECT 1", fetch_all=True) == [{'id': 1}]
        connection.commit.assert_not_called()

    def test_write_returns_affected_rows(self, manager, connection):
        connection.cursor.return_value.rowcount = 0

        assert manager.execute_write("DELETE FROM expenses WHERE expense_id = %s", (1,)) == 0
        connection.commit.assert_called_once()
        connection.close.assert_called_once()

    def test_overrides_replace_environment_settings(self):
        config = DatabaseConfig(host='db.internal', pool_size=2)
        assert config.config['host'] == 'db.internal'
        assert config.config['pool_size'] == 2
        assert config.connection_pool is None

    def test_transaction_rolls_back_on_error(self, manager, connection):
        with pytest.raises(Error):
            with manager.get_transaction():
                raise Error("deadlock")

        connection.rollback.assert_called_once()
        connection.commit.assert_not_called()
