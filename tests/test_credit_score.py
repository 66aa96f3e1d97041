"""Tests for the credit score calculator and CreditScoreService."""

import math
from unittest.mock import MagicMock

import pytest

from core.models.entities import FinancialProfile, ScoreCategory, CreditScoreRecord
from core.services.credit_score_service import (
    CreditScoreService,
    balance_to_income_ratio,
    calculate_credit_score,
    calculate_factor_points,
    categorize_score,
)
from core.services.recommendation_service import RecommendationService
from utils.exceptions import DatabaseException


class TestCalculateCreditScore:
    """Score formula, clamps and categories."""

    def test_poor_profile_scores_low(self, poor_profile):
        result = calculate_credit_score(poor_profile)
        assert result.score == 372
        assert result.category == ScoreCategory.POOR

    def test_excellent_profile_hits_ceiling(self, excellent_profile):
        result = calculate_credit_score(excellent_profile)
        assert result.score == 850
        assert result.category == ScoreCategory.EXCELLENT

    def test_zero_income_uses_full_ratio_penalty(self):
        profile = FinancialProfile(
            payment_history='excellent', credit_utilization_percent=0, credit_age_years=25,
            account_type_diversity='diverse', recent_inquiries=0, total_balance=0, annual_income=0,
        )
        assert balance_to_income_ratio(profile) == 1.0
        assert calculate_credit_score(profile).score == 800

    def test_worst_inputs_clamp_to_floor(self):
        profile = FinancialProfile(
            payment_history='verybad', credit_utilization_percent=100, credit_age_years=0,
            account_type_diversity='unknown', recent_inquiries=10, total_balance=50000, annual_income=0,
        )
        assert calculate_credit_score(profile).score == 300

    @pytest.mark.parametrize("utilization,expected", [(0, 100), (100, 0), (150, 0), (-20, 100)])
    def test_utilization_points_never_negative(self, utilization, expected):
        points = calculate_factor_points(FinancialProfile(credit_utilization_percent=utilization))
        assert points['credit_utilization'] == expected

    def test_unknown_choices_score_zero(self):
        points = calculate_factor_points(FinancialProfile(payment_history='amazing', account_type_diversity='huge'))
        assert points['payment_history'] == 0
        assert points['account_mix'] == 0

    def test_missing_numbers_do_not_produce_nan(self):
        profile = FinancialProfile(
            credit_utilization_percent=None, credit_age_years=float('nan'),
            recent_inquiries='many', total_balance=None, annual_income=None,
        )
        result = calculate_credit_score(profile)
        assert not math.isnan(result.score)
        assert 300 <= result.score <= 850

    def test_credit_age_caps_at_full_points(self):
        points = calculate_factor_points(FinancialProfile(credit_age_years=60))
        assert points['credit_age'] == 100

    def test_identical_profiles_give_identical_results(self, poor_profile):
        assert calculate_credit_score(poor_profile) == calculate_credit_score(poor_profile)

    def test_enum_members_are_accepted(self, excellent_profile):
        from core.models.entities import PaymentHistory, AccountMix
        profile = FinancialProfile(
            payment_history=PaymentHistory.EXCELLENT, credit_utilization_percent=5, credit_age_years=20,
            account_type_diversity=AccountMix.DIVERSE, recent_inquiries=0, total_balance=1000,
            annual_income=100000,
        )
        assert calculate_credit_score(profile) == calculate_credit_score(excellent_profile)


class TestCategorizeScore:

    @pytest.mark.parametrize("score,category", [
        (300, ScoreCategory.POOR),
        (579, ScoreCategory.POOR),
        (580, ScoreCategory.FAIR),
        (669, ScoreCategory.FAIR),
        (670, ScoreCategory.GOOD),
        (739, ScoreCategory.GOOD),
        (740, ScoreCategory.VERY_GOOD),
        (799, ScoreCategory.VERY_GOOD),
        (800, ScoreCategory.EXCELLENT),
        (850, ScoreCategory.EXCELLENT),
    ])
    def test_breakpoints(self, score, category):
        assert categorize_score(score) == category


class TestCreditScoreService:

    @pytest.fixture
    def credit_repo(self):
        repo = MagicMock()
        repo.save_record.return_value = 7
        return repo

    @pytest.fixture
    def service(self, credit_repo, offline_generation_client):
        return CreditScoreService(
            credit_repo=credit_repo,
            recommendation_service=RecommendationService(offline_generation_client),
        )

    def test_estimate_saves_history(self, service, credit_repo, poor_profile):
        estimate = service.estimate('user-1', poor_profile)

        assert estimate.saved is True
        assert estimate.record_id == 7
        assert estimate.generated is False
        assert len(estimate.recommendations) == 4

        saved: CreditScoreRecord = credit_repo.save_record.call_args[0][0]
        assert saved.user_id == 'user-1'
        assert saved.score == 372
        assert saved.category == 'Poor'
        assert saved.profile == poor_profile

    def test_save_failure_keeps_result(self, service, credit_repo, poor_profile):
        credit_repo.save_record.side_effect = DatabaseException("connection lost")

        estimate = service.estimate('user-1', poor_profile)

        assert estimate.saved is False
        assert estimate.save_error == "connection lost"
        assert estimate.result.score == 372
        assert estimate.recommendations

    def test_history_is_read_through_repository(self, service, credit_repo):
        service.get_history('user-1', limit=5)
        credit_repo.get_history.assert_called_once_with('user-1', 5)
