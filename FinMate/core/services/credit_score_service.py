"""
Credit Score Service — Estimates creditworthiness from a submitted financial profile.

The estimator is a fixed weighted-factor model (FICO-style weights) that
never fails: missing or out-of-range inputs degrade to worst-case points.
"""
import logging
import math
from typing import Dict, List, Optional

from core.models.entities import (
    FinancialProfile, ScoreResult, ScoreCategory, CreditEstimate, CreditScoreRecord
)
from core.repositories.credit_score_repository import CreditScoreRepository
from core.services.recommendation_service import RecommendationService
from utils.exceptions import FinMateException
from utils.helpers import NumberUtils, StringUtils, LoggingUtils

logger = logging.getLogger(__name__)

MIN_SCORE = 300
MAX_SCORE = 850

PAYMENT_HISTORY_POINTS = {
    'excellent': 100,
    'good': 80,
    'fair': 50,
    'poor': 20,
    'verybad': 0,
}

ACCOUNT_MIX_POINTS = {
    'diverse': 100,
    'moderate': 70,
    'limited': 40,
}

FACTOR_WEIGHTS = {
    'payment_history': 0.35,
    'credit_utilization': 0.30,
    'credit_age': 0.15,
    'account_mix': 0.10,
    'recent_inquiries': 0.10,
}

# Credit age stops adding points after this many years
FULL_CREDIT_AGE_YEARS = 25
POINTS_PER_INQUIRY = 15
MAX_RATIO_ADJUSTMENT = 50


def calculate_factor_points(profile: FinancialProfile) -> Dict[str, float]:
    """Score each factor on a 0-100 scale"""
    utilization = NumberUtils.to_number(profile.credit_utilization_percent)
    age = NumberUtils.to_number(profile.credit_age_years)
    inquiries = NumberUtils.to_number(profile.recent_inquiries)

    # Unreadable numbers score like the worst case
    utilization = 100 if utilization is None else NumberUtils.clamp(utilization, 0, 100)
    age = 0 if age is None else max(0.0, age)
    inquiries = math.inf if inquiries is None else max(0.0, inquiries)

    return {
        'payment_history': PAYMENT_HISTORY_POINTS.get(StringUtils.normalize_choice(profile.payment_history), 0),
        'credit_utilization': 100 - utilization,
        'credit_age': min(100.0, age / FULL_CREDIT_AGE_YEARS * 100),
        'account_mix': ACCOUNT_MIX_POINTS.get(StringUtils.normalize_choice(profile.account_type_diversity), 0),
        'recent_inquiries': max(0.0, 100 - inquiries * POINTS_PER_INQUIRY),
    }


def balance_to_income_ratio(profile: FinancialProfile) -> float:
    """Balance over income; 1.0 when income is zero or unreadable"""
    balance = NumberUtils.to_number(profile.total_balance)
    income = NumberUtils.to_number(profile.annual_income)

    if not income or income <= 0 or balance is None:
        return 1.0
    return max(0.0, balance) / income


def calculate_credit_score(profile: FinancialProfile) -> ScoreResult:
    """Map a financial profile to a score in [300, 850] and its category"""
    points = calculate_factor_points(profile)
    weighted_score = sum(points[factor] * weight for factor, weight in FACTOR_WEIGHTS.items())

    ratio = balance_to_income_ratio(profile)
    ratio_adjustment = NumberUtils.clamp(50 - ratio * 100, -MAX_RATIO_ADJUSTMENT, MAX_RATIO_ADJUSTMENT)

    raw_score = MIN_SCORE + (MAX_SCORE - MIN_SCORE) * (weighted_score / 100) + ratio_adjustment
    final_score = int(NumberUtils.clamp(NumberUtils.round_half_up(raw_score), MIN_SCORE, MAX_SCORE))

    return ScoreResult(score=final_score)


def categorize_score(score: int) -> ScoreCategory:
    return ScoreCategory.for_score(score)


class CreditScoreService:
    def __init__(self, credit_repo: CreditScoreRepository = None,
                 recommendation_service: RecommendationService = None):
        self.credit_repo = credit_repo or CreditScoreRepository()
        self.recommendation_service = recommendation_service or RecommendationService()

    def estimate(self, user_id: str, profile: FinancialProfile) -> CreditEstimate:
        """Score the profile, explain it, and append it to the user's history.

        A failed save is reported on the returned estimate; the computed
        score and recommendations are returned either way.
        """
        result = calculate_credit_score(profile)
        recommendations, generated = self.recommendation_service.generate_with_source(profile, result)
        estimate = CreditEstimate(result=result, recommendations=recommendations, generated=generated)

        try:
            estimate.record_id = self.credit_repo.save_record(CreditScoreRecord(
                user_id=user_id,
                score=result.score,
                category=result.category.value,
                profile=profile,
                recommendations=recommendations,
            ))
            estimate.saved = True
        except FinMateException as e:
            logger.error(f"Could not save credit score for user {user_id}: {e.message}")
            estimate.save_error = e.message

        LoggingUtils.log_business_event(
            "credit_score_estimated", "credit_score", estimate.record_id,
            user_id=user_id,
            details={'score': result.score, 'category': result.category.value, 'generated': generated}
        )
        return estimate

    def get_latest(self, user_id: str) -> Optional[CreditScoreRecord]:
        return self.credit_repo.get_latest_record(user_id)

    def get_history(self, user_id: str, limit: int = 12) -> List[CreditScoreRecord]:
        return self.credit_repo.get_history(user_id, limit)
