"""
Credit Score Repository
Handles database operations for credit_score_history table
"""

import json
import math
from dataclasses import asdict
from typing import Optional, List
from datetime import datetime

from core.repositories.base_repository import BaseRepository
from core.models.entities import CreditScoreRecord, FinancialProfile, Recommendation
from utils.exceptions import ValidationException
from utils.helpers import NumberUtils, StringUtils


def _storable(value) -> Optional[float]:
    """Numeric column value; unreadable or non-finite input is stored as NULL"""
    number = NumberUtils.to_number(value)
    return number if number is not None and math.isfinite(number) else None


class CreditScoreRepository(BaseRepository):
    """Repository for credit_score_history table operations"""

    def __init__(self, db=None):
        super().__init__('credit_score_history', 'record_id', db)

    def save_record(self, record: CreditScoreRecord) -> int:
        """Append one estimation to the user's history; rows are never updated"""
        if not record.user_id or not (300 <= record.score <= 850):
            raise ValidationException("User ID and valid score (300-850) are required")

        profile = record.profile or FinancialProfile()
        record_data = {
            'user_id': record.user_id,
            'score': record.score,
            'category': record.category,
            'payment_history': StringUtils.normalize_choice(profile.payment_history) or None,
            'credit_utilization': _storable(profile.credit_utilization_percent),
            'credit_age_years': _storable(profile.credit_age_years),
            'account_mix': StringUtils.normalize_choice(profile.account_type_diversity) or None,
            'recent_inquiries': _storable(profile.recent_inquiries),
            'total_balance': _storable(profile.total_balance),
            'annual_income': _storable(profile.annual_income),
            'recommendations': json.dumps([asdict(r) for r in record.recommendations]),
            'calculated_at': record.calculated_at or datetime.now()
        }

        return self.create(record_data)

    def get_latest_record(self, user_id: str) -> Optional[CreditScoreRecord]:
        """Get the most recent estimation for a user"""
        rows = self.find_by_user(user_id, order_by='calculated_at', limit=1)
        return self._dict_to_record(rows[0]) if rows else None

    def get_history(self, user_id: str, limit: int = 12) -> List[CreditScoreRecord]:
        """Get a user's estimations, newest first"""
        rows = self.find_by_user(user_id, order_by='calculated_at', limit=limit)
        return [self._dict_to_record(row) for row in rows]

    def _dict_to_record(self, row: dict) -> CreditScoreRecord:
        """Convert dictionary to CreditScoreRecord object"""
        raw_recommendations = row.get('recommendations') or '[]'
        recommendations = [Recommendation(**item) for item in json.loads(raw_recommendations)]

        return CreditScoreRecord(
            record_id=row['record_id'],
            user_id=row['user_id'],
            score=row['score'],
            category=row.get('category', ''),
            profile=FinancialProfile(
                payment_history=row.get('payment_history'),
                credit_utilization_percent=float(row.get('credit_utilization') or 0),
                credit_age_years=float(row.get('credit_age_years') or 0),
                account_type_diversity=row.get('account_mix'),
                recent_inquiries=int(row.get('recent_inquiries') or 0),
                total_balance=float(row.get('total_balance') or 0),
                annual_income=float(row.get('annual_income') or 0),
            ),
            recommendations=recommendations,
            calculated_at=row.get('calculated_at')
        )
