"""
Prediction Repository
Handles database operations for stock_predictions table
"""

from datetime import datetime
from typing import List

from core.repositories.base_repository import BaseRepository
from core.models.entities import StockPrediction
from utils.exceptions import ValidationException

class PredictionRepository(BaseRepository):
    """Repository for stock_predictions table operations"""

    def __init__(self, db=None):
        super().__init__('stock_predictions', 'prediction_id', db)

    def create_prediction(self, prediction: StockPrediction) -> int:
        if not 0 <= prediction.confidence_score <= 1:
            raise ValidationException("Confidence score must be between 0 and 1")

        return self.create({
            'user_id': prediction.user_id,
            'stock_symbol': prediction.stock_symbol,
            'current_price': prediction.current_price,
            'predicted_price': prediction.predicted_price,
            'confidence_score': prediction.confidence_score,
            'prediction_date': prediction.prediction_date,
            'created_at': prediction.created_at or datetime.now()
        })

    def find_for_user(self, user_id: str, symbol: str = None) -> List[StockPrediction]:
        """Get a user's predictions, latest prediction date first"""
        if symbol:
            rows = self.find_by_field(user_id, 'stock_symbol', symbol)
            rows = sorted(rows, key=lambda r: r['prediction_date'], reverse=True)
        else:
            rows = self.find_by_user(user_id, order_by='prediction_date')
        return [self._dict_to_prediction(row) for row in rows]

    def _dict_to_prediction(self, row: dict) -> StockPrediction:
        return StockPrediction(
            prediction_id=row['prediction_id'],
            user_id=row['user_id'],
            stock_symbol=row['stock_symbol'],
            current_price=float(row['current_price']),
            predicted_price=float(row['predicted_price']),
            confidence_score=float(row['confidence_score']),
            prediction_date=row.get('prediction_date'),
            created_at=row.get('created_at')
        )
