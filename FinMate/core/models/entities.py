"""
Data Models for FinMate
Dataclasses representing financial inputs, derived results and database rows
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from enum import Enum

# Enums for database constraints and lookup tables
class PaymentHistory(Enum):
    EXCELLENT = 'excellent'
    GOOD = 'good'
    FAIR = 'fair'
    POOR = 'poor'
    VERY_BAD = 'verybad'

class AccountMix(Enum):
    DIVERSE = 'diverse'
    MODERATE = 'moderate'
    LIMITED = 'limited'

class ScoreCategory(Enum):
    POOR = 'Poor'
    FAIR = 'Fair'
    GOOD = 'Good'
    VERY_GOOD = 'Very Good'
    EXCELLENT = 'Excellent'

    @classmethod
    def for_score(cls, score: int) -> "ScoreCategory":
        """Map a 300-850 score onto its band"""
        if score >= 800:
            return cls.EXCELLENT
        if score >= 740:
            return cls.VERY_GOOD
        if score >= 670:
            return cls.GOOD
        if score >= 580:
            return cls.FAIR
        return cls.POOR

class TradeSide(Enum):
    BUY = 'buy'
    SELL = 'sell'

class IntentType(Enum):
    EXECUTE_TRADE = 'EXECUTE_TRADE'
    CONFIRM_TRADE = 'CONFIRM_TRADE'
    GET_PORTFOLIO = 'GET_PORTFOLIO'
    GENERAL = 'GENERAL'
    TRADE_CONFIRMATION = 'TRADE_CONFIRMATION'
    ERROR = 'ERROR'

class Timeframe(Enum):
    DAILY = 'daily'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'

# ---------------------------------------------------------------------------
# Credit score estimation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FinancialProfile:
    """Credit-relevant inputs submitted with one estimation request.

    Enum-like fields are kept as plain strings so that unknown values can
    still be scored (as worst case) instead of being rejected.
    """
    payment_history: str = PaymentHistory.VERY_BAD.value
    credit_utilization_percent: float = 0.0
    credit_age_years: float = 0.0
    account_type_diversity: str = AccountMix.LIMITED.value
    recent_inquiries: int = 0
    total_balance: float = 0.0
    annual_income: float = 0.0

@dataclass(frozen=True)
class ScoreResult:
    """Score and its category; the category always follows the score"""
    score: int
    category: ScoreCategory = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, 'category', ScoreCategory.for_score(self.score))

@dataclass(frozen=True)
class Recommendation:
    title: str
    impact: str = ""
    timeline: str = ""

@dataclass
class CreditScoreRecord:
    """One row of credit score history"""
    record_id: Optional[int] = None
    user_id: str = ""
    score: int = 0
    category: str = ""
    profile: Optional[FinancialProfile] = None
    recommendations: List[Recommendation] = field(default_factory=list)
    calculated_at: Optional[datetime] = None

@dataclass
class CreditEstimate:
    """Outcome of CreditScoreService.estimate"""
    result: ScoreResult
    recommendations: List[Recommendation]
    generated: bool = False
    saved: bool = False
    record_id: Optional[int] = None
    save_error: Optional[str] = None

# ---------------------------------------------------------------------------
# Budgets and expenses
# ---------------------------------------------------------------------------

@dataclass
class Expense:
    """Expense entity"""
    expense_id: Optional[int] = None
    user_id: str = ""
    category: str = ""
    amount: Decimal = Decimal('0.00')
    date: Optional[date] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None

@dataclass
class Budget:
    """Budget entity covering an inclusive date range"""
    budget_id: Optional[int] = None
    user_id: str = ""
    category: str = ""
    amount: Decimal = Decimal('0.00')
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: Optional[datetime] = None

@dataclass
class BudgetProgress:
    budget: Budget
    spent: Decimal
    remaining: Decimal
    progress_percentage: float
    is_exceeded: bool
    is_approaching: bool

    @property
    def category(self) -> str:
        return self.budget.category

@dataclass(frozen=True)
class BudgetAlert:
    category: str
    kind: str  # 'approaching' or 'exceeded'
    spent: Decimal
    amount: Decimal

    @property
    def message(self) -> str:
        if self.kind == 'exceeded':
            return f"You've exceeded your {self.category} budget ({self.spent} of {self.amount})."
        return f"You're approaching your {self.category} budget limit ({self.spent} of {self.amount})."

@dataclass
class ExpenseInsights:
    highest_category: Optional[str] = None
    highest_category_amount: Decimal = Decimal('0.00')
    monthly_total: Decimal = Decimal('0.00')
    previous_month_total: Decimal = Decimal('0.00')
    change_percentage: Optional[float] = None
    overspending_warning: bool = False

@dataclass
class FinancialInsights:
    text: str
    available: bool = True

# ---------------------------------------------------------------------------
# Stocks and paper trading
# ---------------------------------------------------------------------------

@dataclass
class WatchlistEntry:
    entry_id: Optional[int] = None
    user_id: str = ""
    stock_symbol: str = ""
    added_at: Optional[datetime] = None

@dataclass
class StockPrediction:
    prediction_id: Optional[int] = None
    user_id: str = ""
    stock_symbol: str = ""
    current_price: float = 0.0
    predicted_price: float = 0.0
    confidence_score: float = 0.0
    prediction_date: Optional[date] = None
    created_at: Optional[datetime] = None

@dataclass(frozen=True)
class PricePoint:
    date: date
    open: float
    high: float
    low: float
    close: float
    volume: float

@dataclass
class StockData:
    symbol: str
    timeframe: Timeframe
    points: List[PricePoint] = field(default_factory=list)
    is_sample: bool = False

    @property
    def latest(self) -> Optional[PricePoint]:
        return self.points[-1] if self.points else None

@dataclass(frozen=True)
class NewsItem:
    title: str
    url: str = ""
    source: str = ""
    summary: str = ""
    published_at: str = ""
    sentiment: str = ""

@dataclass
class Trade:
    """Paper trade history row"""
    trade_id: Optional[int] = None
    user_id: str = ""
    symbol: str = ""
    quantity: int = 0
    trade_type: TradeSide = TradeSide.BUY
    price_at_execution: Decimal = Decimal('0.00')
    status: str = "filled"
    via_chatbot: bool = False
    executed_at: Optional[datetime] = None

@dataclass
class Position:
    symbol: str
    quantity: int
    average_cost: Decimal
    market_price: Decimal

    @property
    def market_value(self) -> Decimal:
        return self.market_price * self.quantity

    @property
    def unrealized_pl(self) -> Decimal:
        return (self.market_price - self.average_cost) * self.quantity

@dataclass(frozen=True)
class TradeIntent:
    type: IntentType
    side: Optional[TradeSide] = None
    quantity: Optional[int] = None
    symbol: Optional[str] = None

@dataclass
class ChatReply:
    intent: IntentType
    message: str
    trade: Optional[TradeIntent] = None

@dataclass
class Notification:
    """Notification entity"""
    notification_id: Optional[int] = None
    user_id: str = ""
    type: str = "info"
    title: str = ""
    content: str = ""
    is_read: bool = False
    created_at: Optional[datetime] = None
