"""
Typed record entities for the investment platform backend.
Records are built once at the fetch boundary and treated as read-only afterwards.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class TransactionType(str, Enum):
    """Enumeration of transaction kinds."""
    DEPOSIT = 'deposit'
    WITHDRAWAL = 'withdrawal'
    SUBSCRIPTION = 'subscription'
    PROFIT = 'profit'


class TransactionStatus(str, Enum):
    """Enumeration of transaction approval states."""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


class SubscriptionStatus(str, Enum):
    """Enumeration of subscription states."""
    ACTIVE = 'active'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class PlanTier(str, Enum):
    """Plan tiers, lowest first."""
    BRONZE = 'bronze'
    SILVER = 'silver'
    GOLD = 'gold'
    PLATINUM = 'platinum'
    DIAMOND = 'diamond'


@dataclass(frozen=True)
class ProfitRecord:
    """One day's credited return on one subscription."""
    id: str
    user_id: str
    subscription_id: str
    date: date
    amount: float
    percentage: float = 0.0
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class TransactionRecord:
    """A deposit, withdrawal, subscription purchase or profit credit."""
    id: str
    user_id: str
    type: TransactionType
    amount: float
    status: TransactionStatus
    created_at: datetime
    processed_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    admin_notes: Optional[str] = None


@dataclass(frozen=True)
class PlanSummary:
    """Denormalized trading plan attached to a subscription."""
    id: str
    name: str
    tier: str


@dataclass(frozen=True)
class SubscriptionRecord:
    """A user's allocation into a trading plan."""
    id: str
    user_id: str
    plan_id: str
    amount: float
    status: SubscriptionStatus
    start_date: date
    end_date: date
    total_earned: float = 0.0
    plan: Optional[PlanSummary] = None


@dataclass(frozen=True)
class ProfileRecord:
    """Balance figures and contact details for one user."""
    id: str
    balance: float = 0.0
    total_invested: float = 0.0
    total_profit: float = 0.0
    full_name: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None
