"""
Tests for platform statistics utilities.
"""

import pytest
from datetime import datetime

from analysis.calculations.platform_stats import (
    calculate_average,
    summarize_transactions,
    count_active_subscriptions,
    recent_transactions,
    transactions_by_status,
    newest_profiles,
)
from ingestion.records import ProfileRecord, SubscriptionStatus, TransactionStatus, TransactionType
from tests.factories import make_subscription, make_transaction


class TestCalculateAverage:
    """Tests for calculate_average function."""

    def test_basic(self):
        assert calculate_average([1.0, 2.0, 6.0]) == pytest.approx(3.0)

    def test_empty(self):
        assert calculate_average([]) == 0.0

    def test_all_zero_grid(self):
        assert calculate_average([0.0] * 7) == 0.0


class TestSummarizeTransactions:
    """Tests for summarize_transactions function."""

    def test_counts_and_totals(self):
        """Pending are counted; only approved money movements are totalled."""
        transactions = [
            make_transaction(TransactionType.DEPOSIT, 100.0, TransactionStatus.APPROVED),
            make_transaction(TransactionType.DEPOSIT, 50.0, TransactionStatus.PENDING),
            make_transaction(TransactionType.DEPOSIT, 25.0, TransactionStatus.REJECTED),
            make_transaction(TransactionType.WITHDRAWAL, 30.0, TransactionStatus.APPROVED),
            make_transaction(TransactionType.WITHDRAWAL, 10.0, TransactionStatus.PENDING),
            make_transaction(TransactionType.SUBSCRIPTION, 500.0, TransactionStatus.APPROVED),
        ]

        result = summarize_transactions(transactions)

        assert result == {
            'pending_transactions': 2,
            'total_deposits': 100.0,
            'total_withdrawals': 30.0,
        }

    def test_empty(self):
        assert summarize_transactions([]) == {
            'pending_transactions': 0,
            'total_deposits': 0.0,
            'total_withdrawals': 0.0,
        }


class TestSubscriptionsAndRecent:
    """Tests for subscription counts and recent transaction ordering."""

    def test_count_active_subscriptions(self):
        subscriptions = [
            make_subscription('A', 10.0),
            make_subscription('B', 10.0, status=SubscriptionStatus.COMPLETED),
            make_subscription('C', 10.0, status=SubscriptionStatus.CANCELLED),
            make_subscription('D', 10.0),
        ]

        assert count_active_subscriptions(subscriptions) == 2

    def test_recent_transactions_newest_first(self):
        transactions = [
            make_transaction(TransactionType.DEPOSIT, float(day), created_at=datetime(2025, 8, day, 9, 0))
            for day in range(1, 8)
        ]

        result = recent_transactions(transactions, limit=3)

        assert [t.amount for t in result] == [7.0, 6.0, 5.0]

    def test_recent_transactions_limit_zero(self):
        assert recent_transactions([make_transaction(TransactionType.DEPOSIT, 1.0)], limit=0) == []


class TestAdminListings:
    """Tests for transactions_by_status and newest_profiles."""

    def test_transactions_by_status(self):
        transactions = [
            make_transaction(TransactionType.DEPOSIT, 1.0, TransactionStatus.PENDING,
                             created_at=datetime(2025, 8, 1, 9, 0)),
            make_transaction(TransactionType.DEPOSIT, 2.0, TransactionStatus.APPROVED,
                             created_at=datetime(2025, 8, 2, 9, 0)),
            make_transaction(TransactionType.WITHDRAWAL, 3.0, TransactionStatus.PENDING,
                             created_at=datetime(2025, 8, 3, 9, 0)),
        ]

        grouped = transactions_by_status(transactions)

        assert [t.amount for t in grouped['pending']] == [3.0, 1.0]
        assert [t.amount for t in grouped['approved']] == [2.0]
        assert grouped['rejected'] == []

    def test_transactions_by_status_empty(self):
        assert transactions_by_status([]) == {'pending': [], 'approved': [], 'rejected': []}

    def test_newest_profiles(self):
        profiles = [
            ProfileRecord(id='old', created_at=datetime(2025, 6, 1)),
            ProfileRecord(id='undated'),
            ProfileRecord(id='new', created_at=datetime(2025, 8, 1)),
        ]

        assert [p.id for p in newest_profiles(profiles)] == ['new', 'old', 'undated']
