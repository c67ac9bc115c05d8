"""
Data Ingestion Module

Turns rows fetched from the hosted backend into typed records:
- records.py: ProfitRecord, TransactionRecord, SubscriptionRecord, ProfileRecord
- transforms/: normalization and validation at the fetch boundary
"""

__version__ = "0.1.0"
