"""Repository layer for database operations.

This module provides repository classes for the stock ledger, material
requisitions and the customer order history. Repositories flush but never
commit; services wrap them in a transaction.
"""

from orderflow.repositories.history_repository import HistoryRepository
from orderflow.repositories.requisition_repository import RequisitionRepository
from orderflow.repositories.stock_ledger import StockLedger

__all__ = [
    "HistoryRepository",
    "RequisitionRepository",
    "StockLedger",
]
