"""
Core client components.

This module contains ledger addressing, the transaction and batch models,
and the submission orchestrator.
"""

from consensource.core.addressing import AddressSet, EntityType, derive_address
from consensource.core.transaction import Transaction, TransactionHeader
from consensource.core.batch import Batch, BatchHeader, BatchList

__all__ = [
    "AddressSet",
    "EntityType",
    "derive_address",
    "Transaction",
    "TransactionHeader",
    "Batch",
    "BatchHeader",
    "BatchList",
]
