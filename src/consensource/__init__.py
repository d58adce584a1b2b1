"""
ConsenSource Client

Turns certificate registry actions into signed, ledger-addressed
transactions, bundles them into atomic batches, submits them to the REST
gateway and follows each submission to its commit outcome.
"""

__version__ = "0.1.0"

from consensource.core.addressing import EntityType, derive_address
from consensource.core.batch import Batch, BatchList
from consensource.core.transaction import Transaction
from consensource.core.submitter import Submitter, submit, submit_and_wait
from consensource.tx.builder import (
    assemble_batch,
    assemble_batches,
    assemble_transaction,
    package,
)
from consensource.tx.signer import TransactionSigner

__all__ = [
    "EntityType",
    "derive_address",
    "Batch",
    "BatchList",
    "Transaction",
    "Submitter",
    "submit",
    "submit_and_wait",
    "assemble_batch",
    "assemble_batches",
    "assemble_transaction",
    "package",
    "TransactionSigner",
]
