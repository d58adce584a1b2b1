"""
Transaction module.

Handles signing and assembly of transactions, batches and batch lists.
"""

from consensource.tx.builder import (
    assemble_batch,
    assemble_batches,
    assemble_transaction,
    create_nonce,
    package,
)
from consensource.tx.signer import TransactionSigner, generate_key, verify_signature

__all__ = [
    "assemble_batch",
    "assemble_batches",
    "assemble_transaction",
    "create_nonce",
    "package",
    "TransactionSigner",
    "generate_key",
    "verify_signature",
]
