"""
Transaction Builder - assembles signed transactions, batches and batch lists.

Two batching policies are offered and the caller picks one explicitly:
- assemble_batch(): every transaction in one batch, committed atomically
- assemble_batches(): one independent batch per transaction
"""

import hashlib
import threading
import time
from typing import Iterable, List, Optional, Sequence

import structlog

from consensource.core.addressing import FAMILY_NAME, FAMILY_VERSION
from consensource.core.batch import Batch, BatchHeader, BatchList
from consensource.core.transaction import Transaction, TransactionHeader
from consensource.errors import SerializationError
from consensource.tx.signer import TransactionSigner

logger = structlog.get_logger(__name__)


class NonceSource:
    """
    Clock derived nonces that strictly increase within a process.

    A nonce is the wall clock reading as whole seconds followed by the
    zero padded nanosecond remainder. If the clock has not advanced since
    the previous nonce, the previous reading plus one nanosecond is used.
    """

    def __init__(self, clock=time.time_ns):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            reading = max(self._clock(), self._last + 1)
            self._last = reading
        seconds, nanos = divmod(reading, 1_000_000_000)
        return f"{seconds}{nanos:09d}"


_default_nonce_source = NonceSource()


def create_nonce() -> str:
    """Create a nonce appropriate for a TransactionHeader."""
    return _default_nonce_source.next()


def payload_digest(payload: bytes) -> str:
    """Hex SHA-512 digest of a payload."""
    return hashlib.sha512(payload).hexdigest()


def assemble_transaction(
    payload: bytes,
    signer: TransactionSigner,
    inputs: Iterable[str],
    outputs: Iterable[str],
    nonce: Optional[str] = None,
    dependencies: Sequence[str] = (),
) -> Transaction:
    """
    Build and sign a transaction.

    Args:
        payload: Opaque, already serialized action payload
        signer: Credential used as both transaction and batch signer
        inputs: Every address the action reads
        outputs: Every address the action writes
        nonce: Explicit nonce (a fresh clock derived one if omitted)
        dependencies: IDs of transactions that must commit first

    Returns:
        Signed transaction whose ID is the header signature

    Raises:
        SerializationError: If the payload or header cannot be encoded
        SigningError: If the signer cannot produce a signature
    """
    if not isinstance(payload, (bytes, bytearray)):
        raise SerializationError(
            f"Payload must be bytes, got {type(payload).__name__}"
        )
    payload = bytes(payload)

    public_key = signer.public_key
    header = TransactionHeader(
        family_name=FAMILY_NAME,
        family_version=FAMILY_VERSION,
        nonce=nonce if nonce is not None else create_nonce(),
        signer_public_key=public_key,
        batcher_public_key=public_key,
        inputs=tuple(inputs),
        outputs=tuple(outputs),
        payload_sha512=payload_digest(payload),
        dependencies=tuple(dependencies),
    )
    header_bytes = header.to_bytes()

    transaction = Transaction(
        header=header_bytes,
        header_signature=signer.sign(header_bytes),
        payload=payload,
    )

    logger.debug(
        "transaction_assembled",
        transaction_id=transaction.transaction_id[:16] + "...",
        inputs=len(header.inputs),
        outputs=len(header.outputs),
    )

    return transaction


def assemble_batch(
    transactions: Sequence[Transaction],
    signer: TransactionSigner,
) -> Batch:
    """
    Wrap transactions in a single atomic batch.

    Args:
        transactions: Transactions that must commit or fail together,
            in the order they should be applied
        signer: Batch signer

    Returns:
        Signed batch listing every transaction ID in order

    Raises:
        SerializationError: If there are no transactions or encoding fails
        SigningError: If the signer cannot produce a signature
    """
    transactions = tuple(transactions)
    if not transactions:
        raise SerializationError("Cannot assemble a batch without transactions")

    header = BatchHeader(
        signer_public_key=signer.public_key,
        transaction_ids=tuple(txn.transaction_id for txn in transactions),
    )
    header_bytes = header.to_bytes()

    batch = Batch(
        header=header_bytes,
        header_signature=signer.sign(header_bytes),
        transactions=transactions,
    )

    logger.debug(
        "batch_assembled",
        batch_id=batch.batch_id[:16] + "...",
        transaction_count=batch.size,
    )

    return batch


def assemble_batches(
    transactions: Sequence[Transaction],
    signer: TransactionSigner,
) -> List[Batch]:
    """
    Wrap each transaction in its own independently signed batch.

    Used when many independent records are created at once and one failing
    must not roll back the others.

    Args:
        transactions: Independent transactions
        signer: Batch signer

    Returns:
        One single-transaction batch per transaction, in order
    """
    return [assemble_batch([txn], signer) for txn in transactions]


def package(batches: Iterable[Batch]) -> BatchList:
    """Wrap batches in a batch list for transmission."""
    return BatchList(batches=tuple(batches))
