"""
Batch model.

A batch is the atomic unit of commitment: every transaction it lists commits
or fails together. A batch list is the unit actually sent to the gateway.
"""

from dataclasses import dataclass
from typing import List, Tuple

from google.protobuf.message import DecodeError

from consensource.core.messages import BatchHeaderMessage, BatchListMessage, BatchMessage
from consensource.core.transaction import Transaction
from consensource.errors import SerializationError


@dataclass(frozen=True)
class BatchHeader:
    """
    Header of a batch.

    Attributes:
        signer_public_key: Public key of the batch signer
        transaction_ids: IDs of the wrapped transactions, in order
    """

    signer_public_key: str
    transaction_ids: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "transaction_ids", tuple(self.transaction_ids))

    def to_bytes(self) -> bytes:
        """Serialize the header to its wire form."""
        try:
            message = BatchHeaderMessage(
                signer_public_key=self.signer_public_key,
                transaction_ids=list(self.transaction_ids),
            )
            return message.SerializeToString()
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to encode batch header: {e}") from e

    @classmethod
    def from_bytes(cls, data: bytes) -> "BatchHeader":
        message = BatchHeaderMessage()
        try:
            message.ParseFromString(data)
        except DecodeError as e:
            raise SerializationError(f"Failed to decode batch header: {e}") from e

        return cls(
            signer_public_key=message.signer_public_key,
            transaction_ids=tuple(message.transaction_ids),
        )


@dataclass(frozen=True)
class Batch:
    """
    A signed batch of transactions.

    Attributes:
        header: Serialized BatchHeader bytes, exactly as signed
        header_signature: Hex signature over header; doubles as the batch ID
        transactions: Wrapped transactions, in header order
        trace: Ask the ledger to log extra detail for this batch
    """

    header: bytes
    header_signature: str
    transactions: Tuple[Transaction, ...]
    trace: bool = False

    def __post_init__(self):
        object.__setattr__(self, "transactions", tuple(self.transactions))

    @property
    def batch_id(self) -> str:
        return self.header_signature

    @property
    def transaction_ids(self) -> List[str]:
        return [txn.transaction_id for txn in self.transactions]

    @property
    def size(self) -> int:
        return len(self.transactions)

    def decode_header(self) -> BatchHeader:
        return BatchHeader.from_bytes(self.header)

    def to_message(self):
        try:
            return BatchMessage(
                header=self.header,
                header_signature=self.header_signature,
                transactions=[txn.to_message() for txn in self.transactions],
                trace=self.trace,
            )
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to encode batch: {e}") from e

    def to_bytes(self) -> bytes:
        return self.to_message().SerializeToString()

    @classmethod
    def from_message(cls, message) -> "Batch":
        return cls(
            header=bytes(message.header),
            header_signature=message.header_signature,
            transactions=tuple(Transaction.from_message(t) for t in message.transactions),
            trace=message.trace,
        )


@dataclass(frozen=True)
class BatchList:
    """Ordered collection of batches transmitted in one submission."""

    batches: Tuple[Batch, ...]

    def __post_init__(self):
        object.__setattr__(self, "batches", tuple(self.batches))

    @property
    def batch_ids(self) -> List[str]:
        return [batch.batch_id for batch in self.batches]

    def to_bytes(self) -> bytes:
        """Serialize the batch list to the bytes posted to the gateway."""
        try:
            message = BatchListMessage(batches=[b.to_message() for b in self.batches])
            return message.SerializeToString()
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to encode batch list: {e}") from e

    @classmethod
    def from_bytes(cls, data: bytes) -> "BatchList":
        message = BatchListMessage()
        try:
            message.ParseFromString(data)
        except DecodeError as e:
            raise SerializationError(f"Failed to decode batch list: {e}") from e

        return cls(batches=tuple(Batch.from_message(b) for b in message.batches))
