"""
Transaction model.

A transaction carries one opaque action payload together with a signed
header declaring who submits it and which state addresses it touches.
"""

from dataclasses import dataclass, field
from typing import Tuple

from google.protobuf.message import DecodeError

from consensource.core.messages import TransactionHeaderMessage, TransactionMessage
from consensource.errors import SerializationError


@dataclass(frozen=True)
class TransactionHeader:
    """
    Header of a single transaction.

    The serialized header is what gets signed; the signature over it is the
    transaction ID. Changing any field after signing invalidates the
    signature.

    Attributes:
        family_name: Transaction family handling the payload
        family_version: Version of the transaction family
        nonce: Uniqueness value so identical payloads get distinct IDs
        signer_public_key: Public key of the transaction signer
        batcher_public_key: Public key of the batch signer
        inputs: Addresses the transaction may read
        outputs: Addresses the transaction may write
        payload_sha512: Hex SHA-512 digest of the payload bytes
        dependencies: IDs of transactions that must commit first
    """

    family_name: str
    family_version: str
    nonce: str
    signer_public_key: str
    batcher_public_key: str
    inputs: Tuple[str, ...]
    outputs: Tuple[str, ...]
    payload_sha512: str
    dependencies: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """Normalize address lists to tuples."""
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "outputs", tuple(self.outputs))
        object.__setattr__(self, "dependencies", tuple(self.dependencies))

    def to_bytes(self) -> bytes:
        """Serialize the header to its wire form."""
        try:
            message = TransactionHeaderMessage(
                family_name=self.family_name,
                family_version=self.family_version,
                nonce=self.nonce,
                signer_public_key=self.signer_public_key,
                batcher_public_key=self.batcher_public_key,
                inputs=list(self.inputs),
                outputs=list(self.outputs),
                payload_sha512=self.payload_sha512,
                dependencies=list(self.dependencies),
            )
            return message.SerializeToString()
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to encode transaction header: {e}") from e

    @classmethod
    def from_bytes(cls, data: bytes) -> "TransactionHeader":
        """Decode a serialized header."""
        message = TransactionHeaderMessage()
        try:
            message.ParseFromString(data)
        except DecodeError as e:
            raise SerializationError(f"Failed to decode transaction header: {e}") from e

        return cls(
            family_name=message.family_name,
            family_version=message.family_version,
            nonce=message.nonce,
            signer_public_key=message.signer_public_key,
            batcher_public_key=message.batcher_public_key,
            inputs=tuple(message.inputs),
            outputs=tuple(message.outputs),
            payload_sha512=message.payload_sha512,
            dependencies=tuple(message.dependencies),
        )


@dataclass(frozen=True)
class Transaction:
    """
    A signed transaction.

    Attributes:
        header: Serialized TransactionHeader bytes, exactly as signed
        header_signature: Hex signature over header; doubles as the ID
        payload: Opaque action payload bytes
    """

    header: bytes
    header_signature: str
    payload: bytes

    @property
    def transaction_id(self) -> str:
        return self.header_signature

    def decode_header(self) -> TransactionHeader:
        return TransactionHeader.from_bytes(self.header)

    def to_message(self):
        """Build the protobuf message for this transaction."""
        try:
            return TransactionMessage(
                header=self.header,
                header_signature=self.header_signature,
                payload=self.payload,
            )
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to encode transaction: {e}") from e

    def to_bytes(self) -> bytes:
        return self.to_message().SerializeToString()

    @classmethod
    def from_message(cls, message) -> "Transaction":
        return cls(
            header=bytes(message.header),
            header_signature=message.header_signature,
            payload=bytes(message.payload),
        )
