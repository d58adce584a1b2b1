"""
Error types raised by the ConsenSource client.

Every failure surfaced to a caller is a ClientError subclass. Third-party
exceptions (cryptography, protobuf, httpx, pydantic) are wrapped at the
module boundary that triggered them.
"""

from typing import Optional


class ClientError(Exception):
    """Base class for all client errors."""
    pass


class UserInputError(ClientError):
    """Raised when arguments or local inputs are malformed."""
    pass


class SigningError(ClientError):
    """Raised when a credential cannot be loaded or cannot produce a signature."""
    pass


class SerializationError(ClientError):
    """Raised when a payload, header or batch cannot be encoded."""
    pass


class TransportError(ClientError):
    """Raised when the gateway cannot be reached or refuses a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SchemeError(TransportError):
    """Raised when a gateway URL uses an unsupported scheme or has none."""
    pass


class ResponseParseError(ClientError):
    """Raised when a gateway response does not have the expected shape."""
    pass


class LedgerRejectionError(ClientError):
    """
    Raised when the ledger reports a batch as INVALID.

    The string form is exactly the diagnostic message supplied by the ledger
    for the first invalid transaction.
    """

    def __init__(
        self,
        message: str,
        batch_id: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.batch_id = batch_id
        self.transaction_id = transaction_id


class PollTimeoutError(ClientError):
    """Raised when a batch is still pending after the configured poll bound."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class PollCancelledError(ClientError):
    """Raised when status polling is cancelled by the caller."""
    pass
