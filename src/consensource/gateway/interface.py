"""
Abstract interface for the ledger REST gateway.

Defines the contract for batch submission and status queries, plus the
response shapes the gateway returns.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from consensource.core.batch import BatchList


class BatchStatus(str, Enum):
    """Batch status values reported by the gateway."""
    COMMITTED = "COMMITTED"
    INVALID = "INVALID"
    PENDING = "PENDING"
    UNKNOWN = "UNKNOWN"


class PollState(str, Enum):
    """Client side view of a submitted batch."""
    PENDING = "pending"       # Any non-terminal status, including unrecognised ones
    COMMITTED = "committed"   # Terminal success
    INVALID = "invalid"       # Terminal failure

    @classmethod
    def from_status(cls, status: str) -> "PollState":
        if status == BatchStatus.COMMITTED.value:
            return cls.COMMITTED
        if status == BatchStatus.INVALID.value:
            return cls.INVALID
        return cls.PENDING


class InvalidTransactionDetail(BaseModel):
    """Why one transaction of an INVALID batch was rejected."""
    id: str
    message: str


class StatusRecord(BaseModel):
    """Status of one batch."""
    id: str
    status: str
    invalid_transactions: List[InvalidTransactionDetail] = Field(default_factory=list)

    @property
    def state(self) -> PollState:
        return PollState.from_status(self.status)


class StatusResponse(BaseModel):
    """Body of a batch status response."""
    data: List[StatusRecord]
    link: str


class SubmissionAccepted(BaseModel):
    """Body returned when the gateway accepts a batch list."""
    link: str


class GatewayInterface(ABC):
    """
    Abstract interface for gateway access.

    Implementations must be usable as async context managers.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Prepare the underlying transport."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the underlying transport."""
        pass

    @abstractmethod
    async def submit_batch_list(self, batch_list: BatchList) -> str:
        """
        Submit a batch list.

        Args:
            batch_list: Batches to submit

        Returns:
            Status link for the submission (the submission handle)

        Raises:
            SchemeError: If the gateway URL scheme is not supported
            TransportError: If the gateway cannot be reached or refuses
            ResponseParseError: If the acceptance body has no link
        """
        pass

    @abstractmethod
    async def fetch_status(self, link: str, wait: bool = True) -> StatusResponse:
        """
        Query the status behind a submission handle.

        Args:
            link: Submission handle returned by submit_batch_list
            wait: Ask the gateway to hold the request until the status changes

        Returns:
            Parsed status response
        """
        pass

    async def __aenter__(self) -> "GatewayInterface":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()
