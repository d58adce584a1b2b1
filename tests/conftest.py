"""
Pytest configuration and shared fixtures for the test suite.
"""

from typing import List, Optional

import pytest

from consensource.config import ClientConfig
from consensource.core.addressing import agent_create_addresses, organization_create_addresses
from consensource.core.batch import BatchList
from consensource.core.transaction import Transaction
from consensource.gateway.interface import GatewayInterface, StatusRecord, StatusResponse
from consensource.tx.builder import assemble_transaction
from consensource.tx.signer import TransactionSigner, generate_key


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config(tmp_path) -> ClientConfig:
    """Create a test configuration."""
    return ClientConfig(
        gateway_url="http://localhost:9009",
        key_name="tester",
        key_dir=tmp_path / "keys",
        poll_interval_seconds=0.01,
        log_level="DEBUG",
    )


# ============================================================================
# Signer and Transaction Fixtures
# ============================================================================

@pytest.fixture
def test_signer(test_config) -> TransactionSigner:
    """Create a signer with a random key."""
    return generate_key(test_config)


@pytest.fixture
def sample_payload() -> bytes:
    """An opaque, already encoded action payload."""
    return b"\x08\x01\x12\x0b\n\x03Bob\x10\xd2\x85\xd8\xcc\x04"


@pytest.fixture
def sample_transaction(test_signer, sample_payload) -> Transaction:
    addresses = agent_create_addresses(test_signer.public_key)
    return assemble_transaction(
        sample_payload,
        test_signer,
        addresses.inputs,
        addresses.outputs,
    )


@pytest.fixture
def sample_transactions(test_signer) -> List[Transaction]:
    """Three independent organization-creation transactions."""
    transactions = []
    for i in range(3):
        addresses = organization_create_addresses(test_signer.public_key, f"org-{i}")
        transactions.append(
            assemble_transaction(
                f"payload-{i}".encode(),
                test_signer,
                addresses.inputs,
                addresses.outputs,
            )
        )
    return transactions


# ============================================================================
# Scripted Gateway
# ============================================================================

def status_response(
    status: str,
    batch_id: str = "b" * 128,
    message: Optional[str] = None,
    link: str = "/batch_statuses?id=" + "b" * 128,
) -> StatusResponse:
    """Build a status response holding one record."""
    invalid = []
    if message is not None:
        invalid.append({"id": "t" * 128, "message": message})
    return StatusResponse.model_validate({
        "data": [{"id": batch_id, "status": status, "invalid_transactions": invalid}],
        "link": link,
    })


class ScriptedGateway(GatewayInterface):
    """Gateway that replays a fixed sequence of status responses."""

    def __init__(self, responses: List[StatusResponse], link: str = "/batch_statuses?id=abc"):
        self.responses = list(responses)
        self.link = link
        self.submitted: List[BatchList] = []
        self.polled: List[tuple] = []
        self.connected = False

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def submit_batch_list(self, batch_list: BatchList) -> str:
        self.submitted.append(batch_list)
        return self.link

    async def fetch_status(self, link: str, wait: bool = True) -> StatusResponse:
        self.polled.append((link, wait))
        if not self.responses:
            raise AssertionError("Status polled more often than scripted")
        return self.responses.pop(0)


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested pauses."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
