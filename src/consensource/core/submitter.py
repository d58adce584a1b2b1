"""
Submission orchestrator.

Sends a batch list to the gateway once and follows it to a terminal status.
A failed submission is never retried here: the nonce is clock derived, so a
resubmission is a new transaction and must be an explicit caller decision.
"""

import asyncio
from typing import Optional

import structlog

from consensource.config import ClientConfig, get_config
from consensource.core.batch import BatchList
from consensource.gateway.interface import GatewayInterface, StatusRecord
from consensource.gateway.poller import StatusPoller
from consensource.gateway.rest import RestGateway

logger = structlog.get_logger(__name__)


class Submitter:
    """
    Coordinates submission and status polling.

    Usage:
        ```python
        async with RestGateway(url) as gateway:
            record = await Submitter(gateway).submit_and_wait(batch_list)
        ```
    """

    def __init__(
        self,
        gateway: Optional[GatewayInterface] = None,
        config: Optional[ClientConfig] = None,
        poller: Optional[StatusPoller] = None,
    ):
        """
        Initialize the submitter.

        Args:
            gateway: Gateway adapter (a RestGateway on the configured URL if not provided)
            config: Client configuration
            poller: Custom status poller (built from config if not provided)
        """
        self.config = config or get_config()
        self.gateway = gateway or RestGateway(config=self.config)
        self.poller = poller or StatusPoller(
            self.gateway,
            interval_seconds=self.config.poll_interval_seconds,
            wait_server_side=self.config.wait_server_side,
            max_attempts=self.config.max_poll_attempts,
            timeout_seconds=self.config.poll_timeout_seconds,
        )

    async def submit(self, batch_list: BatchList) -> str:
        """Submit a batch list and return its submission handle."""
        logger.info("submitting_batch_list", batch_ids=[b[:16] + "..." for b in batch_list.batch_ids])
        return await self.gateway.submit_batch_list(batch_list)

    async def wait(
        self,
        link: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> StatusRecord:
        """Poll a submission handle until it commits."""
        return await self.poller.wait_for_commit(link, cancel_event=cancel_event)

    async def submit_and_wait(
        self,
        batch_list: BatchList,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> StatusRecord:
        """
        Submit a batch list and wait for its terminal status.

        Returns:
            The COMMITTED status record

        Raises:
            ClientError: Any transport, parse, rejection or poll bound failure
        """
        link = await self.submit(batch_list)
        return await self.wait(link, cancel_event=cancel_event)


def submit(
    base_url: str,
    batch_list: BatchList,
    config: Optional[ClientConfig] = None,
) -> str:
    """
    Blocking submission without polling.

    Returns once the gateway has accepted the batch list.

    Returns:
        The submission handle (status link)
    """
    config = config or get_config()

    async def _run() -> str:
        async with RestGateway(base_url, config=config) as gateway:
            return await Submitter(gateway, config).submit(batch_list)

    return asyncio.run(_run())


def submit_and_wait(
    batch_list: BatchList,
    config: Optional[ClientConfig] = None,
    gateway: Optional[GatewayInterface] = None,
) -> StatusRecord:
    """
    Blocking submission: submit a batch list and return once it commits.

    Args:
        batch_list: Batches to submit
        config: Client configuration
        gateway: Gateway adapter (a RestGateway on the configured URL if not provided)

    Returns:
        The COMMITTED status record
    """
    config = config or get_config()

    async def _run() -> StatusRecord:
        async with (gateway or RestGateway(config=config)) as connected:
            return await Submitter(connected, config).submit_and_wait(batch_list)

    return asyncio.run(_run())
