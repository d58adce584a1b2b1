"""
Gateway Integration Layer.

Provides batch submission and status polling against the ledger REST API.
"""

from consensource.gateway.interface import GatewayInterface, StatusRecord, StatusResponse
from consensource.gateway.poller import StatusPoller
from consensource.gateway.rest import RestGateway

__all__ = [
    "GatewayInterface",
    "StatusRecord",
    "StatusResponse",
    "StatusPoller",
    "RestGateway",
]
