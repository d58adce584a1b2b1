"""
REST gateway adapter.

Submits batch lists to, and reads batch statuses from, the ConsenSource REST
API over plain HTTP.
"""

from typing import Optional
from urllib.parse import urlsplit

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from consensource.config import ClientConfig, get_config
from consensource.core.batch import BatchList
from consensource.errors import ResponseParseError, SchemeError, TransportError
from consensource.gateway.interface import GatewayInterface, StatusResponse, SubmissionAccepted

logger = structlog.get_logger(__name__)

SUPPORTED_SCHEME = "http"
BATCHES_PATH = "/api/batches"
OCTET_STREAM = "application/octet-stream"


def validate_gateway_url(url: str) -> str:
    """
    Check that a gateway URL uses the supported scheme.

    Args:
        url: Gateway base URL

    Returns:
        The URL without a trailing slash

    Raises:
        SchemeError: If the URL is malformed, has no host, or the scheme
            is missing or not plain http
    """
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise SchemeError(f"Invalid URL: {url}") from e

    if not parts.scheme:
        raise SchemeError(f"No scheme in URL: {url}")
    if parts.scheme.lower() != SUPPORTED_SCHEME:
        raise SchemeError(f"Unsupported scheme ({parts.scheme}) in URL: {url}")
    if not parts.netloc:
        raise SchemeError(f"No host in URL: {url}")
    return url.rstrip("/")


def status_url(base_url: str, link: str, wait: bool = True) -> str:
    """Build the status query URL for a submission handle."""
    url = f"{base_url.rstrip('/')}/api{link}"
    if wait:
        url += "&wait=true" if "?" in link else "?wait=true"
    return url


def _parse(model: type, response: httpx.Response) -> BaseModel:
    try:
        return model.model_validate_json(response.content)
    except ValidationError as e:
        logger.error("gateway_response_invalid", url=str(response.url), error=str(e))
        raise ResponseParseError(
            f"Unexpected response from {response.url}: {e.error_count()} validation error(s)"
        ) from e


class RestGateway(GatewayInterface):
    """
    ConsenSource REST API adapter.

    Implements the GatewayInterface using httpx.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the REST gateway adapter.

        Args:
            base_url: Gateway base URL. Uses the configured URL if not provided.
            config: Client configuration. Uses global config if not provided.
            transport: Custom httpx transport (used by tests)
        """
        self.config = config or get_config()
        self.base_url = base_url or self.config.gateway_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        """Create the HTTP client."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            timeout=self.config.request_timeout_seconds,
            transport=self._transport,
        )

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Make a request and reject non-success responses."""
        if not self._client:
            await self.connect()

        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.error("gateway_request_error", url=url, error=str(e))
            raise TransportError(f"Unable to reach {url}: {e}") from e

        if not response.is_success:
            logger.error(
                "gateway_request_failed",
                url=url,
                status=response.status_code,
                error=response.text,
            )
            raise TransportError(
                f"Gateway returned {response.status_code} for {url}: {response.text}",
                status_code=response.status_code,
            )

        return response

    async def submit_batch_list(self, batch_list: BatchList) -> str:
        """Post a serialized batch list and return its status link."""
        base_url = validate_gateway_url(self.base_url)
        body = batch_list.to_bytes()

        response = await self._request(
            "POST",
            base_url + BATCHES_PATH,
            content=body,
            headers={
                "Content-Type": OCTET_STREAM,
                "Content-Length": str(len(body)),
            },
        )
        accepted = _parse(SubmissionAccepted, response)

        logger.info(
            "batch_list_submitted",
            batch_count=len(batch_list.batches),
            link=accepted.link,
        )
        return accepted.link

    async def fetch_status(self, link: str, wait: bool = True) -> StatusResponse:
        """Get the status behind a submission handle."""
        base_url = validate_gateway_url(self.base_url)
        response = await self._request("GET", status_url(base_url, link, wait))
        return _parse(StatusResponse, response)
