"""
Outbound call to an agent's workflow webhook (e.g. an n8n workflow).
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import httpx

from portal.utils.retry import with_retry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Answered:
    """The webhook replied with a 2xx status; body is parsed JSON or raw text."""
    body: Any


@dataclass(frozen=True)
class Failed:
    """Timeout, connection error or non-2xx status."""
    reason: str


ForwardOutcome = Union[Answered, Failed]


class WebhookForwarder:
    """
    POST a payload to a URL and classify the result.

    ``max_attempts`` defaults to 1: one call, no retry. Raising it retries
    transport errors (connection failures, timeouts) with exponential backoff;
    HTTP error statuses are never retried.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        max_attempts: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.transport = transport

    async def forward(self, url: str, payload: Dict[str, Any]) -> ForwardOutcome:
        post = with_retry(
            max_attempts=self.max_attempts,
            exception_types=(httpx.TransportError,),
        )(self._post)
        try:
            response = await post(url, payload)
        except httpx.TimeoutException as exc:
            logger.warning(f"Webhook timed out after {self.timeout}s: {url}")
            return Failed(f"timeout: {exc.__class__.__name__}")
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(f"Webhook call failed: {url}: {exc!r}")
            return Failed(str(exc) or exc.__class__.__name__)

        if not response.is_success:
            logger.warning(f"Webhook returned HTTP {response.status_code}: {url}")
            return Failed(f"HTTP {response.status_code}")

        try:
            return Answered(response.json())
        except ValueError:
            return Answered(response.text)

    async def _post(self, url: str, payload: Dict[str, Any]) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            return await client.post(url, json=payload, headers=headers)
