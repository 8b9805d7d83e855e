"""Lifecycle event webhook client with exponential backoff retry logic"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from manpower_exchange.config import settings
from manpower_exchange.domain.models import Transaction
from manpower_exchange.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter

logger = logging.getLogger(__name__)

TRANSACTION_CREATED = "TRANSACTION_CREATED"
TRANSACTION_REPLACED = "TRANSACTION_REPLACED"
TRANSACTION_STATUS_UPDATED = "TRANSACTION_STATUS_UPDATED"
TRANSACTION_DELETED = "TRANSACTION_DELETED"


def transaction_event(event: str, transaction: Transaction, **extra: Any) -> Dict[str, Any]:
    """Build the webhook payload for a transaction lifecycle event"""
    return {
        "event": event,
        **transaction.key.as_dict(),
        "end_date": transaction.end_date.isoformat(),
        "total_cost": str(transaction.total_cost),
        "status": transaction.status,
        **extra,
    }


class EventsClient:
    """Client for posting transaction lifecycle events to a subscriber webhook"""

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        max_retries: Optional[int] = None,
        backoff_base: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url or settings.events_webhook_url
        self.max_retries = max_retries if max_retries is not None else settings.webhook_max_retries
        self.backoff_base = backoff_base if backoff_base is not None else settings.webhook_backoff_base
        self.timeout = settings.http_timeout_seconds
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def send_event(self, payload: Dict[str, Any]) -> None:
        """
        Deliver one event, retrying transient failures.

        Retry strategy:
        - Exponential backoff: base * 2^(attempt-1)
        - Retries on 5xx responses and network failures; 4xx is final
        - Tracks latency histogram and failure counter

        Raises:
            httpx.HTTPStatusError, httpx.RequestError: after the last failed attempt
        """
        if not self.enabled:
            return

        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return

                except httpx.HTTPStatusError as e:
                    attempt += 1
                    webhook_failure_counter.inc()
                    if e.response.status_code < 500 or attempt >= self.max_retries:
                        logger.error(
                            "Event delivery failed",
                            extra={"event": payload.get("event"), "attempts": attempt},
                        )
                        raise

                except httpx.RequestError:
                    attempt += 1
                    webhook_failure_counter.inc()
                    if attempt >= self.max_retries:
                        logger.error(
                            "Event delivery failed",
                            extra={"event": payload.get("event"), "attempts": attempt},
                        )
                        raise

                backoff = self.backoff_base * (2 ** (attempt - 1))
                await asyncio.sleep(backoff)
