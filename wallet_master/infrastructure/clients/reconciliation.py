"""Reconciliation webhook client with exponential backoff retry logic"""

import asyncio
from typing import Any, Dict

import httpx

from wallet_master.config import settings
from wallet_master.infrastructure.observability.metrics import webhook_failure_counter, webhook_latency_histogram


class ReconciliationNotifier:
    """Client for reporting payments the ledger failed to record"""

    def __init__(
        self,
        webhook_url: str | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url or settings.reconciliation_webhook_url
        self.max_retries = max_retries or settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base if backoff_base is None else backoff_base
        self.transport = transport

    async def send_incident(self, payload: Dict[str, Any]) -> None:
        """
        Send a reconciliation incident with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^(attempt-1))
        - Retries on 5xx/4xx responses and network failures
        - Tracks latency histogram and failure counter

        Args:
            payload: Incident data (payment id, operation, amount, refund outcome)
        """
        attempt = 0
        async with httpx.AsyncClient(transport=self.transport) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(
                            self.webhook_url,
                            json=payload,
                            timeout=settings.http_timeout_seconds,
                        )
                        response.raise_for_status()
                        return  # Success

                except (httpx.HTTPStatusError, httpx.RequestError):
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        # Final failure after all retries
                        raise

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
