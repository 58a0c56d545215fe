"""HTTP client for a remote QR signing endpoint."""

from __future__ import annotations

import logging
import re
import time
from typing import Optional

import httpx

from ...config import settings
from ...errors import SigningError

logger = logging.getLogger(__name__)

_HEX_SHA256 = re.compile(r"^[0-9a-f]{64}$")


class RemoteSigner:
    """Delegates signing to a trusted server so the secret never leaves it.

    The request carries exactly the tuple that will be embedded in the
    payload; the caller fixes the timestamp before calling.
    """

    def __init__(
        self,
        endpoint_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.endpoint_url = endpoint_url or settings.qr_signing_endpoint_url
        if not self.endpoint_url:
            raise ValueError("QR signing endpoint URL is not configured.")
        self.api_key = api_key
        self.timeout = timeout if timeout is not None else settings.qr_signing_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.qr_signing_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.qr_signing_backoff_seconds

    def _get_client(self) -> httpx.Client:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
            headers["apikey"] = self.api_key
        return httpx.Client(timeout=httpx.Timeout(self.timeout, connect=5.0), headers=headers)

    def sign_fields(
        self, order_id: str, timestamp: int, tenant_id: str, order_number: Optional[str] = None
    ) -> str:
        body: dict = {"orderId": order_id, "timestamp": timestamp, "tenantId": tenant_id}
        if order_number is not None:
            body["orderNumber"] = order_number

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.post(self.endpoint_url, json=body)
                    response.raise_for_status()
                    data = response.json()
                    signature = data.get("signature") if isinstance(data, dict) else None
                    if not isinstance(signature, str) or not _HEX_SHA256.match(signature):
                        raise SigningError("Signing endpoint returned an invalid signature.")
                    return signature
                except httpx.HTTPStatusError as exc:
                    # 4xx means the request itself is wrong; retrying will not help
                    if exc.response.status_code < 500:
                        raise SigningError(
                            f"Signing endpoint rejected the request ({exc.response.status_code})."
                        ) from exc
                    attempt += 1
                    if attempt > self.max_retries:
                        raise SigningError(f"Signing endpoint failed: {exc}") from exc
                    time.sleep(self.backoff_seconds * attempt)
                except (httpx.TimeoutException, httpx.NetworkError) as exc:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise SigningError(
                            f"Failed to reach signing endpoint at {self.endpoint_url}: {exc}"
                        ) from exc
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(
                        f"Signing request failed, retrying in {wait_time:.1f}s "
                        f"(attempt {attempt}/{self.max_retries}): {exc}"
                    )
                    time.sleep(wait_time)
                except ValueError as exc:
                    raise SigningError(f"Signing endpoint returned malformed JSON: {exc}") from exc
        finally:
            client.close()
