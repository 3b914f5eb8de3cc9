"""
Telemetry backend client used by the metrics proxy.

Keeps the backend URL and read token server-side.
"""
import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

OVERALL_ANALYTICS_PATH = "/analytics/overall"


class TelemetryError(Exception):
    pass


class TelemetryClient:
    def __init__(
        self,
        backend_url: str,
        read_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.backend_url = backend_url.rstrip("/")
        self.read_token = read_token
        self._transport = transport

    async def fetch_overall(self) -> Any:
        """
        Fetch the overall analytics document from the backend.

        Raises:
            TelemetryError: If the backend is unreachable or answers non-2xx
        """
        headers = {"Content-Type": "application/json"}
        if self.read_token:
            headers["Authorization"] = f"Bearer {self.read_token}"

        url = f"{self.backend_url}{OVERALL_ANALYTICS_PATH}"
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Telemetry backend unreachable: {e}")
            raise TelemetryError(f"Backend request failed: {e}")

        if not response.is_success:
            logger.error(f"Telemetry backend error: {response.status_code} {response.text[:500]}")
            raise TelemetryError(f"Backend returned {response.status_code}")

        try:
            return response.json()
        except ValueError:
            raise TelemetryError("Backend returned invalid JSON")
