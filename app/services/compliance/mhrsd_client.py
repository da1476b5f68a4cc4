"""
MHRSD government API client

Submits compliance reports to the Ministry of Human Resources and Social
Development. With `mhrsd_mock` enabled (the default) no request leaves the
process and a simulated reference number is returned.
"""
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional
from threading import Lock

import httpx
from loguru import logger

from app.core.config import settings


class MHRSDError(Exception):
    """Submission rejected or not reachable"""


class MHRSDClient:
    """
    MHRSD client singleton
    """

    _instance: Optional["MHRSDClient"] = None
    _lock = Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if getattr(self, "_initialized", False):
            return

        self.base_url = settings.mhrsd_api_url.rstrip("/")
        self.client_id = settings.mhrsd_client_id
        self.client_secret = settings.mhrsd_client_secret
        self.timeout = settings.mhrsd_timeout
        self.mock = settings.mhrsd_mock

        self._initialized = True
        if self.mock:
            logger.info("MHRSDClient running in mock mode")
        elif not self.is_configured():
            logger.warning("MHRSDClient not configured, report submission disabled")

    def is_configured(self) -> bool:
        return self.mock or bool(self.client_id and self.client_secret and self.base_url)

    async def _get_token(self, client: httpx.AsyncClient) -> str:
        response = await client.post(
            f"{self.base_url}/oauth/token",
            data={
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
        )
        response.raise_for_status()
        return response.json()["access_token"]

    async def submit_report(self, establishment_id: str, payload: Dict) -> Dict:
        """
        Submit a compliance report

        Args:
            establishment_id: employer id registered with MHRSD
            payload: report_type, period and workforce figures

        Returns:
            {"reference_number", "status", "submitted_at"}

        Raises:
            MHRSDError: client not configured or the API refused the report
        """
        if not self.is_configured():
            raise MHRSDError("MHRSD API is not configured, set MHRSD_CLIENT_ID and MHRSD_CLIENT_SECRET")

        submitted_at = datetime.now(timezone.utc)
        if self.mock:
            reference = f"MHRSD-{submitted_at:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"
            logger.info("MHRSD mock submission: establishment={}, reference={}", establishment_id, reference)
            return {
                "reference_number": reference,
                "status": "received",
                "submitted_at": submitted_at.isoformat(),
            }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                token = await self._get_token(client)
                response = await client.post(
                    f"{self.base_url}/compliance/reports",
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Accept": "application/json",
                        "Accept-Language": "ar-SA,en-US",
                    },
                    json={"establishment_id": establishment_id, **payload},
                )
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as exc:
                logger.error(
                    "MHRSD submission failed: status={}, response={}",
                    exc.response.status_code,
                    exc.response.text[:500],
                )
                raise MHRSDError(f"MHRSD rejected the report ({exc.response.status_code})") from exc
            except httpx.HTTPError as exc:
                logger.error("MHRSD request error: {}", exc)
                raise MHRSDError(f"MHRSD unreachable: {exc}") from exc

        return {
            "reference_number": data.get("reference_number"),
            "status": data.get("status", "received"),
            "submitted_at": data.get("timestamp", submitted_at.isoformat()),
        }

    def get_status(self) -> dict:
        return {
            "configured": self.is_configured(),
            "mock": self.mock,
            "base_url": self.base_url,
        }


def get_mhrsd_client() -> MHRSDClient:
    return MHRSDClient()
