"""
Address lookup against an external geocoding service.

Only used when a farm location needs map coordinates. Every call carries
an explicit timeout and fails once; there is no retry.
"""
from dataclasses import dataclass
from typing import Optional

import httpx
import structlog

from shared.config import settings
from shared.errors import NotFound, PersistenceError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


class Geocoder:
    def __init__(
        self,
        base_url: str = settings.GEOCODER_URL,
        api_key: str = settings.GEOCODER_API_KEY,
        timeout: float = settings.HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict:
        headers = {"User-Agent": "farm-market/1.0"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def geocode(self, address_text: str) -> Coordinates:
        """Resolve a free-form address. Raises NotFound when nothing matches."""
        query = (address_text or "").strip()
        if not query:
            raise NotFound("Address is empty")

        try:
            async with httpx.AsyncClient(
                headers=self._headers(), timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.get(
                    self.base_url, params={"q": query, "format": "json", "limit": 1}
                )
                resp.raise_for_status()
                results = resp.json()
        except httpx.HTTPError as e:
            logger.warning("geocode_failed", address=query, error=str(e))
            raise PersistenceError(f"Geocoder unavailable: {e}") from e

        if not results:
            raise NotFound(f"No coordinates found for '{query}'")

        top = results[0]
        try:
            return Coordinates(lat=float(top["lat"]), lng=float(top["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            raise NotFound(f"Malformed geocoder result for '{query}'") from e


def get_geocoder() -> Geocoder:
    return Geocoder()
