"""HTTP transport for venue calls.

Each call opens its own ``httpx.AsyncClient``, so nothing needs closing
when a swap is abandoned. Failures are mapped to three distinct kinds:
the venue said no (``VenueRejection``), nobody answered
(``NetworkUnavailable``), or the request never left
(``RequestConstructionError``). A body that cannot be decoded is a
``MalformedResponse``.
"""

import logging
from typing import Any, Optional

import httpx

from swapintent.errors import (
    MalformedResponse,
    NetworkUnavailable,
    RequestConstructionError,
    VenueRejection,
)

logger = logging.getLogger(__name__)


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class VenueHttpClient:
    """Authorized JSON client for the venue API."""

    def __init__(
        self,
        base_url: str,
        auth_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth_key = auth_key
        self.timeout = timeout
        self.transport = transport

    def _get_headers(self) -> dict:
        """Get API headers with authorization."""
        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.auth_key}",
        }

    async def get(self, path: str, params: Optional[dict] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, json: Optional[dict] = None) -> Any:
        return await self._request("POST", path, json=json)

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                request = client.build_request(
                    method, url, headers=self._get_headers(), params=params, json=json
                )
            except (httpx.InvalidURL, TypeError, ValueError) as e:
                raise RequestConstructionError(str(e)) from e

            logger.debug(f"{method} {url}")
            try:
                response = await client.send(request)
            except httpx.UnsupportedProtocol as e:
                raise RequestConstructionError(str(e)) from e
            except httpx.TransportError as e:
                raise NetworkUnavailable(str(e) or type(e).__name__, url=url) from e
            except httpx.DecodingError as e:
                raise MalformedResponse(f"Undecodable body from {url}: {e}") from e
            except httpx.RequestError as e:
                # Redirect loops and any other failure to get a usable response
                raise NetworkUnavailable(str(e) or type(e).__name__, url=url) from e

        if not response.is_success:
            body = _decode_body(response)
            logger.warning(f"Venue API error: {response.status_code} - {body}")
            raise VenueRejection(response.status_code, body, url=url)

        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponse(f"Invalid JSON from {url}", response.text) from e
