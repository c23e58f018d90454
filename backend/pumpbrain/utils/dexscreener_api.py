import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from pumpbrain.errors import NotFound, UpstreamError

logger = logging.getLogger(__name__)


class DexscreenerClient:
    """Looks up trading pairs for a token address on Dexscreener."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout
        self._transport = transport

    async def get_token_pairs(self, token_address: str) -> List[Dict[str, Any]]:
        """
        Returns the pairs Dexscreener lists for `token_address`, in the order it
        returns them. Raises NotFound when the lookup fails or comes back empty.
        """
        url = f"{self.base_url}{quote(token_address, safe='')}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url)
        except httpx.RequestError as e:
            raise UpstreamError(f"Network error fetching Dexscreener data for {token_address}: {e}") from e

        if response.status_code != 200:
            logger.error(f"HTTP error fetching Dexscreener data for {token_address}: {response.status_code}")
            raise NotFound("Token not found on Dexscreener.")

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(f"Dexscreener returned a non-JSON body for {token_address}") from e

        pairs = data.get("pairs") if isinstance(data, dict) else None
        pairs = [pair for pair in pairs if isinstance(pair, dict)] if isinstance(pairs, list) else []
        if not pairs:
            logger.info(f"No Dexscreener data found for {token_address}")
            raise NotFound("Token not found on Dexscreener.")

        return pairs
