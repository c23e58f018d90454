import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from pumpbrain.config import Settings
from pumpbrain.errors import NotFound, UpstreamError
from pumpbrain.schemas.context import TransactionContext, WalletContext
from pumpbrain.schemas.requests import NATIVE_CHAIN
from pumpbrain.services import normalize
from pumpbrain.services.pricing import PriceOracle
from pumpbrain.utils.gather import best_effort_gather

logger = logging.getLogger(__name__)

SIGNATURE_PAGE_SIZE = 25
DETAIL_SAMPLE_SIZE = 5


class ChainDataProvider(ABC):
    """
    One upstream family (direct RPC or a third-party indexer) behind a common
    surface, so the analyzers never branch on the chain themselves.
    """

    def __init__(
        self,
        chain: str,
        prices: PriceOracle,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.chain = chain
        self.prices = prices
        self.timeout = timeout
        self._transport = transport

    def _client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport, **kwargs)

    @abstractmethod
    async def fetch_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def transaction_context(self, tx_hash: str) -> TransactionContext:
        ...

    @abstractmethod
    async def wallet_context(self, address: str) -> WalletContext:
        ...


# =====================================
# Solana over JSON-RPC (Helius)
# =====================================
class NativeChainProvider(ChainDataProvider):

    def __init__(
        self,
        rpc_url: str,
        api_key: str,
        prices: PriceOracle,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(NATIVE_CHAIN, prices, timeout, transport)
        self.rpc_url = rpc_url
        self._api_key = api_key

    async def _rpc(self, method: str, params: List[Any]) -> Any:
        """
        Single JSON-RPC call. Returns `result`, or None when the node answers
        with an error envelope. Transport and HTTP failures raise UpstreamError.
        """
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        query = {"api-key": self._api_key} if self._api_key else None
        try:
            async with self._client() as client:
                response = await client.post(self.rpc_url, params=query, json=payload)
        except httpx.RequestError as e:
            raise UpstreamError(f"Solana RPC {method} request failed: {type(e).__name__}") from e

        if response.status_code != 200:
            raise UpstreamError(f"Solana RPC {method} returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamError(f"Solana RPC {method} returned a non-JSON body") from e

        if not isinstance(body, dict):
            return None
        if body.get("error"):
            logger.warning(f"Solana RPC {method} error: {body['error']}")
        return body.get("result")

    async def fetch_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        result = await self._rpc(
            "getTransaction",
            [tx_hash, {"encoding": "jsonParsed", "maxSupportedTransactionVersion": 0}],
        )
        return result if isinstance(result, dict) else None

    async def fetch_signatures(self, address: str, limit: int = SIGNATURE_PAGE_SIZE) -> List[Dict[str, Any]]:
        result = await self._rpc("getSignaturesForAddress", [address, {"limit": limit}])
        if not isinstance(result, list):
            return []
        return [sig for sig in result if isinstance(sig, dict)]

    async def transaction_context(self, tx_hash: str) -> TransactionContext:
        tx = await self.fetch_transaction(tx_hash)
        if not tx:
            raise NotFound("Transaction not found.")
        return normalize.build_solana_transaction_context(tx_hash, tx, self.prices.native_usd(self.chain))

    async def wallet_context(self, address: str) -> WalletContext:
        signatures = await self.fetch_signatures(address)
        sample = [
            sig["signature"]
            for sig in signatures[:DETAIL_SAMPLE_SIZE]
            if isinstance(sig.get("signature"), str)
        ]
        details = await best_effort_gather(self.fetch_transaction, sample, label="transaction")
        logger.info(f"Sampled {len(details)}/{len(sample)} transactions for wallet {address}")
        return normalize.build_solana_wallet_context(address, signatures, [tx for tx in details if tx])


# =====================================
# EVM chains over Moralis
# =====================================
class IndexedChainProvider(ChainDataProvider):

    def __init__(
        self,
        chain: str,
        base_url: str,
        api_key: str,
        prices: PriceOracle,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(chain, prices, timeout, transport)
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key

    async def _get(self, path: str) -> httpx.Response:
        headers = {"X-API-Key": self._api_key, "accept": "application/json"}
        try:
            async with self._client(headers=headers) as client:
                return await client.get(f"{self.base_url}{path}", params={"chain": self.chain})
        except httpx.RequestError as e:
            raise UpstreamError(f"Moralis request {path} failed: {type(e).__name__}") from e

    @staticmethod
    def _json(response: httpx.Response, path: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"Moralis {path} returned a non-JSON body") from e

    async def fetch_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        path = f"/transaction/{quote(tx_hash, safe='')}"
        response = await self._get(path)
        if response.status_code == 404:
            raise NotFound("Transaction not found.")
        if response.status_code != 200:
            raise UpstreamError(f"Moralis {path} on {self.chain} returned HTTP {response.status_code}")
        data = self._json(response, path)
        return data if isinstance(data, dict) else None

    async def fetch_transaction_logs(self, tx_hash: str) -> List[Dict[str, Any]]:
        """Decoded event logs of a transaction; any failure here means no token transfers, not an error."""
        path = f"/transaction/{quote(tx_hash, safe='')}/logs"
        try:
            response = await self._get(path)
            if response.status_code != 200:
                raise UpstreamError(f"Moralis {path} on {self.chain} returned HTTP {response.status_code}")
            data = self._json(response, path)
        except UpstreamError as e:
            logger.warning(f"{e}; no token transfers")
            return []
        return data if isinstance(data, list) else []

    async def fetch_transfers(self, address: str) -> List[Dict[str, Any]]:
        path = f"/{quote(address, safe='')}/erc20/transfers"
        response = await self._get(path)
        if response.status_code != 200:
            raise UpstreamError(f"Moralis {path} on {self.chain} returned HTTP {response.status_code}")
        data = self._json(response, path)
        result = data.get("result") if isinstance(data, dict) else None
        return result if isinstance(result, list) else []

    async def transaction_context(self, tx_hash: str) -> TransactionContext:
        tx = await self.fetch_transaction(tx_hash)
        if not tx:
            raise NotFound("Transaction not found.")
        logs = await self.fetch_transaction_logs(tx_hash) or tx.get("logs") or []
        return normalize.build_evm_transaction_context(
            self.chain, tx_hash, tx, logs, self.prices.native_usd(self.chain)
        )

    async def wallet_context(self, address: str) -> WalletContext:
        transfers = await self.fetch_transfers(address)
        return normalize.build_evm_wallet_context(self.chain, address, transfers)


class ProviderRegistry:
    """Resolves a chain discriminator to the provider that serves it."""

    def __init__(
        self,
        settings: Settings,
        prices: PriceOracle,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.prices = prices
        self._transport = transport
        self.native = NativeChainProvider(
            rpc_url=settings.SOLANA_RPC_URL,
            api_key=settings.secret("HELIUS_API_KEY"),
            prices=prices,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )

    def for_chain(self, chain: str) -> ChainDataProvider:
        if chain == NATIVE_CHAIN:
            return self.native
        return IndexedChainProvider(
            chain=chain,
            base_url=self.settings.MORALIS_API_URL,
            api_key=self.settings.secret("MORALIS_API_KEY"),
            prices=self.prices,
            timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            transport=self._transport,
        )
