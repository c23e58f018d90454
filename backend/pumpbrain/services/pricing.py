from abc import ABC, abstractmethod
from typing import Dict, Optional

from pumpbrain.config import Settings


class PriceOracle(ABC):
    """Source of native-asset USD prices used to turn fees and values into dollars."""

    @abstractmethod
    def native_usd(self, chain: str) -> float:
        ...


class StaticPriceOracle(PriceOracle):
    """
    Fixed, configured prices: one for SOL, one default for every EVM chain,
    plus optional per-chain overrides (e.g. {"bsc": 600, "polygon": 0.5}).
    """

    def __init__(self, sol_usd: float, evm_usd: float, overrides: Optional[Dict[str, float]] = None):
        self.sol_usd = sol_usd
        self.evm_usd = evm_usd
        self.overrides = {k.lower(): v for k, v in (overrides or {}).items()}

    @classmethod
    def from_settings(cls, settings: Settings) -> "StaticPriceOracle":
        return cls(
            sol_usd=settings.SOL_PRICE_USD,
            evm_usd=settings.EVM_NATIVE_PRICE_USD,
            overrides=settings.NATIVE_PRICE_OVERRIDES,
        )

    def native_usd(self, chain: str) -> float:
        chain = chain.lower()
        if chain in self.overrides:
            return self.overrides[chain]
        if chain == "solana":
            return self.sol_usd
        return self.evm_usd
