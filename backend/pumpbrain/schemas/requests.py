from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Optional


NATIVE_CHAIN = "solana"


class _AnalysisRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class _ChainScopedRequest(_AnalysisRequest):
    chain: Optional[str] = Field(
        default=NATIVE_CHAIN,
        description="'solana' or a Moralis chain id such as 'eth', 'bsc', 'polygon', 'base'",
    )

    @field_validator("chain", mode="before")
    @classmethod
    def _default_chain(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return NATIVE_CHAIN
        if isinstance(value, str):
            return value.strip().lower()
        return value


class TokenAnalysisRequest(_AnalysisRequest):
    address: str = Field(..., min_length=1, description="Token mint / contract address")

    model_config = {
        "json_schema_extra": {
            "examples": [{"address": "So11111111111111111111111111111111111111112"}]
        }
    }


class TransactionAnalysisRequest(_ChainScopedRequest):
    hash: str = Field(..., min_length=1, description="Transaction signature or hash")


class WalletAnalysisRequest(_ChainScopedRequest):
    address: str = Field(..., min_length=1, description="Wallet public address")
