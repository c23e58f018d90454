"""
Flattened, request-scoped summaries of upstream data. These are what the
narrative generator sees, serialized with camelCase keys.
"""
import json
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


MAX_TOKEN_TRANSFERS = 5
MAX_EXAMPLE_TOKENS = 5


class ContextRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_prompt_json(self) -> str:
        return json.dumps(self.model_dump(mode="json", by_alias=True), indent=2)


class TokenContext(ContextRecord):
    token_address: str
    chain: Optional[str] = None
    dex: Optional[str] = None
    pair_created_at: Optional[int] = None
    price_usd: Optional[float] = None
    liquidity_usd: Optional[float] = None
    volume_24h_usd: Optional[float] = Field(default=None, alias="volume24hUsd")
    buys_24h: Optional[int] = Field(default=None, alias="buys24h")
    sells_24h: Optional[int] = Field(default=None, alias="sells24h")
    fdv: Optional[float] = None
    urls: Dict[str, Any] = Field(default_factory=dict)
    base_token: Dict[str, Any] = Field(default_factory=dict)
    quote_token: Dict[str, Any] = Field(default_factory=dict)


class TokenTransfer(ContextRecord):
    token: str
    amount: float
    direction: Literal["in", "out", "transfer"]


class TransactionContext(ContextRecord):
    chain: str
    hash: str
    sender: str = Field(default="unknown", alias="from")
    recipient: str = Field(default="unknown", alias="to")
    timestamp: Optional[str] = None
    native_amount_usd: float = 0.0
    fee_usd: float = 0.0
    token_transfers: List[TokenTransfer] = Field(default_factory=list, max_length=MAX_TOKEN_TRANSFERS)
    decoded_type: Literal["swap", "transfer", "unknown"] = "unknown"


class WalletContext(ContextRecord):
    chain: str
    address: str
    total_tx_sampled: int = 0
    recent_in_count: int = 0
    recent_out_count: int = 0
    example_tokens: List[str] = Field(default_factory=list, max_length=MAX_EXAMPLE_TOKENS)
    first_seen_at: Optional[str] = None
    last_seen_at: Optional[str] = None
