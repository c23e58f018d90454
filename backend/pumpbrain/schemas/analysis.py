from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


Score = Union[int, float]

WSOL_MINT = "So11111111111111111111111111111111111111112"


def jupiter_swap_url(address: str) -> str:
    return f"https://jup.ag/swap/{WSOL_MINT}-{address}"


class AnalysisResult(BaseModel):
    """
    Structured opinion returned by the model. Every field is optional: whatever
    the model leaves out is left out of the response and shown as N/A.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# =========== Token ===========
class TokenAnalysis(AnalysisResult):
    summary: Optional[str] = None
    risk_score: Optional[Score] = None
    strength_score: Optional[Score] = None
    meme_vibe: Optional[str] = None
    pros: Optional[List[str]] = None
    cons: Optional[List[str]] = None
    degen_comment: Optional[str] = None
    jupiter_url: Optional[str] = None

    @classmethod
    def degraded(cls, address: str) -> "TokenAnalysis":
        return cls(
            summary="AI analysis failed to parse.",
            risk_score=7,
            strength_score=5,
            meme_vibe="Unknown",
            pros=[],
            cons=[],
            degen_comment="AI fumbled the JSON but PumpBrain stays cooking.",
            jupiter_url=jupiter_swap_url(address),
        )


# =========== Transaction ===========
class TransactionAnalysis(AnalysisResult):
    summary: Optional[str] = None
    actions: Optional[List[str]] = None
    fee_usd: Optional[Score] = None
    risk_notes: Optional[List[str]] = None

    @classmethod
    def degraded(cls, fee_usd: Optional[float]) -> "TransactionAnalysis":
        return cls(
            summary="Unable to fully decode this transaction, but it involved some on-chain activity.",
            actions=[],
            fee_usd=fee_usd or 0,
            risk_notes=[
                "AI output could not be parsed; treat this as unknown risk.",
                "Always verify the contract and transaction details directly on a block explorer.",
            ],
        )


# =========== Wallet ===========
class WalletAnalysis(AnalysisResult):
    personality: Optional[str] = None
    trading_style: Optional[str] = None
    risk_score: Optional[Score] = None
    performance_direction: Optional[str] = None
    favorite_themes: Optional[List[str]] = None
    suggestions: Optional[List[str]] = None

    @classmethod
    def degraded(cls) -> "WalletAnalysis":
        return cls(
            personality="Mysterious on-chain entity.",
            trading_style="Unknown, data insufficient.",
            risk_score=5,
            performance_direction="unknown",
            favorite_themes=[],
            suggestions=[
                "Increase position sizing only after clear edge is proven.",
                "Track PnL per narrative instead of per coin.",
                "Use a portion of gains to build a safer core stack.",
            ],
        )
