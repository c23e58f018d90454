from .analysis import TokenAnalysis, TransactionAnalysis, WalletAnalysis
from .context import TokenContext, TokenTransfer, TransactionContext, WalletContext
from .requests import TokenAnalysisRequest, TransactionAnalysisRequest, WalletAnalysisRequest

__all__ = [
    "TokenAnalysis",
    "TransactionAnalysis",
    "WalletAnalysis",
    "TokenContext",
    "TokenTransfer",
    "TransactionContext",
    "WalletContext",
    "TokenAnalysisRequest",
    "TransactionAnalysisRequest",
    "WalletAnalysisRequest",
]
