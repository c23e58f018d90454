import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from pumpbrain.errors import AnalysisError
from pumpbrain.schemas.analysis import TokenAnalysis, TransactionAnalysis, WalletAnalysis
from pumpbrain.schemas.requests import TokenAnalysisRequest, TransactionAnalysisRequest, WalletAnalysisRequest
from pumpbrain.services.analyzers import TokenAnalyzer, TransactionAnalyzer, WalletAnalyzer

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/analyze",
    tags=['Analyze']
)


def get_token_analyzer(request: Request) -> TokenAnalyzer:
    return request.app.state.token_analyzer


def get_transaction_analyzer(request: Request) -> TransactionAnalyzer:
    return request.app.state.transaction_analyzer


def get_wallet_analyzer(request: Request) -> WalletAnalyzer:
    return request.app.state.wallet_analyzer


@router.post("/token", response_model=TokenAnalysis, response_model_exclude_none=True)
async def analyze_token(
    payload: TokenAnalysisRequest,
    analyzer: TokenAnalyzer = Depends(get_token_analyzer),
):
    """
    Market snapshot of a token from its first Dexscreener pair, read back as a
    meme-coin risk/strength analysis.
    """
    try:
        return await analyzer.analyze(payload.address)
    except AnalysisError:
        raise
    except Exception as e:
        logger.error(f"Error in analyze_token: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error.")


@router.post("/tx", response_model=TransactionAnalysis, response_model_exclude_none=True)
async def analyze_transaction(
    payload: TransactionAnalysisRequest,
    analyzer: TransactionAnalyzer = Depends(get_transaction_analyzer),
):
    """Plain-language breakdown of one transaction on Solana or an EVM chain."""
    try:
        return await analyzer.analyze(payload.hash, payload.chain)
    except AnalysisError:
        raise
    except Exception as e:
        logger.error(f"Error in analyze_transaction: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error.")


@router.post("/wallet", response_model=WalletAnalysis, response_model_exclude_none=True)
async def analyze_wallet(
    payload: WalletAnalysisRequest,
    analyzer: WalletAnalyzer = Depends(get_wallet_analyzer),
):
    """Trader profile built from a wallet's recent activity."""
    try:
        return await analyzer.analyze(payload.address, payload.chain)
    except AnalysisError:
        raise
    except Exception as e:
        logger.error(f"Error in analyze_wallet: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error.")
