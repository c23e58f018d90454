"""
The three analysis pipelines: build a context from upstream data, then hand
it to the narrative generator. Chain selection is delegated to the provider
registry, so none of these branch on the chain.
"""
import logging

from pumpbrain.schemas.analysis import TokenAnalysis, TransactionAnalysis, WalletAnalysis, jupiter_swap_url
from pumpbrain.schemas.context import TokenContext, TransactionContext, WalletContext
from pumpbrain.services import prompts
from pumpbrain.services.chain_providers import ProviderRegistry
from pumpbrain.services.narrator import NarrativeGenerator
from pumpbrain.services.normalize import build_token_context
from pumpbrain.utils.dexscreener_api import DexscreenerClient

logger = logging.getLogger(__name__)


class TokenAnalyzer:

    def __init__(self, market: DexscreenerClient, narrator: NarrativeGenerator):
        self.market = market
        self.narrator = narrator

    async def build_context(self, address: str) -> TokenContext:
        pairs = await self.market.get_token_pairs(address)
        # First pair wins, no ranking
        return build_token_context(address, pairs[0])

    async def analyze(self, address: str) -> TokenAnalysis:
        context = await self.build_context(address)
        logger.info(f"Token context built for {address} (chain={context.chain}, dex={context.dex})")
        result = await self.narrator.generate(
            prompts.token_prompt(context), TokenAnalysis, TokenAnalysis.degraded(address)
        )
        result.jupiter_url = jupiter_swap_url(address)
        return result


class TransactionAnalyzer:

    def __init__(self, providers: ProviderRegistry, narrator: NarrativeGenerator):
        self.providers = providers
        self.narrator = narrator

    async def build_context(self, tx_hash: str, chain: str) -> TransactionContext:
        return await self.providers.for_chain(chain).transaction_context(tx_hash)

    async def analyze(self, tx_hash: str, chain: str) -> TransactionAnalysis:
        context = await self.build_context(tx_hash, chain)
        logger.info(
            f"Transaction context built for {tx_hash} on {chain}: "
            f"{context.decoded_type}, {len(context.token_transfers)} transfer(s)"
        )
        return await self.narrator.generate(
            prompts.transaction_prompt(context),
            TransactionAnalysis,
            TransactionAnalysis.degraded(context.fee_usd),
        )


class WalletAnalyzer:

    def __init__(self, providers: ProviderRegistry, narrator: NarrativeGenerator):
        self.providers = providers
        self.narrator = narrator

    async def build_context(self, address: str, chain: str) -> WalletContext:
        return await self.providers.for_chain(chain).wallet_context(address)

    async def analyze(self, address: str, chain: str) -> WalletAnalysis:
        context = await self.build_context(address, chain)
        logger.info(
            f"Wallet context built for {address} on {chain}: {context.total_tx_sampled} sampled, "
            f"{context.recent_in_count} in / {context.recent_out_count} out"
        )
        return await self.narrator.generate(
            prompts.wallet_prompt(context), WalletAnalysis, WalletAnalysis.degraded()
        )
