from typing import Dict, List, Optional
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv() # Load environment variables from .env file


class Settings(BaseSettings):
    """
    Process-wide configuration. Built once in create_app() and handed to every
    client and analyzer that needs it; nothing below the app factory reads the
    environment directly.
    """
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    ENVIRONMENT: str = "development"
    ALLOWED_ORIGINS: List[str] = ["*"]

    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None  # e.g. "logs" to also write a rotating file

    HTTP_TIMEOUT_SECONDS: float = 30.0

    DEXSCREENER_API_URL: str = "https://api.dexscreener.com/latest/dex/tokens/"

    SOLANA_RPC_URL: str = "https://mainnet.helius-rpc.com/"
    HELIUS_API_KEY: Optional[SecretStr] = None

    MORALIS_API_URL: str = "https://deep-index.moralis.io/api/v2.2"
    MORALIS_API_KEY: Optional[SecretStr] = None

    OPENAI_API_KEY: Optional[SecretStr] = None
    OPENAI_BASE_URL: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    AI_MAX_TOKENS: int = 800

    # Rough native-asset prices used for fee estimates, not a live feed
    SOL_PRICE_USD: float = 150.0
    EVM_NATIVE_PRICE_USD: float = 2000.0
    NATIVE_PRICE_OVERRIDES: Dict[str, float] = {}

    def secret(self, name: str) -> str:
        """Plain value of a SecretStr setting, or an empty string when unset."""
        value = getattr(self, name)
        return value.get_secret_value() if value is not None else ""
