import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from pumpbrain.config import Settings
from pumpbrain.errors import AnalysisError, BadRequest, UpstreamError
from pumpbrain.routers import analyze_router
from pumpbrain.services.analyzers import TokenAnalyzer, TransactionAnalyzer, WalletAnalyzer
from pumpbrain.services.chain_providers import ProviderRegistry
from pumpbrain.services.narrator import NarrativeGenerator
from pumpbrain.services.pricing import PriceOracle, StaticPriceOracle
from pumpbrain.utils.dexscreener_api import DexscreenerClient

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"

_CONSOLE_HANDLER = "pumpbrain-console"
_FILE_HANDLER = "pumpbrain-file"


# ===================================================================
# 1. LOGGING
# ===================================================================
def configure_logging(settings: Settings) -> None:
    root = logging.getLogger()
    root.setLevel(settings.LOG_LEVEL.upper())

    # Avoid duplicate handlers if the app is built more than once
    for handler in list(root.handlers):
        if handler.get_name() in (_CONSOLE_HANDLER, _FILE_HANDLER):
            root.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.set_name(_CONSOLE_HANDLER)
    console_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
    root.addHandler(console_handler)

    # === DAILY ROTATION + KEEP 30 DAYS ===
    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            filename=log_dir / "app.log",
            when="midnight",
            interval=1,
            backupCount=30,
            encoding="utf-8",
        )
        file_handler.set_name(_FILE_HANDLER)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(funcName)s:%(lineno)d - %(levelname)s - %(message)s'
        ))
        root.addHandler(file_handler)

    # Client libraries log full request URLs, and the RPC URL carries the API key
    for noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ===================================================================
# 2. ERROR RESPONSES ({"error": "..."} everywhere)
# ===================================================================
def describe_validation_error(errors: List[Dict[str, Any]]) -> str:
    for err in errors:
        loc = tuple(err.get("loc", ()))
        # Unparseable body, or a body that is not a JSON object at all
        if err.get("type") == "json_invalid" or len(loc) < 2:
            return "Invalid JSON body."
    for err in errors:
        if err.get("type") in ("missing", "string_too_short"):
            return f"Missing required field: {err['loc'][1]}"
    return f"Invalid field: {errors[0]['loc'][1]}" if errors else "Invalid request."


async def analysis_error_handler(request: Request, exc: AnalysisError) -> JSONResponse:
    if isinstance(exc, UpstreamError):
        logger.error(f"Upstream failure on {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return await analysis_error_handler(request, BadRequest(describe_validation_error(list(exc.errors()))))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# ===================================================================
# 3. APP FACTORY
# ===================================================================
def create_app(
    settings: Optional[Settings] = None,
    *,
    prices: Optional[PriceOracle] = None,
    narrator: Optional[NarrativeGenerator] = None,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the API. Settings are read once here and passed down; `prices`,
    `narrator` and `http_transport` can be swapped (e.g. in tests).

    Served through the factory: `uvicorn pumpbrain.main:create_app --factory`.
    """
    settings = settings or Settings()
    configure_logging(settings)

    prices = prices or StaticPriceOracle.from_settings(settings)
    narrator = narrator or NarrativeGenerator.from_settings(settings)
    providers = ProviderRegistry(settings, prices, transport=http_transport)
    market = DexscreenerClient(
        settings.DEXSCREENER_API_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
        transport=http_transport,
    )

    app = FastAPI(
        title="PumpBrain API",
        description="AI narratives for tokens, wallets and transactions on Solana and EVM chains.",
        version="0.1.0",
    )

    app.state.settings = settings
    app.state.token_analyzer = TokenAnalyzer(market, narrator)
    app.state.transaction_analyzer = TransactionAnalyzer(providers, narrator)
    app.state.wallet_analyzer = WalletAnalyzer(providers, narrator)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    app.add_exception_handler(AnalysisError, analysis_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    app.include_router(analyze_router)

    @app.get("/ping")
    async def ping():
        logger.info("Ping received.")
        return {"message": "pong", "status": "ok"}

    @app.get("/", include_in_schema=False)
    async def index():
        return FileResponse(STATIC_DIR / "index.html")

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    logger.info(f"✅ PumpBrain API ready ({settings.ENVIRONMENT}, model={settings.OPENAI_MODEL})")
    return app
