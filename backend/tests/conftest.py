import json
from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient

from pumpbrain.config import Settings
from pumpbrain.main import create_app
from pumpbrain.services.narrator import NarrativeGenerator
from pumpbrain.services.pricing import StaticPriceOracle

HELIUS_HOST = "mainnet.helius-rpc.com"
DEXSCREENER_PATH = "/latest/dex/tokens/"
MORALIS_PATH = "/api/v2.2"


class FakeCompletions:
    """Stands in for `client.chat.completions`; records every create() call."""

    def __init__(self):
        self.reply = "{}"
        self.error = None
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(role="assistant", content=self.reply)
        return SimpleNamespace(id="chatcmpl-test", choices=[SimpleNamespace(index=0, message=message)])


class FakeLLM:
    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def prompts(self):
        return [call["messages"][0]["content"] for call in self.completions.calls]


class FakeUpstream:
    """
    httpx.MockTransport handler for every HTTP upstream at once.

    Solana RPC calls are routed by (method, first param) then by method alone;
    everything else by URL path. Values are either JSON-able results or
    callables returning an httpx.Response.
    """

    def __init__(self):
        self.rpc = {}
        self.http = {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == HELIUS_HOST:
            payload = json.loads(request.content)
            method = payload["method"]
            first = payload["params"][0] if payload["params"] else None
            route = self.rpc.get((method, first), self.rpc.get(method))
            if callable(route):
                return route(request)
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": route})

        route = self.http.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not found"})
        if callable(route):
            return route(request)
        return httpx.Response(200, json=route)

    def token(self, address, pairs):
        self.http[DEXSCREENER_PATH + address] = {"schemaVersion": "1.0.0", "pairs": pairs}

    def moralis(self, path, body):
        self.http[MORALIS_PATH + path] = body

    @property
    def transport(self):
        return httpx.MockTransport(self)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        LOG_LEVEL="DEBUG",
        LOG_DIR=None,
        HELIUS_API_KEY="helius-secret",
        MORALIS_API_KEY="moralis-secret",
        OPENAI_API_KEY="sk-test-secret",
        SOL_PRICE_USD=150.0,
        EVM_NATIVE_PRICE_USD=2000.0,
        NATIVE_PRICE_OVERRIDES={},
    )


@pytest.fixture
def prices():
    return StaticPriceOracle(sol_usd=150.0, evm_usd=2000.0)


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def narrator(llm):
    return NarrativeGenerator(llm, "test-model", max_tokens=800)


@pytest.fixture
def app(settings, upstream, narrator):
    return create_app(settings, narrator=narrator, http_transport=upstream.transport)


@pytest.fixture
def client(app):
    return TestClient(app)
