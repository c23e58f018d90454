import httpx
import openai
import pytest

from pumpbrain.errors import UpstreamError
from pumpbrain.schemas.analysis import (
    TokenAnalysis,
    TransactionAnalysis,
    WalletAnalysis,
    jupiter_swap_url,
)
from pumpbrain.services.narrator import NarrativeGenerator, parse_model_output
from tests.samples import WSOL

TOKEN_JSON = (
    '{"summary": "Solid", "riskScore": 3, "strengthScore": 8, "memeVibe": "chad",'
    ' "pros": ["deep liquidity"], "cons": [], "degenComment": "wagmi", "jupiterUrl": ""}'
)


def test_parse_plain_json_object():
    result = parse_model_output(TOKEN_JSON, TokenAnalysis)

    assert result.summary == "Solid"
    assert result.risk_score == 3
    assert result.pros == ["deep liquidity"]


def test_parse_json_wrapped_in_prose_and_fences():
    raw = f"Sure! Here is the analysis:\n```json\n{TOKEN_JSON}\n```\nHope that helps."

    assert parse_model_output(raw, TokenAnalysis).strength_score == 8


def test_parse_keeps_partial_objects():
    result = parse_model_output('{"summary": "only this", "extra": 1}', TransactionAnalysis)

    assert result.summary == "only this"
    assert result.actions is None


@pytest.mark.parametrize("raw", [None, "", "not json at all", "[1, 2, 3]", '"a string"', "{broken"])
def test_unparseable_output_gives_none(raw):
    assert parse_model_output(raw, WalletAnalysis) is None


def test_wrong_field_types_give_none():
    assert parse_model_output('{"riskScore": "very high"}', WalletAnalysis) is None
    assert parse_model_output('{"pros": "one big pro"}', TokenAnalysis) is None


def test_degraded_payloads():
    token = TokenAnalysis.degraded(WSOL)
    assert token.summary == "AI analysis failed to parse."
    assert token.risk_score == 7
    assert token.strength_score == 5
    assert token.jupiter_url == jupiter_swap_url(WSOL)

    assert TransactionAnalysis.degraded(None).fee_usd == 0
    assert TransactionAnalysis.degraded(0.0015).fee_usd == 0.0015
    assert len(TransactionAnalysis.degraded(None).risk_notes) == 2

    wallet = WalletAnalysis.degraded()
    assert wallet.risk_score == 5
    assert wallet.performance_direction == "unknown"
    assert len(wallet.suggestions) == 3


def test_jupiter_url_template():
    assert jupiter_swap_url("Mint123") == f"https://jup.ag/swap/{WSOL}-Mint123"


@pytest.mark.asyncio
async def test_generate_sends_single_user_message(llm, narrator):
    llm.completions.reply = TOKEN_JSON

    result = await narrator.generate("PROMPT", TokenAnalysis, TokenAnalysis.degraded(WSOL))

    assert result.meme_vibe == "chad"
    call = llm.completions.calls[0]
    assert call["model"] == "test-model"
    assert call["max_tokens"] == 800
    assert call["messages"] == [{"role": "user", "content": "PROMPT"}]


@pytest.mark.asyncio
async def test_generate_falls_back_when_output_is_garbage(llm, narrator):
    llm.completions.reply = "I cannot help with that."
    fallback = WalletAnalysis.degraded()

    assert await narrator.generate("PROMPT", WalletAnalysis, fallback) is fallback


@pytest.mark.asyncio
async def test_generate_falls_back_on_empty_content(llm, narrator):
    llm.completions.reply = None

    result = await narrator.generate("PROMPT", TransactionAnalysis, TransactionAnalysis.degraded(1.5))

    assert result.fee_usd == 1.5


@pytest.mark.asyncio
async def test_api_error_becomes_upstream_error(llm, narrator):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    llm.completions.error = openai.APIConnectionError(request=request)

    with pytest.raises(UpstreamError):
        await narrator.generate("PROMPT", TokenAnalysis, TokenAnalysis.degraded(WSOL))


@pytest.mark.asyncio
async def test_real_client_http_failure_is_not_retried(settings):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, json={"error": {"message": "overloaded", "type": "server_error"}})

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    narrator = NarrativeGenerator.from_settings(settings, http_client=http_client)

    with pytest.raises(UpstreamError) as excinfo:
        await narrator.complete("PROMPT")

    assert len(calls) == 1
    assert calls[0].headers["Authorization"] == "Bearer sk-test-secret"
    assert "sk-test-secret" not in str(excinfo.value)
    await http_client.aclose()


@pytest.mark.asyncio
async def test_real_client_parses_chat_completion(settings):
    def handler(request):
        return httpx.Response(200, json={
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 1700000000,
            "model": "gpt-4o-mini",
            "choices": [{
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": '{"personality": "Degen"}'},
            }],
        })

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    narrator = NarrativeGenerator.from_settings(settings, http_client=http_client)

    result = await narrator.generate("PROMPT", WalletAnalysis, WalletAnalysis.degraded())

    assert result.personality == "Degen"
    assert result.risk_score is None
    await http_client.aclose()


@pytest.mark.asyncio
async def test_missing_api_key_fails_upstream_instead_of_at_startup(settings, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(401, json={"error": {"message": "Incorrect API key provided", "type": "invalid_request_error"}})

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    narrator = NarrativeGenerator.from_settings(
        settings.model_copy(update={"OPENAI_API_KEY": None}), http_client=http_client
    )

    with pytest.raises(UpstreamError):
        await narrator.generate("PROMPT", TokenAnalysis, TokenAnalysis.degraded(WSOL))

    assert len(calls) == 1
    await http_client.aclose()
