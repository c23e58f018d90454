import json
import logging
import re
from typing import Any, Optional, Type, TypeVar

import httpx
import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from pumpbrain.config import Settings
from pumpbrain.errors import UpstreamError
from pumpbrain.schemas.analysis import AnalysisResult

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", bound=AnalysisResult)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

MISSING_API_KEY = "missing-openai-api-key"


def _load_json_object(raw: str) -> Optional[Any]:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        pass
    # Models like to wrap the object in prose or code fences
    match = _JSON_OBJECT.search(raw)
    if not match:
        return None
    try:
        return json.loads(match.group())
    except json.JSONDecodeError:
        return None


def parse_model_output(raw: Optional[str], result_model: Type[ResultT]) -> Optional[ResultT]:
    """The model's text as `result_model`, or None if it is not a JSON object of that shape."""
    if not raw:
        return None
    data = _load_json_object(raw)
    if not isinstance(data, dict):
        return None
    try:
        return result_model.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Model output did not match {result_model.__name__}: {e.error_count()} error(s)")
        return None


class NarrativeGenerator:
    """Turns a context prompt into a structured analysis via a chat-completions model."""

    def __init__(self, client: AsyncOpenAI, model: str, max_tokens: int = 800):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "NarrativeGenerator":
        api_key = settings.secret("OPENAI_API_KEY")
        if not api_key:
            # The SDK refuses to build without a key; the endpoint rejects this one with a 401
            logger.warning("OPENAI_API_KEY is not set; analysis requests will fail upstream")
            api_key = MISSING_API_KEY
        client = AsyncOpenAI(
            api_key=api_key,
            base_url=settings.OPENAI_BASE_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            max_retries=0,  # single pass, no retry
            http_client=http_client,
        )
        return cls(client, settings.OPENAI_MODEL, settings.AI_MAX_TOKENS)

    async def complete(self, prompt: str) -> str:
        """Raw text of a single-turn completion. Any API failure becomes UpstreamError."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
            )
        except openai.APIError as e:
            raise UpstreamError(f"Generative-text request failed: {type(e).__name__}: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def generate(self, prompt: str, result_model: Type[ResultT], fallback: ResultT) -> ResultT:
        raw = await self.complete(prompt)
        result = parse_model_output(raw, result_model)
        if result is None:
            logger.warning(f"AI output could not be parsed as {result_model.__name__}; using degraded result")
            logger.debug(f"Raw response: {raw}")
            return fallback
        return result
