"""HTTP AI engines.

Each engine sends metrics-only JSON to a chat/completions style endpoint
and expects a JSON object back.  All failure modes (missing key,
transport error, HTTP error, unparseable output) surface as
:class:`~codemetry.errors.AiEngineError`; the orchestrator decides what
that means for the analysis.

Supported engines:
    openai    -- OpenAI Chat Completions
    deepseek  -- DeepSeek (OpenAI-compatible)
    anthropic -- Anthropic Messages
    google    -- Google Generative Language (Gemini)
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from codemetry.ai.models import MoodAiInput, MoodAiSummary
from codemetry.config import AiConfig
from codemetry.errors import AiEngineError

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """\
You are a software metrics assistant. You do not infer emotions. You explain risk, quality, and strain signals from Git repository analysis.

Given the metrics below, provide:
1. Up to 5 bullet points explaining what the mood proxy result means
2. Any confounders or caveats to consider
3. Optionally, a score_delta (between -10 and +10) if the heuristic missed something important

Respond in JSON format with this structure:
{
  "explanation_bullets": ["bullet 1", "bullet 2", ...],
  "score_delta": 0,
  "confidence_delta": 0.0
}"""

BATCH_SYSTEM_PROMPT = """\
You are a software metrics assistant. You do not infer emotions. You explain risk, quality, and strain signals from Git repository analysis.

You will receive metrics for MULTIPLE days. For EACH day (identified by window_label), provide:
1. Up to 5 bullet points explaining what the mood proxy result means
2. Any confounders or caveats to consider
3. Optionally, a score_delta (between -10 and +10) if the heuristic missed something important

Respond in JSON format with an object where keys are the window_label values:
{
  "2024-01-15": {
    "explanation_bullets": ["bullet 1", "bullet 2", ...],
    "score_delta": 0,
    "confidence_delta": 0.0
  }
}"""

SINGLE_MAX_TOKENS = 1000
BATCH_MAX_TOKENS = 4000
TEMPERATURE = 0.3

# Raised by malformed vendor payloads while walking or converting them
_SHAPE_ERRORS = (AttributeError, KeyError, IndexError, TypeError, ValueError, OverflowError)


def _strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if the model added one."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def extract_error_message(response: httpx.Response) -> str:
    """Best human-readable message from a vendor error body."""
    code = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and "message" in error:
            return f"HTTP {code}: {error['message']}"
        if "message" in body:
            return f"HTTP {code}: {body['message']}"
        if isinstance(error, str):
            return f"HTTP {code}: {error}"

    text = response.text
    if len(text) > 200:
        text = text[:200] + "..."
    return f"HTTP {code}: {text}"


class AiEngine(ABC):
    """Produces explanation summaries for mood results."""

    engine_id: str = ""

    def id(self) -> str:
        return self.engine_id

    @abstractmethod
    def summarize(self, ai_input: MoodAiInput) -> MoodAiSummary:
        """Summarize a single window."""

    @abstractmethod
    def summarize_batch(self, inputs: list[MoodAiInput]) -> dict[str, MoodAiSummary]:
        """Summarize several windows; keyed by window label.

        Labels the engine could not resolve may be omitted.
        """


class HttpAiEngine(AiEngine):
    """Shared prompt building, HTTP transport and response parsing."""

    default_model: str = ""
    default_base_url: str = ""

    def __init__(self, config: AiConfig | None = None, client: httpx.Client | None = None):
        config = config or AiConfig(engine=self.engine_id)
        self.api_key = config.api_key
        self.model = config.model or self.default_model
        self.base_url = (config.base_url or self.default_base_url).rstrip("/")
        self.timeout = config.timeout_seconds
        self._client = client

    # -- public API --------------------------------------------------------

    def summarize(self, ai_input: MoodAiInput) -> MoodAiSummary:
        self._require_key()
        prompt = "Analyze these software metrics:\n\n" + json.dumps(ai_input.to_dict(), indent=2)
        data = self._call(SYSTEM_PROMPT, prompt, SINGLE_MAX_TOKENS)
        return self._summary(self._parse_json(self._content(data)))

    def summarize_batch(self, inputs: list[MoodAiInput]) -> dict[str, MoodAiSummary]:
        self._require_key()
        if not inputs:
            return {}
        if len(inputs) == 1:
            only = inputs[0]
            return {only.window_label: self.summarize(only)}

        payload = {i.window_label: i.to_dict() for i in inputs}
        prompt = "Analyze these software metrics for multiple days:\n\n" + json.dumps(payload, indent=2)
        data = self._call(BATCH_SYSTEM_PROMPT, prompt, BATCH_MAX_TOKENS)
        parsed = self._parse_json(self._content(data))

        results: dict[str, MoodAiSummary] = {}
        for ai_input in inputs:
            entry = parsed.get(ai_input.window_label)
            if isinstance(entry, dict):
                results[ai_input.window_label] = self._summary(entry)
            else:
                logger.debug(
                    "%s batch response has no entry for %s", self.engine_id, ai_input.window_label
                )
                results[ai_input.window_label] = MoodAiSummary()
        return results

    # -- vendor hooks ------------------------------------------------------

    @abstractmethod
    def _request(self, system: str, prompt: str, max_tokens: int) -> tuple[str, dict, dict, dict]:
        """Return ``(url, headers, params, json_payload)`` for one call."""

    @abstractmethod
    def _extract_content(self, data: dict[str, Any]) -> str:
        """Pull the model's text output out of the vendor response."""

    # -- helpers -----------------------------------------------------------

    def _require_key(self) -> None:
        if not self.api_key:
            raise AiEngineError.missing_api_key(self.engine_id)

    def _call(self, system: str, prompt: str, max_tokens: int) -> dict[str, Any]:
        url, headers, params, payload = self._request(system, prompt, max_tokens)
        try:
            if self._client is not None:
                response = self._client.post(
                    url, json=payload, headers=headers, params=params, timeout=self.timeout
                )
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(url, json=payload, headers=headers, params=params)
        except httpx.HTTPError as exc:
            raise AiEngineError.request_failed(self.engine_id, str(exc) or type(exc).__name__) from exc

        if response.status_code >= 400:
            raise AiEngineError.request_failed(self.engine_id, extract_error_message(response))

        try:
            data = response.json()
        except ValueError as exc:
            raise AiEngineError.invalid_response(self.engine_id, "Response is not valid JSON") from exc
        if not isinstance(data, dict):
            raise AiEngineError.invalid_response(self.engine_id, "Response is not a JSON object")
        return data

    def _content(self, data: dict[str, Any]) -> str:
        try:
            return self._extract_content(data)
        except _SHAPE_ERRORS as exc:
            raise AiEngineError.invalid_response(self.engine_id, "Unexpected response structure") from exc

    def _summary(self, entry: dict[str, Any]) -> MoodAiSummary:
        try:
            return MoodAiSummary.from_dict(entry)
        except _SHAPE_ERRORS as exc:
            raise AiEngineError.invalid_response(self.engine_id, "Model output has unusable fields") from exc

    def _parse_json(self, content: str) -> dict[str, Any]:
        try:
            parsed = json.loads(_strip_code_fence(content))
        except ValueError as exc:
            raise AiEngineError.invalid_response(self.engine_id, "Model output is not valid JSON") from exc
        if not isinstance(parsed, dict):
            raise AiEngineError.invalid_response(self.engine_id, "Model output is not a JSON object")
        return parsed


class OpenAiEngine(HttpAiEngine):
    """OpenAI Chat Completions (JSON response mode)."""

    engine_id = "openai"
    default_model = "gpt-4o-mini"
    default_base_url = "https://api.openai.com/v1"

    def _request(self, system, prompt, max_tokens):
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": TEMPERATURE,
            "max_tokens": max_tokens,
            "response_format": {"type": "json_object"},
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        return f"{self.base_url}/chat/completions", headers, {}, payload

    def _extract_content(self, data):
        try:
            return str(data["choices"][0]["message"]["content"] or "{}")
        except (KeyError, IndexError, TypeError):
            return "{}"


class DeepSeekEngine(OpenAiEngine):
    """DeepSeek speaks the OpenAI wire format."""

    engine_id = "deepseek"
    default_model = "deepseek-chat"
    default_base_url = "https://api.deepseek.com/v1"


class AnthropicEngine(HttpAiEngine):
    """Anthropic Messages API."""

    engine_id = "anthropic"
    default_model = "claude-sonnet-4-20250514"
    default_base_url = "https://api.anthropic.com/v1"
    api_version = "2023-06-01"

    def _request(self, system, prompt, max_tokens):
        payload = {
            "model": self.model,
            "max_tokens": max_tokens,
            "system": system,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {"x-api-key": self.api_key, "anthropic-version": self.api_version}
        return f"{self.base_url}/messages", headers, {}, payload

    def _extract_content(self, data):
        for block in data.get("content") or []:
            if isinstance(block, dict) and block.get("type") == "text":
                return str(block.get("text") or "{}")
        return "{}"


class GoogleEngine(HttpAiEngine):
    """Google Generative Language API (Gemini)."""

    engine_id = "google"
    default_model = "gemini-1.5-flash"
    default_base_url = "https://generativelanguage.googleapis.com/v1beta"

    def _request(self, system, prompt, max_tokens):
        payload = {
            "contents": [{"parts": [{"text": f"{system}\n\n{prompt}"}]}],
            "generationConfig": {
                "temperature": TEMPERATURE,
                "maxOutputTokens": max_tokens,
                "responseMimeType": "application/json",
            },
        }
        url = f"{self.base_url}/models/{self.model}:generateContent"
        return url, {}, {"key": self.api_key}, payload

    def _extract_content(self, data):
        candidates = data.get("candidates") or []
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            return "{}"
        content = candidates[0].get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
            return "{}"
        return str(parts[0].get("text") or "{}")


ENGINES: dict[str, type[HttpAiEngine]] = {
    "openai": OpenAiEngine,
    "anthropic": AnthropicEngine,
    "deepseek": DeepSeekEngine,
    "google": GoogleEngine,
}

SUPPORTED_ENGINES = tuple(ENGINES)


def create_engine(
    name: str,
    config: AiConfig | None = None,
    client: httpx.Client | None = None,
) -> AiEngine:
    """Instantiate an engine by id.

    Raises:
        AiEngineError: *name* is not a supported engine.
    """
    try:
        engine_cls = ENGINES[name]
    except KeyError:
        raise AiEngineError.unknown_engine(name) from None
    return engine_cls(config, client=client)
