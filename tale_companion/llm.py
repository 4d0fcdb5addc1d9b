"""Instruct completions over HTTP.

Every stage talks to the model through one awaitable:

    await llm(instruction, start_with="Seed words", stop_sequences=["\\n\\n"])

The instruction is wrapped in a plain `### Instruction / ### Response`
template and the model continues from `start_with`. The returned text is
the seed followed by the continuation, so a caller can parse the whole
block it asked for.

HttpLLM speaks the KoboldCpp generate API or an OpenAI-compatible
completions API; EchoLLM just hands the instruction back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal, Protocol

import httpx

logger = logging.getLogger(__name__)

ProviderFormat = Literal["koboldcpp", "openai"]


class LLMError(RuntimeError):
    """The completion backend was unreachable or sent something unusable."""


class InstructLLM(Protocol):
    async def __call__(
        self,
        instruction: str,
        start_with: str | None = None,
        stop_sequences: list[str] | None = None,
    ) -> str: ...


def build_prompt(instruction: str, start_with: str | None = None) -> str:
    return f"### Instruction:\n{instruction}\n\n### Response:\n{start_with or ''}"


@dataclass(frozen=True)
class _Wire:
    label: str
    path: str
    stop_key: str
    results_key: str
    sends_model: bool


_WIRES: dict[str, _Wire] = {
    "koboldcpp": _Wire("KoboldCpp", "/api/v1/generate", "stop_sequence", "results", False),
    "openai": _Wire("OpenAI-compatible", "/v1/completions", "stop", "choices", True),
}


class HttpLLM:
    """Completion client for one configured backend.

    Args:
        provider_url:    backend root, e.g. "http://localhost:5001"
        api_key:         sent as a bearer token when non-empty
        provider_format: "koboldcpp" (default) or "openai"
        model:           model name, only sent in the openai format
        timeout:         seconds per request
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "koboldcpp",
        model: str = "",
        timeout: float = 120.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._wire = _WIRES[provider_format]
        self._model = model
        self._timeout = timeout

    @property
    def url(self) -> str:
        return self._base_url + self._wire.path

    def _body(self, prompt: str, stop_sequences: list[str] | None) -> dict[str, Any]:
        body: dict[str, Any] = {"prompt": prompt}
        if self._wire.sends_model and self._model:
            body["model"] = self._model
        if stop_sequences:
            body[self._wire.stop_key] = list(stop_sequences)
        return body

    def _text(self, data: Any) -> str:
        entries = data.get(self._wire.results_key) if isinstance(data, dict) else None
        if not entries or not isinstance(entries[0], dict) or "text" not in entries[0]:
            raise LLMError(f"Unexpected response format from {self._wire.label} backend")
        return entries[0]["text"]

    async def _post(self, body: dict[str, Any]) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self.url, json=body, headers=headers)
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM at {self._base_url}") from e
        except httpx.TimeoutException as e:
            raise LLMError(f"Completion timed out after {self._timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(f"Completion failed with HTTP {e.response.status_code}") from e
        return resp

    async def __call__(
        self,
        instruction: str,
        start_with: str | None = None,
        stop_sequences: list[str] | None = None,
    ) -> str:
        prompt = build_prompt(instruction, start_with)
        logger.debug("Completion request to %s (%d chars)", self.url, len(prompt))
        resp = await self._post(self._body(prompt, stop_sequences))
        text = self._text(resp.json())
        logger.debug("Completion returned %d chars", len(text))
        return (start_with or "") + text


class EchoLLM:
    """Returns the instruction unchanged. No network."""

    async def __call__(
        self,
        instruction: str,
        start_with: str | None = None,
        stop_sequences: list[str] | None = None,
    ) -> str:
        return instruction
