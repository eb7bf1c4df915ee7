"""
OpenAI-compatible LLM client — works with OpenRouter, OpenAI, Groq and any
other provider that implements the OpenAI chat/completions API.
"""

import json
import logging
from typing import Iterator

import requests

from .base import LLMClient

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


class OpenAIClient(LLMClient):

    def __init__(self, base_url: str, model: str, api_key: str, **kwargs):
        super().__init__(**kwargs)
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        if self.base_url.endswith("/chat/completions"):
            self.base_url = self.base_url[: -len("/chat/completions")]
        self.model = model
        self.api_key = api_key

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def _payload(self, prompt: str, stream: bool) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "user", "content": prompt},
            ],
            "stream": stream,
        }

    # ── Non-streaming generation ──

    def _generate(self, prompt: str) -> str:
        est_tokens = int(len(prompt.split()) * 1.3)
        logger.debug(f"[OpenAI] Sending ~{est_tokens} est. tokens to {self.model}")
        logger.debug(f"[OpenAI] Prompt:\n{prompt}")

        url = f"{self.base_url}/chat/completions"
        response = requests.post(url, headers=self._headers(),
                                 json=self._payload(prompt, stream=False),
                                 timeout=(10, 300))
        response.raise_for_status()
        data = response.json()

        usage = data.get("usage") or {}
        prompt_tokens = usage.get("prompt_tokens", est_tokens)
        completion_tokens = usage.get("completion_tokens", 0)
        self.usage.record(
            prompt_tokens if isinstance(prompt_tokens, int) else est_tokens,
            completion_tokens if isinstance(completion_tokens, int) else 0,
            model_name=data.get("model") or self.model,
        )
        logger.debug(f"[OpenAI] Usage: prompt={prompt_tokens} completion={completion_tokens}")

        response_text = data["choices"][0]["message"]["content"]
        logger.debug(f"[OpenAI] Response:\n{response_text}")
        return response_text

    # ── Streaming generation ──

    def _stream(self, prompt: str) -> Iterator[str]:
        est_tokens = int(len(prompt.split()) * 1.3)
        logger.debug(f"[OpenAI] Streaming ~{est_tokens} est. tokens to {self.model}")

        url = f"{self.base_url}/chat/completions"
        tokens_generated = 0

        response = requests.post(url, headers=self._headers(),
                                 json=self._payload(prompt, stream=True),
                                 stream=True, timeout=(10, 120))
        response.raise_for_status()

        try:
            for line in response.iter_lines(decode_unicode=True):
                if not line or not line.startswith("data: "):
                    continue
                data_str = line[6:]
                if data_str.strip() == "[DONE]":
                    break
                try:
                    chunk = json.loads(data_str)
                    delta = chunk.get("choices", [{}])[0].get("delta", {})
                    token = delta.get("content", "")
                except (json.JSONDecodeError, KeyError, IndexError, AttributeError):
                    continue
                if token:
                    tokens_generated += 1
                    yield token
        finally:
            response.close()
            self.usage.record(est_tokens, tokens_generated, model_name=self.model)
            logger.debug(f"[OpenAI] Streamed {tokens_generated} tokens")
