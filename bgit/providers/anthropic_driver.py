from __future__ import annotations

import httpx

from ..exceptions import LLMError
from .base import BaseDriver

DEFAULT_ENDPOINT = "https://api.anthropic.com"
ANTHROPIC_VERSION = "2023-06-01"


class AnthropicDriver(BaseDriver):
    """Driver handling Anthropic API calls (messages endpoint)."""

    max_tokens = 512

    def complete(self, prompt: str) -> str:
        base = (self.provider.endpoint or DEFAULT_ENDPOINT).rstrip("/")
        url = base + "/v1/messages"
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        payload = {
            "model": self.provider.model,
            "max_tokens": self.max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": [{"type": "text", "text": prompt}],
                }
            ],
        }
        if self.debug:
            print(
                "DEBUG(Driver:Anthropic): model={} prompt_len={}".format(
                    self.provider.model, len(prompt)
                )
            )
        try:
            response = httpx.post(
                url,
                headers=headers,
                json=payload,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise LLMError(
                f"Anthropic network error during messages request: {e}"
            ) from e
        status = getattr(response, "status_code", 200)
        if status and int(status) >= 400:
            raise LLMError(
                "Anthropic error {}: {}".format(
                    status, getattr(response, "text", "<no body>")
                )
            )
        try:
            data = response.json()
        except ValueError as e:
            raise LLMError(f"Anthropic returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise LLMError(
                f"Anthropic returned unexpected payload type: {type(data).__name__}"
            )
        content = data.get("content") or []
        texts = []
        for chunk in content:
            if isinstance(chunk, dict) and chunk.get("type") == "text":
                texts.append(chunk.get("text", ""))
        text = "\n".join(filter(None, texts))
        if not text.strip():
            raise LLMError("no AI response content")
        return text
