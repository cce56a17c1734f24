from __future__ import annotations

from typing import Any

import openai

from ..config import Provider
from ..exceptions import LLMError
from .base import BaseDriver


class OpenAIDriver(BaseDriver):
    """Driver for OpenAI and OpenAI-compatible chat completions.

    OpenRouter, xAI and GitHub Models share the request shape and differ
    only by base URL, so they all go through here.
    """

    def __init__(
        self,
        provider: Provider,
        api_key: str,
        timeout: float,
        debug: bool = False,
    ) -> None:
        super().__init__(provider, api_key, timeout, debug)
        client_kwargs: dict[str, Any] = {
            "api_key": api_key,
            "timeout": timeout,
            "max_retries": 0,
        }
        if provider.endpoint:
            client_kwargs["base_url"] = provider.endpoint
        if provider.name == "openrouter":
            client_kwargs["default_headers"] = {"X-Title": "bgit"}
        self._client = openai.OpenAI(**client_kwargs)

    def complete(self, prompt: str) -> str:
        if self.debug:
            print(
                "DEBUG(Driver:OpenAI): provider={} model={} prompt_len={}".format(
                    self.provider.name, self.provider.model, len(prompt)
                )
            )
        try:
            resp = self._client.chat.completions.create(
                model=self.provider.model,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:  # noqa: BLE001 - SDK raises many error types
            raise LLMError(f"{self.provider.name} client error: {e}") from e

        try:
            choice0 = resp.choices[0]
        except (AttributeError, IndexError, TypeError):
            raise LLMError("no AI response content") from None

        raw_msg = getattr(choice0, "message", None)
        content = getattr(raw_msg, "content", "") if raw_msg is not None else ""
        if isinstance(content, list):  # newer SDKs may return fragments
            fragments: list[str] = []
            for part in content:
                if isinstance(part, dict):
                    fragments.append(str(part.get("text") or ""))
                else:
                    fragments.append(str(getattr(part, "text", "") or ""))
            content = "".join(fragments)
        if not isinstance(content, str) or not content.strip():
            raise LLMError("no AI response content")
        if self.debug:
            finish_reason = getattr(choice0, "finish_reason", None)
            print(
                "DEBUG(Driver:OpenAI): finish_reason={} len={}".format(
                    finish_reason, len(content)
                )
            )
        return content
