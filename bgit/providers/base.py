from __future__ import annotations

from abc import ABC, abstractmethod

from ..config import Provider


class BaseDriver(ABC):
    """Abstract base for provider-specific text completion.

    Each driver encapsulates one provider's HTTP/client call pattern. The
    fallback order, prompt text and heuristic stay in the synthesizer so
    every provider sees the same request.
    """

    def __init__(
        self,
        provider: Provider,
        api_key: str,
        timeout: float,
        debug: bool = False,
    ) -> None:
        self.provider = provider
        self.api_key = api_key
        self.timeout = timeout
        self.debug = debug

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """Return the provider's completion text for ``prompt``.

        Must raise LLMError for network failures, error responses and
        responses without text.
        """
        raise NotImplementedError
