"""Provider drivers for commit message generation."""

from __future__ import annotations

from ..config import Provider
from ..exceptions import ConfigError
from .anthropic_driver import AnthropicDriver
from .base import BaseDriver
from .openai_driver import OpenAIDriver

__all__ = ["AnthropicDriver", "BaseDriver", "OpenAIDriver", "build_driver"]

_DRIVERS: dict[str, type[BaseDriver]] = {
    "openai": OpenAIDriver,
    "anthropic": AnthropicDriver,
}


def build_driver(
    provider: Provider, api_key: str, timeout: float, debug: bool = False
) -> BaseDriver:
    """Instantiate the driver matching ``provider.api_style``."""
    driver_cls = _DRIVERS.get(provider.api_style)
    if driver_cls is None:
        raise ConfigError(f"unsupported provider API style: {provider.api_style!r}")
    return driver_cls(provider, api_key, timeout, debug=debug)
