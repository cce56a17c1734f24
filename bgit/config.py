"""Configuration management for bgit."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from .exceptions import ConfigError

DEFAULT_PROVIDERS = {
    "openai": {
        "model": "gpt-5-mini",
        "endpoint": "https://api.openai.com/v1",
        "api_key_env": "OPENAI_API_KEY",
        "api_style": "openai",
    },
    "openrouter": {
        "model": "openai/gpt-5-mini",
        "endpoint": "https://openrouter.ai/api/v1",
        "api_key_env": "OPENROUTER_API_KEY",
        "api_style": "openai",
    },
    "anthropic": {
        "model": "claude-3-5-haiku-latest",
        "endpoint": "https://api.anthropic.com",
        "api_key_env": "ANTHROPIC_API_KEY",
        "api_style": "anthropic",
    },
    "xai": {
        "model": "grok-code-fast",
        "endpoint": "https://api.x.ai/v1",
        "api_key_env": "XAI_API_KEY",
        "api_style": "openai",
    },
    "github": {
        "model": "openai/gpt-4.1-mini",
        "endpoint": "https://models.github.ai/inference",
        "api_key_env": "GITHUB_TOKEN",
        "api_style": "openai",
    },
}

DEFAULT_PROVIDER_ORDER = ("openai", "openrouter", "anthropic")
DEFAULT_REQUEST_TIMEOUT = 15.0


@dataclass(frozen=True)
class Provider:
    """A text-generation backend, tried in configured order."""

    name: str
    credential_env_var: str
    model: str = ""
    endpoint: Optional[str] = None
    api_style: str = "openai"

    def resolve_api_key(self, env: Optional[Mapping[str, str]] = None) -> Optional[str]:
        """Return the credential from ``env`` (default ``os.environ``).

        An empty value counts as missing.
        """
        source = os.environ if env is None else env
        value = source.get(self.credential_env_var)
        return value or None


@dataclass(frozen=True)
class Config:
    """Runtime configuration for bgit, built once at the call boundary."""

    providers: tuple[Provider, ...] = field(default_factory=tuple)
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    repo_path: str = "."

    def provider_names(self) -> list[str]:
        return [p.name for p in self.providers]


def build_provider(
    name: str, env: Optional[Mapping[str, str]] = None
) -> Provider:
    """Build a provider from ``DEFAULT_PROVIDERS`` plus env overrides.

    ``BGIT_<NAME>_MODEL`` and ``BGIT_<NAME>_ENDPOINT`` override the model
    and base URL respectively.
    """
    key = name.strip().lower()
    defaults = DEFAULT_PROVIDERS.get(key)
    if defaults is None:
        raise ConfigError(f"unknown AI provider: {name!r}")
    source = os.environ if env is None else env
    prefix = f"BGIT_{key.upper()}_"
    return Provider(
        name=key,
        credential_env_var=defaults["api_key_env"],
        model=source.get(prefix + "MODEL") or defaults["model"],
        endpoint=source.get(prefix + "ENDPOINT") or defaults["endpoint"],
        api_style=defaults["api_style"],
    )


def _parse_timeout(raw: Optional[str]) -> float:
    if not raw:
        return DEFAULT_REQUEST_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_REQUEST_TIMEOUT
    return value if value > 0 else DEFAULT_REQUEST_TIMEOUT


def load_config(
    *,
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Dict[str, str]] = None,
) -> Config:
    """Build configuration from environment variables and overrides.

    Recognised keys (override name / environment variable):

    - ``providers`` / ``BGIT_PROVIDERS``: comma-separated attempt order
    - ``request_timeout`` / ``BGIT_LLM_REQUEST_TIMEOUT``: seconds per call
    - ``repo_path`` / ``BGIT_REPO_PATH``: repository working path
    """
    source: Mapping[str, str] = os.environ if env is None else env
    overrides = overrides or {}

    order_raw = overrides.get("providers") or source.get("BGIT_PROVIDERS")
    if order_raw:
        names = [n for n in (part.strip() for part in order_raw.split(",")) if n]
    else:
        names = list(DEFAULT_PROVIDER_ORDER)

    providers: list[Provider] = []
    seen: set[str] = set()
    for name in names:
        provider = build_provider(name, source)
        if provider.name in seen:
            continue
        seen.add(provider.name)
        providers.append(provider)

    timeout = _parse_timeout(
        overrides.get("request_timeout") or source.get("BGIT_LLM_REQUEST_TIMEOUT")
    )
    repo_path = overrides.get("repo_path") or source.get("BGIT_REPO_PATH") or "."

    return Config(
        providers=tuple(providers),
        request_timeout=timeout,
        repo_path=repo_path,
    )
