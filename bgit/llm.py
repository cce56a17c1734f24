"""Commit message synthesis for bgit.

Providers are tried strictly in order. A provider without a credential, or
whose call fails, times out or returns nothing, is recorded as a warning and
the next one is tried. When every provider has been exhausted the message is
built by a deterministic heuristic from the staged file extensions, so
synthesis always ends with a non-empty message.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, Sequence, Union

from .config import DEFAULT_REQUEST_TIMEOUT, Provider
from .exceptions import BgitError, LLMError, MissingCredentialError
from .providers import build_driver
from .providers.base import BaseDriver

logger = logging.getLogger(__name__)

PROMPT_HEADER = (
    "Generate a concise conventional commit style message summarizing "
    "changes made in this git diff."
)
HEURISTIC_SOURCE = "heuristic"
MAX_PROMPT_DIFF = 12000
_DIFF_HEAD = 8000
_DIFF_TAIL = 2000

_DIFF_HEADER_RE = re.compile(r"^diff --git a/(.+?) b/(.+)$")
_FENCE_RE = re.compile(r"^```[\w-]*\n(.*?)\n?```$", re.DOTALL)

# Called as factory(provider, api_key, timeout, debug=...)
DriverFactory = Callable[..., BaseDriver]


@dataclass(frozen=True)
class ProviderWarning:
    """A recoverable provider failure recorded during synthesis."""

    MISSING_CREDENTIAL = "missing_credential"
    CALL_FAILED = "call_failed"

    provider: str
    kind: str
    detail: str

    def __str__(self) -> str:
        if self.kind == self.MISSING_CREDENTIAL:
            return f"{self.provider}: missing credential ({self.detail})"
        return f"{self.provider}: provider call failed ({self.detail})"


@dataclass
class SynthesisResult:
    message: str
    warnings: list[ProviderWarning] = field(default_factory=list)
    source: str = HEURISTIC_SOURCE

    @property
    def used_heuristic(self) -> bool:
        return self.source == HEURISTIC_SOURCE


# Synthesis states
@dataclass(frozen=True)
class Trying:
    index: int


@dataclass(frozen=True)
class Exhausted:
    pass


@dataclass(frozen=True)
class Done:
    message: str
    source: str


State = Union[Trying, Exhausted, Done]


def heuristic_message(paths: Sequence[str]) -> str:
    """Summarize ``paths`` by their most frequent file extensions.

    Produces e.g. ``update 3 paths (2 go files, 1 py file)``. Extensions are
    ordered by descending count, ties by first appearance; at most three are
    listed. Paths without an extension count toward the total only.
    """
    if not paths:
        return "chore: empty commit"
    counts: Counter[str] = Counter()
    for path in paths:
        dot = path.rfind(".")
        if dot != -1 and dot != len(path) - 1:
            counts[path[dot + 1 :]] += 1
    # Counter preserves insertion order and most_common() sorts stably.
    parts = [
        f"{count} {ext} {'files' if count > 1 else 'file'}"
        for ext, count in counts.most_common(3)
    ]
    summary = f"update {len(paths)} paths"
    if parts:
        summary += f" ({', '.join(parts)})"
    return summary


def paths_from_diff(diff_text: str) -> list[str]:
    """Return the file paths named by ``diff --git`` headers, in order."""
    paths: list[str] = []
    for line in diff_text.splitlines():
        match = _DIFF_HEADER_RE.match(line)
        if match and match.group(2) not in paths:
            paths.append(match.group(2))
    return paths


def build_prompt(diff_text: str) -> str:
    """Render the fixed prompt for ``diff_text``.

    Oversized diffs keep their head and tail.
    """
    if len(diff_text) > MAX_PROMPT_DIFF:
        diff_text = diff_text[:_DIFF_HEAD] + "\n...\n" + diff_text[-_DIFF_TAIL:]
    return f"{PROMPT_HEADER}\n{diff_text}"


def clean_response(text: str) -> str:
    """Trim a completion and unwrap a surrounding code fence or quotes."""
    cleaned = text.strip()
    fenced = _FENCE_RE.match(cleaned)
    if fenced:
        cleaned = fenced.group(1).strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in "\"'`":
        cleaned = cleaned[1:-1].strip()
    return cleaned


class MessageSynthesizer:
    """Produces a commit message via the ordered provider fallback chain."""

    def __init__(
        self,
        providers: Sequence[Provider],
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        env: Optional[Mapping[str, str]] = None,
        driver_factory: Optional[DriverFactory] = None,
        debug: bool = False,
    ) -> None:
        self.providers = tuple(providers)
        self.timeout = timeout
        self.env = env
        self.debug = debug
        self._driver_factory = driver_factory or build_driver

    def synthesize(
        self, diff_text: str, paths: Optional[Sequence[str]] = None
    ) -> SynthesisResult:
        """Return a commit message for ``diff_text`` plus ordered warnings.

        Args:
            diff_text: Unified diff of the staged changes.
            paths: Staged paths for the heuristic fallback; derived from the
                diff headers when omitted.
        """
        warnings: list[ProviderWarning] = []
        prompt = build_prompt(diff_text)
        state: State = Trying(0) if self.providers else Exhausted()

        while not isinstance(state, Done):
            if self.debug:
                print(f"DEBUG: synthesize.state {state}")
            if isinstance(state, Exhausted):
                heuristic_paths = (
                    list(paths) if paths is not None else paths_from_diff(diff_text)
                )
                state = Done(heuristic_message(heuristic_paths), HEURISTIC_SOURCE)
                continue

            provider = self.providers[state.index]
            try:
                message = self._attempt(provider, prompt)
            except MissingCredentialError as e:
                warnings.append(
                    self._warn(provider, ProviderWarning.MISSING_CREDENTIAL, str(e))
                )
            except FutureTimeoutError:
                warnings.append(
                    self._warn(
                        provider,
                        ProviderWarning.CALL_FAILED,
                        f"timed out after {self.timeout:g}s",
                    )
                )
            except BgitError as e:
                warnings.append(
                    self._warn(provider, ProviderWarning.CALL_FAILED, str(e))
                )
            except Exception as e:  # noqa: BLE001
                warnings.append(
                    self._warn(
                        provider,
                        ProviderWarning.CALL_FAILED,
                        f"unexpected error: {e!r}",
                    )
                )
            else:
                state = Done(message, provider.name)
                continue

            next_index = state.index + 1
            if next_index < len(self.providers):
                state = Trying(next_index)
            else:
                state = Exhausted()

        return SynthesisResult(
            message=state.message, warnings=warnings, source=state.source
        )

    def _attempt(self, provider: Provider, prompt: str) -> str:
        api_key = provider.resolve_api_key(self.env)
        if not api_key:
            raise MissingCredentialError(provider.credential_env_var)

        def call() -> str:
            driver = self._driver_factory(
                provider, api_key, self.timeout, debug=self.debug
            )
            return driver.complete(prompt)

        executor = ThreadPoolExecutor(max_workers=1)
        try:
            raw = executor.submit(call).result(timeout=self.timeout)
        finally:
            # A hung call is abandoned rather than awaited.
            executor.shutdown(wait=False, cancel_futures=True)
        message = clean_response(raw or "")
        if not message:
            raise LLMError("no AI response content")
        return message

    def _warn(self, provider: Provider, kind: str, detail: str) -> ProviderWarning:
        warning = ProviderWarning(provider=provider.name, kind=kind, detail=detail)
        logger.warning("%s", warning)
        return warning


def synthesize_message(
    diff_text: str,
    providers: Sequence[Provider],
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    paths: Optional[Sequence[str]] = None,
    env: Optional[Mapping[str, str]] = None,
    driver_factory: Optional[DriverFactory] = None,
) -> SynthesisResult:
    """Functional form of :meth:`MessageSynthesizer.synthesize`."""
    synthesizer = MessageSynthesizer(
        providers, timeout=timeout, env=env, driver_factory=driver_factory
    )
    return synthesizer.synthesize(diff_text, paths=paths)
