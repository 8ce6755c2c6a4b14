"""LLM gateway — ordered chat-completion providers with fallback.

All plan generation MUST go through `LLMGateway.complete()`.

Providers (both OpenAI-compatible chat completions over httpx):
  1. Together AI  (primary)
  2. OpenRouter   (secondary)

Policy:
  - Primary succeeds          -> secondary never called
  - Primary 429, secondary ok -> secondary content
  - Primary 429, secondary ko -> LLMRateLimitError   (HTTP 429)
  - Primary other failure     -> secondary; both fail -> LLMUnavailableError
"""

from __future__ import annotations

import asyncio
import os
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx

from .http_client import Timeouts, get_timeout


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------
class LLMProviderError(RuntimeError):
    """A single provider call failed."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code


class LLMProviderRateLimited(LLMProviderError):
    """A single provider answered 429."""


class LLMRateLimitError(RuntimeError):
    """Primary provider rate-limited and the fallback failed too."""


class LLMUnavailableError(RuntimeError):
    """Every provider failed."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
def _env_int(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def _get_together_key() -> str:
    return os.getenv("TOGETHER_API_KEY", "").strip()


def _get_openrouter_key() -> str:
    return os.getenv("OPENROUTER_API_KEY", "").strip()


def get_plan_max_tokens() -> int:
    return _env_int("PLAN_MAX_TOKENS", 8000)


def _openrouter_headers() -> Dict[str, str]:
    return {
        "HTTP-Referer": os.getenv("OPENROUTER_REFERER", "http://localhost:3000"),
        "X-Title": "Business Plan Generator",
    }


@dataclass
class LLMProvider:
    name: str
    url: str
    model: str
    max_tokens_cap: int
    get_key: Callable[[], str]
    extra_headers: Callable[[], Dict[str, str]] = dict


@dataclass
class ProviderAttempt:
    """Outcome of one provider call: content or error, never both."""

    provider: str
    content: Optional[str] = None
    error: Optional[LLMProviderError] = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.content is not None

    @property
    def rate_limited(self) -> bool:
        return isinstance(self.error, LLMProviderRateLimited)


def together_provider() -> LLMProvider:
    return LLMProvider(
        name="together",
        url="https://api.together.xyz/v1/chat/completions",
        model=os.getenv("TOGETHER_MODEL", "meta-llama/Llama-3.3-70B-Instruct-Turbo-Free").strip(),
        max_tokens_cap=8000,
        get_key=_get_together_key,
    )


def openrouter_provider() -> LLMProvider:
    return LLMProvider(
        name="openrouter",
        url="https://openrouter.ai/api/v1/chat/completions",
        model=os.getenv("OPENROUTER_MODEL", "openai/gpt-oss-20b:free").strip(),
        max_tokens_cap=4000,
        get_key=_get_openrouter_key,
        extra_headers=_openrouter_headers,
    )


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------
@dataclass
class LLMGateway:
    providers: List[LLMProvider] = field(default_factory=lambda: [together_provider(), openrouter_provider()])
    transport: Optional[httpx.AsyncBaseTransport] = None  # tests only

    async def _call(
        self,
        provider: LLMProvider,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        key = provider.get_key()
        if not key:
            raise LLMProviderError(provider.name, "API key not configured")

        headers = {
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
            **provider.extra_headers(),
        }
        payload: Dict[str, Any] = {
            "model": provider.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": min(max_tokens, provider.max_tokens_cap),
        }

        async with httpx.AsyncClient(timeout=get_timeout("llm"), transport=self.transport) as client:
            response = await client.post(provider.url, headers=headers, json=payload)

        if response.status_code == 429:
            raise LLMProviderRateLimited(provider.name, "rate limited", 429)
        if response.status_code != 200:
            raise LLMProviderError(
                provider.name, f"HTTP {response.status_code}: {response.text[:200]}", response.status_code
            )

        try:
            data = response.json()
            content = (data["choices"][0]["message"]["content"] or "").strip()
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise LLMProviderError(provider.name, f"malformed response: {exc}") from exc
        if not content:
            raise LLMProviderError(provider.name, "empty response")

        usage = data.get("usage")
        if usage:
            print(f"🧠 [LLM] Tokens used: prompt={usage.get('prompt_tokens', '?')}, completion={usage.get('completion_tokens', '?')}")
        return content

    async def attempt(
        self,
        provider: LLMProvider,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int,
        temperature: float,
    ) -> ProviderAttempt:
        """Run one provider call and capture its outcome instead of raising."""
        t0 = time.time()
        print(f"🧠 [LLM] Calling {provider.name} ({provider.model})")
        try:
            content = await asyncio.wait_for(
                self._call(provider, system_prompt, user_prompt, max_tokens=max_tokens, temperature=temperature),
                timeout=Timeouts.LLM,
            )
        except LLMProviderError as exc:
            print(f"⚠️  [LLM] {exc}")
            return ProviderAttempt(provider.name, error=exc, duration=time.time() - t0)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            print(f"❌ [LLM] {provider.name} timed out")
            return ProviderAttempt(provider.name, error=LLMProviderError(provider.name, "timeout"), duration=time.time() - t0)
        except httpx.HTTPError as exc:
            print(f"❌ [LLM] {provider.name} network error: {exc}")
            return ProviderAttempt(provider.name, error=LLMProviderError(provider.name, str(exc)), duration=time.time() - t0)

        duration = time.time() - t0
        print(f"📦 [LLM] {provider.name} responded ({len(content)} chars, {duration:.1f}s)")
        return ProviderAttempt(provider.name, content=content, duration=duration)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Return the first provider's content, falling back down the list.

        Raises
        ------
        LLMRateLimitError
            The primary provider was rate-limited and no fallback succeeded.
        LLMUnavailableError
            Every provider failed for another reason.
        """
        attempts: List[ProviderAttempt] = []
        for provider in self.providers:
            result = await self.attempt(
                provider, system_prompt, user_prompt, max_tokens=max_tokens, temperature=temperature
            )
            if result.ok:
                return result.content
            attempts.append(result)

        if attempts and attempts[0].rate_limited:
            raise LLMRateLimitError(
                "API rate limit reached and fallback failed. Please wait a minute and try again."
            )
        raise LLMUnavailableError("AI providers unavailable")


def default_gateway() -> LLMGateway:
    return LLMGateway()
