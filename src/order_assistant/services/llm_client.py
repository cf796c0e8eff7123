"""
Language model backend client over aiohttp
"""
import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from order_assistant.config.settings import AssistantSettings
from order_assistant.errors import BackendError, BackendNotConfiguredError

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("anthropic", "openai")


class LlmClient:
    """
    Sends one chat completion to the configured provider.

    Every failure (timeout, connection error, non-2xx status, unexpected
    payload) is raised as BackendError so the caller can fall back. Connection
    errors, timeouts and 5xx answers are retried up to llm_max_retries times;
    a 429 puts the client in cooldown instead. llm_timeout_seconds bounds each
    attempt and llm_total_timeout_seconds bounds the whole call.
    """

    retry_backoff_seconds = 0.5

    def __init__(self, settings: AssistantSettings, clock: Callable[[], float] = time.monotonic):
        self.settings = settings
        self.provider = settings.llm_provider
        self._clock = clock
        self._cooldown_until = 0.0

        if self.provider in SUPPORTED_PROVIDERS and not settings.api_key:
            logger.warning(f"No API key for backend '{self.provider}', replies will come from templates")
        elif self.provider not in SUPPORTED_PROVIDERS and self.provider != "none":
            logger.warning(f"Unknown LLM provider '{self.provider}', replies will come from templates")

    def is_configured(self) -> bool:
        return self.provider in SUPPORTED_PROVIDERS and bool(self.settings.api_key)

    def is_available(self) -> bool:
        """Configured and not cooling down after a rate limit"""
        return self.is_configured() and self._clock() >= self._cooldown_until

    async def complete(self, system_prompt: str, messages: List[Dict[str, str]],
                       max_tokens: Optional[int] = None, temperature: Optional[float] = None) -> str:
        if not self.is_configured():
            raise BackendNotConfiguredError(self.provider)

        url, headers, body = self._build_request(
            system_prompt,
            messages,
            max_tokens if max_tokens is not None else self.settings.llm_max_tokens,
            temperature if temperature is not None else self.settings.llm_temperature,
        )

        deadline = self.settings.llm_total_timeout_seconds
        try:
            return await asyncio.wait_for(self._complete_with_retries(url, headers, body), timeout=deadline)
        except asyncio.TimeoutError as e:
            raise BackendError(f"Backend gave no reply within {deadline}s") from e

    async def _complete_with_retries(self, url: str, headers: Dict[str, str], body: Dict[str, Any]) -> str:
        attempts = self.settings.llm_max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                payload = await self._post(url, headers, body)
                return self.extract_text(payload)
            except BackendError as e:
                if not e.retryable or attempt == attempts:
                    raise
                logger.info(f"Backend attempt {attempt}/{attempts} failed ({e}), retrying")
                await asyncio.sleep(self.retry_backoff_seconds * (2 ** (attempt - 1)))

        raise BackendError("No attempts were made")

    def _build_request(self, system_prompt: str, messages: List[Dict[str, str]],
                       max_tokens: int, temperature: float):
        if self.provider == "anthropic":
            headers = {
                "x-api-key": self.settings.anthropic_api_key,
                "anthropic-version": self.settings.anthropic_version,
                "Content-Type": "application/json",
            }
            body = {
                "model": self.settings.llm_model,
                "max_tokens": int(max_tokens),
                "temperature": float(temperature),
                "system": system_prompt,
                "messages": messages,
            }
            return self.settings.anthropic_api_url, headers, body

        headers = {
            "Authorization": f"Bearer {self.settings.openai_api_key}",
            "Content-Type": "application/json",
        }
        body = {
            "model": self.settings.llm_model,
            "max_tokens": int(max_tokens),
            "temperature": float(temperature),
            "messages": [{"role": "system", "content": system_prompt}] + list(messages),
        }
        return self.settings.openai_api_url, headers, body

    async def _post(self, url: str, headers: Dict[str, str], body: Dict[str, Any]) -> Dict[str, Any]:
        timeout = aiohttp.ClientTimeout(total=self.settings.llm_timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(url, headers=headers, json=body) as response:
                    if response.status == 429:
                        self._start_cooldown(response.headers.get("Retry-After"))
                        raise BackendError("Rate limited by backend", status=429)
                    if response.status >= 500:
                        raise BackendError(f"Backend error {response.status}", status=response.status, retryable=True)
                    if response.status != 200:
                        text = await response.text()
                        raise BackendError(f"Backend rejected request ({response.status}): {text[:200]}",
                                           status=response.status)
                    return await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise BackendError(f"Backend timed out after {self.settings.llm_timeout_seconds}s", retryable=True) from e
        except aiohttp.ClientError as e:
            raise BackendError(f"Backend connection failed: {e}", retryable=True) from e
        except ValueError as e:
            raise BackendError(f"Backend returned invalid JSON: {e}") from e

    def _start_cooldown(self, retry_after: Optional[str]):
        try:
            seconds = float(retry_after) if retry_after else self.settings.llm_rate_limit_cooldown_seconds
        except ValueError:
            seconds = self.settings.llm_rate_limit_cooldown_seconds
        self._cooldown_until = self._clock() + seconds
        logger.warning(f"Backend rate limited, pausing backend calls for {seconds:.0f}s")

    def extract_text(self, payload: Any) -> str:
        """Pull the reply text out of a provider response; anything unexpected is malformed"""
        try:
            if self.provider == "anthropic":
                first = payload["content"][0]
                if first.get("type") != "text":
                    raise BackendError(f"First content block is '{first.get('type')}', not text")
                text = first["text"]
            else:
                text = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise BackendError(f"Malformed backend response: {e!r}") from e

        if not isinstance(text, str) or not text.strip():
            raise BackendError("Backend returned an empty reply")
        return text.strip()
