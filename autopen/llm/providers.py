"""
OpenAI-compatible chat completion providers (OpenRouter, DeepSeek, OpenAI...)
"""

from __future__ import annotations

import httpx
from rich.console import Console
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..models import LLMOptions
from .base import LLMProvider, LLMResponse


console = Console()

RETRYABLE_STATUS = {429, 500, 502, 503, 504}
MAX_BACKOFF = 10.0


def is_retryable(error: BaseException) -> bool:
    """Transport errors and HTTP 429/5xx are worth another attempt"""
    if isinstance(error, httpx.TransportError):
        return True
    return isinstance(error, httpx.HTTPStatusError) and error.response.status_code in RETRYABLE_STATUS


class OpenAICompatibleProvider(LLMProvider):
    """
    Provider for any service speaking the OpenAI chat completions API

    HTTP 429/5xx responses and transport errors are retried up to
    ``max_retries`` times with exponential backoff (1s, 2s, 4s... capped
    at 10s). Other errors propagate as ``httpx.HTTPError``.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        *,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(api_key=api_key, base_url=base_url, model=model)
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.transport = transport

    @property
    def name(self) -> str:
        return "openai_compatible"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception(is_retryable),
            wait=wait_exponential(multiplier=self.backoff_base, max=MAX_BACKOFF),
            stop=stop_after_attempt(self.max_retries + 1),
            before_sleep=self._report_retry,
            reraise=True,
        )

    def _report_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        console.print(
            f"[yellow]⚠ {self.name}: {error.__class__.__name__}, "
            f"retry {retry_state.attempt_number}/{self.max_retries} in {delay:.0f}s[/yellow]"
        )

    async def _post(self, payload: dict, timeout: float) -> dict:
        async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers=self._headers(),
                json=payload,
            )
            response.raise_for_status()
            return response.json()

    async def invoke(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        options: LLMOptions | None = None,
    ) -> LLMResponse:
        options = options or LLMOptions()
        model = options.model or self.model

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": model,
            "messages": messages,
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "top_p": options.top_p,
        }

        async for attempt in self._retrying():
            with attempt:
                data = await self._post(payload, options.timeout)

        content = data["choices"][0]["message"]["content"]
        usage = data.get("usage") or {}

        return LLMResponse(
            content=content or "",
            model=data.get("model", model),
            usage={
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
                "total_tokens": usage.get("total_tokens", 0),
            },
        )


class OpenRouterProvider(OpenAICompatibleProvider):
    """OpenRouter provider (adds the attribution headers OpenRouter asks for)"""

    def __init__(self, *args, app_url: str = "https://autopen.local", app_title: str = "AutoPen", **kwargs):
        super().__init__(*args, **kwargs)
        self.app_url = app_url
        self.app_title = app_title

    @property
    def name(self) -> str:
        return "openrouter"

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["HTTP-Referer"] = self.app_url
        headers["X-Title"] = self.app_title
        return headers


class DeepSeekProvider(OpenAICompatibleProvider):
    """DeepSeek Provider"""

    @property
    def name(self) -> str:
        return "deepseek"


def create_provider(
    provider_type: str,
    api_key: str,
    base_url: str,
    model: str,
    **kwargs,
) -> LLMProvider:
    """
    Factory: create an LLM provider

    Args:
        provider_type: Provider type (openrouter, deepseek, openai_compatible)
        api_key: API key
        base_url: Base URL
        model: Default model name
        **kwargs: Passed through (max_retries, transport...)

    Returns:
        LLMProvider instance
    """
    providers = {
        "openrouter": OpenRouterProvider,
        "deepseek": DeepSeekProvider,
        "openai_compatible": OpenAICompatibleProvider,
    }

    provider_class = providers.get(provider_type, OpenAICompatibleProvider)
    return provider_class(
        api_key=api_key,
        base_url=base_url,
        model=model,
        **kwargs,
    )
