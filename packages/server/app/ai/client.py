"""
Chat-completions client for the configured AI provider.

Mistral, OpenAI and Grok all expose an OpenAI-compatible
``POST {base_url}/chat/completions`` endpoint, so a single client covers
them. Each call is one HTTP request; failures are classified into an
``AIErrorType`` so routers can map them to HTTP statuses.
"""

from __future__ import annotations

import enum
from functools import lru_cache
from typing import Optional

import httpx
import structlog

from app.core.config import Settings, get_settings

log = structlog.get_logger()


class AIErrorType(str, enum.Enum):
    NETWORK = "NETWORK"
    RATE_LIMIT = "RATE_LIMIT"
    AUTH = "AUTH"
    JSON_PARSING = "JSON_PARSING"
    UNKNOWN = "UNKNOWN"


# HTTP status returned to our own clients for each failure class
AI_ERROR_STATUS = {
    AIErrorType.NETWORK: 503,
    AIErrorType.RATE_LIMIT: 429,
    AIErrorType.AUTH: 502,
    AIErrorType.JSON_PARSING: 422,
    AIErrorType.UNKNOWN: 500,
}


class AIProviderError(Exception):
    def __init__(self, message: str, error_type: AIErrorType = AIErrorType.UNKNOWN):
        super().__init__(message)
        self.message = message
        self.error_type = error_type

    @property
    def status_code(self) -> int:
        return AI_ERROR_STATUS[self.error_type]

    def to_detail(self) -> dict:
        return {"message": self.message, "error_type": self.error_type.value}


def classify_status(status_code: int) -> AIErrorType:
    if status_code in (401, 403):
        return AIErrorType.AUTH
    if status_code == 429:
        return AIErrorType.RATE_LIMIT
    if status_code >= 500:
        return AIErrorType.NETWORK
    return AIErrorType.UNKNOWN


class AIClient:
    """Thin async wrapper around one provider's chat-completions API."""

    def __init__(
        self,
        provider: str,
        api_key: str,
        base_url: str,
        model: str,
        timeout: float = 60.0,
        image_model: Optional[str] = None,
    ):
        self.provider = provider
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.image_model = image_model

    @classmethod
    def from_settings(cls, settings: Settings) -> "AIClient":
        provider = settings.ai_provider
        return cls(
            provider=provider,
            api_key=getattr(settings, f"{provider}_api_key"),
            base_url=getattr(settings, f"{provider}_base_url"),
            model=getattr(settings, f"{provider}_model"),
            timeout=settings.ai_timeout_seconds,
            image_model=settings.mistral_image_model if provider == "mistral" else None,
        )

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _post(self, path: str, payload: dict) -> dict:
        if not self.api_key:
            raise AIProviderError(f"{self.provider} API key not configured", AIErrorType.AUTH)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}{path}", headers=self._headers(), json=payload
                )
        except httpx.TimeoutException as exc:
            log.error("ai.timeout", provider=self.provider, path=path)
            raise AIProviderError(f"{self.provider} request timed out", AIErrorType.NETWORK) from exc
        except httpx.HTTPError as exc:
            log.error("ai.transport_error", provider=self.provider, path=path, error=str(exc))
            raise AIProviderError(f"Could not reach {self.provider}: {exc}", AIErrorType.NETWORK) from exc

        if response.status_code != 200:
            error_type = classify_status(response.status_code)
            log.error(
                "ai.http_error",
                provider=self.provider,
                status=response.status_code,
                body=response.text[:500],
            )
            raise AIProviderError(
                f"{self.provider} returned HTTP {response.status_code}", error_type
            )

        try:
            return response.json()
        except ValueError as exc:
            raise AIProviderError(
                f"{self.provider} returned a non-JSON body", AIErrorType.JSON_PARSING
            ) from exc

    async def _complete(self, messages: list[dict], temperature: float, max_tokens: int) -> str:
        data = await self._post(
            "/chat/completions",
            {
                "model": self.model,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise AIProviderError(
                f"Unexpected {self.provider} response shape", AIErrorType.UNKNOWN
            ) from exc
        log.info("ai.completion", provider=self.provider, model=self.model, chars=len(content or ""))
        return content or ""

    async def generate_text(
        self, prompt: str, temperature: float = 0.7, max_tokens: int = 2000
    ) -> str:
        return await self._complete(
            [{"role": "user", "content": prompt}], temperature, max_tokens
        )

    async def generate_text_with_image(
        self,
        prompt: str,
        image_b64: str,
        mime_type: str = "image/jpeg",
        temperature: float = 0.5,
        max_tokens: int = 1500,
    ) -> str:
        messages = [
            {
                "role": "user",
                "content": [
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:{mime_type};base64,{image_b64}"},
                    },
                    {"type": "text", "text": prompt},
                ],
            }
        ]
        return await self._complete(messages, temperature, max_tokens)

    async def generate_image(self, prompt: str) -> str:
        """Returns the URL of the generated image."""
        if not self.image_model:
            raise AIProviderError(
                f"Image generation is not available for {self.provider}", AIErrorType.UNKNOWN
            )
        data = await self._post(
            "/images/generations",
            {"model": self.image_model, "prompt": prompt, "n": 1},
        )
        try:
            return data["data"][0]["url"]
        except (KeyError, IndexError, TypeError) as exc:
            raise AIProviderError("Image response without a URL", AIErrorType.UNKNOWN) from exc


@lru_cache
def _default_client() -> AIClient:
    return AIClient.from_settings(get_settings())


def get_ai_client() -> AIClient:
    """FastAPI dependency; tests override it with a scripted fake."""
    return _default_client()
