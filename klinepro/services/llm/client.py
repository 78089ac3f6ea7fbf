"""
LLM Client Abstraction

Provides a unified interface over OpenAI-compatible chat endpoints
(DashScope hosts both Qwen and DeepSeek behind one).
Handles primary/fallback model switching.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import logging

import openai

from klinepro.services.base import RemoteServiceError

logger = logging.getLogger(__name__)

SERVICE_NAME = "LLM"


@dataclass
class LLMConfig:
    """Configuration for LLM client."""

    api_key: Optional[str] = None
    base_url: str = "https://dashscope.aliyuncs.com/compatible-mode/v1"
    primary_model: str = "qwen-max"
    fallback_model: Optional[str] = "deepseek-v3.1"
    max_tokens: int = 1024
    temperature: float = 0.3
    timeout: float = 60.0


@dataclass
class LLMResponse:
    """Response from LLM."""

    content: str
    model: str
    usage: dict
    raw_response: Optional[dict] = None


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        response_format: Optional[str] = None,
    ) -> LLMResponse:
        """Generate a response from the LLM."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the LLM service is accessible."""
        pass


class OpenAICompatibleClient(BaseLLMClient):
    """Chat-completions client for one model on an OpenAI-compatible endpoint."""

    def __init__(self, config: LLMConfig, model: str):
        self.config = config
        self.model = model
        self._client: Optional[openai.AsyncOpenAI] = None

    def _get_client(self) -> openai.AsyncOpenAI:
        """Lazy initialization of the SDK client."""
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                timeout=self.config.timeout,
            )
        return self._client

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        response_format: Optional[str] = None,
    ) -> LLMResponse:
        """Generate response using chat completions."""
        client = self._get_client()

        temp = temperature if temperature is not None else self.config.temperature
        tokens = max_tokens if max_tokens is not None else self.config.max_tokens

        kwargs = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temp,
            "max_tokens": tokens,
        }

        if response_format == "json":
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await client.chat.completions.create(**kwargs)
        except openai.OpenAIError as e:
            logger.error(f"{self.model} API error: {e}")
            raise RemoteServiceError(SERVICE_NAME, f"{self.model} request failed: {e}") from e

        if not response.choices or response.choices[0].message.content is None:
            raise RemoteServiceError(SERVICE_NAME, f"{self.model} returned no content")

        usage = {}
        if response.usage is not None:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return LLMResponse(
            content=response.choices[0].message.content,
            model=self.model,
            usage=usage,
            raw_response=response.model_dump() if hasattr(response, "model_dump") else None,
        )

    async def health_check(self) -> bool:
        """Check API connectivity."""
        try:
            response = await self._get_client().chat.completions.create(
                model=self.model,
                max_tokens=10,
                messages=[{"role": "user", "content": "Hi"}],
            )
            return response is not None
        except openai.OpenAIError as e:
            logger.error(f"{self.model} health check failed: {e}")
            return False


class LLMClient:
    """
    Unified LLM client with model fallback.

    Models are tried in order (primary, then fallback); the first answer wins.
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self._models: list[BaseLLMClient] = []

        if not config.api_key:
            logger.warning("No LLM API key configured. LLM features disabled.")
            return

        names = [config.primary_model]
        if config.fallback_model and config.fallback_model != config.primary_model:
            names.append(config.fallback_model)
        self._models = [OpenAICompatibleClient(config, name) for name in names]

    @property
    def models(self) -> list[BaseLLMClient]:
        return self._models

    @models.setter
    def models(self, models: list[BaseLLMClient]):
        self._models = list(models)

    @property
    def is_configured(self) -> bool:
        return bool(self._models)

    async def generate(self, system_prompt: str, user_prompt: str, **kwargs) -> LLMResponse:
        """
        Generate LLM response with automatic fallback.

        Keyword arguments (temperature, max_tokens, response_format) are
        passed through to each model.
        """
        if not self._models:
            raise RemoteServiceError(SERVICE_NAME, "No LLM providers configured")

        last_error: Optional[RemoteServiceError] = None
        for model in self._models:
            try:
                return await model.generate(system_prompt, user_prompt, **kwargs)
            except RemoteServiceError as e:
                logger.warning(f"LLM call failed: {e.message}")
                last_error = e

        raise RemoteServiceError(
            SERVICE_NAME,
            "All LLM providers failed",
            {"last_error": last_error.message},
        ) from last_error

    async def health_check(self) -> bool:
        """Check if any LLM model is accessible."""
        for model in self._models:
            if await model.health_check():
                return True
        return False


# Singleton instance management
_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get or create LLM client singleton."""
    global _llm_client
    if _llm_client is None:
        from klinepro.core.config import settings

        config = LLMConfig(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            primary_model=settings.llm_primary_model,
            fallback_model=settings.llm_fallback_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            timeout=settings.llm_timeout,
        )
        _llm_client = LLMClient(config)
    return _llm_client
