"""
Vadis LLM Providers

Thin async wrappers over each vendor SDK. A provider knows how to send one
prompt and return text; model choice and token budgets come from the stage
configuration at call time.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Type
import asyncio

from vadis.core.constants import DEFAULT_MAX_TOKENS, DEFAULT_STAGE_TIMEOUT, DEFAULT_TEMPERATURE, LLMProvider
from vadis.core.env_loader import get_provider_api_key
from vadis.core.exceptions import ContentBlockedError, ProviderError
from vadis.core.logging_config import get_logger

logger = get_logger("llm.providers")


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers."""

    provider: LLMProvider

    def __init__(self, api_key: Optional[str] = None, timeout: float = DEFAULT_STAGE_TIMEOUT):
        self._api_key = api_key if api_key is not None else get_provider_api_key(self.provider)
        self.timeout = timeout
        if not self._api_key:
            logger.debug(f"API key not found for provider: {self.provider.value}")

    @property
    def name(self) -> str:
        return self.provider.value

    @property
    def is_available(self) -> bool:
        """Check if the provider has a credential."""
        return bool(self._api_key)

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        model: str,
        system_prompt: str = "",
        temperature: float = None,
        max_tokens: int = None
    ) -> str:
        """Generate a response from the LLM."""
        pass

    @staticmethod
    def _temperature(temperature: Optional[float]) -> float:
        return temperature if temperature is not None else DEFAULT_TEMPERATURE


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude provider."""

    provider = LLMProvider.ANTHROPIC

    async def generate(
        self,
        prompt: str,
        model: str,
        system_prompt: str = "",
        temperature: float = None,
        max_tokens: int = None
    ) -> str:
        try:
            import anthropic

            client = anthropic.AsyncAnthropic(api_key=self._api_key, timeout=self.timeout)

            kwargs = {}
            if system_prompt:
                kwargs["system"] = system_prompt

            message = await client.messages.create(
                model=model,
                max_tokens=max_tokens or DEFAULT_MAX_TOKENS,
                messages=[{"role": "user", "content": prompt}],
                temperature=self._temperature(temperature),
                **kwargs
            )

            return "".join(
                block.text for block in message.content if getattr(block, "type", "") == "text"
            )

        except Exception as e:
            raise ProviderError("anthropic", str(e)) from e


class OpenAIProvider(BaseLLMProvider):
    """OpenAI GPT provider."""

    provider = LLMProvider.OPENAI

    async def generate(
        self,
        prompt: str,
        model: str,
        system_prompt: str = "",
        temperature: float = None,
        max_tokens: int = None
    ) -> str:
        try:
            import openai

            client = openai.AsyncOpenAI(api_key=self._api_key, timeout=self.timeout)

            messages = []
            if system_prompt:
                messages.append({"role": "system", "content": system_prompt})
            messages.append({"role": "user", "content": prompt})

            response = await client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=max_tokens or DEFAULT_MAX_TOKENS,
                temperature=self._temperature(temperature)
            )

            return response.choices[0].message.content or ""

        except Exception as e:
            raise ProviderError("openai", str(e)) from e


class GoogleProvider(BaseLLMProvider):
    """Google Gemini provider."""

    provider = LLMProvider.GOOGLE

    async def generate(
        self,
        prompt: str,
        model: str,
        system_prompt: str = "",
        temperature: float = None,
        max_tokens: int = None
    ) -> str:
        try:
            import google.generativeai as genai

            genai.configure(api_key=self._api_key)
            gemini = genai.GenerativeModel(model)

            full_prompt = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt

            response = await asyncio.to_thread(
                gemini.generate_content,
                full_prompt,
                generation_config={
                    "temperature": self._temperature(temperature),
                    "max_output_tokens": max_tokens or DEFAULT_MAX_TOKENS
                }
            )

            # finish_reason 3=SAFETY, 4=RECITATION
            if not response.candidates:
                block_reason = "UNKNOWN"
                feedback = getattr(response, "prompt_feedback", None)
                if feedback is not None and hasattr(feedback, "block_reason"):
                    block_reason = str(feedback.block_reason)
                raise ContentBlockedError("google", f"block_reason: {block_reason}")

            candidate = response.candidates[0]
            if getattr(candidate, "finish_reason", None) in (3, 4):
                raise ContentBlockedError("google", f"finish_reason: {candidate.finish_reason}")
            if not candidate.content or not candidate.content.parts:
                raise ContentBlockedError(
                    "google", f"Empty content with finish_reason={candidate.finish_reason}"
                )

            return response.text

        except ContentBlockedError:
            raise
        except Exception as e:
            raise ProviderError("google", str(e)) from e


class GrokProvider(BaseLLMProvider):
    """xAI Grok provider."""

    provider = LLMProvider.GROK
    API_URL = "https://api.x.ai/v1/chat/completions"

    async def generate(
        self,
        prompt: str,
        model: str,
        system_prompt: str = "",
        temperature: float = None,
        max_tokens: int = None
    ) -> str:
        try:
            import httpx

            messages = []
            if system_prompt:
                messages.append({"role": "system", "content": system_prompt})
            messages.append({"role": "user", "content": prompt})

            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.API_URL,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json"
                    },
                    json={
                        "model": model,
                        "messages": messages,
                        "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
                        "temperature": self._temperature(temperature)
                    },
                    timeout=self.timeout
                )
                response.raise_for_status()
                data = response.json()
                return data["choices"][0]["message"]["content"]

        except Exception as e:
            raise ProviderError("grok", str(e)) from e


PROVIDER_CLASSES: Dict[LLMProvider, Type[BaseLLMProvider]] = {
    LLMProvider.ANTHROPIC: AnthropicProvider,
    LLMProvider.OPENAI: OpenAIProvider,
    LLMProvider.GOOGLE: GoogleProvider,
    LLMProvider.GROK: GrokProvider,
}

# Model used when a stage falls back to a provider other than its configured one
FALLBACK_MODELS: Dict[LLMProvider, str] = {
    LLMProvider.ANTHROPIC: "claude-sonnet-4-20250514",
    LLMProvider.OPENAI: "gpt-4o",
    LLMProvider.GOOGLE: "gemini-1.5-pro",
    LLMProvider.GROK: "grok-2-latest",
}


def create_provider(
    provider: LLMProvider,
    api_key: Optional[str] = None,
    timeout: float = DEFAULT_STAGE_TIMEOUT
) -> BaseLLMProvider:
    """Instantiate the provider class for a provider identity."""
    return PROVIDER_CLASSES[provider](api_key=api_key, timeout=timeout)
