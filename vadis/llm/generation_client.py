"""
Vadis Generation Client

Sends stage prompts to the configured text-generation provider and returns
normalized structured output (or raw text for prose stages).

The client is constructed explicitly and passed to stage functions, so tests
can substitute fake providers without touching process-wide state.
"""

from typing import Any, Dict, List, Optional, Tuple, Union
import asyncio
import time

from vadis.core.config import AnalysisConfig, StageConfig, get_default_config
from vadis.core.constants import LLMProvider, OutputShape, StageName
from vadis.core.exceptions import (
    CapabilityUnavailable,
    ContentBlockedError,
    GenerationFailed,
    ProviderError,
)
from vadis.core.logging_config import get_logger
from vadis.parsing.script_text import sanitize_text

from .providers import BaseLLMProvider, FALLBACK_MODELS, create_provider
from .response_normalizer import (
    NormalizedResult,
    ParseFailure,
    normalize_response,
    offline_failure,
)

logger = get_logger("llm.client")


class GenerationClient:
    """
    Routes stage prompts to providers.

    Features:
    - Per-stage provider, model, token budget and output shape
    - Provider fallback chain when the primary fails or lacks credentials
    - Stage-level timeout across the whole chain
    - Offline mode that disables generation entirely
    """

    def __init__(
        self,
        config: AnalysisConfig = None,
        providers: Dict[LLMProvider, BaseLLMProvider] = None,
        offline: bool = None
    ):
        """
        Initialize the client.

        Args:
            config: Analysis configuration holding the stage table
            providers: Explicit provider instances. When given, no other
                providers are created.
            offline: Override config.offline
        """
        self.config = config or get_default_config()
        self.offline = self.config.offline if offline is None else offline
        self._auto_create = providers is None
        self._providers: Dict[LLMProvider, BaseLLMProvider] = dict(providers or {})

        # Stats tracking
        self._call_count = 0
        self._failure_count = 0
        self._parse_failure_count = 0
        self._total_time = 0.0

    def stage_config(self, stage: StageName) -> StageConfig:
        return self.config.get_stage_config(stage)

    def render_prompt(self, template: str, inputs: Dict[str, Any]) -> str:
        """Substitute stage inputs into a prompt template."""
        prompt = template.format(**inputs)
        if self.config.sanitize_prompts:
            prompt = sanitize_text(prompt)
        return prompt

    async def generate(
        self,
        stage: StageName,
        template: str,
        inputs: Dict[str, Any],
        output_shape: OutputShape = None,
        token_budget: int = None,
        array_key: str = None
    ) -> Union[NormalizedResult, str]:
        """
        Generate output for a stage.

        Args:
            stage: Stage whose configuration applies
            template: Prompt template with {placeholders}
            inputs: Values substituted into the template
            output_shape: Override the stage's configured shape
            token_budget: Override the stage's configured max tokens
            array_key: Override the container key unwrapped for arrays

        Returns:
            NormalizedResult for OBJECT/ARRAY shapes, raw text for TEXT

        Raises:
            CapabilityUnavailable: no provider in the chain has credentials
            GenerationFailed: every available provider errored or timed out
        """
        stage_config = self.stage_config(stage)
        shape = output_shape or stage_config.output_shape
        budget = token_budget or stage_config.max_tokens
        key = array_key or stage_config.array_key

        prompt = self.render_prompt(template, inputs)
        self._call_count += 1

        if self.offline:
            logger.info(f"Generation disabled, skipping model call for {stage.value}")
            return "" if shape == OutputShape.TEXT else offline_failure()

        logger.debug(f"{stage.value}: prompt {len(prompt)} chars, budget {budget} tokens")
        text = await self._generate_text(stage_config, prompt, budget)

        if shape == OutputShape.TEXT:
            return text

        result = normalize_response(text, shape, key)
        if isinstance(result, ParseFailure):
            self._parse_failure_count += 1
        return result

    async def _generate_text(self, stage_config: StageConfig, prompt: str, budget: int) -> str:
        """Call providers in chain order until one returns text."""
        stage = stage_config.stage
        chain = self._available_chain(stage_config)

        if not chain:
            self._failure_count += 1
            raise CapabilityUnavailable(
                stage_config.provider.value,
                f"no credentials configured for stage '{stage.value}' or its fallbacks"
            )

        loop = asyncio.get_running_loop()
        deadline = loop.time() + stage_config.timeout_seconds
        last_error = "no provider attempted"
        last_provider = chain[0][0].value

        for provider_id, provider in chain:
            remaining = deadline - loop.time()
            if remaining <= 0:
                last_error = f"stage timeout of {stage_config.timeout_seconds}s exhausted"
                break

            model = stage_config.model if provider_id == stage_config.provider else FALLBACK_MODELS[provider_id]
            last_provider = provider_id.value
            start_time = time.time()

            try:
                text = await asyncio.wait_for(
                    provider.generate(
                        prompt=prompt,
                        model=model,
                        system_prompt=stage_config.system_prompt,
                        temperature=stage_config.temperature,
                        max_tokens=budget
                    ),
                    timeout=remaining
                )
            except asyncio.TimeoutError:
                last_error = f"timed out after {stage_config.timeout_seconds}s"
                logger.warning(f"{stage.value}: {provider_id.value} {last_error}")
                break
            except ContentBlockedError as e:
                last_error = e.details.get("reason", str(e))
                logger.warning(f"{stage.value}: content blocked by {provider_id.value}: {last_error}")
                continue
            except ProviderError as e:
                last_error = e.details.get("reason", str(e))
                logger.warning(f"{stage.value}: {provider_id.value} failed: {last_error}")
                continue
            finally:
                self._total_time += time.time() - start_time

            elapsed = time.time() - start_time
            logger.info(
                f"{stage.value}: {provider_id.value}/{model} returned "
                f"{len(text or '')} chars in {elapsed:.1f}s"
            )
            return text or ""

        self._failure_count += 1
        raise GenerationFailed(stage.value, last_error, provider=last_provider)

    def _available_chain(self, stage_config: StageConfig) -> List[Tuple[LLMProvider, BaseLLMProvider]]:
        chain = []
        order = [stage_config.provider] + [
            p for p in stage_config.fallback_providers if p != stage_config.provider
        ]
        for provider_id in order:
            provider = self._get_provider(provider_id, stage_config.timeout_seconds)
            if provider is not None and provider.is_available:
                chain.append((provider_id, provider))
            else:
                logger.debug(f"Provider unavailable for {stage_config.stage.value}: {provider_id.value}")
        return chain

    def _get_provider(self, provider_id: LLMProvider, timeout: float) -> Optional[BaseLLMProvider]:
        if provider_id not in self._providers and self._auto_create:
            self._providers[provider_id] = create_provider(provider_id, timeout=timeout)
        return self._providers.get(provider_id)

    def get_stats(self) -> Dict[str, Any]:
        """Get call statistics."""
        return {
            "total_calls": self._call_count,
            "failures": self._failure_count,
            "parse_failures": self._parse_failure_count,
            "total_time": f"{self._total_time:.2f}s",
            "avg_time_per_call": f"{(self._total_time / self._call_count):.3f}s" if self._call_count > 0 else "0s",
        }
