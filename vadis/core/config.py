"""
Vadis Analysis Configuration

Per-stage generation settings with JSON loading and validation.

Every analysis stage resolves its provider, model, token budget and expected
output shape from a StageConfig entry instead of hard-coding them.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import ConfigurationError, InvalidConfigError
from .constants import (
    DEFAULT_STAGE_TIMEOUT,
    DEFAULT_TEMPERATURE,
    LLMProvider,
    OutputShape,
    StageName,
)


@dataclass
class StageConfig:
    """Generation settings for one analysis stage."""
    stage: StageName
    provider: LLMProvider
    model: str
    max_tokens: int
    output_shape: OutputShape
    temperature: float = DEFAULT_TEMPERATURE
    timeout_seconds: float = DEFAULT_STAGE_TIMEOUT
    fallback_providers: List[LLMProvider] = field(default_factory=list)
    # Container key to unwrap when the model answers {"<key>": [...]}
    array_key: Optional[str] = None
    system_prompt: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> 'StageConfig':
        """Create StageConfig from dictionary."""
        try:
            return cls(
                stage=StageName(data['stage']),
                provider=LLMProvider(data['provider']),
                model=data['model'],
                max_tokens=int(data['max_tokens']),
                output_shape=OutputShape(data['output_shape']),
                temperature=float(data.get('temperature', DEFAULT_TEMPERATURE)),
                timeout_seconds=float(data.get('timeout_seconds', DEFAULT_STAGE_TIMEOUT)),
                fallback_providers=[LLMProvider(p) for p in data.get('fallback_providers', [])],
                array_key=data.get('array_key'),
                system_prompt=data.get('system_prompt', ""),
            )
        except KeyError as e:
            raise InvalidConfigError(f"Stage config missing field: {e}", {"data": data})
        except ValueError as e:
            raise InvalidConfigError(f"Invalid stage config value: {e}", {"data": data})

    def to_dict(self) -> dict:
        return {
            'stage': self.stage.value,
            'provider': self.provider.value,
            'model': self.model,
            'max_tokens': self.max_tokens,
            'output_shape': self.output_shape.value,
            'temperature': self.temperature,
            'timeout_seconds': self.timeout_seconds,
            'fallback_providers': [p.value for p in self.fallback_providers],
            'array_key': self.array_key,
            'system_prompt': self.system_prompt,
        }


ANALYST_SYSTEM_PROMPT = (
    "You are a film development analyst. Answer only with the requested JSON "
    "and no commentary."
)


def _default_stage_configs() -> Dict[StageName, StageConfig]:
    fallback_all = [LLMProvider.OPENAI, LLMProvider.ANTHROPIC, LLMProvider.GOOGLE]

    def stage(name, provider, model, max_tokens, shape, array_key=None, temperature=DEFAULT_TEMPERATURE):
        return StageConfig(
            stage=name,
            provider=provider,
            model=model,
            max_tokens=max_tokens,
            output_shape=shape,
            temperature=temperature,
            fallback_providers=[p for p in fallback_all if p != provider],
            array_key=array_key,
            system_prompt="" if shape == OutputShape.TEXT else ANALYST_SYSTEM_PROMPT,
        )

    configs = [
        stage(StageName.SCENE_EXTRACTION, LLMProvider.GOOGLE, "gemini-1.5-flash", 8000,
              OutputShape.ARRAY, array_key="scenes", temperature=0.3),
        stage(StageName.CHARACTER_ANALYSIS, LLMProvider.GOOGLE, "gemini-1.5-pro", 6000,
              OutputShape.OBJECT),
        stage(StageName.CASTING_SUGGESTIONS, LLMProvider.OPENAI, "gpt-4o", 4000,
              OutputShape.ARRAY, array_key="suggestions"),
        stage(StageName.VFX_ANALYSIS, LLMProvider.GOOGLE, "gemini-2.0-flash-exp", 4000,
              OutputShape.ARRAY, array_key="vfx_needs"),
        stage(StageName.PRODUCT_PLACEMENT, LLMProvider.OPENAI, "gpt-4o-mini", 3000,
              OutputShape.ARRAY, array_key="placements"),
        stage(StageName.LOCATION_ANALYSIS, LLMProvider.GOOGLE, "gemini-1.5-pro", 4000,
              OutputShape.ARRAY, array_key="locations"),
        stage(StageName.FINANCIAL_PLANNING, LLMProvider.OPENAI, "gpt-4o", 2000,
              OutputShape.OBJECT, temperature=0.4),
        stage(StageName.PROJECT_SUMMARY, LLMProvider.OPENAI, "gpt-4o", 3000,
              OutputShape.TEXT),
        stage(StageName.USER_ACTOR_EVALUATION, LLMProvider.OPENAI, "gpt-4o-mini", 1500,
              OutputShape.OBJECT),
    ]
    return {c.stage: c for c in configs}


@dataclass
class AnalysisConfig:
    """Main configuration for the analysis pipeline."""

    stages: Dict[StageName, StageConfig] = field(default_factory=_default_stage_configs)

    # When True the generation capability is disabled and every stage takes its soft path
    offline: bool = False
    sanitize_prompts: bool = True
    default_timeout_seconds: float = DEFAULT_STAGE_TIMEOUT

    def get_stage_config(self, stage: StageName) -> StageConfig:
        """Get the generation settings for a stage."""
        config = self.stages.get(stage)
        if config is None:
            raise ConfigurationError(f"No configuration for stage: {stage.value}")
        return config

    @classmethod
    def from_dict(cls, data: dict) -> 'AnalysisConfig':
        """Create AnalysisConfig from dictionary, overlaying defaults."""
        config = cls()

        config.offline = data.get('offline', config.offline)
        config.sanitize_prompts = data.get('sanitize_prompts', config.sanitize_prompts)
        config.default_timeout_seconds = data.get(
            'default_timeout_seconds', config.default_timeout_seconds
        )

        for stage_data in data.get('stages', []):
            if 'timeout_seconds' not in stage_data:
                stage_data = dict(stage_data, timeout_seconds=config.default_timeout_seconds)
            stage_config = StageConfig.from_dict(stage_data)
            config.stages[stage_config.stage] = stage_config

        return config

    def to_dict(self) -> Dict[str, Any]:
        return {
            'offline': self.offline,
            'sanitize_prompts': self.sanitize_prompts,
            'default_timeout_seconds': self.default_timeout_seconds,
            'stages': [c.to_dict() for c in self.stages.values()],
        }


def get_default_config() -> AnalysisConfig:
    """Get a configuration populated with the default stage table."""
    return AnalysisConfig()


def load_config(config_path: Optional[Path] = None) -> AnalysisConfig:
    """
    Load configuration from JSON file.

    Args:
        config_path: Path to configuration file. If None, uses default.

    Returns:
        Loaded AnalysisConfig instance
    """
    if config_path is None:
        config_path = Path("config/vadis_config.json")
    config_path = Path(config_path)

    if not config_path.exists():
        return get_default_config()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Invalid JSON in config file: {e}")
    except OSError as e:
        raise ConfigurationError(f"Failed to load config: {e}")

    return AnalysisConfig.from_dict(data)


def save_config(config: AnalysisConfig, config_path: Path) -> None:
    """Write a configuration to a JSON file."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config.to_dict(), f, indent=2)
