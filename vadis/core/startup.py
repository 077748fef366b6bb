"""
Startup validation and environment checks.

Validates that the providers named in the stage configuration have credentials.
"""

from dataclasses import dataclass, field
from typing import List

from .config import AnalysisConfig
from .constants import PROVIDER_API_KEYS
from .env_loader import get_provider_api_key


@dataclass
class ValidationResult:
    """Result of environment validation."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def validate_environment(config: AnalysisConfig) -> ValidationResult:
    """
    Validate the environment against the stage configuration.

    A stage is an error when neither its provider nor any of its fallbacks has
    a credential. A missing primary key with a usable fallback is a warning.

    Returns:
        ValidationResult with validation status and any errors/warnings
    """
    errors = []
    warnings = []

    if config.offline:
        warnings.append("Offline mode - generation is disabled, stages use fallbacks")
        return ValidationResult(valid=True, warnings=warnings)

    for stage, stage_config in config.stages.items():
        chain = [stage_config.provider] + list(stage_config.fallback_providers)
        available = [p for p in chain if get_provider_api_key(p)]

        if not available:
            keys = ", ".join(PROVIDER_API_KEYS[stage_config.provider])
            errors.append(f"{stage.value}: no provider credentials found (set {keys})")
        elif available[0] != stage_config.provider:
            warnings.append(
                f"{stage.value}: {stage_config.provider.value} key missing, "
                f"falling back to {available[0].value}"
            )

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings
    )
