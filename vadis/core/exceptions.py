"""
Vadis Custom Exceptions

Custom exception classes for error handling throughout the analysis pipeline.
"""


class VadisError(Exception):
    """Base exception for all Vadis errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(VadisError):
    """Raised when there's an issue with configuration."""
    pass


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""
    pass


# =============================================================================
# GENERATION ERRORS
# =============================================================================

class GenerationError(VadisError):
    """Base exception for generation capability errors."""
    pass


class CapabilityUnavailable(GenerationError):
    """Raised when no provider for a stage is configured or reachable."""

    def __init__(self, provider: str, reason: str):
        message = f"Generation capability '{provider}' unavailable: {reason}"
        details = {"provider": provider, "reason": reason}
        super().__init__(message, details)


class GenerationFailed(GenerationError):
    """Raised when a provider errors or times out."""

    def __init__(self, stage: str, reason: str, provider: str = None):
        message = f"Generation failed for stage '{stage}': {reason}"
        details = {"stage": stage, "reason": reason}
        if provider:
            details["provider"] = provider
        super().__init__(message, details)


class ProviderError(GenerationError):
    """Raised by a single provider call; the client may try a fallback."""

    def __init__(self, provider: str, reason: str):
        message = f"Provider '{provider}' error: {reason}"
        details = {"provider": provider, "reason": reason}
        super().__init__(message, details)


class ContentBlockedError(ProviderError):
    """Raised when a provider refuses the prompt on safety grounds."""
    pass


# =============================================================================
# PIPELINE ERRORS
# =============================================================================

class PipelineError(VadisError):
    """Base exception for pipeline errors."""
    pass


class PreconditionNotMet(PipelineError):
    """Raised when a stage runs without its required upstream records."""

    def __init__(self, stage: str, requirement: str):
        message = requirement
        details = {"stage": stage}
        super().__init__(message, details)


class PipelineCancelled(PipelineError):
    """Raised when an operator cancels a run between stages."""

    def __init__(self, stage: str):
        super().__init__("Analysis cancelled", {"stage": stage})


class UnknownStageError(PipelineError):
    """Raised when a stage name does not match any analysis stage."""

    def __init__(self, stage: str):
        super().__init__(f"Unknown analysis stage: '{stage}'", {"stage": stage})


# =============================================================================
# STORAGE ERRORS
# =============================================================================

class StorageError(VadisError):
    """Base exception for persistence errors."""
    pass


class PersistenceError(StorageError):
    """Raised when a store operation fails."""

    def __init__(self, table: str, reason: str):
        message = f"Persistence failed on '{table}': {reason}"
        details = {"table": table, "reason": reason}
        super().__init__(message, details)


class ProjectNotFoundError(StorageError):
    """Raised when a project cannot be found."""

    def __init__(self, project_id: str):
        message = f"Project not found: {project_id}"
        details = {"project_id": project_id}
        super().__init__(message, details)
