"""
Vadis Constants

Global constants used throughout the Vadis analysis system.
"""

from enum import Enum
from typing import Dict, List

# =============================================================================
# PIPELINE STAGES
# =============================================================================

class StageName(Enum):
    """Analysis stages, named as they appear on the HTTP boundary."""
    SCENE_EXTRACTION = "scene_extraction"
    CHARACTER_ANALYSIS = "character_analysis"
    CASTING_SUGGESTIONS = "casting_suggestions"
    VFX_ANALYSIS = "vfx_analysis"
    PRODUCT_PLACEMENT = "product_placement"
    LOCATION_ANALYSIS = "location_analysis"
    FINANCIAL_PLANNING = "financial_planning"
    PROJECT_SUMMARY = "project_summary"
    # Out-of-band: evaluates a single user-suggested actor
    USER_ACTOR_EVALUATION = "analyze_user_actor"


# Dependency order for a full analysis run
STAGE_ORDER: List[StageName] = [
    StageName.SCENE_EXTRACTION,
    StageName.CHARACTER_ANALYSIS,
    StageName.CASTING_SUGGESTIONS,
    StageName.VFX_ANALYSIS,
    StageName.PRODUCT_PLACEMENT,
    StageName.LOCATION_ANALYSIS,
    StageName.FINANCIAL_PLANNING,
    StageName.PROJECT_SUMMARY,
]


class OutputShape(Enum):
    """Shape a stage expects back from the generation capability."""
    OBJECT = "object"
    ARRAY = "array"
    TEXT = "text"


# =============================================================================
# STATUS VALUES
# =============================================================================

class ProjectStatus(Enum):
    """Overall analysis status stored on the project record."""
    PENDING = "pending"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"


class StageStatus(Enum):
    """Status of one stage's analysis result row."""
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


# =============================================================================
# RECORD TIERS
# =============================================================================

IMPORTANCE_TIERS = ("lead", "supporting", "minor")
COMPLEXITY_TIERS = ("low", "medium", "high", "extreme")
VISIBILITY_TIERS = ("background", "featured", "hero")
RECOMMENDATION_TIERS = ("excellent", "good", "fair", "poor")

DEFAULT_IMPORTANCE = "minor"
DEFAULT_COMPLEXITY = "medium"
DEFAULT_VISIBILITY = "background"

# =============================================================================
# LLM SETTINGS
# =============================================================================

class LLMProvider(Enum):
    """Supported LLM providers."""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GOOGLE = "google"
    GROK = "grok"


# Environment variables holding each provider's credential
PROVIDER_API_KEYS: Dict[LLMProvider, List[str]] = {
    LLMProvider.ANTHROPIC: ["ANTHROPIC_API_KEY"],
    LLMProvider.OPENAI: ["OPENAI_API_KEY"],
    LLMProvider.GOOGLE: ["GEMINI_API_KEY", "GOOGLE_API_KEY"],
    LLMProvider.GROK: ["XAI_API_KEY"],
}

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4096
DEFAULT_STAGE_TIMEOUT = 120

# =============================================================================
# SCREENPLAY PARSING
# =============================================================================

LINES_PER_PAGE = 55
MINUTES_PER_PAGE = 1.2
MAX_CHARACTER_CUE_LENGTH = 30

TIME_OF_DAY_VALUES = [
    "DAY", "NIGHT", "MORNING", "AFTERNOON", "EVENING",
    "DAWN", "DUSK", "CONTINUOUS", "LATER", "MOMENTS LATER",
]
UNSPECIFIED_TIME = "UNSPECIFIED"

VFX_KEYWORDS = [
    "explosion", "fire", "crash", "special effect", "cgi", "green screen",
    "composite", "digital", "effect", "supernatural", "magic", "flying",
    "transformation", "monster", "creature", "blood", "gore", "battle",
]

PRODUCT_KEYWORDS = [
    "car", "phone", "computer", "laptop", "watch", "brand", "logo",
    "restaurant", "store", "shop", "drink", "food", "clothing", "shoes",
]

# Lines that look like character cues but are scene transitions
TRANSITION_CUES = {
    "CUT TO", "FADE IN", "FADE OUT", "FADE TO BLACK", "DISSOLVE TO",
    "SMASH CUT", "MATCH CUT", "THE END", "CONTINUED", "BACK TO",
}

# Prompt input limits (characters) to stay inside provider context windows
MAX_SCRIPT_CHARS = 60000
MAX_SCENE_CONTENT_CHARS = 500
