"""
Vadis Stage Functions

One async function per analysis stage. Each takes the generation client plus
typed upstream records and returns typed results; none of them touch storage.
"""

from .casting import evaluate_user_actor, suggest_casting
from .character_analysis import CharacterAnalysis, analyze_characters
from .executive_summary import write_executive_summary
from .financial_planning import plan_financials
from .location_analysis import suggest_locations
from .product_placement import analyze_product_placement
from .scene_extraction import extract_scenes
from .vfx_analysis import analyze_vfx

__all__ = [
    'extract_scenes',
    'analyze_characters',
    'CharacterAnalysis',
    'suggest_casting',
    'evaluate_user_actor',
    'analyze_vfx',
    'analyze_product_placement',
    'suggest_locations',
    'plan_financials',
    'write_executive_summary',
]
