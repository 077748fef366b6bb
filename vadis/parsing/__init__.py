"""
Vadis Parsing Module

Deterministic screenplay handling: text clean-up and the fallback scene parser.
"""

from .basic_scene_parser import BasicSceneParser, parse_heading, parse_scenes
from .script_text import clean_screenplay_text, sanitize_text

__all__ = [
    'BasicSceneParser',
    'parse_heading',
    'parse_scenes',
    'clean_screenplay_text',
    'sanitize_text',
]
