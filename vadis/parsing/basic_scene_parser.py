"""
Vadis Basic Scene Parser

Deterministic, regex-driven scene segmentation. Used when the model-backed
scene extraction is unavailable or returns nothing usable, so an analysis
run never blocks on the generation capability.

Rules:
- A slug line (INT./EXT. <location> - <time>) opens a scene and closes the previous one
- All-caps short lines inside a scene are character cues, deduplicated per scene
- Pages are estimated at LINES_PER_PAGE non-blank lines per page
- Duration is MINUTES_PER_PAGE per estimated page, at least one minute
"""

import math
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from vadis.analysis.models import Scene
from vadis.core.constants import (
    LINES_PER_PAGE,
    MAX_CHARACTER_CUE_LENGTH,
    MINUTES_PER_PAGE,
    PRODUCT_KEYWORDS,
    TIME_OF_DAY_VALUES,
    TRANSITION_CUES,
    UNSPECIFIED_TIME,
    VFX_KEYWORDS,
)
from vadis.core.logging_config import get_logger

from .script_text import clean_screenplay_text

logger = get_logger("parsing.scenes")

_PREFIX = r"(INT\./EXT\.|INT/EXT\.?|I/E\.?|INT\.|EXT\.|INTERIOR|EXTERIOR)"
_TIMES = "|".join(sorted((re.escape(t) for t in TIME_OF_DAY_VALUES), key=len, reverse=True))

# Checked in order; the first match wins
HEADING_PATTERNS: List[Tuple[re.Pattern, bool]] = [
    # INT. OFFICE - DAY (last spaced dash separates location from time)
    (re.compile(rf"^{_PREFIX}\s+(.+)\s+[-–—]+\s+(.+?)$"), True),
    # INT. OFFICE-DAY
    (re.compile(rf"^{_PREFIX}\s+(.+?)\s*[-–—]+\s*({_TIMES})$"), True),
    # INT. OFFICE DAY
    (re.compile(rf"^{_PREFIX}\s+(.+?)\s+({_TIMES})$"), True),
    # INT. OFFICE
    (re.compile(rf"^{_PREFIX}\s+(.+)$"), False),
]

_CUE_EXTENSION = re.compile(r"\s*\((?:CONT'D|CONT’D|CONT|V\.O\.|O\.S\.|O\.C\.|OS|VO)\)\s*$")
_CUE_PATTERN = re.compile(r"^[A-Z][A-Z .'\-]*[A-Z]$")

_VFX_PATTERNS = [(kw, re.compile(rf"\b{re.escape(kw)}\b")) for kw in VFX_KEYWORDS]
_PRODUCT_PATTERNS = [(kw, re.compile(rf"\b{re.escape(kw)}\b")) for kw in PRODUCT_KEYWORDS]


@dataclass
class SceneHeading:
    """A parsed slug line."""
    location: str
    time_of_day: str
    raw: str


@dataclass
class _SceneBuffer:
    number: int
    heading: SceneHeading
    page_start: int
    last_line: int
    lines: List[str] = field(default_factory=list)
    characters: List[str] = field(default_factory=list)


def parse_heading(line: str) -> Optional[SceneHeading]:
    """Parse a slug line, or return None if the line is not a scene heading."""
    line = line.strip()
    for pattern, has_time in HEADING_PATTERNS:
        match = pattern.match(line)
        if not match:
            continue
        location = match.group(2).strip(" .-–—")
        if not location:
            return None
        time_of_day = match.group(3).strip().upper() if has_time else UNSPECIFIED_TIME
        return SceneHeading(location=location, time_of_day=time_of_day, raw=line)
    return None


def parse_character_cue(line: str) -> Optional[str]:
    """Return the character name if the line is a dialogue cue."""
    name = _CUE_EXTENSION.sub("", line.strip())
    if len(name) < 2 or len(name) >= MAX_CHARACTER_CUE_LENGTH:
        return None
    if not _CUE_PATTERN.match(name):
        return None
    if name in TRANSITION_CUES or name.endswith(" TO"):
        return None
    return name


def estimate_duration(page_start: int, page_end: int) -> int:
    """Minutes of screen time for a page range."""
    page_count = max(1, page_end - page_start + 1)
    return max(1, int(page_count * MINUTES_PER_PAGE + 0.5))


def _keyword_tags(content: str, patterns) -> List[str]:
    lowered = content.lower()
    return [keyword for keyword, pattern in patterns if pattern.search(lowered)]


class BasicSceneParser:
    """Regex scene segmentation with page and duration estimates."""

    def __init__(self, lines_per_page: int = LINES_PER_PAGE):
        self.lines_per_page = lines_per_page

    def _page_of(self, line_number: int) -> int:
        return max(1, math.ceil(line_number / self.lines_per_page))

    def parse(self, raw_text: str) -> List[Scene]:
        """
        Segment a screenplay into scenes.

        Args:
            raw_text: Screenplay text

        Returns:
            Scenes in script order; empty if no heading is recognized
        """
        text = clean_screenplay_text(raw_text or "")
        scenes: List[Scene] = []
        current: Optional[_SceneBuffer] = None
        line_counter = 0

        for raw_line in text.split("\n"):
            line = raw_line.strip()
            if not line:
                continue
            line_counter += 1

            heading = parse_heading(line)
            if heading:
                if current:
                    scenes.append(self._finish(current))
                current = _SceneBuffer(
                    number=len(scenes) + 1,
                    heading=heading,
                    page_start=self._page_of(line_counter),
                    last_line=line_counter,
                )
                continue

            if current is None:
                # Title page and anything before the first slug line
                continue

            current.lines.append(line)
            current.last_line = line_counter

            name = parse_character_cue(line)
            if name and name not in current.characters:
                current.characters.append(name)

        if current:
            scenes.append(self._finish(current))

        if not scenes:
            logger.info("No scene headings recognized; returning zero scenes")
        else:
            logger.info(f"Basic parser segmented {len(scenes)} scenes over {line_counter} lines")

        return scenes

    def _finish(self, buffer: _SceneBuffer) -> Scene:
        content = "\n".join(buffer.lines)
        page_end = max(buffer.page_start, self._page_of(buffer.last_line))
        return Scene(
            id=f"scene_{buffer.number}",
            scene_number=buffer.number,
            location=buffer.heading.location,
            time_of_day=buffer.heading.time_of_day,
            description=buffer.heading.raw,
            characters=list(buffer.characters),
            content=content,
            page_start=buffer.page_start,
            page_end=page_end,
            duration=estimate_duration(buffer.page_start, page_end),
            vfx_needs=_keyword_tags(content, _VFX_PATTERNS),
            product_placement_opportunities=_keyword_tags(content, _PRODUCT_PATTERNS),
        )


def parse_scenes(raw_text: str) -> List[Scene]:
    """Convenience wrapper around BasicSceneParser().parse()."""
    return BasicSceneParser().parse(raw_text)
