"""
Screenplay text clean-up.

Helpers applied to raw script text before it is segmented or sent to a model.
"""

import re

# Words that commonly trip provider safety filters, mapped to mild stand-ins
PROFANITY_REPLACEMENTS = [
    (re.compile(r"\bfuckin'?(?=\W|$)", re.IGNORECASE), "really"),
    (re.compile(r"\bfucking\b", re.IGNORECASE), "really"),
    (re.compile(r"\bshit\b", re.IGNORECASE), "stuff"),
    (re.compile(r"\bdamn\b", re.IGNORECASE), "darn"),
    (re.compile(r"\bhell\b", re.IGNORECASE), "heck"),
]

_PAGE_NUMBER_LINE = re.compile(r"^\s*\d+\.?\s*$", re.MULTILINE)
_CONTINUED_LINE = re.compile(r"^\s*\(?(CONTINUED|CONT'D|MORE)\)?:?\s*$", re.MULTILINE | re.IGNORECASE)
_EXCESS_NEWLINES = re.compile(r"\n{4,}")
_EXCESS_SPACES = re.compile(r"\t+| {3,}")


def sanitize_text(text: str) -> str:
    """Soften strong language and strip NUL characters from prompt text."""
    text = text.replace("\u0000", "")
    for pattern, replacement in PROFANITY_REPLACEMENTS:
        text = pattern.sub(replacement, text)
    return text


def clean_screenplay_text(text: str) -> str:
    """
    Normalize screenplay text extracted from a PDF or upload.

    Removes page-number and CONTINUED/MORE lines, and collapses runs of
    blank lines and wide whitespace.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _PAGE_NUMBER_LINE.sub("", text)
    text = _CONTINUED_LINE.sub("", text)
    text = _EXCESS_NEWLINES.sub("\n\n\n", text)
    text = _EXCESS_SPACES.sub("  ", text)
    return text.strip()
