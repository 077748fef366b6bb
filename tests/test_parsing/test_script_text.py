"""
Tests for Screenplay Text Helpers

Tests for vadis/parsing/script_text.py
"""

from vadis.parsing.script_text import clean_screenplay_text, sanitize_text


class TestSanitizeText:
    """Tests for prompt sanitization."""

    def test_replacements(self):
        """Test strong language is replaced with mild words."""
        text = "Oh shit, this fucking thing. Damn it to hell. Fuckin' great."

        assert sanitize_text(text) == "Oh stuff, this really thing. darn it to heck. really great."

    def test_word_boundaries(self):
        """Test words containing the terms are untouched."""
        assert sanitize_text("Hello, shell company in Amsterdam") == "Hello, shell company in Amsterdam"

    def test_nul_removed(self):
        """Test NUL characters are stripped."""
        assert sanitize_text("a\u0000b") == "ab"


class TestCleanScreenplayText:
    """Tests for raw script normalization."""

    def test_page_numbers_and_continued_removed(self):
        """Test PDF artifacts are dropped."""
        text = "INT. ROOM - DAY\n12.\nBOB\n(MORE)\nHi.\nCONTINUED:\n"

        cleaned = clean_screenplay_text(text)

        assert "12." not in cleaned
        assert "MORE" not in cleaned
        assert "CONTINUED" not in cleaned
        assert "BOB" in cleaned

    def test_line_endings_and_blank_runs(self):
        """Test CRLF is normalized and long blank runs collapse."""
        cleaned = clean_screenplay_text("A\r\nB\n\n\n\n\n\nC")

        assert cleaned == "A\nB\n\n\nC"
