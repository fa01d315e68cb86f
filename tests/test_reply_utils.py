"""Tests for reply text helpers: truncate and clean_title."""

from __future__ import annotations

from discord_music_streamer.utils.reply import clean_title, truncate

# =============================================================================
# truncate
# =============================================================================


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("hello", 10) == "hello"

    def test_exact_length_unchanged(self):
        assert truncate("hello", 5) == "hello"

    def test_long_text_gets_ellipsis(self):
        result = truncate("hello world", 6)

        assert result == "hello…"
        assert len(result) == 6

    def test_default_limit(self):
        assert len(truncate("x" * 200)) == 90


# =============================================================================
# clean_title
# =============================================================================


class TestCleanTitle:
    def test_plain_title_unchanged(self):
        assert clean_title("Never Gonna Give You Up") == "Never Gonna Give You Up"

    def test_collapses_whitespace_and_newlines(self):
        assert clean_title("Live\n at   Wembley ") == "Live at Wembley"

    def test_escapes_markdown(self):
        assert clean_title("**Loud** _Song_") == "\\*\\*Loud\\*\\* \\_Song\\_"

    def test_truncates(self):
        assert clean_title("a" * 50, 10) == "a" * 9 + "…"
