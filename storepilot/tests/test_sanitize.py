"""Tests for free-text input sanitising."""

from storepilot.core.sanitize import sanitize_input, sanitize_optional


class TestSanitizeInput:
    def test_script_tag_brackets_removed_and_quotes_escaped(self):
        assert (
            sanitize_input('<script>alert("x")</script>')
            == "scriptalert(&quot;x&quot;)/script"
        )

    def test_single_quote_escaped(self):
        assert sanitize_input("O'Brien") == "O&#x27;Brien"

    def test_whitespace_trimmed(self):
        assert sanitize_input("   My Store  ") == "My Store"

    def test_plain_text_unchanged(self):
        assert sanitize_input("Handmade candles & soaps") == "Handmade candles & soaps"

    def test_truncated_to_default_length(self):
        assert len(sanitize_input("a" * 300)) == 255

    def test_truncated_to_custom_length(self):
        assert sanitize_input("abcdefgh", max_length=3) == "abc"

    def test_truncation_applies_after_escaping(self):
        assert sanitize_input('ab"cd', max_length=4) == "ab&q"

    def test_empty_string(self):
        assert sanitize_input("   ") == ""

    def test_deterministic(self):
        value = "<b>'bold'</b>"
        assert sanitize_input(value) == sanitize_input(value)


class TestSanitizeOptional:
    def test_none_passes_through(self):
        assert sanitize_optional(None) is None

    def test_value_is_sanitised(self):
        assert sanitize_optional(" <i>x</i> ") == "ix/i"
