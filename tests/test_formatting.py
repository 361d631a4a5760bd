"""Tests for conversation title generation and bot reply formatting."""

from aurora.engine.formatting import (
    FALLBACK_TITLE,
    clean_text,
    format_response_text,
    generate_title,
    split_sentences,
)


class TestGenerateTitle:
    """Test generate_title()."""

    def test_short_prompt_is_used_verbatim(self):
        assert generate_title("Hello bot") == "Hello bot"

    def test_ten_character_prompt_equals_title(self):
        prompt = "abcdefghij"
        assert generate_title(prompt) == prompt

    def test_sixty_character_prompt_is_truncated_with_ellipsis(self):
        prompt = "x" * 60
        title = generate_title(prompt)
        assert title == "x" * 50 + "…"

    def test_exactly_fifty_characters_is_not_truncated(self):
        prompt = "y" * 50
        assert generate_title(prompt) == prompt

    def test_prompt_is_trimmed_before_measuring(self):
        assert generate_title("   padded   ") == "padded"

    def test_blank_prompt_falls_back(self):
        assert generate_title("   ") == FALLBACK_TITLE
        assert generate_title("") == FALLBACK_TITLE


class TestFormatResponseText:
    """Test format_response_text()."""

    def test_single_sentence_is_unchanged(self):
        assert format_response_text("Hi.") == "Hi."

    def test_three_sentences_become_numbered_list(self):
        assert format_response_text("A. B. C.") == "1. A.\n2. B.\n3. C."

    def test_two_sentences_stay_prose(self):
        assert format_response_text("First one. Second one!") == "First one. Second one!"

    def test_markdown_and_tags_are_stripped(self):
        raw = "**Bold** <b>tag</b> and #heading"
        assert format_response_text(raw) == "Bold tag and heading"

    def test_list_tags_are_stripped_case_insensitively(self):
        raw = "<UL><li>one</LI></ul>"
        assert format_response_text(raw) == "one"

    def test_whitespace_and_nbsp_are_collapsed(self):
        raw = "  Lots of \n\n  space  "
        assert format_response_text(raw) == "Lots of space"

    def test_existing_bullets_are_not_doubled(self):
        raw = "- Apples are red. * Bananas are yellow. + Grapes are purple."
        assert format_response_text(raw) == (
            "1. Apples are red.\n2. Bananas are yellow.\n3. Grapes are purple."
        )

    def test_punctuation_only_fragments_do_not_count(self):
        # "..." and "?!" carry no alphanumerics, so only two real sentences remain.
        raw = "Yes. ... No. ?!"
        assert format_response_text(raw) == "Yes. ... No. ?!"

    def test_question_and_exclamation_split_sentences(self):
        raw = "Why? Because! That is all."
        assert format_response_text(raw) == "1. Why?\n2. Because!\n3. That is all."


class TestHelpers:
    """Test the building blocks used by format_response_text()."""

    def test_clean_text_removes_emphasis(self):
        assert clean_text("*a* #b") == "a b"

    def test_split_sentences_drops_empty_pieces(self):
        assert split_sentences("One. Two.") == ["One.", "Two."]
