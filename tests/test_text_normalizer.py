import re

import pytest

from src.domain.reply_models import CANONICAL_HELP_LINE
from src.domain.text_normalizer import (
    count_words,
    ensure_sentence,
    first_name,
    is_internal_reasoning_leak,
    is_likely_incomplete,
    sanitize,
    trim_to_word_limit,
)


COMPLETE_REPLY = (
    "Hi Sarah, thank you so much for the kind words about our friendly staff and service today."
)


class TestSanitize:
    def test_contact_request_becomes_canonical_line(self):
        out = sanitize("Thanks Sam! Please call us at 555-123-4567 to discuss.")
        assert out == f"Thanks Sam! {CANONICAL_HELP_LINE}"

    def test_reach_us_at_with_email(self):
        out = sanitize("Thanks Sam! Reach us at hello@shop.com or 0123 456 789.")
        assert out == f"Thanks Sam! {CANONICAL_HELP_LINE}"

    def test_reach_out_instruction_is_normalized(self):
        out = sanitize("Sorry about the wait. Feel free to reach out anytime!")
        assert out == f"Sorry about the wait. {CANONICAL_HELP_LINE}"

    @pytest.mark.parametrize(
        "text",
        [
            "You can always reach out with any questions.",
            "Please don't hesitate to reach out to us.",
            "We would love to hear more, so reach out to us anytime.",
        ],
    )
    def test_reader_directed_reach_out_is_normalized(self, text):
        assert sanitize(f"Thanks Sam! {text}") == f"Thanks Sam! {CANONICAL_HELP_LINE}"

    @pytest.mark.parametrize(
        "text",
        [
            "We are so sorry about the wait. I will reach out to our kitchen manager today "
            "so this does not happen again.",
            "Please know that our manager will reach out to the team about this.",
            "Our owner plans to reach out to me and the staff this week.",
        ],
    )
    def test_business_follow_up_is_kept(self, text):
        assert sanitize(text) == text

    def test_canonical_line_not_repeated(self):
        out = sanitize(
            f"We are sorry. {CANONICAL_HELP_LINE} Email us with any questions. {CANONICAL_HELP_LINE}"
        )
        assert out.count(CANONICAL_HELP_LINE) == 1

    def test_bare_tokens_removed(self):
        out = sanitize(
            "Our number is 0123456789 if needed. See www.shop.example.com or https://x.example/a "
            "and follow @shopname for news."
        )
        assert not re.search(r"\d{8,}", out)
        assert "www." not in out
        assert "http" not in out
        assert "@" not in out

    def test_placeholders_removed(self):
        out = sanitize("Thank you! Best regards, [Your Business Name] Team")
        assert "[" not in out
        assert out.endswith("our team")

    def test_collapses_whitespace(self):
        assert sanitize("  Thanks   so\n\nmuch  .  ") == "Thanks so much."


class TestEnsureSentence:
    def test_adds_period(self):
        assert ensure_sentence("Thanks so much") == "Thanks so much."

    def test_strips_trailing_junk_before_period(self):
        assert ensure_sentence("Thanks so much,") == "Thanks so much."

    def test_keeps_existing_terminal(self):
        assert ensure_sentence("See you soon!") == "See you soon!"

    def test_empty(self):
        assert ensure_sentence("   ") == ""


class TestIncomplete:
    @pytest.mark.parametrize(
        "text",
        [
            "",
            "Thanks so much.",
            "Hi Sarah, thank you so much for the kind words about our friendly staff and service",
        ],
    )
    def test_incomplete(self, text):
        assert is_likely_incomplete(text)

    def test_complete(self):
        assert not is_likely_incomplete(COMPLETE_REPLY)

    def test_sentence_ending_on_a_preposition_is_complete(self):
        text = (
            "Thank you so much for trusting our team with your visit, because that is "
            "what we are here for."
        )
        assert not is_likely_incomplete(text)

    def test_dangling_word_before_comma(self):
        assert is_likely_incomplete(
            "Hi Sarah, thank you so much for the kind words about our friendly staff, service and,"
        )


class TestReasoningLeak:
    @pytest.mark.parametrize(
        "text",
        [
            "The user wants me to write a friendly reply to Sarah.",
            "Okay, so the user left five stars.",
            "Let me break this down: the review is positive.",
            "First, I see a glowing review.",
            "Here's my analysis of the review.",
            "This meets the word count requirement.",
        ],
    )
    def test_leaks_detected(self, text):
        assert is_internal_reasoning_leak(text)

    def test_normal_reply_is_not_a_leak(self):
        assert not is_internal_reasoning_leak(COMPLETE_REPLY)
        assert not is_internal_reasoning_leak("")


class TestTrim:
    def test_short_text_untouched(self):
        assert trim_to_word_limit(COMPLETE_REPLY, 50) == COMPLETE_REPLY

    def test_keeps_whole_sentences(self):
        sentence = "We loved having you here with us at the shop today."
        text = " ".join([sentence] * 3)
        out = trim_to_word_limit(text, 25)
        assert out == f"{sentence} {sentence}"
        assert count_words(out) <= 25

    def test_hard_cut_single_sentence(self):
        out = trim_to_word_limit(" ".join(["word"] * 30), 10)
        assert count_words(out) == 10
        assert out.endswith("word.")

    def test_hard_cut_drops_dangling_words(self):
        out = trim_to_word_limit("a b c d e f g h i and j k l", 10)
        assert out == "a b c d e f g h i."

    def test_zero_limit(self):
        assert trim_to_word_limit(COMPLETE_REPLY, 0) == ""

    @pytest.mark.parametrize("limit", [1, 5, 14, 40])
    def test_never_exceeds_limit(self, limit):
        text = (COMPLETE_REPLY + " ") * 4
        assert count_words(trim_to_word_limit(text, limit)) <= limit


class TestFirstName:
    @pytest.mark.parametrize(
        "raw,expected",
        [("Sarah M.", "Sarah"), ("  O'Neil  Smith", "O'Neil"), ("", "there"), ("123", "there")],
    )
    def test_first_name(self, raw, expected):
        assert first_name(raw) == expected
