import pytest

from src.domain.reply_models import CANONICAL_HELP_LINE, ReplyStyle, plan_for
from src.domain.templates import (
    FALLBACK_GROWTH_WORDS,
    FALLBACK_QUICK_WORDS,
    FALLBACK_WARM_WORDS,
    POSITIVE_CLOSE,
    TEMPLATE_MAX_WORDS,
    build_fallback_option_set,
    build_template_reply,
    with_closing,
)
from src.domain.text_normalizer import count_words, ends_with_sentence


STYLES = [ReplyStyle.QUICK_PRO, ReplyStyle.WARM_PERSONAL, ReplyStyle.GROWTH_RECOVERY]


@pytest.mark.parametrize("rating", [1, 2, 3, 4, 5])
@pytest.mark.parametrize("style", STYLES + [ReplyStyle.DEFAULT])
def test_template_is_deterministic_and_bounded(style, rating):
    first = build_template_reply("Sarah M.", rating, style)
    assert first == build_template_reply("Sarah M.", rating, style)
    assert first.startswith("Hi Sarah,")
    assert ends_with_sentence(first)
    plan = plan_for(style)
    cap = min(plan.max_words, TEMPLATE_MAX_WORDS) if plan else TEMPLATE_MAX_WORDS
    assert count_words(first) <= cap


@pytest.mark.parametrize("rating", [1, 3, 5])
def test_styles_give_distinct_templates(rating):
    texts = {build_template_reply("Sarah", rating, style) for style in STYLES}
    assert len(texts) == 3


@pytest.mark.parametrize("rating", [1, 2, 3])
def test_low_rating_recovery_template_ends_with_help_line(rating):
    assert build_template_reply("Dana", rating, ReplyStyle.GROWTH_RECOVERY).endswith(CANONICAL_HELP_LINE)


def test_missing_name_uses_there():
    assert build_template_reply("", 5, ReplyStyle.QUICK_PRO).startswith("Hi there,")


class TestWithClosing:
    def test_appends_closing(self):
        out = with_closing("We are sorry about the wait", CANONICAL_HELP_LINE, 95)
        assert out == f"We are sorry about the wait. {CANONICAL_HELP_LINE}"

    def test_already_closed_is_unchanged(self):
        text = f"We are sorry about the wait. {CANONICAL_HELP_LINE}"
        assert with_closing(text, CANONICAL_HELP_LINE, 95) == text

    def test_moves_closing_to_end(self):
        text = f"We are sorry. {CANONICAL_HELP_LINE} We will do better next time."
        out = with_closing(text, CANONICAL_HELP_LINE, 95)
        assert out.endswith(CANONICAL_HELP_LINE)
        assert out.count(CANONICAL_HELP_LINE) == 1

    def test_trims_body_to_fit(self):
        body = " ".join(["We really value your feedback on this visit."] * 20)
        out = with_closing(body, CANONICAL_HELP_LINE, 30)
        assert count_words(out) <= 30
        assert out.endswith(CANONICAL_HELP_LINE)


class TestFallbackOptionSet:
    BASE = (
        "Hi Sarah, thank you so much for the kind words about our friendly staff and service today."
    )

    def test_high_rating(self):
        quick, warm, growth = build_fallback_option_set(self.BASE, 5)
        assert count_words(quick) <= FALLBACK_QUICK_WORDS
        assert count_words(warm) <= FALLBACK_WARM_WORDS
        assert count_words(growth) <= FALLBACK_GROWTH_WORDS
        assert growth.endswith(POSITIVE_CLOSE)
        assert len({quick, warm, growth}) == 3

    def test_low_rating_growth_ends_with_help_line(self):
        _, _, growth = build_fallback_option_set(self.BASE, 2)
        assert growth.endswith(CANONICAL_HELP_LINE)
        assert count_words(growth) <= FALLBACK_GROWTH_WORDS
