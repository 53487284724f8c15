"""
Deterministic reply templates.

Used when the model is unavailable or its output is unusable, and to
backfill the option set when generated variants collapse into duplicates.
Same inputs always give the same text.
"""

from typing import Dict, List, Tuple

from .reply_models import CANONICAL_HELP_LINE, ReplyStyle, plan_for
from .text_normalizer import count_words, ensure_sentence, first_name, trim_to_word_limit


TEMPLATE_MAX_WORDS = 90
FALLBACK_QUICK_WORDS = 40
FALLBACK_WARM_WORDS = 75
FALLBACK_GROWTH_WORDS = 95

GRATITUDE_CLOSE = "Thanks again for sharing this feedback with us."
POSITIVE_CLOSE = (
    "We would love to welcome you back soon, and referrals from customers "
    "like you mean a lot to us."
)

# style -> (rating >= 4, rating == 3, rating <= 2)
_TEMPLATES: Dict[ReplyStyle, Tuple[str, str, str]] = {
    ReplyStyle.QUICK_PRO: (
        "Hi {name}, thank you for your great review. We are glad you had a smooth "
        "experience and truly appreciate your support.",
        "Hi {name}, thank you for your feedback. We are sorry your experience was not "
        "fully smooth, and we are actively improving this area.",
        "Hi {name}, thank you for your honest feedback. We are sorry we fell short and "
        "are already working with our team to put this right.",
    ),
    ReplyStyle.WARM_PERSONAL: (
        "Hi {name}, thank you for the wonderful review. We are delighted to hear you had "
        "a great experience and that our team made the process easy and friendly. We truly "
        "appreciate your support and look forward to welcoming you again soon.",
        "Hi {name}, thank you for your feedback. We are glad parts of your visit went well, "
        "and we are sorry the wait time felt longer than expected. We are working on "
        "improving pacing and communication so your next experience is smoother. We "
        "appreciate you sharing this with us.",
        "Hi {name}, thank you for your honest feedback, and we are sorry your experience did "
        "not meet expectations. We take your comments seriously and are addressing this with "
        "our team to improve service quality and communication. " + CANONICAL_HELP_LINE,
    ),
    ReplyStyle.GROWTH_RECOVERY: (
        "Hi {name}, thank you for your kind review. We are pleased to know our team delivered "
        "a strong experience. We remain committed to excellent service and would be glad to "
        "welcome you back soon.",
        "Hi {name}, thank you for your feedback. We are sorry parts of your visit did not meet "
        "your expectations. We are actively improving wait-time management and communication "
        "so your next visit feels more consistent and smooth. " + CANONICAL_HELP_LINE,
        "Hi {name}, we are truly sorry your visit fell short, and thank you for telling us "
        "about it. We own this, and our team is reviewing what happened so we can fix it and "
        "deliver a better experience next time. " + CANONICAL_HELP_LINE,
    ),
}
_TEMPLATES[ReplyStyle.DEFAULT] = _TEMPLATES[ReplyStyle.WARM_PERSONAL]


def _template_cap(style: ReplyStyle) -> int:
    plan = plan_for(style)
    return min(plan.max_words, TEMPLATE_MAX_WORDS) if plan else TEMPLATE_MAX_WORDS


def build_template_reply(reviewer_name: str, rating: int, style: ReplyStyle = ReplyStyle.DEFAULT) -> str:
    """Deterministic reply for a reviewer, rating and style."""
    high, mid, low = _TEMPLATES[style]
    if rating >= 4:
        template = high
    elif rating == 3:
        template = mid
    else:
        template = low
    return trim_to_word_limit(template.format(name=first_name(reviewer_name)), _template_cap(style))


def with_closing(text: str, closing: str, max_words: int) -> str:
    """
    Make `closing` the final sentence of `text` while staying within max_words.

    Earlier copies of the closing are dropped; the body is trimmed to
    make room.
    """
    body = ensure_sentence(text)
    if body.endswith(closing) and count_words(body) <= max_words:
        return body

    body = ensure_sentence(body.replace(closing, " "))
    budget = max_words - count_words(closing)
    if budget <= 0:
        return trim_to_word_limit(closing, max_words)
    body = trim_to_word_limit(body, budget) if body else ""
    return f"{body} {closing}".strip()


def build_fallback_option_set(base_reply: str, rating: int) -> List[str]:
    """
    Derive quick / warm / growth variants from one usable reply.

    Returns:
        [quick (<= 40 words), warm (<= 75 words), growth (<= 95 words)]
    """
    base = ensure_sentence(base_reply)
    quick = trim_to_word_limit(base, FALLBACK_QUICK_WORDS)
    warm = trim_to_word_limit(f"{base} {GRATITUDE_CLOSE}", FALLBACK_WARM_WORDS)
    if rating >= 4:
        growth = trim_to_word_limit(f"{warm} {POSITIVE_CLOSE}", FALLBACK_GROWTH_WORDS)
    else:
        growth = with_closing(warm, CANONICAL_HELP_LINE, FALLBACK_GROWTH_WORDS)
    return [quick, warm, growth]
