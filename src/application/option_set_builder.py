"""
Option Set Builder - Three Distinct Styled Reply Options
========================================================

ARCHITECTURAL DECISION:
- Styles are generated sequentially in STYLE_PLANS order; later styles may be
  regenerated using earlier texts as "avoid" context, so order matters
- Near-duplicates (lexical similarity >= 0.7) get ONE targeted regeneration
- Exact duplicates (case-insensitive) are replaced by deterministic variants
  derived from the first usable text, then by per-style templates
- Either exactly three valid options are returned or an error is raised;
  orchestrator errors propagate unchanged

USAGE:
    builder = ReplyOptionsBuilder(orchestrator)
    options = builder.generate_reply_options(validate_request("Sarah M.", 5, "Great!"))
"""

import logging
import math
import random
import re
import time
from typing import Callable, List, Optional, Set

from ..domain.reply_models import (
    CANONICAL_HELP_LINE,
    STYLE_PLANS,
    ErrorCode,
    ReplyGenerationError,
    ReplyOption,
    ReplyRequest,
    ReplyStyle,
    StylePlan,
)
from ..domain.templates import build_fallback_option_set, build_template_reply, with_closing
from ..domain.text_normalizer import count_words, first_name, trim_to_word_limit
from .reply_orchestrator import ReplyOrchestrator

logger = logging.getLogger(__name__)


SIMILARITY_THRESHOLD = 0.7
MIN_SIMILARITY_TOKEN_CHARS = 4
REWRITE_TEMPERATURE_BONUS = 0.06
MAX_REWRITE_TEMPERATURE = 0.92
DEFAULT_REVIEWER_NAME = "Customer"

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


# ── Similarity ─────────────────────────────────────────────────────

def similarity_tokens(text: str) -> Set[str]:
    cleaned = _NON_ALNUM.sub(" ", (text or "").lower())
    return {token for token in cleaned.split() if len(token) >= MIN_SIMILARITY_TOKEN_CHARS}


def lexical_similarity(a: str, b: str) -> float:
    """Shared 4+ character tokens divided by the smaller token set."""
    tokens_a = similarity_tokens(a)
    tokens_b = similarity_tokens(b)
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / min(len(tokens_a), len(tokens_b))


def is_too_similar(a: str, b: str) -> bool:
    return lexical_similarity(a, b) >= SIMILARITY_THRESHOLD


def create_variation_tag(scope: str) -> str:
    return f"{scope}-{int(time.time() * 1000):x}-{random.getrandbits(32):08x}"


# ── Input validation ───────────────────────────────────────────────

def validate_request(
    reviewer_name: Optional[str],
    rating,
    review_text: Optional[str],
    avoid_text: Optional[str] = None,
) -> ReplyRequest:
    """
    Build a ReplyRequest from caller values.

    Raises:
        ReplyGenerationError: code invalid_request (status 400) when the
        rating is not an integer 1-5 or the review text is empty.
    """
    # bool is an int subclass; a JSON true must not pass as 1 star
    if isinstance(rating, bool):
        value = math.nan
    else:
        try:
            value = float(rating)
        except (TypeError, ValueError):
            value = math.nan
    if not math.isfinite(value) or value != int(value) or not 1 <= value <= 5:
        raise ReplyGenerationError(
            "Rating must be a number between 1 and 5.", 400, ErrorCode.INVALID_REQUEST
        )

    text = (review_text or "").strip()
    if not text:
        raise ReplyGenerationError("Review text is required.", 400, ErrorCode.INVALID_REQUEST)

    return ReplyRequest(
        reviewer_first_name=first_name((reviewer_name or "").strip() or DEFAULT_REVIEWER_NAME),
        star_rating=int(value),
        review_text=text,
        avoid_text=(avoid_text or "").strip() or None,
    )


# ── Builder ────────────────────────────────────────────────────────

class ReplyOptionsBuilder:
    """Produces the Quick Pro / Warm Personal / Growth-Recovery option set."""

    def __init__(
        self,
        orchestrator: ReplyOrchestrator,
        tag_factory: Callable[[str], str] = create_variation_tag,
    ):
        self._orchestrator = orchestrator
        self._tag = tag_factory

    def generate_reply_options(self, request: ReplyRequest) -> List[ReplyOption]:
        run_tag = self._tag("regen")

        texts: List[str] = []
        for plan in STYLE_PLANS:
            texts.append(
                self._generate(
                    request,
                    plan,
                    avoid_text=request.avoid_text,
                    temperature=plan.temperature,
                    variation_tag=self._tag(f"{run_tag}-{plan.key.value}"),
                )
            )

        for index in range(1, len(STYLE_PLANS)):
            previous = texts[:index]
            if not any(is_too_similar(earlier, texts[index]) for earlier in previous):
                continue

            plan = STYLE_PLANS[index]
            logger.info(f"Option {plan.key.value} too similar to an earlier option, regenerating")
            stronger_avoid = " ".join(t for t in [request.avoid_text] + previous if t)
            texts[index] = self._generate(
                request,
                plan,
                avoid_text=stronger_avoid,
                temperature=min(plan.temperature + REWRITE_TEMPERATURE_BONUS, MAX_REWRITE_TEMPERATURE),
                variation_tag=self._tag(f"{run_tag}-{plan.key.value}-rewrite"),
            )

        texts = self._fill_duplicates(request, texts)

        return [
            ReplyOption(key=plan.key, label=plan.label, text=text, word_count=count_words(text))
            for plan, text in zip(STYLE_PLANS, texts)
        ]

    def _generate(
        self,
        request: ReplyRequest,
        plan: StylePlan,
        avoid_text: Optional[str],
        temperature: float,
        variation_tag: str,
    ) -> str:
        text = self._orchestrator.generate_reply_text(
            request.with_avoid_text(avoid_text),
            style=plan.key,
            max_output_tokens=plan.max_output_tokens,
            temperature=temperature,
            variation_tag=variation_tag,
        )
        return self._finalize(plan, text, request.star_rating)

    @staticmethod
    def _finalize(plan: StylePlan, text: str, rating: int) -> str:
        """Cap to the style's word budget; low-rating recovery ends with the help line."""
        text = trim_to_word_limit(text, plan.max_words)
        if plan.key == ReplyStyle.GROWTH_RECOVERY and rating < 4:
            text = with_closing(text, CANONICAL_HELP_LINE, plan.max_words)
        return text

    def _fill_duplicates(self, request: ReplyRequest, texts: List[str]) -> List[str]:
        """Replace empty or duplicate slots without ever repeating a text."""
        slots: List[Optional[str]] = []
        seen: Set[str] = set()
        for text in texts:
            if text and text.lower() not in seen:
                seen.add(text.lower())
                slots.append(text)
            else:
                slots.append(None)

        if all(slots):
            return slots

        rating = request.star_rating
        seed = next((t for t in texts if t), None) or build_template_reply(
            request.reviewer_first_name, rating, ReplyStyle.WARM_PERSONAL
        )
        fallback = build_fallback_option_set(seed, rating)
        logger.info(f"Backfilling {slots.count(None)} duplicate option(s) from fallback variants")

        for index, plan in enumerate(STYLE_PLANS):
            if slots[index] is not None:
                continue

            candidates = [fallback[index]] + [f for i, f in enumerate(fallback) if i != index]
            candidates.append(build_template_reply(request.reviewer_first_name, rating, plan.key))

            for candidate in candidates:
                candidate = self._finalize(plan, candidate, rating)
                if candidate and candidate.lower() not in seen:
                    seen.add(candidate.lower())
                    slots[index] = candidate
                    break
            else:
                raise ReplyGenerationError(
                    "Unable to build three distinct reply options.",
                    502,
                    ErrorCode.OPTIONS_UNAVAILABLE,
                )

        return slots
