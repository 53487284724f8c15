"""
Text Normalizer - Turns Raw Model Output Into a Safe Reply
==========================================================

ARCHITECTURAL DECISION:
- Pure string functions, no I/O
- Every heuristic lives in a rule table (list of compiled patterns) so
  rules can be extended and tested without touching control flow
- Contact details are never passed through: any sentence asking the
  customer to call/email/visit is replaced by CANONICAL_HELP_LINE

USAGE:
    text = ensure_sentence(raw)
    if is_internal_reasoning_leak(text) or is_likely_incomplete(text):
        ...
    text = trim_to_word_limit(text, 50)
"""

import re
from typing import List

from .reply_models import CANONICAL_HELP_LINE


# ── Rule tables ────────────────────────────────────────────────────

# (pattern, replacement) applied in order
PLACEHOLDER_RULES = [
    (re.compile(r"\[Your Business Name\]\s*Team", re.I), "our team"),
    (re.compile(r"\[Your Business Name\]", re.I), "our business"),
    (re.compile(r"\[(?:your|insert|business|customer|owner)\b[^\]]*\]", re.I), ""),
]

# A sentence asking the reader to make contact is rewritten to CANONICAL_HELP_LINE.
# The business's own follow-up ("I will reach out to our manager") is left alone.
CONTACT_REQUEST_PATTERNS = [
    re.compile(r"\b(call|text|email|e-mail|dm|message)\s+(us|me)\b", re.I),
    re.compile(r"\bcontact\s+us\s+directly\b", re.I),
    re.compile(r"\breach\s+us\s+at\b", re.I),
    re.compile(r"\b(visit|stop\s+by)\s+(us|our)\s+(at|on)\b", re.I),
    re.compile(r"\breach\s+out\s+to\s+us\b", re.I),
    re.compile(
        r"\b(please|feel\s+free\s+to|don'?t\s+hesitate\s+to|do\s+not\s+hesitate\s+to|you\s+can|you\s+may)"
        r"(\s+(always|also|just|simply|directly|again))?\s+reach\s+out\b",
        re.I,
    ),
]

# Removed outright, after contact sentences are rewritten
CONTACT_TOKEN_PATTERNS = [
    re.compile(r"\b[\w.+-]+@[\w-]+(?:\.[\w-]+)*\.[A-Za-z]{2,}\b"),
    re.compile(r"\bhttps?://\S+", re.I),
    re.compile(r"\bwww\.\S+", re.I),
    re.compile(r"\+?\d[\d\s().-]{6,}\d"),
    re.compile(r"(?<!\w)@\w+"),
]

REASONING_LEAK_PATTERNS = [
    re.compile(r"\bthe user wants me to\b", re.I),
    re.compile(r"\blet me break (it|this) down\b", re.I),
    re.compile(r"\bi need to\b", re.I),
    re.compile(r"\bfirst,\s*i see\b", re.I),
    re.compile(r"\bword count requirement\b", re.I),
    re.compile(r"\brequirements?\b", re.I),
    re.compile(r"\bmy response should\b", re.I),
    re.compile(r"\bhere'?s my (analysis|reasoning)\b", re.I),
]

# (opener, cue): leak when the text starts with the opener AND contains the cue
REASONING_LEAK_COMPOUND_RULES = [
    (
        re.compile(r"^(okay|alright|sure|let me)\b", re.I),
        re.compile(r"the user|i need to|break this down", re.I),
    ),
]

DANGLING_WORDS = frozenset(
    ["and", "or", "to", "for", "with", "because", "so", "that", "if", "but"]
)

MIN_COMPLETE_WORDS = 14

_WS = re.compile(r"\s+")
_SPACE_BEFORE_PUNCT = re.compile(r"\s+([.,!?;:])")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|(?<=[.!?][\"'”’])\s+")
_SENTENCE_FIND = re.compile(r"[^.!?]+[.!?]+[\"'”’]?")
_TERMINAL = re.compile(r"[.!?][\"'”’]?$")
_TRAILING_JUNK = re.compile(r"[\s,;:\-–—]+$")
_DANGLING_END = re.compile(r"\b(" + "|".join(sorted(DANGLING_WORDS)) + r")[,;:]*\s*$", re.I)


# ── Basic helpers ──────────────────────────────────────────────────

def count_words(text: str) -> int:
    return len((text or "").split())


def ends_with_sentence(text: str) -> bool:
    return bool(_TERMINAL.search((text or "").strip()))


def first_name(name: str) -> str:
    """First token of the reviewer name, letters/apostrophes/hyphens only."""
    parts = (name or "").strip().split()
    if not parts:
        return "there"
    return re.sub(r"[^A-Za-z'-]", "", parts[0]) or "there"


def split_sentences(text: str) -> List[str]:
    return [s for s in _SENTENCE_SPLIT.split((text or "").strip()) if s]


# ── Sanitization ───────────────────────────────────────────────────

def _rewrite_contact_requests(text: str) -> str:
    kept: List[str] = []
    for sentence in split_sentences(text):
        if any(p.search(sentence) for p in CONTACT_REQUEST_PATTERNS):
            sentence = CANONICAL_HELP_LINE
        if sentence == CANONICAL_HELP_LINE and CANONICAL_HELP_LINE in kept:
            continue
        kept.append(sentence)
    return " ".join(kept)


def sanitize(text: str) -> str:
    """
    Remove placeholders and contact details from model output.

    Contact *requests* become the canonical help line; bare emails,
    URLs, handles and phone numbers are dropped. Whitespace is collapsed.
    """
    cleaned = (text or "").replace("\x00", " ")
    for pattern, replacement in PLACEHOLDER_RULES:
        cleaned = pattern.sub(replacement, cleaned)

    cleaned = _WS.sub(" ", cleaned).strip()
    cleaned = _rewrite_contact_requests(cleaned)

    for pattern in CONTACT_TOKEN_PATTERNS:
        cleaned = pattern.sub("", cleaned)

    cleaned = _WS.sub(" ", cleaned).strip()
    cleaned = _SPACE_BEFORE_PUNCT.sub(r"\1", cleaned)
    return cleaned


def _terminate(text: str) -> str:
    """Append a period unless the text already ends a sentence."""
    text = (text or "").strip()
    if not text or ends_with_sentence(text):
        return text
    text = _TRAILING_JUNK.sub("", text)
    return f"{text}." if text else ""


def ensure_sentence(text: str) -> str:
    return _terminate(sanitize(text))


# ── Quality checks ─────────────────────────────────────────────────

def is_likely_incomplete(text: str) -> bool:
    cleaned = (text or "").strip()
    if not cleaned:
        return True
    if count_words(cleaned) < MIN_COMPLETE_WORDS:
        return True
    if not ends_with_sentence(cleaned):
        return True
    return bool(_DANGLING_END.search(cleaned))


def is_internal_reasoning_leak(text: str) -> bool:
    """True when the text reads like the model's planning notes."""
    normalized = (text or "").strip()
    if not normalized:
        return False

    for opener, cue in REASONING_LEAK_COMPOUND_RULES:
        if opener.search(normalized) and cue.search(normalized):
            return True

    return any(p.search(normalized) for p in REASONING_LEAK_PATTERNS)


# ── Length control ─────────────────────────────────────────────────

def trim_to_word_limit(text: str, max_words: int) -> str:
    """
    Bound a reply to max_words.

    Whole leading sentences are kept when they fit; otherwise the text is
    hard-cut and re-terminated. The result never exceeds max_words.
    """
    if max_words <= 0:
        return ""

    normalized = ensure_sentence(text)
    words = normalized.split()
    if len(words) <= max_words:
        return normalized

    sentences = [s.strip() for s in _SENTENCE_FIND.findall(normalized)]
    if len(sentences) > 1:
        kept: List[str] = []
        for sentence in sentences:
            if count_words(" ".join(kept + [sentence])) > max_words:
                break
            kept.append(sentence)
        if kept:
            return _terminate(" ".join(kept))

    cut = words[:max_words]
    while len(cut) > 1 and cut[-1].lower().strip(",;:") in DANGLING_WORDS:
        cut.pop()
    return _terminate(" ".join(cut))
