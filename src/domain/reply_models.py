"""
Reply Models - Data Types for Reply Generation
===============================================

ARCHITECTURAL DECISION:
- Plain dataclasses and Enums, no I/O and no framework imports
- One error type (ReplyGenerationError) carries every failure out of the core,
  tagged with a stable code and an HTTP status hint
- Style plans are static and ordered; the option set is always returned in
  STYLE_PLANS order
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


CANONICAL_HELP_LINE = "If you need any help or have any questions, please reach out."


class ReplyStyle(Enum):
    """Reply persona requested from the model."""
    DEFAULT = "default"
    QUICK_PRO = "quick_pro"
    WARM_PERSONAL = "warm_personal"
    GROWTH_RECOVERY = "growth_recovery"


class FinishReason(Enum):
    """Why the model stopped producing tokens."""
    COMPLETED = "completed"
    TRUNCATED = "truncated"
    UNKNOWN = "unknown"


class ErrorCode:
    """Stable tags carried by ReplyGenerationError.code."""
    MISSING_API_KEY = "missing_api_key"
    GATEWAY_UNREACHABLE = "gateway_unreachable"
    INVALID_RESPONSE = "invalid_response"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    MODEL_NOT_FOUND = "model_not_found"
    TIMEOUT = "timeout"
    INVALID_ARGUMENT = "invalid_argument"
    UPSTREAM_ERROR = "upstream_error"
    REQUEST_FAILED = "request_failed"
    INVALID_REASONING = "invalid_reasoning"
    OPTIONS_UNAVAILABLE = "options_unavailable"
    INVALID_REQUEST = "invalid_request"


class ReplyGenerationError(Exception):
    """
    The only error raised out of the reply generation core.

    Callers map `status` to their own response code and show `message`
    to the user. `code` is one of the ErrorCode tags.
    """

    def __init__(self, message: str, status: int = 500, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

    @property
    def is_rate_limit(self) -> bool:
        return self.code in (ErrorCode.RATE_LIMITED, ErrorCode.QUOTA_EXCEEDED)

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code or "reply_generation_error"}

    def __repr__(self) -> str:
        return f"ReplyGenerationError(code={self.code!r}, status={self.status}, message={self.message!r})"


@dataclass(frozen=True)
class ReplyRequest:
    """Caller input for one generation call. first_name is already derived."""
    reviewer_first_name: str
    star_rating: int
    review_text: str
    avoid_text: Optional[str] = None

    def with_avoid_text(self, avoid_text: Optional[str]) -> "ReplyRequest":
        return ReplyRequest(
            reviewer_first_name=self.reviewer_first_name,
            star_rating=self.star_rating,
            review_text=self.review_text,
            avoid_text=avoid_text,
        )


@dataclass(frozen=True)
class StylePlan:
    key: ReplyStyle
    label: str
    max_words: int
    max_output_tokens: int
    temperature: float


STYLE_PLANS: Tuple[StylePlan, ...] = (
    StylePlan(ReplyStyle.QUICK_PRO, "Quick Pro", 50, 110, 0.7),
    StylePlan(ReplyStyle.WARM_PERSONAL, "Warm Personal", 80, 160, 0.78),
    StylePlan(ReplyStyle.GROWTH_RECOVERY, "Growth/Recovery", 95, 200, 0.82),
)


def plan_for(style: ReplyStyle) -> Optional[StylePlan]:
    for plan in STYLE_PLANS:
        if plan.key == style:
            return plan
    return None


@dataclass(frozen=True)
class GenerationAttempt:
    model: str
    attempt_number: int
    output_token_budget: int
    temperature: float


@dataclass(frozen=True)
class GeneratedText:
    """Raw model output as returned by the gateway."""
    raw_text: str
    finish_reason: FinishReason = FinishReason.UNKNOWN
    output_token_count: int = 0

    @property
    def truncated(self) -> bool:
        return self.finish_reason == FinishReason.TRUNCATED


@dataclass(frozen=True)
class ReplyOption:
    key: ReplyStyle
    label: str
    text: str
    word_count: int

    def to_dict(self) -> dict:
        """JSON shape used by the dashboard (camelCase wordCount)."""
        return {
            "key": self.key.value,
            "label": self.label,
            "text": self.text,
            "wordCount": self.word_count,
        }
