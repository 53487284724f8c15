"""
Reply Orchestrator - Multi-Model Retry and Fallback for One Reply
=================================================================

ARCHITECTURAL DECISION:
- Explicit state machine instead of ad hoc nested loops:

      SelectModel -> Attempt -> Classify -> ACCEPT      (return text)
                                         -> RETRY       (next attempt, same model)
                                         -> NEXT_MODEL  (skip remaining attempts)
                                         -> ABORT       (raise immediately)

- Transitions are pure functions (classify_error / classify_output) so the
  table is testable without any network I/O
- Each call owns its own GenerationState; nothing is shared between requests

EXHAUSTION POLICY (no attempt accepted):
1. best candidate, if complete
2. best candidate sentence-normalized, if non-empty and not a leak
3. template reply, if the last problem was leaked reasoning
4. remembered rate-limit error, else the last error
5. template reply when no error was ever captured
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..domain.prompt_builder import build_reply_prompt
from ..domain.reply_models import (
    ErrorCode,
    FinishReason,
    GenerationAttempt,
    ReplyGenerationError,
    ReplyRequest,
    ReplyStyle,
)
from ..domain.templates import build_template_reply
from ..domain.text_normalizer import (
    ensure_sentence,
    is_internal_reasoning_leak,
    is_likely_incomplete,
)
from ..infrastructure.config import LLMSettings
from ..infrastructure.llm import ModelGateway

logger = logging.getLogger(__name__)


DEFAULT_OUTPUT_TOKENS = 140
MIN_OUTPUT_TOKENS = 30
RETRY_TOKEN_BONUS = 60
MAX_OUTPUT_TOKENS = 260
DEFAULT_TEMPERATURE = 0.62
RETRY_TEMPERATURE_BONUS = 0.04
MAX_TEMPERATURE = 0.95


class Decision(Enum):
    ACCEPT = "accept"
    RETRY = "retry"
    RETRY_RATE_LIMITED = "retry_rate_limited"
    NEXT_MODEL = "next_model"
    ABORT = "abort"


class OutputVerdict(Enum):
    ACCEPT = "accept"
    INCOMPLETE = "incomplete"
    LEAK = "leak"


# ── Transition table ───────────────────────────────────────────────

FATAL_CODES = frozenset([ErrorCode.MISSING_API_KEY, ErrorCode.GATEWAY_UNREACHABLE])
NEXT_MODEL_CODES = frozenset([ErrorCode.MODEL_NOT_FOUND])
RATE_LIMIT_CODES = frozenset([ErrorCode.RATE_LIMITED, ErrorCode.QUOTA_EXCEEDED])
TRANSIENT_CODES = frozenset([
    ErrorCode.INVALID_ARGUMENT,
    ErrorCode.INVALID_RESPONSE,
    ErrorCode.TIMEOUT,
    ErrorCode.UPSTREAM_ERROR,
])


def classify_error(error: ReplyGenerationError, attempt_number: int) -> Decision:
    """Next state after a gateway failure on the given attempt (1-based)."""
    if error.code in FATAL_CODES:
        return Decision.ABORT
    if error.code in NEXT_MODEL_CODES:
        return Decision.NEXT_MODEL
    if error.code in RATE_LIMIT_CODES:
        return Decision.RETRY if attempt_number == 1 else Decision.RETRY_RATE_LIMITED
    if error.code in TRANSIENT_CODES or error.status >= 500:
        return Decision.RETRY
    return Decision.ABORT


def classify_output(text: str, finish_reason: FinishReason) -> OutputVerdict:
    """Verdict on a normalized model output."""
    if is_internal_reasoning_leak(text):
        return OutputVerdict.LEAK
    if finish_reason == FinishReason.TRUNCATED or is_likely_incomplete(text):
        return OutputVerdict.INCOMPLETE
    return OutputVerdict.ACCEPT


def plan_attempt(
    model: str,
    attempt_number: int,
    base_tokens: int,
    base_temperature: float,
) -> GenerationAttempt:
    """Later attempts get a slightly larger budget and a warmer temperature."""
    if attempt_number == 1:
        return GenerationAttempt(model, attempt_number, base_tokens, base_temperature)
    return GenerationAttempt(
        model,
        attempt_number,
        min(base_tokens + RETRY_TOKEN_BONUS, MAX_OUTPUT_TOKENS),
        min(base_temperature + RETRY_TEMPERATURE_BONUS, MAX_TEMPERATURE),
    )


@dataclass
class GenerationState:
    """Per-call bookkeeping; never shared across requests."""
    best_candidate: str = ""
    last_error: Optional[ReplyGenerationError] = None
    rate_limit_error: Optional[ReplyGenerationError] = None
    accepted: Optional[str] = None
    calls: int = 0

    def offer(self, text: str) -> None:
        if len(text) > len(self.best_candidate):
            self.best_candidate = text


class ReplyOrchestrator:
    """
    Drives model/attempt iteration for a single reply.

    USAGE:
        orchestrator = ReplyOrchestrator(GeminiGateway(settings.llm), settings.llm)
        text = orchestrator.generate_reply_text(request, ReplyStyle.QUICK_PRO)
    """

    def __init__(self, gateway: ModelGateway, settings: LLMSettings):
        self._gateway = gateway
        self._settings = settings

    def generate_reply_text(
        self,
        request: ReplyRequest,
        style: ReplyStyle = ReplyStyle.DEFAULT,
        max_output_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        variation_tag: Optional[str] = None,
    ) -> str:
        """
        Generate one customer-facing reply.

        Returns:
            Sentence-normalized reply text (never a reasoning leak).

        Raises:
            ReplyGenerationError: fatal errors immediately; otherwise the
            remembered error once every model and attempt is exhausted.
        """
        base_tokens = (
            max_output_tokens
            if max_output_tokens and max_output_tokens > MIN_OUTPUT_TOKENS
            else DEFAULT_OUTPUT_TOKENS
        )
        base_temperature = (
            float(temperature)
            if temperature is not None and math.isfinite(temperature)
            else DEFAULT_TEMPERATURE
        )
        state = GenerationState()

        for model in self._settings.models:
            for attempt_number in range(1, self._settings.max_attempts + 1):
                attempt = plan_attempt(model, attempt_number, base_tokens, base_temperature)
                decision = self._run_attempt(request, style, attempt, variation_tag, state)

                if decision == Decision.ACCEPT:
                    logger.info(
                        f"Reply accepted style={style.value} model={model} "
                        f"attempt={attempt_number} calls={state.calls}"
                    )
                    return state.accepted
                if decision == Decision.ABORT:
                    raise state.last_error
                if decision == Decision.NEXT_MODEL:
                    logger.warning(f"Model {model} unavailable, moving to next configured model")
                    break

        return self._resolve_exhausted(request, style, state)

    def _run_attempt(
        self,
        request: ReplyRequest,
        style: ReplyStyle,
        attempt: GenerationAttempt,
        variation_tag: Optional[str],
        state: GenerationState,
    ) -> Decision:
        prompt = build_reply_prompt(
            request,
            style,
            variation_tag=f"{variation_tag}-a{attempt.attempt_number}" if variation_tag else None,
        )
        state.calls += 1
        try:
            result = self._gateway.generate(
                attempt.model,
                prompt,
                attempt.output_token_budget,
                attempt.temperature,
            )
        except ReplyGenerationError as error:
            state.last_error = error
            decision = classify_error(error, attempt.attempt_number)
            if decision == Decision.RETRY_RATE_LIMITED:
                state.rate_limit_error = error
            if decision != Decision.ABORT:
                logger.warning(
                    f"Attempt {attempt.attempt_number} on {attempt.model} failed "
                    f"code={error.code} -> {decision.value}"
                )
            return decision

        cleaned = ensure_sentence(result.raw_text)
        verdict = classify_output(cleaned, result.finish_reason)

        if verdict == OutputVerdict.LEAK:
            logger.warning(f"Discarded internal reasoning from {attempt.model}")
            state.last_error = ReplyGenerationError(
                "AI returned internal reasoning instead of a customer-facing reply.",
                502,
                ErrorCode.INVALID_REASONING,
            )
            return Decision.RETRY

        state.offer(cleaned)
        if verdict == OutputVerdict.ACCEPT:
            state.accepted = cleaned
            return Decision.ACCEPT
        return Decision.RETRY

    def _resolve_exhausted(self, request: ReplyRequest, style: ReplyStyle, state: GenerationState) -> str:
        best = state.best_candidate
        if best and not is_likely_incomplete(best):
            return best

        if best and not is_internal_reasoning_leak(best):
            logger.warning(f"Using incomplete best candidate for style={style.value}")
            return ensure_sentence(best)

        template = build_template_reply(request.reviewer_first_name, request.star_rating, style)

        last_error = state.last_error
        if last_error is not None and last_error.code == ErrorCode.INVALID_REASONING:
            logger.warning(f"Only reasoning leaks received, using template for style={style.value}")
            return template

        if last_error is not None:
            raise state.rate_limit_error or last_error

        logger.warning(f"No model output for style={style.value}, using template")
        return template
