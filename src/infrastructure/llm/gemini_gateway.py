"""
Gemini Gateway - Single LLM Generation Call
===========================================

ARCHITECTURAL DECISION:
- Uses the Gemini generateContent REST endpoint directly via requests
- Executes exactly ONE call per generate(); retries belong to the orchestrator
- Every failure leaves this module as a ReplyGenerationError with a stable
  code, so higher layers match on the tag and never inspect raw exceptions
- One requests.Session per credential signature, rebuilt when the
  base URL or API key changes

ERROR TAGS:
- missing_api_key      no credential configured (raised before any I/O)
- gateway_unreachable  DNS/connection failure, including a connect timeout
- timeout              no complete answer within AI_REPLY_TIMEOUT_MS (whole call)
- invalid_response     body is not JSON
- unauthorized/forbidden, rate_limited/quota_exceeded, model_not_found,
  invalid_argument, upstream_error, request_failed
"""

import json
import logging
import time
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

import requests

from ..config import LLMSettings
from .model_gateway import ModelGateway
from ...domain.prompt_builder import REPLY_SYSTEM_PROMPT
from ...domain.reply_models import (
    ErrorCode,
    FinishReason,
    GeneratedText,
    ReplyGenerationError,
)

logger = logging.getLogger(__name__)


BODY_CHUNK_BYTES = 8192

UNREACHABLE_MESSAGE = (
    "Unable to reach AI gateway. Verify GEMINI_API_BASE and ensure your tunnel/server is online."
)

FINISH_REASONS = {
    "STOP": FinishReason.COMPLETED,
    "MAX_TOKENS": FinishReason.TRUNCATED,
}

QUOTA_STATUSES = {"RESOURCE_EXHAUSTED", "insufficient_quota"}


def classify_http_error(status: int, provider_status: str = "", message: str = "") -> ReplyGenerationError:
    """
    Map an upstream HTTP failure onto a tagged ReplyGenerationError.

    Args:
        status: HTTP status code of the response.
        provider_status: Gemini's error.status (e.g. "NOT_FOUND").
        message: Gemini's error.message, if any.
    """
    if provider_status in QUOTA_STATUSES:
        return ReplyGenerationError(
            "Gemini quota exceeded. Check Google AI Studio usage/billing, then retry.",
            429,
            ErrorCode.QUOTA_EXCEEDED,
        )

    if status == 401 or provider_status == "UNAUTHENTICATED":
        return ReplyGenerationError(
            "Gemini API key is invalid. Update GEMINI_API_KEY.",
            401,
            ErrorCode.UNAUTHORIZED,
        )

    if status == 403 or provider_status == "PERMISSION_DENIED":
        return ReplyGenerationError(
            "Gemini API key is missing permissions for this model. Update GEMINI_API_KEY.",
            403,
            ErrorCode.FORBIDDEN,
        )

    if status == 429:
        return ReplyGenerationError(
            "Gemini rate limit reached. Please retry in a few seconds.",
            429,
            ErrorCode.RATE_LIMITED,
        )

    if status == 404 or provider_status == "NOT_FOUND":
        return ReplyGenerationError(
            "Configured Gemini model is unavailable for this account.",
            400,
            ErrorCode.MODEL_NOT_FOUND,
        )

    if status == 400 or provider_status == "INVALID_ARGUMENT":
        return ReplyGenerationError(
            message or "Gemini rejected the request as invalid.",
            400,
            ErrorCode.INVALID_ARGUMENT,
        )

    if status >= 500:
        return ReplyGenerationError(
            message or f"Gemini request failed with {status}.",
            status,
            ErrorCode.UPSTREAM_ERROR,
        )

    return ReplyGenerationError(
        message or f"Gemini request failed with {status}.",
        status or 500,
        ErrorCode.REQUEST_FAILED,
    )


def parse_generation(data: Dict[str, Any]) -> GeneratedText:
    """Extract text, finish reason and token usage from a generateContent body."""
    candidates = data.get("candidates") or []
    candidate = candidates[0] if candidates and isinstance(candidates[0], dict) else {}
    parts = (candidate.get("content") or {}).get("parts") or []
    text = "".join(
        str(part.get("text") or "") for part in parts if isinstance(part, dict)
    ).strip()

    usage = data.get("usageMetadata") or {}
    try:
        tokens = int(usage.get("candidatesTokenCount") or 0)
    except (TypeError, ValueError):
        tokens = 0

    return GeneratedText(
        raw_text=text,
        finish_reason=FINISH_REASONS.get(str(candidate.get("finishReason") or ""), FinishReason.UNKNOWN),
        output_token_count=tokens,
    )


class GeminiGateway(ModelGateway):
    """
    One Gemini generateContent call per generate().

    USAGE:
        gateway = GeminiGateway(get_settings().llm)
        result = gateway.generate("gemini-2.5-flash", prompt, 140, 0.62)
        print(result.raw_text, result.finish_reason)

    The gateway owns its requests.Session; call close() on shutdown.
    """

    def __init__(
        self,
        settings: LLMSettings,
        session_factory: Callable[[], requests.Session] = requests.Session,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._settings = settings
        self._session_factory = session_factory
        self._clock = clock
        self._session: Optional[requests.Session] = None
        self._session_signature: Optional[tuple] = None

    @property
    def settings(self) -> LLMSettings:
        return self._settings

    def configure(self, settings: LLMSettings) -> None:
        """Swap settings; the session is rebuilt lazily if the credential changed."""
        self._settings = settings

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
            self._session_signature = None

    def _get_session(self) -> requests.Session:
        signature = self._settings.client_signature
        if self._session is None or self._session_signature != signature:
            if self._session is not None:
                logger.info("Gemini configuration changed, rebuilding HTTP session")
                self._session.close()
            self._session = self._session_factory()
            self._session_signature = signature
        return self._session

    def _build_url(self, model: str) -> str:
        return (
            f"{self._settings.api_base}/models/{quote(model, safe='')}:generateContent"
            f"?key={quote(self._settings.api_key, safe='')}"
        )

    def _read_body(self, response: requests.Response, deadline: float) -> bytes:
        """Read the streamed body, giving up once the call deadline has passed."""
        chunks = []
        try:
            for chunk in response.iter_content(chunk_size=BODY_CHUNK_BYTES):
                chunks.append(chunk)
                if self._clock() > deadline:
                    raise requests.ReadTimeout("Gemini response exceeded the call deadline")
        finally:
            response.close()
        return b"".join(chunks)

    def generate(
        self,
        model: str,
        prompt: str,
        max_output_tokens: int,
        temperature: float,
    ) -> GeneratedText:
        """
        Run one generation call.

        Raises:
            ReplyGenerationError: tagged with one of the ErrorCode values.
        """
        if not self._settings.api_key:
            raise ReplyGenerationError("GEMINI_API_KEY is missing.", 500, ErrorCode.MISSING_API_KEY)

        payload = {
            "systemInstruction": {"parts": [{"text": REPLY_SYSTEM_PROMPT}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_output_tokens,
                "responseMimeType": "text/plain",
            },
        }

        logger.debug(
            f"Gemini call model={model} prompt_chars={len(prompt)} "
            f"max_tokens={max_output_tokens} temperature={temperature:.2f}"
        )

        timeout = self._settings.timeout_seconds
        deadline = self._clock() + timeout
        try:
            response = self._get_session().post(
                self._build_url(model),
                headers={"Content-Type": "application/json"},
                json=payload,
                timeout=(timeout, timeout),
                stream=True,
            )
            body = self._read_body(response, deadline)
        except requests.ConnectTimeout as e:
            logger.warning(f"Gemini connect timed out after {self._settings.timeout_ms}ms (model={model})")
            raise ReplyGenerationError(UNREACHABLE_MESSAGE, 502, ErrorCode.GATEWAY_UNREACHABLE) from e
        except requests.Timeout:
            logger.warning(f"Gemini call timed out after {self._settings.timeout_ms}ms (model={model})")
            raise ReplyGenerationError(
                "AI generation timed out. Please try again.", 504, ErrorCode.TIMEOUT
            )
        except requests.RequestException as e:
            logger.warning(f"Gemini gateway unreachable (model={model}): {e.__class__.__name__}")
            raise ReplyGenerationError(UNREACHABLE_MESSAGE, 502, ErrorCode.GATEWAY_UNREACHABLE) from e

        try:
            data = json.loads(body) if body else {}
        except ValueError:
            logger.warning(f"Gemini returned non-JSON body (model={model}, status={response.status_code})")
            message = (
                "AI provider returned a non-JSON response."
                if response.ok
                else f"AI provider returned an unexpected response (HTTP {response.status_code})."
            )
            raise ReplyGenerationError(message, response.status_code or 502, ErrorCode.INVALID_RESPONSE)

        if not isinstance(data, dict):
            raise ReplyGenerationError(
                "AI provider returned an unexpected response shape.",
                502,
                ErrorCode.INVALID_RESPONSE,
            )

        if not response.ok:
            error = data.get("error") or {}
            provider_status = str(error.get("status") or error.get("code") or "")
            classified = classify_http_error(
                response.status_code,
                provider_status=provider_status,
                message=str(error.get("message") or ""),
            )
            logger.warning(
                f"Gemini call failed model={model} status={response.status_code} "
                f"code={classified.code}"
            )
            raise classified

        return parse_generation(data)
