"""
Reply Service - Composition Root for Reply Generation
=====================================================

Wires settings -> GeminiGateway -> ReplyOrchestrator -> ReplyOptionsBuilder.

The gateway (and its cached HTTP session) is owned here, not by a
module-level singleton inside the gateway. The web app creates one service
at startup and closes it on shutdown; scripts use get_reply_service().

USAGE:
    service = ReplyService(get_settings())
    options = service.generate_reply_options("Sarah M.", 5, "Amazing service!")
    for option in options:
        print(option.label, option.text)
    service.close()
"""

import logging
from functools import lru_cache
from typing import List, Optional

from ..domain.reply_models import ReplyOption, ReplyStyle
from ..infrastructure.config import Settings, get_settings
from ..infrastructure.llm import GeminiGateway, ModelGateway
from .option_set_builder import ReplyOptionsBuilder, validate_request
from .reply_orchestrator import ReplyOrchestrator

logger = logging.getLogger(__name__)


class ReplyService:
    """Function-call boundary of the reply generation core."""

    def __init__(self, settings: Settings, gateway: Optional[ModelGateway] = None):
        self._settings = settings
        self._gateway = gateway or GeminiGateway(settings.llm)
        self._orchestrator = ReplyOrchestrator(self._gateway, settings.llm)
        self._builder = ReplyOptionsBuilder(self._orchestrator)

        for issue in settings.validate():
            logger.warning(issue)

    @property
    def settings(self) -> Settings:
        return self._settings

    def generate_reply_options(
        self,
        reviewer_name: str,
        rating: int,
        review_text: str,
        avoid_reply_text: Optional[str] = None,
    ) -> List[ReplyOption]:
        """
        Draft three styled reply options for one review.

        Returns:
            [Quick Pro, Warm Personal, Growth/Recovery] options.

        Raises:
            ReplyGenerationError: invalid input, or generation failed.
        """
        request = validate_request(reviewer_name, rating, review_text, avoid_reply_text)
        logger.info(
            f"Generating reply options rating={request.star_rating} "
            f"review_chars={len(request.review_text)} avoid={'yes' if request.avoid_text else 'no'}"
        )
        return self._builder.generate_reply_options(request)

    def generate_reply_text(
        self,
        reviewer_name: str,
        rating: int,
        review_text: str,
        avoid_text: Optional[str] = None,
        style: Optional[ReplyStyle] = None,
        max_output_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Draft a single reply in one style (default style when omitted)."""
        request = validate_request(reviewer_name, rating, review_text, avoid_text)
        return self._orchestrator.generate_reply_text(
            request,
            style=style or ReplyStyle.DEFAULT,
            max_output_tokens=max_output_tokens,
            temperature=temperature,
        )

    def close(self) -> None:
        self._gateway.close()


@lru_cache(maxsize=1)
def get_reply_service() -> ReplyService:
    """Process-wide service built from get_settings()."""
    return ReplyService(get_settings())


def generate_reply_options(
    reviewer_name: str,
    rating: int,
    review_text: str,
    avoid_reply_text: Optional[str] = None,
) -> List[ReplyOption]:
    return get_reply_service().generate_reply_options(
        reviewer_name, rating, review_text, avoid_reply_text
    )


def generate_reply_text(
    reviewer_name: str,
    rating: int,
    review_text: str,
    avoid_text: Optional[str] = None,
    style: Optional[ReplyStyle] = None,
    max_output_tokens: Optional[int] = None,
    temperature: Optional[float] = None,
) -> str:
    return get_reply_service().generate_reply_text(
        reviewer_name,
        rating,
        review_text,
        avoid_text=avoid_text,
        style=style,
        max_output_tokens=max_output_tokens,
        temperature=temperature,
    )
