"""
Reply Drafting CLI
==================

Drafts the three reply options (or a single reply) for one review and
prints them. Uses the same settings and generation core as the web API.

Examples:
    python generate_replies.py --name "Sarah M." --rating 5 --text "Amazing service and friendly staff."
    python generate_replies.py --rating 1 --text "Terrible wait times." --style growth_recovery
    python generate_replies.py --rating 4 --text "Good food." --avoid "Thanks for the kind words!"
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from src.application.reply_service import ReplyService
from src.domain.reply_models import ReplyGenerationError, ReplyStyle
from src.infrastructure.config import get_settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Draft AI replies for a Google review.")
    parser.add_argument("--name", default="Customer", help="Reviewer display name")
    parser.add_argument("--rating", type=int, required=True, help="Star rating 1-5")
    parser.add_argument("--text", required=True, help="Review text")
    parser.add_argument("--avoid", default=None, help="Previous draft to steer away from")
    parser.add_argument(
        "--style",
        choices=[style.value for style in ReplyStyle],
        default=None,
        help="Draft a single reply in this style instead of three options",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def run(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    service = ReplyService(settings)
    try:
        if args.style:
            text = service.generate_reply_text(
                args.name,
                args.rating,
                args.text,
                avoid_text=args.avoid,
                style=ReplyStyle(args.style),
            )
            print(f"\n{text}\n")
            return 0

        options = service.generate_reply_options(args.name, args.rating, args.text, args.avoid)
    except ReplyGenerationError as e:
        logger.error(f"Reply generation failed: {e.message} (code={e.code}, status={e.status})")
        return 1
    finally:
        service.close()

    print("\n" + "=" * 60)
    print(f"   Reply options for {args.name} ({args.rating}★)")
    print("=" * 60)
    for option in options:
        print(f"\n{option.label} ({option.word_count} words)")
        print(f"   {option.text}")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(run())
