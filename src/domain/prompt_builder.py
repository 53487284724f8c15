"""
Prompt Builder - Style-Specific Generation Instructions
=======================================================

ARCHITECTURAL DECISION:
- Deterministic: same request + style + variation tag -> same prompt
- Per-style requirements are lookup tables, not branches scattered
  through the orchestrator
- The variation tag only perturbs sampling; the model is told never
  to output it
"""

from typing import Dict, List, Optional

from .reply_models import CANONICAL_HELP_LINE, ReplyRequest, ReplyStyle


AVOID_EXCERPT_CHARS = 260

REPLY_SYSTEM_PROMPT = (
    "You are a professional, warm, and friendly business owner responding to a Google review. "
    "Write genuine, human-sounding replies in under 100 words. "
    "Match the tone to the star rating: enthusiastic and grateful for 4-5 stars, "
    "empathetic and solution-focused for 1-3 stars. "
    "Never sound corporate or robotic. Never mention you are AI. "
    "Use the reviewer's first name if available. "
    "Never include phone numbers, email addresses, website URLs, social handles, "
    "physical addresses, or directions. "
    "Do not ask users to call/email/visit a specific contact channel. "
    f'If help is needed, use this exact line: "{CANONICAL_HELP_LINE}" '
    "Return only the final customer-facing reply text with no analysis, "
    "no planning notes, and no self-references."
)

STYLE_REQUIREMENTS: Dict[ReplyStyle, List[str]] = {
    ReplyStyle.QUICK_PRO: [
        "- Style: Quick Pro",
        "- 25 to 50 words",
        "- Concise and polished",
        "- Maximum 2 sentences",
        "- Prioritize clarity and professionalism",
    ],
    ReplyStyle.WARM_PERSONAL: [
        "- Style: Warm Personal",
        "- 45 to 80 words",
        "- Warm and personable tone",
        "- Mention appreciation and one specific detail from the review",
        "- Keep it natural and human",
    ],
    ReplyStyle.DEFAULT: [
        "- Style: Professional default",
        "- 35 to 90 words",
        "- Natural, specific, and complete",
        "- Professional and friendly",
    ],
}

GROWTH_REQUIREMENTS = [
    "- Style: Growth",
    "- 55 to 95 words",
    "- Thank them and reinforce trust",
    "- Include a subtle invitation to return",
    "- Keep wording premium and professional",
]

RECOVERY_REQUIREMENTS = [
    "- Style: Recovery",
    "- 55 to 95 words",
    "- Lead with empathy and accountability",
    "- Mention concrete improvement focus",
    f'- End with: "{CANONICAL_HELP_LINE}"',
]

GLOBAL_CONSTRAINTS = [
    "- Do not include placeholders",
    "- Never include phone, email, URL, social, or address details",
    "- Never ask them to contact a specific channel",
    f'- If help is needed, use exactly: "{CANONICAL_HELP_LINE}"',
    "- Return only the final customer-facing reply text",
    "- Never include analysis, reasoning, planning, or process notes",
    '- Never write phrases like "the user", "I need to", or "let me break this down"',
    "- One paragraph only",
    "- End with a complete sentence and punctuation",
]

AVOID_CONSTRAINT = "- Use clearly different wording and sentence structure from the existing draft"


def style_requirements(style: ReplyStyle, rating: int) -> List[str]:
    if style == ReplyStyle.GROWTH_RECOVERY:
        return list(GROWTH_REQUIREMENTS if rating >= 4 else RECOVERY_REQUIREMENTS)
    return list(STYLE_REQUIREMENTS.get(style, STYLE_REQUIREMENTS[ReplyStyle.DEFAULT]))


def avoid_excerpt(avoid_text: Optional[str]) -> str:
    return (avoid_text or "").strip()[:AVOID_EXCERPT_CHARS]


def build_reply_prompt(
    request: ReplyRequest,
    style: ReplyStyle = ReplyStyle.DEFAULT,
    variation_tag: Optional[str] = None,
) -> str:
    """
    Build the user prompt for one reply in one style.

    Args:
        request: Reviewer, rating, review text and optional avoid text.
        style: Requested reply style.
        variation_tag: Opaque marker used only to diversify output.

    Returns:
        Newline-joined instruction text.
    """
    excerpt = avoid_excerpt(request.avoid_text)

    lines = [
        f"Reviewer first name: {request.reviewer_first_name}",
        f"Star rating: {request.star_rating}",
        f"Review text: {request.review_text}",
    ]
    if excerpt:
        lines.append(f"Existing draft wording to avoid repeating: {excerpt}")

    lines.append("Reply requirements:")
    lines.extend(style_requirements(style, request.star_rating))
    lines.extend(GLOBAL_CONSTRAINTS)
    if excerpt:
        lines.append(AVOID_CONSTRAINT)
    if variation_tag:
        lines.append(f"- Variation marker for wording diversity (do not output): {variation_tag}")

    return "\n".join(lines)
