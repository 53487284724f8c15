"""
FastAPI Web Application - Reply Drafting API
============================================

JSON endpoints the dashboard calls to draft review replies, plus a small
playground page for trying prompts by hand.

Routes:
    GET  /                    playground page
    GET  /health              liveness + configuration warnings
    POST /api/replies/options three styled reply options for one review
    POST /api/replies/text    one reply in a single style

Errors from the generation core are returned as
{"error": message, "code": code} with the error's HTTP status hint.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from src.application.reply_service import ReplyService, get_reply_service
from src.domain.reply_models import ErrorCode, ReplyGenerationError, ReplyStyle
from src.infrastructure.config import get_settings

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ── Globals ────────────────────────────────────────────────────────
reply_service: Optional[ReplyService] = None


# ── Lifespan ───────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    global reply_service
    reply_service = ReplyService(get_settings())
    logger.info(f"Reply service ready (models: {', '.join(reply_service.settings.llm.models) or 'none'})")
    yield
    reply_service.close()
    reply_service = None
    logger.info("Reply service closed")


app = FastAPI(
    title="Review Reply Drafter",
    description="AI-drafted replies for Google Business Profile reviews",
    lifespan=lifespan,
)


def get_service() -> ReplyService:
    """Service created at startup, or the process-wide one outside the lifespan."""
    return reply_service or get_reply_service()


# ── Request models ─────────────────────────────────────────────────

class ReplyOptionsBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reviewer_name: Optional[str] = Field(default=None, alias="reviewerName")
    rating: Any = None
    review_text: Optional[str] = Field(default=None, alias="reviewText")
    avoid_reply_text: Optional[str] = Field(default=None, alias="avoidReplyText")


class ReplyTextBody(ReplyOptionsBody):
    style: Optional[str] = None
    max_output_tokens: Optional[int] = Field(default=None, alias="maxOutputTokens")
    temperature: Optional[float] = None


def _parse_style(value: Optional[str]) -> Optional[ReplyStyle]:
    if not value:
        return None
    try:
        return ReplyStyle(value)
    except ValueError:
        allowed = ", ".join(style.value for style in ReplyStyle)
        raise ReplyGenerationError(
            f"Unknown style '{value}'. Use one of: {allowed}.", 400, ErrorCode.INVALID_REQUEST
        )


# ── Error mapping ──────────────────────────────────────────────────

@app.exception_handler(ReplyGenerationError)
async def reply_generation_error_handler(request: Request, exc: ReplyGenerationError):
    if exc.status >= 500:
        logger.error(f"Reply generation failed on {request.url.path}: code={exc.code} {exc.message}")
    else:
        logger.warning(f"Reply request rejected on {request.url.path}: code={exc.code} {exc.message}")
    return JSONResponse(status_code=exc.status, content=exc.to_dict())


# ── API Endpoints ──────────────────────────────────────────────────

@app.get("/health")
def health(service: ReplyService = Depends(get_service)):
    return {
        "status": "ok",
        "models": list(service.settings.llm.models),
        "warnings": service.settings.validate(),
    }


@app.post("/api/replies/options")
def api_reply_options(body: ReplyOptionsBody, service: ReplyService = Depends(get_service)):
    options = service.generate_reply_options(
        body.reviewer_name,
        body.rating,
        body.review_text,
        avoid_reply_text=body.avoid_reply_text,
    )
    return {
        "generatedReply": options[0].text,
        "options": [option.to_dict() for option in options],
    }


@app.post("/api/replies/text")
def api_reply_text(body: ReplyTextBody, service: ReplyService = Depends(get_service)):
    style = _parse_style(body.style)
    text = service.generate_reply_text(
        body.reviewer_name,
        body.rating,
        body.review_text,
        avoid_text=body.avoid_reply_text,
        style=style,
        max_output_tokens=body.max_output_tokens,
        temperature=body.temperature,
    )
    return {"generatedReply": text, "style": (style or ReplyStyle.DEFAULT).value}


# ── Playground ─────────────────────────────────────────────────────

PLAYGROUND_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Review Reply Drafter</title>
<style>
    body { font-family: -apple-system, BlinkMacSystemFont, sans-serif; background: #0a0a14;
           color: #e2e8f0; max-width: 760px; margin: 40px auto; padding: 0 20px; }
    h1 { font-size: 22px; }
    label { display: block; margin: 14px 0 6px; font-size: 13px; color: #94a3b8; }
    input, select, textarea { width: 100%; box-sizing: border-box; padding: 10px 12px;
           border-radius: 8px; border: 1px solid rgba(255,255,255,0.1);
           background: rgba(255,255,255,0.05); color: inherit; font: inherit; }
    textarea { min-height: 90px; }
    button { margin-top: 18px; padding: 11px 24px; border: none; border-radius: 8px;
             background: linear-gradient(135deg, #7c3aed, #06b6d4); color: #fff;
             font-weight: 600; cursor: pointer; }
    .option { margin-top: 18px; padding: 16px; border-radius: 12px;
              border: 1px solid rgba(255,255,255,0.08); background: rgba(255,255,255,0.035); }
    .option h3 { margin: 0 0 8px; font-size: 14px; }
    .meta { font-size: 11px; color: #64748b; }
    .error { color: #f87171; margin-top: 18px; }
</style>
</head>
<body>
<h1>Review Reply Drafter</h1>
<form id="form">
    <label>Reviewer name</label><input name="reviewerName" value="Sarah M.">
    <label>Star rating</label>
    <select name="rating">
        <option>5</option><option>4</option><option>3</option><option>2</option><option>1</option>
    </select>
    <label>Review text</label><textarea name="reviewText">Amazing service and friendly staff.</textarea>
    <label>Previous draft to avoid (optional)</label><textarea name="avoidReplyText"></textarea>
    <button type="submit">Draft replies</button>
</form>
<div id="out"></div>
<script>
document.getElementById("form").addEventListener("submit", async (event) => {
    event.preventDefault();
    const out = document.getElementById("out");
    out.textContent = "Drafting...";
    const body = Object.fromEntries(new FormData(event.target).entries());
    body.rating = Number(body.rating);
    const res = await fetch("/api/replies/options", {
        method: "POST", headers: {"Content-Type": "application/json"}, body: JSON.stringify(body)
    });
    const data = await res.json();
    out.innerHTML = "";
    if (!res.ok) {
        out.innerHTML = `<div class="error"></div>`;
        out.firstChild.textContent = `${data.error} (${data.code})`;
        return;
    }
    for (const option of data.options) {
        const card = document.createElement("div");
        card.className = "option";
        card.innerHTML = `<h3></h3><p></p><div class="meta"></div>`;
        card.querySelector("h3").textContent = option.label;
        card.querySelector("p").textContent = option.text;
        card.querySelector(".meta").textContent = `${option.wordCount} words`;
        out.appendChild(card);
    }
});
</script>
</body>
</html>
"""


@app.get("/", response_class=HTMLResponse)
async def playground():
    return PLAYGROUND_HTML


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.web.host, port=settings.web.port)
