# Application Layer
# =================
# Use cases built on the domain rules and infrastructure gateways:
# - reply_orchestrator:  multi-model retry/fallback state machine for one reply
# - option_set_builder:  three distinct styled options per review
# - reply_service:       composition root and module-level API
from .reply_service import ReplyService, generate_reply_options, generate_reply_text, get_reply_service

__all__ = ["ReplyService", "generate_reply_options", "generate_reply_text", "get_reply_service"]
