# Review Reply Drafter - AI Replies for Google Business Profile Reviews
# ====================================================================
# Drafts three styled replies per review with Gemini, under strict content,
# length and safety rules, using a Layered Architecture:
#
# ARCHITECTURE LAYERS:
# - Presentation:   FastAPI JSON API and command-line entry points
# - Application:    Retry/fallback orchestration and option set building
# - Domain:         Pure text rules, prompts and templates (no I/O)
# - Infrastructure: External services (Gemini API, environment config)
#
# This design allows easy replacement of infrastructure components
# (e.g., swap Gemini for another LLM behind ModelGateway).
