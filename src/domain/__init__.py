# Domain Layer
# ============
# Pure reply-generation rules with no I/O:
# - reply_models:     data types, style plans, ReplyGenerationError
# - text_normalizer:  sanitization, completeness and length control
# - prompt_builder:   style-specific model instructions
# - templates:        deterministic fallback replies
