# Infrastructure Layer
# ====================
# Contains all external service integrations:
# - llm/: Gemini generateContent gateway (requests)
# - config/: Environment and settings management
#
# This layer can be replaced entirely without affecting domain/application layers.
