# Presentation layer: FastAPI reply drafting API
