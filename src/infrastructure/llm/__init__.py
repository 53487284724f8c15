from .model_gateway import ModelGateway
from .gemini_gateway import GeminiGateway, classify_http_error, parse_generation

__all__ = ["ModelGateway", "GeminiGateway", "classify_http_error", "parse_generation"]
