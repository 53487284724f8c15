from .settings import LLMSettings, Settings, WebSettings, get_settings

__all__ = ["LLMSettings", "Settings", "WebSettings", "get_settings"]
