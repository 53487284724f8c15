"""
Model Gateway - Abstraction Layer for LLM Generation Calls
==========================================================

Provides a unified interface for one text-generation call.
Currently implemented by GeminiGateway. The orchestrator and tests
depend only on this interface.

USAGE:
    gateway: ModelGateway = GeminiGateway(get_settings().llm)
    result = gateway.generate("gemini-2.5-flash", prompt, 140, 0.62)
"""

from abc import ABC, abstractmethod

from ...domain.reply_models import GeneratedText


class ModelGateway(ABC):
    """
    Abstract base class for generation backends.
    Implement this interface to add a new LLM provider.
    """

    @abstractmethod
    def generate(
        self,
        model: str,
        prompt: str,
        max_output_tokens: int,
        temperature: float,
    ) -> GeneratedText:
        """
        Execute exactly one generation call.

        Raises:
            ReplyGenerationError: for every failure, tagged with an ErrorCode.
        """
        ...

    def close(self) -> None:
        """Release any held connections."""
        return None
