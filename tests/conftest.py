"""
Shared test fixtures for the reply drafting core.

Provides a scripted ModelGateway (no network), an LLMSettings factory and
a fake requests session so the Gemini gateway can be exercised offline.
"""

import json
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

import pytest

from src.domain.reply_models import (
    ErrorCode,
    FinishReason,
    GeneratedText,
    ReplyGenerationError,
    ReplyRequest,
)
from src.infrastructure.config import LLMSettings, Settings
from src.infrastructure.llm import ModelGateway


QUICK_REPLY = (
    "Hi Sarah, thank you so much for the kind words about our friendly staff and service today."
)
WARM_REPLY = (
    "Hi Sarah, we were thrilled to read your review! Hearing that our team made you feel "
    "welcome means everything to us, and we will share your note with everyone on shift."
)
GROWTH_REPLY = (
    "Thank you, Sarah, for trusting us with your visit. Your words about our team reinforce "
    "the standards we hold ourselves to, and we hope to welcome you back for another great "
    "experience soon."
)


ScriptItem = Union[str, GeneratedText, ReplyGenerationError, Callable[..., Any]]


class ScriptedGateway(ModelGateway):
    """
    Plays back a list of outputs, one per generate() call.

    Items may be plain strings (completed output), GeneratedText,
    ReplyGenerationError instances (raised) or callables receiving the
    call kwargs. The last item repeats once the script runs out.
    """

    def __init__(self, script: List[ScriptItem]):
        self.script = list(script)
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def generate(self, model, prompt, max_output_tokens, temperature):
        call = {
            "model": model,
            "prompt": prompt,
            "max_output_tokens": max_output_tokens,
            "temperature": temperature,
        }
        self.calls.append(call)
        index = min(len(self.calls) - 1, len(self.script) - 1)
        item = self.script[index]
        if callable(item) and not isinstance(item, (str, GeneratedText, ReplyGenerationError)):
            item = item(**call)
        if isinstance(item, ReplyGenerationError):
            raise item
        if isinstance(item, GeneratedText):
            return item
        return GeneratedText(raw_text=item, finish_reason=FinishReason.COMPLETED, output_token_count=40)

    def close(self):
        self.closed = True

    @property
    def models_called(self) -> List[str]:
        return [c["model"] for c in self.calls]


def gateway_error(code: str, status: int = 500, message: Optional[str] = None) -> ReplyGenerationError:
    return ReplyGenerationError(message or f"simulated {code}", status, code)


def make_llm_settings(**overrides) -> LLMSettings:
    values = dict(
        api_key="test-key",
        api_base="https://gemini.test/v1beta",
        models=("model-a", "model-b", "model-c"),
        timeout_ms=12000,
        max_attempts=1,
    )
    values.update(overrides)
    return LLMSettings(**values)


class FakeResponse:
    """Streamed response stand-in: the body is served through iter_content()."""

    def __init__(
        self,
        status_code: int = 200,
        payload: Any = None,
        text: Optional[str] = None,
        chunks: Optional[List[bytes]] = None,
    ):
        self.status_code = status_code
        if chunks is not None:
            self._chunks = list(chunks)
        elif text is not None:
            self._chunks = [text.encode("utf-8")]
        elif payload is not None:
            self._chunks = [json.dumps(payload).encode("utf-8")]
        else:
            self._chunks = []
        self.closed = False

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        yield from self._chunks

    def close(self):
        self.closed = True


class FakeSession:
    """Stands in for requests.Session; records posts and replays outcomes."""

    instances: List["FakeSession"] = []

    def __init__(self, outcome: Any = None):
        self.outcome = outcome
        self.posts: List[Dict[str, Any]] = []
        self.closed = False
        FakeSession.instances.append(self)

    def post(self, url, headers=None, json=None, timeout=None, stream=False):
        self.posts.append(
            {"url": url, "headers": headers, "json": json, "timeout": timeout, "stream": stream}
        )
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome

    def close(self):
        self.closed = True


@pytest.fixture
def llm_settings() -> LLMSettings:
    return make_llm_settings()


@pytest.fixture
def settings(llm_settings) -> Settings:
    return Settings(llm=llm_settings)


@pytest.fixture
def review_request() -> ReplyRequest:
    return ReplyRequest(
        reviewer_first_name="Sarah",
        star_rating=5,
        review_text="Amazing service and friendly staff.",
    )


@pytest.fixture
def happy_gateway() -> ScriptedGateway:
    return ScriptedGateway([QUICK_REPLY, WARM_REPLY, GROWTH_REPLY])


@pytest.fixture(autouse=True)
def _reset_fake_sessions():
    FakeSession.instances = []
    yield
    FakeSession.instances = []


__all__ = [
    "ErrorCode",
    "FakeResponse",
    "FakeSession",
    "GROWTH_REPLY",
    "QUICK_REPLY",
    "ScriptedGateway",
    "WARM_REPLY",
    "gateway_error",
    "make_llm_settings",
]
