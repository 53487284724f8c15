import pytest
from fastapi.testclient import TestClient

from src.application.reply_service import ReplyService
from src.domain.reply_models import CANONICAL_HELP_LINE, ErrorCode
from src.infrastructure.config import Settings
from src.web.app import app, get_service

from .conftest import (
    GROWTH_REPLY,
    QUICK_REPLY,
    WARM_REPLY,
    ScriptedGateway,
    gateway_error,
    make_llm_settings,
)


@pytest.fixture
def make_client():
    def _make(script, **settings):
        gateway = ScriptedGateway(script)
        service = ReplyService(Settings(llm=make_llm_settings(**settings)), gateway=gateway)
        app.dependency_overrides[get_service] = lambda: service
        return TestClient(app), gateway

    yield _make
    app.dependency_overrides.clear()


def test_health(make_client):
    client, _ = make_client([QUICK_REPLY])
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["models"] == ["model-a", "model-b", "model-c"]
    assert body["warnings"] == []


def test_options(make_client):
    client, _ = make_client([QUICK_REPLY, WARM_REPLY, GROWTH_REPLY])
    response = client.post(
        "/api/replies/options",
        json={"reviewerName": "Sarah M.", "rating": 5, "reviewText": "Amazing service and friendly staff."},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["generatedReply"] == QUICK_REPLY
    assert [o["key"] for o in body["options"]] == ["quick_pro", "warm_personal", "growth_recovery"]
    assert [o["label"] for o in body["options"]] == ["Quick Pro", "Warm Personal", "Growth/Recovery"]
    assert body["options"][0]["wordCount"] == 17


def test_options_low_rating(make_client):
    client, _ = make_client([QUICK_REPLY, WARM_REPLY, GROWTH_REPLY])
    response = client.post(
        "/api/replies/options",
        json={"reviewerName": "Sarah", "rating": 2, "reviewText": "Slow service."},
    )
    assert response.status_code == 200
    assert response.json()["options"][2]["text"].endswith(CANONICAL_HELP_LINE)


@pytest.mark.parametrize(
    "payload",
    [
        {"rating": 9, "reviewText": "Great"},
        {"rating": "five", "reviewText": "Great"},
        {"rating": 5, "reviewText": "   "},
        {"reviewText": "Great"},
        {"rating": True, "reviewText": "Great"},
    ],
)
def test_options_invalid_input(make_client, payload):
    client, gateway = make_client([QUICK_REPLY])
    response = client.post("/api/replies/options", json=payload)
    assert response.status_code == 400
    assert response.json()["code"] == ErrorCode.INVALID_REQUEST
    assert gateway.calls == []


def test_gateway_error_is_mapped(make_client):
    client, _ = make_client([gateway_error(ErrorCode.GATEWAY_UNREACHABLE, 502, "Unable to reach AI gateway.")])
    response = client.post("/api/replies/options", json={"rating": 5, "reviewText": "Great"})
    assert response.status_code == 502
    assert response.json() == {"error": "Unable to reach AI gateway.", "code": "gateway_unreachable"}


def test_reply_text(make_client):
    client, gateway = make_client([WARM_REPLY])
    response = client.post(
        "/api/replies/text",
        json={"reviewerName": "Sarah", "rating": 5, "reviewText": "Great", "style": "warm_personal"},
    )
    assert response.status_code == 200
    assert response.json() == {"generatedReply": WARM_REPLY, "style": "warm_personal"}
    assert "- Style: Warm Personal" in gateway.calls[0]["prompt"]


def test_reply_text_default_style(make_client):
    client, gateway = make_client([QUICK_REPLY])
    response = client.post("/api/replies/text", json={"rating": 4, "reviewText": "Good food."})
    assert response.json()["style"] == "default"
    assert "Reviewer first name: Customer" in gateway.calls[0]["prompt"]


def test_reply_text_unknown_style(make_client):
    client, _ = make_client([QUICK_REPLY])
    response = client.post(
        "/api/replies/text", json={"rating": 5, "reviewText": "Great", "style": "pirate"}
    )
    assert response.status_code == 400
    assert response.json()["code"] == ErrorCode.INVALID_REQUEST


def test_playground_page(make_client):
    client, _ = make_client([QUICK_REPLY])
    response = client.get("/")
    assert response.status_code == 200
    assert "Review Reply Drafter" in response.text
