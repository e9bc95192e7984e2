from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.config import settings
from app.services import advisor_service, gemini_service

from conftest import make_article

client = TestClient(app)


# --- Parsing ---

def test_parse_suggestions_json():
    text = '{"articleSuggestions": ["Límites de velocidad", "Multas"]}'

    assert advisor_service.parse_suggestions(text) == ["Límites de velocidad", "Multas"]


def test_parse_suggestions_json_in_code_fence():
    text = 'Claro:\n```json\n{"articleSuggestions": ["Semáforos"]}\n```'

    assert advisor_service.parse_suggestions(text) == ["Semáforos"]


def test_parse_suggestions_falls_back_to_list():
    text = "1. Límites de velocidad\n- Multas por exceso\n\n* Puntos en la licencia"

    assert advisor_service.parse_suggestions(text) == [
        "Límites de velocidad",
        "Multas por exceso",
        "Puntos en la licencia",
    ]


# --- Flows ---

@pytest.mark.asyncio
async def test_mock_mode_answers_without_api_key():
    with patch.object(settings, "DEBUG_MOCK_GEMINI", True):
        advice = await advisor_service.answer_traffic_query("¿Puedo usar el celular?")
        suggestions = await advisor_service.suggest_relevant_articles("mobile-phone")

    assert advice.startswith("(mock)")
    assert suggestions == ["(mock) Artículo sugerido"]


@pytest.mark.asyncio
async def test_suggestions_prompt_names_infraction_and_articles():
    send = AsyncMock(return_value={"response": '{"articleSuggestions": ["Uso del celular"]}'})

    with patch.object(gemini_service, "send_message", send):
        result = await advisor_service.suggest_relevant_articles(
            "mobile-phone", [make_article("uso-del-celular")])

    assert result == ["Uso del celular"]
    prompt = send.await_args.args[0]
    assert "Uso del celular al manejar" in prompt
    assert "Uso Del Celular" in prompt
    assert send.await_args.kwargs["response_mime_type"] == "application/json"


@pytest.mark.asyncio
async def test_empty_answer_is_an_error():
    with patch.object(gemini_service, "send_message", AsyncMock(return_value={"response": "  "})):
        with pytest.raises(RuntimeError):
            await advisor_service.answer_traffic_query("Hola")


# --- Routes ---

def test_advice_endpoint():
    with patch.object(advisor_service, "answer_traffic_query", AsyncMock(return_value="Respeta el límite.")):
        response = client.post("/api/v1/ai/advice", json={"userQuery": "¿Qué velocidad?"})

    assert response.status_code == 200
    assert response.json() == {"advice": "Respeta el límite."}


def test_advice_endpoint_upstream_failure():
    with patch.object(advisor_service, "answer_traffic_query",
                      AsyncMock(side_effect=RuntimeError("Gemini API Error: 500"))):
        response = client.post("/api/v1/ai/advice", json={"userQuery": "¿Qué velocidad?"})

    assert response.status_code == 502


def test_suggestions_endpoint_without_article_catalog():
    with patch("app.api.routes.ai.firebase_service") as mock_firebase_service, \
            patch.object(advisor_service, "suggest_relevant_articles",
                         AsyncMock(return_value=["Semáforos"])) as suggest:
        mock_firebase_service.list_published_articles = AsyncMock(side_effect=Exception("offline"))
        response = client.post("/api/v1/ai/suggestions", json={"trafficInfraction": "red-light"})

    assert response.status_code == 200
    assert response.json() == {"articleSuggestions": ["Semáforos"]}
    suggest.assert_awaited_once_with("red-light", [])


def test_list_infractions():
    response = client.get("/api/v1/ai/infractions")

    assert response.status_code == 200
    assert response.json()[0] == {"id": "speeding", "name": "Exceso de velocidad"}
