from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.dependencies import get_current_user, get_optional_user
from app.exceptions import TransientStoreError

from conftest import make_article


@pytest.fixture
def client(sessions, counters, article_source):
    with patch("app.api.routes.articles.like_sessions", sessions), \
            patch("app.main.like_sessions", sessions), \
            patch("app.api.routes.articles.counter_store", counters), \
            patch("app.api.routes.articles.firebase_service", article_source):
        with TestClient(app) as test_client:
            yield test_client
    app.dependency_overrides = {}


def login(user):
    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[get_optional_user] = lambda: user


# --- Public listing ---

def test_list_articles_anonymous_ranked_by_favorites(client):
    response = client.get("/api/v1/articles/")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 4
    assert [a["slug"] for a in data["articles"]] == [
        "riesgos-manejar-influencia",
        "entendiendo-limites-velocidad",
        "importancia-semaforos",
        "practicas-estacionamiento-seguro",
    ]
    assert data["articles"][0]["favoriteCount"] == 150
    assert data["articles"][0]["likedByMe"] is False


def test_signed_in_requests_release_their_session(client, reader, sessions, counters):
    login(reader)

    assert client.get("/api/v1/articles/").status_code == 200
    assert client.get("/api/v1/articles/importancia-semaforos").status_code == 200
    assert client.post("/api/v1/articles/importancia-semaforos/like").status_code == 200

    assert len(sessions) == 0
    assert counters.watcher_count("importancia-semaforos") == 0


def test_list_categories(client):
    response = client.get("/api/v1/articles/categories")

    assert response.status_code == 200
    assert {"id": "seguridad-vial", "name": "Seguridad Vial"} in response.json()


def test_get_article_uses_live_counter(client, counters):
    counters.values["importancia-semaforos"] = 101

    response = client.get("/api/v1/articles/importancia-semaforos")

    assert response.status_code == 200
    assert response.json()["favoriteCount"] == 101


def test_draft_hidden_from_public(client):
    response = client.get("/api/v1/articles/articulo-borrador-ejemplo")

    assert response.status_code == 404


def test_unknown_article(client):
    response = client.get("/api/v1/articles/no-existe")

    assert response.status_code == 404


# --- Favorites ---

def test_like_requires_authentication(client, counters):
    response = client.post("/api/v1/articles/importancia-semaforos/like")

    assert response.status_code in (401, 403)
    assert counters.calls == []


def test_like_then_listing_shows_it_first(client, reader, like_set):
    login(reader)

    response = client.post("/api/v1/articles/practicas-estacionamiento-seguro/like")

    assert response.status_code == 200
    assert response.json() == {
        "slug": "practicas-estacionamiento-seguro",
        "liked": True,
        "totalLikes": 79,
        "accepted": True,
    }
    assert like_set.sets["u1"] == {"practicas-estacionamiento-seguro"}

    listing = client.get("/api/v1/articles/").json()["articles"]
    assert listing[0]["slug"] == "practicas-estacionamiento-seguro"
    assert listing[0]["likedByMe"] is True
    assert listing[0]["likeState"] == "liked"
    assert listing[0]["favoriteCount"] == 79


def test_like_twice_unlikes(client, reader):
    login(reader)

    client.post("/api/v1/articles/importancia-semaforos/like")
    response = client.post("/api/v1/articles/importancia-semaforos/like")

    assert response.json()["liked"] is False
    assert response.json()["totalLikes"] == 95


def test_like_unknown_article(client, reader):
    login(reader)

    response = client.post("/api/v1/articles/no-existe/like")

    assert response.status_code == 404
    assert response.json()["code"] == "article_not_found"


def test_like_store_failure_is_503(client, reader, counters, like_set):
    login(reader)
    counters.failures = [TransientStoreError("contention")]

    response = client.post("/api/v1/articles/importancia-semaforos/like")

    assert response.status_code == 503
    assert response.json()["code"] == "transient_store_error"
    assert like_set.sets["u1"] == set()


# --- Administration ---

def test_create_article_requires_admin(client, reader):
    login(reader)

    response = client.post("/api/v1/articles/", json={
        "title": "Uso del cinturón",
        "shortDescription": "Obligatorio",
        "category": "obligaciones",
        "content": {"introduction": "Intro", "points": []},
    })

    assert response.status_code == 403


def test_create_article_as_admin(client, admin):
    login(admin)
    created = make_article("uso-del-cinturon", 0, status="draft")

    with patch("app.api.routes.articles.firebase_service") as mock_firebase_service:
        mock_firebase_service.create_article = AsyncMock(return_value=created)
        response = client.post("/api/v1/articles/", json={
            "title": "Uso del cinturón",
            "shortDescription": "Obligatorio",
            "category": "obligaciones",
            "content": {"introduction": "Intro", "points": ["Siempre"]},
        })

    assert response.status_code == 201
    assert response.json()["slug"] == "uso-del-cinturon"
    data = mock_firebase_service.create_article.await_args.args[0]
    assert data["category"] == "Obligaciones"
    assert data["status"] == "draft"
    assert mock_firebase_service.create_article.await_args.kwargs["author_id"] == "admin1"


def test_publish_toggles_status(client, admin):
    login(admin)
    draft = make_article("nuevo", 0, status="draft")
    published = make_article("nuevo", 0, status="published")

    with patch("app.api.routes.articles.firebase_service") as mock_firebase_service:
        mock_firebase_service.get_article = AsyncMock(return_value=draft)
        mock_firebase_service.set_article_status = AsyncMock(return_value=published)
        response = client.post("/api/v1/articles/id-nuevo/publish")

    assert response.status_code == 200
    assert response.json()["status"] == "published"
    status_arg = mock_firebase_service.set_article_status.await_args.args[1]
    assert status_arg.value == "published"


def test_delete_article_cleans_up_favorites(client, admin, counters):
    login(admin)
    article = make_article("importancia-semaforos", 95)
    like_set_service = MagicMock()
    like_set_service.remove_slug_everywhere = AsyncMock(return_value=3)

    with patch("app.api.routes.articles.firebase_service") as mock_firebase_service, \
            patch("app.api.routes.articles.like_set_service", like_set_service):
        mock_firebase_service.get_article = AsyncMock(return_value=article)
        mock_firebase_service.delete_article = AsyncMock(return_value=article)
        response = client.delete("/api/v1/articles/id-importancia-semaforos")

    assert response.status_code == 204
    assert counters.deleted == ["importancia-semaforos"]
    like_set_service.remove_slug_everywhere.assert_awaited_once_with("importancia-semaforos")


def test_upload_rejects_non_images(client, admin):
    login(admin)

    response = client.post(
        "/api/v1/articles/images",
        files={"file": ("notes.txt", b"hola", "text/plain")},
    )

    assert response.status_code == 400
