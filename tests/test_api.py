"""
HTTP tests for the entries, uploads and auth routers.

Each test gets a fresh app and SQLite file through the ``client`` fixture.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from catalog.database import Database
from catalog.errors import Transient
from catalog.main import create_app
from catalog.services.identity import Identity, Role
from catalog.services.store import EntryStore
from tests.conftest import ADMIN, OTHER, OWNER


def create(client, headers, identity=OWNER, **payload):
    resp = client.post("/api/v1/entries", json=payload, headers=headers(identity))
    assert resp.status_code == 201, resp.text
    return resp.json()


def approve(client, headers, entry_id, decision="APPROVED"):
    resp = client.post(
        f"/api/v1/entries/{entry_id}/approve",
        json={"status": decision},
        headers=headers(ADMIN),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def public_titles(client, **params):
    resp = client.get("/api/v1/entries", params=params)
    assert resp.status_code == 200, resp.text
    return [item["title"] for item in resp.json()["items"]]


# ============================================================================
# Moderation flow
# ============================================================================


def test_entry_becomes_public_after_approval(client, headers):
    entry = create(client, headers, title="X", type="TV Show")
    assert entry["status"] == "PENDING"
    assert entry["approved"] is False
    assert entry["type"] == "TV_SHOW"
    assert entry["created_by_id"] == OWNER.user_id

    assert public_titles(client) == []

    moderated = approve(client, headers, entry["id"])
    assert moderated["status"] == "APPROVED"
    assert moderated["approved"] is True
    assert public_titles(client) == ["X"]


def test_owner_edit_requires_re_review(client, headers):
    entry = create(client, headers, title="Heat")
    approve(client, headers, entry["id"])

    resp = client.patch(
        f"/api/v1/entries/{entry['id']}",
        json={"yearTime": "1995"},
        headers=headers(OWNER),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "PENDING"
    assert body["approved"] is False
    assert body["year_time"] == "1995"
    assert body["year"] == 1995
    assert public_titles(client) == []


def test_admin_edit_keeps_approval(client, headers):
    entry = create(client, headers, title="Heat")
    approve(client, headers, entry["id"])

    resp = client.patch(
        f"/api/v1/entries/{entry['id']}", json={"director": "Mann"}, headers=headers(ADMIN)
    )
    assert resp.json()["status"] == "APPROVED"
    assert public_titles(client) == ["Heat"]


def test_moderation_is_idempotent(client, headers):
    entry = create(client, headers, title="Heat")
    first = approve(client, headers, entry["id"])
    second = approve(client, headers, entry["id"])
    assert first == second


def test_moderation_requires_admin(client, headers):
    entry = create(client, headers, title="Heat")

    resp = client.post(
        f"/api/v1/entries/{entry['id']}/approve",
        json={"status": "APPROVED"},
        headers=headers(OWNER),
    )
    assert resp.status_code == 403
    assert resp.json()["error"] == "forbidden"

    resp = client.post(f"/api/v1/entries/{entry['id']}/approve", json={"status": "APPROVED"})
    assert resp.status_code == 401


def test_invalid_moderation_decision(client, headers):
    entry = create(client, headers, title="Heat")
    resp = client.post(
        f"/api/v1/entries/{entry['id']}/approve",
        json={"status": "PENDING"},
        headers=headers(ADMIN),
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_argument"


# ============================================================================
# Visibility
# ============================================================================


def test_pending_entry_visibility(client, headers):
    entry = create(client, headers, title="Heat")
    url = f"/api/v1/entries/{entry['id']}"

    assert client.get(url).status_code == 401
    assert client.get(url, headers=headers(OTHER)).status_code == 403
    assert client.get(url, headers=headers(OWNER)).status_code == 200
    assert client.get(url, headers=headers(ADMIN)).status_code == 200


def test_approved_entry_is_public(client, headers):
    entry = create(client, headers, title="Heat")
    approve(client, headers, entry["id"])
    resp = client.get(f"/api/v1/entries/{entry['id']}")
    assert resp.status_code == 200
    assert resp.json()["approved"] is True


def test_invalid_token_is_anonymous(client, headers):
    entry = create(client, headers, title="Heat")
    resp = client.get(
        f"/api/v1/entries/{entry['id']}", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert resp.status_code == 401


def test_mine_lists_own_entries_in_every_state(client, headers):
    pending = create(client, headers, title="Pending one")
    approved = create(client, headers, title="Approved one")
    approve(client, headers, approved["id"])
    create(client, headers, identity=OTHER, title="Someone else")

    resp = client.get("/api/v1/entries", params={"mine": "true"}, headers=headers(OWNER))
    titles = {item["title"] for item in resp.json()["items"]}
    assert titles == {pending["title"], approved["title"]}

    # Without a token "mine" is ignored
    assert public_titles(client, mine="true") == ["Approved one"]


# ============================================================================
# Listing
# ============================================================================


def test_cursor_pagination(client, headers):
    for i in range(5):
        approve(client, headers, create(client, headers, title=f"E{i}")["id"])

    first = client.get("/api/v1/entries", params={"limit": 2, "sort": "createdAt:desc"}).json()
    assert [item["title"] for item in first["items"]] == ["E4", "E3"]
    assert first["next_cursor"] is not None

    second = client.get(
        "/api/v1/entries",
        params={"limit": 2, "sort": "createdAt:desc", "cursor": first["next_cursor"]},
    ).json()
    assert [item["title"] for item in second["items"]] == ["E2", "E1"]
    assert second["next_cursor"] is not None

    third = client.get(
        "/api/v1/entries",
        params={"limit": 2, "sort": "createdAt:desc", "cursor": second["next_cursor"]},
    ).json()
    assert [item["title"] for item in third["items"]] == ["E0"]
    assert third["next_cursor"] is None


def test_type_filter(client, headers):
    approve(client, headers, create(client, headers, title="Film", type="Movie")["id"])
    approve(client, headers, create(client, headers, title="Show", type="TV Show")["id"])

    assert public_titles(client, type="tv") == ["Show"]
    assert public_titles(client, type="movie") == ["Film"]


def test_year_filter(client, headers):
    approve(client, headers, create(client, headers, title="Cut", yearTime="1995 (Director's Cut)")["id"])
    approve(client, headers, create(client, headers, title="Mid", year_time="2005")["id"])

    assert public_titles(client, year_from=2000, year_to=2010) == ["Mid"]


def test_sort_by_title(client, headers):
    for title in ["Casino", "Alien", "Brazil"]:
        approve(client, headers, create(client, headers, title=title)["id"])

    assert public_titles(client, sort="title:asc") == ["Alien", "Brazil", "Casino"]
    assert public_titles(client, sort="title:desc,createdAt:asc") == ["Casino", "Brazil", "Alien"]


@pytest.mark.parametrize(
    "params",
    [{"limit": 0}, {"limit": "ten"}, {"cursor": "abc"}, {"cursor": 999}, {"year_from": "1990s"}],
)
def test_bad_list_parameters(client, params):
    resp = client.get("/api/v1/entries", params=params)
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_argument"


def test_limit_is_clamped(client, headers):
    for i in range(3):
        approve(client, headers, create(client, headers, title=f"E{i}")["id"])
    resp = client.get("/api/v1/entries", params={"limit": 500})
    assert len(resp.json()["items"]) == 3


# ============================================================================
# Create / update / delete errors
# ============================================================================


def test_create_requires_token(client):
    resp = client.post("/api/v1/entries", json={"title": "Heat"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "unauthenticated", "message": "Authentication required"}


def test_create_requires_title(client, headers):
    resp = client.post("/api/v1/entries", json={"type": "Movie"}, headers=headers(OWNER))
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_argument"


def test_create_accepts_numeric_budget(client, headers):
    entry = create(client, headers, title="Heat", budget=60000000, posterUrl="/media/p.jpg")
    assert entry["budget"] == "60000000"
    assert entry["poster_url"] == "/media/p.jpg"


def test_update_by_stranger(client, headers):
    entry = create(client, headers, title="Heat")
    resp = client.patch(
        f"/api/v1/entries/{entry['id']}", json={"title": "Mine"}, headers=headers(OTHER)
    )
    assert resp.status_code == 403


def test_update_missing(client, headers):
    resp = client.patch("/api/v1/entries/999", json={"title": "x"}, headers=headers(ADMIN))
    assert resp.status_code == 404
    assert resp.json() == {"error": "not_found", "message": "Not found"}


def test_soft_delete(client, headers):
    entry = create(client, headers, title="Heat")
    approve(client, headers, entry["id"])

    resp = client.delete(f"/api/v1/entries/{entry['id']}", headers=headers(OWNER))
    assert resp.status_code == 200
    assert resp.json() == {"message": "Deleted", "id": entry["id"]}

    assert client.get(f"/api/v1/entries/{entry['id']}").status_code == 404
    assert public_titles(client) == []
    assert client.delete(f"/api/v1/entries/{entry['id']}", headers=headers(OWNER)).status_code == 404


# ============================================================================
# Uploads, auth helpers, health
# ============================================================================


def test_upload_image(client, headers):
    resp = client.post(
        "/api/v1/uploads",
        files={"file": ("poster.png", b"\x89PNG fake", "image/png")},
        headers=headers(OWNER),
    )
    assert resp.status_code == 200, resp.text
    url = resp.json()["url"]
    assert url.startswith("/media/") and url.endswith(".png")

    served = client.get(url)
    assert served.status_code == 200
    assert served.content == b"\x89PNG fake"


def test_upload_rejects_non_images_and_large_files(client, headers):
    resp = client.post(
        "/api/v1/uploads",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=headers(OWNER),
    )
    assert resp.status_code == 400

    resp = client.post(
        "/api/v1/uploads",
        files={"file": ("big.png", b"x" * 2048, "image/png")},
        headers=headers(OWNER),
    )
    assert resp.status_code == 400


def test_upload_requires_token(client):
    resp = client.post("/api/v1/uploads", files={"file": ("p.png", b"x", "image/png")})
    assert resp.status_code == 401


def test_auth_me(client, headers):
    resp = client.get("/auth/me", headers=headers(ADMIN))
    assert resp.json() == {"user_id": ADMIN.user_id, "role": "ADMIN"}
    assert client.get("/auth/me").status_code == 401


def test_dev_token_round_trip(client):
    token = client.get("/dev/token/7", params={"role": "ADMIN"}).json()["access_token"]
    resp = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.json() == {"user_id": 7, "role": "ADMIN"}


def test_cookie_token(client, headers):
    token = headers(Identity(user_id=5, role=Role.USER))["Authorization"].split(" ")[1]
    client.cookies.set("access_token", token)
    assert client.get("/auth/me").json()["user_id"] == 5


def test_health(client):
    assert client.get("/healthz").json() == {"status": "ok"}
    assert client.get("/readyz").json() == {"status": "ready", "db": "ok"}


def test_upload_extension_ignores_client_filename(client, headers):
    resp = client.post(
        "/api/v1/uploads",
        files={"file": ("x.html", b"<script>alert(1)</script>", "image/png")},
        headers=headers(OWNER),
    )
    assert resp.status_code == 200, resp.text
    url = resp.json()["url"]
    assert url.endswith(".png")

    served = client.get(url)
    assert served.headers["content-type"].startswith("image/")


def test_upload_rejects_unlisted_image_types(client, headers):
    resp = client.post(
        "/api/v1/uploads",
        files={"file": ("logo.svg", b"<svg onload='alert(1)'/>", "image/svg+xml")},
        headers=headers(OWNER),
    )
    assert resp.status_code == 400


# ============================================================================
# Store failures as seen by callers
# ============================================================================


@pytest.fixture
def lenient_client(test_settings):
    """Client that returns 500 responses instead of re-raising app errors."""
    app = create_app(test_settings)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


def test_transient_store_failure_is_retryable(lenient_client, monkeypatch):
    monkeypatch.setattr(EntryStore, "get", AsyncMock(side_effect=Transient("get timed out")))

    resp = lenient_client.get("/api/v1/entries/1")
    assert resp.status_code == 503
    assert resp.headers["retry-after"] == "1"
    assert resp.json() == {
        "error": "unavailable",
        "message": "Service temporarily unavailable, please retry",
    }


def test_unexpected_failure_hides_details(lenient_client, monkeypatch):
    monkeypatch.setattr(EntryStore, "get", AsyncMock(side_effect=RuntimeError("secret dsn")))

    resp = lenient_client.get("/api/v1/entries/1")
    assert resp.status_code == 500
    assert resp.json() == {"error": "internal", "message": "Internal server error"}
    assert "secret" not in resp.text


def test_readyz_reports_store_down(lenient_client, monkeypatch):
    monkeypatch.setattr(Database, "ping", AsyncMock(side_effect=RuntimeError("connection refused")))

    resp = lenient_client.get("/readyz")
    assert resp.status_code == 503
    assert resp.headers["retry-after"] == "1"
    assert resp.json()["error"] == "unavailable"
    assert "refused" not in resp.text
