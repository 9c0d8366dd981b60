"""Integration tests for the Bookshare API."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from bookshare.api.dependencies import get_rating_service, get_recommendation_service
from bookshare.api.middleware.auth import create_session_token
from bookshare.main import app


# ── System Tests ───────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy", "service": "bookshare"}


@pytest.mark.asyncio
async def test_database_error_is_generic_500(client: AsyncClient):
    class BrokenRatings:
        async def get_book_ratings(self, book_id):
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    app.dependency_overrides[get_rating_service] = lambda: BrokenRatings()
    resp = await client.get("/api/books/1001/ratings")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}


@pytest.mark.asyncio
async def test_unexpected_error_keeps_error_body(client: AsyncClient):
    class BrokenRecommendations:
        async def get_recommendations(self, user_id):
            raise RuntimeError("boom")

    app.dependency_overrides[get_recommendation_service] = lambda: BrokenRecommendations()
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as raw:
        resp = await raw.get("/api/recommendations", params={"userId": "alice"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}


# ── Session Tests ──────────────────────────────────


@pytest.mark.asyncio
async def test_create_session_sets_cookie(client: AsyncClient):
    token = create_session_token("dana", email="dana@example.com", name="Dana")
    resp = await client.post("/api/auth/session", json={"token": token})
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    cookie = resp.headers["set-cookie"]
    assert cookie.startswith("firebase-session-token=")
    assert "HttpOnly" in cookie
    assert "Max-Age=432000" in cookie
    assert "samesite=strict" in cookie.lower()
    assert "; Secure" not in cookie

    me = await client.get("/api/users/me")
    assert me.status_code == 200
    assert me.json()["uid"] == "dana"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [b"not json", b"{}", b"[]"])
async def test_create_session_malformed_body(client: AsyncClient, body: bytes):
    resp = await client.post(
        "/api/auth/session", content=body, headers={"Content-Type": "application/json"}
    )
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to set session"}


@pytest.mark.asyncio
async def test_delete_session_clears_cookie(client: AsyncClient):
    resp = await client.delete("/api/auth/session")
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    cookie = resp.headers["set-cookie"]
    assert cookie.startswith("firebase-session-token=")
    assert "Max-Age=0" in cookie


@pytest.mark.asyncio
async def test_requires_authentication(client: AsyncClient):
    resp = await client.get("/api/users/me")
    assert resp.status_code == 401
    assert resp.json() == {"error": "Not authenticated"}

    resp = await client.get("/api/users/me", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401


# ── Review & Rating Tests ──────────────────────────


@pytest.mark.asyncio
async def test_create_review(client: AsyncClient, alice):
    resp = await client.post(
        "/api/books/1001/reviews", json={"rating": 9, "comment": "Great"}, headers=alice
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["bookId"] == "00000000001001"
    assert data["userId"] == "alice"
    assert data["userDisplayName"] == "Alice Nowak"


@pytest.mark.asyncio
async def test_duplicate_review_rejected(client: AsyncClient, alice):
    await client.post("/api/books/1001/reviews", json={"rating": 9}, headers=alice)
    resp = await client.post(
        "/api/books/00000000001001/reviews", json={"rating": 3}, headers=alice
    )
    assert resp.status_code == 409
    assert resp.json() == {"error": "You have already reviewed this book"}


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [0, 11])
async def test_review_rating_out_of_range(client: AsyncClient, alice, rating: int):
    resp = await client.post("/api/books/1001/reviews", json={"rating": rating}, headers=alice)
    assert resp.status_code == 400
    assert "rating" in resp.json()["error"]


@pytest.mark.asyncio
async def test_book_ratings(client: AsyncClient, alice, bob, carol):
    resp = await client.get("/api/books/1002/ratings")
    assert resp.json() == {"average": None, "total": 0}

    for headers, rating in ((alice, 8), (bob, 5), (carol, 6)):
        await client.post("/api/books/1002/reviews", json={"rating": rating}, headers=headers)

    resp = await client.get("/api/books/00000000001002/ratings")
    assert resp.json() == {"average": 6.3, "total": 3}

    reviews = (await client.get("/api/books/1002/reviews")).json()
    assert len(reviews) == 3


@pytest.mark.asyncio
async def test_average_rounds_half_up(client: AsyncClient, alice, headers_for):
    readers = [alice] + [headers_for(uid) for uid in ("dave", "erin", "frank")]
    for headers, rating in zip(readers, (8, 8, 8, 9)):
        await client.post("/api/books/1001/reviews", json={"rating": rating}, headers=headers)
    assert (await client.get("/api/books/1001/ratings")).json() == {"average": 8.3, "total": 4}

    for book_id, rating in (("2001", 8), ("2002", 8), ("3001", 9)):
        await client.post(f"/api/books/{book_id}/reviews", json={"rating": rating}, headers=alice)
    assert (await client.get("/api/users/me", headers=alice)).json()["averageRating"] == 8.3


# ── User Tests ─────────────────────────────────────


@pytest.mark.asyncio
async def test_user_created_from_token_claims(client: AsyncClient, headers_for):
    headers = headers_for("erin", email="erin@example.com", name="Erin")
    resp = await client.get("/api/users/me", headers=headers)
    data = resp.json()
    assert data["uid"] == "erin"
    assert data["email"] == "erin@example.com"
    assert data["displayName"] == "Erin"
    assert data["booksCount"] == 0
    assert data["averageRating"] is None


@pytest.mark.asyncio
async def test_profile_photo_copied_to_reviews(client: AsyncClient, alice):
    await client.post("/api/books/1001/reviews", json={"rating": 7}, headers=alice)
    await client.post("/api/books/2001/reviews", json={"rating": 10}, headers=alice)

    resp = await client.patch(
        "/api/users/me",
        json={"photoURL": "https://img.test/alice.png", "bio": "Reader"},
        headers=alice,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["photoURL"] == "https://img.test/alice.png"
    assert data["bio"] == "Reader"
    assert data["reviewsCount"] == 2
    assert data["averageRating"] == 8.5

    reviews = (await client.get("/api/users/alice/reviews", headers=alice)).json()
    assert {r["userPhotoURL"] for r in reviews} == {"https://img.test/alice.png"}


@pytest.mark.asyncio
async def test_get_unknown_user(client: AsyncClient, alice):
    resp = await client.get("/api/users/nobody", headers=alice)
    assert resp.status_code == 404
    assert resp.json() == {"error": "User not found"}


@pytest.mark.asyncio
async def test_search_users(client: AsyncClient, alice, bob, carol):
    for headers in (bob, carol):
        await client.get("/api/users/me", headers=headers)

    resp = await client.get("/api/users", params={"query": "BO"}, headers=alice)
    assert [u["uid"] for u in resp.json()] == ["bob"]

    resp = await client.get("/api/users", params={"query": "alice"}, headers=alice)
    assert resp.json() == []

    for wildcard in ("%", "_ob", "b%"):
        resp = await client.get("/api/users", params={"query": wildcard}, headers=alice)
        assert resp.json() == []


@pytest.mark.asyncio
async def test_delete_account(client: AsyncClient, alice, bob, befriend):
    await client.post("/api/books/1001/reviews", json={"rating": 7}, headers=alice)
    await client.post("/api/library/owned/1001", headers=alice)
    await befriend(alice, bob, "bob@example.com")

    resp = await client.delete("/api/users/me", headers=alice)
    assert resp.status_code == 204

    assert (await client.get("/api/books/1001/reviews")).json() == []
    assert (await client.get("/api/contacts", headers=bob)).json() == []
    resp = await client.get("/api/users/alice", headers=bob)
    assert resp.status_code == 404


# ── Library Tests ──────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", ["owned", "desired", "favorites"])
async def test_toggle_marker(client: AsyncClient, alice, kind: str):
    resp = await client.post(f"/api/library/{kind}/1001", headers=alice)
    assert resp.json() == {"bookId": "00000000001001", "active": True}

    resp = await client.get(f"/api/library/{kind}/00000000001001", headers=alice)
    assert resp.json()["active"] is True

    resp = await client.post(f"/api/library/{kind}/1001", headers=alice)
    assert resp.json()["active"] is False


@pytest.mark.asyncio
async def test_unknown_library_kind(client: AsyncClient, alice):
    resp = await client.post("/api/library/borrowed/1001", headers=alice)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_mark_for_exchange(client: AsyncClient, alice):
    resp = await client.put(
        "/api/library/owned/1001/status", json={"status": "forExchange"}, headers=alice
    )
    assert resp.status_code == 404
    assert resp.json() == {"error": "You do not own this book"}

    await client.post("/api/library/owned/1001", headers=alice)
    await client.post("/api/library/owned/2001", headers=alice)
    resp = await client.put(
        "/api/library/owned/1001/status", json={"status": "forExchange"}, headers=alice
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "forExchange"

    resp = await client.put(
        "/api/library/owned/1001/status", json={"status": "forSale"}, headers=alice
    )
    assert resp.status_code == 400

    entries = (
        await client.get(
            "/api/users/alice/library/owned", params={"status": "forExchange"}, headers=alice
        )
    ).json()
    assert [e["bookId"] for e in entries] == ["00000000001001"]
    assert entries[0]["book"]["title"] == "Solaris"


@pytest.mark.asyncio
async def test_library_listing_with_missing_book(client: AsyncClient, alice):
    await client.post("/api/library/desired/999", headers=alice)
    await client.post("/api/library/desired/2002", headers=alice)

    entries = (await client.get("/api/users/alice/library/desired", headers=alice)).json()
    books = {e["bookId"]: e["book"] for e in entries}
    assert books["00000000002002"]["title"] == "Rendezvous with Rama"
    assert books["00000000000999"]["title"] == "Book unavailable"


# ── Contact Tests ──────────────────────────────────


@pytest.mark.asyncio
async def test_contact_invite_flow(client: AsyncClient, alice, bob):
    await client.get("/api/users/me", headers=bob)

    resp = await client.post("/api/contacts", json={"email": "BOB@example.com"}, headers=alice)
    assert resp.status_code == 201
    edge_id = resp.json()["id"]
    assert resp.json()["status"] == "pending"

    invites = (await client.get("/api/contacts/invites", headers=bob)).json()
    assert [i["user"]["uid"] for i in invites] == ["alice"]

    resp = await client.post(f"/api/contacts/{edge_id}/accept", headers=alice)
    assert resp.status_code == 403

    resp = await client.post(f"/api/contacts/{edge_id}/accept", headers=bob)
    assert resp.json()["status"] == "accepted"

    for me, other in ((alice, "bob"), (bob, "alice")):
        contacts = (await client.get("/api/contacts", headers=me)).json()
        assert [c["user"]["uid"] for c in contacts] == [other]

    resp = await client.delete(f"/api/contacts/{edge_id}", headers=bob)
    assert resp.status_code == 204
    assert (await client.get("/api/contacts", headers=alice)).json() == []


@pytest.mark.asyncio
async def test_contact_invite_errors(client: AsyncClient, alice, bob, befriend):
    resp = await client.post("/api/contacts", json={"email": "ghost@example.com"}, headers=alice)
    assert resp.status_code == 404

    resp = await client.post("/api/contacts", json={"email": "alice@example.com"}, headers=alice)
    assert resp.status_code == 400

    await befriend(alice, bob, "bob@example.com")
    resp = await client.post("/api/contacts", json={"email": "alice@example.com"}, headers=bob)
    assert resp.status_code == 409


# ── Notification Tests ─────────────────────────────


@pytest.mark.asyncio
async def test_notification_counts(client: AsyncClient, alice, bob):
    await client.get("/api/users/me", headers=bob)
    await client.post("/api/contacts", json={"email": "bob@example.com"}, headers=alice)

    resp = await client.get("/api/notifications", headers=bob)
    assert resp.json() == {"pendingInvites": 1, "pendingExchanges": 0}

    resp = await client.get("/api/notifications", headers=alice)
    assert resp.json() == {"pendingInvites": 0, "pendingExchanges": 0}


@pytest.mark.asyncio
async def test_cookie_takes_precedence_over_header(client: AsyncClient, headers_for):
    client.cookies.set("firebase-session-token", create_session_token("frank"))
    resp = await client.get("/api/users/me", headers=headers_for("grace"))
    assert resp.json()["uid"] == "frank"
