import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from main import app
from snaplink_app.config import settings
from snaplink_app.dependencies import get_url_service
from snaplink_app.exceptions import (
    ConflictError,
    GoneError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from snaplink_app.schemas.url import RedirectResult, URLCreate
from snaplink_app.services.url_service import INVALID_SHORT_CODE, URLService
from snaplink_app.storage.strategies import InMemoryUrlStore, SQLAlchemyUrlStore


def in_days(days: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=days)


class TestURLShortener:
    """Test the HTTP API end to end"""

    def test_create_short_url(self, client: TestClient):
        """Test creating a short URL"""
        url_data = {"originalUrl": "https://www.google.com/"}

        response = client.post("/api/urls", json=url_data)
        assert response.status_code == 201

        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["originalUrl"] == url_data["originalUrl"]
        assert len(data["shortCode"]) == settings.short_code_length
        assert data["shortUrl"] == f"{settings.base_url}/{data['shortCode']}"
        assert data["id"]
        assert "createdAt" in data
        # Optional fields are only present when provided
        assert "ownerId" not in data
        assert "expiresAt" not in data

    def test_create_with_custom_code_owner_and_expiry(self, client: TestClient):
        expires_at = in_days(1)
        url_data = {
            "originalUrl": "https://example.org/landing",
            "customShortCode": "my-link",
            "ownerId": "user-42",
            "expiresAt": expires_at.isoformat(),
        }

        response = client.post("/api/urls", json=url_data)
        assert response.status_code == 201

        data = response.json()["data"]
        assert data["shortCode"] == "my-link"
        assert data["ownerId"] == "user-42"
        assert data["shortUrl"] == f"{settings.base_url}/my-link"
        assert "expiresAt" in data

    def test_duplicate_custom_code(self, client: TestClient):
        payload = {"originalUrl": "https://example.org", "customShortCode": "taken"}
        assert client.post("/api/urls", json=payload).status_code == 201

        response = client.post("/api/urls", json={**payload, "originalUrl": "https://example.net"})
        assert response.status_code == 409
        assert response.json() == {"success": False, "error": "Short code already exists"}

    @pytest.mark.parametrize("payload, message", [
        ({}, "Original URL is required"),
        ({"originalUrl": ""}, "Original URL is required"),
        ({"originalUrl": "not-a-valid-url"}, "Invalid URL format"),
        ({"originalUrl": "ftp://example.com/file"}, "Invalid URL format"),
        ({"originalUrl": "https://example.com", "customShortCode": "ab"}, INVALID_SHORT_CODE),
        ({"originalUrl": "https://example.com", "customShortCode": "has space"}, INVALID_SHORT_CODE),
    ])
    def test_create_validation_errors(self, client: TestClient, payload, message):
        response = client.post("/api/urls", json=payload)
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": message}

    def test_create_without_body(self, client: TestClient):
        response = client.post("/api/urls")
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Original URL is required"}

    @pytest.mark.parametrize("payload", [[], ["https://example.com"], "https://example.com", 42, None])
    def test_create_with_non_object_body(self, client: TestClient, payload):
        response = client.post("/api/urls", json=payload)
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Original URL is required"}

    def test_create_with_long_url(self, client: TestClient):
        long_url = "https://example.com/track?ref=" + "a" * 2100
        response = client.post("/api/urls", json={"originalUrl": long_url})
        assert response.status_code == 201

        short_code = response.json()["data"]["shortCode"]
        redirect = client.get(f"/{short_code}", follow_redirects=False)
        assert redirect.status_code == 302
        assert redirect.headers["location"] == long_url

    def test_malformed_json(self, client: TestClient):
        response = client.post(
            "/api/urls",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid JSON format"}

    def test_bad_expiry_type(self, client: TestClient):
        response = client.post(
            "/api/urls",
            json={"originalUrl": "https://example.com", "expiresAt": "next tuesday"},
        )
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_get_url_info(self, client: TestClient):
        """Test getting URL information"""
        create_response = client.post("/api/urls", json={"originalUrl": "https://www.google.com/"})
        short_code = create_response.json()["data"]["shortCode"]

        response = client.get(f"/api/urls/{short_code}/info")
        assert response.status_code == 200

        data = response.json()["data"]
        assert data["shortCode"] == short_code
        assert data["originalUrl"] == "https://www.google.com/"
        assert data["shortUrl"] == f"{settings.base_url}/{short_code}"
        assert data["isActive"] is True
        assert data["isExpired"] is False
        assert data["clickCount"] == 0
        assert data["expiresAt"] is None

    def test_get_nonexistent_url_info(self, client: TestClient):
        response = client.get("/api/urls/zzz000/info")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "URL not found"}

    def test_redirect_url(self, client: TestClient):
        """Test URL redirection through both routes"""
        create_response = client.post("/api/urls", json={"originalUrl": "https://www.github.com/"})
        short_code = create_response.json()["data"]["shortCode"]

        response = client.get(f"/{short_code}", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "https://www.github.com/"

        response = client.get(f"/api/urls/{short_code}", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "https://www.github.com/"

    def test_redirects_are_counted(self, client: TestClient):
        create_response = client.post("/api/urls", json={"originalUrl": "https://www.stackoverflow.com/"})
        short_code = create_response.json()["data"]["shortCode"]

        # Second and third hit are served from the cache; clicks still count
        for _ in range(3):
            client.get(f"/{short_code}", follow_redirects=False)

        response = client.get(f"/api/urls/{short_code}/info")
        assert response.json()["data"]["clickCount"] == 3

    def test_redirect_nonexistent_url(self, client: TestClient):
        response = client.get("/zzz000", follow_redirects=False)
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "URL not found"}

    def test_redirect_expired_url(self, client: TestClient, db_session):
        SQLAlchemyUrlStore(db_session).create(
            original_url="https://old.example",
            short_code="old001",
            expires_at=in_days(-1),
        )

        response = client.get("/old001", follow_redirects=False)
        assert response.status_code == 410
        assert response.json() == {"success": False, "error": "URL has expired"}

        info = client.get("/api/urls/old001/info").json()["data"]
        assert info["isExpired"] is True
        assert info["clickCount"] == 0

    def test_redirect_inactive_url(self, client: TestClient, db_session):
        SQLAlchemyUrlStore(db_session).create(
            original_url="https://off.example",
            short_code="off001",
            is_active=False,
        )

        response = client.get("/api/urls/off001", follow_redirects=False)
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "URL is not active"}

    def test_list_owner_urls(self, client: TestClient):
        client.post("/api/urls", json={"originalUrl": "https://a.example", "ownerId": "u1"})
        client.post("/api/urls", json={"originalUrl": "https://b.example", "ownerId": "u1"})
        client.post("/api/urls", json={"originalUrl": "https://c.example", "ownerId": "u2"})

        response = client.get("/api/urls", params={"ownerId": "u1"})
        assert response.status_code == 200
        urls = response.json()["data"]
        assert {u["originalUrl"] for u in urls} == {"https://a.example", "https://b.example"}
        assert all("shortUrl" in u for u in urls)

    def test_list_owner_urls_requires_owner(self, client: TestClient):
        response = client.get("/api/urls")
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_unknown_route(self, client: TestClient):
        response = client.get("/api/urls/abc/info/extra")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Route not found"}

    def test_unexpected_errors_are_not_leaked(self, db_session):
        class BrokenStore(InMemoryUrlStore):
            def find_by_short_code(self, short_code):
                raise RuntimeError("connection to db-primary:5432 refused")

        app.dependency_overrides[get_url_service] = lambda: URLService(store=BrokenStore())
        try:
            with TestClient(app, raise_server_exceptions=False) as test_client:
                response = test_client.get("/abc123", follow_redirects=False)
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}
        assert "db-primary" not in response.text

    def test_debug_setting_never_exposes_tracebacks(self, db_session, monkeypatch):
        class BrokenStore(InMemoryUrlStore):
            def find_by_short_code(self, short_code):
                raise RuntimeError("connection to db-primary:5432 refused")

        monkeypatch.setattr(settings, "debug", True)
        app.dependency_overrides[get_url_service] = lambda: URLService(store=BrokenStore())
        try:
            with TestClient(app, raise_server_exceptions=False) as test_client:
                response = test_client.get("/abc123", follow_redirects=False)
        finally:
            app.dependency_overrides.clear()

        assert app.debug is False
        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/json")
        assert response.json() == {"success": False, "error": "Internal server error"}
        assert "Traceback" not in response.text
        assert "db-primary" not in response.text


class TestURLService:
    """Test the creation and redirect workflows directly"""

    def test_short_code_generation(self, memory_store):
        """Two URLs with the same destination get different codes"""
        service = URLService(memory_store)

        request = URLCreate(original_url="https://www.test.com/")
        url1 = asyncio.run(service.create_short_url(request))
        url2 = asyncio.run(service.create_short_url(request))

        assert url1.short_code != url2.short_code
        assert url1.original_url == url2.original_url
        assert memory_store.count_urls() == 2

    def test_creation_stores_defaults(self, memory_store):
        service = URLService(memory_store)

        created = asyncio.run(service.create_short_url(
            URLCreate(original_url="https://example.com", owner_id="user-1")
        ))

        record = memory_store.find_by_short_code(created.short_code)
        assert record.is_active is True
        assert record.click_count == 0
        assert record.owner_id == "user-1"
        assert record.expires_at is None
        assert created.id == record.id
        assert created.created_at == record.created_at

    def test_different_custom_codes_never_collide(self, memory_store):
        service = URLService(memory_store)

        for code in ("alpha", "beta", "gamma"):
            asyncio.run(service.create_short_url(
                URLCreate(original_url="https://example.com", custom_short_code=code)
            ))

        assert memory_store.count_urls() == 3

    def test_repeated_custom_code_conflicts(self, memory_store):
        service = URLService(memory_store)
        request = URLCreate(original_url="https://example.com", custom_short_code="promo")
        asyncio.run(service.create_short_url(request))

        with pytest.raises(ConflictError) as exc_info:
            asyncio.run(service.create_short_url(request))

        assert exc_info.value.message == "Short code already exists"
        assert exc_info.value.status_code == 409

    def test_validation_order(self, memory_store):
        service = URLService(memory_store)

        with pytest.raises(ValidationError, match="Original URL is required"):
            asyncio.run(service.create_short_url(URLCreate(custom_short_code="ab")))

        # URL is checked before the custom code
        with pytest.raises(ValidationError, match="Invalid URL format"):
            asyncio.run(service.create_short_url(
                URLCreate(original_url="nope", custom_short_code="ab")
            ))

        assert memory_store.count_urls() == 0

    def test_generation_retries_on_collision(self, memory_store):
        memory_store.create(original_url="https://example.com", short_code="taken1")
        codes = iter(["taken1", "taken1", "fresh1"])
        service = URLService(memory_store, code_generator=lambda length: next(codes))

        created = asyncio.run(service.create_short_url(URLCreate(original_url="https://example.org")))

        assert created.short_code == "fresh1"

    def test_generation_gives_up_after_ten_attempts(self, memory_store):
        memory_store.create(original_url="https://example.com", short_code="taken1")
        calls = []

        def always_taken(length):
            calls.append(length)
            return "taken1"

        service = URLService(memory_store, code_generator=always_taken)

        with patch.object(memory_store, "create", wraps=memory_store.create) as create:
            with pytest.raises(InternalError) as exc_info:
                asyncio.run(service.create_short_url(URLCreate(original_url="https://example.org")))

        assert exc_info.value.message == "Unable to generate unique short code"
        assert exc_info.value.status_code == 500
        assert len(calls) == 10
        create.assert_not_called()
        assert memory_store.count_urls() == 1

    def test_expires_at_is_stored_as_utc(self, memory_store):
        service = URLService(memory_store)
        local = datetime(2030, 6, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

        created = asyncio.run(service.create_short_url(
            URLCreate(original_url="https://example.com", expires_at=local)
        ))

        assert created.expires_at == datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)
        assert created.expires_at.utcoffset() == timedelta(0)

    def test_redirect_increments_click_count(self, memory_store):
        memory_store.create(
            original_url="https://example.com",
            short_code="abc123",
            click_count=5,
            expires_at=in_days(365),
        )
        service = URLService(memory_store)

        result = asyncio.run(service.redirect("abc123"))

        assert result == RedirectResult(original_url="https://example.com", is_active=True, is_expired=False)
        assert memory_store.find_by_short_code("abc123").click_count == 6

    def test_redirect_missing_code(self, memory_store):
        service = URLService(memory_store)

        with patch.object(memory_store, "increment_click_count") as increment:
            with pytest.raises(NotFoundError) as exc_info:
                asyncio.run(service.redirect("zzz000"))

        assert exc_info.value.message == "URL not found"
        assert exc_info.value.status_code == 404
        increment.assert_not_called()

    def test_redirect_requires_code(self, memory_store):
        service = URLService(memory_store)

        with pytest.raises(ValidationError, match="Short code is required"):
            asyncio.run(service.redirect(""))

    def test_redirect_expired(self, memory_store):
        memory_store.create(
            original_url="https://example.com",
            short_code="exp001",
            click_count=2,
            expires_at=datetime.now(timezone.utc) - timedelta(seconds=1),
        )
        service = URLService(memory_store)

        with pytest.raises(GoneError) as exc_info:
            asyncio.run(service.redirect("exp001"))

        assert exc_info.value.message == "URL has expired"
        assert exc_info.value.status_code == 410
        assert memory_store.find_by_short_code("exp001").click_count == 2

    def test_redirect_inactive(self, memory_store):
        memory_store.create(original_url="https://example.com", short_code="off001", is_active=False)
        service = URLService(memory_store)

        with pytest.raises(NotFoundError, match="URL is not active"):
            asyncio.run(service.redirect("off001"))

        assert memory_store.find_by_short_code("off001").click_count == 0

    def test_inactive_check_wins_over_expiry(self, memory_store):
        memory_store.create(
            original_url="https://example.com",
            short_code="both01",
            is_active=False,
            expires_at=in_days(-1),
        )
        service = URLService(memory_store)

        with pytest.raises(NotFoundError, match="URL is not active"):
            asyncio.run(service.redirect("both01"))

    def test_deactivate_invalidates_cached_redirect(self, sql_store, cache):
        service = URLService(sql_store, cache=cache)
        created = asyncio.run(service.create_short_url(URLCreate(original_url="https://example.com")))
        asyncio.run(service.redirect(created.short_code))

        info = asyncio.run(service.deactivate_url(created.short_code))
        assert info.is_active is False
        assert info.click_count == 1

        with pytest.raises(NotFoundError, match="URL is not active"):
            asyncio.run(service.redirect(created.short_code))

        info = asyncio.run(service.activate_url(created.short_code))
        assert info.is_active is True
        assert asyncio.run(service.redirect(created.short_code)).original_url == "https://example.com"
        assert sql_store.find_by_short_code(created.short_code).click_count == 2

    def test_activate_unknown_code(self, memory_store):
        service = URLService(memory_store)

        with pytest.raises(NotFoundError):
            asyncio.run(service.deactivate_url("zzz000"))

    def test_redirect_after_delete_drops_cache_entry(self, memory_store, cache):
        service = URLService(memory_store, cache=cache)
        created = asyncio.run(service.create_short_url(URLCreate(original_url="https://example.com")))

        # Record removed behind the service's back while still cached
        memory_store.delete(created.id)

        with pytest.raises(NotFoundError, match="URL not found"):
            asyncio.run(service.redirect(created.short_code))
        assert asyncio.run(cache.get(f"url:{created.short_code}")) is None

    def test_get_url_info_does_not_count(self, memory_store):
        memory_store.create(original_url="https://example.com", short_code="info01", click_count=4)
        service = URLService(memory_store)

        info = asyncio.run(service.get_url_info("info01"))

        assert info.click_count == 4
        assert info.short_url == f"{settings.base_url}/info01"
        assert memory_store.find_by_short_code("info01").click_count == 4

    def test_list_owner_urls(self, memory_store):
        memory_store.create(original_url="https://a.example", short_code="own001", owner_id="u1")
        memory_store.create(original_url="https://b.example", short_code="own002", owner_id="u2")
        service = URLService(memory_store)

        urls = asyncio.run(service.list_owner_urls("u1"))

        assert [u.short_code for u in urls] == ["own001"]
