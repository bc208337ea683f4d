from fastapi.testclient import TestClient

from main import app
from shortlink_app.dependencies import get_link_store
from shortlink_app.exceptions import StoreUnavailableError
from shortlink_app.storage.strategies import InMemoryLinkStore


class BrokenLinkStore(InMemoryLinkStore):
    """Store whose backend is down"""

    async def get_by_id(self, link_id):
        raise StoreUnavailableError("database is down")

    async def get_by_original_url(self, original_url, now=None):
        raise StoreUnavailableError("database is down")


def shorten(client: TestClient, url: str, **extra):
    return client.post("/api/shorten", json={"originalUrl": url, **extra})


class TestShortenEndpoint:
    """POST /api/shorten"""

    def test_create_short_link(self, client: TestClient):
        response = shorten(client, "https://www.google.com/")
        assert response.status_code == 201

        data = response.json()
        assert set(data) == {"id", "originalUrl", "shortUrl", "clicks", "createdAt", "expiresAt"}
        assert len(data["id"]) == 7
        assert data["originalUrl"] == "https://www.google.com/"
        assert data["shortUrl"] == f"http://sho.rt/{data['id']}"
        assert data["clicks"] == 0
        assert data["expiresAt"] is None

    def test_create_with_ttl(self, client: TestClient):
        response = shorten(client, "https://www.google.com/", ttl=24)
        assert response.status_code == 201
        assert response.json()["expiresAt"].startswith("2024-01-02T12:00:00")

    def test_existing_url_returns_200(self, client: TestClient):
        first = shorten(client, "https://www.github.com/")
        second = shorten(client, "https://www.github.com/", ttl=1)

        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json()["id"] == first.json()["id"]
        # The original record wins, ttl is ignored
        assert second.json()["expiresAt"] is None

    def test_invalid_url(self, client: TestClient):
        response = shorten(client, "not a url")
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid URL provided."}

    def test_missing_url(self, client: TestClient):
        response = client.post("/api/shorten", json={})
        assert response.status_code == 400
        assert "error" in response.json()

    def test_bad_ttl_type(self, client: TestClient):
        response = shorten(client, "https://example.com", ttl="soon")
        assert response.status_code == 400
        assert "error" in response.json()

    def test_ttl_too_large(self, client: TestClient):
        response = shorten(client, "https://example.com", ttl=1e9)
        assert response.status_code == 400
        assert "error" in response.json()

    def test_expired_url_gets_new_link(self, client: TestClient, clock):
        first = shorten(client, "https://example.com", ttl=1).json()
        clock.advance(hours=2)

        response = shorten(client, "https://example.com")

        assert response.status_code == 201
        assert response.json()["id"] != first["id"]

    def test_store_failure(self, client: TestClient):
        app.dependency_overrides[get_link_store] = lambda: BrokenLinkStore()

        response = shorten(client, "https://example.com")

        assert response.status_code == 500
        assert response.json() == {"error": "Server error. Please try again."}


class TestRedirectEndpoint:
    """GET /{id}"""

    def test_redirect(self, client: TestClient):
        link_id = shorten(client, "https://www.github.com/").json()["id"]

        response = client.get(f"/{link_id}", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "https://www.github.com/"

    def test_redirect_counts_click(self, client: TestClient):
        link_id = shorten(client, "https://www.stackoverflow.com/").json()["id"]

        client.get(f"/{link_id}", follow_redirects=False)

        info = client.get(f"/api/links/{link_id}")
        assert info.status_code == 200
        assert info.json()["clicks"] == 1

    def test_unknown_id(self, client: TestClient):
        response = client.get("/nonexistent", follow_redirects=False)
        assert response.status_code == 404
        assert response.json() == {"error": "No URL found."}

    def test_expired_link(self, client: TestClient, clock, store):
        link_id = shorten(client, "https://example.com/short-lived", ttl=1).json()["id"]
        clock.advance(hours=2)

        first = client.get(f"/{link_id}", follow_redirects=False)
        second = client.get(f"/{link_id}", follow_redirects=False)

        assert first.status_code == 410
        assert second.status_code == 410
        assert len(store) == 0

    def test_store_failure(self, client: TestClient):
        app.dependency_overrides[get_link_store] = lambda: BrokenLinkStore()

        response = client.get("/abc1234", follow_redirects=False)

        assert response.status_code == 500


class TestLinkInfoEndpoint:
    """GET /api/links/{id}"""

    def test_info_does_not_count_clicks(self, client: TestClient):
        link_id = shorten(client, "https://example.com").json()["id"]

        client.get(f"/api/links/{link_id}")
        response = client.get(f"/api/links/{link_id}")

        assert response.status_code == 200
        assert response.json()["clicks"] == 0

    def test_unknown_id(self, client: TestClient):
        assert client.get("/api/links/nonexistent").status_code == 404


class TestServiceEndpoints:

    def test_cors_preflight(self, client: TestClient):
        response = client.options(
            "/api/shorten",
            headers={
                "Origin": "https://frontend.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "POST" in response.headers["access-control-allow-methods"]

    def test_cors_header_on_simple_request(self, client: TestClient):
        response = client.post(
            "/api/shorten",
            json={"originalUrl": "https://example.com"},
            headers={"Origin": "https://frontend.example"},
        )
        assert response.status_code == 201
        assert response.headers["access-control-allow-origin"] == "*"

    def test_root(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"

    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
