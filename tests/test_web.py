"""Tests for the HTML pages."""


class TestCreateForm:
    """Test the creation form."""

    async def test_homepage(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        for i in range(5):
            assert f'name="url_{i}"' in response.text
        assert 'action="/create"' in response.text

    async def test_create(self, client):
        response = await client.post(
            "/create",
            data={"url_0": "https://example.com/a", "code_0": "webby1", "url_1": "", "url_2": "https://example.com/c"},
        )

        assert response.status_code == 200
        assert "Successfully created 2 short URLs" in response.text
        assert "http://testserver/webby1" in response.text

    async def test_no_urls(self, client):
        response = await client.post("/create", data={"url_0": "  "})

        assert response.status_code == 400
        assert "Enter at least one URL to shorten" in response.text

    async def test_field_errors_keep_input(self, client):
        response = await client.post(
            "/create",
            data={"url_0": "not-a-url", "validity_0": "abc", "code_0": "x!", "url_1": "https://example.com/ok"},
        )

        assert response.status_code == 400
        assert "Please fix the highlighted fields" in response.text
        assert "Validity must be a whole number of minutes" in response.text
        assert "Short code must be 3-20 alphanumeric characters" in response.text
        assert 'value="https://example.com/ok"' in response.text
        listing = await client.get("/api/urls")
        assert listing.json()["summary"]["total_urls"] == 0

    async def test_huge_validity(self, client):
        response = await client.post("/create", data={"url_0": "https://example.com/a", "validity_0": "10000000000"})

        assert response.status_code == 400
        assert "Validity must be at most" in response.text

    async def test_taken_code(self, client):
        await client.post("/create", data={"url_0": "https://example.com/a", "code_0": "dup01"})

        response = await client.post("/create", data={"url_0": "https://example.com/b", "code_0": "dup01"})

        assert response.status_code == 409
        assert "Short code already exists: dup01" in response.text


class TestRedirectPages:
    """Test GET /{code}."""

    async def test_redirect_page(self, client):
        await client.post("/api/shorten", json={"urls": [{"url": "https://example.com/dest", "custom_code": "go1"}]})

        response = await client.get("/go1", headers={"Referer": "https://twitter.com/"})

        assert response.status_code == 200
        assert "Redirecting" in response.text
        assert 'href="https://example.com/dest"' in response.text
        assert 'id="cancel"' in response.text
        assert '<strong id="countdown">3</strong>' in response.text

        info = (await client.get("/api/urls/go1")).json()
        assert info["click_count"] == 1
        assert info["clicks"][0]["source"] == "https://twitter.com/"

    async def test_not_found_page(self, client):
        response = await client.get("/nothere")

        assert response.status_code == 404
        assert "Link Not Found" in response.text

    async def test_expired_page(self, client, clock):
        await client.post(
            "/api/shorten",
            json={"urls": [{"url": "https://example.com/dest", "validity_minutes": 1, "custom_code": "old1"}]},
        )
        clock.advance(minutes=2)

        response = await client.get("/old1")

        assert response.status_code == 410
        assert "Link Expired" in response.text
        assert "This short URL expired on 2026-01-01 at 12:01:00 UTC." in response.text


class TestStatsPage:
    """Test GET /stats."""

    async def test_empty(self, client):
        response = await client.get("/stats")

        assert response.status_code == 200
        assert "No URLs to analyze yet" in response.text

    async def test_with_data(self, client):
        await client.post("/api/shorten", json={"urls": [{"url": "https://example.com/s", "custom_code": "stat1"}]})
        await client.get("/api/resolve/stat1")

        response = await client.get("/stats", params={"sort": "clicks", "status": "active"})

        assert response.status_code == 200
        assert "Total URLs: 1" in response.text
        assert "Total Clicks: 1" in response.text
        assert "http://testserver/stat1" in response.text
        assert '<option value="clicks" selected>' in response.text

    async def test_bad_sort(self, client):
        assert (await client.get("/stats", params={"sort": "nope"})).status_code == 400

    async def test_health(self, client):
        assert (await client.get("/health")).json() == {"status": "healthy"}
