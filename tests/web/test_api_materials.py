"""Tests for the downloads and video lessons endpoints."""

import pytest

VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


@pytest.fixture
def admin_headers(admin_auth):
    return admin_auth[1]


@pytest.fixture
def make_download(client, admin_headers):
    def _make(**fields):
        payload = {"title": "Past papers", "file_url": "https://files.example.com/papers.pdf", **fields}
        response = client.post("/api/downloads", headers=admin_headers, json=payload)
        assert response.status_code == 201
        return response.json()

    return _make


class TestDownloads:
    def test_listing_filters(self, client, make_download, university):
        make_download(title="Algebra summary", type="summary", university_id=university.id)
        make_download(title="Physics formulas", type="guide")

        everything = client.get("/api/downloads").json()
        by_search = client.get("/api/downloads", params={"search": "ALGEBRA"}).json()
        by_type = client.get("/api/downloads", params={"type": "guide"}).json()
        by_university = client.get("/api/downloads", params={"university_id": university.id}).json()

        assert [d["title"] for d in everything] == ["Physics formulas", "Algebra summary"]
        assert [d["title"] for d in by_search] == ["Algebra summary"]
        assert [d["title"] for d in by_type] == ["Physics formulas"]
        assert by_university[0]["university_name"] == "University of Testing"

    def test_request_counts_download(self, client, auth, make_download):
        _, headers = auth
        material = make_download()

        response = client.post(f"/api/downloads/{material['id']}/request", headers=headers)

        assert response.status_code == 200
        assert response.json() == {"file_url": "https://files.example.com/papers.pdf"}
        assert client.get("/api/downloads").json()[0]["download_count"] == 1

    def test_premium_material_gated(self, client, auth, premium_auth, make_download):
        material = make_download(is_premium=True)

        free = client.post(f"/api/downloads/{material['id']}/request", headers=auth[1])
        premium = client.post(f"/api/downloads/{material['id']}/request", headers=premium_auth[1])

        assert free.status_code == 402
        assert premium.status_code == 200

    def test_request_unknown(self, client, auth):
        assert client.post("/api/downloads/ghost/request", headers=auth[1]).status_code == 404

    def test_admin_update_and_delete(self, client, admin_headers, make_download):
        material = make_download()

        response = client.patch(
            f"/api/downloads/{material['id']}", headers=admin_headers, json={"title": "Renamed"}
        )
        assert response.json()["title"] == "Renamed"

        assert client.delete(f"/api/downloads/{material['id']}", headers=admin_headers).status_code == 204
        assert client.get("/api/downloads").json() == []

    def test_create_requires_admin(self, client, auth):
        response = client.post(
            "/api/downloads", headers=auth[1], json={"title": "X", "file_url": "https://x"}
        )
        assert response.status_code == 403


class TestVideos:
    def test_create_derives_id_and_thumbnail(self, client, admin_headers):
        response = client.post(
            "/api/videos", headers=admin_headers, json={"title": "Limits", "youtube_url": VIDEO_URL}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["youtube_id"] == "dQw4w9WgXcQ"
        assert "dQw4w9WgXcQ" in data["thumbnail_url"]

    def test_rejects_non_youtube_url(self, client, admin_headers):
        response = client.post(
            "/api/videos",
            headers=admin_headers,
            json={"title": "Limits", "youtube_url": "https://vimeo.com/123"},
        )
        assert response.status_code == 400

    def test_cursor_paging(self, client, admin_headers):
        for index, title in enumerate(["Lesson 1", "Lesson 2", "Lesson 3"]):
            client.post(
                "/api/videos",
                headers=admin_headers,
                json={"title": title, "youtube_url": VIDEO_URL, "order_index": index},
            )

        first = client.get("/api/videos", params={"page_size": 2}).json()
        assert [v["title"] for v in first["videos"]] == ["Lesson 1", "Lesson 2"]
        assert first["next_cursor"] == first["videos"][-1]["id"]

        second = client.get("/api/videos", params={"page_size": 2, "after": first["next_cursor"]}).json()
        assert [v["title"] for v in second["videos"]] == ["Lesson 3"]
        assert second["next_cursor"] is None

    def test_filter_by_subject(self, client, admin_headers):
        client.post(
            "/api/videos",
            headers=admin_headers,
            json={"title": "Vectors", "youtube_url": VIDEO_URL, "subject": "physics"},
        )
        client.post("/api/videos", headers=admin_headers, json={"title": "Limits", "youtube_url": VIDEO_URL})

        page = client.get("/api/videos", params={"subject": "physics"}).json()

        assert [v["title"] for v in page["videos"]] == ["Vectors"]

    def test_update_and_delete(self, client, admin_headers):
        video = client.post(
            "/api/videos", headers=admin_headers, json={"title": "Limits", "youtube_url": VIDEO_URL}
        ).json()

        response = client.patch(f"/api/videos/{video['id']}", headers=admin_headers, json={"duration": 600})
        assert response.json()["duration"] == 600

        assert client.delete(f"/api/videos/{video['id']}", headers=admin_headers).status_code == 204
        assert client.delete(f"/api/videos/{video['id']}", headers=admin_headers).status_code == 404
