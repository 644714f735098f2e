"""
Web App Endpoint Tests
======================
Integration tests for the Flask upload/generate endpoints.
"""
import io

import pytest

import tagcloud_app
from tagcloud_core import generate_tag_cloud

QUICK_FOX = "the Quick brown fox. The QUICK fox jumps!\n"


@pytest.fixture
def client(tmp_path, monkeypatch):
    """Flask test client with uploads redirected to a temporary directory."""
    monkeypatch.setattr(tagcloud_app, "UPLOAD_DIR", tmp_path / "uploads")
    tagcloud_app.app.config.update(TESTING=True)
    return tagcloud_app.app.test_client()


def upload(client, text, filename="quick.txt"):
    return client.post(
        "/api/upload",
        data={"file": (io.BytesIO(text.encode("utf-8")), filename)},
        content_type="multipart/form-data",
    )


class TestIndex:

    def test_index_renders_form(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert b"Tag Cloud Generator" in response.data
        assert b'value="100"' in response.data

    def test_stylesheet(self, client):
        response = client.get("/tagcloud.css")
        assert response.status_code == 200
        assert response.mimetype == "text/css"
        assert b".f11 { font-size: 11px; }" in response.data
        assert b".f48 { font-size: 48px; }" in response.data


class TestUpload:

    def test_upload_stores_file(self, client, tmp_path):
        response = upload(client, QUICK_FOX, filename="../quick fox.txt")
        assert response.status_code == 200
        data = response.get_json()
        assert data["filename"] == "quick_fox.txt"
        stored = tmp_path / "uploads" / data["stored"].rsplit("/", 1)[-1]
        assert stored.read_text(encoding="utf-8") == QUICK_FOX

    def test_upload_without_file(self, client):
        response = client.post("/api/upload", data={}, content_type="multipart/form-data")
        assert response.status_code == 400
        assert response.get_json()["error"] == "No file part"


class TestGenerate:

    def test_generate_from_upload(self, client):
        text_path = upload(client, QUICK_FOX).get_json()["textPath"]

        response = client.post("/api/generate", json={"textPath": text_path, "words": 3})

        assert response.status_code == 200
        data = response.get_json()
        assert data["title"] == f"Top 3 Words in {text_path}"
        assert data["distinctWords"] == 5
        assert data["words"] == [
            {"text": "fox", "count": 2, "size": 29},
            {"text": "quick", "count": 2, "size": 29},
            {"text": "the", "count": 2, "size": 29},
        ]

    def test_html_matches_pipeline(self, client, tmp_path):
        text_path = upload(client, QUICK_FOX).get_json()["textPath"]
        stored = tmp_path / "uploads" / text_path.rsplit("/", 1)[-1]

        response = client.post("/api/generate", json={"textPath": text_path, "words": 4})

        expected = generate_tag_cloud(stored, 4, title_path=text_path)
        assert response.get_json()["html"] == expected.html

    def test_generate_from_inline_text(self, client):
        response = client.post(
            "/api/generate",
            json={"text": "b a b c b a", "words": 2, "title": "notes.txt"},
        )
        data = response.get_json()
        assert data["title"] == "Top 2 Words in notes.txt"
        assert [word["text"] for word in data["words"]] == ["a", "b"]
        assert [word["size"] for word in data["words"]] == [11, 48]

    def test_generate_from_form_config(self, client):
        response = client.post(
            "/api/generate",
            data={"config": '{"text": "one two two", "words": "1"}'},
        )
        assert response.status_code == 200
        assert response.get_json()["words"] == [{"text": "two", "count": 2, "size": 29}]

    def test_separator_only_text(self, client):
        response = client.post("/api/generate", json={"text": "... !!", "words": 3})
        data = response.get_json()
        assert data["words"] == []
        assert "<span" not in data["html"]

    @pytest.mark.parametrize("words", [0, -1, "none"])
    def test_invalid_word_count(self, client, words):
        response = client.post("/api/generate", json={"text": "a", "words": words})
        assert response.status_code == 400
        assert response.get_json()["error"] == "ERROR: EMPTY words"

    def test_missing_source(self, client):
        response = client.post("/api/generate", json={"words": 3})
        assert response.status_code == 400

    def test_missing_file(self, client):
        response = client.post("/api/generate", json={"textPath": "data/uploads/nope.txt", "words": 3})
        assert response.status_code == 404

    def test_path_outside_project(self, client):
        response = client.post("/api/generate", json={"textPath": "/etc/passwd", "words": 3})
        assert response.status_code == 400


class TestRobustness:

    def test_unknown_encoding(self, client):
        text_path = upload(client, QUICK_FOX).get_json()["textPath"]

        response = client.post(
            "/api/generate",
            json={"textPath": text_path, "words": 2, "encoding": "bogus"},
        )

        assert response.status_code == 400
        assert response.get_json()["error"].startswith("ERROR: File not read - ")

    def test_relative_upload_dir(self, client, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        upload_dir = tagcloud_app.resolve_upload_dir("relative-uploads")
        assert upload_dir == (tmp_path / "relative-uploads").resolve()
        monkeypatch.setattr(tagcloud_app, "UPLOAD_DIR", upload_dir)

        text_path = upload(client, QUICK_FOX).get_json()["textPath"]
        response = client.post("/api/generate", json={"textPath": text_path, "words": 3})

        assert response.status_code == 200
        assert [word["text"] for word in response.get_json()["words"]] == ["fox", "quick", "the"]

    def test_fractional_word_count(self, client):
        response = client.post("/api/generate", json={"text": "a b b c c c", "words": 2.9})
        assert response.status_code == 400
        assert response.get_json()["error"] == "ERROR: EMPTY words"

    @pytest.mark.parametrize("body", ["[1]", '"text"', "3"])
    def test_non_object_json_body(self, client, body):
        response = client.post("/api/generate", data=body, content_type="application/json")
        assert response.status_code == 400
        assert response.get_json()["error"] == "textPath or text missing"
