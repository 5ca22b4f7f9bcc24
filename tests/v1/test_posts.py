"""Tests for post endpoints."""

from typing import Any

from fastapi import status
from fastapi.testclient import TestClient

from tests.conftest import build_post_payload


def test_create_post_success(client: TestClient, post_payload: dict[str, Any]) -> None:
    """The store assigns id, timestamps, status and empty collections."""
    response = client.post("/api/posts", json=post_payload)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert len(data["id"]) == 32
    assert data["title"] == "JWT login flow"
    assert data["status"] == "pending"
    assert data["comments"] == []
    assert data["reactions"] == {
        "like": 0, "dislike": 0, "heart": 0, "laugh": 0, "confused": 0, "eyes": 0,
    }
    assert [f["filename"] for f in data["files"]] == ["controllers/auth.js", "routes/index.js"]
    assert all(len(f["id"]) == 32 for f in data["files"])
    assert "createdAt" in data and "updatedAt" in data
    assert data["formattedDate"] == data["createdAt"][:10]


def test_create_post_trims_title(client: TestClient) -> None:
    response = client.post("/api/posts", json=build_post_payload(title="  Spaced  "))
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["title"] == "Spaced"


def test_create_post_requires_a_file(client: TestClient) -> None:
    response = client.post("/api/posts", json=build_post_payload(files=[]))
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_create_post_rejects_unknown_status(client: TestClient) -> None:
    response = client.post("/api/posts", json=build_post_payload(status="archived"))
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_create_post_defaults_file_language(client: TestClient) -> None:
    files = [{"filename": "main.js", "content": "console.log(1)"}]
    response = client.post("/api/posts", json=build_post_payload(files=files))
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["files"][0]["language"] == "javascript"


def test_get_post(client: TestClient, created_post: dict[str, Any]) -> None:
    response = client.get(f"/api/posts/{created_post['id']}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["id"] == created_post["id"]


def test_get_nonexistent_post(client: TestClient) -> None:
    response = client.get("/api/posts/doesnotexist")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Post not found"


def test_list_posts_newest_first(client: TestClient) -> None:
    first = client.post("/api/posts", json=build_post_payload(title="first")).json()
    second = client.post("/api/posts", json=build_post_payload(title="second")).json()

    response = client.get("/api/posts")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 2
    assert [p["id"] for p in data["posts"]] == [second["id"], first["id"]]


def test_list_posts_filters(client: TestClient) -> None:
    client.post("/api/posts", json=build_post_payload(author="Ada", tags=["go"]))
    client.post(
        "/api/posts",
        json=build_post_payload(author="Grace", status="approved", tags=["cobol"]),
    )

    by_author = client.get("/api/posts", params={"author": "Grace"}).json()
    assert [p["author"] for p in by_author["posts"]] == ["Grace"]

    by_status = client.get("/api/posts", params={"status": "approved"}).json()
    assert by_status["total"] == 1

    by_tag = client.get("/api/posts", params={"tag": "go"}).json()
    assert [p["author"] for p in by_tag["posts"]] == ["Ada"]


def test_list_posts_pagination(client: TestClient) -> None:
    for index in range(3):
        client.post("/api/posts", json=build_post_payload(title=f"post {index}"))

    page = client.get("/api/posts", params={"limit": 2, "skip": 2}).json()
    assert page["total"] == 3
    assert len(page["posts"]) == 1


def test_search_matches_filename_case_insensitively(client: TestClient) -> None:
    target = client.post("/api/posts", json=build_post_payload(title="Login")).json()
    client.post(
        "/api/posts",
        json=build_post_payload(
            title="Other",
            description="unrelated",
            files=[{"filename": "main.py", "content": "print('hi')"}],
        ),
    )

    response = client.get("/api/posts/search", params={"q": "AUTH.JS"})
    assert response.status_code == status.HTTP_200_OK
    assert [p["id"] for p in response.json()["posts"]] == [target["id"]]


def test_search_blank_query_returns_everything(client: TestClient) -> None:
    client.post("/api/posts", json=build_post_payload(title="a"))
    client.post("/api/posts", json=build_post_payload(title="b"))

    response = client.get("/api/posts/search", params={"q": "   "})
    assert response.json()["total"] == 2


def test_search_treats_wildcards_literally(client: TestClient) -> None:
    client.post("/api/posts", json=build_post_payload(title="plain"))
    response = client.get("/api/posts/search", params={"q": "%"})
    assert response.json()["posts"] == []


def test_update_post_replaces_content(client: TestClient, created_post: dict[str, Any]) -> None:
    kept = created_post["files"][0]
    payload = build_post_payload(
        title="Updated",
        status="approved",
        files=[
            {"id": kept["id"], "filename": "controllers/auth.js", "content": "// v2"},
            {"filename": "README.md", "language": "markdown", "content": "# docs"},
        ],
    )
    response = client.put(f"/api/posts/{created_post['id']}", json=payload)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["title"] == "Updated"
    assert data["status"] == "approved"
    assert data["files"][0]["id"] == kept["id"]
    assert data["files"][0]["content"] == "// v2"
    assert [f["filename"] for f in data["files"]] == ["controllers/auth.js", "README.md"]
    assert data["createdAt"] == created_post["createdAt"]


def test_update_keeps_comments_and_reactions(
    client: TestClient, created_post: dict[str, Any]
) -> None:
    post_id = created_post["id"]
    client.patch(f"/api/posts/{post_id}/reactions", json={"reactionType": "heart"})
    client.post(
        f"/api/posts/{post_id}/comments",
        json={"author": "Bob", "avatar": "🐻", "content": "looks good"},
    )

    response = client.put(f"/api/posts/{post_id}", json=build_post_payload(title="Again"))
    data = response.json()
    assert data["reactions"]["heart"] == 1
    assert [c["content"] for c in data["comments"]] == ["looks good"]


def test_update_nonexistent_post(client: TestClient, post_payload: dict[str, Any]) -> None:
    response = client.put("/api/posts/missing", json=post_payload)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_delete_post(client: TestClient, created_post: dict[str, Any]) -> None:
    response = client.delete(f"/api/posts/{created_post['id']}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Post deleted successfully", "id": created_post["id"]}

    assert client.get(f"/api/posts/{created_post['id']}").status_code == status.HTTP_404_NOT_FOUND


def test_delete_nonexistent_post(client: TestClient) -> None:
    response = client.delete("/api/posts/missing")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_tag_filter_matches_non_ascii_tags(client: TestClient) -> None:
    target = client.post("/api/posts", json=build_post_payload(tags=["café"])).json()
    client.post("/api/posts", json=build_post_payload(tags=["tea"]))

    response = client.get("/api/posts", params={"tag": "café"})
    assert [p["id"] for p in response.json()["posts"]] == [target["id"]]


def test_search_folds_non_ascii_case(client: TestClient) -> None:
    target = client.post("/api/posts", json=build_post_payload(title="Über école")).json()
    client.post("/api/posts", json=build_post_payload(title="plain", description="ascii"))

    response = client.get("/api/posts/search", params={"q": "ÜBER ÉCOLE"})
    assert [p["id"] for p in response.json()["posts"]] == [target["id"]]
