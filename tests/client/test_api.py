from typing import Any

import httpx
import pytest

from codeblog.client.api import GENERIC_ERROR_MESSAGE, ApiError, BlogAPIClient
from tests.conftest import TEST_BASE_URL, build_post_payload


def _client(handler) -> BlogAPIClient:
    return BlogAPIClient(TEST_BASE_URL, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_request_paths_and_bodies() -> None:
    seen: list[tuple[str, str, bytes]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, request.content))
        return httpx.Response(200, json={"like": 1})

    api = _client(handler)
    await api.add_reaction("abc", "like")
    await api.add_comment_reaction("abc", "c1", "eyes")
    await api.aclose()

    assert seen[0][:2] == ("PATCH", "/api/posts/abc/reactions")
    assert b'"reactionType":"like"' in seen[0][2].replace(b" ", b"")
    assert seen[1][:2] == ("PATCH", "/api/posts/abc/comments/c1/reactions")


@pytest.mark.asyncio
async def test_search_sends_query_parameter() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["q"] == "auth.js"
        return httpx.Response(200, json={"posts": [], "total": 0})

    api = _client(handler)
    assert await api.search_posts("auth.js") == {"posts": [], "total": 0}
    await api.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("body", "expected"),
    [
        ({"message": "Title is required"}, "Title is required"),
        ({"detail": "Post not found"}, "Post not found"),
        ({"detail": [{"msg": "field required"}, {"msg": "too short"}]}, "field required; too short"),
        ({"unrelated": True}, GENERIC_ERROR_MESSAGE),
    ],
)
async def test_error_message_extraction(body: dict[str, Any], expected: str) -> None:
    api = _client(lambda request: httpx.Response(400, json=body))
    with pytest.raises(ApiError) as exc_info:
        await api.get_post("x")
    await api.aclose()

    assert exc_info.value.message == expected
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_non_json_error_uses_generic_message() -> None:
    api = _client(lambda request: httpx.Response(502, text="<html>Bad gateway</html>"))
    with pytest.raises(ApiError) as exc_info:
        await api.get_posts()
    await api.aclose()

    assert exc_info.value.message == GENERIC_ERROR_MESSAGE
    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_network_failure_has_no_status(offline_api_client: BlogAPIClient) -> None:
    with pytest.raises(ApiError) as exc_info:
        await offline_api_client.get_posts()
    await offline_api_client.aclose()

    assert exc_info.value.status_code is None
    assert exc_info.value.message.startswith("Network request failed")


@pytest.mark.asyncio
async def test_round_trip_against_app(api_client: BlogAPIClient) -> None:
    created = await api_client.create_post(build_post_payload())
    listed = await api_client.get_posts({"author": "Ada"})
    deleted = await api_client.delete_post(created["id"])
    await api_client.aclose()

    assert [post["id"] for post in listed["posts"]] == [created["id"]]
    assert deleted == {"message": "Post deleted successfully", "id": created["id"]}
