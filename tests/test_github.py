"""Tests for the GitHub save gateway: path validation, create-or-update, error mapping."""

import base64
from unittest.mock import MagicMock, patch

import pytest
import requests

from services.document import Attachment
from services.errors import (
    TransportError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamNotFound,
    ValidationError,
)
from services.github import GitHubStore, build_github_store, slugify, validate_file_name

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

API = "https://api.github.com/repos/sebbys/nightfall-cms/contents"


def _resp(status, payload=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload if payload is not None else {}
    resp.text = ""
    return resp


def _put_ok(path):
    return _resp(
        201,
        {
            "content": {
                "sha": f"sha-{path}",
                "html_url": f"https://github.com/sebbys/nightfall-cms/blob/main/{path}",
                "download_url": f"https://raw.githubusercontent.com/sebbys/nightfall-cms/main/{path}",
            },
            "commit": {"sha": "c0ffee"},
        },
    )


@pytest.fixture()
def session():
    s = MagicMock()
    s.headers = {}
    return s


@pytest.fixture()
def store(session):
    return GitHubStore(
        "ghp_test",
        owner="sebbys",
        repo="nightfall-cms",
        branch="main",
        posts_dir="src/app/blogs",
        images_dir="images",
        api_url="https://api.github.com",
        session=session,
    )


def _calls(session):
    return [(c.args[0], c.args[1]) for c in session.request.call_args_list]


# ---------------------------------------------------------------------------
# validate_file_name / slugify
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("name", ["", "   ", "../etc/passwd", "a/../b", "/abs", "C:evil", "a\\b", "./x"])
def test_validate_file_name_rejects(name):
    with pytest.raises(ValidationError):
        validate_file_name(name)


def test_validate_file_name_accepts_nested_and_dots():
    assert validate_file_name("2026/my.post") == "2026/my.post"
    assert validate_file_name("  hello-world ") == "hello-world"


def test_slugify():
    assert slugify("My First  Post") == "my-first-post"
    assert slugify("  Trim me\tplease ") == "trim-me-please"


# ---------------------------------------------------------------------------
# GitHubStore
# ---------------------------------------------------------------------------


def test_headers_carry_token(store, session):
    assert session.headers["Authorization"] == "Bearer ghp_test"
    assert session.headers["Accept"] == "application/vnd.github+json"


def test_save_post_creates_new_file(store, session):
    path = "src/app/blogs/hello.mdx"
    session.request.side_effect = [_resp(404), _put_ok(path)]

    result = store.save_post("---\ntitle: \"Hi\"\n---\n\nBody", "hello")

    assert result == {
        "message": "File saved successfully",
        "sha": f"sha-{path}",
        "url": f"https://github.com/sebbys/nightfall-cms/blob/main/{path}",
        "commit": "c0ffee",
    }
    assert _calls(session) == [("GET", f"{API}/{path}"), ("PUT", f"{API}/{path}")]
    payload = session.request.call_args_list[1].kwargs["json"]
    assert payload["branch"] == "main"
    assert "sha" not in payload
    assert base64.b64decode(payload["content"]).decode() == "---\ntitle: \"Hi\"\n---\n\nBody"


def test_save_post_updates_existing_file(store, session):
    path = "src/app/blogs/hello.mdx"
    session.request.side_effect = [_resp(200, {"sha": "old-sha"}), _put_ok(path)]

    store.save_post("body", "hello")

    payload = session.request.call_args_list[1].kwargs["json"]
    assert payload["sha"] == "old-sha"


def test_save_post_commits_image_first(store, session):
    img_path = "images/hello-cover.png"
    post_path = "src/app/blogs/hello.mdx"
    session.request.side_effect = [_resp(404), _put_ok(img_path), _resp(404), _put_ok(post_path)]

    image = Attachment(name="cover.png", data=b"\x89PNG", content_type="image/png")
    result = store.save_post("body", "hello", image)

    assert [c[1] for c in _calls(session)] == [
        f"{API}/{img_path}",
        f"{API}/{img_path}",
        f"{API}/{post_path}",
        f"{API}/{post_path}",
    ]
    assert result["imageUrl"].endswith(img_path)
    img_payload = session.request.call_args_list[1].kwargs["json"]
    assert base64.b64decode(img_payload["content"]) == b"\x89PNG"


def test_save_post_failed_post_after_image_is_not_rolled_back(store, session):
    session.request.side_effect = [
        _resp(404),
        _put_ok("images/hello-cover.png"),
        _resp(404),
        _resp(409, {"message": "conflict"}),
    ]
    image = Attachment(name="cover.png", data=b"x")
    with pytest.raises(UpstreamError) as exc:
        store.save_post("body", "hello", image)
    assert exc.value.status == 409
    assert len(session.request.call_args_list) == 4  # no delete issued


def test_save_post_traversal_makes_no_request(store, session):
    with pytest.raises(ValidationError):
        store.save_post("body", "../../secrets")
    session.request.assert_not_called()


def test_save_post_escapes_path(store, session):
    path = "src/app/blogs/hello world.mdx"
    session.request.side_effect = [_resp(404), _put_ok(path)]
    store.save_post("body", "hello world")
    assert _calls(session)[0][1] == f"{API}/src/app/blogs/hello%20world.mdx"


def test_put_auth_failure(store, session):
    session.request.side_effect = [_resp(404), _resp(401, {"message": "Bad credentials"})]
    with pytest.raises(UpstreamAuthError) as exc:
        store.save_post("body", "hello")
    assert exc.value.status == 401
    assert exc.value.details == "Bad credentials"


def test_lookup_not_found_repo_on_put(store, session):
    session.request.side_effect = [_resp(404), _resp(404, {"message": "Not Found"})]
    with pytest.raises(UpstreamNotFound):
        store.save_post("body", "hello")


def test_lookup_server_error_raises(store, session):
    session.request.side_effect = [_resp(500, {"message": "boom"})]
    with pytest.raises(UpstreamError) as exc:
        store.get_file_sha("src/app/blogs/x.mdx")
    assert exc.value.status == 500


def test_transport_failure(store, session):
    session.request.side_effect = requests.exceptions.ConnectionError("down")
    with pytest.raises(TransportError):
        store.save_post("body", "hello")


def test_timeout(store, session):
    session.request.side_effect = requests.exceptions.Timeout()
    with pytest.raises(TransportError):
        store.get_file_sha("x")


def test_create_post_uses_slug(store, session):
    path = "src/app/posts/my-first-post.md"
    session.request.side_effect = [_resp(404), _put_ok(path)]

    result = store.create_post("My First Post", "# Hello", directory="src/app/posts")

    assert result == {"success": True, "path": path}
    payload = session.request.call_args_list[1].kwargs["json"]
    assert payload["message"] == "Add new post: My First Post"


def test_create_post_requires_title(store, session):
    with pytest.raises(ValidationError):
        store.create_post("  ", "x")
    session.request.assert_not_called()


def test_build_without_token_raises_500():
    with patch("services.github.get_github_token", return_value=""):
        with pytest.raises(UpstreamAuthError) as exc:
            build_github_store()
    assert exc.value.status == 500
