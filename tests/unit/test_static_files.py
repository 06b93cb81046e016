"""
Tests for static file serving through the assembled app.
"""

import asyncio
import logging
import os
import sys

import pytest
from fastapi.testclient import TestClient
from starlette.exceptions import HTTPException

from staticserver.webserver.config import ServerConfiguration
from staticserver.webserver.server import create_app
from staticserver.webserver.static_files import (
    StaticDirectory,
    render_directory_listing,
)


@pytest.fixture
def client(html_dir):
    config = ServerConfiguration(server_name="Test", port="0", html_dir=str(html_dir))
    app = create_app(config, logging.getLogger("tests.static"))
    return TestClient(app)


def _scope(path: str, method: str = "GET") -> dict:
    return {
        "type": "http",
        "method": method,
        "path": path,
        "root_path": "",
        "query_string": b"",
        "headers": [],
    }


def test_serves_file_bytes(client, html_dir):
    """Test that an existing file is returned byte for byte."""
    response = client.get("/index.html")

    assert response.status_code == 200
    assert response.content == (html_dir / "index.html").read_bytes()
    assert response.headers["content-type"].startswith("text/html")


def test_serves_text_file(client):
    """Test content and content type of a plain text file."""
    response = client.get("/hello.txt")

    assert response.status_code == 200
    assert response.content == b"hi"
    assert response.headers["content-type"].startswith("text/plain")


def test_serves_nested_file(client):
    response = client.get("/docs/readme.md")

    assert response.status_code == 200
    assert response.text == "# Readme\n"


def test_missing_file_is_404(client):
    """Test that a missing file returns 404."""
    assert client.get("/does-not-exist.txt").status_code == 404


def test_root_serves_index(client):
    """Test that "/" serves index.html."""
    response = client.get("/")

    assert response.status_code == 200
    assert "Welcome" in response.text


def test_directory_without_index_lists_entries(client, html_dir):
    """Test that a directory without index.html gets a listing."""
    (html_dir / "docs" / "b.txt").write_text("b")

    response = client.get("/docs/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    body = response.text
    assert '<a href="b.txt">b.txt</a>' in body
    assert '<a href="readme.md">readme.md</a>' in body
    assert body.index("b.txt") < body.index("readme.md")


def test_empty_directory_listing(client):
    response = client.get("/empty/")

    assert response.status_code == 200
    assert "<pre>\n</pre>" in response.text


def test_directory_redirects_to_trailing_slash(client):
    """Test that directory URLs are redirected to end in a slash."""
    response = client.get("/docs", follow_redirects=False)

    assert response.status_code in (301, 302, 307, 308)
    assert response.headers["location"].endswith("/docs/")


def test_parent_segments_do_not_escape_root(client):
    """Test that ../ never reaches files outside the root."""
    for path in ("/../secret.txt", "/docs/../../secret.txt", "/%2e%2e/secret.txt"):
        response = client.get(path)
        assert response.status_code == 404
        assert "top secret" not in response.text


def test_lookup_path_refuses_parent_directory(html_dir):
    """Test the lookup directly, without any client-side normalisation."""
    handler = StaticDirectory(directory=html_dir)

    assert handler.lookup_path(os.path.join("..", "secret.txt")) == ("", None)
    full_path, stat_result = handler.lookup_path("hello.txt")
    assert stat_result is not None
    assert full_path == os.path.realpath(html_dir / "hello.txt")


def test_get_response_rejects_traversal_scope(html_dir):
    """Test a raw request path with parent segments is answered with 404."""
    handler = StaticDirectory(directory=html_dir)
    scope = _scope("/../secret.txt")

    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(handler.get_response(handler.get_path(scope), scope))

    assert exc_info.value.status_code == 404


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
def test_symlink_out_of_root_is_404(client, html_dir):
    """Test that a symlink pointing outside the root is refused."""
    os.symlink(html_dir.parent / "secret.txt", html_dir / "leak.txt")

    response = client.get("/leak.txt")

    assert response.status_code == 404


def test_post_is_not_allowed(client):
    """Test that only GET and HEAD are served."""
    assert client.post("/hello.txt").status_code == 405


def test_head_has_no_body(client):
    response = client.head("/hello.txt")

    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["content-length"] == "2"


def test_conditional_request_not_modified(client):
    """Test that a matching ETag yields 304."""
    etag = client.get("/hello.txt").headers["etag"]

    response = client.get("/hello.txt", headers={"If-None-Match": etag})

    assert response.status_code == 304


@pytest.mark.skipif(
    not hasattr(os, "geteuid") or os.geteuid() == 0,
    reason="root can read any file",
)
def test_unreadable_file_is_403(client, html_dir):
    """Test that a file without read permission is forbidden."""
    locked = html_dir / "locked.txt"
    locked.write_text("locked")
    locked.chmod(0)
    try:
        assert client.get("/locked.txt").status_code == 403
    finally:
        locked.chmod(0o644)


def test_missing_root_answers_404(tmp_path, caplog):
    """Test that a missing html directory does not break startup."""
    config = ServerConfiguration(html_dir=str(tmp_path / "nowhere"))
    client = TestClient(create_app(config, logging.getLogger("tests.static")))

    with caplog.at_level(logging.WARNING):
        assert client.get("/index.html").status_code == 404

    assert "does not exist" in caplog.text


def test_no_documentation_routes(client):
    """Test that the only route is the static mount."""
    assert client.get("/docs/").status_code == 200
    assert client.get("/openapi.json").status_code == 404
    assert client.get("/redoc").status_code == 404


def test_render_directory_listing_escapes_names(tmp_path):
    """Test that names are escaped in both href and text."""
    (tmp_path / "a&b <c>.txt").write_text("x")
    (tmp_path / "sub").mkdir()

    listing = render_directory_listing(str(tmp_path))

    assert '<a href="a%26b%20%3Cc%3E.txt">a&amp;b &lt;c&gt;.txt</a>' in listing
    assert '<a href="sub/">sub/</a>' in listing


@pytest.mark.skipif(
    not sys.platform.startswith("linux"), reason="needs byte-string file names"
)
def test_listing_with_non_utf8_name(client, html_dir):
    """Test that a file name that is not valid UTF-8 is still listed."""
    directory = os.fsencode(str(html_dir / "empty"))
    with open(os.path.join(directory, b"\xff.txt"), "wb") as f:
        f.write(b"x")

    response = client.get("/empty/")

    assert response.status_code == 200
    assert '<a href="%FF.txt">�.txt</a>' in response.text
