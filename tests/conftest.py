import logging
import pathlib
import sys

import pytest

# Ensure project root is in sys.path
repo_root = pathlib.Path(__file__).parent.parent
sys.path.insert(0, str(repo_root))

from staticserver.core.logging_config import (  # noqa: E402
    LOGGER_NAME,
    shutdown_logging,
)


@pytest.fixture
def html_dir(tmp_path):
    """
    Provides a served directory with a few files and a secret file next to it.

    Layout::

        tmp_path/
            secret.txt
            public/
                index.html
                hello.txt
                docs/readme.md
                empty/
    """
    (tmp_path / "secret.txt").write_text("top secret")

    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_bytes(b"<html><body>Welcome</body></html>\n")
    (public / "hello.txt").write_bytes(b"hi")
    (public / "docs").mkdir()
    (public / "docs" / "readme.md").write_text("# Readme\n")
    (public / "empty").mkdir()
    return public


@pytest.fixture
def log_dir(tmp_path):
    path = tmp_path / "logs"
    path.mkdir()
    return path


@pytest.fixture
def write_config(tmp_path):
    """Returns a helper that writes an INI file and returns its path."""

    def _write(text: str, name: str = "configuration.ini") -> str:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture(autouse=True)
def reset_server_logger():
    """
    Detaches handlers from the server logger after each test so log files
    are closed and no handler leaks into the next test.
    """
    yield
    shutdown_logging(logging.getLogger(LOGGER_NAME), "uvicorn.error")
