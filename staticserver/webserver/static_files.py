"""
Static file serving rooted at the configured html directory.

Builds on Starlette's StaticFiles for path normalisation and file responses,
keeps every lookup inside the root and adds directory listings for folders
without an index.html.
"""

import errno
import html
import logging
import os
import stat
from typing import Optional, Union
from urllib.parse import quote

import anyio.to_thread
from starlette.datastructures import URL
from starlette.exceptions import HTTPException
from starlette.responses import HTMLResponse, RedirectResponse, Response
from starlette.staticfiles import StaticFiles
from starlette.types import Scope

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.html"

PathLike = Union[str, "os.PathLike[str]"]


def render_directory_listing(directory: PathLike) -> str:
    """
    Builds an HTML listing of a directory's entries.

    Entries are sorted by name, sub-directories get a trailing "/" and
    every name is escaped for both the link target and the link text.

    Args:
        directory: Absolute path of the directory to list.

    Returns:
        str: The listing as an HTML fragment.
    """
    lines = ['<!doctype html>', '<meta name="viewport" content="width=device-width">', "<pre>"]
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda entry: entry.name)
    for entry in entries:
        raw = os.fsencode(entry.name)
        if entry.is_dir():
            raw += b"/"
        # Names that are not valid UTF-8 keep their bytes in the link
        href = html.escape(quote(raw))
        text = html.escape(raw.decode("utf-8", errors="replace"))
        lines.append(f'<a href="{href}">{text}</a>')
    lines.append("</pre>")
    return "\n".join(lines) + "\n"


class StaticDirectory(StaticFiles):
    """
    Serves files from a single root directory.

    Paths that resolve outside the root (through ".." or symlinks) are
    treated as missing. A missing root is reported once and then answered
    with 404 for every request.
    """

    def __init__(self, *, directory: PathLike) -> None:
        """Initialize the handler.

        Args:
            directory: Root directory of the served tree.
        """
        super().__init__(directory=directory, check_dir=False)

    async def check_config(self) -> None:
        if not os.path.isdir(self.directory):
            logger.warning(f"HTML directory '{self.directory}' does not exist")

    async def get_response(self, path: str, scope: Scope) -> Response:
        """
        Returns an HTTP response for a normalised relative path.

        Raises:
            HTTPException: 403 for unreadable files, 404 for anything that
                does not resolve to a file or directory under the root, 405
                for methods other than GET and HEAD.
        """
        if scope["method"] not in ("GET", "HEAD"):
            raise HTTPException(status_code=405)

        full_path, stat_result = await self._lookup(path)
        if stat_result is None:
            raise HTTPException(status_code=404)

        if stat.S_ISDIR(stat_result.st_mode):
            if not scope["path"].endswith("/"):
                # Directory URLs always end in "/" so relative links resolve
                url = URL(scope=scope)
                return RedirectResponse(url=url.replace(path=url.path + "/"))

            index_path, index_stat = await self._lookup(os.path.join(path, INDEX_FILENAME))
            if index_stat is not None and stat.S_ISREG(index_stat.st_mode):
                return self._file_or_forbidden(index_path, index_stat, scope)

            try:
                listing = await anyio.to_thread.run_sync(render_directory_listing, full_path)
            except PermissionError:
                raise HTTPException(status_code=403)
            return HTMLResponse(listing)

        if stat.S_ISREG(stat_result.st_mode):
            return self._file_or_forbidden(full_path, stat_result, scope)

        raise HTTPException(status_code=404)

    def lookup_path(self, path: str) -> tuple[str, Optional[os.stat_result]]:
        """
        Resolves a relative path against the root directory.

        Returns:
            tuple: The real path and its stat result, or ("", None) when the
                path is missing or escapes the root.
        """
        root = os.path.realpath(self.directory)
        full_path = os.path.realpath(os.path.join(root, path))
        if os.path.commonpath([full_path, root]) != root:
            logger.debug(f"Refusing path outside of {root}: {path}")
            return "", None
        try:
            return full_path, os.stat(full_path)
        except (FileNotFoundError, NotADirectoryError):
            return "", None

    async def _lookup(self, path: str) -> tuple[str, Optional[os.stat_result]]:
        try:
            return await anyio.to_thread.run_sync(self.lookup_path, path)
        except PermissionError:
            raise HTTPException(status_code=403)
        except OSError as exc:
            if exc.errno == errno.ENAMETOOLONG:
                raise HTTPException(status_code=404)
            raise exc

    def _file_or_forbidden(
        self, full_path: str, stat_result: os.stat_result, scope: Scope
    ) -> Response:
        if not os.access(full_path, os.R_OK):
            raise HTTPException(status_code=403)
        return self.file_response(full_path, stat_result, scope)
