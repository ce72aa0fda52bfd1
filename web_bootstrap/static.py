"""
Static file serving with fall-through to routes.

Unlike mounting ``StaticFiles`` on a path prefix, this middleware tries the
static root for every GET or HEAD request and hands the request on to the
application when no file matches.
"""

import logging
from pathlib import Path
from typing import Union

from starlette.exceptions import HTTPException
from starlette.responses import PlainTextResponse
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Receive, Scope, Send

from .logging_config import get_logger, log_event
from .middleware import mark_handled_by

logger = get_logger(__name__)


class StaticFilesMiddleware:
    """
    ASGI middleware serving files from a directory before routing.

    Conditional GET (ETag / Last-Modified) and Range requests are answered by
    Starlette's ``FileResponse``. Directories serve their ``index.html`` and
    paths containing a dot-prefixed segment are never served.
    """

    def __init__(
        self,
        app: ASGIApp,
        directory: Union[str, Path],
        max_age: int = 0,
    ) -> None:
        """
        Initialize static files middleware.

        Args:
            app: ASGI application instance
            directory: Static root directory
            max_age: Cache-Control max-age for served files in seconds
        """
        self.app = app
        self.directory = Path(directory)
        self.max_age = max_age
        self.files = StaticFiles(directory=self.directory, html=True, check_dir=False)

        if not self.directory.is_dir():
            log_event(
                logger,
                logging.WARNING,
                "Static directory not found - requests will fall through to routes",
                static_root=str(self.directory),
            )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if (
            scope["type"] != "http"
            or scope["method"] not in ("GET", "HEAD")
            or _has_dotfile_segment(scope["path"])
        ):
            await self.app(scope, receive, send)
            return

        try:
            response = await self.files.get_response(self.files.get_path(scope), scope)
        except HTTPException as exc:
            if exc.status_code == 404:
                await self.app(scope, receive, send)
            else:
                await PlainTextResponse(exc.detail, status_code=exc.status_code)(
                    scope, receive, send
                )
            return

        # html mode answers misses with 404.html when present; routes come first
        if response.status_code == 404:
            await self.app(scope, receive, send)
            return

        mark_handled_by(scope, "static")
        response.headers.setdefault("Cache-Control", f"public, max-age={self.max_age}")
        await response(scope, receive, send)


def _has_dotfile_segment(path: str) -> bool:
    return any(segment.startswith(".") for segment in path.split("/") if segment)
