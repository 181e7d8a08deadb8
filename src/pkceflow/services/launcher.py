"""User-agent launchers that present the authorization page and capture the redirect.

The flow only depends on the UserAgentLauncher protocol. Three implementations
are provided:
- ManualLauncher: delegates to a caller-supplied coroutine (CLI prompts,
  custom UI, tests)
- LoopbackLauncher: opens the system browser and captures the redirect on a
  local HTTP server (RFC 8252 Section 7.3)
- BrowserLauncher: the default; builds a LoopbackLauncher when launched
"""

from __future__ import annotations

import asyncio
import logging
import socket
import webbrowser
from typing import Any, Awaitable, Callable, Protocol
from urllib.parse import urlparse

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, Response
from starlette.routing import Route

from pkceflow.models.errors import (
    UserAgentCancelledError,
    UserAgentError,
    UserAgentTimeoutError,
)

logger = logging.getLogger(__name__)

LOOPBACK_HOSTS = ("127.0.0.1", "localhost", "::1")

_DONE_PAGE = (
    "<!doctype html><html><head><title>Authorization complete</title></head>"
    "<body><p>Authorization complete. You can close this window.</p></body></html>"
)


class UserAgentLauncher(Protocol):
    """Protocol for the interactive authorization step.

    Allows different strategies for user-agent interaction:
    - Manual (hand the URL to the developer)
    - System browser + loopback redirect
    - Custom UI integration
    """

    async def launch(self, authorization_url: str, callback_scheme: str) -> str | None:
        """Present the authorization URL and return the redirect URL.

        Args:
            authorization_url: Authorization URL for the user to visit
            callback_scheme: Scheme identifying the redirect to capture

        Returns:
            Redirect URL received after user authorization

        Raises:
            Exception: Any failure, including user cancellation
        """
        ...


class ManualLauncher:
    """Launcher that delegates the user interaction to a coroutine.

    The coroutine receives the authorization URL and returns the redirect
    URL. Suitable for CLI tools and custom integrations.
    """

    def __init__(
        self, prompt: Callable[[str], Awaitable[str | None]] | None = None
    ):
        """Initialize manual launcher.

        Args:
            prompt: Coroutine function called with the authorization URL.
                    Should return the redirect URL.
        """
        self.prompt = prompt

    async def launch(self, authorization_url: str, callback_scheme: str) -> str | None:
        if self.prompt is None:
            raise UserAgentCancelledError(
                f"Please visit {authorization_url} and provide the callback URL"
            )

        callback_url = await self.prompt(authorization_url)
        if not callback_url:
            return None

        scheme = urlparse(callback_url).scheme
        if scheme.lower() != callback_scheme.lower():
            raise UserAgentError(
                f"Callback URL scheme '{scheme}' does not match '{callback_scheme}'"
            )

        return callback_url


class LoopbackLauncher:
    """Launcher that opens the system browser and listens for the redirect.

    Serves the redirect URI's path on the loopback interface with Starlette
    on uvicorn, opens the authorization URL with ``open_browser`` and
    resolves with the first callback URL that arrives. The server is shut
    down before ``launch`` returns.
    """

    def __init__(
        self,
        redirect_uri: str,
        timeout: float = 300.0,
        open_browser: Callable[[str], bool] = webbrowser.open,
    ):
        """Initialize loopback launcher.

        Args:
            redirect_uri: Loopback redirect URI, e.g. http://127.0.0.1:8765/callback
            timeout: Seconds to wait for the redirect
            open_browser: Callable that presents the authorization URL

        Raises:
            ValueError: If redirect_uri is not an http loopback URI with a port
        """
        parsed = urlparse(redirect_uri)
        if (
            parsed.scheme != "http"
            or parsed.hostname not in LOOPBACK_HOSTS
            or parsed.port is None
        ):
            raise ValueError(
                f"redirect_uri must be an http loopback URI with a port: {redirect_uri}"
            )

        self.redirect_uri = redirect_uri
        self.host = parsed.hostname
        self.port = parsed.port
        self.path = parsed.path or "/"
        self.timeout = timeout
        self._open_browser = open_browser
        self._callback: asyncio.Future[str] | None = None

    async def launch(self, authorization_url: str, callback_scheme: str) -> str | None:
        if callback_scheme.lower() != "http":
            raise ValueError(
                f"LoopbackLauncher captures http redirects, not '{callback_scheme}'"
            )

        sock = self._bind()
        self._callback = asyncio.get_running_loop().create_future()
        server = uvicorn.Server(
            uvicorn.Config(app=self._build_app(), log_level="warning")
        )
        serve_task = asyncio.create_task(server.serve(sockets=[sock]))

        try:
            await self._wait_until_started(server, serve_task)
            logger.info(f"Waiting for authorization redirect on {self.redirect_uri}")

            if not self._open_browser(authorization_url):
                logger.warning(
                    f"Could not open a browser, visit this URL to continue: "
                    f"{authorization_url}"
                )

            return await asyncio.wait_for(self._callback, timeout=self.timeout)

        except asyncio.TimeoutError as e:
            raise UserAgentTimeoutError(
                f"No authorization redirect received within {self.timeout} seconds"
            ) from e
        finally:
            server.should_exit = True
            await serve_task
            sock.close()
            self._callback = None

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
        except OSError as e:
            sock.close()
            raise UserAgentError(
                f"Cannot listen on {self.host}:{self.port}: {e}"
            ) from e
        return sock

    async def _wait_until_started(
        self, server: uvicorn.Server, serve_task: asyncio.Task
    ) -> None:
        while not server.started:
            if serve_task.done():
                serve_task.result()
                raise UserAgentError("Loopback server stopped during startup")
            await asyncio.sleep(0.01)

    def _build_app(self) -> Starlette:
        return Starlette(
            routes=[Route(self.path, self._handle_callback, methods=["GET"])]
        )

    async def _handle_callback(self, request: Request) -> Response:
        """Resolve the pending launch with the full callback URL."""
        if self._callback is None or self._callback.done():
            return Response("No authorization in progress", status_code=409)

        self._callback.set_result(str(request.url))
        logger.debug("Authorization redirect received")
        return HTMLResponse(_DONE_PAGE)


class BrowserLauncher:
    """Default launcher that builds a LoopbackLauncher on each launch.

    Construction never fails. A redirect URI the loopback server cannot
    serve is reported by ``launch``, so the flow records it as a failed
    authorization request.
    """

    def __init__(self, redirect_uri: str, **options: Any):
        self.redirect_uri = redirect_uri
        self.options = options

    async def launch(self, authorization_url: str, callback_scheme: str) -> str | None:
        launcher = LoopbackLauncher(self.redirect_uri, **self.options)
        return await launcher.launch(authorization_url, callback_scheme)
