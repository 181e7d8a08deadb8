"""Tests for the user-agent launchers."""

import asyncio
import socket
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from starlette.requests import Request

from pkceflow.models.errors import (
    UserAgentCancelledError,
    UserAgentError,
    UserAgentTimeoutError,
)
from pkceflow.services.launcher import BrowserLauncher, LoopbackLauncher, ManualLauncher


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class TestManualLauncher:
    async def test_prompt_receives_url_and_returns_callback(self):
        # Arrange
        prompt = AsyncMock(return_value="app://cb?code=abc123")
        launcher = ManualLauncher(prompt)

        # Act
        callback_url = await launcher.launch("https://auth.example.com/authorize?x=1", "app")

        # Assert
        assert callback_url == "app://cb?code=abc123"
        prompt.assert_awaited_once_with("https://auth.example.com/authorize?x=1")

    async def test_without_prompt_raises_cancelled(self):
        launcher = ManualLauncher()

        with pytest.raises(UserAgentCancelledError) as exc_info:
            await launcher.launch("https://auth.example.com/authorize", "app")

        assert "https://auth.example.com/authorize" in str(exc_info.value)

    async def test_empty_answer_returns_none(self):
        launcher = ManualLauncher(AsyncMock(return_value=""))

        assert await launcher.launch("https://auth.example.com/authorize", "app") is None

    async def test_scheme_mismatch_raises(self):
        launcher = ManualLauncher(AsyncMock(return_value="other://cb?code=abc"))

        with pytest.raises(UserAgentError):
            await launcher.launch("https://auth.example.com/authorize", "app")


class TestLoopbackLauncherConfig:
    @pytest.mark.parametrize(
        "redirect_uri",
        [
            "app://cb",
            "https://127.0.0.1:8765/callback",
            "http://example.com:8765/callback",
            "http://127.0.0.1/callback",
        ],
    )
    def test_non_loopback_redirect_rejected(self, redirect_uri):
        with pytest.raises(ValueError):
            LoopbackLauncher(redirect_uri)

    def test_loopback_redirect_parsed(self):
        launcher = LoopbackLauncher("http://127.0.0.1:8765/oauth/callback")

        assert launcher.host == "127.0.0.1"
        assert launcher.port == 8765
        assert launcher.path == "/oauth/callback"

    async def test_non_http_callback_scheme_rejected(self):
        launcher = LoopbackLauncher("http://127.0.0.1:8765/callback")

        with pytest.raises(ValueError):
            await launcher.launch("https://auth.example.com/authorize", "app")


class TestLoopbackCallbackHandler:
    async def test_first_callback_resolves_launch(self):
        # Arrange
        launcher = LoopbackLauncher("http://127.0.0.1:8765/callback")
        launcher._callback = asyncio.get_running_loop().create_future()
        request = Mock(spec=Request)
        request.url = "http://127.0.0.1:8765/callback?code=abc123"

        # Act
        response = await launcher._handle_callback(request)

        # Assert
        assert response.status_code == 200
        assert launcher._callback.result() == "http://127.0.0.1:8765/callback?code=abc123"

    async def test_second_callback_rejected(self):
        launcher = LoopbackLauncher("http://127.0.0.1:8765/callback")
        launcher._callback = asyncio.get_running_loop().create_future()
        launcher._callback.set_result("http://127.0.0.1:8765/callback?code=first")
        request = Mock(spec=Request)
        request.url = "http://127.0.0.1:8765/callback?code=second"

        response = await launcher._handle_callback(request)

        assert response.status_code == 409
        assert launcher._callback.result().endswith("code=first")

    async def test_callback_without_pending_launch_rejected(self):
        launcher = LoopbackLauncher("http://127.0.0.1:8765/callback")

        response = await launcher._handle_callback(Mock(spec=Request))

        assert response.status_code == 409


class TestLoopbackLaunch:
    async def test_browser_redirect_is_captured(self):
        # Arrange
        port = free_port()
        redirect_uri = f"http://127.0.0.1:{port}/callback"
        opened = []
        pending = []

        async def follow_redirect():
            async with httpx.AsyncClient(trust_env=False) as client:
                return await client.get(f"{redirect_uri}?code=abc123&state=s")

        def open_browser(url: str) -> bool:
            opened.append(url)
            pending.append(asyncio.ensure_future(follow_redirect()))
            return True

        launcher = LoopbackLauncher(redirect_uri, timeout=5.0, open_browser=open_browser)

        # Act
        callback_url = await launcher.launch("https://auth.example.com/authorize", "http")

        # Assert
        assert opened == ["https://auth.example.com/authorize"]
        assert callback_url == f"{redirect_uri}?code=abc123&state=s"
        response = await pending[0]
        assert response.status_code == 200
        assert "Authorization complete" in response.text

    async def test_timeout_raises(self):
        port = free_port()
        launcher = LoopbackLauncher(
            f"http://127.0.0.1:{port}/callback",
            timeout=0.05,
            open_browser=lambda url: True,
        )

        with pytest.raises(UserAgentTimeoutError):
            await launcher.launch("https://auth.example.com/authorize", "http")

    async def test_port_in_use_raises(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
            busy.bind(("127.0.0.1", 0))
            busy.listen()
            port = busy.getsockname()[1]
            launcher = LoopbackLauncher(
                f"http://127.0.0.1:{port}/callback", open_browser=lambda url: True
            )

            with pytest.raises(UserAgentError):
                await launcher.launch("https://auth.example.com/authorize", "http")


class TestBrowserLauncher:
    def test_custom_scheme_accepted_at_construction(self):
        launcher = BrowserLauncher("app://cb")

        assert launcher.redirect_uri == "app://cb"

    async def test_custom_scheme_rejected_on_launch(self):
        launcher = BrowserLauncher("app://cb")

        with pytest.raises(ValueError):
            await launcher.launch("https://auth.example.com/authorize", "app")

    async def test_options_reach_loopback_launcher(self):
        port = free_port()
        opened = []
        launcher = BrowserLauncher(
            f"http://127.0.0.1:{port}/callback",
            timeout=0.05,
            open_browser=lambda url: opened.append(url) or True,
        )

        with pytest.raises(UserAgentTimeoutError):
            await launcher.launch("https://auth.example.com/authorize", "http")

        assert opened == ["https://auth.example.com/authorize"]
