"""Public entry point for the OAuth 2.0 authorization code flow with PKCE.

Wires the PKCE generator, the user-agent launcher and the HTTP client
into one AuthorizationFlow per call and reports the outcome through a
completion callback.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Union

from pkceflow.models.flow import FlowResult
from pkceflow.models.parameters import AuthorizationParameters
from pkceflow.primitives.pkce import PKCEGenerator
from pkceflow.services.flow import AuthorizationFlow
from pkceflow.services.http import HttpClient, HttpxClient
from pkceflow.services.launcher import BrowserLauncher, UserAgentLauncher
from pkceflow.services.tokens import TokenExchanger

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[FlowResult], Union[None, Awaitable[None]]]


class PKCEAuthenticator:
    """OAuth 2.0 authorization code + PKCE client for public applications.

    Each call to ``authenticate`` or ``run`` is one complete, independent
    attempt with its own verifier. Nothing is shared between attempts except
    the injected collaborators.
    """

    def __init__(
        self,
        launcher: UserAgentLauncher | None = None,
        http_client: HttpClient | None = None,
        generator: PKCEGenerator | None = None,
        timeout: float = 10.0,
    ):
        """Initialize the authenticator.

        Args:
            launcher: Handler for the interactive authorization step. When
                omitted, a BrowserLauncher is built from each attempt's
                redirect_uri.
            http_client: Transport for the token request
            generator: PKCE generator, injectable for deterministic tests
            timeout: Token request timeout for the default HTTP client
        """
        self.launcher = launcher
        self.generator = generator or PKCEGenerator()

        self._owns_http_client = http_client is None
        self.http_client = http_client or HttpxClient(timeout=timeout)
        self.token_exchanger = TokenExchanger(self.http_client)

    async def run(self, parameters: AuthorizationParameters) -> FlowResult:
        """Run one authorization attempt and return its result.

        Raises:
            EntropyError: If the secure random source fails
        """
        flow = AuthorizationFlow(
            parameters,
            self._launcher_for(parameters),
            self.token_exchanger,
            self.generator,
        )
        return await flow.run()

    async def authenticate(
        self,
        parameters: AuthorizationParameters,
        on_complete: CompletionCallback,
    ) -> FlowResult:
        """Run one authorization attempt and report it to ``on_complete``.

        The callback is invoked exactly once with the single FlowResult of
        the attempt, whichever branch the flow ends on. It may be a plain
        function or a coroutine function.

        Returns:
            FlowResult: The same result that was passed to the callback

        Raises:
            EntropyError: If the secure random source fails; the callback
                is not invoked in that case
        """
        result = await self.run(parameters)

        outcome: Any = on_complete(result)
        if inspect.isawaitable(outcome):
            await outcome

        return result

    def _launcher_for(self, parameters: AuthorizationParameters) -> UserAgentLauncher:
        if self.launcher is not None:
            return self.launcher

        return BrowserLauncher(parameters.redirect_uri)

    async def close(self) -> None:
        """Close the HTTP client if this authenticator created it."""
        if self._owns_http_client:
            await self.http_client.close()

    async def __aenter__(self) -> PKCEAuthenticator:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
