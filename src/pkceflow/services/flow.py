"""Authorization code + PKCE flow orchestration.

Drives one authentication attempt through an explicit state machine:

    IDLE -> AWAITING_REDIRECT -> EXCHANGING_TOKEN -> SUCCEEDED | FAILED

Each non-terminal state has exactly one transition method. Every failure
is captured as a FlowError and moves the flow to FAILED, so ``run`` always
produces exactly one FlowResult.
"""

from __future__ import annotations

import logging

from pkceflow.models.errors import (
    AuthorizeResponseNoCode,
    AuthorizeResponseNoUrl,
    AuthRequestFailed,
    FlowError,
)
from pkceflow.models.flow import AuthorizationRequest, FlowResult, FlowState
from pkceflow.models.parameters import AuthorizationParameters
from pkceflow.models.security import PKCEParameters
from pkceflow.models.tokens import TokenRequest
from pkceflow.primitives.pkce import PKCEGenerator
from pkceflow.primitives.query import get_query_parameter
from pkceflow.services.launcher import UserAgentLauncher
from pkceflow.services.tokens import TokenExchanger

logger = logging.getLogger(__name__)


class AuthorizationFlow:
    """One authorization code flow attempt.

    A flow instance is single use: it generates its own PKCE parameters,
    presents the authorization URL once and exchanges the resulting code
    at most once. Retry policy belongs to the caller, who starts a new flow.
    """

    def __init__(
        self,
        parameters: AuthorizationParameters,
        launcher: UserAgentLauncher,
        token_exchanger: TokenExchanger,
        generator: PKCEGenerator | None = None,
    ):
        self.parameters = parameters
        self._launcher = launcher
        self._token_exchanger = token_exchanger
        self._generator = generator or PKCEGenerator()

        self.state = FlowState.IDLE
        self.result: FlowResult | None = None
        self._pkce: PKCEParameters | None = None
        self._code: str | None = None

    async def run(self) -> FlowResult:
        """Run the flow to a terminal state.

        Returns:
            FlowResult: The token on success, the FlowError on failure

        Raises:
            EntropyError: If PKCE parameters cannot be generated
            RuntimeError: If this flow has already been run
        """
        if self.state is not FlowState.IDLE:
            progress = "finished" if self.state.is_terminal else "in progress"
            raise RuntimeError(f"Flow already {progress} (state: {self.state.value})")

        logger.info(f"Starting authorization flow for client {self.parameters.client_id}")

        # Step 0: entropy failure propagates; it is not a flow outcome
        self._pkce = self._generator.generate_parameters()

        try:
            await self._start_authorization()
            await self._exchange_token()
        except FlowError as e:
            return self._fail(e)

        return self.result

    async def _start_authorization(self) -> None:
        """IDLE -> AWAITING_REDIRECT -> EXCHANGING_TOKEN."""
        authorization_url = self.build_authorization_url()
        self.state = FlowState.AWAITING_REDIRECT
        logger.debug("Presenting authorization URL to user agent")

        try:
            callback_url = await self._launcher.launch(
                authorization_url, self.parameters.callback_scheme
            )
        except Exception as e:
            raise AuthRequestFailed(e) from e

        if not callback_url:
            raise AuthorizeResponseNoUrl()

        code = get_query_parameter(callback_url, "code")
        if code is None:
            raise AuthorizeResponseNoCode()

        self._code = code
        self.state = FlowState.EXCHANGING_TOKEN
        logger.debug("Authorization code received")

    async def _exchange_token(self) -> None:
        """EXCHANGING_TOKEN -> SUCCEEDED."""
        # Consume the code so it can never be exchanged twice
        code, self._code = self._code, None

        token_request = TokenRequest(
            token_endpoint=self.parameters.token_url,
            client_id=self.parameters.client_id,
            redirect_uri=self.parameters.redirect_uri,
            code=code,
            code_verifier=self._pkce.code_verifier,
        )
        token_response = await self._token_exchanger.exchange_code_for_token(
            token_request
        )

        self.state = FlowState.SUCCEEDED
        self.result = FlowResult.success(token_response)
        logger.info(f"Authorization flow succeeded for client {self.parameters.client_id}")

    def _fail(self, error: FlowError) -> FlowResult:
        logger.warning(
            f"Authorization flow failed in state {self.state.value}: {error.kind}"
        )
        self.state = FlowState.FAILED
        self._code = None
        self.result = FlowResult.failure(error)
        return self.result

    def build_authorization_url(self) -> str:
        """Build the authorization URL carrying this flow's code challenge."""
        if self._pkce is None:
            raise RuntimeError("PKCE parameters not generated yet")

        return AuthorizationRequest(
            authorization_endpoint=self.parameters.authorize_url,
            client_id=self.parameters.client_id,
            redirect_uri=self.parameters.redirect_uri,
            code_challenge=self._pkce.code_challenge,
            code_challenge_method=self._pkce.code_challenge_method,
        ).build_authorization_url()
