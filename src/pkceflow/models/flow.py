"""Authorization flow models.

Contains the authorization request, the flow state machine states and the
single terminal result of a flow.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlencode

from pkceflow.models.errors import FlowError
from pkceflow.models.security import CODE_CHALLENGE_METHOD
from pkceflow.models.tokens import AccessTokenResponse


@dataclass(frozen=True)
class AuthorizationRequest:
    """Authorization request parameters for the PKCE flow."""

    authorization_endpoint: str
    client_id: str
    redirect_uri: str
    code_challenge: str
    code_challenge_method: str = CODE_CHALLENGE_METHOD

    def build_authorization_url(self) -> str:
        """Build the complete authorization URL."""
        params = {
            "response_type": "code",
            "code_challenge": self.code_challenge,
            "code_challenge_method": self.code_challenge_method,
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
        }

        separator = "&" if "?" in self.authorization_endpoint else "?"
        return f"{self.authorization_endpoint}{separator}{urlencode(params)}"


class FlowState(str, Enum):
    IDLE = "idle"
    AWAITING_REDIRECT = "awaiting_redirect"
    EXCHANGING_TOKEN = "exchanging_token"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (FlowState.SUCCEEDED, FlowState.FAILED)


@dataclass(frozen=True)
class FlowResult:
    """Terminal outcome of one flow: either a token or an error, never both."""

    token: AccessTokenResponse | None = None
    error: FlowError | None = None

    def __post_init__(self) -> None:
        if (self.token is None) == (self.error is None):
            raise ValueError("FlowResult needs exactly one of token or error")

    @classmethod
    def success(cls, token: AccessTokenResponse) -> FlowResult:
        return cls(token=token)

    @classmethod
    def failure(cls, error: FlowError) -> FlowResult:
        return cls(error=error)

    def is_success(self) -> bool:
        return self.token is not None

    def is_error(self) -> bool:
        return self.error is not None

    def unwrap(self) -> AccessTokenResponse:
        """Return the access token response or raise the flow error."""
        if self.error is not None:
            raise self.error
        return self.token
