"""Token exchange models.

Contains the form-encoded token request and the access token response
decoded from the token endpoint.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class TokenRequest:
    """Authorization code exchange request (RFC 6749 Section 4.1.3).

    Carries the PKCE code_verifier (RFC 7636). The verifier and the
    single-use code are excluded from ``repr``.
    """

    token_endpoint: str
    client_id: str
    redirect_uri: str
    code: str = field(repr=False)
    code_verifier: str = field(repr=False)
    grant_type: str = "authorization_code"

    def to_form_data(self) -> dict[str, str]:
        """Convert to form data for application/x-www-form-urlencoded request.

        Token requests must use form encoding, not JSON (RFC 6749 Section 4.1.3).
        """
        return {
            "grant_type": self.grant_type,
            "client_id": self.client_id,
            "code_verifier": self.code_verifier,
            "code": self.code,
            "redirect_uri": self.redirect_uri,
        }


class AccessTokenResponse(BaseModel):
    """Successful token endpoint response.

    Only ``access_token`` and ``expires_in`` are part of the contract; any
    other fields the server sends are ignored. Types are strict, so
    ``"expires_in": "3600"`` is rejected rather than coerced.
    """

    model_config = ConfigDict(frozen=True, strict=True, extra="ignore")

    access_token: str = Field(repr=False)
    expires_in: int

    def expires_at(self, now: float | None = None) -> float:
        """Absolute Unix timestamp at which the token expires."""
        return (time.time() if now is None else now) + self.expires_in
