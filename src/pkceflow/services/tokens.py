"""Authorization code to access token exchange.

Implements the RFC 6749 Section 4.1.3 token request with the PKCE
code_verifier (RFC 7636) and classifies every failure into the flow's
error taxonomy.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from pydantic import ValidationError

from pkceflow.models.errors import (
    TokenRequestFailed,
    TokenResponseInvalidData,
    TokenResponseNoData,
)
from pkceflow.models.tokens import AccessTokenResponse, TokenRequest
from pkceflow.services.http import HttpClient

logger = logging.getLogger(__name__)

UNDECODABLE_BODY = "Unknown"


class TokenExchanger:
    """Exchanges an authorization code for an access token.

    Uses application/x-www-form-urlencoded encoding as required by RFC 6749.
    Makes exactly one request per call and never retries: the authorization
    code is single use.
    """

    def __init__(self, http_client: HttpClient):
        self._http_client = http_client

    async def exchange_code_for_token(
        self, token_request: TokenRequest
    ) -> AccessTokenResponse:
        """Exchange authorization code for access token.

        Args:
            token_request: Token exchange request parameters

        Returns:
            AccessTokenResponse: Decoded token response

        Raises:
            TokenRequestFailed: If the HTTP transport fails
            TokenResponseNoData: If the response body is empty
            TokenResponseInvalidData: If the body is not the expected JSON shape
        """
        logger.debug(f"Exchanging authorization code at {token_request.token_endpoint}")

        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }
        body = urlencode(token_request.to_form_data()).encode("utf-8")

        try:
            data = await self._http_client.send(
                "POST", token_request.token_endpoint, headers, body
            )
        except Exception as e:
            raise TokenRequestFailed(e) from e

        return self.parse_token_response(data)

    @staticmethod
    def parse_token_response(data: bytes | str | None) -> AccessTokenResponse:
        """Decode a token endpoint body into an AccessTokenResponse.

        Accepts bytes or already-decoded text from the HTTP client.

        Raises:
            TokenResponseNoData: If there is no body
            TokenResponseInvalidData: If decoding fails; carries the raw text
        """
        if not data:
            raise TokenResponseNoData()

        if not isinstance(data, (bytes, bytearray, str)):
            raise TokenResponseInvalidData(UNDECODABLE_BODY)

        try:
            token_response = AccessTokenResponse.model_validate_json(data)
        except ValidationError as e:
            logger.debug(f"Token response did not decode: {e.error_count()} error(s)")
            raise TokenResponseInvalidData(_body_text(data)) from e

        logger.info("Token exchange successful")
        return token_response


def _body_text(data: bytes | bytearray | str) -> str:
    if isinstance(data, str):
        return data
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError:
        return UNDECODABLE_BODY
