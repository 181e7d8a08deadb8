"""
Sign in against an Auth0 tenant with the authorization code + PKCE flow.

You'll need to set AUTH0_DOMAIN and AUTH0_CLIENT_ID (a "Native" application
with http://127.0.0.1:8765/callback as an allowed callback URL). The access
token is printed on success, the error message otherwise.

Auth0 PKCE docs: https://auth0.com/docs/get-started/authentication-and-authorization-flow/authorization-code-flow-with-pkce
"""

import asyncio
import logging
import os
import time

from dotenv import load_dotenv

from pkceflow.client import PKCEAuthenticator
from pkceflow.models.flow import FlowResult
from pkceflow.models.parameters import AuthorizationParameters

REDIRECT_URI = "http://127.0.0.1:8765/callback"


def show_result(result: FlowResult) -> None:
    if result.is_success():
        expires = time.strftime("%H:%M:%S", time.localtime(result.token.expires_at()))
        message = f"{result.token.access_token} (expires at {expires})"
    else:
        message = str(result.error)
    print(f"Result: {message}")


async def main():
    domain = os.environ["AUTH0_DOMAIN"]
    parameters = AuthorizationParameters(
        authorize_url=f"https://{domain}/authorize",
        token_url=f"https://{domain}/oauth/token",
        client_id=os.environ["AUTH0_CLIENT_ID"],
        redirect_uri=REDIRECT_URI,
        callback_scheme="http",
    )

    async with PKCEAuthenticator() as authenticator:
        await authenticator.authenticate(parameters, show_result)


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
