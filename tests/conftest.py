import pytest

from pkceflow.models.parameters import AuthorizationParameters


@pytest.fixture
def parameters() -> AuthorizationParameters:
    return AuthorizationParameters(
        authorize_url="https://auth.example.com/authorize",
        token_url="https://auth.example.com/oauth/token",
        client_id="client-123",
        redirect_uri="app://cb",
        callback_scheme="app",
    )
