"""Per-attempt configuration for the PKCE flow."""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, field_validator


class AuthorizationParameters(BaseModel):
    """Endpoints and client identity for one authentication attempt.

    Created once by the caller and read-only for the lifetime of the flow.
    ``callback_scheme`` is what the user-agent launcher uses to recognise
    the redirect (for custom-scheme apps this is the URI scheme, for
    loopback redirects ``http``).
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    authorize_url: str
    token_url: str
    client_id: str
    redirect_uri: str
    callback_scheme: str

    @field_validator(
        "authorize_url", "token_url", "client_id", "redirect_uri", "callback_scheme"
    )
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("authorize_url", "token_url")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"endpoint must be an absolute http(s) URL: {v}")
        return v

    @field_validator("redirect_uri")
    @classmethod
    def validate_redirect_uri(cls, v: str) -> str:
        if not urlparse(v).scheme:
            raise ValueError(f"redirect_uri must be an absolute URI: {v}")
        return v
