"""Exception hierarchy for the PKCE authorization code flow.

Every way a flow can fail maps to exactly one FlowError subclass, so callers
can decide on retry/backoff by type alone. Launcher-side and entropy errors
live outside the taxonomy.
"""

from __future__ import annotations


class FlowError(Exception):
    """Base exception for all terminal flow failures."""

    kind: str = "flow_error"

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlowError):
            return NotImplemented
        return type(self) is type(other) and self.args == other.args

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class AuthRequestFailed(FlowError):
    """Raised when the user-agent launcher reports an error."""

    kind = "auth_request_failed"

    def __init__(self, cause: BaseException):
        super().__init__(f"authorization request failed: {cause}", cause)


class AuthorizeResponseNoUrl(FlowError):
    """Raised when the launcher succeeds without returning a redirect URL."""

    kind = "authorize_response_no_url"

    def __init__(self):
        super().__init__("authorization response does not include a url")


class AuthorizeResponseNoCode(FlowError):
    """Raised when the redirect URL carries no ``code`` query parameter."""

    kind = "authorize_response_no_code"

    def __init__(self):
        super().__init__("authorization response does not include a code")


class TokenRequestFailed(FlowError):
    """Raised when the HTTP transport fails during the token exchange."""

    kind = "token_request_failed"

    def __init__(self, cause: BaseException):
        super().__init__(f"token request failed: {cause}", cause)


class TokenResponseNoData(FlowError):
    """Raised when the token endpoint answers with an empty body."""

    kind = "token_response_no_data"

    def __init__(self):
        super().__init__("no data received as part of token response")


class TokenResponseInvalidData(FlowError):
    """Raised when the token response body is not the expected JSON shape.

    The raw body text is kept for diagnostics.
    """

    kind = "token_response_invalid_data"

    def __init__(self, raw_body: str):
        super().__init__(
            f"invalid data received as part of token response: {raw_body}"
        )
        self.raw_body = raw_body


class EntropyError(RuntimeError):
    """Raised when the secure random source cannot produce a code verifier.

    This is a precondition violation, not a FlowError: no flow can start
    without entropy, so it is never delivered through a completion callback.
    """

    pass


class UserAgentError(Exception):
    """Base exception for user-agent launcher failures."""

    pass


class UserAgentCancelledError(UserAgentError):
    """Raised when the user dismisses the authorization prompt."""

    pass


class UserAgentTimeoutError(UserAgentError):
    """Raised when no redirect arrives before the launcher's deadline."""

    pass
