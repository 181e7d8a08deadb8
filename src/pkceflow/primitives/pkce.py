"""PKCE (Proof Key for Code Exchange) generation for public OAuth clients.

Implements RFC 7636 verifier and S256 challenge generation to prevent
authorization code interception attacks.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
from typing import Callable

from pkceflow.models.errors import EntropyError
from pkceflow.models.security import CODE_CHALLENGE_METHOD, PKCEParameters

VERIFIER_BYTES = 32


def base64url(data: bytes) -> str:
    """Base64url-encode without padding or whitespace (RFC 7636 Appendix A)."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=").strip()


class PKCEGenerator:
    """Generates PKCE code verifiers and derives their S256 challenges.

    The random source is injectable so tests can pin the verifier; it must
    be a callable taking a byte count and returning that many bytes. The
    default is :func:`secrets.token_bytes`.

    This implementation follows RFC 7636 requirements:
    - 32 random octets, base64url-encoded into a 43 character verifier
    - S256 code challenge method (SHA256 + base64url)
    """

    def __init__(self, random_bytes: Callable[[int], bytes] = secrets.token_bytes):
        self._random_bytes = random_bytes

    def generate_parameters(self) -> PKCEParameters:
        """Generate a fresh verifier/challenge pair for one authorization flow.

        Raises:
            EntropyError: If the random source fails
        """
        code_verifier = self.generate_verifier()
        return PKCEParameters(
            code_verifier=code_verifier,
            code_challenge=self.derive_challenge(code_verifier),
            code_challenge_method=CODE_CHALLENGE_METHOD,
        )

    def generate_verifier(self) -> str:
        """Generate a cryptographically secure code verifier.

        RFC 7636 Section 4.1: the verifier must be 43-128 characters from
        the unreserved set. 32 octets encode to exactly 43 characters of
        ``[A-Za-z0-9_-]``.

        Raises:
            EntropyError: If the random source raises or returns the wrong
                number of bytes
        """
        try:
            buffer = self._random_bytes(VERIFIER_BYTES)
        except Exception as e:
            raise EntropyError(f"Secure random source failed: {e}") from e

        if not isinstance(buffer, (bytes, bytearray)) or len(buffer) != VERIFIER_BYTES:
            raise EntropyError(
                f"Secure random source must return {VERIFIER_BYTES} bytes"
            )

        return base64url(bytes(buffer))

    def derive_challenge(self, code_verifier: str) -> str:
        """Derive the code challenge from a verifier using the S256 method.

        RFC 7636 Section 4.2: BASE64URL-ENCODE(SHA256(ASCII(code_verifier))).
        Pure: the same verifier always yields the same challenge.
        """
        digest = hashlib.sha256(code_verifier.encode("utf-8")).digest()
        return base64url(digest)
