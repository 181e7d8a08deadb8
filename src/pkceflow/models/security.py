"""The verifier/challenge pair generated fresh for every authorization attempt."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

CODE_CHALLENGE_METHOD = "S256"

# RFC 7636 Section 4.1: 43 to 128 unreserved characters
_PKCE_STRING = re.compile(r"[A-Za-z0-9\-._~]{43,128}")


def _check_pkce_string(label: str, value: str) -> None:
    if not isinstance(value, str) or not _PKCE_STRING.fullmatch(value):
        raise ValueError(
            f"{label} must be 43 to 128 unreserved characters (RFC 7636)"
        )


@dataclass(frozen=True)
class PKCEParameters:
    """Verifier and S256 challenge bound to a single authorization attempt.

    The verifier stays out of ``repr`` so it never ends up in logs.
    """

    code_verifier: str = field(repr=False)
    code_challenge: str
    code_challenge_method: str = CODE_CHALLENGE_METHOD

    def __post_init__(self) -> None:
        _check_pkce_string("code_verifier", self.code_verifier)
        _check_pkce_string("code_challenge", self.code_challenge)
        if self.code_challenge_method != CODE_CHALLENGE_METHOD:
            raise ValueError(
                f"Unsupported code_challenge_method '{self.code_challenge_method}',"
                f" expected {CODE_CHALLENGE_METHOD}"
            )
