"""Token verifier factory.

Provides get_verifier() / set_verifier() / reset_verifier() to swap
implementations. Uses DevTokenVerifier by default; configure via the
AUTH_ADAPTER environment variable.
"""

import os

from ordering.auth.port import InvalidToken, TokenVerifier

_current_verifier: TokenVerifier | None = None

__all__ = ["InvalidToken", "TokenVerifier", "get_verifier", "reset_verifier", "set_verifier"]


def get_verifier() -> TokenVerifier:
    """Return the configured token verifier (singleton)."""
    global _current_verifier
    if _current_verifier is None:
        adapter = os.environ.get("AUTH_ADAPTER", "dev")
        if adapter == "dev":
            from ordering.auth.dev_adapter import DevTokenVerifier

            _current_verifier = DevTokenVerifier()
        else:
            raise ValueError(f"Unknown auth adapter: {adapter}")
    return _current_verifier


def set_verifier(verifier: TokenVerifier) -> None:
    """Override the active verifier (useful for tests)."""
    global _current_verifier
    _current_verifier = verifier


def reset_verifier() -> None:
    """Reset to the configured default."""
    global _current_verifier
    _current_verifier = None
