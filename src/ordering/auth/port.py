"""Token verifier port (abstract interface).

The Order Service requires an authenticated caller for every order operation.
Verifiers resolve a bearer token to the customer id it was issued for, so the
identity provider can be swapped without touching routes or handlers.
"""

from abc import ABC, abstractmethod


class InvalidToken(Exception):
    """The bearer token is missing, malformed, expired or unknown."""


class TokenVerifier(ABC):
    """Abstract bearer-token verifier."""

    @abstractmethod
    def verify(self, token: str) -> str:
        """Return the customer id the token was issued for.

        Raises:
            InvalidToken: if the token cannot be trusted.
        """
        ...
