"""Development token verifier.

Accepts tokens of the form ``dev-token-<customer_id>`` so the storefront and
the test suite can authenticate without a real identity provider.
"""

from ordering.auth.port import InvalidToken, TokenVerifier

TOKEN_PREFIX = "dev-token-"


class DevTokenVerifier(TokenVerifier):
    def issue(self, customer_id: str) -> str:
        return f"{TOKEN_PREFIX}{customer_id}"

    def verify(self, token: str) -> str:
        if not token or not token.startswith(TOKEN_PREFIX):
            raise InvalidToken("Invalid token format")
        customer_id = token[len(TOKEN_PREFIX) :]
        if not customer_id:
            raise InvalidToken("Token does not name a customer")
        return customer_id
