"""
Backend contract for the OAuth2 provider.

The provider validates requests and sequences the protocol, but every
decision about clients, codes and tokens is delegated to an ``OAuth2Backend``
supplied by the embedding application.

Failures are reported by raising. A backend raising ``OAuth2Error`` has its
code, description and URI returned to the client as is; any other exception
is logged and reported to the client as a bare ``invalid_request``.

Backend methods are called from a worker thread, possibly for several
requests at once, so implementations must be thread safe.
"""

from abc import ABC, abstractmethod
from typing import NamedTuple


class IssuedTokens(NamedTuple):
    """Tokens returned by ``exchange`` and ``refresh``.

    An empty ``refresh_token`` and a zero ``expires_in`` are left out of the
    token response.
    """
    access_token: str
    refresh_token: str = ""
    expires_in: int = 0


class OAuth2Backend(ABC):
    """Storage and policy operations behind the authorize and token endpoints."""

    @abstractmethod
    def authenticate(self, client_id: str, client_secret: str) -> None:
        """
        Authenticate a client (RFC 6749 section 2.3).

        Returns normally when the credentials are valid. The message of the
        raised error is returned in the 401 response body.
        """

    @abstractmethod
    def authorize(self, client_id: str, scope: str, redirect_uri: str) -> str:
        """
        Issue an authorization code (RFC 6749 section 4.1.1).

        Implementations must check that ``redirect_uri`` matches a URI
        registered for the client and that ``scope`` is acceptable.

        Returns:
            str: The authorization code
        """

    @abstractmethod
    def exchange(self, client_id: str, code: str, redirect_uri: str) -> IssuedTokens:
        """
        Exchange an authorization code for tokens (RFC 6749 section 4.1.3).

        Implementations must check that the code was issued to ``client_id``
        for ``redirect_uri`` and has neither expired nor been used.
        """

    @abstractmethod
    def refresh(self, refresh_token: str, scope: str) -> IssuedTokens:
        """
        Issue a new access token from a refresh token (RFC 6749 section 6).

        ``scope`` is empty when the client did not request one. A new
        refresh token may be returned to rotate the old one.
        """
