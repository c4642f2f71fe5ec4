"""
Client authentication for the token endpoint.

Clients authenticate to the token endpoint with HTTP Basic credentials
(RFC 6749 section 2.3.1). The gate validates them with the backend and
hands the authenticated client identifier to the token flow through a
``CredentialContext``.
"""

from typing import Optional
from urllib.parse import unquote_plus

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from starlette.concurrency import run_in_threadpool

from ..shared.logging_utils import ComponentType, OAuthLogger
from ..shared.oauth_errors import MISSING_AUTH
from .backend import OAuth2Backend
from .context import CredentialContext, with_client_id

logger = OAuthLogger(ComponentType.CLIENT_AUTH)

# Missing credentials are reported by the gate itself, not by FastAPI
client_basic_auth = HTTPBasic(
    auto_error=False,
    description="Client credentials used to retrieve and refresh access tokens"
)


def unauthorized(message: str) -> HTTPException:
    """Build the 401 error returned when client authentication fails."""
    return HTTPException(
        status_code=401,
        detail=message,
        headers={"WWW-Authenticate": "Basic"}
    )


def create_client_auth_gate(backend: OAuth2Backend, form_decode_credentials: bool = False):
    """
    Create the FastAPI dependency authenticating token endpoint clients.

    Args:
        backend: Backend validating the client credentials
        form_decode_credentials: Form-url-decode the Basic username and
            password before validation (RFC 6749 section 2.3.1)

    Returns:
        Dependency returning the CredentialContext of the authenticated client
    """

    async def authenticate_client(
        request: Request,
        credentials: Optional[HTTPBasicCredentials] = Depends(client_basic_auth)
    ) -> CredentialContext:
        if credentials is None:
            logger.log_oauth_message(
                ComponentType.CLIENT, ComponentType.CLIENT_AUTH,
                "Client Authentication Failed",
                {
                    "path": str(request.url.path),
                    "reason": MISSING_AUTH
                },
                success=False
            )
            raise unauthorized(MISSING_AUTH)

        client_id = credentials.username
        client_secret = credentials.password
        if form_decode_credentials:
            client_id = unquote_plus(client_id)
            client_secret = unquote_plus(client_secret)

        try:
            await run_in_threadpool(backend.authenticate, client_id, client_secret)
        except Exception as e:
            logger.log_oauth_message(
                ComponentType.BACKEND, ComponentType.CLIENT_AUTH,
                "Client Authentication Failed",
                {
                    "client_id": client_id,
                    "reason": str(e)
                },
                success=False
            )
            raise unauthorized(str(e)) from e

        logger.log_oauth_message(
            ComponentType.BACKEND, ComponentType.CLIENT_AUTH,
            "Client Authenticated",
            {"client_id": client_id}
        )

        return with_client_id(CredentialContext(), client_id)

    return authenticate_client
