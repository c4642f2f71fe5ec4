"""
FastAPI wiring of the OAuth2 provider endpoints.

``create_provider_router`` mounts the authorization endpoint and the
client-authenticated token endpoint at the configured paths, bound to one
backend instance.
"""

from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import Response

from ..shared.oauth_errors import MALFORMED_BODY
from ..shared.oauth_models import AuthorizationRequest, OAuthErrorResponse, TokenResponse
from .authorize import authorize_endpoint, error_response
from .backend import OAuth2Backend
from .client_auth import create_client_auth_gate
from .config import ProviderConfig
from .context import CredentialContext
from .token import read_token_request, token_endpoint


def create_provider_router(backend: OAuth2Backend,
                           config: Optional[ProviderConfig] = None) -> APIRouter:
    """
    Create the router serving the authorize and token endpoints.

    Args:
        backend: Backend implementing client, code and token management
        config: Endpoint paths and declared scopes

    Returns:
        APIRouter: Router to include in a FastAPI application
    """
    config = config or ProviderConfig()
    router = APIRouter(tags=["oauth2_provider"])
    authenticate_client = create_client_auth_gate(backend, config.form_decode_credentials)

    @router.get(
        config.authorization_endpoint,
        status_code=302,
        summary="OAuth2 Authorization Endpoint",
        description="""
        Authorize an OAuth2 client.

        Redirects the user agent to the client redirect URI with the
        authorization code, and the state if one was sent, in the query
        string.
        """,
        responses={
            302: {"description": "Redirect to the client with the authorization code"},
            400: {"model": OAuthErrorResponse, "description": "Invalid authorization request"},
        }
    )
    async def authorize(
        response_type: str = Query("", description='Value must be set to "code"'),
        client_id: str = Query("", description="The client identifier"),
        redirect_uri: str = Query("", description="Redirection endpoint"),
        scope: str = Query("", description="The scope of the access request"),
        state: str = Query("", description="Opaque value echoed back to the client")
    ) -> Response:
        auth_request = AuthorizationRequest(
            client_id=client_id,
            response_type=response_type,
            redirect_uri=redirect_uri,
            scope=scope,
            state=state
        )
        return await authorize_endpoint(auth_request, backend)

    @router.post(
        config.token_endpoint,
        summary="OAuth2 Token Endpoint",
        description="""
        Get an access token from an authorization code or a refresh token.

        The client authenticates with HTTP Basic credentials and sends a
        form-encoded body with grant_type set to "authorization_code"
        (code, redirect_uri) or "refresh_token" (refresh_token, scope).
        """,
        responses={
            200: {"model": TokenResponse, "description": "Tokens issued"},
            400: {"model": OAuthErrorResponse, "description": "Invalid token request"},
            401: {"description": "Client authentication failed"},
        }
    )
    async def token(
        request: Request,
        ctx: CredentialContext = Depends(authenticate_client)
    ) -> Response:
        token_request = await read_token_request(request)
        if token_request is None:
            return error_response(MALFORMED_BODY)
        return await token_endpoint(token_request, ctx, backend)

    return router


def mount_provider(app: FastAPI, backend: OAuth2Backend,
                   config: Optional[ProviderConfig] = None) -> APIRouter:
    """Include the provider endpoints in an existing application."""
    router = create_provider_router(backend, config)
    app.include_router(router)
    return router
