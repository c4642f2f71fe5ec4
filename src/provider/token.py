"""
Token endpoint (RFC 6749 sections 4.1.3 and 6).

Authenticated clients exchange an authorization code, or refresh an access
token, here. The grant type selects the sub-flow; each sub-flow validates
its inputs, calls the backend and renders the token response.
"""

from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from ..shared.logging_utils import ComponentType, MessageType, OAuthLogger
from ..shared.oauth_errors import (
    INVALID_GRANT_TYPE,
    INVALID_REDIRECT,
    MISSING_CLIENT_ID,
    MISSING_CODE,
    MISSING_REDIRECT,
    MISSING_REFRESH_TOKEN,
    error_to_media,
)
from ..shared.oauth_models import (
    GrantType,
    OAuthErrorResponse,
    TokenRequest,
    TokenResponse,
    TokenType,
)
from ..shared.security import InputValidator, SecurityHeaders
from .authorize import error_response
from .backend import IssuedTokens, OAuth2Backend
from .context import CredentialContext, context_client_id

logger = OAuthLogger(ComponentType.PROVIDER)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


async def read_token_request(request: Request) -> Optional[TokenRequest]:
    """
    Decode the token request from a form-encoded body.

    Returns:
        Optional[TokenRequest]: The request, or None if the body is not form encoded
    """
    content_type = request.headers.get("content-type", "")
    if content_type.split(";")[0].strip().lower() != FORM_CONTENT_TYPE:
        logger.log_oauth_message(
            ComponentType.CLIENT, ComponentType.PROVIDER,
            "Malformed Token Request",
            {"content_type": content_type or "missing"},
            success=False
        )
        return None

    form = await request.form()
    return TokenRequest.from_form({key: form.get(key) for key in form.keys()})


def _reject(token_request: TokenRequest, payload: OAuthErrorResponse) -> JSONResponse:
    logger.log_oauth_message(
        ComponentType.PROVIDER, ComponentType.CLIENT,
        "Token Request Validation Failed",
        {
            "grant_type": token_request.grant_type,
            "error": payload.error,
            "description": payload.error_description
        },
        success=False
    )
    return error_response(payload)


def _backend_failure(operation: str, e: Exception) -> JSONResponse:
    payload = error_to_media(e)
    logger.log_oauth_message(
        ComponentType.BACKEND, ComponentType.PROVIDER,
        f"Token {operation.title()} Denied",
        {
            "backend_error": f"{type(e).__name__}: {e}",
            "error": payload.error
        },
        success=False
    )
    return error_response(payload)


def token_response(tokens: IssuedTokens, scope: Optional[str] = None) -> JSONResponse:
    """
    Render issued tokens as the token endpoint response.

    The token type is always Bearer. The refresh token and lifetime are left
    out when empty, the scope when not given.
    """
    media = TokenResponse(
        access_token=tokens.access_token,
        token_type=TokenType.BEARER,
        refresh_token=tokens.refresh_token or None,
        expires_in=tokens.expires_in or None,
        scope=scope
    )

    headers = {"Content-Type": "application/json"}
    headers.update(SecurityHeaders.get_token_response_headers())

    logger.log_oauth_message(
        ComponentType.PROVIDER, ComponentType.CLIENT,
        MessageType.RESPONSE,
        {
            "access_token": media.access_token,
            "token_type": media.token_type.value,
            "refresh_token": media.refresh_token,
            "expires_in": media.expires_in,
            "scope": media.scope
        }
    )

    return JSONResponse(status_code=200, content=media.to_wire(), headers=headers)


async def exchange_code(token_request: TokenRequest, ctx: CredentialContext,
                        backend: OAuth2Backend) -> Response:
    """Exchange an authorization code for an access and refresh token."""

    client_id = context_client_id(ctx)
    if not client_id:
        return _reject(token_request, MISSING_CLIENT_ID)

    if not token_request.code:
        return _reject(token_request, MISSING_CODE)

    if not token_request.redirect_uri:
        return _reject(token_request, MISSING_REDIRECT)

    if not InputValidator.is_absolute_url(token_request.redirect_uri):
        return _reject(token_request, INVALID_REDIRECT)

    try:
        tokens = await run_in_threadpool(
            backend.exchange, client_id, token_request.code, token_request.redirect_uri
        )
    except Exception as e:
        return _backend_failure("exchange", e)

    return token_response(tokens)


async def refresh_access_token(token_request: TokenRequest, backend: OAuth2Backend) -> Response:
    """Issue a new access token given a refresh token."""

    if not token_request.refresh_token:
        return _reject(token_request, MISSING_REFRESH_TOKEN)

    try:
        tokens = await run_in_threadpool(
            backend.refresh, token_request.refresh_token, token_request.scope or ""
        )
    except Exception as e:
        return _backend_failure("refresh", e)

    return token_response(tokens, scope=token_request.scope)


async def token_endpoint(token_request: TokenRequest, ctx: CredentialContext,
                         backend: OAuth2Backend) -> Response:
    """Dispatch a token request on its grant type."""

    logger.log_oauth_message(
        ComponentType.CLIENT, ComponentType.PROVIDER,
        "Token Request Received",
        {
            "client_id": context_client_id(ctx),
            "grant_type": token_request.grant_type,
            "code": token_request.code,
            "redirect_uri": token_request.redirect_uri,
            "refresh_token": token_request.refresh_token,
            "scope": token_request.scope
        }
    )

    if token_request.grant_type == GrantType.AUTHORIZATION_CODE.value:
        return await exchange_code(token_request, ctx, backend)

    if token_request.grant_type == GrantType.REFRESH_TOKEN.value:
        return await refresh_access_token(token_request, backend)

    return _reject(token_request, INVALID_GRANT_TYPE)
