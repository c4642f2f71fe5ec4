"""
Authorization endpoint (RFC 6749 section 4.1.1).

The resource owner's user agent is sent here by the client. The request is
validated, the backend issues an authorization code and the user agent is
redirected back to the client with the code in the query string.
"""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from fastapi.responses import JSONResponse, RedirectResponse, Response
from starlette.concurrency import run_in_threadpool

from ..shared.logging_utils import ComponentType, OAuthLogger
from ..shared.oauth_errors import (
    BAD_RESPONSE_TYPE,
    INVALID_REDIRECT,
    MISSING_CLIENT_ID,
    MISSING_REDIRECT,
    error_to_media,
)
from ..shared.oauth_models import AuthorizationRequest, OAuthErrorResponse, ResponseType
from ..shared.security import InputValidator
from .backend import OAuth2Backend

logger = OAuthLogger(ComponentType.PROVIDER)


def error_response(payload: OAuthErrorResponse) -> JSONResponse:
    """Render an OAuth2 error payload as a 400 response."""
    return JSONResponse(status_code=400, content=payload.to_wire())


def _reject(auth_request: AuthorizationRequest, payload: OAuthErrorResponse) -> JSONResponse:
    logger.log_oauth_message(
        ComponentType.PROVIDER, ComponentType.USER_AGENT,
        "Authorization Request Validation Failed",
        {
            "client_id": auth_request.client_id,
            "error": payload.error,
            "description": payload.error_description
        },
        success=False
    )
    return error_response(payload)


def build_redirect_uri(redirect_uri: str, code: str, state: str = "") -> str:
    """
    Add the authorization code, and the state if any, to the redirect URI.

    Existing query parameters are kept, except ``code`` and ``state`` which
    are replaced. The query is re-encoded with its keys sorted.
    """
    parts = urlsplit(redirect_uri)

    query = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        query.setdefault(key, []).append(value)

    query["code"] = [code]
    if state:
        query["state"] = [state]

    encoded = urlencode([(key, value) for key in sorted(query) for value in query[key]])
    return urlunsplit((parts.scheme, parts.netloc, parts.path, encoded, parts.fragment))


async def authorize_endpoint(auth_request: AuthorizationRequest, backend: OAuth2Backend) -> Response:
    """Validate an authorization request and redirect with an authorization code."""

    logger.log_oauth_message(
        ComponentType.USER_AGENT, ComponentType.PROVIDER,
        "Authorization Request Received",
        {
            "client_id": auth_request.client_id,
            "response_type": auth_request.response_type,
            "redirect_uri": auth_request.redirect_uri,
            "scope": auth_request.scope,
            "state": auth_request.state
        }
    )

    if not auth_request.client_id:
        return _reject(auth_request, MISSING_CLIENT_ID)

    if auth_request.response_type != ResponseType.CODE.value:
        return _reject(auth_request, BAD_RESPONSE_TYPE)

    if not auth_request.redirect_uri:
        return _reject(auth_request, MISSING_REDIRECT)

    if not InputValidator.is_absolute_url(auth_request.redirect_uri):
        return _reject(auth_request, INVALID_REDIRECT)

    try:
        code = await run_in_threadpool(
            backend.authorize,
            auth_request.client_id,
            auth_request.scope,
            auth_request.redirect_uri
        )
    except Exception as e:
        payload = error_to_media(e)
        logger.log_oauth_message(
            ComponentType.BACKEND, ComponentType.PROVIDER,
            "Authorization Denied",
            {
                "client_id": auth_request.client_id,
                "backend_error": f"{type(e).__name__}: {e}",
                "error": payload.error
            },
            success=False
        )
        return error_response(payload)

    location = build_redirect_uri(auth_request.redirect_uri, code, auth_request.state)

    logger.log_oauth_message(
        ComponentType.PROVIDER, ComponentType.USER_AGENT,
        "Authorization Code Response",
        {
            "client_id": auth_request.client_id,
            "redirect_uri": auth_request.redirect_uri,
            "code": code,
            "state": auth_request.state
        }
    )

    return RedirectResponse(url=location, status_code=302)
