"""
OAuth2 error taxonomy for the authorization code provider.

This module defines the closed set of error codes from RFC 6749 section 5.2,
the exception type backends raise to report them, and the conversion into
the wire payload returned by the authorize and token endpoints.
"""

from enum import Enum
from typing import Optional, Union

from .oauth_models import OAuthErrorResponse


class ErrorCode(str, Enum):
    """OAuth2 error codes (RFC 6749 section 5.2)."""
    INVALID_REQUEST = "invalid_request"
    INVALID_CLIENT = "invalid_client"
    INVALID_GRANT = "invalid_grant"
    UNAUTHORIZED_CLIENT = "unauthorized_client"
    UNSUPPORTED_GRANT_TYPE = "unsupported_grant_type"
    INVALID_SCOPE = "invalid_scope"


class OAuth2Error(Exception):
    """
    Error carrying an OAuth2 error code, description and reference URI.

    Backends raise this to have the code and texts reported verbatim to the
    client. Any other exception raised by a backend is reported as a
    generic ``invalid_request``.
    """

    def __init__(self, code: Union[ErrorCode, str], description: str = "", uri: str = ""):
        self.code = ErrorCode(code)
        self.description = description
        self.uri = uri
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"{self.code.value} {self.description}"

    def __repr__(self) -> str:
        return f"OAuth2Error({self.code.value!r}, {self.description!r}, {self.uri!r})"


def _recognized_code(err: BaseException) -> Optional[ErrorCode]:
    code = getattr(err, "code", None)
    if isinstance(code, ErrorCode):
        return code
    if isinstance(code, str):
        try:
            return ErrorCode(code)
        except ValueError:
            return None
    return None


def error_to_media(err: BaseException) -> OAuthErrorResponse:
    """
    Convert an error into the OAuth2 error payload.

    Errors carrying a recognized code populate the payload with their code,
    description and URI. Anything else yields a bare ``invalid_request`` so
    internal error text never reaches the client.

    Args:
        err: Error raised by a flow or a backend

    Returns:
        OAuthErrorResponse: Payload for the 400 response body
    """
    code = _recognized_code(err)
    if code is None:
        return OAuthErrorResponse(error=ErrorCode.INVALID_REQUEST.value)

    description = getattr(err, "description", "") or None
    uri = getattr(err, "uri", "") or None
    return OAuthErrorResponse(
        error=code.value,
        error_description=description,
        error_uri=uri
    )


# Predefined payloads shared by every request. OAuthErrorResponse is frozen.

MISSING_CLIENT_ID = error_to_media(
    OAuth2Error(ErrorCode.INVALID_REQUEST, "missing client ID")
)

MISSING_CODE = error_to_media(
    OAuth2Error(ErrorCode.INVALID_REQUEST, "missing authorization code")
)

# RFC 6749 has unsupported_response_type for this; invalid_grant is kept on purpose.
BAD_RESPONSE_TYPE = error_to_media(
    OAuth2Error(ErrorCode.INVALID_GRANT, 'only "code" response type is supported')
)

MISSING_REDIRECT = error_to_media(
    OAuth2Error(ErrorCode.INVALID_REQUEST, "missing redirect URI")
)

INVALID_REDIRECT = error_to_media(
    OAuth2Error(ErrorCode.INVALID_REQUEST, "redirect URI must be a valid absolute URL")
)

MALFORMED_BODY = error_to_media(
    OAuth2Error(ErrorCode.INVALID_REQUEST, "malformed body")
)

INVALID_GRANT_TYPE = error_to_media(
    OAuth2Error(
        ErrorCode.INVALID_GRANT,
        "invalid grant type, must be authorization_code or refresh_token"
    )
)

MISSING_REFRESH_TOKEN = error_to_media(
    OAuth2Error(
        ErrorCode.INVALID_GRANT,
        'grant type "refresh_token" requires a "refresh_token" value'
    )
)

# Message returned with the 401 response when no Basic credentials are sent.
MISSING_AUTH = "missing auth"
