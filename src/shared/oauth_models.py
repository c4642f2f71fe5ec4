"""
OAuth2 Pydantic models for request/response handling.

This module defines the data models flowing through the authorization code
provider: the authorization and token requests decoded from HTTP, the token
response and the error payload.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional
from enum import Enum


class GrantType(str, Enum):
    """Grant types accepted by the token endpoint."""
    AUTHORIZATION_CODE = "authorization_code"
    REFRESH_TOKEN = "refresh_token"


class ResponseType(str, Enum):
    """Response types accepted by the authorization endpoint."""
    CODE = "code"


class TokenType(str, Enum):
    """OAuth token types."""
    BEARER = "Bearer"


class AuthorizationRequest(BaseModel):
    """
    Authorization endpoint request decoded from the query string.

    Parameters are kept as plain strings, empty when absent, so that the
    authorize flow reports missing or invalid values with OAuth2 errors
    instead of framework validation errors.
    """
    model_config = ConfigDict(frozen=True)

    client_id: str = Field(default="", description="OAuth client identifier")
    response_type: str = Field(default="", description='Must be "code"')
    redirect_uri: str = Field(default="", description="Client redirect URI")
    scope: str = Field(default="", description="Requested scope")
    state: str = Field(default="", description="Opaque value echoed back to the client")


class TokenRequest(BaseModel):
    """
    Token endpoint request decoded from the form body.

    ``grant_type`` selects which of the optional fields are relevant:
    ``code`` and ``redirect_uri`` for authorization_code, ``refresh_token``
    and ``scope`` for refresh_token. ``None`` means the field was not sent.
    """
    model_config = ConfigDict(frozen=True)

    grant_type: str = Field(default="", description="authorization_code or refresh_token")
    code: Optional[str] = Field(default=None, description="Authorization code")
    redirect_uri: Optional[str] = Field(default=None, description="Redirect URI used to obtain the code")
    refresh_token: Optional[str] = Field(default=None, description="Refresh token")
    scope: Optional[str] = Field(default=None, description="Scope of the refresh request")

    @classmethod
    def from_form(cls, form: Dict[str, Any]) -> "TokenRequest":
        """Build a token request from decoded form fields, ignoring unknown keys."""
        return cls(**{
            name: form[name]
            for name in cls.model_fields
            if isinstance(form.get(name), str)
        })


class TokenResponse(BaseModel):
    """
    Successful token endpoint response (RFC 6749 section 5.1).

    Optional fields are left as ``None`` when they must not appear on the
    wire; see ``to_wire``.
    """
    access_token: str = Field(..., description="Access token issued by the provider")
    token_type: TokenType = Field(
        default=TokenType.BEARER,
        description="Token type (Bearer)"
    )
    expires_in: Optional[int] = Field(default=None, description="Token lifetime in seconds")
    refresh_token: Optional[str] = Field(default=None, description="Refresh token")
    scope: Optional[str] = Field(default=None, description="Scope of the access token")

    def to_wire(self) -> Dict[str, Any]:
        """Serialize for the response body, omitting unset optional fields."""
        return self.model_dump(mode="json", exclude_none=True)


class OAuthErrorResponse(BaseModel):
    """
    OAuth2 error response payload (RFC 6749 section 5.2).

    Instances are immutable so predefined payloads can be shared between
    concurrent requests.
    """
    model_config = ConfigDict(frozen=True)

    error: str = Field(..., description="Error code")
    error_description: Optional[str] = Field(
        default=None,
        description="Human-readable error description"
    )
    error_uri: Optional[str] = Field(
        default=None,
        description="URI with error information"
    )

    def to_wire(self) -> Dict[str, Any]:
        """Serialize for the response body, omitting unset optional fields."""
        return self.model_dump(exclude_none=True)
