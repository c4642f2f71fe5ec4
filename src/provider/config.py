"""
Provider configuration.
"""

from typing import Dict

from fastapi.security import OAuth2AuthorizationCodeBearer
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProviderConfig(BaseModel):
    """
    Construction-time settings of the OAuth2 provider.

    The endpoint paths decide where the authorize and token routes are
    mounted; ``scopes`` maps scope names to descriptions and is published
    in the security scheme.
    """
    model_config = ConfigDict(frozen=True)

    authorization_endpoint: str = Field(default="/oauth2/auth", description="Authorization endpoint path")
    token_endpoint: str = Field(default="/oauth2/token", description="Token endpoint path")
    scopes: Dict[str, str] = Field(default_factory=dict, description="Declared scopes")
    form_decode_credentials: bool = Field(
        default=False,
        description="Form-url-decode Basic client credentials before authenticating"
    )

    @field_validator("authorization_endpoint", "token_endpoint")
    @classmethod
    def validate_path(cls, v):
        """Endpoints are mounted as absolute request paths."""
        if not v.startswith("/"):
            raise ValueError("Endpoint path must start with '/'")
        return v

    def security_scheme(self, auto_error: bool = True) -> OAuth2AuthorizationCodeBearer:
        """
        Build the authorization code security scheme for this provider.

        Services protecting resources with tokens issued here use the scheme
        as a dependency; it also documents the flow in the OpenAPI schema.
        """
        return OAuth2AuthorizationCodeBearer(
            authorizationUrl=self.authorization_endpoint,
            tokenUrl=self.token_endpoint,
            scopes=dict(self.scopes),
            auto_error=auto_error
        )
