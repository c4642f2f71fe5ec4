"""
OAuth2 Authorization Code Provider - Demo Server

This FastAPI application mounts the OAuth2 provider endpoints on top of the
in-memory backend, with one pre-registered demo client, so the
authorization code flow can be exercised end to end.

Key Features:
- Authorization endpoint issuing codes by redirect (RFC 6749 section 4.1.1)
- Token endpoint with HTTP Basic client authentication
- Authorization code exchange and refresh token grants
- Refresh token rotation and replay detection in the backend
- Colored console logging of every step

Demo Client:
- client_id: demo-client
- client_secret: demo-secret
- redirect_uri: http://localhost:8080/callback
- scopes: api:read api:write
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..provider.backend import OAuth2Backend
from ..provider.config import ProviderConfig
from ..provider.router import mount_provider
from ..shared.logging_utils import ComponentType, OAuthLogger
from ..shared.security import SecurityHeaders
from .storage import InMemoryBackend

DEMO_CLIENT_ID = "demo-client"
DEMO_CLIENT_SECRET = "demo-secret"
DEMO_REDIRECT_URI = "http://localhost:8080/callback"
DEMO_SCOPES = {
    "api:read": "Scope granting read access",
    "api:write": "Scope granting write access",
}
DEMO_PORT = 8081

# Initialize logger
logger = OAuthLogger(ComponentType.SYSTEM)


def create_demo_backend() -> InMemoryBackend:
    """Create an in-memory backend with the demo client registered."""
    backend = InMemoryBackend()
    backend.register_client(
        DEMO_CLIENT_ID,
        DEMO_CLIENT_SECRET,
        redirect_uris=[DEMO_REDIRECT_URI],
        scopes=DEMO_SCOPES.keys()
    )
    return backend


def create_app(backend: Optional[OAuth2Backend] = None,
               config: Optional[ProviderConfig] = None) -> FastAPI:
    """
    Create the demo server application.

    Args:
        backend: Backend to serve, defaults to an in-memory backend with the demo client
        config: Provider configuration, defaults to the demo endpoints and scopes

    Returns:
        FastAPI: Configured application
    """
    backend = backend if backend is not None else create_demo_backend()
    config = config or ProviderConfig(scopes=DEMO_SCOPES)

    app = FastAPI(
        title="OAuth2 Authorization Code Provider",
        description=f"""
        OAuth2 provider implementing the authorization code grant (RFC 6749).

        **Key Endpoints:**
        - `{config.authorization_endpoint}` - Authorization endpoint
        - `{config.token_endpoint}` - Token endpoint (HTTP Basic client authentication)
        - `/health` - Health check endpoint
        """,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add CORS middleware to allow the demo client to call the token endpoint
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:8080",
            "http://127.0.0.1:8080"
        ],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def add_security_headers(request, call_next):
        """Add standard security headers to all HTTP responses."""
        response = await call_next(request)

        for header_name, header_value in SecurityHeaders.get_oauth_security_headers().items():
            response.headers[header_name] = header_value

        return response

    @app.get("/health")
    async def health_check():
        """Health check endpoint for monitoring and startup verification."""
        return JSONResponse(
            status_code=200,
            content={
                "status": "healthy",
                "service": "OAuth2 Authorization Code Provider",
                "version": "1.0.0",
                "endpoints": {
                    "authorize": config.authorization_endpoint,
                    "token": config.token_endpoint,
                    "health": "/health"
                }
            }
        )

    @app.get("/")
    async def root():
        """Provider information and supported features."""
        return JSONResponse(
            content={
                "service": "OAuth2 Authorization Code Provider",
                "version": "1.0.0",
                "supported_response_types": ["code"],
                "supported_grant_types": ["authorization_code", "refresh_token"],
                "token_endpoint_auth_methods": ["client_secret_basic"],
                "scopes": dict(config.scopes),
                "endpoints": {
                    "authorization": {
                        "url": config.authorization_endpoint,
                        "method": "GET"
                    },
                    "token": {
                        "url": config.token_endpoint,
                        "method": "POST"
                    }
                },
                "documentation": {
                    "interactive_docs": "/docs",
                    "redoc": "/redoc"
                }
            }
        )

    mount_provider(app, backend, config)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.log_startup(DEMO_PORT, {
        "authorization_endpoint": "/oauth2/auth",
        "token_endpoint": "/oauth2/token",
        "demo_client": DEMO_CLIENT_ID
    })
    uvicorn.run(app, host="0.0.0.0", port=DEMO_PORT)
