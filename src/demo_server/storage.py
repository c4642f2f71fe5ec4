"""
In-Memory Backend for the OAuth2 Provider

This module provides a thread-safe, in-memory implementation of the
``OAuth2Backend`` contract: registered clients, authorization codes and
refresh tokens. It backs the demo server and the integration tests.

Note: Production deployments replace it with persistent storage; the
provider core only depends on the ``OAuth2Backend`` interface.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Set

from passlib.context import CryptContext

from ..provider.backend import IssuedTokens, OAuth2Backend
from ..shared.logging_utils import ComponentType, OAuthLogger
from ..shared.oauth_errors import ErrorCode, OAuth2Error
from ..shared.security import PasswordHasher, TokenGenerator, pwd_context

# Initialize logger for storage operations
logger = OAuthLogger(ComponentType.BACKEND)

CODE_LIFETIME = timedelta(minutes=10)
ACCESS_TOKEN_LIFETIME = 3600


def _now() -> datetime:
    return datetime.now(timezone.utc)


def scope_to_set(scope: str) -> Set[str]:
    """Split a space-delimited scope string (RFC 6749 section 3.3)."""
    return set(scope.split())


class InMemoryBackend(OAuth2Backend):
    """
    In-memory OAuth2 backend.

    Security Features:
    - Client secrets stored as bcrypt hashes only
    - Exact redirect URI matching against registered URIs
    - Authorization codes expire after 10 minutes and are single use
    - Replayed codes revoke the refresh tokens issued from them
    - Refresh tokens are rotated on every use
    - Refreshed scope can only narrow the original grant
    """

    def __init__(self,
                 code_lifetime: timedelta = CODE_LIFETIME,
                 access_token_lifetime: int = ACCESS_TOKEN_LIFETIME,
                 secret_context: CryptContext = pwd_context):
        """
        Initialize empty client, code and token storage.

        Args:
            code_lifetime: How long an authorization code stays valid
            access_token_lifetime: Access token lifetime in seconds
            secret_context: passlib context used to hash client secrets
        """
        self.code_lifetime = code_lifetime
        self.access_token_lifetime = access_token_lifetime
        self.secret_context = secret_context

        self._lock = threading.Lock()
        self._clients: Dict[str, Dict] = {}
        self._codes: Dict[str, Dict] = {}
        self._refresh_tokens: Dict[str, Dict] = {}

        logger.log_oauth_message(
            ComponentType.SYSTEM, ComponentType.BACKEND,
            "In-Memory Backend Initialized",
            {
                "code_lifetime_seconds": int(code_lifetime.total_seconds()),
                "access_token_lifetime": access_token_lifetime,
                "security_features": ["one_time_codes", "refresh_rotation", "bcrypt_secrets"]
            }
        )

    # Client registry

    def register_client(self, client_id: str, client_secret: str,
                        redirect_uris: Iterable[str], scopes: Iterable[str] = ()) -> None:
        """
        Register a client with its secret, redirect URIs and allowed scopes.

        Args:
            client_id: OAuth client identifier
            client_secret: Plain text secret, only its hash is stored
            redirect_uris: Redirect URIs the client may use
            scopes: Scopes the client may request
        """
        secret_hash = PasswordHasher.hash_password(client_secret, self.secret_context)
        redirect_uris = list(redirect_uris)
        scopes = set(scopes)

        with self._lock:
            self._clients[client_id] = {
                'secret_hash': secret_hash,
                'redirect_uris': redirect_uris,
                'scopes': scopes,
                'created_at': _now()
            }

        logger.log_oauth_message(
            ComponentType.SYSTEM, ComponentType.BACKEND,
            "Client Registered",
            {
                "client_id": client_id,
                "redirect_uris": redirect_uris,
                "scopes": sorted(scopes)
            }
        )

    def get_client(self, client_id: str) -> Optional[Dict]:
        """Get client registration without the secret hash."""
        with self._lock:
            client = self._clients.get(client_id)
            if not client:
                return None
            return {
                'client_id': client_id,
                'redirect_uris': list(client['redirect_uris']),
                'scopes': set(client['scopes']),
                'created_at': client['created_at']
            }

    # OAuth2Backend

    def authenticate(self, client_id: str, client_secret: str) -> None:
        with self._lock:
            client = self._clients.get(client_id)

        # Same error for unknown clients and wrong secrets
        if not client or not PasswordHasher.verify_password(
                client_secret, client['secret_hash'], self.secret_context):
            logger.log_oauth_message(
                ComponentType.BACKEND, ComponentType.CLIENT_AUTH,
                "Client Authentication Failed",
                {
                    "client_id": client_id,
                    "client_known": client is not None
                },
                success=False
            )
            raise OAuth2Error(ErrorCode.INVALID_CLIENT, "invalid client credentials")

    def authorize(self, client_id: str, scope: str, redirect_uri: str) -> str:
        with self._lock:
            client = self._clients.get(client_id)
            if not client:
                raise OAuth2Error(ErrorCode.INVALID_CLIENT, "unknown client")

            if redirect_uri not in client['redirect_uris']:
                raise OAuth2Error(
                    ErrorCode.INVALID_REQUEST,
                    "redirect URI does not match a registered redirect URI"
                )

            requested = scope_to_set(scope)
            if not requested.issubset(client['scopes']):
                raise OAuth2Error(
                    ErrorCode.INVALID_SCOPE,
                    f"scope not allowed: {' '.join(sorted(requested - client['scopes']))}"
                )

            code = TokenGenerator.generate_authorization_code()
            created_at = _now()
            self._codes[code] = {
                'client_id': client_id,
                'redirect_uri': redirect_uri,
                'scope': scope,
                'created_at': created_at,
                'expires_at': created_at + self.code_lifetime,
                'used': False,
                'refresh_tokens': []
            }

        logger.log_oauth_message(
            ComponentType.BACKEND, ComponentType.PROVIDER,
            "Authorization Code Stored",
            {
                "code": code,
                "client_id": client_id,
                "scope": scope,
                "expires_in_seconds": int(self.code_lifetime.total_seconds())
            }
        )

        return code

    def exchange(self, client_id: str, code: str, redirect_uri: str) -> IssuedTokens:
        now = _now()
        with self._lock:
            code_data = self._codes.get(code)

            if not code_data:
                raise OAuth2Error(ErrorCode.INVALID_GRANT, "invalid authorization code")

            if code_data['used']:
                # Replay: revoke everything issued from this code (RFC 6749 section 4.1.2)
                revoked = self._revoke_tokens(code_data['refresh_tokens'])
                logger.log_oauth_message(
                    ComponentType.BACKEND, ComponentType.PROVIDER,
                    "Authorization Code Already Used",
                    {
                        "code": code,
                        "client_id": client_id,
                        "refresh_tokens_revoked": revoked,
                        "security_risk": "possible_replay_attack"
                    },
                    success=False
                )
                raise OAuth2Error(ErrorCode.INVALID_GRANT, "authorization code already used")

            if now > code_data['expires_at']:
                del self._codes[code]
                raise OAuth2Error(ErrorCode.INVALID_GRANT, "authorization code expired")

            if code_data['client_id'] != client_id:
                raise OAuth2Error(
                    ErrorCode.INVALID_GRANT,
                    "authorization code was issued to another client"
                )

            if code_data['redirect_uri'] != redirect_uri:
                raise OAuth2Error(ErrorCode.INVALID_GRANT, "redirect URI mismatch")

            code_data['used'] = True
            tokens = self._issue_tokens(client_id, code_data['scope'], code)
            code_data['refresh_tokens'].append(tokens.refresh_token)

        logger.log_oauth_message(
            ComponentType.BACKEND, ComponentType.PROVIDER,
            "Authorization Code Exchanged",
            {
                "code": code,
                "client_id": client_id,
                "access_token": tokens.access_token,
                "expires_in": tokens.expires_in
            }
        )

        return tokens

    def refresh(self, refresh_token: str, scope: str) -> IssuedTokens:
        with self._lock:
            token_data = self._refresh_tokens.get(refresh_token)
            if not token_data or token_data['revoked']:
                raise OAuth2Error(ErrorCode.INVALID_GRANT, "invalid refresh token")

            granted = scope_to_set(token_data['scope'])
            requested = scope_to_set(scope)
            if not requested.issubset(granted):
                raise OAuth2Error(ErrorCode.INVALID_SCOPE, "scope exceeds the original grant")

            token_data['revoked'] = True
            new_scope = scope if requested else token_data['scope']
            tokens = self._issue_tokens(token_data['client_id'], new_scope, token_data['code'])

            code_data = self._codes.get(token_data['code'])
            if code_data:
                code_data['refresh_tokens'].append(tokens.refresh_token)

        logger.log_oauth_message(
            ComponentType.BACKEND, ComponentType.PROVIDER,
            "Refresh Token Rotated",
            {
                "client_id": token_data['client_id'],
                "refresh_token": tokens.refresh_token,
                "scope": new_scope
            }
        )

        return tokens

    # Internals, called with the lock held

    def _issue_tokens(self, client_id: str, scope: str, code: str) -> IssuedTokens:
        tokens = IssuedTokens(
            access_token=TokenGenerator.generate_access_token(),
            refresh_token=TokenGenerator.generate_refresh_token(),
            expires_in=self.access_token_lifetime
        )
        self._refresh_tokens[tokens.refresh_token] = {
            'client_id': client_id,
            'scope': scope,
            'code': code,
            'issued_at': _now(),
            'revoked': False
        }
        return tokens

    def _revoke_tokens(self, refresh_tokens: List[str]) -> int:
        revoked = 0
        for token in refresh_tokens:
            token_data = self._refresh_tokens.get(token)
            if token_data and not token_data['revoked']:
                token_data['revoked'] = True
                revoked += 1
        return revoked

    # Maintenance

    def cleanup_expired_codes(self) -> int:
        """
        Remove expired authorization codes and revoked refresh tokens.

        Used codes are kept until they expire so replays are still detected.
        Revoked refresh tokens are dropped from storage and from the codes
        they were issued from; refreshing with one is still rejected.

        Returns:
            int: Number of expired codes removed
        """
        now = _now()
        with self._lock:
            expired_codes = [
                code for code, data in self._codes.items()
                if now > data['expires_at']
            ]
            for code in expired_codes:
                del self._codes[code]

            revoked_tokens = {
                token for token, data in self._refresh_tokens.items()
                if data['revoked']
            }
            for token in revoked_tokens:
                del self._refresh_tokens[token]
            for data in self._codes.values():
                data['refresh_tokens'] = [
                    token for token in data['refresh_tokens']
                    if token not in revoked_tokens
                ]

            remaining = len(self._codes)

        if expired_codes or revoked_tokens:
            logger.log_oauth_message(
                ComponentType.BACKEND, ComponentType.BACKEND,
                "Storage Cleanup",
                {
                    "codes_removed": len(expired_codes),
                    "refresh_tokens_removed": len(revoked_tokens),
                    "remaining_codes": remaining
                }
            )

        return len(expired_codes)

    def get_storage_statistics(self) -> Dict:
        """
        Get storage statistics for monitoring.

        Returns:
            Dict: Counts of clients, codes and refresh tokens
        """
        now = _now()
        with self._lock:
            return {
                "clients": len(self._clients),
                "total_codes": len(self._codes),
                "active_codes": sum(
                    1 for data in self._codes.values()
                    if not data['used'] and now <= data['expires_at']
                ),
                "used_codes": sum(1 for data in self._codes.values() if data['used']),
                "active_refresh_tokens": sum(
                    1 for data in self._refresh_tokens.values() if not data['revoked']
                ),
                "revoked_refresh_tokens": sum(
                    1 for data in self._refresh_tokens.values() if data['revoked']
                )
            }
