"""
Security utilities for the OAuth2 provider.

This module provides client secret hashing, token generation, redirect URI
validation and HTTP security headers, using passlib for bcrypt hashing and
the standard library ``secrets`` module for randomness.
"""

import secrets
from typing import Dict
from urllib.parse import urlsplit

from passlib.context import CryptContext

# Configure secret context with bcrypt
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=12
)


class PasswordHasher:
    """
    Client secret hashing utilities using bcrypt.

    Secrets are never stored in clear text; only the bcrypt hash is kept
    and verification happens in constant time inside bcrypt.
    """

    @staticmethod
    def hash_password(password: str, context: CryptContext = pwd_context) -> str:
        """
        Hash a secret using bcrypt with salt.

        Args:
            password: Plain text secret to hash
            context: passlib context to hash with

        Returns:
            str: Bcrypt hash

        Example:
            hashed = PasswordHasher.hash_password("demo-secret")
            # Returns: "$2b$12$..."
        """
        if not isinstance(password, str):
            raise ValueError("Password must be a string")

        if len(password) == 0:
            raise ValueError("Password cannot be empty")

        return context.hash(password)

    @staticmethod
    def verify_password(password: str, hashed_password: str,
                        context: CryptContext = pwd_context) -> bool:
        """
        Verify a secret against its hash.

        Args:
            password: Plain text secret to verify
            hashed_password: Previously computed hash
            context: passlib context the hash was produced with

        Returns:
            bool: True if the secret matches the hash, False otherwise
        """
        if not isinstance(password, str) or not isinstance(hashed_password, str):
            return False

        try:
            return context.verify(password, hashed_password)
        except ValueError:
            # Not a hash this context recognizes
            return False


class TokenGenerator:
    """
    Secure token generation utilities.

    Provides the random values handed out by the reference backend:
    authorization codes, access tokens, refresh tokens and client secrets.
    """

    @staticmethod
    def generate_authorization_code() -> str:
        """
        Generate a secure authorization code.

        Returns:
            str: URL-safe authorization code
        """
        return secrets.token_urlsafe(32)

    @staticmethod
    def generate_access_token() -> str:
        """
        Generate a secure access token.

        Returns:
            str: URL-safe access token
        """
        return secrets.token_urlsafe(48)

    @staticmethod
    def generate_refresh_token() -> str:
        """
        Generate a secure refresh token.

        Returns:
            str: URL-safe refresh token
        """
        return secrets.token_urlsafe(64)

    @staticmethod
    def generate_client_secret() -> str:
        """
        Generate a secure client secret.

        Returns:
            str: URL-safe client secret
        """
        return secrets.token_urlsafe(32)


class InputValidator:
    """
    Input validation for OAuth parameters.
    """

    @staticmethod
    def is_absolute_url(value: str) -> bool:
        """
        Check that a redirect URI is an absolute URL.

        A URL is absolute when it has a non-empty scheme and a non-empty
        host part (the authority without any user info). URLs containing
        whitespace or control characters are never valid.

        Args:
            value: URI to validate

        Returns:
            bool: True if absolute, False otherwise

        Example:
            InputValidator.is_absolute_url("https://client.example/cb")  # True
            InputValidator.is_absolute_url("/relative/path")             # False
        """
        if not isinstance(value, str) or not value:
            return False

        if any(ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7f for ch in value):
            return False

        try:
            parsed = urlsplit(value)
        except ValueError:
            return False

        host = parsed.netloc.rpartition('@')[2]
        return bool(parsed.scheme) and bool(host)


class SecurityHeaders:
    """
    Security headers for HTTP responses.
    """

    @staticmethod
    def get_oauth_security_headers() -> Dict[str, str]:
        """
        Get security headers for provider endpoints.

        Returns:
            dict: Dictionary of security headers
        """
        return {
            'X-Content-Type-Options': 'nosniff',
            'X-Frame-Options': 'DENY',
            'Strict-Transport-Security': 'max-age=31536000; includeSubDomains',
            'Cache-Control': 'no-cache, no-store, must-revalidate',
            'Pragma': 'no-cache',
            'Expires': '0'
        }

    @staticmethod
    def get_token_response_headers() -> Dict[str, str]:
        """
        Get the headers required on token responses (RFC 6749 section 5.1).

        Returns:
            dict: Dictionary of cache control headers
        """
        return {
            'Cache-Control': 'no-store',
            'Pragma': 'no-cache'
        }


def hash_password(password: str) -> str:
    """Hash a client secret using bcrypt."""
    return PasswordHasher.hash_password(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify a client secret against its hash."""
    return PasswordHasher.verify_password(password, hashed_password)
