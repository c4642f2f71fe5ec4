#!/usr/bin/env python3
"""
OAuth2 Demo Flow Automation Script

This script drives the authorization code flow against a running demo
server (``python -m src.demo_server.main``): it requests an authorization
code, exchanges it for tokens, refreshes the access token and checks that
replaying the code is rejected.
"""

import sys
import asyncio
import secrets
from pathlib import Path
from typing import Dict, Optional, Any
from urllib.parse import parse_qs, urlparse

import httpx

# Add the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.shared.logging_utils import OAuthLogger


class DemoFlowError(Exception):
    """Raised when a step of the demo flow gets an unexpected response."""


class OAuthFlowAutomation:
    """Automated authorization code flow against the demo server"""

    def __init__(self, base_url: str = "http://localhost:8081",
                 client_config: Optional[Dict[str, str]] = None):
        self.logger = OAuthLogger("DEMO-AUTOMATION")
        self.base_url = base_url

        self.client_config = client_config or {
            "client_id": "demo-client",
            "client_secret": "demo-secret",
            "redirect_uri": "http://localhost:8080/callback",
            "scope": "api:read api:write"
        }

        self.flow_state: Dict[str, Any] = {}

        # Redirects are inspected, not followed
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=30.0,
            follow_redirects=False
        )

    @property
    def client_auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(
            self.client_config["client_id"],
            self.client_config["client_secret"]
        )

    async def check_server_health(self) -> bool:
        """Check that the demo server is running"""
        print("🔍 Checking server health...")
        try:
            response = await self.client.get("/health", timeout=5.0)
        except httpx.HTTPError as e:
            print(f"  ❌ {self.base_url} - Connection failed ({e})")
            return False

        healthy = response.status_code == 200
        print(f"  {'✅' if healthy else '❌'} {self.base_url} - HTTP {response.status_code}")
        return healthy

    async def step1_authorize(self) -> str:
        """
        Step 1: Request an authorization code

        Returns:
            The authorization code from the redirect
        """
        print("\n📋 Step 1: Authorization Request")
        print("-" * 40)

        state = secrets.token_urlsafe(16)
        self.flow_state["state"] = state

        response = await self.client.get("/oauth2/auth", params={
            "response_type": "code",
            "client_id": self.client_config["client_id"],
            "redirect_uri": self.client_config["redirect_uri"],
            "scope": self.client_config["scope"],
            "state": state
        })

        if response.status_code != 302:
            print(f"❌ Authorization failed (HTTP {response.status_code}): {response.text}")
            raise DemoFlowError(f"Authorization request failed: HTTP {response.status_code}")

        location = response.headers["location"]
        query = parse_qs(urlparse(location).query)
        code = query.get("code", [None])[0]
        returned_state = query.get("state", [None])[0]

        if not code:
            raise DemoFlowError("Authorization code not found in redirect")
        if returned_state != state:
            raise DemoFlowError("State parameter validation failed")

        print(f"🔄 Redirect location: {location}")
        print("✅ State parameter verified")

        self.logger.log_oauth_message(
            "PROVIDER", "DEMO-AUTOMATION",
            "Authorization Code Received",
            {"code": code, "state": returned_state, "state_verified": True}
        )

        self.flow_state["code"] = code
        return code

    async def step2_exchange_code(self, code: str) -> Dict[str, Any]:
        """
        Step 2: Exchange the authorization code for tokens

        Returns:
            The token response
        """
        print("\n🎫 Step 2: Token Exchange")
        print("-" * 40)

        response = await self.client.post(
            "/oauth2/token",
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.client_config["redirect_uri"]
            },
            auth=self.client_auth
        )

        if response.status_code != 200:
            print(f"❌ Token exchange failed (HTTP {response.status_code}): {response.text}")
            raise DemoFlowError(f"Token exchange failed: HTTP {response.status_code}")

        tokens = response.json()
        print(f"✅ Token type: {tokens['token_type']}, expires in {tokens.get('expires_in')}s")

        self.logger.log_oauth_message(
            "PROVIDER", "DEMO-AUTOMATION",
            "Tokens Received",
            tokens
        )

        self.flow_state["tokens"] = tokens
        return tokens

    async def step3_refresh(self, refresh_token: str) -> Dict[str, Any]:
        """
        Step 3: Refresh the access token with a narrower scope

        Returns:
            The token response
        """
        print("\n♻️  Step 3: Token Refresh")
        print("-" * 40)

        response = await self.client.post(
            "/oauth2/token",
            data={
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "scope": "api:read"
            },
            auth=self.client_auth
        )

        if response.status_code != 200:
            print(f"❌ Token refresh failed (HTTP {response.status_code}): {response.text}")
            raise DemoFlowError(f"Token refresh failed: HTTP {response.status_code}")

        tokens = response.json()
        print(f"✅ Refreshed, scope: {tokens.get('scope')}")
        return tokens

    async def step4_replay_code(self, code: str) -> Dict[str, Any]:
        """
        Step 4: Replay the authorization code, which must be rejected

        Returns:
            The error response
        """
        print("\n🛡️  Step 4: Authorization Code Replay")
        print("-" * 40)

        response = await self.client.post(
            "/oauth2/token",
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.client_config["redirect_uri"]
            },
            auth=self.client_auth
        )

        error = response.json()
        if response.status_code != 400 or error.get("error") != "invalid_grant":
            raise DemoFlowError(f"Replayed code was not rejected: HTTP {response.status_code}")

        print(f"✅ Replay rejected: {error['error']} ({error.get('error_description')})")
        return error

    async def run(self) -> bool:
        """Run all steps, returning True on success"""
        try:
            if not await self.check_server_health():
                print("❌ Start the server with: python -m src.demo_server.main")
                return False

            code = await self.step1_authorize()
            tokens = await self.step2_exchange_code(code)
            await self.step3_refresh(tokens["refresh_token"])
            await self.step4_replay_code(code)
        except DemoFlowError as e:
            print(f"\n❌ Demo flow failed: {e}")
            return False
        finally:
            await self.client.aclose()

        print("\n🎉 Demo flow completed successfully")
        return True


if __name__ == "__main__":
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8081"
    succeeded = asyncio.run(OAuthFlowAutomation(base_url).run())
    sys.exit(0 if succeeded else 1)
