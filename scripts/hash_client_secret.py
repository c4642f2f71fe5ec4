#!/usr/bin/env python3
"""
Client Secret Hashing Utility

Generates a client secret (or takes one on the command line), prints its
bcrypt hash and checks that the hash verifies, for registering clients in a
backend that stores hashed secrets.

Usage:
    python scripts/hash_client_secret.py [secret]
"""

import sys
from pathlib import Path

# Add the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.shared.logging_utils import OAuthLogger
from src.shared.security import PasswordHasher, TokenGenerator


def main() -> int:
    logger = OAuthLogger("HASH-UTILITY")

    if len(sys.argv) > 1:
        secret = sys.argv[1]
        generated = False
    else:
        secret = TokenGenerator.generate_client_secret()
        generated = True

    print("🔐 Hashing client secret...")
    print("=" * 50)

    try:
        secret_hash = PasswordHasher.hash_password(secret)
    except ValueError as e:
        print(f"  ❌ Error generating hash: {e}")
        return 1

    verified = PasswordHasher.verify_password(secret, secret_hash)

    if generated:
        print(f"  🔑 Generated secret: {secret}")
    print(f"  ✅ Hash: {secret_hash}")
    print(f"  {'✅' if verified else '❌'} Verification: {'passed' if verified else 'FAILED'}")

    logger.log_oauth_message(
        "HASH-UTILITY", "HASH-UTILITY",
        "Client Secret Hash Generated",
        {
            "hash_algorithm": "bcrypt",
            "hash_length": len(secret_hash),
            "generated_secret": generated,
            "verified": verified
        },
        success=verified
    )

    return 0 if verified else 1


if __name__ == "__main__":
    sys.exit(main())
