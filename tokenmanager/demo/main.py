"""
Token Manager Demo Application

This demo walks through the credential lifecycle against in-memory storage:
- Exchange code issuance and redemption
- Access token verification
- Refresh token rotation
- Replay rejection
"""

import asyncio
import logging
import sys

from tokenmanager.core.config import ManagerConfig
from tokenmanager.core.manager import TokenManager
from tokenmanager.storage.memory import MemoryStorageAdapter


async def main() -> int:
    """Main demo function"""
    print("Token Manager Demo Application")
    print("=" * 50)
    print()

    config = ManagerConfig.from_env()
    try:
        manager = TokenManager.new(MemoryStorageAdapter(), config)
        print("✓ Created token manager with in-memory storage")
        print(f"  - Hash Algorithm: {config.hash_algorithm}")
        print(f"  - Access Token TTL: {config.access_token_exp_time_sec}s")
        print(f"  - Exchange Code TTL: {config.exchange_code_exp_time_sec}s")
        print()
    except Exception as e:
        print(f"✗ Error creating token manager: {e}")
        return 1

    identifier = "demo-user|127.0.0.1|8080"
    redirect_uri = "https://client.example.com/callback"
    secret = "demo-client-secret"

    print("Step 1: Exchange Code Issuance")
    print("-" * 40)
    code = await manager.generate_exchange_code(
        identifier, redirect_uri, user_data={"user_id": "demo-user"}, secret=secret
    )
    print(f"✓ Exchange code issued: {code}")
    print()

    print("Step 2: Code Exchange")
    print("-" * 40)
    wrong = await manager.exchange(code, "https://attacker.example.com/callback", secret)
    print(f"✓ Exchange with a different redirect URI rejected: {wrong is None}")
    tokens = await manager.exchange(code, redirect_uri, secret)
    if tokens is None:
        print("✗ Exchange failed")
        return 1
    print(f"✓ Access token:  {tokens.access_token}")
    print(f"✓ Refresh token: {tokens.refresh_token}")
    replay = await manager.exchange(code, redirect_uri, secret)
    print(f"✓ Replayed exchange code rejected: {replay is None}")
    print()

    print("Step 3: Token Verification")
    print("-" * 40)
    valid, user_data = await manager.verify(tokens.access_token, secret)
    print(f"✓ Access token valid: {valid}")
    print(f"  - User Data: {user_data}")
    print()

    print("Step 4: Token Refresh")
    print("-" * 40)
    rotated = await manager.refresh(tokens.refresh_token, secret)
    if rotated is None:
        print("✗ Refresh failed")
        return 1
    print(f"✓ New access token: {rotated.access_token}")
    old_valid, _ = await manager.verify(tokens.access_token, secret)
    new_valid, _ = await manager.verify(rotated.access_token, secret)
    print(f"✓ Previous access token still valid: {old_valid}")
    print(f"✓ New access token valid: {new_valid}")
    print()

    print("Demo completed successfully!")
    return 0


def run() -> None:
    """Console script entry point."""
    logging.basicConfig(level=logging.WARNING)
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
