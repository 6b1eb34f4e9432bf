"""
Basic token manager usage example.

This example demonstrates wiring the manager to an existing key-value store
through two callbacks:
- Issuing an access/refresh pair
- Verifying the access token
- Refreshing the pair
"""

import asyncio

from tokenmanager import TokenManager, ManagerConfig


async def basic_example():
    """Demonstrate basic token manager usage"""
    print("Basic Token Manager Example")
    print("=" * 30)

    # 1. Any key-value store will do; a dict stands in for it here
    records = {}

    async def store(key, code1, code2, created_at, expires_in, user_data):
        records[key] = {
            "code1": code1,
            "code2": code2,
            "createdAt": created_at,
            "expiresIn": expires_in,
            "userData": user_data,
        }
        return True

    async def retrieve(key):
        return records.get(key)

    # 2. Create the manager with a shorter access token lifetime
    manager = TokenManager.from_callbacks(
        store, retrieve, ManagerConfig(access_token_exp_time_sec=900)
    )
    print("✓ Created token manager")

    # 3. Issue tokens bound to the caller's address
    tokens = await manager.generate_access_token(
        "user-1|203.0.113.7", user_data={"user_id": 1}, secret="203.0.113.7"
    )
    print(f"✓ Access token issued: {tokens.access_token}")

    # 4. Verify
    valid, user_data = await manager.verify(tokens.access_token, secret="203.0.113.7")
    print(f"✓ Token valid: {valid} (user data: {user_data})")

    # 5. A different address is rejected
    valid, _ = await manager.verify(tokens.access_token, secret="198.51.100.1")
    print(f"✓ Token valid from another address: {valid}")

    # 6. Refresh
    rotated = await manager.refresh(tokens.refresh_token, secret="203.0.113.7")
    print(f"✓ Refreshed access token: {rotated.access_token}")


if __name__ == "__main__":
    asyncio.run(basic_example())
