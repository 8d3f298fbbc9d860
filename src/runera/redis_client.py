"""Redis connection pool and key naming.

Redis holds only short-lived state, always written with an explicit expiry:
one-time wallet login challenges and fixed rate-limit windows. Nothing in it
is needed to recompute progression or attestation state.
"""

import redis.asyncio as redis

_pool: redis.Redis | None = None


def challenge_key(wallet_address: str) -> str:
    """Outstanding login challenge for a wallet (unrelated to the attestation sequence)."""
    return f"auth:challenge:{wallet_address.lower()}"


def rate_limit_key(client_ip: str, window: int) -> str:
    return f"ratelimit:{client_ip}:{window}"


async def init_redis(url: str) -> None:
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
        health_check_interval=30,
    )


def set_redis(client: redis.Redis | None) -> None:
    """Install an already-built client (e.g. an in-memory fake), or clear it with None."""
    global _pool  # noqa: PLW0603
    _pool = client


async def close_redis() -> None:
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """Shared client (FastAPI dependency). Raises RuntimeError before init_redis()."""
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool
