"""Async producers: one asynchronous factory turns the whole resolution async.

A graph of synchronous producers resolves to plain values. As soon as a
producer returns an awaitable, ``resolve`` returns an awaitable too, and
concurrent resolutions of an async singleton share one production.
"""

from __future__ import annotations

import asyncio
import inspect

from inwire import Container


class Config:
    def __init__(self) -> None:
        self.dsn = "postgresql://localhost/app"


class Pool:
    def __init__(self, dsn: str) -> None:
        self.dsn = dsn


class Repository:
    def __init__(self, config: Config, pool: Pool) -> None:
        self.config = config
        self.pool = pool


async def main() -> None:
    container = Container()
    container.register_singleton(Config)
    container.register_transient(Repository)

    print(f"sync_is_awaitable={inspect.isawaitable(container.resolve(Config))}")  # => sync_is_awaitable=False

    pools_created: list[Pool] = []

    async def create_pool() -> Pool:
        await asyncio.sleep(0.01)
        pool = Pool(container.resolve(Config).dsn)
        pools_created.append(pool)
        return pool

    container.register_singleton_factory(Pool, create_pool)

    pending = container.resolve(Repository)
    print(f"async_is_awaitable={inspect.isawaitable(pending)}")  # => async_is_awaitable=True

    first, second, third = await asyncio.gather(
        pending,
        container.resolve(Repository),
        container.aresolve(Repository),
    )
    print(f"pool_shared={first.pool is second.pool is third.pool}")  # => pool_shared=True
    print(f"pools_created={len(pools_created)}")  # => pools_created=1

    settled = container.resolve(Pool)
    print(f"settled_is_awaitable={inspect.isawaitable(settled)}")  # => settled_is_awaitable=False
    print(f"dsn={settled.dsn}")  # => dsn=postgresql://localhost/app


if __name__ == "__main__":
    asyncio.run(main())
