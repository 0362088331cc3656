"""Quickstart: constructor injection from type hints.

Register each class with a lifetime, resolve only the top-level service, and
see how inwire builds the full dependency chain for you.
"""

from __future__ import annotations

from inwire import Container


class Database:
    def __init__(self) -> None:
        self.host = "localhost"


class UserRepository:
    def __init__(self, database: Database) -> None:
        self.database = database


class UserService:
    def __init__(self, repository: UserRepository) -> None:
        self.repository = repository


def main() -> None:
    container = Container()
    container.register_singleton(Database)
    container.register_transient(UserRepository)
    container.register_transient(UserService)

    service = container.resolve(UserService)

    print(f"db_host={service.repository.database.host}")  # => db_host=localhost

    chain = (
        f"{type(service).__name__}"
        f">{type(service.repository).__name__}"
        f">{type(service.repository.database).__name__}"
    )
    print(f"chain={chain}")  # => chain=UserService>UserRepository>Database

    print(f"registered={UserService in container}")  # => registered=True


if __name__ == "__main__":
    main()
