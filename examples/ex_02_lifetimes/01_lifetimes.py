"""Lifetimes: transient, singleton, instance, factory and singleton factory.

See how object identity changes across repeated resolves for every
registration kind.
"""

from __future__ import annotations

import itertools

from inwire import Container


class TransientService:
    pass


class SingletonService:
    pass


class Settings:
    def __init__(self, env: str) -> None:
        self.env = env


class Ticket:
    def __init__(self, number: int) -> None:
        self.number = number


class Connection:
    pass


def main() -> None:
    container = Container()

    container.register_transient(TransientService)
    transient_first = container.resolve(TransientService)
    transient_second = container.resolve(TransientService)
    print(f"transient_new={transient_first is not transient_second}")  # => transient_new=True

    container.register_singleton(SingletonService)
    singleton_first = container.resolve(SingletonService)
    singleton_second = container.resolve(SingletonService)
    print(f"singleton_same={singleton_first is singleton_second}")  # => singleton_same=True

    settings = Settings("prod")
    container.register_instance(Settings, settings)
    print(f"instance_same={container.resolve(Settings) is settings}")  # => instance_same=True

    numbers = itertools.count(1)
    container.register_factory(Ticket, lambda: Ticket(next(numbers)))
    tickets = [container.resolve(Ticket).number for _ in range(3)]
    print(f"factory_numbers={tickets}")  # => factory_numbers=[1, 2, 3]

    connections: list[Connection] = []

    def connect() -> Connection:
        connection = Connection()
        connections.append(connection)
        return connection

    container.register_singleton_factory(Connection, connect)
    container.resolve(Connection)
    container.resolve(Connection)
    print(f"singleton_factory_calls={len(connections)}")  # => singleton_factory_calls=1


if __name__ == "__main__":
    main()
