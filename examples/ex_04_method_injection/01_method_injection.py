"""Method injection: call methods on existing objects with dependencies filled in.

Leading ``Injected[T]`` parameters are resolved by the container; remaining
parameters are passed explicitly. ``@injectable()`` on a method injects every
leading annotated parameter instead.
"""

from __future__ import annotations

from inwire import Container, Injected, injectable


class Tool:
    def __init__(self) -> None:
        self.counter = 0

    def help(self) -> str:
        value = self.counter
        self.counter += 1
        return str(value)


class Clock:
    def now(self) -> str:
        return "12:00"


class ConsoleLogger:
    def __init__(self, tool: Tool) -> None:
        self.tool = tool

    @injectable()
    def test_method(self, second_tool: Tool) -> str:
        return self.tool.help() + "blubb" + second_tool.help()

    def log(self, clock: Injected[Clock], message: str, *, level: str = "INFO") -> str:
        return f"[{clock.now()}] {level} {message}"


def main() -> None:
    container = Container()
    container.register_transient(ConsoleLogger)
    container.register_singleton_factory(Tool, Tool)
    container.register_transient(Clock)

    logger = container.resolve(ConsoleLogger)

    print(container.invoke(logger, "test_method"))  # => 0blubb1
    print(container.invoke(logger, "log", "started"))  # => [12:00] INFO started
    print(container.invoke(logger, "log", "careful", level="WARN"))  # => [12:00] WARN careful


if __name__ == "__main__":
    main()
