from collections.abc import Callable
from typing import Any
from typing import Final
from typing import NamedTuple
from typing import final

from convoscript.types.capabilities import MappingServiceScope
from convoscript.types.execution_context import ExecutionContext


@final
class MockChannel(NamedTuple):
    platform: str
    uid: str


CHANNEL: Final = MockChannel(platform="test", uid="_MY_CHANNEL_")
FOO_SERVICE: Final = "FOO_SERVICE"


def make_scope() -> MappingServiceScope:
    return MappingServiceScope({FOO_SERVICE: "foo service instance"})


def context(vars: dict[str, Any]) -> ExecutionContext:
    return ExecutionContext(platform="test", channel=CHANNEL, vars=vars)


@final
class Recorder:
    """Callable wrapper that remembers the arguments of every call."""

    def __init__(self, function: Callable[..., Any]) -> None:
        self._function: Final = function
        self.calls: Final[list[tuple[Any, ...]]] = []

    def __call__(self, *args: Any) -> Any:
        self.calls.append(args)
        return self._function(*args)

    @property
    def call_count(self) -> int:
        return len(self.calls)


def returning(value: Any) -> Recorder:
    return Recorder(lambda *_: value)


def merging_input() -> Recorder:
    return Recorder(lambda ctx, input: {**ctx.vars, **input})
