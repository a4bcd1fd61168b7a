from typing import Any
from typing import NamedTuple
from typing import Protocol
from typing import final
from typing import runtime_checkable


@runtime_checkable
class Channel(Protocol):
    """The conversation a script runs in. The engine only reads `platform`; `uid` keys persisted stacks."""

    @property
    def platform(self) -> str: ...

    @property
    def uid(self) -> str: ...


@final
class ExecutionContext(NamedTuple):
    platform: str
    channel: Channel
    vars: dict[str, Any]
