from typing import Any
from typing import NamedTuple
from typing import Optional
from typing import final

from convoscript.types.frame import Frame
from convoscript.types.frame import Stack


@final
class FrameFinished(NamedTuple):
    returned_value: Any
    contents: list[Any]


@final
class FrameSuspended(NamedTuple):
    stop_at: str
    vars: dict[str, Any]
    contents: list[Any]
    descendant_stack: list[Frame]
    yielded_value: Optional[Any] = None


type FrameResult = FrameFinished | FrameSuspended


@final
class Finished(NamedTuple):
    returned_value: Any
    contents: list[Any]


@final
class Suspended(NamedTuple):
    stack: Stack
    contents: list[Any]
    yielded_value: Optional[Any] = None


type ExecuteResult = Finished | Suspended
