from typing import NamedTuple
from typing import final

DEFAULT_MAX_CALL_DEPTH = 64
DEFAULT_MAX_STEPS = 10_000


@final
class ExecutionLimits(NamedTuple):
    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH
    max_steps: int = DEFAULT_MAX_STEPS  # Per frame and turn.
