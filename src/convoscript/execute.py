import logging
from collections.abc import Sequence
from typing import Any
from typing import Final
from typing import Optional

from convoscript.errors import CheckpointMismatchError
from convoscript.errors import InvalidStackError
from convoscript.interpreter import RunEnvironment
from convoscript.interpreter import apply_call_return
from convoscript.interpreter import apply_prompt_input
from convoscript.interpreter import run_from
from convoscript.types.capabilities import ServiceScope
from convoscript.types.execution_context import Channel
from convoscript.types.frame import Frame
from convoscript.types.instructions import CallInstruction
from convoscript.types.instructions import InstructionKind
from convoscript.types.instructions import PromptInstruction
from convoscript.types.limits import ExecutionLimits
from convoscript.types.results import ExecuteResult
from convoscript.types.results import Finished
from convoscript.types.results import FrameFinished
from convoscript.types.results import FrameSuspended
from convoscript.types.results import Suspended

logger: Final = logging.getLogger(__name__)


def _validate_stack(stack: Sequence[Frame], is_resuming: bool) -> None:
    if not stack:
        raise InvalidStackError("Cannot execute an empty stack.")
    if not is_resuming:
        if len(stack) != 1 or stack[0].stop_at is not None:
            raise InvalidStackError("A fresh execution needs exactly one frame that has not been started yet.")
        return
    for depth, frame in enumerate(stack):
        if frame.stop_at is None:
            raise InvalidStackError(
                f"Frame {depth} of script '{frame.script.name}' is not stopped at any checkpoint and cannot be resumed."
            )


async def execute(
    scope: ServiceScope,
    channel: Channel,
    stack: Sequence[Frame],
    is_resuming: bool,
    input: Any = None,
    *,
    limits: Optional[ExecutionLimits] = None,
) -> ExecuteResult:
    """
    Run a stack of frames until the outermost frame finishes or some frame suspends.

    A fresh stack (`is_resuming=False`) holds a single frame that starts at its first instruction.
    When resuming, the innermost frame continues after the prompt it stopped at (with `input` applied
    through the prompt's `set_vars`), and every finished frame hands its returned value to the call its
    parent stopped at. The given stack is never modified; a suspension returns a new stack to persist.
    """
    _validate_stack(stack, is_resuming)
    environment: Final = RunEnvironment(scope=scope, channel=channel, limits=limits or ExecutionLimits())
    innermost_depth: Final = len(stack) - 1
    contents: Final[list[Any]] = []
    current_returned_value: Any = None

    for depth in range(innermost_depth, -1, -1):
        frame = stack[depth]
        script = frame.script
        vars = frame.vars
        index = 0

        if frame.stop_at is not None:
            index = script.checkpoint_index(frame.stop_at)
            instruction = script.instructions[index]
            if depth == innermost_depth:
                if not isinstance(instruction, PromptInstruction):
                    raise CheckpointMismatchError(script.name, frame.stop_at, InstructionKind.PROMPT, instruction.kind)
                vars = await apply_prompt_input(environment, script, index, instruction, vars, input)
                logger.debug(f"Resuming script '{script.name}' after prompt '{frame.stop_at}'")
            else:
                if not isinstance(instruction, CallInstruction):
                    raise CheckpointMismatchError(script.name, frame.stop_at, InstructionKind.CALL, instruction.kind)
                vars = await apply_call_return(environment, script, index, instruction, vars, current_returned_value)
                logger.debug(f"Returning to script '{script.name}' after call '{frame.stop_at}'")
            index += 1

        result = await run_from(environment, script, index, vars, depth=depth + 1)
        contents.extend(result.contents)

        match result:
            case FrameFinished(returned_value=returned_value):
                current_returned_value = returned_value
            case FrameSuspended():
                suspended_frame = Frame(script=script, vars=result.vars, stop_at=result.stop_at)
                new_stack = [*stack[:depth], suspended_frame, *result.descendant_stack]
                logger.debug(f"Suspended with {len(new_stack)} frame(s), innermost at '{new_stack[-1].stop_at}'")
                return Suspended(stack=new_stack, contents=contents, yielded_value=result.yielded_value)

    return Finished(returned_value=current_returned_value, contents=contents)
