import logging
from typing import Any
from typing import Final
from typing import NamedTuple
from typing import final

from convoscript.errors import CallDepthExceededError
from convoscript.errors import CursorOutOfRangeError
from convoscript.errors import StepLimitExceededError
from convoscript.errors import UnknownInstructionError
from convoscript.types.capabilities import ServiceScope
from convoscript.types.execution_context import Channel
from convoscript.types.execution_context import ExecutionContext
from convoscript.types.frame import Frame
from convoscript.types.frame import expect_vars
from convoscript.types.instructions import CallInstruction
from convoscript.types.instructions import ContentInstruction
from convoscript.types.instructions import EffectInstruction
from convoscript.types.instructions import JumpIfInstruction
from convoscript.types.instructions import JumpInstruction
from convoscript.types.instructions import PromptInstruction
from convoscript.types.instructions import ReturnInstruction
from convoscript.types.instructions import SetVarsInstruction
from convoscript.types.limits import ExecutionLimits
from convoscript.types.results import FrameFinished
from convoscript.types.results import FrameResult
from convoscript.types.results import FrameSuspended
from convoscript.types.script import Script

logger: Final = logging.getLogger(__name__)


@final
class RunEnvironment(NamedTuple):
    """Everything a turn needs besides the frames themselves."""

    scope: ServiceScope
    channel: Channel
    limits: ExecutionLimits

    def context(self, vars: dict[str, Any]) -> ExecutionContext:
        return ExecutionContext(platform=self.channel.platform, channel=self.channel, vars=vars)


async def apply_prompt_input(
    environment: RunEnvironment,
    script: Script,
    index: int,
    prompt: PromptInstruction,
    vars: dict[str, Any],
    input: Any,
) -> dict[str, Any]:
    if prompt.set_vars is None:
        return vars
    updated_vars: Final = await prompt.set_vars.invoke(environment.scope, environment.context(vars), input)
    return expect_vars(script, f"Prompt '{prompt.label}' at index {index}", updated_vars)


async def apply_call_return(
    environment: RunEnvironment,
    script: Script,
    index: int,
    call: CallInstruction,
    vars: dict[str, Any],
    returned_value: Any,
) -> dict[str, Any]:
    if call.set_vars is None:
        return vars
    updated_vars: Final = await call.set_vars.invoke(environment.scope, environment.context(vars), returned_value)
    return expect_vars(script, f"Call '{call.label}' at index {index}", updated_vars)


async def call_script(
    environment: RunEnvironment,
    call: CallInstruction,
    context: ExecutionContext,
    *,
    depth: int,
) -> FrameResult:
    """Run the callee of `call` until it returns or suspends. `depth` is the depth of the calling frame."""
    callee: Final = call.callee
    if depth + 1 > environment.limits.max_call_depth:
        raise CallDepthExceededError(callee.name, environment.limits.max_call_depth)

    params: Final = {} if call.with_params is None else await call.with_params.invoke(environment.scope, context)
    start_index: Final = 0 if call.goto_label is None else callee.checkpoint_index(call.goto_label)
    callee_vars: Final = expect_vars(callee, "init_vars", callee.init_vars(params))
    logger.debug(f"Calling script '{callee.name}' from '{call.label}' (depth {depth + 1})")
    return await run_from(environment, callee, start_index, callee_vars, depth=depth + 1)


async def run_from(
    environment: RunEnvironment,
    script: Script,
    start_index: int,
    vars: dict[str, Any],
    *,
    depth: int = 1,
) -> FrameResult:
    """
    Execute the instructions of `script` beginning at `start_index` until the script returns,
    falls off its end or reaches a suspension point (a prompt, or a call whose callee suspended).
    :param environment: Scope, channel and limits of the current turn.
    :param script: The script the frame belongs to.
    :param start_index: Index of the first instruction to execute.
    :param vars: The variables of the frame when execution starts.
    :param depth: One-based position of the frame in the stack.
    :return: The finished or suspended outcome of this frame, with the contents it emitted.
    """
    instructions: Final = script.instructions
    max_steps: Final = environment.limits.max_steps
    contents: Final[list[Any]] = []
    cursor = start_index
    num_steps = 0

    while cursor < len(instructions):
        if cursor < 0:
            raise CursorOutOfRangeError(script.name, cursor)
        num_steps += 1
        if num_steps > max_steps:
            raise StepLimitExceededError(script.name, max_steps)

        instruction = instructions[cursor]
        context = environment.context(vars)
        match instruction:
            case ContentInstruction(get_content=get_content):
                contents.append(await get_content.invoke(environment.scope, context))
                cursor += 1
            case SetVarsInstruction(set_vars=set_vars):
                vars = expect_vars(script, f"Instruction {cursor}", await set_vars.invoke(environment.scope, context))
                cursor += 1
            case JumpInstruction(offset=offset):
                cursor += offset
            case JumpIfInstruction(condition=condition, negate=negate, offset=offset):
                is_matched = bool(await condition.invoke(environment.scope, context))
                cursor += offset if is_matched != negate else 1
            case PromptInstruction(label=label, yield_value=yield_value):
                yielded_value = None if yield_value is None else await yield_value.invoke(environment.scope, context)
                logger.debug(f"Script '{script.name}' prompts at '{label}'")
                return FrameSuspended(
                    stop_at=label,
                    vars=vars,
                    contents=contents,
                    descendant_stack=[],
                    yielded_value=yielded_value,
                )
            case CallInstruction():
                call_result = await call_script(environment, instruction, context, depth=depth)
                contents.extend(call_result.contents)
                match call_result:
                    case FrameFinished(returned_value=returned_value):
                        vars = await apply_call_return(environment, script, cursor, instruction, vars, returned_value)
                        cursor += 1
                    case FrameSuspended():
                        callee_frame = Frame(
                            script=instruction.callee,
                            vars=call_result.vars,
                            stop_at=call_result.stop_at,
                        )
                        return FrameSuspended(
                            stop_at=instruction.label,
                            vars=vars,
                            contents=contents,
                            descendant_stack=[callee_frame, *call_result.descendant_stack],
                            yielded_value=call_result.yielded_value,
                        )
            case ReturnInstruction(get_value=get_value):
                returned_value = None if get_value is None else await get_value.invoke(environment.scope, context)
                return FrameFinished(returned_value=returned_value, contents=contents)
            case EffectInstruction(do_effect=do_effect, set_vars=set_vars):
                result = None if do_effect is None else await do_effect.invoke(environment.scope, context)
                vars = expect_vars(
                    script, f"Instruction {cursor}", await set_vars.invoke(environment.scope, context, result)
                )
                cursor += 1
            case _:
                raise UnknownInstructionError(script.name, cursor, instruction)

    return FrameFinished(returned_value=None, contents=contents)
