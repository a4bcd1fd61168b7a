from enum import StrEnum
from typing import TYPE_CHECKING
from typing import Annotated
from typing import Final
from typing import Literal
from typing import Optional
from typing import final
from typing import get_args

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Discriminator

from convoscript.types.capabilities import Capability

if TYPE_CHECKING:
    from convoscript.types.script import Script


@final
class InstructionKind(StrEnum):
    CONTENT = "content"
    SET_VARS = "set_vars"
    JUMP = "jump"
    JUMP_IF = "jump_if"
    PROMPT = "prompt"
    CALL = "call"
    RETURN = "return"
    EFFECT = "effect"


@final
class ContentInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[InstructionKind.CONTENT] = InstructionKind.CONTENT
    get_content: Capability  # (context) -> node


@final
class SetVarsInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[InstructionKind.SET_VARS] = InstructionKind.SET_VARS
    set_vars: Capability  # (context) -> vars


@final
class JumpInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[InstructionKind.JUMP] = InstructionKind.JUMP
    offset: int


@final
class JumpIfInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[InstructionKind.JUMP_IF] = InstructionKind.JUMP_IF
    condition: Capability  # (context) -> bool
    negate: bool = False
    offset: int


@final
class PromptInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[InstructionKind.PROMPT] = InstructionKind.PROMPT
    label: str
    set_vars: Optional[Capability] = None  # (context, input) -> vars
    yield_value: Optional[Capability] = None  # (context) -> value


@final
class CallInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[InstructionKind.CALL] = InstructionKind.CALL
    label: str
    callee: "Script"
    with_params: Optional[Capability] = None  # (context) -> params
    set_vars: Optional[Capability] = None  # (context, returned_value) -> vars
    goto_label: Optional[str] = None


@final
class ReturnInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[InstructionKind.RETURN] = InstructionKind.RETURN
    get_value: Optional[Capability] = None  # (context) -> value


@final
class EffectInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[InstructionKind.EFFECT] = InstructionKind.EFFECT
    label: Optional[str] = None
    do_effect: Optional[Capability] = None  # (context) -> result
    set_vars: Capability  # (context, result) -> vars


type Instruction = Annotated[
    ContentInstruction
    | SetVarsInstruction
    | JumpInstruction
    | JumpIfInstruction
    | PromptInstruction
    | CallInstruction
    | ReturnInstruction
    | EffectInstruction,
    Discriminator("kind"),
]


def _collect_instruction_kinds() -> set[InstructionKind]:
    union: Final = get_args(Instruction.__value__)[0]
    return {instruction_type.model_fields["kind"].default for instruction_type in get_args(union)}


# Adding an instruction kind without a model (or vice versa) must fail at import time.
if _collect_instruction_kinds() != set(InstructionKind):
    raise AssertionError("Every instruction kind needs exactly one instruction model.")
