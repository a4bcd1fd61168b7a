from collections.abc import Callable
from typing import Annotated
from typing import Any
from typing import Final
from typing import Self
from typing import final

from pydantic import AfterValidator
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import model_validator

from convoscript.errors import UnknownCheckpointError
from convoscript.types.instructions import CallInstruction
from convoscript.types.instructions import Instruction
from convoscript.types.instructions import PromptInstruction


def default_init_vars(input: Any) -> Any:
    return {} if input is None else input


def is_not_empty[T](values: tuple[T, ...]) -> tuple[T, ...]:
    if not values:
        raise ValueError("A script needs at least one instruction")
    return values


@final
class Script(BaseModel):
    """
    A compiled dialogue program. Scripts are created once and shared read-only by every
    conversation executing them; all per-conversation state lives in frames.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    instructions: Annotated[tuple[Instruction, ...], AfterValidator(is_not_empty)]
    checkpoints: Annotated[dict[str, int], Field(default_factory=dict)]  # Label -> instruction index.
    init_vars: Callable[[Any], Any] = default_init_vars

    @model_validator(mode="after")
    def _validate_checkpoints(self) -> Self:
        num_instructions: Final = len(self.instructions)
        for label, index in self.checkpoints.items():
            if not 0 <= index < num_instructions:
                raise ValueError(f"Checkpoint '{label}' of script '{self.name}' points to invalid index {index}")

        for index, instruction in enumerate(self.instructions):
            match instruction:
                case PromptInstruction(label=label):
                    self._require_checkpoint_at(label, index)
                case CallInstruction(label=label, callee=callee, goto_label=goto_label):
                    self._require_checkpoint_at(label, index)
                    if goto_label is not None and goto_label not in callee.checkpoints:
                        raise ValueError(
                            f"Call at index {index} in script '{self.name}' jumps to unknown checkpoint "
                            + f"'{goto_label}' of script '{callee.name}'"
                        )
                case _:
                    pass
        return self

    def _require_checkpoint_at(self, label: str, index: int) -> None:
        if self.checkpoints.get(label) != index:
            raise ValueError(
                f"Label '{label}' of instruction {index} in script '{self.name}' "
                + "must be registered as a checkpoint at that index"
            )

    def checkpoint_index(self, label: str) -> int:
        index: Final = self.checkpoints.get(label)
        if index is None:
            raise UnknownCheckpointError(self.name, label)
        return index

    def callees(self) -> list["Script"]:
        """Return the scripts called directly by this script, in order of first appearance."""
        result: Final[list[Script]] = []
        for instruction in self.instructions:
            if isinstance(instruction, CallInstruction) and all(
                callee is not instruction.callee for callee in result
            ):
                result.append(instruction.callee)
        return result


CallInstruction.model_rebuild()
Script.model_rebuild()
