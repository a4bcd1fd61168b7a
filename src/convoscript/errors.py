from typing import Any
from typing import Final
from typing import final


class ScriptError(RuntimeError): ...


class ScriptStructureError(ScriptError):
    """
    The compiled script and the stack that is executed against it do not fit together.
    These errors are never retryable: either the script is broken or it has been redeployed
    with a different checkpoint layout since the stack was persisted.
    """


@final
class UnknownInstructionError(ScriptStructureError):
    def __init__(self, script_name: str, index: int, instruction: Any) -> None:
        super().__init__(
            f"Unknown instruction '{type(instruction).__name__}' at index {index} of script '{script_name}'."
        )
        self.script_name: Final = script_name
        self.index: Final = index


@final
class UnknownCheckpointError(ScriptStructureError):
    def __init__(self, script_name: str, label: str) -> None:
        super().__init__(f"Checkpoint '{label}' not found in script '{script_name}'.")
        self.script_name: Final = script_name
        self.label: Final = label


@final
class CheckpointMismatchError(ScriptStructureError):
    def __init__(self, script_name: str, label: str, expected_kind: str, actual_kind: str) -> None:
        super().__init__(
            f"Checkpoint '{label}' of script '{script_name}' is a '{actual_kind}' instruction, "
            + f"expected '{expected_kind}'. The checkpoints of '{script_name}' might have been changed."
        )
        self.script_name: Final = script_name
        self.label: Final = label


@final
class InvalidStackError(ScriptStructureError):
    def __init__(self, message: str) -> None:
        super().__init__(message)


@final
class CursorOutOfRangeError(ScriptStructureError):
    def __init__(self, script_name: str, cursor: int) -> None:
        super().__init__(f"Jumped to index {cursor} before the start of script '{script_name}'.")
        self.script_name: Final = script_name
        self.cursor: Final = cursor


@final
class VarsContractError(ScriptStructureError):
    def __init__(self, script_name: str, source: str, problem: str) -> None:
        super().__init__(f"{source} of script '{script_name}' {problem}.")
        self.script_name: Final = script_name
        self.source: Final = source


class ExecutionLimitError(ScriptError): ...


@final
class CallDepthExceededError(ExecutionLimitError):
    def __init__(self, script_name: str, max_call_depth: int) -> None:
        super().__init__(f"Calling script '{script_name}' exceeds the maximum call depth of {max_call_depth}.")


@final
class StepLimitExceededError(ExecutionLimitError):
    def __init__(self, script_name: str, max_steps: int) -> None:
        super().__init__(f"Script '{script_name}' executed more than {max_steps} instructions without stopping.")


@final
class UnknownScriptError(ScriptError):
    def __init__(self, script_name: str) -> None:
        super().__init__(f"Script '{script_name}' is not registered.")
        self.script_name: Final = script_name


@final
class DuplicateScriptError(ScriptError):
    def __init__(self, script_name: str) -> None:
        super().__init__(f"A different script named '{script_name}' is already registered.")


@final
class UnknownServiceError(ScriptError):
    def __init__(self, key: Any) -> None:
        super().__init__(f"Service '{key}' is not available in this scope.")
        self.key: Final = key
