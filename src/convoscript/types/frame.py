from collections.abc import Mapping
from typing import Annotated
from typing import Any
from typing import Optional
from typing import final

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from convoscript.errors import VarsContractError
from convoscript.types.script import Script


@final
class Frame(BaseModel):
    """One activation of a script. `stop_at` is `None` only for a frame that has not run yet."""

    model_config = ConfigDict(frozen=True)

    script: Script
    vars: Annotated[dict[str, Any], Field(default_factory=dict)]
    stop_at: Optional[str] = None


# Outermost frame first.
type Stack = list[Frame]


def expect_vars(script: Script, source: str, value: Any) -> dict[str, Any]:
    """
    Check that a vars-producing callback returned a full replacement of the frame variables.
    :param script: The script the callback belongs to.
    :param source: Human-readable origin of the value, used in the error message.
    :param value: Whatever the callback returned.
    :return: The vars as a plain `dict`.
    """
    if not isinstance(value, Mapping):
        raise VarsContractError(
            script.name,
            source,
            f"produced vars of type '{type(value).__name__}', expected a full replacement mapping",
        )
    for key in value:  # type: ignore[reportUnknownVariableType]
        if not isinstance(key, str):
            raise VarsContractError(
                script.name,
                source,
                f"produced a vars key of type '{type(key).__name__}', expected 'str'",  # type: ignore[reportUnknownArgumentType]
            )
    return value if isinstance(value, dict) else dict(value)  # type: ignore[reportUnknownArgumentType]


def begin_stack(script: Script, input: Any = None) -> Stack:
    return [Frame(script=script, vars=expect_vars(script, "init_vars", script.init_vars(input)))]
