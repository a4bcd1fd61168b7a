from collections.abc import Sequence
from typing import Any
from typing import Final
from typing import final

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import TypeAdapter
from pydantic.alias_generators import to_camel

from convoscript.errors import InvalidStackError
from convoscript.library import ScriptLibrary
from convoscript.types.frame import Frame
from convoscript.types.frame import Stack


@final
class SerializedFrame(BaseModel):
    """Plain-data form of a suspended frame, dumped as `{"scriptName", "vars", "stopAt"}`."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    script_name: str
    vars: dict[str, Any]
    stop_at: str


_serialized_stack_adapter: Final = TypeAdapter(list[SerializedFrame])


def serialize_frame(frame: Frame) -> SerializedFrame:
    if frame.stop_at is None:
        raise InvalidStackError(f"Frame of script '{frame.script.name}' is not stopped at any checkpoint.")
    return SerializedFrame(script_name=frame.script.name, vars=frame.vars, stop_at=frame.stop_at)


def serialize_stack(stack: Sequence[Frame]) -> list[SerializedFrame]:
    return [serialize_frame(frame) for frame in stack]


def deserialize_stack(frames: Sequence[SerializedFrame], library: ScriptLibrary) -> Stack:
    return [
        Frame(script=library.get(frame.script_name), vars=frame.vars, stop_at=frame.stop_at)
        for frame in frames
    ]


def dump_stack(stack: Sequence[Frame]) -> list[dict[str, Any]]:
    return _serialized_stack_adapter.dump_python(serialize_stack(stack), by_alias=True, mode="json")


def load_stack(data: Any, library: ScriptLibrary) -> Stack:
    return deserialize_stack(_serialized_stack_adapter.validate_python(data), library)


def dump_stack_json(stack: Sequence[Frame]) -> str:
    return _serialized_stack_adapter.dump_json(serialize_stack(stack), by_alias=True).decode()


def load_stack_json(json_data: str | bytes, library: ScriptLibrary) -> Stack:
    return deserialize_stack(_serialized_stack_adapter.validate_json(json_data), library)
