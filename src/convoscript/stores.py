from abc import ABC
from abc import abstractmethod
from typing import Final
from typing import Optional
from typing import final
from typing import override

from convoscript.serialization import SerializedFrame


class BasicContinuationStore(ABC):
    """Keeps at most one suspended stack per channel between conversation turns."""

    @abstractmethod
    def load(self, channel_uid: str) -> Optional[list[SerializedFrame]]: ...

    @abstractmethod
    def save(self, channel_uid: str, frames: list[SerializedFrame]) -> None: ...

    @abstractmethod
    def delete(self, channel_uid: str) -> bool: ...


def _copy_frames(frames: list[SerializedFrame]) -> list[SerializedFrame]:
    # Stored frames must not share nested vars with the stacks handed out to callers.
    return [frame.model_copy(deep=True) for frame in frames]


@final
class InMemoryContinuationStore(BasicContinuationStore):
    def __init__(self) -> None:
        self._data: Final[dict[str, list[SerializedFrame]]] = {}

    @override
    def load(self, channel_uid: str) -> Optional[list[SerializedFrame]]:
        frames: Final = self._data.get(channel_uid)
        return None if frames is None else _copy_frames(frames)

    @override
    def save(self, channel_uid: str, frames: list[SerializedFrame]) -> None:
        self._data[channel_uid] = _copy_frames(frames)

    @override
    def delete(self, channel_uid: str) -> bool:
        return self._data.pop(channel_uid, None) is not None
