import logging
from typing import Any
from typing import Final
from typing import Optional
from typing import final

from convoscript.execute import execute
from convoscript.library import ScriptLibrary
from convoscript.serialization import deserialize_stack
from convoscript.serialization import serialize_stack
from convoscript.stores import BasicContinuationStore
from convoscript.types.capabilities import ServiceScope
from convoscript.types.execution_context import Channel
from convoscript.types.frame import Stack
from convoscript.types.frame import begin_stack
from convoscript.types.limits import ExecutionLimits
from convoscript.types.results import ExecuteResult
from convoscript.types.results import Finished
from convoscript.types.results import Suspended
from convoscript.types.script import Script

logger: Final = logging.getLogger(__name__)


@final
class ScriptRuntime:
    """
    Drives dialogue scripts per channel: starts them, feeds user input into suspended ones and
    keeps the suspended stacks in a continuation store between turns. Delivering at most one
    turn per channel at a time is up to the caller.
    """

    def __init__(
        self,
        library: ScriptLibrary,
        store: BasicContinuationStore,
        *,
        limits: Optional[ExecutionLimits] = None,
    ) -> None:
        self._library: Final = library
        self._store: Final = store
        self._limits: Final = limits

    async def start(
        self,
        scope: ServiceScope,
        channel: Channel,
        script: Script,
        params: Any = None,
    ) -> ExecuteResult:
        self._library.register(script)
        if self._store.load(channel.uid) is not None:
            logger.warning(f"Replacing the running dialogue of channel '{channel.uid}' with script '{script.name}'")
        logger.info(f"Starting script '{script.name}' in channel '{channel.uid}'")
        result: Final = await execute(scope, channel, begin_stack(script, params), False, limits=self._limits)
        self._persist(channel, result)
        return result

    async def resume(self, scope: ServiceScope, channel: Channel, input: Any) -> Optional[ExecuteResult]:
        """Continue the dialogue waiting in `channel`, or return `None` if no dialogue is waiting."""
        stack: Final = self.get_stack(channel)
        if stack is None:
            logger.info(f"No suspended dialogue to resume in channel '{channel.uid}'")
            return None
        result: Final = await execute(scope, channel, stack, True, input, limits=self._limits)
        self._persist(channel, result)
        return result

    def get_stack(self, channel: Channel) -> Optional[Stack]:
        frames: Final = self._store.load(channel.uid)
        if frames is None:
            return None
        return deserialize_stack(frames, self._library)

    def is_running(self, channel: Channel) -> bool:
        return self._store.load(channel.uid) is not None

    def exit(self, channel: Channel) -> bool:
        """Discard the suspended dialogue of `channel`. Returns whether there was one."""
        was_running: Final = self._store.delete(channel.uid)
        if was_running:
            logger.info(f"Exited the running dialogue of channel '{channel.uid}'")
        return was_running

    def _persist(self, channel: Channel, result: ExecuteResult) -> None:
        match result:
            case Suspended(stack=stack):
                self._store.save(channel.uid, serialize_stack(stack))
            case Finished():
                if self._store.delete(channel.uid):
                    logger.info(f"Dialogue of channel '{channel.uid}' finished")
