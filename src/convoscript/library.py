import logging
from collections.abc import Iterable
from typing import Final
from typing import Optional
from typing import final

from convoscript.errors import DuplicateScriptError
from convoscript.errors import UnknownScriptError
from convoscript.types.script import Script

logger: Final = logging.getLogger(__name__)


@final
class ScriptLibrary:
    """Resolves the script names stored in persisted stacks back to script objects."""

    def __init__(self, scripts: Optional[Iterable[Script]] = None) -> None:
        self._scripts: Final[dict[str, Script]] = {}
        for script in scripts or []:
            self.register(script)

    def register(self, script: Script) -> None:
        """Register `script` and, transitively, every script it calls."""
        pending: Final = [script]
        while pending:
            current = pending.pop()
            registered = self._scripts.get(current.name)
            if registered is current:
                continue
            if registered is not None:
                raise DuplicateScriptError(current.name)
            self._scripts[current.name] = current
            logger.debug(f"Registered script '{current.name}'")
            pending.extend(current.callees())

    def get(self, name: str) -> Script:
        script: Final = self._scripts.get(name)
        if script is None:
            raise UnknownScriptError(name)
        return script

    def __contains__(self, name: object) -> bool:
        return name in self._scripts

    def __len__(self) -> int:
        return len(self._scripts)
