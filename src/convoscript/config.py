import logging
import os
from typing import Final
from typing import Optional
from typing import final

from dotenv import load_dotenv

from convoscript.types.limits import DEFAULT_MAX_CALL_DEPTH
from convoscript.types.limits import DEFAULT_MAX_STEPS
from convoscript.types.limits import ExecutionLimits

MAX_CALL_DEPTH_ENV_VARIABLE = "CONVOSCRIPT_MAX_CALL_DEPTH"
MAX_STEPS_ENV_VARIABLE = "CONVOSCRIPT_MAX_STEPS"
LOG_LEVEL_ENV_VARIABLE = "CONVOSCRIPT_LOG_LEVEL"


def get_environment_variable_or_default(
    key: str,
    default: str | None,
) -> str | None:
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return value.strip()


def get_positive_int_environment_variable(key: str, default: int) -> int:
    value: Final = get_environment_variable_or_default(key, None)
    if value is None:
        return default
    try:
        parsed: Final = int(value)
    except ValueError as e:
        raise ValueError(f"Environment variable '{key}' must be an integer, got '{value}'.") from e
    if parsed <= 0:
        raise ValueError(f"Environment variable '{key}' must be positive, got {parsed}.")
    return parsed


@final
class Config:
    def __init__(self) -> None:
        self._max_call_depth: Optional[int] = None
        self._max_steps: Optional[int] = None
        self._log_level: Optional[str] = None
        self.reload()

    def reload(self) -> None:
        load_dotenv()
        self._max_call_depth = get_positive_int_environment_variable(MAX_CALL_DEPTH_ENV_VARIABLE, DEFAULT_MAX_CALL_DEPTH)
        self._max_steps = get_positive_int_environment_variable(MAX_STEPS_ENV_VARIABLE, DEFAULT_MAX_STEPS)
        log_level: Final = get_environment_variable_or_default(LOG_LEVEL_ENV_VARIABLE, "WARNING")
        if log_level is None or log_level.upper() not in logging.getLevelNamesMapping():
            raise ValueError(f"Environment variable '{LOG_LEVEL_ENV_VARIABLE}' is not a valid log level.")
        self._log_level = log_level.upper()

    @property
    def max_call_depth(self) -> int:
        if self._max_call_depth is None:
            raise AssertionError("Maximum call depth is not set. This should not happen.")
        return self._max_call_depth

    @property
    def max_steps(self) -> int:
        if self._max_steps is None:
            raise AssertionError("Maximum number of steps is not set. This should not happen.")
        return self._max_steps

    @property
    def log_level(self) -> str:
        if self._log_level is None:
            raise AssertionError("Log level is not set. This should not happen.")
        return self._log_level

    @property
    def execution_limits(self) -> ExecutionLimits:
        return ExecutionLimits(max_call_depth=self.max_call_depth, max_steps=self.max_steps)


def configure_logging(config: Config) -> None:
    logging.basicConfig(level=config.log_level)
