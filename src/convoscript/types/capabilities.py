import inspect
from abc import ABC
from abc import abstractmethod
from collections.abc import Callable
from collections.abc import Mapping
from typing import Annotated
from typing import Any
from typing import Final
from typing import Protocol
from typing import final
from typing import override
from typing import runtime_checkable

from pydantic import BaseModel
from pydantic import BeforeValidator
from pydantic import ConfigDict

from convoscript.errors import UnknownServiceError


@runtime_checkable
class ServiceScope(Protocol):
    """Request-scoped service locator that turns a `ServiceContainer` into a plain callable."""

    def inject_container(self, container: "ServiceContainer") -> Callable[..., Any]: ...


class BaseCapability(BaseModel, ABC):
    @abstractmethod
    def resolve(self, scope: ServiceScope) -> Callable[..., Any]: ...

    @final
    async def invoke(self, scope: ServiceScope, *args: Any) -> Any:
        result: Final = self.resolve(scope)(*args)
        if inspect.isawaitable(result):
            return await result
        return result


@final
class PlainCallable(BaseCapability):
    model_config = ConfigDict(frozen=True)

    function: Callable[..., Any]

    @override
    def resolve(self, scope: ServiceScope) -> Callable[..., Any]:
        return self.function


@final
class ServiceContainer(BaseCapability):
    """A callback factory that needs services from the current scope before it can be called."""

    model_config = ConfigDict(frozen=True)

    factory: Callable[..., Callable[..., Any]]
    deps: tuple[Any, ...] = ()

    @override
    def resolve(self, scope: ServiceScope) -> Callable[..., Any]:
        return scope.inject_container(self)


def service_container(*deps: Any) -> Callable[[Callable[..., Callable[..., Any]]], ServiceContainer]:
    """
    Decorator turning a factory into a `ServiceContainer`. The factory receives the services
    registered under `deps` (in that order) and returns the actual callback.
    """

    def decorator(factory: Callable[..., Callable[..., Any]]) -> ServiceContainer:
        return ServiceContainer(factory=factory, deps=deps)

    return decorator


def as_capability(value: Any) -> Any:
    match value:
        case PlainCallable() | ServiceContainer():
            return value
        case _ if callable(value):
            return PlainCallable(function=value)
        case _:
            raise ValueError(f"Expected a callable or a service container, got '{type(value).__name__}'")


type Capability = Annotated[PlainCallable | ServiceContainer, BeforeValidator(as_capability)]


@final
class MappingServiceScope:
    """Minimal `ServiceScope` that looks every dependency up in a fixed mapping."""

    def __init__(self, services: Mapping[Any, Any]) -> None:
        self._services: Final = dict(services)

    def inject_container(self, container: ServiceContainer) -> Callable[..., Any]:
        resolved: Final[list[Any]] = []
        for key in container.deps:
            if key not in self._services:
                raise UnknownServiceError(key)
            resolved.append(self._services[key])
        return container.factory(*resolved)
