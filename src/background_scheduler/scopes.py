import logging
import threading
from enum import Enum
from types import TracebackType
from typing import Any, Callable, Dict, Hashable, List, Optional, Protocol, Tuple, Type

logger = logging.getLogger(__name__)


class DependencyScope(Protocol):
    """
    Protocol for a dependency scope used while executing a job.
    """

    def resolve(self, key: Hashable) -> Any:
        """Resolve the service registered under the given key."""
        ...

    def close(self) -> None:
        """Release the services created by the scope."""
        ...

    def __enter__(self) -> "DependencyScope":
        ...

    def __exit__(self, exc_type: Optional[Type[BaseException]], exc: Optional[BaseException],
                 tb: Optional[TracebackType]) -> None:
        ...


class ScopeFactory(Protocol):
    """
    Protocol for the collaborator that creates a dependency scope per job invocation.
    """

    def create_scope(self) -> DependencyScope:
        ...


class ServiceLifetime(str, Enum):
    SINGLETON = "singleton"
    SCOPED = "scoped"
    TRANSIENT = "transient"


Factory = Callable[[], Any]


class ServiceScope:
    """
    Scope created by `ServiceRegistry`. Caches scoped services and closes every
    instance it created when the scope exits.
    """

    def __init__(self, registry: "ServiceRegistry"):
        self._registry = registry
        self._scoped: Dict[Hashable, Any] = {}
        self._owned: List[Any] = []
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    def resolve(self, key: Hashable) -> Any:
        if self._closed:
            raise RuntimeError("Cannot resolve services from a closed scope")

        registration = self._registry.get_registration(key)
        if registration is None:
            if not isinstance(key, type):
                raise KeyError(f"No service registered for '{key}'")
            # Unregistered classes are created on demand and owned by the scope
            return self._own(key())

        lifetime, factory = registration
        if lifetime == ServiceLifetime.SINGLETON:
            return self._registry.get_singleton(key, factory)
        if lifetime == ServiceLifetime.SCOPED:
            if key not in self._scoped:
                self._scoped[key] = self._own(factory())
            return self._scoped[key]
        return self._own(factory())

    def _own(self, instance: Any) -> Any:
        self._owned.append(instance)
        return instance

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        owned, self._owned = self._owned, []
        self._scoped.clear()
        for instance in reversed(owned):
            close = getattr(instance, "close", None)
            if callable(close):
                try:
                    close()
                except Exception:
                    logger.exception("Error closing service %r", instance)

    def __enter__(self) -> "ServiceScope":
        return self

    def __exit__(self, exc_type: Optional[Type[BaseException]], exc: Optional[BaseException],
                 tb: Optional[TracebackType]) -> None:
        self.close()


class ServiceRegistry:
    """
    Minimal service container that acts as the default scope factory.
    """

    def __init__(self):
        self._registrations: Dict[Hashable, Tuple[ServiceLifetime, Factory]] = {}
        self._singletons: Dict[Hashable, Any] = {}
        self._lock = threading.Lock()

    def add_singleton(self, key: Hashable, factory: Optional[Factory] = None, instance: Any = None) -> None:
        if instance is not None:
            with self._lock:
                self._singletons[key] = instance
            factory = lambda: instance
        self._register(key, ServiceLifetime.SINGLETON, factory)

    def add_scoped(self, key: Hashable, factory: Optional[Factory] = None) -> None:
        self._register(key, ServiceLifetime.SCOPED, factory)

    def add_transient(self, key: Hashable, factory: Optional[Factory] = None) -> None:
        self._register(key, ServiceLifetime.TRANSIENT, factory)

    def _register(self, key: Hashable, lifetime: ServiceLifetime, factory: Optional[Factory]) -> None:
        if factory is None:
            if not isinstance(key, type):
                raise ValueError(f"A factory is required to register '{key}'")
            factory = key
        with self._lock:
            self._registrations[key] = (lifetime, factory)

    def get_registration(self, key: Hashable) -> Optional[Tuple[ServiceLifetime, Factory]]:
        with self._lock:
            return self._registrations.get(key)

    def get_singleton(self, key: Hashable, factory: Factory) -> Any:
        with self._lock:
            if key not in self._singletons:
                self._singletons[key] = factory()
            return self._singletons[key]

    def create_scope(self) -> ServiceScope:
        return ServiceScope(self)
