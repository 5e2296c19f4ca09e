"""A small dependency-injection container with lazily built services."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import redis
from pymongo import MongoClient
from pymongo.database import Database

logger = logging.getLogger(__name__)

T = TypeVar("T")

Factory = Callable[["Injector"], Any]

_DEFAULT_REDIS_HOST = "localhost"
_DEFAULT_REDIS_PORT = 6379


class InjectionError(Exception):
    """Raised when a service cannot be declared, built or shut down."""


def _describe(key: Hashable) -> str:
    if isinstance(key, type):
        return f"{key.__module__}.{key.__qualname__}"
    return str(key)


class Injector:
    """Holds service factories and the instances built from them.

    A service is built the first time it is invoked and cached afterwards.
    On shutdown, built services are released in reverse order of building;
    ``ShutdownHelper`` instances run their shutdown callback.
    """

    def __init__(self) -> None:
        self._factories: dict[Hashable, Factory] = {}
        self._instances: dict[Hashable, Any] = {}
        self._order: list[Hashable] = []
        self._building: set[Hashable] = set()
        self._lock = threading.RLock()

    def provide(self, key: Hashable, factory: Factory) -> None:
        """Declare a service under ``key``; ``factory`` receives this injector."""
        with self._lock:
            if key in self._factories:
                raise InjectionError(
                    f"service `{_describe(key)}` has already been declared"
                )
            self._factories[key] = factory

    def provide_named(self, name: str, factory: Factory) -> None:
        """Declare a service under a string name."""
        if not isinstance(name, str):
            raise TypeError("service name must be a string")
        self.provide(name, factory)

    def invoke(self, key: Hashable) -> Any:
        """Return the service for ``key``, building it on first use."""
        with self._lock:
            if key in self._instances:
                return self._instances[key]
            factory = self._factories.get(key)
            if factory is None:
                available = ", ".join(
                    f"`{_describe(k)}`" for k in self._factories
                )
                raise InjectionError(
                    f"could not find service `{_describe(key)}`, "
                    f"available services: {available}"
                )
            if key in self._building:
                raise InjectionError(
                    f"circular dependency while building `{_describe(key)}`"
                )
            self._building.add(key)
            try:
                instance = factory(self)
            finally:
                self._building.discard(key)
            self._instances[key] = instance
            self._order.append(key)
            return instance

    def invoke_named(self, name: str) -> Any:
        """Return the service declared under ``name``."""
        return self.invoke(name)

    def has(self, key: Hashable) -> bool:
        """Tell whether a service is declared under ``key``."""
        with self._lock:
            return key in self._factories

    def shutdown(self) -> None:
        """Release every built service, most recently built first."""
        with self._lock:
            for key in reversed(list(self._order)):
                instance = self._instances[key]
                if isinstance(instance, ShutdownHelper):
                    try:
                        instance.shutdown()
                    except Exception as exc:
                        raise InjectionError(
                            f"shutdown of `{_describe(key)}` failed: {exc}"
                        ) from exc
                del self._instances[key]
                del self._factories[key]
                self._order.remove(key)


@dataclass(frozen=True)
class ShutdownHelper(Generic[T]):
    """Ties a service to the callback that releases it."""

    service: T
    on_shutdown: Callable[[T], Any]
    name: str = ""

    def shutdown(self) -> None:
        logger.debug(
            "ShutdownHelper Shutdown: %s, %s", type(self.service).__qualname__, self.name
        )
        self.on_shutdown(self.service)


def _helper_key(service: Any) -> str:
    kind = type(service)
    return f"ShutdownHelper[{kind.__module__}.{kind.__qualname__}]"


def setup_shutdown_helper(
    injector: Injector, service: T, on_shutdown: Callable[[T], Any]
) -> ShutdownHelper[T]:
    """Register and build a helper that shuts ``service`` down with the injector.

    The helper is keyed by the service's type, so one per type may exist.
    """

    def factory(_: Injector) -> ShutdownHelper[T]:
        logger.debug("NewShutdownHelper: %s", type(service).__qualname__)
        return ShutdownHelper(service, on_shutdown)

    key = _helper_key(service)
    injector.provide(key, factory)
    return injector.invoke(key)


def setup_shutdown_helper_named(
    injector: Injector, service: T, name: str, on_shutdown: Callable[[T], Any]
) -> ShutdownHelper[T]:
    """Register and build a named shutdown helper for ``service``."""
    full_name = f"ShutdownHelper:{name}"

    def factory(_: Injector) -> ShutdownHelper[T]:
        logger.debug(
            "NewShutdownHelper: %s, %s", type(service).__qualname__, full_name
        )
        return ShutdownHelper(service, on_shutdown, full_name)

    injector.provide_named(full_name, factory)
    return injector.invoke_named(full_name)


def _section(config: Mapping[str, Any], name: str) -> dict[str, Any]:
    section = config.get(name) if config is not None else None
    if not isinstance(section, Mapping):
        raise InjectionError(f"{name} config not found")
    return {str(k).lower(): v for k, v in section.items()}


def inject_mongo(config: Mapping[str, Any], injector: Injector) -> None:
    """Declare the MongoDB database service, read from ``config["mongo"]``."""

    def factory(inj: Injector) -> Database:
        section = _section(config, "mongo")
        address = str(section.get("address") or "")
        database = str(section.get("database") or "")
        logger.debug("Mongo Config: address=%s database=%s", address, database)
        client = MongoClient(address)
        db = client[database]
        setup_shutdown_helper(inj, db, lambda _db: client.close())
        return db

    injector.provide(Database, factory)


def _split_address(address: str) -> tuple[str, int]:
    if not address:
        return _DEFAULT_REDIS_HOST, _DEFAULT_REDIS_PORT
    host, sep, port = address.rpartition(":")
    if not sep:
        return address, _DEFAULT_REDIS_PORT
    try:
        return host or _DEFAULT_REDIS_HOST, int(port)
    except ValueError as exc:
        raise InjectionError(f"invalid redis address: {address}") from exc


def inject_redis(config: Mapping[str, Any], injector: Injector) -> None:
    """Declare the Redis client service, read from ``config["redis"]``."""

    def factory(inj: Injector) -> redis.Redis:
        section = _section(config, "redis")
        address = str(section.get("address") or "")
        password = section.get("password") or None
        logger.debug("Redis Config: address=%s", address)
        host, port = _split_address(address)
        client = redis.Redis(host=host, port=port, password=password)
        setup_shutdown_helper(inj, client, lambda svc: svc.close())
        return client

    injector.provide(redis.Redis, factory)


_default_injector: Injector | None = None


def setup_default_injector(config: Mapping[str, Any]) -> Injector:
    """Create the process-wide injector once and return it."""
    global _default_injector
    if _default_injector is not None:
        return _default_injector
    injector = Injector()
    inject_mongo(config, injector)
    inject_redis(config, injector)
    _default_injector = injector
    return injector


def shutdown_default_injector() -> None:
    """Shut down and forget the process-wide injector, if any."""
    global _default_injector
    if _default_injector is None:
        return
    try:
        _default_injector.shutdown()
    except InjectionError as exc:
        logger.debug("ShutdownDefaultInjector: %s", exc)
    _default_injector = None


def invoke(key: Hashable) -> Any:
    """Return a service from the process-wide injector."""
    if _default_injector is None:
        raise InjectionError("default injector has not been set up")
    return _default_injector.invoke(key)