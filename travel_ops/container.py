"""Wiring of ports, adapters and services.

``Container.create_default`` binds every port to the adapter selected
by configuration. Entry points resolve services from it; tests bind
fakes over the defaults with ``register``.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .config import AppConfig, get_config

_UNSET = object()


@dataclass
class _Binding:
    factory: Callable[[], Any]
    singleton: bool = True
    instance: Any = _UNSET


@dataclass
class Container:
    """Registry of factories keyed by port or service type.

    Usage:
        container = Container.create_default()
        container.register(SnapshotStorePort, lambda: InMemorySnapshotStore(initial=raw))
        store = container.resolve(PackageStore)

    Attributes:
        config: Configuration the default bindings are built from
    """

    config: AppConfig = field(default_factory=get_config)

    _bindings: Dict[type[Any], _Binding] = field(default_factory=dict, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def register(
        self,
        port_type: type[Any],
        factory: Callable[[], Any],
        singleton: bool = True,
    ) -> None:
        """Bind ``port_type`` to ``factory``, replacing any earlier binding.

        A replaced singleton is dropped; the next ``resolve`` builds a
        new instance from the new factory.
        """
        with self._lock:
            self._bindings[port_type] = _Binding(factory, singleton)

    def resolve(self, port_type: type[Any]) -> Any:
        """Return the instance bound to ``port_type``.

        Raises:
            KeyError: If the type is not registered.
        """
        with self._lock:
            binding = self._bindings.get(port_type)
            if binding is None:
                raise KeyError(f"Type not registered: {port_type}")
            if not binding.singleton:
                return binding.factory()
            if binding.instance is _UNSET:
                binding.instance = binding.factory()
            return binding.instance

    def is_registered(self, port_type: type[Any]) -> bool:
        return port_type in self._bindings

    def clear_all(self) -> None:
        with self._lock:
            self._bindings.clear()

    @classmethod
    def create_default(cls, config: Optional[AppConfig] = None) -> Container:
        """Build a container with the configured adapters.

        Bindings:
            SnapshotStorePort: JSON file or in-memory store, per
                ``persistence.backend``
            DepartureRepositoryPort: in-memory repository
            PackageStore, DepartureSyncService: built on the above

        Raises:
            ConfigurationError: On resolving the snapshot store, if the
                persistence backend is unknown.
        """
        from .adapters.persistence import (
            InMemoryDepartureRepository,
            InMemorySnapshotStore,
            JsonSnapshotStore,
        )
        from .domain.errors import ConfigurationError
        from .ports.persistence import DepartureRepositoryPort, SnapshotStorePort
        from .services import DepartureSyncService, PackageStore

        container = cls(config=config or get_config())
        persistence = container.config.persistence
        ops = container.config.ops

        def snapshot_store() -> SnapshotStorePort:
            if persistence.backend == "json":
                return JsonSnapshotStore(persistence)
            if persistence.backend == "memory":
                return InMemorySnapshotStore()
            raise ConfigurationError(
                f"Unknown persistence backend: {persistence.backend}",
                setting_name="persistence.backend",
                expected_type="json | memory",
            )

        container.register(SnapshotStorePort, snapshot_store)
        container.register(DepartureRepositoryPort, InMemoryDepartureRepository)
        container.register(
            PackageStore,
            lambda: PackageStore(
                snapshot_store=container.resolve(SnapshotStorePort),
                autosave=persistence.autosave,
                timeline_title=ops.created_timeline_title,
            ),
        )
        container.register(
            DepartureSyncService,
            lambda: DepartureSyncService(
                repository=container.resolve(DepartureRepositoryPort),
                timeline_title=ops.created_timeline_title,
            ),
        )
        return container
