"""Package store - Single-writer state manager for packages and departures.

All package and departure mutations go through one ``PackageStore``
instance. Each mutation builds a new immutable ``Package``, swaps it
into the store under a lock, notifies subscribers and, when autosave
is on, writes the snapshot. A failed autosave raises
``SnapshotError`` from the mutation method, but the mutation has
already been applied in memory and reached subscribers.

Loading a snapshot always runs the migration pipeline first, so the
rest of the application only ever sees current-shape data. Snapshot
collections the store does not manage (bookings, users...) are kept
as loaded and written back untouched.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Literal,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from ..domain.errors import (
    ChildIndexError,
    DepartureNotFoundError,
    PackageNotFoundError,
    SnapshotError,
)
from ..domain.models import (
    CostLine,
    Departure,
    DepartureStatus,
    FlightSegment,
    Package,
    PackageStatus,
    ReconciliationResult,
    SupplierLink,
    TimelineItem,
)
from ..migrations import CURRENT_SCHEMA_VERSION, migrate_state, read_schema_version
from ..ports.persistence import SnapshotStorePort
from ..reconciliation.engine import (
    CREATED_TIMELINE_TITLE,
    build_departures,
    reconcile_departures,
)

T = TypeVar("T")

Subscriber = Callable[[Tuple[Package, ...]], None]
ImportMode = Literal["merge", "replace"]


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_index(items: Sequence[Any], index: int, collection: str) -> None:
    if not 0 <= index < len(items):
        raise ChildIndexError(
            f"No {collection} entry at position {index}",
            collection=collection,
            index=index,
        )


def _without(items: Tuple[T, ...], index: int, collection: str) -> Tuple[T, ...]:
    _check_index(items, index, collection)
    return items[:index] + items[index + 1:]


def _changed_at(
    items: Tuple[T, ...], index: int, collection: str, changes: Mapping[str, Any]
) -> Tuple[T, ...]:
    _check_index(items, index, collection)
    return items[:index] + (replace(items[index], **changes),) + items[index + 1:]


@dataclass
class PackageStore:
    """State manager owning every package and its departures.

    Usage:
        store = PackageStore(snapshot_store=JsonSnapshotStore())
        store.load()
        pkg = store.add_package([FlightSegment("TAP", "2025-06-02", "2025-06-09")])
        store.update_flights(pkg.id, new_flights)

    Attributes:
        snapshot_store: Where snapshots are loaded from and saved to
        autosave: Save the snapshot after every mutation
        new_id: Identity factory for packages and departures
        clock: Clock for validation dates and timeline entries
        timeline_title: Title of the timeline entry on created departures
    """

    snapshot_store: Optional[SnapshotStorePort] = None
    autosave: bool = True
    new_id: Callable[[], str] = _new_id
    clock: Callable[[], datetime] = _utcnow
    timeline_title: str = CREATED_TIMELINE_TITLE

    _packages: Tuple[Package, ...] = field(default_factory=tuple, repr=False)
    _passthrough: Dict[str, Any] = field(default_factory=dict, repr=False)
    _schema_version: int = field(default=CURRENT_SCHEMA_VERSION, repr=False)
    _subscribers: List[Subscriber] = field(default_factory=list, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    # ---------------- reading -----------------

    @property
    def packages(self) -> Tuple[Package, ...]:
        with self._lock:
            return self._packages

    def get(self, package_id: str) -> Package:
        """Return a package by id.

        Raises:
            PackageNotFoundError: If no package has this id.
        """
        with self._lock:
            for package in self._packages:
                if package.id == package_id:
                    return package
        raise PackageNotFoundError(
            f"Package not found: {package_id}", package_id=package_id
        )

    def get_departure(self, package_id: str, departure_id: str) -> Departure:
        """Return a departure of a package.

        Raises:
            PackageNotFoundError: If the package does not exist.
            DepartureNotFoundError: If the package has no such departure.
        """
        departure = self.get(package_id).find_departure(departure_id)
        if departure is None:
            raise DepartureNotFoundError(
                f"Departure not found: {departure_id}",
                package_id=package_id,
                departure_id=departure_id,
            )
        return departure

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call ``callback`` with the package list after every change.

        Returns:
            A function removing the subscription.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    # ---------------- persistence -----------------

    def load(self) -> Tuple[Package, ...]:
        """Load, migrate and install the stored snapshot.

        A snapshot written by an older schema is saved back right after
        migration. Failing to save it back is logged and otherwise
        ignored: the migrated data is already in memory and will be
        written by the next save.

        Returns:
            The loaded packages.

        Raises:
            SnapshotError: If the snapshot store cannot read the snapshot.
        """
        raw = self.snapshot_store.load() if self.snapshot_store else None
        state = migrate_state(raw)

        records = state.get("packages")
        packages = tuple(
            self._normalize(Package.from_dict(record))
            for record in (records if isinstance(records, list) else [])
            if isinstance(record, Mapping)
        )
        passthrough = {
            k: v for k, v in state.items() if k not in ("packages", "schemaVersion")
        }

        with self._lock:
            self._packages = packages
            self._passthrough = passthrough
            self._schema_version = read_schema_version(state)
            self._notify()

        self._logger.info(
            "Packages loaded",
            extra={"packages": len(packages), "schema_version": self._schema_version},
        )

        if raw is not None and read_schema_version(raw) < CURRENT_SCHEMA_VERSION:
            try:
                self.save()
            except SnapshotError as e:
                self._logger.warning(
                    "Failed to write back migrated snapshot",
                    extra={"error": str(e)},
                )
        return packages

    def to_snapshot(self) -> Dict[str, Any]:
        """Build the persisted snapshot of the current state."""
        with self._lock:
            return {
                **self._passthrough,
                "schemaVersion": self._schema_version,
                "packages": [p.to_dict() for p in self._packages],
            }

    def save(self) -> None:
        """Write the current state through the snapshot store, if any.

        Raises:
            SnapshotError: If the snapshot store cannot write.
        """
        if self.snapshot_store is None:
            return
        self.snapshot_store.save(self.to_snapshot())

    # ---------------- internals -----------------

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            callback(self._packages)

    def _commit(self, packages: Tuple[Package, ...]) -> None:
        """Install ``packages``, notify subscribers, then autosave.

        The new state is in place before the save runs. When the save
        raises ``SnapshotError`` the mutation still stands in memory and
        the next successful save persists it.
        """
        self._packages = packages
        self._notify()
        if self.autosave:
            self.save()

    def _find_position(self, package_id: str) -> int:
        for position, package in enumerate(self._packages):
            if package.id == package_id:
                return position
        raise PackageNotFoundError(
            f"Package not found: {package_id}", package_id=package_id
        )

    def _replace_package(
        self, package_id: str, fn: Callable[[Package], Package]
    ) -> Package:
        with self._lock:
            position = self._find_position(package_id)
            updated = fn(self._packages[position])
            packages = list(self._packages)
            packages[position] = updated
            self._commit(tuple(packages))
            return updated

    def _replace_departure(
        self,
        package_id: str,
        departure_id: str,
        fn: Callable[[Departure], Departure],
    ) -> Departure:
        changed: List[Departure] = []

        def apply(package: Package) -> Package:
            departure = package.find_departure(departure_id)
            if departure is None:
                raise DepartureNotFoundError(
                    f"Departure not found: {departure_id}",
                    package_id=package_id,
                    departure_id=departure_id,
                )
            updated = fn(departure)
            changed.append(updated)
            return replace(
                package,
                departures=tuple(
                    updated if d.id == departure_id else d for d in package.departures
                ),
            )

        self._replace_package(package_id, apply)
        return changed[0]

    def _build(self, flights: Sequence[FlightSegment]) -> Tuple[Departure, ...]:
        return build_departures(
            flights, new_id=self.new_id, now=self.clock, timeline_title=self.timeline_title
        )

    def _normalize(self, package: Package) -> Package:
        """Give a loaded or imported package ids and its departures."""
        if not package.id:
            package = replace(package, id=self.new_id())
        if package.flights and not package.departures:
            return replace(package, departures=self._build(package.flights))
        if any(not d.id for d in package.departures):
            package = replace(
                package,
                departures=tuple(
                    d if d.id else replace(d, id=self.new_id())
                    for d in package.departures
                ),
            )
        return package

    # ---------------- package mutations -----------------

    def add_package(
        self,
        flights: Sequence[FlightSegment],
        status: PackageStatus = PackageStatus.DRAFT,
        flight_info: Optional[Mapping[str, Any]] = None,
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> Package:
        """Create a package and one departure per flight."""
        package = Package(
            id=self.new_id(),
            status=status,
            flights=tuple(flights),
            departures=self._build(flights),
            flight_info=dict(flight_info or {}),
            attributes=dict(attributes or {}),
        )
        with self._lock:
            self._commit((package,) + self._packages)
        self._logger.info(
            "Package added",
            extra={"package_id": package.id, "departures": len(package.departures)},
        )
        return package

    def update_flights(
        self, package_id: str, flights: Sequence[FlightSegment]
    ) -> ReconciliationResult:
        """Replace a package's flights and reconcile its departures.

        Departures are only touched when the flights changed
        structurally (see ``reconcile_departures``); a reorder or an
        edit of durations/details just stores the new list.

        Raises:
            PackageNotFoundError: If the package does not exist.
        """
        results: List[ReconciliationResult] = []

        def apply(package: Package) -> Package:
            result = reconcile_departures(
                package.flights,
                flights,
                package.departures,
                new_id=self.new_id,
                now=self.clock,
                timeline_title=self.timeline_title,
            )
            results.append(result)
            return replace(package, flights=tuple(flights), departures=result.departures)

        self._replace_package(package_id, apply)
        return results[0]

    def update_package(
        self,
        package_id: str,
        *,
        status: Optional[PackageStatus] = None,
        flight_info: Optional[Mapping[str, Any]] = None,
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> Package:
        """Update non-flight package fields; ``None`` leaves a field as is.

        Raises:
            PackageNotFoundError: If the package does not exist.
        """

        def apply(package: Package) -> Package:
            changes: Dict[str, Any] = {}
            if status is not None:
                changes["status"] = PackageStatus(status)
            if flight_info is not None:
                changes["flight_info"] = dict(flight_info)
            if attributes is not None:
                changes["attributes"] = {**package.attributes, **attributes}
            return replace(package, **changes)

        return self._replace_package(package_id, apply)

    def set_package_status(self, package_id: str, status: PackageStatus) -> Package:
        return self.update_package(package_id, status=status)

    def delete_package(self, package_id: str) -> bool:
        """Delete a package with its departures.

        Returns:
            True if a package was deleted.
        """
        with self._lock:
            remaining = tuple(p for p in self._packages if p.id != package_id)
            if len(remaining) == len(self._packages):
                return False
            self._commit(remaining)
        self._logger.info("Package deleted", extra={"package_id": package_id})
        return True

    def duplicate_package(self, package_id: str, copy_departures: bool = False) -> Package:
        """Copy a package as a new draft.

        With ``copy_departures`` the departures are copied with their
        children under fresh ids; otherwise new departures are built
        from the flights.

        Raises:
            PackageNotFoundError: If the package does not exist.
        """
        original = self.get(package_id)

        attributes = dict(original.attributes)
        general = attributes.get("general")
        if isinstance(general, Mapping):
            attributes["general"] = {
                **general,
                "productCode": f"{general.get('productCode', '')}-COPY",
                "productName": f"{general.get('productName', '')} (Copy)",
            }

        if copy_departures:
            departures = tuple(replace(d, id=self.new_id()) for d in original.departures)
        else:
            departures = self._build(original.flights)

        duplicated = replace(
            original,
            id=self.new_id(),
            status=PackageStatus.DRAFT,
            departures=departures,
            attributes=attributes,
        )
        with self._lock:
            self._commit((duplicated,) + self._packages)
        return duplicated

    def import_packages(
        self,
        records: Iterable[Union[Package, Mapping[str, Any]]],
        mode: ImportMode = "merge",
    ) -> int:
        """Import packages, e.g. from an export file.

        Imported packages get departures when they have none; a package
        whose id is already taken gets a new id. ``merge`` puts them in
        front of the existing packages, ``replace`` drops the existing
        ones.

        Returns:
            Number of packages imported.
        """
        with self._lock:
            taken = {p.id for p in self._packages} if mode == "merge" else set()
            imported: List[Package] = []
            for record in records:
                if isinstance(record, Mapping):
                    record = Package.from_dict(record)
                if not isinstance(record, Package):
                    continue
                package = self._normalize(record)
                if package.id in taken:
                    package = replace(package, id=self.new_id())
                taken.add(package.id)
                imported.append(package)

            existing = self._packages if mode == "merge" else ()
            self._commit(tuple(imported) + existing)

        self._logger.info("Packages imported", extra={"count": len(imported), "mode": mode})
        return len(imported)

    def export_packages(self) -> List[Dict[str, Any]]:
        """Return every package as a plain record."""
        return [p.to_dict() for p in self.packages]

    def reset(self) -> None:
        """Drop every package and passthrough collection."""
        with self._lock:
            self._passthrough = {}
            self._commit(())

    # ---------------- departure mutations -----------------

    def update_departure_status(
        self, package_id: str, departure_id: str, status: DepartureStatus
    ) -> Departure:
        """Move a departure to ``status``.

        Entering ``validated`` stamps the validation date with the
        store clock; going back to pending clears it.

        Raises:
            ValueError: If ``status`` is not a departure status.
        """
        target = DepartureStatus(status)
        now = self.clock()
        return self._replace_departure(
            package_id, departure_id, lambda d: d.with_status(target, now)
        )

    def add_supplier(
        self, package_id: str, departure_id: str, supplier: SupplierLink
    ) -> Departure:
        return self._replace_departure(
            package_id,
            departure_id,
            lambda d: replace(d, supplier_links=d.supplier_links + (supplier,)),
        )

    def remove_supplier(self, package_id: str, departure_id: str, index: int) -> Departure:
        return self._replace_departure(
            package_id,
            departure_id,
            lambda d: replace(
                d, supplier_links=_without(d.supplier_links, index, "supplier")
            ),
        )

    def add_cost_line(self, package_id: str, departure_id: str, line: CostLine) -> Departure:
        return self._replace_departure(
            package_id,
            departure_id,
            lambda d: replace(d, cost_lines=d.cost_lines + (line,)),
        )

    def update_cost_line(
        self, package_id: str, departure_id: str, index: int, **changes: Any
    ) -> Departure:
        """Change fields of a cost line, e.g. ``paid=True``."""
        return self._replace_departure(
            package_id,
            departure_id,
            lambda d: replace(
                d, cost_lines=_changed_at(d.cost_lines, index, "cost line", changes)
            ),
        )

    def remove_cost_line(self, package_id: str, departure_id: str, index: int) -> Departure:
        return self._replace_departure(
            package_id,
            departure_id,
            lambda d: replace(d, cost_lines=_without(d.cost_lines, index, "cost line")),
        )

    def add_timeline_item(
        self, package_id: str, departure_id: str, item: TimelineItem
    ) -> Departure:
        return self._replace_departure(
            package_id,
            departure_id,
            lambda d: replace(d, timeline_items=d.timeline_items + (item,)),
        )

    def update_timeline_item(
        self, package_id: str, departure_id: str, index: int, **changes: Any
    ) -> Departure:
        return self._replace_departure(
            package_id,
            departure_id,
            lambda d: replace(
                d,
                timeline_items=_changed_at(d.timeline_items, index, "timeline", changes),
            ),
        )

    def remove_timeline_item(
        self, package_id: str, departure_id: str, index: int
    ) -> Departure:
        return self._replace_departure(
            package_id,
            departure_id,
            lambda d: replace(
                d, timeline_items=_without(d.timeline_items, index, "timeline")
            ),
        )
