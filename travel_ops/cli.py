"""Command line tools for persisted snapshots.

Usage patterns:

1. Upgrade a snapshot file in place to the current schema:
   travel-ops migrate data/travel_ops_state.json

2. Show what a snapshot holds, migrated in memory only:
   travel-ops inspect data/travel_ops_state.json
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from .adapters.persistence import InMemorySnapshotStore
from .alerts import departure_alerts
from .config import get_config
from .container import Container
from .domain.errors import TravelOpsError
from .logging_config import configure_logging
from .migrations import CURRENT_SCHEMA_VERSION, migrate_state, read_schema_version
from .ports.persistence import SnapshotStorePort
from .services import PackageStore

logger = logging.getLogger(__name__)


def _build_container(snapshot: Optional[str]) -> Container:
    """Default container, pointed at ``snapshot`` when one is given."""
    config = get_config()
    if snapshot:
        path = Path(snapshot)
        persistence = config.persistence.model_copy(
            update={"backend": "json", "data_dir": path.parent, "snapshot_file": path.name}
        )
        config = config.model_copy(update={"persistence": persistence})
    return Container.create_default(config)


def run_migrate(container: Container, dry_run: bool = False) -> int:
    path = container.config.persistence.snapshot_path
    store = container.resolve(SnapshotStorePort)
    raw = store.load()
    if raw is None:
        print(f"No snapshot at {path}")
        return 1

    before = read_schema_version(raw)
    migrated = migrate_state(raw)
    after = read_schema_version(migrated)
    print(f"{path}: schema version {before} -> {after} (current {CURRENT_SCHEMA_VERSION})")

    if before >= after:
        print("Already up to date")
    elif dry_run:
        print("Dry run, nothing written")
    else:
        store.save(migrated)
        print("Snapshot written")
    return 0


def run_inspect(container: Container) -> int:
    path = container.config.persistence.snapshot_path
    raw = container.resolve(SnapshotStorePort).load()
    if raw is None:
        print(f"No snapshot at {path}")
        return 1

    # inspect never writes: the store works on an in-memory copy
    container.register(SnapshotStorePort, lambda: InMemorySnapshotStore(initial=raw))
    packages = container.resolve(PackageStore).load()
    print(f"{path}: stored schema version {read_schema_version(raw)}, {len(packages)} package(s)")
    for package in packages:
        print(
            f"- {package.id} [{package.status.value}] "
            f"{len(package.flights)} flight(s), {len(package.departures)} departure(s)"
        )
        for departure in package.departures:
            alerts = departure_alerts(departure)
            flag = " !" if alerts.has_alerts else ""
            print(
                f"    {departure.flight_label} ({departure.status.value}) "
                f"suppliers={len(departure.supplier_links)} "
                f"costs={len(departure.cost_lines)} "
                f"overdue={alerts.overdue_costs + alerts.overdue_suppliers}{flag}"
            )
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="travel-ops", description="travel-ops snapshot tools")
    p.add_argument("--log-level", default=None, help="Override TRAVELOPS_LOG_LEVEL")
    sub = p.add_subparsers(dest="command", required=True)

    migrate = sub.add_parser("migrate", help="Upgrade a snapshot file to the current schema")
    migrate.add_argument("snapshot", nargs="?", help="Snapshot path (default from config)")
    migrate.add_argument("--dry-run", action="store_true", help="Report without writing")

    inspect = sub.add_parser("inspect", help="Summarize packages and departures of a snapshot")
    inspect.add_argument("snapshot", nargs="?", help="Snapshot path (default from config)")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    observability = get_config().observability
    if args.log_level:
        observability = observability.model_copy(update={"level": args.log_level})
    configure_logging(observability)

    try:
        container = _build_container(args.snapshot)
        if args.command == "migrate":
            return run_migrate(container, dry_run=args.dry_run)
        return run_inspect(container)
    except TravelOpsError:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
