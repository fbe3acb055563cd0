"""JSON file snapshot store adapter.

Keeps the whole persisted snapshot in a single JSON document. Writes
go to a sibling temporary file first and are then moved over the
snapshot, so a crash mid-write leaves the previous snapshot intact.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ...config import PersistenceConfig, get_config
from ...domain.errors import SnapshotError


@dataclass
class JsonSnapshotStore:
    """Snapshot store backed by a JSON file.

    This adapter implements SnapshotStorePort.

    Attributes:
        config: Persistence configuration (data dir, file name)
        path: Explicit snapshot path, overrides ``config.snapshot_path``
    """

    config: PersistenceConfig = field(default_factory=lambda: get_config().persistence)
    path: Optional[Path] = None
    _file: Path = field(init=False, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        self._file = Path(self.path) if self.path is not None else self.config.snapshot_path
        self.path = self._file

    def load(self) -> Optional[Dict[str, Any]]:
        """Read the snapshot file.

        Returns:
            The decoded snapshot, or None if the file does not exist.

        Raises:
            SnapshotError: If the file cannot be read, is not JSON, or
                does not hold a JSON object.
        """
        if not self._file.exists():
            self._logger.debug("No snapshot yet", extra={"path": str(self._file)})
            return None

        try:
            data = json.loads(self._file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise SnapshotError(
                f"Failed to read snapshot {self._file}",
                path=str(self._file),
                cause=e,
            )

        if not isinstance(data, dict):
            raise SnapshotError(
                f"Snapshot {self._file} is not a JSON object",
                path=str(self._file),
            )

        self._logger.info(
            "Snapshot loaded",
            extra={"path": str(self._file), "schema_version": data.get("schemaVersion")},
        )
        return data

    def save(self, state: Mapping[str, Any]) -> None:
        """Write the snapshot file, replacing any previous one.

        Raises:
            SnapshotError: If the snapshot cannot be encoded or written.
        """
        tmp_path = self._file.with_name(self._file.name + ".tmp")
        try:
            payload = json.dumps(dict(state), ensure_ascii=False, indent=2)
            self._file.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            tmp_path.replace(self._file)
        except (OSError, TypeError, ValueError) as e:
            raise SnapshotError(
                f"Failed to write snapshot {self._file}",
                path=str(self._file),
                cause=e,
            )

        self._logger.debug(
            "Snapshot saved",
            extra={"path": str(self._file), "schema_version": state.get("schemaVersion")},
        )
