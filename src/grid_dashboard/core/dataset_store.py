"""Holder for the current weekly dataset."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

import structlog
from pydantic import ValidationError

from grid_dashboard.models.domain_models import CellDiagnostic, DatasetSnapshot, WeeklyRecord
from grid_dashboard.utils.exceptions import DatasetPersistError

logger = structlog.get_logger()


class DatasetStore:
    """Keeps the most recently loaded dataset, replacing it wholesale.

    When a snapshot path is given the dataset is also written there as JSON,
    so it survives a restart.
    """

    def __init__(self, snapshot_path: Optional[Path] = None):
        self.snapshot_path = snapshot_path
        self._current: Optional[DatasetSnapshot] = None

    def current(self) -> Optional[DatasetSnapshot]:
        return self._current

    def replace(
        self,
        records: Sequence[WeeklyRecord],
        source_name: str,
        diagnostics: Sequence[CellDiagnostic] = (),
    ) -> DatasetSnapshot:
        """Make records the current dataset, discarding whatever was there.

        Args:
            records: Decoded weekly records
            source_name: File name or URL the records came from
            diagnostics: Cells that were defaulted during decoding

        Returns:
            The new current snapshot

        Raises:
            DatasetPersistError: If the snapshot file cannot be written; the
                previous dataset stays current
        """
        snapshot = DatasetSnapshot(
            records=list(records),
            source_name=source_name,
            loaded_at=datetime.now(timezone.utc),
            diagnostics=list(diagnostics),
        )

        if self.snapshot_path is not None:
            self._write_snapshot(snapshot)

        self._current = snapshot
        logger.info(
            "dataset_replaced",
            source_name=source_name,
            weeks=len(snapshot.records),
            defaulted_cells=len(snapshot.diagnostics),
        )

        return snapshot

    def load(self) -> Optional[DatasetSnapshot]:
        """Restore the dataset from the snapshot file, if there is one.

        A missing or unreadable snapshot leaves the store empty.
        """
        if self.snapshot_path is None or not self.snapshot_path.exists():
            return None

        try:
            snapshot = DatasetSnapshot.model_validate_json(
                self.snapshot_path.read_text(encoding="utf-8")
            )
        except (OSError, ValidationError) as e:
            logger.error(
                "dataset_snapshot_load_failed",
                path=str(self.snapshot_path),
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        self._current = snapshot
        logger.info(
            "dataset_snapshot_loaded",
            path=str(self.snapshot_path),
            source_name=snapshot.source_name,
            weeks=len(snapshot.records),
        )
        return snapshot

    def _write_snapshot(self, snapshot: DatasetSnapshot) -> None:
        assert self.snapshot_path is not None
        tmp_path = self.snapshot_path.with_suffix(self.snapshot_path.suffix + ".tmp")

        try:
            self.snapshot_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(snapshot.model_dump_json(by_alias=True), encoding="utf-8")
            tmp_path.replace(self.snapshot_path)
        except OSError as e:
            logger.error(
                "dataset_snapshot_write_failed",
                path=str(self.snapshot_path),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DatasetPersistError(f"Failed to write dataset snapshot: {e}") from e

        logger.debug("dataset_snapshot_written", path=str(self.snapshot_path))
