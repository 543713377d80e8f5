"""One-shot finalization: header, chart, file name, save, completion signal."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional, Sequence

from ..config.runtime import DEFAULT_CHART_TITLE, DEFAULT_HEADER_LABELS
from ..dataio.chart import ChartSpec, line_chart_spec
from ..dataio.file_paths import output_path
from ..errors import SinkSaveError, SinkWriteError
from .coordinator import CompletionCoordinator
from .models import BATCH_COLUMNS
from .table import Table

logger = logging.getLogger(__name__)


class Finalizer:
    """
    Labels, charts and saves the table, then signals completion.

    Only the handler that wins :meth:`CompletionCoordinator.record_message`
    calls :meth:`finalize`. Header and chart failures are logged and skipped;
    a failed save is logged too, and completion is signalled regardless.
    """

    def __init__(
        self,
        table: Table,
        coordinator: CompletionCoordinator,
        source_address: str,
        *,
        output_dir: Path | str = ".",
        header_labels: Sequence[str] = DEFAULT_HEADER_LABELS,
        chart_title: str = DEFAULT_CHART_TITLE,
        exit_code: int = 0,
    ) -> None:
        if len(header_labels) != BATCH_COLUMNS:
            raise ValueError(f"expected {BATCH_COLUMNS} header labels, got {len(header_labels)}")
        self.table = table
        self.coordinator = coordinator
        self.source_address = source_address
        self.output_dir = Path(output_dir)
        self.header_labels = [str(label) for label in header_labels]
        self.chart_title = chart_title
        self.exit_code = exit_code
        self.saved_path: Optional[Path] = None

    def header_row(self) -> list[str]:
        return list(self.header_labels)

    def chart_spec(self) -> ChartSpec:
        return line_chart_spec(self.chart_title, BATCH_COLUMNS)

    def output_path(self) -> Path:
        return output_path(self.source_address, self.output_dir)

    def finalize(self) -> Optional[Path]:
        """Run the finalization steps and return the saved path, or ``None`` if saving failed."""
        try:
            try:
                self.table.write_header(self.header_row())
            except SinkWriteError as exc:
                logger.error("Failed to write header row: %s", exc)

            try:
                self.table.attach_chart(self.chart_spec())
            except SinkWriteError as exc:
                logger.error("Failed to attach chart: %s", exc)

            path = self.output_path()
            logger.info(
                "Saving %d rows from %s to %s",
                self.table.rows_written,
                self.source_address,
                path,
            )
            started = time.perf_counter()
            try:
                self.table.save(path)
            except SinkSaveError as exc:
                logger.error("%s", exc)
            else:
                self.saved_path = path
                logger.debug("Wrote %s in %.1f ms", path.name, (time.perf_counter() - started) * 1000.0)
        finally:
            self.coordinator.signal_done(self.exit_code)
        return self.saved_path
