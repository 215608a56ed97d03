"""Diagnostic logger for entropy extraction events.

Uses the standard ``logging`` module with the ``"bio_rng"`` logger.
No ``print()`` statements. Supports three verbosity levels and an
in-memory diagnostic mode for post-hoc analysis of the extracted values.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bio_rng.config import BioRNGConfig
    from bio_rng.logging.types import ExtractionRecord

logger = logging.getLogger("bio_rng")


class ExtractionLogger:
    """Per-extraction diagnostic logger.

    Log levels:
        ``"none"``: No logging output. Records are still stored if
        ``diagnostic_mode=True``.

        ``"summary"``: One DEBUG line per extraction (value, selected
        index, staged samples, pool size, fetch time).

        ``"full"``: Full JSON dump of every record at DEBUG level.

    Records are appended from the producer thread and read from consumer
    threads, so the store is guarded by a lock.
    """

    def __init__(self, config: BioRNGConfig) -> None:
        self._log_level = config.log_level
        self._diagnostic_mode = config.diagnostic_mode
        self._records: list[ExtractionRecord] = []
        self._lock = threading.Lock()

    def log_extraction(self, record: ExtractionRecord) -> None:
        """Log a single extraction event.

        Args:
            record: Immutable record of the extraction.
        """
        if self._diagnostic_mode:
            with self._lock:
                self._records.append(record)

        if self._log_level == "none":
            return

        if self._log_level == "summary":
            logger.debug(
                "extracted value=%.6f index=%d/%d pool=%d source=%s channels=%d fetch=%.2fms",
                record.value,
                record.selected_index,
                record.staged_samples,
                record.pool_size,
                record.source,
                record.channels,
                record.fetch_ms,
            )
        elif self._log_level == "full":
            logger.debug("extraction_record: %s", json.dumps(asdict(record), default=str))

    def get_diagnostic_data(self) -> list[ExtractionRecord]:
        """Return a copy of all stored records (requires ``diagnostic_mode=True``)."""
        with self._lock:
            return list(self._records)

    def get_summary_stats(self) -> dict[str, Any]:
        """Compute summary statistics over all stored records.

        Returns:
            Dictionary with aggregate stats, or empty dict if no records.
        """
        records = self.get_diagnostic_data()
        if not records:
            return {}

        values = [r.value for r in records]
        n = len(records)
        return {
            "total_extractions": n,
            "mean_value": sum(values) / n,
            "min_value": min(values),
            "max_value": max(values),
            "mean_staged_samples": sum(r.staged_samples for r in records) / n,
            "mean_fetch_ms": sum(r.fetch_ms for r in records) / n,
            "max_pool_size": max(r.pool_size for r in records),
        }
