from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Optional

from mesh_gcp.common import PrintLogger
from mesh_gcp.core.interfaces import AssetSink
from mesh_gcp.events import EventCategory, EventType, emit_event, emit_state_watermark
from mesh_gcp.state import WatermarkStore

from .mapper import AssetMapper
from .walker import AssetWalker


@dataclass
class SyncReport:
    watermark_before: int
    watermark_after: int
    visited: int = 0
    reported: int = 0
    skipped_without_timestamp: int = 0
    duration_sec: float = 0.0


class SyncEngine:
    """Reports assets modified since the stored watermark and advances it.

    The watermark is read once before traversal and written once after the
    traversal finished, so a failure mid-run leaves it untouched. Runs are
    serialised on an internal lock.
    """

    def __init__(
        self,
        walker: AssetWalker,
        mapper: AssetMapper,
        watermarks: WatermarkStore,
        logger: PrintLogger,
        *,
        emitter=None,
        connector_id: Optional[str] = None,
    ) -> None:
        self.walker = walker
        self.mapper = mapper
        self.watermarks = watermarks
        self.logger = logger
        self.emitter = emitter
        self.connector_id = connector_id
        self._run_lock = threading.Lock()

    def run(self, sink: AssetSink) -> SyncReport:
        with self._run_lock:
            return self._run(sink)

    def _run(self, sink: AssetSink) -> SyncReport:
        start_ts = time.time()
        before = self.watermarks.get_last_watermark(0)
        report = SyncReport(watermark_before=before, watermark_after=before)
        emit_event(
            self.emitter,
            EventCategory.SYNC,
            EventType.SYNC_RUN_START,
            connector_id=self.connector_id,
            watermark=before,
        )
        self.logger.info("sync_run_start", connector_id=self.connector_id, watermark=before)

        high = before
        for descriptor in self.walker.walk():
            report.visited += 1
            modified = descriptor.last_modified
            if modified is None:
                report.skipped_without_timestamp += 1
                continue
            if modified > before:
                asset = self.mapper.map(descriptor)
                sink.on_asset_updated(asset)
                report.reported += 1
                self.logger.debug("asset_reported", asset_id=asset.id, modified=modified)
                emit_event(
                    self.emitter,
                    EventCategory.SYNC,
                    EventType.SYNC_ASSET_REPORTED,
                    asset_id=asset.id,
                    qualified_name=asset.qualified_name,
                    modified=modified,
                )
            high = max(high, modified)

        if high > before:
            emit_state_watermark(self.emitter, self.watermarks, watermark=high, previous=before)
        report.watermark_after = high
        report.duration_sec = time.time() - start_ts
        emit_event(
            self.emitter,
            EventCategory.SYNC,
            EventType.SYNC_RUN_END,
            connector_id=self.connector_id,
            visited=report.visited,
            reported=report.reported,
            watermark=high,
        )
        self.logger.info(
            "sync_run_end",
            connector_id=self.connector_id,
            visited=report.visited,
            reported=report.reported,
            watermark_before=before,
            watermark_after=high,
            duration_sec=round(report.duration_sec, 3),
        )
        return report
