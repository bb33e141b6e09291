"""Periodic maintenance: cache expiry, staged file removal and engagement reconciliation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from neko_blog.core.errors import StorageUnavailableError
from neko_blog.core.settings import settings
from neko_blog.db.session import SessionLocal
from neko_blog.models.engagement import ALLOWED_KINDS, TargetKind
from neko_blog.repositories.engagement_repo import EngagementRepository
from neko_blog.services.cache import CacheService, get_cache_service
from neko_blog.services.images import ImageStore

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    """What one reconciliation pass changed."""

    orphans_removed: dict[TargetKind, int] = field(default_factory=dict)
    counters_fixed: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.counters_fixed or any(self.orphans_removed.values()))


def reconcile_engagements(session: Session) -> ReconcileReport:
    """Remove records whose target is gone and rewrite drifted counters.

    Runs in one transaction on ``session``.
    """
    records = EngagementRepository(session)
    report = ReconcileReport()
    try:
        for target_kind in TargetKind:
            orphans = records.orphaned_keys(target_kind)
            if orphans:
                report.orphans_removed[target_kind] = records.purge_targets(target_kind, orphans)
        for target_kind, kinds in ALLOWED_KINDS.items():
            for kind in sorted(kinds, key=lambda k: k.value):
                report.counters_fixed += records.recount(target_kind, kind)
        report.counters_fixed += records.recount_following()
        session.commit()
    except Exception:
        session.rollback()
        raise
    return report


def drain_image_cleanup(cache: CacheService, images: ImageStore, batch: int | None = None) -> int:
    """Delete the staged files queued on the clean-up stream.

    Entries are acknowledged once their file is gone; a file that no longer
    exists counts as removed. Returns the number of entries processed.
    """
    size = max(1, batch or settings.image_cleanup_batch)
    processed = 0
    while True:
        entries = cache.read_cleanup_queue(size)
        if not entries:
            break
        done: list[str] = []
        try:
            for entry_id, filename in entries:
                if filename:
                    images.remove_staged(filename)
                done.append(entry_id)
        finally:
            cache.ack_cleanup(done)
        processed += len(done)
        if len(entries) < size:
            break
    return processed


class MaintenanceWorker:
    """Runs the maintenance sweeps on a fixed interval in the background."""

    def __init__(
        self,
        cache: CacheService | None = None,
        images: ImageStore | None = None,
        session_factory: Callable[[], Session] = SessionLocal,
        interval_seconds: float | None = None,
    ) -> None:
        self.cache = cache or get_cache_service()
        self.images = images or ImageStore()
        self.session_factory = session_factory
        self.interval = max(
            0.1,
            float(interval_seconds if interval_seconds is not None else settings.maintenance_interval_seconds),
        )
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    async def start(self) -> None:
        """Start the background maintenance loop."""
        if not settings.maintenance_enabled:
            return

        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background maintenance loop."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await self.run_once()
            except StorageUnavailableError as e:
                logger.warning("MaintenanceWorker could not reach the cache: %s", e)
            except SQLAlchemyError as e:
                logger.error("MaintenanceWorker encountered a database error: %s", e, exc_info=True)
            except OSError as e:
                logger.error("MaintenanceWorker could not remove image files: %s", e, exc_info=True)

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except TimeoutError:
                continue

    async def run_once(self) -> ReconcileReport:
        """Run every sweep once."""
        tokens = await asyncio.to_thread(self.cache.sweep_expired_tokens)
        if tokens:
            logger.debug("Expired %d session tokens", tokens)
        expired = await asyncio.to_thread(self.cache.sweep_expired_images)
        if expired:
            logger.debug("Expired %d staged images", len(expired))
        removed = await asyncio.to_thread(drain_image_cleanup, self.cache, self.images)
        if removed:
            logger.debug("Removed %d staged image files", removed)
        report = await asyncio.to_thread(self._reconcile)
        if report.changed:
            logger.info(
                "Reconciliation removed orphans %s and fixed %d counters",
                {kind.value: count for kind, count in report.orphans_removed.items()},
                report.counters_fixed,
            )
        return report

    def _reconcile(self) -> ReconcileReport:
        with self.session_factory() as db:
            return reconcile_engagements(db)
