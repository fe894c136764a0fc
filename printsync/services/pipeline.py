"""Pipeline orchestration: move one indexed image into Printify per cycle."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from printsync.config import PipelineSettings, logger
from printsync.core.capability import CapabilityCache, CapabilityResolver
from printsync.core.content_transfer import build_transfer
from printsync.core.printify_client import PrintifyClient
from printsync.core.product_composer import ProductComposer, derive_title
from printsync.core.record_store import RecordStore
from printsync.db import supabase_create_client
from printsync.errors import PipelineError, StoreError, SubmissionError, TransferError
from printsync.models import CycleResult, Record

# Failures caused by the record itself; catalog-wide or store-wide failures
# never count toward quarantine.
RECORD_FAILURES = (TransferError, SubmissionError)


def _log(level: int, message: str, **context: Any) -> None:
    """Helper to emit structured logs with contextual metadata."""
    logger.log(level, "%s | context=%s", message, context)


class PipelineOrchestrator:
    """Runs sync cycles one at a time and tracks per-record failures."""

    def __init__(
        self,
        store: RecordStore,
        resolver: CapabilityResolver,
        transfer: Any,
        composer: ProductComposer,
        *,
        blueprint_id: Optional[int] = 1,
        title_prefix: str = "Auto Product:",
        max_record_failures: int = 0,
        on_close: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.store = store
        self.resolver = resolver
        self.transfer = transfer
        self.composer = composer
        self.blueprint_id = blueprint_id
        self.title_prefix = title_prefix
        self.max_record_failures = max_record_failures
        self._on_close = on_close

        self._lock = asyncio.Lock()
        self._failures: Dict[Any, int] = {}
        self.quarantined: Set[Any] = set()
        self.unconfirmed: Dict[Any, str] = {}
        self.last_result: Optional[CycleResult] = None
        self.counters: Dict[str, int] = {
            "idle": 0,
            "busy": 0,
            "processed": 0,
            "failed": 0,
        }

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def run_cycle(self) -> CycleResult:
        """Process at most one record. Returns ``busy`` if a cycle is in flight."""
        if self._lock.locked():
            _log(logging.INFO, "cycle_skipped_busy")
            result = CycleResult(status="busy")
            self.counters["busy"] += 1
            return result

        async with self._lock:
            start_time = time.time()
            result = await self._run_locked()
            result.details["duration_ms"] = int((time.time() - start_time) * 1000)

        self.last_result = result
        self.counters[result.status] += 1
        return result

    async def _run_locked(self) -> CycleResult:
        _log(logging.DEBUG, "polling_for_unprocessed_record")
        try:
            record = await self.store.next_unprocessed(exclude=self.quarantined)
        except StoreError as exc:
            return self._failed(None, exc)

        self._forget_settled(record.id if record else None)

        if record is None:
            _log(logging.INFO, "no_unprocessed_records")
            return CycleResult(status="idle")

        if record.id in self.unconfirmed:
            return await self._confirm(record, self.unconfirmed[record.id])

        _log(logging.INFO, "cycle_started", record_id=record.id, path=record.path)
        try:
            selection = await self.resolver.select(self.blueprint_id)
            reference = self.store.public_url(record.path)
            handle = await self.transfer.transfer(reference, record.filename)
            title = derive_title(record.path, self.title_prefix)
            request = self.composer.compose(title, selection, handle)
            product_id = await self.composer.submit(request)
        except PipelineError as exc:
            return self._failed(record, exc)
        except Exception as exc:
            logger.exception(f"Unexpected error processing record {record.id}")
            return CycleResult(
                status="failed",
                record_id=record.id,
                stage="unexpected",
                error=str(exc),
            )

        self._failures.pop(record.id, None)
        return await self._confirm(record, product_id)

    async def _confirm(self, record: Record, product_id: str) -> CycleResult:
        """Mark the record processed after its product exists in Printify."""
        try:
            await self.store.mark_processed(record.id)
        except StoreError as exc:
            self.unconfirmed[record.id] = product_id
            _log(
                logging.ERROR,
                "mark_processed_failed",
                record_id=record.id,
                product_id=product_id,
                error=str(exc),
            )
            return CycleResult(
                status="failed",
                record_id=record.id,
                product_id=product_id,
                stage="mark",
                error=str(exc),
            )

        self.unconfirmed.pop(record.id, None)
        _log(
            logging.INFO,
            "record_processed",
            record_id=record.id,
            product_id=product_id,
        )
        return CycleResult(status="processed", record_id=record.id, product_id=product_id)

    def _failed(self, record: Optional[Record], exc: PipelineError) -> CycleResult:
        record_id = record.id if record else None
        context = exc.context()
        _log(logging.ERROR, "cycle_failed", record_id=record_id, **context)

        if record is not None and isinstance(exc, RECORD_FAILURES):
            count = self._failures.get(record.id, 0) + 1
            self._failures[record.id] = count
            if self.max_record_failures and count >= self.max_record_failures:
                self.quarantined.add(record.id)
                self._failures.pop(record.id, None)
                _log(
                    logging.WARNING,
                    "record_quarantined",
                    record_id=record.id,
                    failures=count,
                )

        return CycleResult(
            status="failed",
            record_id=record_id,
            stage=exc.stage,
            error=str(exc),
            details={k: v for k, v in context.items() if k not in ("stage", "error")},
        )

    def _forget_settled(self, selected_id: Any) -> None:
        """Drop bookkeeping for records the store no longer hands out.

        The store returns the oldest unprocessed record that is not
        quarantined, so any other tracked id has been processed since.
        """
        settled = [rid for rid in self.unconfirmed if rid != selected_id]
        settled += [rid for rid in self._failures if rid != selected_id]
        for rid in settled:
            self.unconfirmed.pop(rid, None)
            self._failures.pop(rid, None)
        if settled:
            _log(logging.DEBUG, "settled_records_forgotten", record_ids=settled)

    def failure_count(self, record_id: Any) -> int:
        return self._failures.get(record_id, 0)

    def status(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "counters": dict(self.counters),
            "last_result": self.last_result.to_dict() if self.last_result else None,
            "quarantined": sorted(str(rid) for rid in self.quarantined),
            "unconfirmed": {str(k): v for k, v in self.unconfirmed.items()},
            "capabilities": self.resolver.cache.snapshot(),
        }

    async def aclose(self) -> None:
        if self._on_close is not None:
            await self._on_close()


def build_orchestrator(settings: PipelineSettings) -> PipelineOrchestrator:
    """Wire the pipeline components from validated settings."""
    client = supabase_create_client(settings.supabase_url, settings.supabase_service_key)
    store = RecordStore(
        client,
        table=settings.source_table,
        processed_column=settings.processed_column,
        bucket=settings.storage_bucket,
        timeout=settings.request_timeout_seconds,
    )
    printify = PrintifyClient(
        settings.printify_api_key or "",
        settings.printify_shop_id or "",
        base_url=settings.printify_api_url,
        timeout=settings.request_timeout_seconds,
    )
    transfer = build_transfer(
        settings.ingestion_mode,
        printify,
        upload_strategy=settings.upload_strategy,
        staging_dir=settings.staging_dir,
        timeout=settings.request_timeout_seconds,
    )
    composer = ProductComposer(
        printify,
        description=settings.product_description,
        price=settings.product_price,
    )
    return PipelineOrchestrator(
        store,
        CapabilityResolver(printify, CapabilityCache()),
        transfer,
        composer,
        blueprint_id=settings.blueprint_id,
        title_prefix=settings.title_prefix,
        max_record_failures=settings.max_record_failures,
        on_close=printify.aclose,
    )


__all__ = ["PipelineOrchestrator", "build_orchestrator", "RECORD_FAILURES"]
