from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from runbook_studio.core.ports.remote import RemoteContentStore, RemoteFetchError
from runbook_studio.core.retry import DraftFallbackPolicy, FallbackPolicy
from runbook_studio.models import DocumentSnapshot, Variant

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS_WINDOW = timedelta(minutes=30)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentCache:
    """Last-fetched body of one remote document, with a freshness window.

    ``get_content`` answers from the snapshot while it is fresh and otherwise
    downloads in a worker thread. Download failures never reach the caller:
    the fallback policy may substitute another variant, then the last known
    body is returned, then an empty string.
    """

    def __init__(
        self,
        store: RemoteContentStore,
        document_id: str,
        policy: FallbackPolicy | None = None,
        freshness_window: timedelta = DEFAULT_FRESHNESS_WINDOW,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self.document_id = document_id
        self._policy = policy or DraftFallbackPolicy()
        self.freshness_window = freshness_window
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot: DocumentSnapshot | None = None

    @property
    def snapshot(self) -> DocumentSnapshot | None:
        with self._lock:
            return self._snapshot

    def is_fresh(self, variant: Variant) -> bool:
        with self._lock:
            return self._fresh_snapshot(variant) is not None

    def invalidate(self) -> None:
        with self._lock:
            self._snapshot = None

    def has_unsaved_changes(self, text: str) -> bool:
        snapshot = self.snapshot
        baseline = snapshot.body if snapshot is not None else ""
        return text != baseline

    async def get_content(self, force_download: bool = False, want_published: bool = False) -> str:
        variant = Variant.PUBLISHED if want_published else Variant.DRAFT
        if not force_download:
            with self._lock:
                cached = self._fresh_snapshot(variant)
            if cached is not None:
                return cached.body
        return await asyncio.to_thread(self._download, variant)

    def _fresh_snapshot(self, variant: Variant) -> DocumentSnapshot | None:
        snapshot = self._snapshot
        if snapshot is None or snapshot.variant != variant:
            return None
        if self._clock() - snapshot.fetched_at >= self.freshness_window:
            return None
        return snapshot

    def _download(self, variant: Variant) -> str:
        try:
            body = self._fetch(variant)
        except RemoteFetchError as error:
            logger.error("Downloading %s of document '%s' failed: %s", variant.value, self.document_id, error)
            fallback = self._policy.fallback_variant(variant, error)
            if fallback is None:
                return self._last_known()
            logger.warning("Falling back to the %s version of document '%s'", fallback.value, self.document_id)
            try:
                body = self._fetch(fallback)
            except RemoteFetchError:
                logger.exception("Unable to retrieve any content for document '%s'", self.document_id)
                return self._last_known()
            variant = fallback

        self._replace_snapshot(body, variant)
        return body

    def _fetch(self, variant: Variant) -> str:
        logger.debug("Downloading content for document '%s', version: %s", self.document_id, variant.value)
        return self._store.fetch_version(self.document_id, variant)

    def _replace_snapshot(self, body: str, variant: Variant) -> None:
        snapshot = DocumentSnapshot(body=body, fetched_at=self._clock(), variant=variant)
        with self._lock:
            self._snapshot = snapshot

    def _last_known(self) -> str:
        snapshot = self.snapshot
        if snapshot is None:
            logger.error("No cached content for document '%s'; returning an empty document", self.document_id)
            return ""
        return snapshot.body
