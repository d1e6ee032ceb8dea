from __future__ import annotations

import threading
from dataclasses import dataclass

from runbook_studio.core.ports.remote import ApplicationError, RemoteFetchError
from runbook_studio.models import Variant


@dataclass(frozen=True)
class InMemoryFetch:
    document_id: str
    variant: Variant


class InMemoryRunbookStore:
    """Dict-backed ``RemoteContentStore`` with failure injection.

    ``fail(document_id, variant, error)`` makes every fetch of that version
    raise ``error`` until ``recover`` is called. Every call is recorded in
    ``fetches``.
    """

    def __init__(self) -> None:
        self.documents: dict[tuple[str, Variant], str] = {}
        self.failures: dict[tuple[str, Variant], RemoteFetchError] = {}
        self.fetches: list[InMemoryFetch] = []
        self._lock = threading.Lock()

    def put(self, document_id: str, body: str, variant: Variant = Variant.DRAFT) -> None:
        with self._lock:
            self.documents[(document_id, variant)] = body

    def fail(self, document_id: str, variant: Variant, error: RemoteFetchError) -> None:
        with self._lock:
            self.failures[(document_id, variant)] = error

    def recover(self, document_id: str, variant: Variant | None = None) -> None:
        with self._lock:
            for key in list(self.failures):
                if key[0] == document_id and (variant is None or key[1] == variant):
                    del self.failures[key]

    def fetch_count(self, document_id: str | None = None, variant: Variant | None = None) -> int:
        return sum(
            1
            for f in self.fetches
            if (document_id is None or f.document_id == document_id) and (variant is None or f.variant == variant)
        )

    def fetch_version(self, document_id: str, variant: Variant) -> str:
        key = (document_id, variant)
        with self._lock:
            self.fetches.append(InMemoryFetch(document_id, variant))
            error = self.failures.get(key)
            body = self.documents.get(key)
        if error is not None:
            raise error
        if body is None:
            raise ApplicationError(f"Runbook {document_id} has no {variant.value} version", status_code=404)
        return body
