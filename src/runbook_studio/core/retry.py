from dataclasses import dataclass
from typing import Protocol

from runbook_studio.core.ports.remote import ConnectionClosed, ConnectionFailure, RemoteFetchError
from runbook_studio.models import Variant

_HARD_FAILURES: tuple[type[RemoteFetchError], ...] = (ConnectionFailure, ConnectionClosed)


class FallbackPolicy(Protocol):
    def fallback_variant(self, requested: Variant, error: RemoteFetchError) -> Variant | None: ...


@dataclass(frozen=True)
class DraftFallbackPolicy:
    """Decides whether a failed fetch is retried against another variant.

    A draft request that fails with anything but a hard connection failure is
    retried once against the published version. A dead connection fails fast.
    """

    hard_failures: tuple[type[RemoteFetchError], ...] = _HARD_FAILURES

    def is_hard_failure(self, error: RemoteFetchError) -> bool:
        return isinstance(error, self.hard_failures)

    def fallback_variant(self, requested: Variant, error: RemoteFetchError) -> Variant | None:
        if self.is_hard_failure(error):
            return None
        if requested is Variant.DRAFT:
            return Variant.PUBLISHED
        return None


@dataclass(frozen=True)
class NoFallbackPolicy:
    """Never retries; every failure goes straight to the cached content."""

    def fallback_variant(self, requested: Variant, error: RemoteFetchError) -> Variant | None:
        return None
