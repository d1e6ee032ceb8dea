from typing import Protocol

from runbook_studio.models import Variant


class RemoteFetchError(Exception):
    """Base class for failures reported by a remote content store."""


class ConnectionFailure(RemoteFetchError):
    """The remote store could not be reached at all."""


class ConnectionClosed(RemoteFetchError):
    """The connection dropped before a complete response arrived."""


class RemoteTimeout(RemoteFetchError):
    """The remote store did not answer within the configured timeout."""


class ApplicationError(RemoteFetchError):
    """The remote store answered, but with an error (missing document, denied access, ...)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RemoteContentStore(Protocol):
    def fetch_version(self, document_id: str, variant: Variant) -> str: ...
