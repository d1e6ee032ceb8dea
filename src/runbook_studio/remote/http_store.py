"""HTTP adapter for the automation web service that stores runbooks."""

from __future__ import annotations

import logging
from types import TracebackType

import httpx

from runbook_studio.core.ports.remote import (
    ApplicationError,
    ConnectionClosed,
    ConnectionFailure,
    RemoteTimeout,
)
from runbook_studio.models import Variant
from runbook_studio.settings import Credentials, Settings

logger = logging.getLogger(__name__)

_VERSION_SEGMENTS = {
    Variant.DRAFT: "DraftRunbookVersion",
    Variant.PUBLISHED: "PublishedRunbookVersion",
}


def runbook_url(service_url: str, document_id: str, variant: Variant) -> str:
    base = service_url.rstrip("/")
    return f"{base}/Runbooks(guid'{document_id}')/{_VERSION_SEGMENTS[variant]}/$value"


def _auth(credentials: Credentials) -> httpx.Auth | None:
    if credentials.impersonate or not credentials.username:
        return None
    return httpx.BasicAuth(credentials.login, credentials.password.get_secret_value())


class HttpRunbookStore:
    """Fetches runbook content over HTTP.

    Implements the ``RemoteContentStore`` protocol. Transport failures are
    translated into the ``RemoteFetchError`` family so callers can tell a dead
    connection from an error answered by the service.

    Usage:
        with HttpRunbookStore.from_settings(load_settings()) as store:
            text = store.fetch_version(document_id, Variant.DRAFT)
    """

    def __init__(
        self,
        service_url: str,
        credentials: Credentials | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not service_url:
            raise ValueError("A service URL is required to reach the runbook store.")
        try:
            httpx.URL(service_url)
        except httpx.InvalidURL as e:
            raise ValueError(f"Invalid service URL '{service_url}': {e}") from e
        self.service_url = service_url
        self._client = httpx.Client(
            auth=_auth(credentials or Credentials()),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, transport: httpx.BaseTransport | None = None) -> HttpRunbookStore:
        return cls(settings.service_url, settings.credentials, settings.timeout, transport=transport)

    def __enter__(self) -> HttpRunbookStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def fetch_version(self, document_id: str, variant: Variant) -> str:
        url = runbook_url(self.service_url, document_id, variant)
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.ConnectTimeout as e:
            raise ConnectionFailure(f"Timed out connecting to {url}") from e
        except httpx.TimeoutException as e:
            raise RemoteTimeout(f"Timed out reading {url}") from e
        except httpx.ConnectError as e:
            raise ConnectionFailure(f"Unable to connect to {url}: {e}") from e
        except (httpx.RemoteProtocolError, httpx.ReadError, httpx.WriteError) as e:
            raise ConnectionClosed(f"Connection to {url} closed: {e}") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise ApplicationError(f"{url} answered {status}", status_code=status) from e
        except httpx.HTTPError as e:
            raise ApplicationError(f"Request to {url} failed: {e}") from e
        except httpx.InvalidURL as e:
            raise ApplicationError(f"Invalid runbook URL {url}: {e}") from e
        logger.debug("Fetched %d characters from %s", len(response.text), url)
        return response.text
