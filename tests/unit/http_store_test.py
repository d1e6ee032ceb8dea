"""Tests for the HTTP runbook store, using httpx's mock transport."""

import base64
from collections.abc import Callable

import httpx
import pytest
from pydantic import SecretStr

from runbook_studio.core.content import ContentCache
from runbook_studio.core.ports.remote import (
    ApplicationError,
    ConnectionClosed,
    ConnectionFailure,
    RemoteTimeout,
)
from runbook_studio.models import Variant
from runbook_studio.remote import HttpRunbookStore, runbook_url
from runbook_studio.settings import Credentials, Settings

SERVICE = "http://orchestrator:81/00000000-0000-0000-0000-000000000000"
DOC = "3c1b8a57-0c62-4a1e-9d0e-6a1f3e0e4b11"

Handler = Callable[[httpx.Request], httpx.Response]


def _store(handler: Handler, credentials: Credentials | None = None) -> HttpRunbookStore:
    return HttpRunbookStore(SERVICE, credentials, transport=httpx.MockTransport(handler))


def _raising(error: type[httpx.TransportError]) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        raise error("simulated", request=request)

    return handler


class TestRunbookUrl:
    def test_draft(self) -> None:
        assert runbook_url(SERVICE, DOC, Variant.DRAFT) == (
            f"{SERVICE}/Runbooks(guid'{DOC}')/DraftRunbookVersion/$value"
        )

    def test_published_with_trailing_slash(self) -> None:
        assert runbook_url(SERVICE + "/", DOC, Variant.PUBLISHED) == (
            f"{SERVICE}/Runbooks(guid'{DOC}')/PublishedRunbookVersion/$value"
        )


class TestFetchVersion:
    def test_returns_body(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="workflow Test {}")

        with _store(handler) as store:
            assert store.fetch_version(DOC, Variant.DRAFT) == "workflow Test {}"

        assert "DraftRunbookVersion" in str(seen[0].url)
        assert "authorization" not in seen[0].headers

    def test_sends_basic_auth_with_domain(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="")

        credentials = Credentials(username="svc", password=SecretStr("pw"), domain="CORP")
        with _store(handler, credentials) as store:
            store.fetch_version(DOC, Variant.PUBLISHED)

        token = base64.b64encode(b"CORP\\svc:pw").decode()
        assert seen[0].headers["authorization"] == f"Basic {token}"

    def test_impersonation_sends_no_credentials(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="")

        credentials = Credentials(username="svc", password=SecretStr("pw"), impersonate=True)
        with _store(handler, credentials) as store:
            store.fetch_version(DOC, Variant.DRAFT)

        assert "authorization" not in seen[0].headers

    @pytest.mark.parametrize("status", [401, 404, 500])
    def test_error_status_is_an_application_error(self, status: int) -> None:
        with _store(lambda request: httpx.Response(status)) as store:
            with pytest.raises(ApplicationError) as excinfo:
                store.fetch_version(DOC, Variant.DRAFT)
        assert excinfo.value.status_code == status

    @pytest.mark.parametrize(
        ("transport_error", "expected"),
        [
            (httpx.ConnectError, ConnectionFailure),
            (httpx.ConnectTimeout, ConnectionFailure),
            (httpx.ReadTimeout, RemoteTimeout),
            (httpx.ReadError, ConnectionClosed),
            (httpx.RemoteProtocolError, ConnectionClosed),
        ],
    )
    def test_transport_errors_are_classified(
        self, transport_error: type[httpx.TransportError], expected: type[Exception]
    ) -> None:
        with _store(_raising(transport_error)) as store:
            with pytest.raises(expected):
                store.fetch_version(DOC, Variant.DRAFT)


class TestConstruction:
    def test_requires_service_url(self) -> None:
        with pytest.raises(ValueError, match="service URL"):
            HttpRunbookStore("")

    def test_from_settings(self) -> None:
        settings = Settings(service_url=SERVICE, timeout=5.0)
        store = HttpRunbookStore.from_settings(
            settings, transport=httpx.MockTransport(lambda request: httpx.Response(200, text="ok"))
        )
        try:
            assert store.service_url == SERVICE
            assert store.fetch_version(DOC, Variant.DRAFT) == "ok"
        finally:
            store.close()

    def test_rejects_malformed_service_url(self) -> None:
        with pytest.raises(ValueError, match="Invalid service URL"):
            HttpRunbookStore("http://[::1/svc")


class TestInvalidUrl:
    def test_invalid_request_url_is_an_application_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.InvalidURL("bad document id")

        with _store(handler) as store:
            with pytest.raises(ApplicationError, match="Invalid runbook URL"):
                store.fetch_version(DOC, Variant.DRAFT)

    @pytest.mark.asyncio
    async def test_content_cache_swallows_invalid_url(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.InvalidURL("bad document id")

        with _store(handler) as store:
            assert await ContentCache(store, DOC).get_content() == ""
