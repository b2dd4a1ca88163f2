"""Unit tests for the client facade, driven through an in-memory transport."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from doubles import (
    API_TOKEN,
    BASE_URL,
    FakeTransport,
    RecordingSleep,
    json_response,
    page_payload,
    tag_payload,
)
from pydantic import SecretStr

from paperless_client.config import PaperlessConfig, RetryConfig, Settings
from paperless_client.core import (
    CredentialMissingError,
    CredentialStore,
    Endpoint,
    InvalidRequestError,
    MultipartPart,
    PaperlessClient,
    PaperlessDecodeError,
    PaperlessNotFoundError,
    PaperlessServerError,
    PaperlessTransportError,
    PaperlessValidationError,
    RawResponse,
    ResponseShape,
    RetryPolicy,
    TransportErrorKind,
)
from paperless_client.resources import DOCUMENTS, TAGS, TASKS, Tag


if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from paperless_client.core import Request


async def _broken_body() -> AsyncIterator[bytes]:
    yield b"Internal "
    raise ConnectionResetError("connection reset by peer")


def _retrying_client(transport: FakeTransport, sleep: RecordingSleep) -> PaperlessClient:
    return PaperlessClient(
        BASE_URL,
        CredentialStore.with_token(API_TOKEN),
        transport=transport,
        retry=RetryPolicy(max_attempts=3, sleep=sleep),
    )


# ---------------------------------------------------------------------------
# Single calls
# ---------------------------------------------------------------------------


class TestCall:
    """Tests for PaperlessClient.call."""

    async def test_decodes_object(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test a retrieve call returns the decoded model."""
        transport.queue(json_response(tag_payload(7, "inbox")))

        tag = await fake_client.call(TAGS.retrieve, path_params={"id": 7})

        assert isinstance(tag, Tag)
        assert tag.name == "inbox"
        request = transport.requests[0]
        assert request.method == "GET"
        assert str(request.url) == f"{BASE_URL}/api/tags/7/"

    async def test_sends_credentials_and_headers(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test every request carries auth, Accept and User-Agent."""
        transport.queue(json_response(tag_payload(1)))

        await fake_client.call(TAGS.retrieve, path_params={"id": 1})

        headers = transport.requests[0].headers
        assert headers["Authorization"] == f"Token {API_TOKEN}"
        assert headers["Accept"] == "application/json; version=9"
        assert headers["User-Agent"].startswith("paperless-client/")

    async def test_empty_shape_returns_none(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test a delete returns None without decoding."""
        transport.queue(RawResponse.from_content(204))

        assert await fake_client.call(TAGS.destroy, path_params={"id": 1}) is None
        assert transport.requests[0].method == "DELETE"

    async def test_binary_shape_returns_bytes(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test binary endpoints return the raw body."""
        transport.queue(RawResponse.from_content(200, b"\x89PNG", {"Content-Type": "image/png"}))

        body = await fake_client.call(DOCUMENTS.thumbnail, path_params={"id": 3})

        assert body == b"\x89PNG"

    async def test_listing_rejected(self, fake_client: PaperlessClient) -> None:
        """Test call refuses paginated endpoints."""
        with pytest.raises(InvalidRequestError, match="list"):
            await fake_client.call(TAGS.list)

    async def test_json_body(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test a JSON body is sent."""
        transport.queue(json_response(tag_payload(9, "new"), status_code=201))

        tag = await fake_client.call(TAGS.create, json={"name": "new"})

        assert tag.id == 9
        assert transport.bodies[0] == b'{"name":"new"}'

    async def test_per_call_timeout(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test a per-call timeout overrides the client default."""
        transport.queue(json_response(tag_payload(1)), json_response(tag_payload(1)))

        await fake_client.call(TAGS.retrieve, path_params={"id": 1})
        await fake_client.call(TAGS.retrieve, path_params={"id": 1}, timeout=2.5)

        assert transport.requests[0].timeout == PaperlessClient.DEFAULT_TIMEOUT
        assert transport.requests[1].timeout == 2.5

    async def test_multipart_upload(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test a multipart body is streamed to the transport."""
        transport.queue(json_response("task-uuid"))

        task_id = await fake_client.call(
            DOCUMENTS.upload,
            multipart=[
                MultipartPart.file("document", b"%PDF-1.4", filename="a.pdf"),
                MultipartPart.field("title", "Invoice"),
            ],
        )

        assert task_id == "task-uuid"
        body = transport.bodies[0]
        assert b'name="document"; filename="a.pdf"' in body
        assert b"%PDF-1.4" in body
        assert b'name="title"\r\n\r\nInvoice' in body

    async def test_path_params_validated_before_sending(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test a missing placeholder fails without any request."""
        with pytest.raises(InvalidRequestError):
            await fake_client.call(TAGS.retrieve)

        assert transport.requests == []


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailures:
    """Tests for error mapping inside the pipeline."""

    async def test_error_status_is_mapped_and_closed(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test a 404 raises NotFound and releases the response."""
        transport.queue(json_response({"detail": "Not found."}, status_code=404))

        with pytest.raises(PaperlessNotFoundError) as exc_info:
            await fake_client.call(TAGS.retrieve, path_params={"id": 99})

        assert exc_info.value.url == f"{BASE_URL}/api/tags/99/"
        assert transport.responses[0].is_closed

    async def test_validation_error(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test a 400 with field errors is a validation error."""
        transport.queue(json_response({"name": ["This field is required."]}, status_code=400))

        with pytest.raises(PaperlessValidationError) as exc_info:
            await fake_client.call(TAGS.create, json={})

        assert exc_info.value.errors == {"name": ["This field is required."]}

    async def test_success_response_closed_after_decode(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test successful responses are released too."""
        transport.queue(json_response(tag_payload(1)))

        await fake_client.call(TAGS.retrieve, path_params={"id": 1})

        assert transport.responses[0].is_closed

    async def test_decode_failure(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test a 2xx with an unexpected body is a decode error."""
        transport.queue(json_response({"unexpected": True}))

        with pytest.raises(PaperlessDecodeError):
            await fake_client.call(TAGS.retrieve, path_params={"id": 1})

    async def test_foreign_transport_errors_translated(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test OSErrors from a custom transport become transport errors."""
        transport.queue(ConnectionRefusedError("refused"))

        with pytest.raises(PaperlessTransportError) as exc_info:
            await fake_client.call(TAGS.retrieve, path_params={"id": 1})

        assert exc_info.value.transport_kind is TransportErrorKind.CONNECT
        assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)

    async def test_broken_error_body_translated(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test a failure while reading an error body becomes a transport error."""
        response = RawResponse(500, {"Content-Type": "text/plain"}, stream=_broken_body())
        transport.queue(response)

        with pytest.raises(PaperlessTransportError) as exc_info:
            await fake_client.call(TAGS.retrieve, path_params={"id": 1})

        assert exc_info.value.transport_kind is TransportErrorKind.CONNECT
        assert isinstance(exc_info.value.__cause__, ConnectionResetError)
        assert response.is_closed

    async def test_broken_error_body_is_retried(
        self,
        transport: FakeTransport,
        sleep: RecordingSleep,
    ) -> None:
        """Test a failed error-body read goes through the retry table."""
        transport.queue(
            RawResponse(503, stream=_broken_body()),
            json_response(tag_payload(1)),
        )

        async with _retrying_client(transport, sleep) as client:
            tag = await client.call(TAGS.retrieve, path_params={"id": 1})

        assert tag.id == 1
        assert len(transport.requests) == 2

    async def test_missing_credentials(self, transport: FakeTransport) -> None:
        """Test a client without credentials fails before sending."""
        client = PaperlessClient(BASE_URL, None, transport=transport)

        with pytest.raises(CredentialMissingError):
            await client.call(TAGS.retrieve, path_params={"id": 1})

        assert transport.requests == []


# ---------------------------------------------------------------------------
# Retries
# ---------------------------------------------------------------------------


class TestRetries:
    """Tests for the retry policy inside the pipeline."""

    async def test_get_is_retried(self, transport: FakeTransport, sleep: RecordingSleep) -> None:
        """Test an idempotent request is retried after a server error."""
        transport.queue(
            json_response({}, status_code=503),
            PaperlessTransportError(transport_kind=TransportErrorKind.TIMEOUT),
            json_response(tag_payload(1)),
        )
        client = _retrying_client(transport, sleep)

        tag = await client.call(TAGS.retrieve, path_params={"id": 1})

        assert tag.id == 1
        assert len(transport.requests) == 3
        assert sleep.delays == [0.5, 1.0]

    async def test_post_is_not_retried(
        self,
        transport: FakeTransport,
        sleep: RecordingSleep,
    ) -> None:
        """Test a non-idempotent request makes a single attempt."""
        transport.queue(json_response({}, status_code=503))
        client = _retrying_client(transport, sleep)

        with pytest.raises(PaperlessServerError):
            await client.call(TAGS.create, json={"name": "x"})

        assert len(transport.requests) == 1

    async def test_declared_idempotent_post_is_retried(
        self,
        transport: FakeTransport,
        sleep: RecordingSleep,
    ) -> None:
        """Test an explicit idempotency declaration enables retries."""
        transport.queue(json_response({}, status_code=502), json_response({"result": "OK"}))
        client = _retrying_client(transport, sleep)

        result = await client.call(TASKS.acknowledge, json={"tasks": [1]})

        assert result == {"result": "OK"}
        assert len(transport.requests) == 2

    async def test_not_found_is_not_retried(
        self,
        transport: FakeTransport,
        sleep: RecordingSleep,
    ) -> None:
        """Test client errors fail immediately even for GET."""
        transport.queue(json_response({}, status_code=404))
        client = _retrying_client(transport, sleep)

        with pytest.raises(PaperlessNotFoundError):
            await client.call(TAGS.retrieve, path_params={"id": 1})

        assert len(transport.requests) == 1

    async def test_one_shot_body_is_not_retried(
        self,
        transport: FakeTransport,
        sleep: RecordingSleep,
    ) -> None:
        """Test a body that cannot be replayed is sent once."""

        async def source():  # noqa: ANN202
            yield b"data"

        endpoint = Endpoint("PUT", "/api/upload/", ResponseShape.EMPTY, idempotent=True)
        transport.queue(json_response({}, status_code=503))
        client = _retrying_client(transport, sleep)

        with pytest.raises(PaperlessServerError):
            await client.call(
                endpoint,
                multipart=[MultipartPart.file("document", source(), filename="a")],
            )

        assert len(transport.requests) == 1


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


class TestListings:
    """Tests for paginated endpoints."""

    async def test_list_walks_all_pages(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test list follows next links until the end."""
        next_url = f"{BASE_URL}/api/tags/?page=2&page_size=2"
        transport.queue(
            json_response(
                page_payload([tag_payload(1), tag_payload(2)], count=3, next_url=next_url)
            ),
            json_response(page_payload([tag_payload(3)], count=3)),
        )

        tags = await fake_client.list(TAGS.list, query={"page_size": 2}).collect()

        assert [t.id for t in tags] == [1, 2, 3]
        assert transport.requests[0].url.query == b"page_size=2"
        assert str(transport.requests[1].url) == next_url
        assert transport.requests[1].headers["Authorization"] == f"Token {API_TOKEN}"

    async def test_list_is_lazy(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test no request is made until iteration starts."""
        fake_client.list(TAGS.list)

        assert transport.requests == []

    async def test_list_rejects_non_listing(self, fake_client: PaperlessClient) -> None:
        """Test list refuses object endpoints."""
        with pytest.raises(InvalidRequestError):
            fake_client.list(TAGS.retrieve)

    async def test_cursor_rebased_onto_base_origin(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test a next link with a foreign host is fetched from our own origin."""
        transport.queue(
            json_response(
                page_payload(
                    [tag_payload(1)],
                    count=2,
                    next_url="https://internal:8443/api/tags/?page=2",
                )
            ),
            json_response(page_payload([tag_payload(2)], count=2)),
        )

        await fake_client.list(TAGS.list).collect()

        assert str(transport.requests[1].url) == f"{BASE_URL}/api/tags/?page=2"

    async def test_relative_cursor(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test a relative next link is resolved against the base URL."""
        transport.queue(json_response(page_payload([], count=0)))
        page = await fake_client.fetch_page(TAGS.list)
        transport.queue(json_response(page_payload([], count=0)))

        await fake_client.fetch_page(TAGS.list, cursor="/api/tags/?page=3")

        assert page.count == 0
        assert str(transport.requests[1].url) == f"{BASE_URL}/api/tags/?page=3"

    async def test_next_and_previous_page(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test stepping through pages explicitly."""
        page_1 = f"{BASE_URL}/api/tags/?page=1"
        page_2 = f"{BASE_URL}/api/tags/?page=2"
        transport.queue(
            json_response(page_payload([tag_payload(1)], count=2, next_url=page_2)),
            json_response(page_payload([tag_payload(2)], count=2, previous_url=page_1)),
            json_response(page_payload([tag_payload(1)], count=2, next_url=page_2)),
        )

        first = await fake_client.fetch_page(TAGS.list)
        second = await fake_client.next_page(TAGS.list, first)
        assert second is not None
        back = await fake_client.previous_page(TAGS.list, second)

        assert back is not None
        assert [t.id for t in back.results] == [1]
        assert await fake_client.next_page(TAGS.list, second) is None
        assert await fake_client.previous_page(TAGS.list, first) is None
        assert len(transport.requests) == 3

    async def test_fetch_page_rejects_non_listing(self, fake_client: PaperlessClient) -> None:
        """Test fetch_page refuses object endpoints."""
        with pytest.raises(InvalidRequestError):
            await fake_client.fetch_page(TAGS.retrieve)


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------


class TestStream:
    """Tests for streamed downloads."""

    async def test_stream_yields_body_and_closes(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test the body can be streamed and is closed on exit."""
        transport.queue(
            RawResponse.from_content(200, b"%PDF-1.7", {"Content-Type": "application/pdf"})
        )

        async with fake_client.stream(DOCUMENTS.download, path_params={"id": 1}) as response:
            chunks = [chunk async for chunk in response.aiter_bytes()]

        assert b"".join(chunks) == b"%PDF-1.7"
        assert response.is_closed

    async def test_stream_closes_on_exception(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test the response is released when the consumer fails."""
        transport.queue(RawResponse.from_content(200, b"data"))
        msg = "consumer failed"

        with pytest.raises(RuntimeError, match=msg):
            async with fake_client.stream(DOCUMENTS.download, path_params={"id": 1}):
                raise RuntimeError(msg)

        assert transport.responses[0].is_closed

    async def test_stream_maps_errors(
        self,
        fake_client: PaperlessClient,
        transport: FakeTransport,
    ) -> None:
        """Test error statuses raise before anything is yielded."""
        transport.queue(json_response({"detail": "Not found."}, status_code=404))

        with pytest.raises(PaperlessNotFoundError):
            async with fake_client.stream(DOCUMENTS.download, path_params={"id": 1}):
                pytest.fail("should not be reached")


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:
    """Tests for construction and closing."""

    async def test_close_clears_credentials(self, transport: FakeTransport) -> None:
        """Test closing scrubs the credentials but leaves a borrowed transport open."""
        credentials = CredentialStore.with_token(API_TOKEN)
        client = PaperlessClient(BASE_URL, credentials, transport=transport)

        await client.close()

        assert credentials.is_cleared
        assert not transport.closed

    async def test_owned_transport_closed(self) -> None:
        """Test a transport the client created is closed with it."""
        client = PaperlessClient(BASE_URL, API_TOKEN)
        inner = client._transport  # noqa: SLF001

        async with client:
            pass

        assert inner._client.is_closed  # type: ignore[attr-defined]  # noqa: SLF001

    async def test_token_string_accepted(self, transport: FakeTransport) -> None:
        """Test a bare token string becomes a token store."""
        transport.queue(json_response(tag_payload(1)))
        client = PaperlessClient(BASE_URL + "/", "plain-token", transport=transport)

        await client.call(TAGS.retrieve, path_params={"id": 1})

        assert client.base_url == BASE_URL
        assert transport.requests[0].headers["Authorization"] == "Token plain-token"

    def test_repr_hides_token(self, transport: FakeTransport) -> None:
        """Test the repr never shows the secret."""
        client = PaperlessClient(BASE_URL, API_TOKEN, transport=transport)

        assert API_TOKEN not in repr(client)

    async def test_from_settings(self, transport: FakeTransport) -> None:
        """Test a client built from settings uses their values."""
        settings = Settings(
            paperless=PaperlessConfig(
                url="http://docs.example:8000/",
                token=SecretStr("settings-token"),
                api_version=7,
                timeout=12.0,
                headers={"X-Tenant": "home"},
            ),
            retry=RetryConfig(enabled=True, max_attempts=4),
        )
        transport.queue(json_response(tag_payload(1)))

        client = PaperlessClient.from_settings(settings, transport=transport)
        await client.call(TAGS.retrieve, path_params={"id": 1})

        request: Request = transport.requests[0]
        assert str(request.url) == "http://docs.example:8000/api/tags/1/"
        assert request.headers["Authorization"] == "Token settings-token"
        assert request.headers["Accept"] == "application/json; version=7"
        assert request.headers["X-Tenant"] == "home"
        assert request.timeout == 12.0
        assert client.retry.max_attempts == 4

        await client.close()
        assert not transport.closed
