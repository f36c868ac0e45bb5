import json

import httpx
import pytest

from storyshelf.backend import BackendClient
from storyshelf.config import BackendConfig
from storyshelf.errors import (
    AuthError,
    ContentSafetyViolation,
    InsufficientCoinsError,
    NetworkError,
    ServerError,
)
from storyshelf.models import TransferSummary
from storyshelf.repository import Insert, Remove

from conftest import make_character, make_story

CHARACTER = {"id": "c1", "name": "Pamuk", "type": "cat", "createdAt": {"_seconds": 1735689600}}


class Recorder:
    """MockTransport handler that replays queued responses and records requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def make_client(handler, token="secret", max_retries=3):
    sleeps = []

    async def fake_sleep(delay):
        sleeps.append(delay)

    async def token_provider():
        return token

    client = BackendClient(
        "http://backend.test",
        token_provider=token_provider,
        max_retries=max_retries,
        retry_base_delay=1.0,
        transport=httpx.MockTransport(handler),
        sleep=fake_sleep,
    )
    return client, sleeps


class TestReads:
    @pytest.mark.asyncio
    async def test_list_characters_sends_token(self):
        recorder = Recorder(httpx.Response(200, json={"characters": [CHARACTER, {"id": "broken"}]}))
        client, _ = make_client(recorder)

        async with client:
            characters = await client.list_characters("u1")

        assert [c.id for c in characters] == ["c1"]
        assert recorder.requests[0].headers["Authorization"] == "Bearer secret"
        assert recorder.requests[0].url.path == "/api/characters"

    @pytest.mark.asyncio
    async def test_no_token_no_header(self):
        recorder = Recorder(httpx.Response(200, json={"templates": []}))
        client, _ = make_client(recorder, token=None)

        async with client:
            await client.list_templates("en")

        assert "Authorization" not in recorder.requests[0].headers
        assert recorder.requests[0].url.params["language"] == "en"

    @pytest.mark.asyncio
    async def test_user_stories_request_summaries(self):
        recorder = Recorder(httpx.Response(200, json={"stories": [
            {"id": "s1", "type": "user", "createdAt": {"_seconds": 1735689600}, "isSummary": True},
        ]}))
        client, _ = make_client(recorder)

        async with client:
            stories = await client.list_user_stories("u1")

        assert stories[0].is_summary
        assert recorder.requests[0].url.path == "/api/stories/user/u1"
        assert recorder.requests[0].url.params["summary"] == "true"

    @pytest.mark.asyncio
    async def test_transactions_skip_invalid_rows(self):
        recorder = Recorder(httpx.Response(200, json={"success": True, "data": [
            {"id": "tx1", "type": "spent", "amount": 10, "reason": "Story"},
            {"id": "tx2", "type": "stolen", "amount": 10, "reason": "?"},
            {"type": "earned", "amount": 1, "reason": "no id"},
        ]}))
        client, _ = make_client(recorder)

        async with client:
            transactions = await client.list_transactions("u1")

        assert [t.id for t in transactions] == ["tx1"]


class TestRetries:
    @pytest.mark.asyncio
    async def test_get_retries_with_backoff(self):
        recorder = Recorder(
            httpx.Response(503),
            httpx.Response(429),
            httpx.Response(200, json={"favorites": []}),
        )
        client, sleeps = make_client(recorder)

        async with client:
            assert await client.list_favorites("u1") == []

        assert len(recorder.requests) == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        request = httpx.Request("GET", "http://backend.test/api/favorites")
        recorder = Recorder(httpx.ConnectError("connection refused", request=request))
        client, sleeps = make_client(recorder, max_retries=2)

        async with client:
            with pytest.raises(NetworkError):
                await client.list_favorites("u1")

        assert len(recorder.requests) == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_writes_are_not_retried(self):
        recorder = Recorder(httpx.Response(500, json={"message": "database down"}))
        client, sleeps = make_client(recorder)

        async with client:
            with pytest.raises(ServerError) as excinfo:
                await client.mutate_favorite("u1", Insert(make_story("s1")))

        assert excinfo.value.status_code == 500
        assert str(excinfo.value) == "database down"
        assert len(recorder.requests) == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self):
        recorder = Recorder(httpx.Response(404))
        client, sleeps = make_client(recorder)

        async with client:
            with pytest.raises(ServerError):
                await client.get_story("missing")

        assert len(recorder.requests) == 1


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_content_safety_violation(self):
        recorder = Recorder(httpx.Response(400, json={
            "code": "CONTENT_SAFETY_VIOLATION",
            "error": {
                "title": "Not allowed",
                "message": "This topic is not appropriate.",
                "suggestion": "Try a friendship story.",
                "examples": ["A kind dragon"],
                "canRetry": True,
            },
        }))
        client, _ = make_client(recorder)

        async with client:
            with pytest.raises(ContentSafetyViolation) as excinfo:
                await client.request("POST", "/api/stories/generate", json={"prompt": "..."})

        rejection = excinfo.value.rejection
        assert rejection.title == "Not allowed"
        assert rejection.examples == ["A kind dragon"]
        assert str(excinfo.value) == "This topic is not appropriate."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        httpx.Response(402),
        httpx.Response(400, json={"code": "INSUFFICIENT_COINS"}),
    ])
    async def test_insufficient_coins(self, response):
        client, _ = make_client(Recorder(response))

        async with client:
            with pytest.raises(InsufficientCoinsError):
                await client.request("POST", "/api/stories/generate")

    @pytest.mark.asyncio
    async def test_unauthorized(self):
        recorder = Recorder(httpx.Response(401, text="nope"))
        client, sleeps = make_client(recorder)

        async with client:
            with pytest.raises(AuthError):
                await client.list_characters("u1")

        assert sleeps == []


class TestMutations:
    @pytest.mark.asyncio
    async def test_create_character_returns_server_copy(self):
        recorder = Recorder(httpx.Response(201, json={"success": True, "character": CHARACTER}))
        client, _ = make_client(recorder)

        async with client:
            saved = await client.mutate_character("u1", Insert(make_character("local", "Pamuk")))

        assert saved.id == "c1"
        assert recorder.requests[0].method == "POST"
        assert json.loads(recorder.requests[0].content)["name"] == "Pamuk"

    @pytest.mark.asyncio
    async def test_delete_character(self):
        recorder = Recorder(httpx.Response(204))
        client, _ = make_client(recorder)

        async with client:
            assert await client.mutate_character("u1", Remove("c1")) is None

        assert recorder.requests[0].method == "DELETE"
        assert recorder.requests[0].url.path == "/api/characters/c1"

    @pytest.mark.asyncio
    async def test_remove_favorite(self):
        recorder = Recorder(httpx.Response(200, json={"success": True}))
        client, _ = make_client(recorder)

        async with client:
            await client.mutate_favorite("u1", Remove("s1"))

        assert recorder.requests[0].method == "DELETE"
        assert recorder.requests[0].url.path == "/api/favorites/s1"


class TestAccount:
    @pytest.mark.asyncio
    async def test_link_guest_data(self):
        recorder = Recorder(httpx.Response(200, json={
            "success": True,
            "transferred": {"stories": 3, "coins": 50, "characters": 1},
        }))
        client, _ = make_client(recorder)

        async with client:
            summary = await client.link_guest_data("guest-1")

        assert summary == TransferSummary(stories=3, coins=50, characters=1)
        assert json.loads(recorder.requests[0].content) == {"guestUserId": "guest-1"}

    @pytest.mark.asyncio
    async def test_merge_without_success(self):
        recorder = Recorder(httpx.Response(200, json={"success": False}))
        client, _ = make_client(recorder)

        async with client:
            assert await client.merge_guest_sessions("old", "new") is None

        assert json.loads(recorder.requests[0].content) == {"oldGuestId": "old", "newGuestId": "new"}


def test_from_config():
    config = BackendConfig(base_url="http://api.example", max_retries=5, retry_base_delay=0.5)
    client = BackendClient.from_config(config)

    assert client.max_retries == 5
    assert client.retry_base_delay == 0.5
