"""HTTP client for the storytelling backend.

The repositories only depend on the ``StoryBackend`` protocol; ``BackendClient``
is the httpx implementation used in production. Reads (GET) are retried with
exponential backoff on transport errors, 5xx and 429. Writes are never
retried automatically because a repeated POST can create duplicates.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Protocol

import httpx

from .config import BackendConfig
from .decoding import decode_many, first_of, key
from .errors import (
    AuthError,
    ContentSafetyViolation,
    InsufficientCoinsError,
    NetworkError,
    ServerError,
    StoryshelfError,
)
from .models import Character, CoinTransaction, Story, Template, TransferSummary
from .repository.delta import Delta, Insert, Remove, Update
from .safety import Rejected
from .utils.logger import get_logger

logger = get_logger("network")

TokenProvider = Callable[[], Awaitable[Optional[str]]]


class StoryBackend(Protocol):
    async def list_characters(self, scope: str) -> list[Character]: ...

    async def mutate_character(self, scope: str, delta: Delta) -> Optional[Character]: ...

    async def list_templates(self, language: str) -> list[Template]: ...

    async def list_user_stories(self, user_id: str, summary: bool = True) -> list[Story]: ...

    async def get_story(self, story_id: str) -> Story: ...

    async def list_prewritten(self, language: str) -> list[Story]: ...

    async def list_favorites(self, scope: str) -> list[Story]: ...

    async def mutate_favorite(self, scope: str, delta: Delta) -> Optional[Story]: ...

    async def list_transactions(self, scope: str) -> list[CoinTransaction]: ...

    async def link_guest_data(self, guest_user_id: str) -> Optional[TransferSummary]: ...

    async def merge_guest_sessions(self, old_guest_id: str, new_guest_id: str) -> Optional[TransferSummary]: ...

    async def delete_user_data(self) -> None: ...


def _collection(body: Any, *names: str) -> list:
    if isinstance(body, list):
        return body
    if not isinstance(body, dict):
        return []
    return first_of(body, *(key(name, list) for name in names), default=[])


class BackendClient:
    def __init__(
        self,
        base_url: str,
        token_provider: Optional[TokenProvider] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self._token_provider = token_provider
        self._sleep = sleep
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        logger.info(f"Backend client initialized with base URL: {base_url}")

    @classmethod
    def from_config(
        cls,
        config: BackendConfig,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "BackendClient":
        return cls(
            base_url=config.base_url,
            token_provider=token_provider,
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_base_delay=config.retry_base_delay,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            NetworkError: no response was received.
            ContentSafetyViolation: the backend rejected user text.
            InsufficientCoinsError: the wallet cannot pay for the action.
            AuthError: the token is missing or was rejected.
            ServerError: any other non-2xx status.
        """
        retries = self.max_retries if method == "GET" else 0
        for attempt in range(retries + 1):
            try:
                return await self._send(method, path, json, params)
            except StoryshelfError as e:
                if not e.retryable or attempt >= retries:
                    raise
                delay = self.retry_base_delay * (2 ** attempt)
                logger.warning(f"Retrying {method} {path} after {delay:.1f}s (attempt {attempt + 2}/{retries + 1}): {e}")
                await self._sleep(delay)
        raise AssertionError("unreachable")

    async def _send(self, method: str, path: str, json: Optional[dict], params: Optional[dict]) -> Any:
        headers = {"Content-Type": "application/json"}
        if self._token_provider is not None:
            token = await self._token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"

        logger.info(f"{method} {path}")
        try:
            response = await self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.TransportError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise NetworkError(str(e) or type(e).__name__) from e

        if response.is_success:
            if not response.content:
                return {}
            return response.json()

        logger.error(f"{response.status_code} - {method} {path}")
        self._raise_for_status(response)

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        code = body.get("code")
        status = response.status_code

        if status == 400 and code == "CONTENT_SAFETY_VIOLATION" and isinstance(body.get("error"), dict):
            rejection = Rejected.from_backend(body["error"])
            logger.warning(f"Content safety violation: {rejection.title or rejection.reason}")
            raise ContentSafetyViolation(rejection)
        if status == 402 or code == "INSUFFICIENT_COINS":
            raise InsufficientCoinsError("Not enough coins")
        if status in (401, 403):
            raise AuthError(f"Request was not authorized (HTTP {status})")
        message = body.get("message") if isinstance(body.get("message"), str) else ""
        raise ServerError(status, message)

    # ------------------------------------------------------------------
    # Characters
    # ------------------------------------------------------------------

    async def list_characters(self, scope: str) -> list[Character]:
        body = await self.request("GET", "/api/characters")
        return decode_many(_collection(body, "characters", "data"), Character.from_dict, "character")

    async def save_character(self, character: Character) -> Character:
        body = await self.request("POST", "/api/characters", json=character.to_dict())
        return Character.from_dict(body["character"])

    async def update_character(self, character: Character) -> Character:
        body = await self.request("PUT", f"/api/characters/{character.id}", json=character.to_dict())
        return Character.from_dict(body["character"])

    async def delete_character(self, character_id: str) -> None:
        await self.request("DELETE", f"/api/characters/{character_id}")

    async def mutate_character(self, scope: str, delta: Delta) -> Optional[Character]:
        if isinstance(delta, Insert):
            return await self.save_character(delta.item)
        if isinstance(delta, Update):
            return await self.update_character(delta.item)
        if isinstance(delta, Remove):
            await self.delete_character(delta.item_id)
            return None
        raise TypeError(f"Unsupported delta: {delta!r}")

    # ------------------------------------------------------------------
    # Templates and stories
    # ------------------------------------------------------------------

    async def list_templates(self, language: str) -> list[Template]:
        body = await self.request("GET", "/api/templates", params={"language": language})
        return decode_many(_collection(body, "templates", "data"), Template.from_dict, "template")

    async def list_user_stories(self, user_id: str, summary: bool = True) -> list[Story]:
        params = {"summary": "true"} if summary else None
        body = await self.request("GET", f"/api/stories/user/{user_id}", params=params)
        return decode_many(_collection(body, "stories", "data"), Story.from_dict, "story")

    async def get_story(self, story_id: str) -> Story:
        body = await self.request("GET", f"/api/stories/{story_id}")
        return Story.from_dict(first_of(body, key("story", dict), key("data", dict), default=body))

    async def list_prewritten(self, language: str) -> list[Story]:
        body = await self.request("GET", "/api/stories/prewritten", params={"language": language})
        return decode_many(_collection(body, "stories", "data"), Story.from_dict, "story")

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    async def list_favorites(self, scope: str) -> list[Story]:
        body = await self.request("GET", "/api/favorites")
        return decode_many(_collection(body, "favorites", "data"), Story.from_dict, "favorite")

    async def mutate_favorite(self, scope: str, delta: Delta) -> Optional[Story]:
        if isinstance(delta, Insert):
            await self.request("POST", f"/api/favorites/{delta.item.id}")
            return None
        if isinstance(delta, Remove):
            await self.request("DELETE", f"/api/favorites/{delta.item_id}")
            return None
        raise TypeError(f"Favorites cannot apply {type(delta).__name__}")

    # ------------------------------------------------------------------
    # Coins
    # ------------------------------------------------------------------

    async def list_transactions(self, scope: str) -> list[CoinTransaction]:
        body = await self.request("GET", "/api/coins/transactions")
        return decode_many(_collection(body, "data", "transactions"), CoinTransaction.from_dict, "transaction")

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def link_guest_data(self, guest_user_id: str) -> Optional[TransferSummary]:
        body = await self.request("POST", "/api/user/link-guest-data", json={"guestUserId": guest_user_id})
        if not body.get("success") or not isinstance(body.get("transferred"), dict):
            return None
        return TransferSummary.from_dict(body["transferred"])

    async def merge_guest_sessions(self, old_guest_id: str, new_guest_id: str) -> Optional[TransferSummary]:
        body = await self.request(
            "POST",
            "/api/user/merge-guest-sessions",
            json={"oldGuestId": old_guest_id, "newGuestId": new_guest_id},
        )
        if not body.get("success") or not isinstance(body.get("merged"), dict):
            return None
        return TransferSummary.from_dict(body["merged"])

    async def delete_user_data(self) -> None:
        await self.request("DELETE", "/api/user/delete")
