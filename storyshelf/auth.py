"""Authentication session on top of an identity provider.

Guest data is transferred into an account only when that account was created
by the current flow. Signing into an existing account never pulls guest data
in, otherwise one guest wallet could be replayed into any number of accounts.
"""

from dataclasses import dataclass
from typing import Any, Callable, MutableMapping, Optional, Protocol

from .backend import StoryBackend
from .errors import InvalidCredentialsError
from .models import AuthResult, Identity, TransferSummary
from .utils.logger import get_logger
from .validation import validate_sign_up

logger = get_logger("auth")

DEVICE_GUEST_ID_KEY = "device_guest_user_id"


class IdentityProvider(Protocol):
    def current_identity(self) -> Optional[Identity]: ...

    async def id_token(self) -> Optional[str]: ...

    async def sign_in_anonymously(self) -> AuthResult: ...

    async def sign_in_with_password(self, email: str, password: str) -> AuthResult: ...

    async def sign_in_with_credential(self, credential: Any) -> AuthResult: ...

    async def create_account(self, email: str, password: str, name: str) -> AuthResult: ...

    async def sign_out(self) -> None: ...

    async def delete_account(self) -> None: ...


@dataclass
class SessionOutcome:
    result: AuthResult
    transfer: Optional[TransferSummary] = None

    @property
    def identity(self) -> Identity:
        return self.result.identity


class AuthSession:
    def __init__(
        self,
        provider: IdentityProvider,
        backend: StoryBackend,
        clear_caches: Callable[[], None],
        guest_store: Optional[MutableMapping[str, str]] = None,
    ):
        self.provider = provider
        self.backend = backend
        self._clear_caches = clear_caches
        self.guest_store: MutableMapping[str, str] = guest_store if guest_store is not None else {}

    @property
    def current_identity(self) -> Optional[Identity]:
        return self.provider.current_identity()

    async def token(self) -> Optional[str]:
        return await self.provider.id_token()

    async def sign_in(self, email: str, password: str) -> SessionOutcome:
        """Sign into an existing account. Guest data stays with the guest."""
        logger.info(f"Attempting sign in: {email}")
        result = await self.provider.sign_in_with_password(email, password)
        self._clear_caches()
        logger.success(f"Signed in: {result.identity.uid}")
        return SessionOutcome(result)

    async def sign_up(
        self, email: str, password: str, name: str, confirm_password: Optional[str] = None
    ) -> SessionOutcome:
        """Create an account, carrying any guest data over to it.

        Raises:
            InvalidCredentialsError: the email or password failed local checks.
                Nothing is sent to the identity provider in that case.
        """
        checked = validate_sign_up(email, password, confirm_password)
        if not checked.is_valid:
            logger.warning(f"Sign up rejected: {checked.reason}")
            raise InvalidCredentialsError(checked)

        guest_uid = self._capture_guest()
        result = await self.provider.create_account(checked.text, password, name)
        logger.success(f"Account created: {result.identity.uid}")

        transfer = None
        if guest_uid is not None:
            transfer = await self._link(guest_uid)
        return SessionOutcome(result, transfer)

    async def sign_in_with_credential(self, credential: Any) -> SessionOutcome:
        guest_uid = self._capture_guest()
        result = await self.provider.sign_in_with_credential(credential)
        logger.info(f"Credential sign in: {result.identity.uid} (new user: {result.is_new_user})")

        transfer = None
        if guest_uid is None:
            self._clear_caches()
        elif result.is_new_user:
            transfer = await self._link(guest_uid)
        else:
            logger.warning(f"Existing account {result.identity.uid}: guest data from {guest_uid} is not transferred")
            self._clear_caches()
        return SessionOutcome(result, transfer)

    async def continue_as_guest(self) -> SessionOutcome:
        saved_guest_id = self.guest_store.get(DEVICE_GUEST_ID_KEY)
        result = await self.provider.sign_in_anonymously()
        new_guest_id = result.identity.uid

        transfer = None
        if saved_guest_id and saved_guest_id != new_guest_id:
            logger.info(f"Merging guest sessions: {saved_guest_id} -> {new_guest_id}")
            transfer = await self._merge(saved_guest_id, new_guest_id)

        self.guest_store[DEVICE_GUEST_ID_KEY] = new_guest_id
        return SessionOutcome(result, transfer)

    async def sign_out(self) -> None:
        identity = self.provider.current_identity()
        if identity is not None and identity.is_anonymous:
            # Kept so a later guest session can reclaim this one's data.
            self.guest_store[DEVICE_GUEST_ID_KEY] = identity.uid
            logger.info(f"Saved device guest id for later restore: {identity.uid}")

        await self.provider.sign_out()
        self._clear_caches()
        logger.info("Signed out, all caches cleared")

    async def delete_account(self) -> None:
        identity = self.provider.current_identity()
        logger.info(f"Deleting account: {identity.uid if identity else 'unknown'}")
        await self.backend.delete_user_data()
        await self.provider.delete_account()
        self._clear_caches()
        logger.info("Account deleted, all caches cleared")

    def _capture_guest(self) -> Optional[str]:
        identity = self.provider.current_identity()
        if identity is not None and identity.is_anonymous:
            return identity.uid
        return None

    async def _link(self, guest_uid: str) -> Optional[TransferSummary]:
        try:
            summary = await self.backend.link_guest_data(guest_uid)
        except Exception as e:
            logger.error(f"Failed to link guest data from {guest_uid}: {e}")
            return None
        return self._after_transfer(summary)

    async def _merge(self, old_guest_id: str, new_guest_id: str) -> Optional[TransferSummary]:
        try:
            summary = await self.backend.merge_guest_sessions(old_guest_id, new_guest_id)
        except Exception as e:
            logger.error(f"Failed to merge guest sessions: {e}")
            return None
        return self._after_transfer(summary)

    def _after_transfer(self, summary: Optional[TransferSummary]) -> Optional[TransferSummary]:
        if summary is None:
            logger.warning("Guest data transfer reported no success")
            return None
        logger.info(
            f"Transferred {summary.stories} stories, {summary.coins} coins, {summary.characters} characters"
        )
        if not summary.is_empty:
            self._clear_caches()
        return summary
