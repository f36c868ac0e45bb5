"""Identity records exchanged with the identity provider and the account endpoints."""

from dataclasses import dataclass
from typing import Optional

from ..decoding import first_of, key


@dataclass(frozen=True)
class Identity:
    uid: str
    is_anonymous: bool = False
    email: Optional[str] = None
    display_name: Optional[str] = None


@dataclass(frozen=True)
class AuthResult:
    identity: Identity
    # Set by the identity provider only when the account was created by this call.
    is_new_user: bool = False


@dataclass(frozen=True)
class TransferSummary:
    """What the backend moved from a guest session into another account."""

    stories: int = 0
    coins: int = 0
    characters: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.stories or self.coins or self.characters)

    @classmethod
    def from_dict(cls, data: dict) -> "TransferSummary":
        return cls(
            stories=first_of(data, key("stories", int), default=0),
            coins=first_of(data, key("coins", int), default=0),
            characters=first_of(data, key("characters", int), default=0),
        )
