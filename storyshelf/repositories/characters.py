"""Saved characters for the signed-in user."""

from typing import Optional

from ..models import Character
from ..repository import Insert, Remove, Repository, RepositoryPolicy, Update
from ..repository.cache import Clock, default_clock
from ..utils.logger import get_logger

logger = get_logger("repository")

CHARACTERS_TTL = 180.0


class CharacterRepository(Repository[Character]):
    """Characters keyed by user id.

    Creates, updates and deletes show up in the list immediately and are
    rolled back when the backend refuses them.
    """

    def __init__(
        self,
        backend,
        ttl: float = CHARACTERS_TTL,
        policy: Optional[RepositoryPolicy] = None,
        clock: Clock = default_clock,
    ):
        super().__init__(
            "characters",
            fetch=backend.list_characters,
            ttl=ttl,
            mutate=backend.mutate_character,
            policy=policy,
            clock=clock,
        )

    async def get_character(self, user_id: str, character_id: str) -> Optional[Character]:
        cached = self.find(user_id, character_id)
        if cached is not None:
            return cached
        await self.refresh(user_id)
        return self.find(user_id, character_id)

    async def create_character(self, user_id: str, character: Character) -> Character:
        created = await self.mutate_optimistically(user_id, Insert(character, position=None))
        logger.info(f"Character created: {created.id}")
        return created

    async def update_character(self, user_id: str, character: Character) -> Character:
        return await self.mutate_optimistically(user_id, Update(character))

    async def delete_character(self, user_id: str, character_id: str) -> None:
        await self.mutate_optimistically(user_id, Remove(character_id))
        logger.info(f"Character deleted: {character_id}")
