from typing import Optional

from ..models import Story
from ..repository import Insert, Remove, Repository, RepositoryPolicy
from ..repository.cache import Clock, default_clock

FAVORITES_TTL = 180.0


class FavoritesRepository(Repository[Story]):
    """Favorite stories keyed by user id."""

    def __init__(
        self,
        backend,
        ttl: float = FAVORITES_TTL,
        policy: Optional[RepositoryPolicy] = None,
        clock: Clock = default_clock,
    ):
        super().__init__(
            "favorites",
            fetch=backend.list_favorites,
            ttl=ttl,
            mutate=backend.mutate_favorite,
            policy=policy,
            clock=clock,
        )

    def is_favorite(self, user_id: str, story_id: str) -> bool:
        return self.find(user_id, story_id) is not None

    async def add_favorite(self, user_id: str, story: Story) -> None:
        # Already a favorite: the insert is a no-op locally, so skip the round trip too.
        if self.is_favorite(user_id, story.id):
            return
        await self.mutate_optimistically(user_id, Insert(story, position=0))

    async def remove_favorite(self, user_id: str, story_id: str) -> None:
        if not self.is_favorite(user_id, story_id):
            return
        await self.mutate_optimistically(user_id, Remove(story_id))

    def invalidate_for_favorite_change(self, user_id: str) -> None:
        """Favorites were changed elsewhere (another screen or device)."""
        self.invalidate(user_id)
