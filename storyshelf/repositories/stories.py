"""The user's own stories and the prewritten library."""

from typing import Optional

from ..models import Story
from ..repository import Insert, Remove, Repository, RepositoryPolicy, Update
from ..repository.cache import Clock, default_clock
from ..utils.logger import get_logger

logger = get_logger("repository")

USER_STORIES_TTL = 180.0
PREWRITTEN_TTL = 300.0
RECENT_LIMIT = 5


def newest_first(stories: list[Story]) -> list[Story]:
    return sorted(stories, key=lambda s: s.created_at, reverse=True)


class UserStoryRepository(Repository[Story]):
    """Stories keyed by user id, newest first.

    The list endpoint returns summaries; ``get_story`` upgrades a cached
    summary to the full record on demand.
    """

    def __init__(
        self,
        backend,
        ttl: float = USER_STORIES_TTL,
        policy: Optional[RepositoryPolicy] = None,
        clock: Clock = default_clock,
    ):
        super().__init__(
            "user_stories",
            fetch=lambda user_id: backend.list_user_stories(user_id, summary=True),
            ttl=ttl,
            policy=policy,
            clock=clock,
            transform=newest_first,
        )
        self._backend = backend

    async def recent(self, user_id: str, limit: int = RECENT_LIMIT, force_refresh: bool = False) -> list[Story]:
        stories = await self.get(user_id, force_refresh=force_refresh)
        return stories[:limit]

    async def get_story(self, user_id: str, story_id: str, force_refresh: bool = False) -> Story:
        cached = self.find(user_id, story_id)
        if cached is not None and not cached.is_summary and not force_refresh:
            logger.debug(f"Using full story from cache: {story_id}")
            return cached

        logger.info(f"Fetching full story details from backend: {story_id}")
        story = await self._backend.get_story(story_id)
        self.apply_local(user_id, Update(story))
        return story

    def add_story(self, user_id: str, story: Story) -> None:
        """Record a story the backend has just created."""
        self.apply_local(user_id, Insert(story, position=0), mark_fresh=True)
        logger.info(f"Story added to cache: {story.id}")

    def remove_story(self, user_id: str, story_id: str) -> None:
        self.apply_local(user_id, Remove(story_id))
        logger.info(f"Story removed from cache: {story_id}")

    def update_story(self, user_id: str, story: Story) -> None:
        self.apply_local(user_id, Update(story))


class PrewrittenStoryRepository(Repository[Story]):
    """Library stories keyed by language code."""

    def __init__(
        self,
        backend,
        ttl: float = PREWRITTEN_TTL,
        policy: Optional[RepositoryPolicy] = None,
        clock: Clock = default_clock,
    ):
        super().__init__("prewritten", fetch=backend.list_prewritten, ttl=ttl, policy=policy, clock=clock)
        self._backend = backend

    async def by_tag(self, language: str, tag: str) -> list[Story]:
        return [s for s in await self.get(language) if tag in (s.tags or [])]

    async def by_category(self, language: str, category: str) -> list[Story]:
        wanted = category.lower()
        return [s for s in await self.get(language) if s.category.lower() == wanted]

    async def get_story(self, language: str, story_id: str) -> Story:
        for story in await self.get(language):
            if story.id == story_id:
                logger.debug(f"Story found in cache: {story_id}")
                return story
        logger.info(f"Fetching story from backend: {story_id}")
        return await self._backend.get_story(story_id)
