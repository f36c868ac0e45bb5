from typing import Optional

from ..models import SubscriptionTier, Template, TemplateCategory
from ..repository import Repository, RepositoryPolicy
from ..repository.cache import Clock, default_clock

TEMPLATES_TTL = 300.0


class TemplateRepository(Repository[Template]):
    """Story templates keyed by language code."""

    def __init__(
        self,
        backend,
        ttl: float = TEMPLATES_TTL,
        policy: Optional[RepositoryPolicy] = None,
        clock: Clock = default_clock,
    ):
        super().__init__("templates", fetch=backend.list_templates, ttl=ttl, policy=policy, clock=clock)

    def by_category(self, language: str, category: TemplateCategory) -> list[Template]:
        return [t for t in self.items(language) if t.category is category]

    def by_tier(self, language: str, tier: SubscriptionTier) -> list[Template]:
        return [t for t in self.items(language) if t.tier is tier]

    async def on_language_changed(self, language: str) -> list[Template]:
        return await self.refresh(language)
