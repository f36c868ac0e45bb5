"""Composition root: builds every repository and hands out shared collaborators."""

import asyncio
from dataclasses import dataclass
from typing import MutableMapping, Optional

from .auth import AuthSession, IdentityProvider
from .backend import StoryBackend
from .config import CacheConfig, Config, SafetyConfig
from .repositories import (
    CharacterRepository,
    CoinTransactionRepository,
    FavoritesRepository,
    PrewrittenStoryRepository,
    TemplateRepository,
    UserStoryRepository,
)
from .repository import ErrorPolicy, OrderingPolicy, Repository, RepositoryPolicy
from .repository.cache import Clock, default_clock
from .safety import ContentSafetyValidator
from .utils.logger import get_logger

logger = get_logger("app")


def build_validator(safety: SafetyConfig) -> ContentSafetyValidator:
    if safety.blocklist_path is not None:
        return ContentSafetyValidator.from_json(safety.blocklist_path)
    return ContentSafetyValidator()


def policy_from_config(cache: CacheConfig) -> RepositoryPolicy:
    return RepositoryPolicy(
        error_policy=ErrorPolicy(cache.error_policy),
        ordering=OrderingPolicy(cache.ordering),
    )


@dataclass
class AppContainer:
    config: Config
    backend: StoryBackend
    characters: CharacterRepository
    templates: TemplateRepository
    user_stories: UserStoryRepository
    prewritten: PrewrittenStoryRepository
    favorites: FavoritesRepository
    transactions: CoinTransactionRepository
    validator: ContentSafetyValidator
    auth: Optional[AuthSession] = None

    @classmethod
    def build(
        cls,
        config: Config,
        backend: StoryBackend,
        identity_provider: Optional[IdentityProvider] = None,
        guest_store: Optional[MutableMapping[str, str]] = None,
        clock: Clock = default_clock,
    ) -> "AppContainer":
        cache = config.cache
        policy = policy_from_config(cache)

        container = cls(
            config=config,
            backend=backend,
            characters=CharacterRepository(backend, cache.characters_ttl, policy, clock),
            templates=TemplateRepository(backend, cache.templates_ttl, policy, clock),
            user_stories=UserStoryRepository(backend, cache.user_stories_ttl, policy, clock),
            prewritten=PrewrittenStoryRepository(backend, cache.prewritten_ttl, policy, clock),
            favorites=FavoritesRepository(backend, cache.favorites_ttl, policy, clock),
            transactions=CoinTransactionRepository(backend, cache.transactions_ttl, policy, clock),
            validator=build_validator(config.safety),
        )
        if identity_provider is not None:
            container.auth = AuthSession(identity_provider, backend, container.clear_all_caches, guest_store)
        logger.info("Application container built")
        return container

    @property
    def repositories(self) -> list[Repository]:
        return [
            self.characters,
            self.templates,
            self.user_stories,
            self.prewritten,
            self.favorites,
            self.transactions,
        ]

    def repository(self, name: str) -> Repository:
        for repository in self.repositories:
            if repository.name == name:
                return repository
        raise KeyError(name)

    def clear_all_caches(self) -> None:
        for repository in self.repositories:
            repository.clear()
        logger.info("All caches cleared")

    async def preload_user_data(self, user_id: str, language: str) -> None:
        """Warm every repository the home screen needs. Best effort."""
        loads = {
            "characters": self.characters.get(user_id),
            "templates": self.templates.get(language),
            "user_stories": self.user_stories.get(user_id),
            "prewritten": self.prewritten.get(language),
            "favorites": self.favorites.get(user_id),
            "transactions": self.transactions.get(user_id),
        }
        results = await asyncio.gather(*loads.values(), return_exceptions=True)
        for name, result in zip(loads, results):
            if isinstance(result, BaseException):
                logger.warning(f"Preload of {name} failed: {result}")
            else:
                logger.debug(f"Preloaded {name}: {len(result)} items")
        logger.info(f"Preload finished for user {user_id} ({language})")
