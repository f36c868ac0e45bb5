from .characters import CharacterRepository
from .favorites import FavoritesRepository
from .stories import PrewrittenStoryRepository, UserStoryRepository
from .templates import TemplateRepository
from .transactions import CoinTransactionRepository

__all__ = [
    "CharacterRepository",
    "CoinTransactionRepository",
    "FavoritesRepository",
    "PrewrittenStoryRepository",
    "TemplateRepository",
    "UserStoryRepository",
]
