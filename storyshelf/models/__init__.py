from .story import (
    Illustration,
    Story,
    StoryPage,
    StoryType,
)
from .character import (
    Character,
    CharacterCategory,
    CharacterGender,
    CharacterRelationship,
    CharacterType,
)
from .coins import (
    CoinBreakdown,
    CoinTransaction,
    TransactionType,
)
from .account import (
    AuthResult,
    Identity,
    TransferSummary,
)
from .template import (
    CharacterSchema,
    CharacterSlot,
    FixedParams,
    SubscriptionTier,
    Template,
    TemplateCategory,
)

__all__ = [
    "AuthResult",
    "Identity",
    "TransferSummary",
    "Illustration",
    "Story",
    "StoryPage",
    "StoryType",
    "Character",
    "CharacterCategory",
    "CharacterGender",
    "CharacterRelationship",
    "CharacterType",
    "CoinBreakdown",
    "CoinTransaction",
    "TransactionType",
    "CharacterSchema",
    "CharacterSlot",
    "FixedParams",
    "SubscriptionTier",
    "Template",
    "TemplateCategory",
]
