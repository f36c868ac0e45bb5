"""Story templates offered in the gallery."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..decoding import first_of, key, require


class SubscriptionTier(str, Enum):
    FREE = "free"
    PLUS = "plus"
    PRO = "pro"


class TemplateCategory(str, Enum):
    BEDTIME = "Uyku Vakti"
    ADVENTURE = "Macera"
    FAMILY = "Aile"
    FRIENDSHIP = "Dostluk"
    FANTASY = "Fantastik"
    ANIMALS = "Hayvanlar"
    PRINCESS = "Prenses"
    CLASSIC = "Klasik"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "TemplateCategory":
        """Map a category name in any supported locale onto one member."""
        if raw is None:
            return cls.UNKNOWN
        try:
            return cls(raw)
        except ValueError:
            return _LOCALIZED_CATEGORIES.get(raw, cls.UNKNOWN)


_LOCALIZED_CATEGORIES = {
    # en
    "Bedtime": TemplateCategory.BEDTIME,
    "Adventure": TemplateCategory.ADVENTURE,
    "Family": TemplateCategory.FAMILY,
    "Friendship": TemplateCategory.FRIENDSHIP,
    "Fantasy": TemplateCategory.FANTASY,
    "Animals": TemplateCategory.ANIMALS,
    "Princess": TemplateCategory.PRINCESS,
    "Classic": TemplateCategory.CLASSIC,
    # fr
    "Coucher": TemplateCategory.BEDTIME,
    "Aventure": TemplateCategory.ADVENTURE,
    "Famille": TemplateCategory.FAMILY,
    "Amitié": TemplateCategory.FRIENDSHIP,
    "Fantastique": TemplateCategory.FANTASY,
    "Animaux": TemplateCategory.ANIMALS,
    "Princesse": TemplateCategory.PRINCESS,
    "Classique": TemplateCategory.CLASSIC,
    # de
    "Gute Nacht": TemplateCategory.BEDTIME,
    "Abenteuer": TemplateCategory.ADVENTURE,
    "Familie": TemplateCategory.FAMILY,
    "Freundschaft": TemplateCategory.FRIENDSHIP,
    "Fantasie": TemplateCategory.FANTASY,
    "Tiere": TemplateCategory.ANIMALS,
    "Prinzessin": TemplateCategory.PRINCESS,
    "Klassisch": TemplateCategory.CLASSIC,
    # es
    "Hora de Dormir": TemplateCategory.BEDTIME,
    "Aventura": TemplateCategory.ADVENTURE,
    "Familia": TemplateCategory.FAMILY,
    "Amistad": TemplateCategory.FRIENDSHIP,
    "Fantasía": TemplateCategory.FANTASY,
    "Animales": TemplateCategory.ANIMALS,
    "Princesa": TemplateCategory.PRINCESS,
    "Clásico": TemplateCategory.CLASSIC,
}


def _tier(raw: str) -> SubscriptionTier:
    try:
        return SubscriptionTier(raw)
    except ValueError:
        return SubscriptionTier.FREE


@dataclass
class FixedParams:
    genre: str
    tone: str
    age_range: str
    default_minutes: int
    language: str

    @classmethod
    def from_dict(cls, data: dict) -> "FixedParams":
        return cls(
            genre=first_of(data, key("genre", str), default=""),
            tone=first_of(data, key("tone", str), default=""),
            age_range=first_of(data, key("ageRange", str), default=""),
            default_minutes=first_of(data, key("defaultMinutes", int), default=5),
            language=first_of(data, key("language", str), default="tr"),
        )


@dataclass
class CharacterSlot:
    id: str
    role: str
    description: str = ""
    required: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "CharacterSlot":
        return cls(
            id=require(data, "id", str),
            role=first_of(data, key("role", str), default=""),
            description=first_of(data, key("description", str), default=""),
            required=first_of(data, key("required", bool), default=False),
        )


@dataclass
class CharacterSchema:
    min_characters: int = 1
    max_characters: int = 1
    required_slots: list[CharacterSlot] = field(default_factory=list)
    optional_slots: list[CharacterSlot] = field(default_factory=list)

    @property
    def all_slots(self) -> list[CharacterSlot]:
        return self.required_slots + self.optional_slots

    @classmethod
    def from_dict(cls, data: dict) -> "CharacterSchema":
        return cls(
            min_characters=first_of(data, key("minCharacters", int), default=1),
            max_characters=first_of(data, key("maxCharacters", int), default=1),
            required_slots=[CharacterSlot.from_dict(s) for s in data.get("requiredSlots") or []],
            optional_slots=[CharacterSlot.from_dict(s) for s in data.get("optionalSlots") or []],
        )


@dataclass
class Template:
    id: str
    title: str
    category: TemplateCategory
    tier: SubscriptionTier
    fixed_params: FixedParams
    character_schema: CharacterSchema
    description: str = ""
    emoji: str = ""
    is_premium: Optional[bool] = None
    usage_count: Optional[int] = None
    preview_image_url: Optional[str] = None

    @property
    def is_locked(self) -> bool:
        return self.tier is not SubscriptionTier.FREE

    @classmethod
    def from_dict(cls, data: dict) -> "Template":
        tier = first_of(data, key("tier", str), default="free")
        return cls(
            id=require(data, "id", str),
            title=require(data, "title", str),
            description=first_of(data, key("description", str), default=""),
            emoji=first_of(data, key("emoji", str), default=""),
            category=TemplateCategory.parse(key("category", str)(data)),
            tier=_tier(tier),
            fixed_params=FixedParams.from_dict(key("fixedParams", dict)(data) or {}),
            character_schema=CharacterSchema.from_dict(key("characterSchema", dict)(data) or {}),
            is_premium=key("isPremium", bool)(data),
            usage_count=key("usageCount", int)(data),
            preview_image_url=key("previewImageUrl", str)(data),
        )
