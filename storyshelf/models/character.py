"""Saved characters (people and pets) reused across stories."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..decoding import first_of, key, require, timestamp
from ..errors import DecodingError


class CharacterCategory(str, Enum):
    PEOPLE = "people"
    PETS = "pets"


class CharacterType(str, Enum):
    CHILD = "child"
    TEEN = "teen"
    ADULT = "adult"
    MOTHER = "mother"
    FATHER = "father"
    SIBLING = "sibling"
    GRANDMOTHER = "grandmother"
    GRANDFATHER = "grandfather"
    DOG = "dog"
    CAT = "cat"
    BIRD = "bird"
    HORSE = "horse"
    RABBIT = "rabbit"
    OTHER_PET = "other_pet"

    @property
    def category(self) -> CharacterCategory:
        if self in _PETS:
            return CharacterCategory.PETS
        return CharacterCategory.PEOPLE

    @property
    def default_gender(self) -> Optional["CharacterGender"]:
        if self in (CharacterType.MOTHER, CharacterType.GRANDMOTHER):
            return CharacterGender.FEMALE
        if self in (CharacterType.FATHER, CharacterType.GRANDFATHER):
            return CharacterGender.MALE
        return None


_PETS = {
    CharacterType.DOG,
    CharacterType.CAT,
    CharacterType.BIRD,
    CharacterType.HORSE,
    CharacterType.RABBIT,
    CharacterType.OTHER_PET,
}


class CharacterRelationship(str, Enum):
    NONE = "none"
    FRIEND = "friend"
    PARTNER = "partner"
    FAMILY_MEMBER = "family_member"


class CharacterGender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    UNSPECIFIED = "unspecified"


def _optional_enum(enum_cls, value):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


@dataclass
class Character:
    name: str
    type: CharacterType
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    relationship: Optional[CharacterRelationship] = None
    gender: Optional[CharacterGender] = None
    age: Optional[int] = None
    description: Optional[str] = None
    times_used: int = 0
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_saved(self) -> bool:
        """Saved characters carry backend ownership data."""
        return self.user_id is not None and self.created_at is not None

    @property
    def category(self) -> CharacterCategory:
        return self.type.category

    @classmethod
    def from_dict(cls, data: dict) -> "Character":
        try:
            character_type = CharacterType(require(data, "type", str))
        except ValueError as e:
            raise DecodingError(str(e)) from e

        return cls(
            id=require(data, "id", str),
            name=first_of(data, key("name", str), default=""),
            type=character_type,
            relationship=_optional_enum(CharacterRelationship, key("relationship", str)(data)),
            gender=_optional_enum(CharacterGender, key("gender", str)(data)),
            age=key("age", int)(data),
            description=key("description", str)(data),
            times_used=first_of(data, key("timesUsed", int), default=0),
            user_id=key("userId", str)(data),
            created_at=timestamp("createdAt")(data),
            updated_at=timestamp("updatedAt")(data),
        )

    def to_dict(self) -> dict:
        payload = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "timesUsed": self.times_used,
        }
        if self.relationship is not None:
            payload["relationship"] = self.relationship.value
        if self.gender is not None:
            payload["gender"] = self.gender.value
        if self.age is not None:
            payload["age"] = self.age
        if self.description is not None:
            payload["description"] = self.description
        return payload
