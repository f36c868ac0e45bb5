"""Story records as returned by the stories, prewritten and favorites endpoints.

Field fallbacks, in priority order:

- ``title``: ``title`` -> ``category`` -> ``metadata.genre`` -> "Story"
- ``language``: ``language`` -> "tr" (old user stories carry none)
- ``pages``: ``pages`` -> ``content`` as a single page -> []
- ``illustrations``: ``pageImages`` -> ``illustrations``
- ``category``: ``category`` -> ``metadata.genre`` -> "all"
- ``estimated_minutes``: ``estimatedMinutes`` -> 5
- ``updated_at``: ``updatedAt`` -> ``createdAt``
- page ``text``: ``text`` -> ``scene``; page image: ``imageUrl`` -> ``previewImageUrl``
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..decoding import first_of, key, nested, require, timestamp
from ..errors import DecodingError


class StoryType(str, Enum):
    USER = "user"
    PREWRITTEN = "prewritten"


@dataclass
class StoryPage:
    page_number: int
    text: str
    image_url: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_dict(cls, data: dict) -> "StoryPage":
        return cls(
            id=first_of(data, key("id", str), default=str(uuid.uuid4())),
            page_number=require(data, "pageNumber", int),
            text=first_of(data, key("text", str), key("scene", str)),
            image_url=first_of(data, key("imageUrl", str), key("previewImageUrl", str), default=None),
        )


@dataclass
class Illustration:
    page_number: int
    image_url: str
    scene: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_dict(cls, data: dict) -> "Illustration":
        return cls(
            id=first_of(data, key("id", str), default=str(uuid.uuid4())),
            page_number=require(data, "pageNumber", int),
            image_url=require(data, "imageUrl", str),
            scene=first_of(data, key("scene", str), key("text", str)),
        )


def _pages(data: dict) -> list[StoryPage]:
    pages = data.get("pages")
    if isinstance(pages, list):
        return [StoryPage.from_dict(p) for p in pages if isinstance(p, dict)]
    content = data.get("content")
    if isinstance(content, str):
        return [StoryPage(page_number=1, text=content)]
    return []


def _illustrations(data: dict) -> Optional[list[Illustration]]:
    raw = first_of(data, key("pageImages", list), key("illustrations", list), default=None)
    if raw is None:
        return None
    return [Illustration.from_dict(i) for i in raw if isinstance(i, dict)]


@dataclass
class Story:
    id: str
    type: StoryType
    title: str
    created_at: datetime
    updated_at: datetime
    user_id: Optional[str] = None
    language: str = "tr"
    pages: list[StoryPage] = field(default_factory=list)
    cover_image_url: Optional[str] = None
    audio_url: Optional[str] = None
    is_illustrated: bool = False
    illustrations: Optional[list[Illustration]] = None
    category: str = "all"
    tags: Optional[list[str]] = None
    estimated_minutes: int = 5
    is_favorite: bool = False
    views: Optional[int] = None
    favorites: Optional[int] = None
    is_summary: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "Story":
        try:
            story_type = StoryType(require(data, "type", str))
        except ValueError as e:
            raise DecodingError(str(e)) from e

        created_at = first_of(data, timestamp("createdAt"))
        return cls(
            id=require(data, "id", str),
            type=story_type,
            user_id=key("userId", str)(data),
            title=first_of(
                data, key("title", str), key("category", str), nested("metadata", "genre", str),
                default="Story",
            ),
            language=first_of(data, key("language", str), default="tr"),
            pages=_pages(data),
            cover_image_url=key("coverImageUrl", str)(data),
            audio_url=key("audioUrl", str)(data),
            is_illustrated=first_of(data, key("isIllustrated", bool), default=False),
            illustrations=_illustrations(data),
            category=first_of(data, key("category", str), nested("metadata", "genre", str), default="all"),
            tags=key("tags", list)(data),
            estimated_minutes=first_of(data, key("estimatedMinutes", int), default=5),
            is_favorite=first_of(data, key("isFavorite", bool), default=False),
            views=key("views", int)(data),
            favorites=key("favorites", int)(data),
            is_summary=first_of(data, key("isSummary", bool), default=False),
            created_at=created_at,
            updated_at=first_of(data, timestamp("updatedAt"), default=created_at),
        )

    @property
    def text(self) -> str:
        return "\n\n".join(page.text for page in sorted(self.pages, key=lambda p: p.page_number))
