"""Client-side content-safety check for story prompts.

Rejection is an expected outcome, so ``validate`` returns ``Accepted`` or
``Rejected`` instead of raising. The backend runs its own moderation; this
check only stops obviously unsuitable input before a paid request is sent.

Blocklists are keyed by language code, plus a ``"global"`` list applied to
every language. Entries shorter than four characters must match a whole word;
longer entries match anywhere in the text.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .utils.logger import get_logger

logger = get_logger("safety")

GLOBAL = "global"
SHORT_WORD_LIMIT = 4

REJECTION_MESSAGES = {
    "tr": "Bu konu uygun değildir. Lütfen güvenli ve çocuk dostu içerikler kullanın.",
    "en": "This topic is not appropriate. Please use safe and child-friendly content.",
    "es": "Este tema no es apropiado. Por favor, use contenido seguro y apto para niños.",
    "de": "Dieses Thema ist nicht angemessen. Bitte verwenden Sie sichere und kinderfreundliche Inhalte.",
    "fr": "Ce sujet n'est pas approprié. Veuillez utiliser un contenu sûr et adapté aux enfants.",
    "it": "Questo argomento non è appropriato. Si prega di utilizzare contenuti sicuri e adatti ai bambini.",
    "pt": "Este tema não é apropriado. Por favor, use conteúdo seguro e adequado para crianças.",
    "ru": "Эта тема неуместна. Пожалуйста, используйте безопасный и подходящий для детей контент.",
    "zh": "此主题不合适。请使用安全且适合儿童的内容。",
    "ja": "このトピックは適切ではありません。安全で子供向けのコンテンツを使用してください。",
}

SUGGESTIONS = {
    "tr": "Macera, dostluk veya doğa temalı bir konu deneyin.",
    "en": "Try a gentle adventure, friendship or nature theme.",
    "es": "Prueba un tema de aventura, amistad o naturaleza.",
    "de": "Versuchen Sie ein Abenteuer-, Freundschafts- oder Naturthema.",
    "fr": "Essayez un thème d'aventure, d'amitié ou de nature.",
}

EXAMPLE_TOPICS = {
    "tr": [
        "Bir sincabın orman maceraları",
        "Dost canavar ile arkadaşlık",
        "Cesur kızın büyük hayali",
        "Denizin derinliklerinde keşif",
        "Bir ejderhanın dostluk hikayesi",
    ],
    "en": [
        "A squirrel's forest adventure",
        "Friendship with a friendly monster",
        "A brave girl's big dream",
        "Exploration in the deep ocean",
        "A dragon's friendship story",
    ],
    "es": [
        "La aventura de una ardilla en el bosque",
        "Amistad con un monstruo amigable",
        "El gran sueño de una niña valiente",
        "Exploración en el océano profundo",
        "La historia de amistad de un dragón",
    ],
    "de": [
        "Ein Eichhörnchens Waldabenteuer",
        "Freundschaft mit einem freundlichen Monster",
        "Der große Traum eines mutigen Mädchens",
        "Erkundung in der Tiefsee",
        "Die Freundschaftsgeschichte eines Drachen",
    ],
    "fr": [
        "L'aventure d'un écureuil dans la forêt",
        "Amitié avec un monstre amical",
        "Le grand rêve d'une fille courageuse",
        "Exploration dans les profondeurs de l'océan",
        "L'histoire d'amitié d'un dragon",
    ],
}


def example_topics(language: str) -> list[str]:
    if language in EXAMPLE_TOPICS:
        return list(EXAMPLE_TOPICS[language])
    return EXAMPLE_TOPICS["en"][:3]


@dataclass(frozen=True)
class Accepted:
    text: str

    @property
    def is_valid(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    reason: str
    suggestion: str = ""
    examples: list[str] = field(default_factory=list)
    detected_keyword: Optional[str] = None
    title: str = ""
    can_retry: bool = True

    @property
    def is_valid(self) -> bool:
        return False

    @property
    def formatted_message(self) -> str:
        if not self.suggestion:
            return self.reason
        return f"{self.reason}\n\n{self.suggestion}"

    @property
    def examples_text(self) -> Optional[str]:
        """First three example topics as bullet points."""
        if not self.examples:
            return None
        return "\n".join(f"• {example}" for example in self.examples[:3])

    @classmethod
    def from_backend(cls, detail: dict) -> "Rejected":
        """Build from the ``error`` object of a CONTENT_SAFETY_VIOLATION response."""
        return cls(
            title=detail.get("title") or "",
            reason=detail.get("message") or REJECTION_MESSAGES["en"],
            suggestion=detail.get("suggestion") or "",
            examples=list(detail.get("examples") or []),
            detected_keyword=detail.get("reason"),
            can_retry=bool(detail.get("canRetry", True)),
        )


ValidationResult = Union[Accepted, Rejected]


def _tokens(lowered: str) -> set[str]:
    return {token for token in re.split(r"[\W_]+", lowered) if token}


class ContentSafetyValidator:
    def __init__(self, blocklists: Optional[dict[str, set[str]]] = None):
        self.blocklists: dict[str, set[str]] = {
            language: {word.lower() for word in words}
            for language, words in (blocklists or {}).items()
        }

    @classmethod
    def from_json(cls, path: Path) -> "ContentSafetyValidator":
        """Load a ``{"global": [...], "en": [...], ...}`` blocklist file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        validator = cls({language: set(words) for language, words in data.items()})
        for language, words in validator.blocklists.items():
            logger.info(f"{language.upper()} blocklist loaded: {len(words)} words")
        return validator

    def find_blocked(self, text: str, language: str) -> Optional[str]:
        """Return ``"<LIST>: <word>"`` for the first blocked word, or None."""
        lowered = text.lower()
        tokens = _tokens(lowered)

        for list_name in (GLOBAL, language):
            for word in sorted(self.blocklists.get(list_name, ())):
                if len(word) < SHORT_WORD_LIMIT:
                    hit = word in tokens
                else:
                    hit = word in lowered
                if hit:
                    label = "Global" if list_name == GLOBAL else list_name.upper()
                    return f"{label}: {word}"
        return None

    def validate(self, text: str, language: str = "tr") -> ValidationResult:
        if not text or not text.strip():
            return Accepted(text)

        detected = self.find_blocked(text, language)
        if detected is None:
            return Accepted(text)

        logger.warning(f"Blocked story input ({detected})")
        return Rejected(
            reason=REJECTION_MESSAGES.get(language, REJECTION_MESSAGES["en"]),
            suggestion=SUGGESTIONS.get(language, SUGGESTIONS["en"]),
            examples=example_topics(language),
            detected_keyword=detected,
        )
