"""Coin wallet history."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from ..decoding import first_of, key, require, timestamp
from ..errors import DecodingError


class TransactionType(str, Enum):
    SPENT = "spent"
    EARNED = "earned"
    PURCHASED = "purchased"
    REFUNDED = "refunded"


@dataclass
class CoinBreakdown:
    text: Optional[int] = None
    cover: Optional[int] = None
    audio: Optional[int] = None
    illustrated: Optional[int] = None

    @property
    def total(self) -> int:
        return sum(part or 0 for part in (self.text, self.cover, self.audio, self.illustrated))

    @classmethod
    def from_dict(cls, data: dict) -> "CoinBreakdown":
        return cls(
            text=key("text", int)(data),
            cover=key("cover", int)(data),
            audio=key("audio", int)(data),
            illustrated=key("illustrated", int)(data),
        )


@dataclass
class CoinTransaction:
    id: str
    type: TransactionType
    amount: int
    reason: str
    timestamp: datetime
    story_id: Optional[str] = None
    breakdown: Optional[CoinBreakdown] = None

    @property
    def display_amount(self) -> str:
        sign = "-" if self.type is TransactionType.SPENT else "+"
        return f"{sign}{abs(self.amount)}"

    @classmethod
    def from_dict(cls, data: dict) -> "CoinTransaction":
        try:
            transaction_type = TransactionType(require(data, "type", str))
        except ValueError as e:
            raise DecodingError(str(e)) from e

        breakdown = key("breakdown", dict)(data)
        return cls(
            id=require(data, "id", str),
            type=transaction_type,
            amount=require(data, "amount", int),
            reason=require(data, "reason", str),
            # Rows written before timestamps were recorded show up as "now".
            timestamp=first_of(data, timestamp("timestamp"), default=datetime.now(timezone.utc)),
            story_id=key("storyId", str)(data),
            breakdown=CoinBreakdown.from_dict(breakdown) if breakdown is not None else None,
        )
