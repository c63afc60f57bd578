"""
Wire models for the host boundary.

A card crosses the boundary as JSON using the field names of the domain
Card; enums are written as lower-case names ("review", "day_learn") and
accepted either as names or as their integer codes.
"""

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from anamnesis.domain.constants import MINIMUM_EASE_FACTOR
from anamnesis.domain.scheduling.models import Card, CardQueue, CardType


def _parse_enum(enum_cls: type[IntEnum], v: Any) -> Any:
    if isinstance(v, str):
        if v.lstrip("-").isdigit():
            return int(v)
        try:
            return enum_cls[v.upper()]
        except KeyError:
            raise ValueError(f"unknown {enum_cls.__name__}: {v!r}") from None
    return v


class CardModel(BaseModel):
    card_type: CardType = CardType.NEW
    card_queue: CardQueue = CardQueue.NEW
    due: int = 0
    interval: int = Field(default=0, ge=0)
    ease_factor: int = Field(default=0, ge=0)
    reps: int = Field(default=0, ge=0)
    lapses: int = Field(default=0, ge=0)
    remaining_steps: int = Field(default=0, ge=0)

    @field_validator("card_type", mode="before")
    @classmethod
    def parse_card_type(cls, v: Any) -> Any:
        return _parse_enum(CardType, v)

    @field_validator("card_queue", mode="before")
    @classmethod
    def parse_card_queue(cls, v: Any) -> Any:
        return _parse_enum(CardQueue, v)

    @model_validator(mode="after")
    def check_ease(self) -> "CardModel":
        if 0 < self.ease_factor < MINIMUM_EASE_FACTOR:
            raise ValueError(f"ease_factor must be 0 or at least {MINIMUM_EASE_FACTOR}")
        return self

    @field_serializer("card_type", "card_queue")
    def serialize_enum(self, v: IntEnum) -> str:
        return v.name.lower()

    @classmethod
    def from_domain(cls, card: Card) -> "CardModel":
        return cls(
            card_type=card.card_type,
            card_queue=card.card_queue,
            due=card.due,
            interval=card.interval,
            ease_factor=card.ease_factor,
            reps=card.reps,
            lapses=card.lapses,
            remaining_steps=card.remaining_steps,
        )

    def to_domain(self) -> Card:
        """Build the domain card. Raises InvalidCardState for impossible type/queue pairs."""
        return Card(
            card_type=self.card_type,
            card_queue=self.card_queue,
            due=self.due,
            interval=self.interval,
            ease_factor=self.ease_factor,
            reps=self.reps,
            lapses=self.lapses,
            remaining_steps=self.remaining_steps,
        )
