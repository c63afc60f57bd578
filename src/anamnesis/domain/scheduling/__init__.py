# Domain Scheduling Package
from .models import (
    Card,
    CardQueue,
    CardState,
    CardType,
    Choice,
    DeckConfig,
    NewCardOrder,
)
from .ports import Clock, RandomSource

__all__ = [
    "Card",
    "CardQueue",
    "CardState",
    "CardType",
    "Choice",
    "Clock",
    "DeckConfig",
    "NewCardOrder",
    "RandomSource",
]
