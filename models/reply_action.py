"""
models/reply_action.py
----------------------
Acciones reconocidas en las respuestas (replies) a una señal rastreada.

Cada acción es un dataclass inmutable con su etiqueta `kind`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


class ReplyType(str, Enum):
    BOOK_PROFIT = "BOOK_PROFIT"
    EXIT_COST = "EXIT_COST"
    WAIT = "WAIT"
    FOLLOW = "FOLLOW"
    SL_HIT = "SL_HIT"
    REVISED_ENTRY = "REVISED_ENTRY"
    UPDATE_SL = "UPDATE_SL"
    UPDATE_TARGET = "UPDATE_TARGET"
    UPDATE_SL_TARGET = "UPDATE_SL_TARGET"


@dataclass(frozen=True)
class BookProfit:
    price: Optional[float] = None
    kind: ReplyType = field(default=ReplyType.BOOK_PROFIT, init=False)


@dataclass(frozen=True)
class ExitCost:
    kind: ReplyType = field(default=ReplyType.EXIT_COST, init=False)


@dataclass(frozen=True)
class Wait:
    kind: ReplyType = field(default=ReplyType.WAIT, init=False)


@dataclass(frozen=True)
class Follow:
    kind: ReplyType = field(default=ReplyType.FOLLOW, init=False)


@dataclass(frozen=True)
class SlHit:
    kind: ReplyType = field(default=ReplyType.SL_HIT, init=False)


@dataclass(frozen=True)
class RevisedEntry:
    price: float
    new_sl: float
    kind: ReplyType = field(default=ReplyType.REVISED_ENTRY, init=False)


@dataclass(frozen=True)
class UpdateSl:
    new_sl: float
    kind: ReplyType = field(default=ReplyType.UPDATE_SL, init=False)


@dataclass(frozen=True)
class UpdateTarget:
    new_target: float
    kind: ReplyType = field(default=ReplyType.UPDATE_TARGET, init=False)


@dataclass(frozen=True)
class UpdateSlTarget:
    new_sl: float
    new_target: float
    kind: ReplyType = field(default=ReplyType.UPDATE_SL_TARGET, init=False)


ReplyAction = Union[
    BookProfit,
    ExitCost,
    Wait,
    Follow,
    SlHit,
    RevisedEntry,
    UpdateSl,
    UpdateTarget,
    UpdateSlTarget,
]
