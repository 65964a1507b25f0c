# services/telegram_service/reply_parser.py
"""
Parser de respuestas (replies) a una señal rastreada.

Formatos soportados:
    36.4, BOOK OR TRAIL      → BOOK_PROFIT (precio opcional)
    CLOSE NEAR COST          → EXIT_COST
    WAIT TO ACTIVATE         → WAIT
    FOLLOW IT                → FOLLOW
    SL / SL HIT              → SL_HIT
    BUY AT CMP 58, SL 53     → REVISED_ENTRY
    TRAIL SL TO 35           → UPDATE_SL
    NEW TARGET 45            → UPDATE_TARGET
    SL 35 TARGET 45          → UPDATE_SL_TARGET (también TARGET 45 SL 35)
    36.4                     → BOOK_PROFIT

Las reglas se evalúan EN ORDEN y gana la primera que coincide.
"""

import logging
import re
from typing import Callable, List, Optional, Tuple

from models.reply_action import (
    BookProfit,
    ExitCost,
    Follow,
    ReplyAction,
    RevisedEntry,
    SlHit,
    UpdateSl,
    UpdateSlTarget,
    UpdateTarget,
    Wait,
)

logger = logging.getLogger("reply_parser")

NUM = r"\d+(?:\.\d+)?"

RE_BOOK = re.compile(rf"^({NUM})?,?\s*BOOK\s+OR\s+TRAIL$")
RE_REVISED = re.compile(rf"^BUY\s+AT\s+CMP\s+({NUM})[,\s]+SL\s+({NUM})$")
RE_SL_UPDATE = re.compile(rf"(?:UPDATE\s+)?(?:TRAIL\s+)?(?:NEW\s+)?SL\s+(?:TO\s+)?({NUM})")
RE_TARGET_UPDATE = re.compile(rf"(?:UPDATE\s+)?(?:NEW\s+)?(?:TARGET|TGT)\s+(?:TO\s+)?({NUM})")
RE_SL_VALUE = re.compile(rf"(?:(?:UPDATE|TRAIL|NEW)\s+)*\bSL\s+(?:TO\s+)?({NUM})")
RE_TARGET_VALUE = re.compile(rf"(?:(?:UPDATE|NEW)\s+)*\b(?:TARGET|TGT)\s+(?:TO\s+)?({NUM})")
RE_LEADING_PRICE = re.compile(rf"^({NUM})[,\s]*")

COST_PHRASES = ("CLOSE NEAR COST", "CLOSE AT COST", "EXIT NEAR COST")
SL_HIT_PHRASES = ("SL", "SL HIT", "STOP LOSS", "STOPLOSS")
TARGET_KEYWORDS = ("TARGET", "TGT")
TARGET_DONE_WORDS = ("HIT", "DONE", "BOOK")

# Confirmaciones cortas tipo "36.4"
SHORT_REPLY_MAX_LEN = 20


# ============================================================
# 🧩 Reglas (texto normalizado → acción | None)
# ============================================================

def _book_or_trail(text: str) -> Optional[ReplyAction]:
    m = RE_BOOK.match(text)
    if not m:
        return None
    return BookProfit(price=float(m.group(1)) if m.group(1) else None)


def _exit_cost(text: str) -> Optional[ReplyAction]:
    if any(p in text for p in COST_PHRASES):
        return ExitCost()
    return None


def _wait(text: str) -> Optional[ReplyAction]:
    if "WAIT TO ACTIVATE" in text or text == "WAIT":
        return Wait()
    return None


def _follow(text: str) -> Optional[ReplyAction]:
    if "FOLLOW IT" in text or text == "FOLLOW":
        return Follow()
    return None


def _sl_hit(text: str) -> Optional[ReplyAction]:
    if text in SL_HIT_PHRASES:
        return SlHit()
    return None


def _revised_entry(text: str) -> Optional[ReplyAction]:
    m = RE_REVISED.match(text)
    if not m:
        return None
    return RevisedEntry(price=float(m.group(1)), new_sl=float(m.group(2)))


def _update_sl(text: str) -> Optional[ReplyAction]:
    if any(k in text for k in TARGET_KEYWORDS):
        return None
    m = RE_SL_UPDATE.search(text)
    if not m:
        return None
    return UpdateSl(new_sl=float(m.group(1)))


def _update_target(text: str) -> Optional[ReplyAction]:
    if any(w in text for w in TARGET_DONE_WORDS):
        return None
    # "TARGET 45 SL 35" pertenece a la regla combinada
    if RE_SL_VALUE.search(text):
        return None
    m = RE_TARGET_UPDATE.search(text)
    if not m:
        return None
    return UpdateTarget(new_target=float(m.group(1)))


def _update_sl_target(text: str) -> Optional[ReplyAction]:
    # Ambos valores en cualquier orden, con o sin palabras entre medio
    m_sl = RE_SL_VALUE.search(text)
    m_target = RE_TARGET_VALUE.search(text)
    if not (m_sl and m_target):
        return None
    return UpdateSlTarget(new_sl=float(m_sl.group(1)), new_target=float(m_target.group(1)))


def _bare_price(text: str) -> Optional[ReplyAction]:
    if len(text) >= SHORT_REPLY_MAX_LEN:
        return None
    m = RE_LEADING_PRICE.match(text)
    if not m:
        return None
    return BookProfit(price=float(m.group(1)))


# El orden importa: las reglas específicas van antes que las genéricas
RULES: List[Tuple[str, Callable[[str], Optional[ReplyAction]]]] = [
    ("book_or_trail", _book_or_trail),
    ("exit_cost", _exit_cost),
    ("wait", _wait),
    ("follow", _follow),
    ("sl_hit", _sl_hit),
    ("revised_entry", _revised_entry),
    ("update_sl", _update_sl),
    ("update_target", _update_target),
    ("update_sl_target", _update_sl_target),
    ("bare_price", _bare_price),
]


# ============================================================
# 🔵 Parser principal
# ============================================================

def parse_reply(text: str) -> Optional[ReplyAction]:
    if not text or not isinstance(text, str):
        return None

    normalized = text.strip().upper()
    if not normalized:
        return None

    for name, rule in RULES:
        action = rule(normalized)
        if action is not None:
            logger.debug(f"parse_reply: regla '{name}' → {action}")
            return action

    return None
