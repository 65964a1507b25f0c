# services/telegram_service/signal_parser.py
"""
Parser de señales de entrada (opciones) en formato multilínea:

    BUY HINDZINC
    750 CE ABOVE 33
    SL 30.5 TARGET 36 40
    FEBRUARY SERIES        ← opcional

Reglas de negocio:
    • stop_loss = 50% del SL publicado (original_sl conserva el valor crudo)
    • solo se guarda el PRIMER target; el resto se valida y se descarta
"""

import logging
import re
from datetime import datetime
from typing import List, Optional

from models.signal import OptionType, Signal, SignalStatus, TradeAction
from utils.helpers import current_month_code, month_code

logger = logging.getLogger("signal_parser")

NUM = r"\d+(?:\.\d+)?"

RE_ACTION = re.compile(r"(BUY|SELL)\s+([A-Z0-9&_-]+)", re.IGNORECASE)
RE_STRIKE = re.compile(rf"({NUM})\s+(CE|PE)\s+ABOVE\s+({NUM})", re.IGNORECASE)
RE_STRIKE_PREFIX = re.compile(rf"({NUM})\s+(CE|PE)\s+ABOVE\s+", re.IGNORECASE)
RE_RISK = re.compile(
    rf"SL\s+({NUM})\s+TARGET\s+({NUM}(?:[,\s]+{NUM})*)", re.IGNORECASE
)
RE_SERIES = re.compile(r"([A-Z]+)\s+SERIES", re.IGNORECASE)

# Riesgo reducido a la mitad respecto al canal
SL_FACTOR = 0.5


def _lines(text: str) -> List[str]:
    return [line.strip() for line in text.strip().splitlines() if line.strip()]


# ============================================================
# 🔎 Pre-filtro barato (líneas 1 y 2)
# ============================================================

def is_entry_signal(text: str) -> bool:
    if not text or not isinstance(text, str):
        return False

    lines = _lines(text)
    if len(lines) < 3:
        return False

    if not RE_ACTION.fullmatch(lines[0]):
        return False

    return bool(RE_STRIKE_PREFIX.match(lines[1]))


# ============================================================
# 🔵 Parser principal
# ============================================================

def parse_entry(
    text: str, message_id: int, now: Optional[datetime] = None
) -> Optional[Signal]:
    """
    Convierte el texto crudo en una Signal en estado PENDING.
    Si alguna línea obligatoria no coincide devuelve None
    (nunca se producen señales parciales).
    """
    if not text or not isinstance(text, str):
        return None

    lines = _lines(text)
    if len(lines) < 3:
        return None

    # Línea 1: BUY/SELL SYMBOL
    m_action = RE_ACTION.fullmatch(lines[0])
    if not m_action:
        return None

    # Línea 2: STRIKE CE/PE ABOVE PRICE
    m_strike = RE_STRIKE.fullmatch(lines[1])
    if not m_strike:
        return None

    # Línea 3: SL X TARGET T1 T2 ...
    m_risk = RE_RISK.fullmatch(lines[2])
    if not m_risk:
        logger.debug(f"parse_entry: línea de riesgo inválida → {lines[2]!r}")
        return None

    stated_sl = float(m_risk.group(1))
    targets = [float(t) for t in re.split(r"[,\s]+", m_risk.group(2)) if t]

    # Línea 4: MONTH SERIES (opcional)
    expiry = current_month_code(now)
    if len(lines) >= 4:
        m_series = RE_SERIES.fullmatch(lines[3])
        if m_series:
            expiry = month_code(m_series.group(1))

    signal = Signal(
        message_id=message_id,
        action=TradeAction(m_action.group(1).upper()),
        symbol=m_action.group(2).upper(),
        strike=float(m_strike.group(1)),
        option_type=OptionType(m_strike.group(2).upper()),
        entry_price=float(m_strike.group(3)),
        stop_loss=stated_sl * SL_FACTOR,
        original_sl=stated_sl,
        target=targets[0] if targets else None,
        expiry=expiry,
        status=SignalStatus.PENDING,
    )

    logger.info(
        f"✅ parse_entry OK → {signal.action.value} {signal.symbol} "
        f"{signal.strike:g} {signal.option_type.value} @ {signal.entry_price} "
        f"SL {signal.stop_loss} (orig {stated_sl}) T {signal.target} [{expiry}]"
    )
    return signal
