"""
utils/parser.py
----------------
Parser legacy de órdenes de una sola línea.

Formatos soportados:
    BUY RELIANCE 100 @ 2500
    SELL INFY 50 @ 1800
    BUY NSE:SBIN 200 @ 750              (con exchange)
    BUY RELIANCE 100 @ 2500 DELIVERY    (con product type)
    BUY RELIANCE 100 MARKET             (orden a mercado)
"""

import re
from typing import Optional

from models.order import TradeSignal

# Grupos: acción, exchange (opcional), símbolo, cantidad, precio, product type
SIGNAL_REGEX = re.compile(
    r"^(BUY|SELL)\s+(?:([A-Z]+):)?([A-Z0-9&_-]+)\s+(\d+)\s+"
    r"(?:@\s*(\d+(?:\.\d+)?)|MARKET)(?:\s+(DELIVERY|INTRADAY))?$",
    re.IGNORECASE,
)


def is_trade_signal(text: str) -> bool:
    if not text or not isinstance(text, str):
        return False
    return bool(SIGNAL_REGEX.match(text.strip()))


def parse_trade_signal(text: str) -> Optional[TradeSignal]:
    """
    Convierte una línea en TradeSignal. Si no coincide retorna None.
    """
    if not text or not isinstance(text, str):
        return None

    m = SIGNAL_REGEX.match(text.strip())
    if not m:
        return None

    action, exchange, symbol, quantity, price, product_type = m.groups()
    is_market = price is None

    return TradeSignal(
        action=action.upper(),
        symbol=symbol.upper(),
        quantity=int(quantity),
        price=0.0 if is_market else float(price),
        order_type="MARKET" if is_market else "LIMIT",
        exchange=(exchange or "NSE").upper(),
        product_type=(product_type or "INTRADAY").upper(),
    )
