"""
models/order.py
---------------
Modelos de borde con el broker: instrumento resuelto, resultado de orden
y señal legacy de una sola línea.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Instrument:
    trading_symbol: str
    token: str
    lot_size: int
    exchange: str = "NFO"
    name: str = ""
    expiry: str = ""  # formato del scrip master, ej. 27FEB2025


@dataclass
class OrderResult:
    accepted: bool
    order_id: Optional[str] = None
    message: str = ""


@dataclass
class TradeSignal:
    action: str  # BUY / SELL
    symbol: str
    quantity: int
    price: float
    order_type: str  # LIMIT / MARKET
    exchange: str = "NSE"
    product_type: str = "INTRADAY"
