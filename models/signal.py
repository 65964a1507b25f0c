"""
models/signal.py
----------------
Modelo de datos para una señal de opciones rastreada.

El snapshot JSON usa las claves camelCase históricas
(messageId, entryPrice, stopLoss, ...) para mantener compatibilidad
con archivos signals-state.json existentes.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Optional


class TradeAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OptionType(str, Enum):
    CE = "CE"
    PE = "PE"


class SignalStatus(str, Enum):
    PENDING = "PENDING"  # parseada, sin orden aceptada
    ACTIVE = "ACTIVE"  # orden de entrada colocada
    WAITING = "WAITING"  # "WAIT TO ACTIVATE"
    CLOSED = "CLOSED"  # terminal


class CloseReason(str, Enum):
    PROFIT = "PROFIT"
    SL_HIT = "SL_HIT"
    COST = "COST"
    MANUAL = "MANUAL"


_JSON_KEYS = {
    "message_id": "messageId",
    "action": "action",
    "symbol": "symbol",
    "strike": "strike",
    "option_type": "optionType",
    "entry_price": "entryPrice",
    "stop_loss": "stopLoss",
    "original_sl": "originalSL",
    "target": "target",
    "expiry": "expiry",
    "status": "status",
    "order_id": "orderId",
    "close_reason": "closeReason",
    "exit_price": "exitPrice",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "closed_at": "closedAt",
}


@dataclass
class Signal:
    message_id: int
    action: TradeAction
    symbol: str
    strike: float
    option_type: OptionType
    entry_price: float
    stop_loss: float
    original_sl: float
    target: Optional[float]
    expiry: str
    status: SignalStatus = SignalStatus.PENDING
    order_id: Optional[str] = None
    close_reason: Optional[CloseReason] = None
    exit_price: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    closed_at: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return self.status == SignalStatus.CLOSED

    def to_dict(self) -> Dict[str, Any]:
        """Serializa al formato del snapshot (claves camelCase)."""
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            out[_JSON_KEYS[f.name]] = value
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Signal":
        """
        Reconstruye una señal desde el snapshot.
        Lanza KeyError / ValueError si el registro está incompleto.
        """
        kwargs = {name: data.get(key) for name, key in _JSON_KEYS.items()}

        kwargs["message_id"] = int(kwargs["message_id"])
        kwargs["action"] = TradeAction(kwargs["action"])
        kwargs["option_type"] = OptionType(kwargs["option_type"])
        kwargs["status"] = SignalStatus(kwargs["status"] or SignalStatus.PENDING.value)
        if kwargs["close_reason"]:
            kwargs["close_reason"] = CloseReason(kwargs["close_reason"])

        for name in ("strike", "entry_price", "stop_loss", "original_sl"):
            if kwargs[name] is None:
                raise KeyError(name)
            kwargs[name] = float(kwargs[name])

        return cls(**kwargs)
