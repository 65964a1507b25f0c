"""
services/coordinators/reply_dispatcher.py
-----------------------------------------
Tabla de transiciones de la máquina de estados de señales.

Dada la señal original y la acción de la respuesta, decide (sin efectos
secundarios) el próximo estado, qué campos cambian y qué orden enviar.
El SignalCoordinator ejecuta el plan.

    ACTIVE/WAITING + WAIT              → WAITING
    ACTIVE/WAITING + BOOK_PROFIT       → CLOSED (PROFIT, salida MARKET)
    ACTIVE/WAITING + EXIT_COST         → CLOSED (COST, salida LIMIT a entry)
    ACTIVE/WAITING + SL_HIT            → CLOSED (SL_HIT, salida MARKET)
    ACTIVE/WAITING + REVISED_ENTRY     → ACTIVE si la nueva orden entra
    ACTIVE/WAITING + UPDATE_*          → sin cambio de estado
    no CLOSED      + FOLLOW            → sin cambio
    CLOSED         + cualquiera        → rechazado

Una señal PENDING (sin orden aceptada) recibe el mismo trato, pero sin
orden de salida porque no hay posición abierta.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from models.reply_action import ReplyAction, ReplyType
from models.signal import CloseReason, Signal, SignalStatus


@dataclass
class ReplyPlan:
    action: ReplyAction
    next_status: SignalStatus
    updates: Dict[str, float] = field(default_factory=dict)
    close_reason: Optional[CloseReason] = None
    exit_price: Optional[float] = None
    exit_order_type: Optional[str] = None  # MARKET / LIMIT
    exit_order_price: float = 0
    place_entry: bool = False

    @property
    def closes(self) -> bool:
        return self.close_reason is not None


def _exit_plan(
    signal: Signal,
    action: ReplyAction,
    reason: CloseReason,
    exit_price: Optional[float],
    order_type: str,
    order_price: float = 0,
) -> ReplyPlan:
    has_position = bool(signal.order_id)
    return ReplyPlan(
        action=action,
        next_status=SignalStatus.CLOSED,
        close_reason=reason,
        exit_price=exit_price,
        exit_order_type=order_type if has_position else None,
        exit_order_price=order_price if has_position else 0,
    )


def _book_profit(signal, action) -> ReplyPlan:
    return _exit_plan(signal, action, CloseReason.PROFIT, action.price, "MARKET")


def _exit_cost(signal, action) -> ReplyPlan:
    return _exit_plan(
        signal, action, CloseReason.COST, signal.entry_price, "LIMIT", signal.entry_price
    )


def _sl_hit(signal, action) -> ReplyPlan:
    return _exit_plan(signal, action, CloseReason.SL_HIT, None, "MARKET")


def _wait(signal, action) -> ReplyPlan:
    return ReplyPlan(action=action, next_status=SignalStatus.WAITING)


def _follow(signal, action) -> ReplyPlan:
    return ReplyPlan(action=action, next_status=signal.status)


def _revised_entry(signal, action) -> ReplyPlan:
    # El estado pasa a ACTIVE solo si la nueva orden es aceptada
    return ReplyPlan(
        action=action,
        next_status=signal.status,
        updates={"entry_price": action.price, "stop_loss": action.new_sl},
        place_entry=True,
    )


def _update_sl(signal, action) -> ReplyPlan:
    return ReplyPlan(
        action=action, next_status=signal.status, updates={"stop_loss": action.new_sl}
    )


def _update_target(signal, action) -> ReplyPlan:
    return ReplyPlan(
        action=action, next_status=signal.status, updates={"target": action.new_target}
    )


def _update_sl_target(signal, action) -> ReplyPlan:
    return ReplyPlan(
        action=action,
        next_status=signal.status,
        updates={"stop_loss": action.new_sl, "target": action.new_target},
    )


TRANSITIONS: Dict[ReplyType, Callable[[Signal, ReplyAction], ReplyPlan]] = {
    ReplyType.BOOK_PROFIT: _book_profit,
    ReplyType.EXIT_COST: _exit_cost,
    ReplyType.WAIT: _wait,
    ReplyType.FOLLOW: _follow,
    ReplyType.SL_HIT: _sl_hit,
    ReplyType.REVISED_ENTRY: _revised_entry,
    ReplyType.UPDATE_SL: _update_sl,
    ReplyType.UPDATE_TARGET: _update_target,
    ReplyType.UPDATE_SL_TARGET: _update_sl_target,
}


def plan_reply(signal: Signal, action: ReplyAction) -> Optional[ReplyPlan]:
    """
    Devuelve el plan de transición o None si la señal está CLOSED.
    """
    if signal.is_closed:
        return None
    return TRANSITIONS[action.kind](signal, action)
