# =====================================================================
# formatters.py
# ---------------------------------------------------------------
# Textos para Telegram: señales, transiciones y resúmenes.
# =====================================================================

from collections import Counter
from typing import Iterable

from models.signal import Signal, SignalStatus

STATUS_ICON = {
    SignalStatus.PENDING: "🟡",
    SignalStatus.ACTIVE: "🟢",
    SignalStatus.WAITING: "⏳",
    SignalStatus.CLOSED: "🔴",
}


def format_signal_line(signal: Signal) -> str:
    icon = STATUS_ICON.get(signal.status, "⚪")
    target = f"{signal.target:g}" if signal.target is not None else "-"
    return (
        f"{icon} #{signal.message_id} {signal.action.value} {signal.symbol} "
        f"{signal.strike:g} {signal.option_type.value} {signal.expiry} | "
        f"Entry {signal.entry_price:g} | SL {signal.stop_loss:g} | T {target}"
    )


def format_new_signal(signal: Signal, accepted: bool, detail: str = "") -> str:
    header = "🚀 NUEVA SEÑAL" if accepted else "⚠️ SEÑAL SIN ORDEN"
    txt = f"{header}\n\n{format_signal_line(signal)}\n"
    if detail:
        txt += f"📍 {detail}\n"
    return txt


def format_transition(signal: Signal, label: str, detail: str = "") -> str:
    txt = f"🔔 {label}\n\n{format_signal_line(signal)}\n"
    if signal.close_reason:
        txt += f"🏁 Cierre: {signal.close_reason.value}"
        if signal.exit_price is not None:
            txt += f" @ {signal.exit_price:g}"
        txt += "\n"
    if detail:
        txt += f"📍 {detail}\n"
    return txt


def format_status_summary(signals: Iterable[Signal]) -> str:
    counts = Counter(s.status for s in signals)
    lines = ["📊 Estado de señales"]
    for status in SignalStatus:
        lines.append(f"{STATUS_ICON[status]} {status.value}: {counts.get(status, 0)}")
    return "\n".join(lines)


def format_active_list(signals: Iterable[Signal]) -> str:
    rows = [format_signal_line(s) for s in signals]
    if not rows:
        return "📭 No hay señales activas."
    return "📋 Señales activas\n\n" + "\n".join(rows)
