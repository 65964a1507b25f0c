import asyncio
import logging
from typing import Dict, Optional

from models.order import OrderResult
from models.reply_action import ReplyType
from models.signal import Signal
from services.coordinators.reply_dispatcher import ReplyPlan, plan_reply
from services.telegram_service.reply_parser import parse_reply
from services.telegram_service.signal_parser import parse_entry
from utils.formatters import format_new_signal, format_transition
from utils.parser import parse_trade_signal

logger = logging.getLogger("signal_coordinator")

REPLY_LABELS = {
    ReplyType.BOOK_PROFIT: "💰 BOOK PROFIT",
    ReplyType.EXIT_COST: "↩️ SALIDA A COSTO",
    ReplyType.WAIT: "⏳ EN ESPERA",
    ReplyType.FOLLOW: "👀 FOLLOW",
    ReplyType.SL_HIT: "🛑 STOP LOSS",
    ReplyType.REVISED_ENTRY: "✏️ ENTRADA REVISADA",
    ReplyType.UPDATE_SL: "🛡️ SL ACTUALIZADO",
    ReplyType.UPDATE_TARGET: "🎯 TARGET ACTUALIZADO",
    ReplyType.UPDATE_SL_TARGET: "🛡️🎯 SL + TARGET ACTUALIZADOS",
}


class SignalCoordinator:
    """
    Orquesta el ciclo de vida de una señal:
    parser → store → broker → notificación.

    Las llamadas al broker son bloqueantes (requests) y se ejecutan en un
    hilo para no congelar el loop de Telethon.
    """

    def __init__(self, store, order_service, notifier=None):
        self.store = store
        self.order_service = order_service
        self.notifier = notifier

        logger.info("🔧 SignalCoordinator inicializado correctamente.")

    # ==============================================================
    # 🔧 Helpers
    # ==============================================================
    async def _place(self, fn, *args) -> OrderResult:
        return await asyncio.to_thread(fn, *args)

    async def _notify(self, text: str):
        if self.notifier is None:
            return
        await self.notifier.send(text)

    def _apply_updates(self, message_id: int, updates: Dict[str, float]) -> Optional[Signal]:
        keys = set(updates)
        if keys == {"entry_price", "stop_loss"}:
            return self.store.update_entry(message_id, updates["entry_price"], updates["stop_loss"])
        if keys == {"stop_loss", "target"}:
            return self.store.update_sl_and_target(message_id, updates["stop_loss"], updates["target"])
        if keys == {"stop_loss"}:
            return self.store.update_sl(message_id, updates["stop_loss"])
        if keys == {"target"}:
            return self.store.update_target(message_id, updates["target"])
        raise ValueError(f"Combinación de campos no soportada: {sorted(keys)}")

    # ==============================================================
    # 🚀 NUEVA SEÑAL
    # ==============================================================
    async def handle_new_signal(self, message_id: int, text: str) -> Optional[Signal]:
        signal = parse_entry(text, message_id)
        if not signal:
            logger.info(f"📭 Mensaje {message_id} no es una señal de entrada válida")
            return None

        stored = self.store.add(signal)

        result = await self._place(self.order_service.place_entry, stored)
        if result.accepted:
            current = self.store.set_order_id(message_id, result.order_id) or stored
            await self._notify(format_new_signal(current, True, f"Orden {result.order_id}"))
            return current

        # Sigue PENDING; una entrada revisada puede reintentar
        logger.warning(f"⚠️ Señal {message_id} queda PENDING: {result.message}")
        await self._notify(format_new_signal(stored, False, result.message))
        return stored

    # ==============================================================
    # 💬 RESPUESTA A UNA SEÑAL
    # ==============================================================
    async def handle_reply(self, reply_to_id: int, text: str) -> Optional[Signal]:
        signal = self.store.get(reply_to_id)
        if not signal:
            logger.info(f"🔍 Sin señal rastreada para el mensaje {reply_to_id}")
            return None

        action = parse_reply(text)
        if not action:
            logger.info(f"🤷 Respuesta no reconocida para {reply_to_id}: {text[:80]!r}")
            return None

        plan = plan_reply(signal, action)
        if plan is None:
            logger.warning(
                f"⛔ Señal {reply_to_id} ya está CLOSED; se ignora {action.kind.value}"
            )
            return None

        logger.info(f"🧭 Señal {reply_to_id}: {action.kind.value} → {plan.next_status.value}")
        return await self._execute(signal, plan)

    async def _execute(self, signal: Signal, plan: ReplyPlan) -> Optional[Signal]:
        message_id = signal.message_id
        current = signal
        notes = []

        if plan.action.kind == ReplyType.FOLLOW:
            logger.info(f"👀 Señal {message_id}: FOLLOW, sin acción")
            return current

        # 1) Orden de salida (solo si hay posición abierta)
        if plan.exit_order_type:
            result = await self._place(
                self.order_service.place_exit,
                current,
                plan.exit_order_type,
                plan.exit_order_price,
            )
            if result.accepted:
                notes.append(f"Salida {plan.exit_order_type} {result.order_id}")
            else:
                notes.append(f"⚠️ Orden de salida falló: {result.message} (revisar manualmente)")

        # 2) Cambios de campos
        if plan.updates:
            current = self._apply_updates(message_id, plan.updates) or current

        # 3) Nueva entrada (entrada revisada)
        if plan.place_entry:
            result = await self._place(self.order_service.place_entry, current)
            if result.accepted:
                current = self.store.set_order_id(message_id, result.order_id) or current
                notes.append(f"Nueva orden {result.order_id}")
            else:
                notes.append(f"⚠️ Nueva entrada falló: {result.message}")

        # 4) Estado final
        if plan.closes:
            current = self.store.close(message_id, plan.close_reason, plan.exit_price) or current
        elif plan.next_status != signal.status:
            current = self.store.set_status(message_id, plan.next_status) or current

        await self._notify(
            format_transition(current, REPLY_LABELS[plan.action.kind], " | ".join(notes))
        )
        return current

    # ==============================================================
    # 📈 SEÑAL LEGACY (una línea, equity)
    # ==============================================================
    async def handle_legacy_signal(self, text: str) -> Optional[OrderResult]:
        trade = parse_trade_signal(text)
        if not trade:
            return None

        logger.info(f"📈 Señal legacy: {trade.action} {trade.symbol} x{trade.quantity}")
        result = await self._place(self.order_service.place_trade, trade)

        status = f"✅ Orden {result.order_id}" if result.accepted else f"⚠️ {result.message}"
        await self._notify(
            f"📈 {trade.action} {trade.symbol} x{trade.quantity} "
            f"{trade.order_type} @ {trade.price:g}\n{status}"
        )
        return result
