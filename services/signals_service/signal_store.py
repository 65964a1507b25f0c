"""
signal_store.py: estado persistente de señales de opciones
-----------------------------------------------------------

Mapa en memoria  message_id → Signal  respaldado por un snapshot JSON
completo que se reescribe después de CADA mutación:

    {
        "updatedAt": "2025-02-03T09:15:00+00:00",
        "signals": [ {messageId, action, symbol, ...}, ... ]
    }

Estados:
    PENDING  → señal parseada, orden aún no aceptada
    ACTIVE   → orden de entrada colocada
    WAITING  → "WAIT TO ACTIVATE", en espera
    CLOSED   → posición cerrada (terminal)

Una señal CLOSED no acepta cambios de precio/SL/target/orden.
Cerrarla de nuevo es un no-op (solo se actualiza updated_at).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import replace
from datetime import timedelta
from typing import Any, Dict, List, Optional

from models.signal import CloseReason, Signal, SignalStatus
from utils.helpers import now_ts, parse_ts, utc_now

logger = logging.getLogger("signal_store")

# Campos que set_status acepta en `extra`
MUTABLE_FIELDS = (
    "entry_price",
    "stop_loss",
    "target",
    "order_id",
    "close_reason",
    "exit_price",
)


class SignalStore:
    def __init__(self, path: str):
        self.path = path
        self._signals: Dict[int, Signal] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._signals)

    def __contains__(self, message_id) -> bool:
        return message_id in self._signals

    # ------------------------------------------------------------
    # 📂 Ciclo de vida
    # ------------------------------------------------------------
    def load(self) -> int:
        """
        Carga el snapshot completo. Archivo ausente o corrupto → store vacío.
        Devuelve la cantidad de señales cargadas.
        """
        with self._lock:
            self._signals.clear()

            if not os.path.exists(self.path):
                logger.info(f"📭 Sin snapshot previo en {self.path}")
                return 0

            try:
                with open(self.path, "r", encoding="utf-8") as fh:
                    data = json.load(fh)
            except (OSError, ValueError) as e:
                logger.error(f"❌ Snapshot ilegible ({self.path}): {e}")
                return 0

            rows = data.get("signals") if isinstance(data, dict) else None
            if not isinstance(rows, list):
                logger.error(f"❌ Snapshot sin lista 'signals': {self.path}")
                return 0

            for row in rows:
                if not isinstance(row, dict):
                    logger.warning(f"⚠️ Registro descartado del snapshot: {row!r}")
                    continue
                try:
                    signal = Signal.from_dict(row)
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(f"⚠️ Registro descartado del snapshot: {e}")
                    continue
                self._signals[signal.message_id] = signal

            logger.info(f"📥 {len(self._signals)} señales cargadas desde {self.path}")
            return len(self._signals)

    def shutdown(self):
        """Escribe un último snapshot antes de salir."""
        with self._lock:
            self._persist()
        logger.info("💾 SignalStore cerrado.")

    # ------------------------------------------------------------
    # 💾 Persistencia (snapshot completo, tmp + rename)
    # ------------------------------------------------------------
    def _persist(self) -> bool:
        payload = {
            "updatedAt": now_ts(),
            "signals": [s.to_dict() for s in self._signals.values()],
        }

        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=".signals-", suffix=".tmp", dir=directory
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
            return True

        except OSError as e:
            # La memoria sigue siendo la fuente de verdad; la próxima
            # mutación vuelve a escribir el snapshot completo.
            logger.error(f"❌ Error guardando snapshot de señales: {e}")
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    pass
            return False

    # ------------------------------------------------------------
    # 🔧 Helpers internos
    # ------------------------------------------------------------
    def _lookup(self, message_id: int, op: str) -> Optional[Signal]:
        signal = self._signals.get(message_id)
        if signal is None:
            logger.info(f"🔍 {op}: señal {message_id} no rastreada")
        return signal

    def _mutate(self, message_id: int, op: str, **changes) -> Optional[Signal]:
        """
        Aplica cambios a una señal no cerrada, sella updated_at y persiste.
        """
        with self._lock:
            signal = self._lookup(message_id, op)
            if signal is None:
                return None

            if signal.is_closed:
                logger.warning(
                    f"⛔ {op}: señal {message_id} ya está CLOSED, cambio rechazado"
                )
                return None

            updated = replace(signal, **changes, updated_at=now_ts())
            self._signals[message_id] = updated
            self._persist()
            return updated

    # ------------------------------------------------------------
    # 📌 Operaciones públicas
    # ------------------------------------------------------------
    def add(self, signal: Signal) -> Signal:
        """Inserta (o sobrescribe) la señal por message_id."""
        ts = now_ts()
        with self._lock:
            stored = replace(signal, created_at=ts, updated_at=ts)
            if signal.message_id in self._signals:
                logger.info(f"♻️ Señal {signal.message_id} sobrescrita")
            self._signals[signal.message_id] = stored
            self._persist()
        logger.info(
            f"💾 Señal {signal.message_id} registrada: {signal.symbol} "
            f"{signal.strike:g} {signal.option_type.value} ({stored.status.value})"
        )
        return stored

    def get(self, message_id: int) -> Optional[Signal]:
        return self._signals.get(message_id)

    def set_status(
        self,
        message_id: int,
        status: SignalStatus,
        extra: Optional[Dict[str, Any]] = None,
    ) -> Optional[Signal]:
        status = SignalStatus(status)
        extra = dict(extra or {})

        ignored = [k for k in extra if k not in MUTABLE_FIELDS]
        for key in ignored:
            logger.warning(f"⚠️ set_status: campo '{key}' ignorado")
            extra.pop(key)

        if status == SignalStatus.CLOSED:
            return self.close(
                message_id,
                extra.pop("close_reason", CloseReason.MANUAL),
                extra.pop("exit_price", None),
            )

        # close_reason / exit_price solo existen en CLOSED
        extra.pop("close_reason", None)
        extra.pop("exit_price", None)

        return self._mutate(message_id, "set_status", status=status, **extra)

    def set_order_id(self, message_id: int, order_id: str) -> Optional[Signal]:
        updated = self._mutate(
            message_id, "set_order_id", order_id=order_id, status=SignalStatus.ACTIVE
        )
        if updated:
            logger.info(f"🟢 Señal {message_id} ACTIVE (orden {order_id})")
        return updated

    def update_entry(self, message_id: int, new_price: float, new_sl: float) -> Optional[Signal]:
        return self._mutate(
            message_id, "update_entry", entry_price=new_price, stop_loss=new_sl
        )

    def update_sl(self, message_id: int, new_sl: float) -> Optional[Signal]:
        return self._mutate(message_id, "update_sl", stop_loss=new_sl)

    def update_target(self, message_id: int, new_target: float) -> Optional[Signal]:
        return self._mutate(message_id, "update_target", target=new_target)

    def update_sl_and_target(
        self, message_id: int, new_sl: float, new_target: float
    ) -> Optional[Signal]:
        return self._mutate(
            message_id, "update_sl_and_target", stop_loss=new_sl, target=new_target
        )

    def close(
        self,
        message_id: int,
        reason: CloseReason,
        exit_price: Optional[float] = None,
    ) -> Optional[Signal]:
        reason = CloseReason(reason)
        with self._lock:
            signal = self._lookup(message_id, "close")
            if signal is None:
                return None

            ts = now_ts()
            if signal.is_closed:
                # Cierre idempotente: no se toca nada salvo updated_at
                updated = replace(signal, updated_at=ts)
                logger.info(f"🔁 Señal {message_id} ya estaba CLOSED ({signal.close_reason})")
            else:
                updated = replace(
                    signal,
                    status=SignalStatus.CLOSED,
                    close_reason=reason,
                    exit_price=exit_price,
                    closed_at=ts,
                    updated_at=ts,
                )
                logger.info(
                    f"🔴 Señal {message_id} CLOSED ({reason.value}) exit={exit_price}"
                )

            self._signals[message_id] = updated
            self._persist()
            return updated

    def list_active(self) -> List[Signal]:
        return [s for s in self._signals.values() if not s.is_closed]

    def list_all(self) -> List[Signal]:
        return list(self._signals.values())

    def cleanup(self, max_age_days: float = 7) -> int:
        """
        Elimina señales CLOSED cuyo closed_at (o updated_at) es más antiguo
        que max_age_days. Solo persiste si eliminó algo.
        """
        cutoff = utc_now() - timedelta(days=max_age_days)

        with self._lock:
            expired = []
            for message_id, signal in self._signals.items():
                if not signal.is_closed:
                    continue
                closed_at = parse_ts(signal.closed_at or signal.updated_at)
                if closed_at is not None and closed_at < cutoff:
                    expired.append(message_id)

            for message_id in expired:
                del self._signals[message_id]

            if expired:
                self._persist()
                logger.info(f"🧹 {len(expired)} señales antiguas eliminadas")

        return len(expired)
