"""
controllers/message_router.py
-----------------------------
Router oficial de mensajes entrantes desde Telegram.

Orden de decisión:
    1) mensaje vacío / comando      → ignorar
    2) ya visto (ventana de 100)    → ignorar (reintentos del transporte)
    3) chat fuera de la lista       → ignorar
    4) reply a otro mensaje         → SignalCoordinator.handle_reply
    5) señal de opciones multilínea → SignalCoordinator.handle_new_signal
    6) orden legacy de una línea    → SignalCoordinator.handle_legacy_signal
"""

import asyncio
import logging
from collections import OrderedDict
from typing import Iterable, Optional

from models.message import InboundMessage
from services.telegram_service.signal_parser import is_entry_signal
from utils.helpers import is_command

logger = logging.getLogger("message_router")


class RecentMessages:
    """Conjunto acotado de claves recientes; descarta la más antigua."""

    def __init__(self, max_size: int = 100):
        self.max_size = max_size
        self._keys = OrderedDict()

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key) -> bool:
        return key in self._keys

    def seen(self, key: str) -> bool:
        """
        True si la clave ya estaba en la ventana; si no, la registra.
        """
        if key in self._keys:
            return True

        self._keys[key] = None
        while len(self._keys) > self.max_size:
            self._keys.popitem(last=False)
        return False


class MessageRouter:
    def __init__(
        self,
        coordinator,
        channel_ids: Optional[Iterable[int]] = None,
        dedup_size: int = 100,
    ):
        self.coordinator = coordinator
        self.channel_ids = set(channel_ids or [])
        self.recent = RecentMessages(dedup_size)
        self._lock = asyncio.Lock()

    def _accepts_chat(self, chat_id: Optional[int]) -> bool:
        if not self.channel_ids:
            return True
        return chat_id in self.channel_ids

    async def route(self, msg: InboundMessage):
        text = (msg.text or "").strip()
        if not text or is_command(text):
            return None

        if self.recent.seen(msg.dedup_key):
            logger.info(f"🔁 Mensaje duplicado ignorado: {msg.dedup_key}")
            return None

        if not self._accepts_chat(msg.chat_id):
            return None

        # Un mensaje a la vez: la lectura y la mutación del estado no se mezclan
        async with self._lock:
            try:
                if msg.reply_to_id:
                    logger.info(f"💬 Reply a {msg.reply_to_id}: {text[:60]!r}")
                    return await self.coordinator.handle_reply(msg.reply_to_id, text)

                if is_entry_signal(text):
                    logger.info(f"📩 Señal de opciones recibida ({msg.id})")
                    return await self.coordinator.handle_new_signal(msg.id, text)

                return await self.coordinator.handle_legacy_signal(text)

            except Exception as e:
                logger.error(f"❌ Error procesando mensaje {msg.dedup_key}: {e}", exc_info=True)
                return None
