# services/telegram_service/telegram_reader.py
import logging

from telethon import TelegramClient, events
from telethon.utils import get_peer_id

from models.message import InboundMessage

logger = logging.getLogger("telegram_reader")


def to_inbound(message) -> InboundMessage:
    """
    Convierte un mensaje de Telethon al modelo interno.
    El chat se identifica con el id marcado de Telethon (-100… para canales),
    el mismo formato que TELEGRAM_CHANNEL_IDS.
    """
    peer = getattr(message, "peer_id", None)
    chat_id = get_peer_id(peer) if peer is not None else None

    reply_to = getattr(message, "reply_to", None)
    reply_to_id = getattr(reply_to, "reply_to_msg_id", None) if reply_to else None

    return InboundMessage(
        id=message.id,
        text=message.message or "",
        chat_id=chat_id,
        reply_to_id=reply_to_id,
    )


async def start_telegram_reader(router, api_id: int, api_hash: str, session: str):
    """
    Inicia Telethon y envía cada mensaje nuevo al router.
    """
    if not (api_id and api_hash):
        logger.error("❌ Telethon no puede iniciar: faltan API_ID/API_HASH en config/.env")
        return

    client = TelegramClient(session, api_id, api_hash, connection_retries=5)
    await client.start()

    me = await client.get_me()
    logger.info(f"📡 Cliente Telethon conectado como {getattr(me, 'username', None) or me.id}")

    @client.on(events.NewMessage())
    async def handler(event):
        msg = to_inbound(event.message)
        if not msg.text:
            return
        await router.route(msg)

    logger.info("📡 Escuchando canales de señales...")
    await client.run_until_disconnected()
