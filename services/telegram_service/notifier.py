import logging

logger = logging.getLogger("notifier")


class Notifier:
    """
    Contrato ÚNICO:
    - constructor requiere bot (python-telegram-bot) y chat_id
    - único método público: send(text)
    - nunca lanza: un fallo de Telegram no debe frenar el flujo de señales
    """

    def __init__(self, bot, chat_id: int):
        if not chat_id:
            raise ValueError("❌ Notifier requiere chat_id válido")
        self.bot = bot
        self.chat_id = chat_id

    async def send(self, text: str):
        try:
            await self.bot.send_message(chat_id=self.chat_id, text=text)
        except Exception as e:
            logger.exception(f"❌ Error enviando mensaje Telegram: {e}")
