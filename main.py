# main.py
import asyncio
import logging
from types import SimpleNamespace

from telegram.ext import Application

import config
from controllers.message_router import MessageRouter
from services.application.order_service import OrderService
from services.broker_service.angelone_client import AngelOneClient
from services.broker_service.instrument_lookup import InstrumentLookup
from services.coordinators.signal_coordinator import SignalCoordinator
from services.scheduler_service import start_cleanup_loop
from services.signals_service.signal_store import SignalStore
from services.telegram_service.command_bot import register_handlers
from services.telegram_service.notifier import Notifier
from services.telegram_service.telegram_reader import start_telegram_reader
from utils.logger import configure_logging

logger = logging.getLogger("main")


def build_app_layer(bot=None) -> SimpleNamespace:
    """
    Construye todos los servicios una sola vez y los conecta entre sí.
    """
    store = SignalStore(config.SIGNALS_STATE_PATH)
    store.load()

    instruments = InstrumentLookup(
        config.INSTRUMENTS_CACHE_PATH,
        config.INSTRUMENTS_URL,
        config.INSTRUMENTS_CACHE_MAX_AGE_HOURS,
    )
    broker = AngelOneClient(
        config.ANGELONE_API_KEY,
        config.ANGELONE_SESSION_FILE,
        config.ANGELONE_BASE_URL,
    )

    notifier = None
    if bot is not None and config.TELEGRAM_USER_ID:
        notifier = Notifier(bot, config.TELEGRAM_USER_ID)

    coordinator = SignalCoordinator(store, OrderService(broker, instruments), notifier)
    router = MessageRouter(coordinator, config.TELEGRAM_CHANNEL_IDS, config.DEDUP_WINDOW_SIZE)

    return SimpleNamespace(
        store=store,
        instruments=instruments,
        coordinator=coordinator,
        router=router,
    )


async def _load_instruments(app_layer):
    try:
        await app_layer.instruments.initialize()
    except Exception as e:
        # Sin instrumentos las órdenes fallan y las señales quedan PENDING
        logger.error(f"❌ No se pudo cargar el scrip master: {e}")


def _background_tasks(app_layer):
    return [
        start_telegram_reader(
            app_layer.router, config.API_ID, config.API_HASH, config.TELEGRAM_SESSION
        ),
        start_cleanup_loop(
            app_layer.store, config.SIGNAL_RETENTION_DAYS, config.CLEANUP_INTERVAL_MINUTES
        ),
    ]


async def post_init(app: Application):
    """
    Se ejecuta dentro del loop asyncio de python-telegram-bot.
    Inicializa la capa de aplicación y lanza las tareas de fondo.
    """
    app_layer = build_app_layer(bot=app.bot)
    app.bot_data["app_layer"] = app_layer
    await _load_instruments(app_layer)

    register_handlers(app, app_layer.store)

    for coro in _background_tasks(app_layer):
        app.create_task(coro)

    logger.info("✅ Background tasks iniciadas correctamente")


async def post_shutdown(app: Application):
    app_layer = app.bot_data.get("app_layer")
    if app_layer:
        app_layer.store.shutdown()


async def run_headless():
    """Modo sin bot: solo Telethon + limpieza, sin notificaciones."""
    app_layer = build_app_layer()
    await _load_instruments(app_layer)

    reader, cleanup = _background_tasks(app_layer)
    cleanup_task = asyncio.create_task(cleanup)
    try:
        await reader
    finally:
        cleanup_task.cancel()
        app_layer.store.shutdown()


def main():
    configure_logging(config.LOG_DIR, config.DEBUG_MODE)

    for problem in config.validate_config():
        logger.warning(problem)

    if not (config.API_ID and config.API_HASH):
        logger.error("❌ Faltan API_ID/API_HASH de Telegram. Abortando.")
        return

    if not config.TELEGRAM_BOT_TOKEN:
        logger.info("🚀 Iniciando en modo headless (sin bot de comandos)...")
        asyncio.run(run_headless())
        return

    logger.info("🚀 Bot iniciado. Polling...")
    application = (
        Application.builder()
        .token(config.TELEGRAM_BOT_TOKEN)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )
    application.run_polling()


if __name__ == "__main__":
    main()
