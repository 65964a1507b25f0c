# services/telegram_service/command_bot.py
import logging
from telegram import Update
from telegram.ext import CommandHandler, ContextTypes

from utils.formatters import format_active_list, format_status_summary

logger = logging.getLogger("command_bot")


def register_handlers(application, store):
    """
    ÚNICA función pública que main.py debe importar.
    """
    application.bot_data["store"] = store

    application.add_handler(CommandHandler("help", cmd_help))
    application.add_handler(CommandHandler("estado", cmd_estado))
    application.add_handler(CommandHandler("senales", cmd_senales))

    logger.info("✅ Handlers registrados correctamente (command_bot).")


async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE):
    txt = (
        "🤖 Options Signal Monitor\n\n"
        "Comandos:\n"
        "/estado - resumen por estado\n"
        "/senales - señales activas (PENDING / ACTIVE / WAITING)\n"
    )
    await update.message.reply_text(txt)


async def cmd_estado(update: Update, context: ContextTypes.DEFAULT_TYPE):
    store = context.application.bot_data.get("store")
    if store is None:
        return await update.message.reply_text("⚠️ Store no disponible.")

    await update.message.reply_text(format_status_summary(store.list_all()))


async def cmd_senales(update: Update, context: ContextTypes.DEFAULT_TYPE):
    store = context.application.bot_data.get("store")
    if store is None:
        return await update.message.reply_text("⚠️ Store no disponible.")

    await update.message.reply_text(format_active_list(store.list_active()))
