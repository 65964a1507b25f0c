"""
utils/logger.py
----------------
Configuración central del sistema de logging.
Todos los módulos usan el logger configurado aquí.
"""

import logging
import os
from logging.handlers import RotatingFileHandler


# ============================================================
# 🔵 CONFIGURAR LOGGING GLOBAL
# ============================================================

def configure_logging(log_dir: str = "logs", debug: bool = False):
    """
    Configuración unificada del sistema de logs.
    Se invoca una vez desde main.py.
    """

    os.makedirs(log_dir, exist_ok=True)

    level = logging.DEBUG if debug else logging.INFO
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Evitar múltiples configuraciones si ya existe un handler
    if logging.getLogger().hasHandlers():
        logging.getLogger().handlers.clear()

    # -----------------------------
    # Consola (stream handler)
    # -----------------------------
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(log_format))

    # -----------------------------
    # Archivo con rotación
    # -----------------------------
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, "options_monitor.log"),
        maxBytes=5_000_000,   # 5 MB
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(log_format))

    logging.basicConfig(
        level=level,
        handlers=[console_handler, file_handler]
    )

    logging.getLogger("telegram").setLevel(logging.WARNING)
    logging.getLogger("telethon").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logging.info("📘 Logging configurado correctamente (archivo + consola).")
