"""
config.py
---------
Configuración central del Options Signal Monitor.

Incluye:
    ✔ Variables de entorno
    ✔ Config de Telegram (Telethon + Bot)
    ✔ Config de Angel One (SmartAPI + scrip master)
    ✔ Persistencia del estado de señales
"""

import os
from dotenv import load_dotenv

# ============================================================
# Cargar archivo .env
# ============================================================

load_dotenv()


def _int_set(raw: str) -> set:
    out = set()
    for part in raw.split(","):
        part = part.strip()
        if part.lstrip("-").isdigit():
            out.add(int(part))
    return out


# ============================================================
# RUTAS DEL PROYECTO
# ============================================================

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

LOG_DIR = os.getenv("LOG_DIR", os.path.join(BASE_DIR, "logs"))
SIGNALS_STATE_PATH = os.getenv(
    "SIGNALS_STATE_PATH", os.path.join(BASE_DIR, "signals-state.json")
)


# ============================================================
# TELEGRAM — API DE USUARIO (TELETHON)
# ============================================================

API_ID = int(os.getenv("API_ID") or 0)
API_HASH = os.getenv("API_HASH", "")
TELEGRAM_SESSION = os.getenv("TELEGRAM_SESSION", "options_signal_monitor")

# Canales/grupos escuchados (ids separados por coma). Vacío = todos.
TELEGRAM_CHANNEL_IDS = _int_set(os.getenv("TELEGRAM_CHANNEL_IDS", ""))


# ============================================================
# TELEGRAM — BOT (notificaciones + comandos)
# ============================================================

TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
TELEGRAM_USER_ID = int(os.getenv("TELEGRAM_USER_ID") or 0)


# ============================================================
# ANGEL ONE — SMARTAPI
# ============================================================

ANGELONE_API_KEY = os.getenv("ANGELONE_API_KEY", "")
ANGELONE_CLIENT_CODE = os.getenv("ANGELONE_CLIENT_CODE", "")
ANGELONE_SESSION_FILE = os.getenv(
    "ANGELONE_SESSION_FILE", os.path.join(BASE_DIR, "angelone-session.json")
)
ANGELONE_BASE_URL = os.getenv("ANGELONE_BASE_URL", "https://apiconnect.angelone.in")

INSTRUMENTS_URL = os.getenv(
    "INSTRUMENTS_URL",
    "https://margincalculator.angelbroking.com/OpenAPI_File/files/OpenAPIScripMaster.json",
)
INSTRUMENTS_CACHE_PATH = os.getenv(
    "INSTRUMENTS_CACHE_PATH", os.path.join(BASE_DIR, "instruments-cache.json")
)
INSTRUMENTS_CACHE_MAX_AGE_HOURS = int(os.getenv("INSTRUMENTS_CACHE_MAX_AGE_HOURS", "24"))


# ============================================================
# SEÑALES
# ============================================================

# Señales CLOSED más antiguas que esto se eliminan del snapshot
SIGNAL_RETENTION_DAYS = int(os.getenv("SIGNAL_RETENTION_DAYS", "7"))
CLEANUP_INTERVAL_MINUTES = int(os.getenv("CLEANUP_INTERVAL_MINUTES", "60"))

# Ventana de deduplicación de mensajes (reintentos del transporte)
DEDUP_WINDOW_SIZE = int(os.getenv("DEDUP_WINDOW_SIZE", "100"))


# ============================================================
# FLAGS DEL SISTEMA
# ============================================================

DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"


# ============================================================
# VALIDACIÓN RÁPIDA (para evitar errores en tiempo de ejecución)
# ============================================================


def validate_config() -> list:
    errors = []

    if API_ID == 0 or not API_HASH:
        errors.append("❌ TELEGRAM API_ID/API_HASH no configurados.")

    if not TELEGRAM_CHANNEL_IDS:
        errors.append("⚠️ TELEGRAM_CHANNEL_IDS vacío: se escucharán todos los chats.")

    if not TELEGRAM_BOT_TOKEN:
        errors.append("⚠️ TELEGRAM_BOT_TOKEN no configurado (sin notificaciones).")

    if not ANGELONE_API_KEY:
        errors.append("❌ ANGELONE_API_KEY no configurada.")

    if not os.path.exists(ANGELONE_SESSION_FILE):
        errors.append(f"⚠️ Sesión Angel One no encontrada en {ANGELONE_SESSION_FILE}.")

    return errors


# ============================================================
# EJECUCIÓN OPCIONAL (debug)
# ============================================================

if __name__ == "__main__":
    print("📘 Validando configuración...")
    problems = validate_config()
    if problems:
        print("\n".join(problems))
        print("⚠️ Revisa tu archivo .env antes de continuar.\n")
    else:
        print("✔ Configuración OK.")
