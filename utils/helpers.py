"""
utils/helpers.py
-----------------
Funciones pequeñas y reutilizables para toda la aplicación.
"""

from datetime import datetime, timezone
from typing import Optional


MONTH_CODES = [
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
]

MONTH_NAMES = {
    "JANUARY": "JAN",
    "FEBRUARY": "FEB",
    "MARCH": "MAR",
    "APRIL": "APR",
    "MAY": "MAY",
    "JUNE": "JUN",
    "JULY": "JUL",
    "AUGUST": "AUG",
    "SEPTEMBER": "SEP",
    "OCTOBER": "OCT",
    "NOVEMBER": "NOV",
    "DECEMBER": "DEC",
}


# ============================================================
# 🔢 Validar si es float
# ============================================================
def safe_float(value) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# ============================================================
# 🔵 Timestamps
# ============================================================

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def now_ts() -> str:
    """Devuelve timestamp ISO en UTC (para logs y snapshot)."""
    return utc_now().isoformat()


def parse_ts(value: str) -> Optional[datetime]:
    """
    Convierte un timestamp ISO a datetime con zona.
    Acepta el sufijo 'Z' de los snapshots antiguos.
    """
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


# ============================================================
# 📅 Meses de vencimiento
# ============================================================

def current_month_code(now: Optional[datetime] = None) -> str:
    now = now or utc_now()
    return MONTH_CODES[now.month - 1]


def month_code(name: str) -> str:
    """
    FEBRUARY → FEB. Un nombre desconocido se recorta a 3 letras.
    """
    name = name.strip().upper()
    return MONTH_NAMES.get(name, name[:3])


# ============================================================
# 🔵 Comandos de Telegram
# ============================================================

def is_command(text: str) -> bool:
    """Devuelve True si el mensaje parece un comando (/algo)."""
    return bool(text) and text.strip().startswith("/")
