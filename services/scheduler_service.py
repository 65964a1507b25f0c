"""
services/scheduler_service.py
------------------------------
Ciclos periódicos en segundo plano:
 - Limpieza de señales CLOSED antiguas del snapshot
"""

import asyncio
import logging

logger = logging.getLogger("scheduler_service")


# ============================================================
# 🔹 LOOP: limpieza de señales cerradas
# ============================================================

async def start_cleanup_loop(store, max_age_days: int = 7, interval_minutes: int = 60):
    logger.info(
        f"🕒 Limpieza programada cada {interval_minutes} min (retención {max_age_days} días)"
    )
    while True:
        try:
            removed = store.cleanup(max_age_days)
            if removed:
                logger.info(f"🧹 Limpieza: {removed} señales eliminadas")
        except Exception as e:
            logger.error(f"❌ Error en ciclo de limpieza: {e}")
        await asyncio.sleep(interval_minutes * 60)
