"""
services/broker_service/instrument_lookup.py
--------------------------------------------
Búsqueda de instrumentos en el scrip master de Angel One.

El scrip master (~100k registros) se descarga con aiohttp y se cachea en
disco como {"timestamp": iso, "instruments": [...]}, válido 24h.

Registro típico de opción:
    {"token": "52311", "symbol": "HINDZINC27FEB25750CE", "name": "HINDZINC",
     "expiry": "27FEB2025", "strike": "75000.000000", "lotsize": "1225",
     "instrumenttype": "OPTSTK", "exch_seg": "NFO"}

Nota: el strike del scrip master viene multiplicado por 100.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

import aiohttp

from models.order import Instrument
from utils.helpers import now_ts, parse_ts, safe_float, utc_now

logger = logging.getLogger("instrument_lookup")

OptionKey = Tuple[str, float, str, str]


def build_option_symbol(
    symbol: str, strike: float, option_type: str, expiry: str, year: Optional[int] = None
) -> str:
    """
    Símbolo de opción estilo Angel One: {SYMBOL}{YY}{MON}{STRIKE}{CE/PE}
    Ej: HINDZINC26FEB750CE
    """
    year = year or utc_now().year
    strike_str = str(int(round(float(strike))))
    return f"{symbol.upper()}{str(year)[-2:]}{expiry.upper()}{strike_str}{option_type.upper()}"


def _parse_expiry(raw: str) -> Optional[datetime]:
    try:
        return datetime.strptime(raw.upper(), "%d%b%Y")
    except (AttributeError, ValueError):
        return None


def _to_instrument(inst: dict) -> Instrument:
    lot = safe_float(inst.get("lotsize")) or 1
    return Instrument(
        trading_symbol=inst.get("symbol", ""),
        token=str(inst.get("token", "")),
        lot_size=max(int(lot), 1),
        exchange=inst.get("exch_seg", ""),
        name=inst.get("name", ""),
        expiry=inst.get("expiry", ""),
    )


class InstrumentLookup:
    def __init__(self, cache_path: str, url: str, max_age_hours: int = 24):
        self.cache_path = cache_path
        self.url = url
        self.max_age = timedelta(hours=max_age_hours)

        self.by_symbol: Dict[str, dict] = {}
        self.by_token: Dict[str, dict] = {}
        self.options: Dict[OptionKey, List[dict]] = {}

    # ------------------------------------------------------------
    # 📂 Cache
    # ------------------------------------------------------------
    def _read_cache(self) -> Optional[dict]:
        if not os.path.exists(self.cache_path):
            return None
        try:
            with open(self.cache_path, "r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, ValueError) as e:
            logger.warning(f"⚠️ Cache de instrumentos ilegible: {e}")
            return None

    def is_cache_valid(self) -> bool:
        cache = self._read_cache()
        if not cache:
            return False
        ts = parse_ts(cache.get("timestamp", ""))
        return ts is not None and utc_now() - ts < self.max_age

    async def _download(self) -> List[dict]:
        logger.info("⬇️ Descargando scrip master de Angel One…")

        timeout = aiohttp.ClientTimeout(total=120)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(self.url) as response:
                if response.status != 200:
                    raise RuntimeError(f"HTTP {response.status} descargando instrumentos")
                instruments = await response.json(content_type=None)

        try:
            with open(self.cache_path, "w", encoding="utf-8") as fh:
                json.dump({"timestamp": now_ts(), "instruments": instruments}, fh)
        except OSError as e:
            logger.error(f"❌ No se pudo escribir cache de instrumentos: {e}")

        logger.info(f"💾 {len(instruments)} instrumentos cacheados")
        return instruments

    async def initialize(self) -> int:
        """
        Carga desde cache si está fresca; si no, descarga.
        Si la descarga falla se usa la cache vencida como último recurso.
        """
        if self.is_cache_valid():
            instruments = self._read_cache().get("instruments", [])
            logger.info(f"📥 {len(instruments)} instrumentos cargados desde cache")
        else:
            try:
                instruments = await self._download()
            except (aiohttp.ClientError, RuntimeError, ValueError) as e:
                logger.error(f"❌ Error descargando instrumentos: {e}")
                stale = self._read_cache()
                if not stale:
                    raise
                logger.warning("⚠️ Usando cache de instrumentos vencida")
                instruments = stale.get("instruments", [])

        self.load_instruments(instruments)
        return len(instruments)

    # ------------------------------------------------------------
    # 🗂 Índices
    # ------------------------------------------------------------
    def load_instruments(self, instruments: List[dict]):
        self.by_symbol.clear()
        self.by_token.clear()
        self.options.clear()

        for inst in instruments:
            exch = inst.get("exch_seg", "")
            symbol = inst.get("symbol", "")

            self.by_symbol[f"{exch}:{symbol}"] = inst
            self.by_token[str(inst.get("token", ""))] = inst

            # Equity NSE: también sin el sufijo -EQ
            if exch == "NSE" and symbol.endswith("-EQ"):
                self.by_symbol.setdefault(f"NSE:{symbol[:-3]}", inst)

            if str(inst.get("instrumenttype", "")).startswith("OPT"):
                key = self._option_key_from_record(inst)
                if key:
                    self.options.setdefault(key, []).append(inst)

    @staticmethod
    def _option_key_from_record(inst: dict) -> Optional[OptionKey]:
        strike = safe_float(inst.get("strike"))
        expiry = str(inst.get("expiry", ""))
        symbol = str(inst.get("symbol", ""))
        if strike is None or len(expiry) < 5 or symbol[-2:] not in ("CE", "PE"):
            return None
        return (
            str(inst.get("name", "")).upper(),
            round(strike / 100, 2),
            symbol[-2:],
            expiry[2:5].upper(),
        )

    # ------------------------------------------------------------
    # 🔎 Búsquedas
    # ------------------------------------------------------------
    def lookup_instrument(self, symbol: str, exchange: str = "NSE") -> Optional[Instrument]:
        """Exacto → NSE con -EQ → BSE."""
        candidates = [f"{exchange}:{symbol}"]
        if exchange == "NSE":
            candidates += [f"NSE:{symbol}-EQ", f"BSE:{symbol}"]

        for key in candidates:
            inst = self.by_symbol.get(key)
            if inst:
                return _to_instrument(inst)
        return None

    def lookup_by_token(self, token: str) -> Optional[Instrument]:
        inst = self.by_token.get(str(token))
        return _to_instrument(inst) if inst else None

    def resolve_option(
        self, symbol: str, strike: float, option_type: str, expiry: str
    ) -> Optional[Instrument]:
        """
        Contrato mensual: dentro del mes pedido se elige el vencimiento más
        tardío del año más cercano.
        """
        key = (symbol.upper(), round(float(strike), 2), option_type.upper(), expiry.upper())
        records = self.options.get(key)
        if not records:
            logger.warning(f"⚠️ Opción no encontrada: {symbol} {strike:g} {option_type} {expiry}")
            return None

        dated = [(_parse_expiry(r.get("expiry", "")), r) for r in records]
        dated = [(d, r) for d, r in dated if d is not None]
        if not dated:
            return _to_instrument(records[0])

        first_year = min(d.year for d, _ in dated)
        _, chosen = max((item for item in dated if item[0].year == first_year), key=lambda x: x[0])
        return _to_instrument(chosen)

    @staticmethod
    def lot_size(instrument: Instrument) -> int:
        return instrument.lot_size if instrument and instrument.lot_size > 0 else 1
