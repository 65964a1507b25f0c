"""Scrip master indexing and option contract resolution (no network)."""

import json
from datetime import timedelta

import pytest

from services.broker_service.instrument_lookup import InstrumentLookup, build_option_symbol
from utils.helpers import utc_now


def option(name, expiry, strike, opt, token, lot="1225"):
    return {
        "token": token,
        "symbol": f"{name}{expiry[:2]}{expiry[2:5]}{expiry[-2:]}{strike}{opt}",
        "name": name,
        "expiry": expiry,
        "strike": f"{strike * 100:.6f}",
        "lotsize": lot,
        "instrumenttype": "OPTSTK",
        "exch_seg": "NFO",
    }


SCRIP_MASTER = [
    {"token": "2885", "symbol": "RELIANCE-EQ", "name": "RELIANCE", "exch_seg": "NSE", "lotsize": "1"},
    {"token": "500325", "symbol": "RELIANCE", "name": "RELIANCE", "exch_seg": "BSE", "lotsize": "1"},
    {"token": "999", "symbol": "TATAPOWER", "name": "TATAPOWER", "exch_seg": "BSE", "lotsize": "1"},
    option("HINDZINC", "27FEB2025", 750, "CE", "52311"),
    option("HINDZINC", "27FEB2025", 750, "PE", "52312"),
    option("HINDZINC", "26FEB2026", 750, "CE", "61000"),
    option("HINDZINC", "30JAN2025", 750, "CE", "40000"),
    option("NIFTY", "06FEB2025", 24500, "PE", "70001", lot="75"),
    option("NIFTY", "27FEB2025", 24500, "PE", "70004", lot="75"),
    option("NIFTY", "13FEB2025", 24500, "PE", "70002", lot="75"),
]


@pytest.fixture
def lookup(tmp_path):
    lk = InstrumentLookup(str(tmp_path / "instruments.json"), "http://invalid.local/scrip.json")
    lk.load_instruments(SCRIP_MASTER)
    return lk


class TestResolveOption:
    def test_monthly_contract(self, lookup):
        inst = lookup.resolve_option("HINDZINC", 750, "CE", "FEB")
        assert inst.token == "52311"
        assert inst.lot_size == 1225
        assert inst.exchange == "NFO"

    def test_picks_last_expiry_of_month(self, lookup):
        assert lookup.resolve_option("nifty", 24500.0, "pe", "feb").token == "70004"

    def test_option_type_and_month_matter(self, lookup):
        assert lookup.resolve_option("HINDZINC", 750, "PE", "FEB").token == "52312"
        assert lookup.resolve_option("HINDZINC", 750, "CE", "JAN").token == "40000"

    @pytest.mark.parametrize(
        "args",
        [("HINDZINC", 760, "CE", "FEB"), ("HINDZINC", 750, "CE", "MAR"), ("ZINC", 750, "CE", "FEB")],
    )
    def test_missing(self, lookup, args):
        assert lookup.resolve_option(*args) is None


class TestLookupInstrument:
    def test_equity_alias_without_suffix(self, lookup):
        inst = lookup.lookup_instrument("RELIANCE")
        assert inst.trading_symbol == "RELIANCE-EQ"
        assert inst.token == "2885"

    def test_falls_back_to_bse(self, lookup):
        assert lookup.lookup_instrument("TATAPOWER").token == "999"

    def test_explicit_exchange(self, lookup):
        assert lookup.lookup_instrument("RELIANCE", "BSE").token == "500325"

    def test_by_token(self, lookup):
        assert lookup.lookup_by_token(70001).lot_size == 75
        assert lookup.lookup_by_token("nope") is None


def test_build_option_symbol():
    assert build_option_symbol("hindzinc", 750.0, "ce", "feb", year=2026) == "HINDZINC26FEB750CE"


class TestCache:
    def _write_cache(self, path, age_hours):
        ts = (utc_now() - timedelta(hours=age_hours)).isoformat()
        with open(path, "w", encoding="utf-8") as fh:
            json.dump({"timestamp": ts, "instruments": SCRIP_MASTER}, fh)

    def test_validity_window(self, tmp_path):
        path = str(tmp_path / "instruments.json")
        lk = InstrumentLookup(path, "http://invalid.local")
        assert lk.is_cache_valid() is False

        self._write_cache(path, 2)
        assert lk.is_cache_valid() is True

        self._write_cache(path, 30)
        assert lk.is_cache_valid() is False

    @pytest.mark.asyncio
    async def test_initialize_from_fresh_cache(self, tmp_path):
        path = str(tmp_path / "instruments.json")
        self._write_cache(path, 1)

        lk = InstrumentLookup(path, "http://invalid.local")
        assert await lk.initialize() == len(SCRIP_MASTER)
        assert lk.resolve_option("HINDZINC", 750, "CE", "FEB") is not None

    @pytest.mark.asyncio
    async def test_stale_cache_used_when_download_fails(self, tmp_path, monkeypatch):
        path = str(tmp_path / "instruments.json")
        self._write_cache(path, 48)
        lk = InstrumentLookup(path, "http://invalid.local")

        async def failing_download():
            raise RuntimeError("HTTP 503 descargando instrumentos")

        monkeypatch.setattr(lk, "_download", failing_download)
        assert await lk.initialize() == len(SCRIP_MASTER)

    @pytest.mark.asyncio
    async def test_download_failure_without_cache_raises(self, tmp_path, monkeypatch):
        lk = InstrumentLookup(str(tmp_path / "none.json"), "http://invalid.local")

        async def failing_download():
            raise RuntimeError("HTTP 503 descargando instrumentos")

        monkeypatch.setattr(lk, "_download", failing_download)
        with pytest.raises(RuntimeError):
            await lk.initialize()
