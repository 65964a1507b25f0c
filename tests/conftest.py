"""Shared test fixtures: store on tmp_path, fake broker/resolver/notifier."""

import pytest

from models.order import Instrument, OrderResult
from models.signal import OptionType, Signal, SignalStatus, TradeAction
from services.application.order_service import OrderService
from services.coordinators.signal_coordinator import SignalCoordinator
from services.signals_service.signal_store import SignalStore

ENTRY_TEXT = "BUY HINDZINC\n750 CE ABOVE 33\nSL 30.5 TARGET 36 40\nFEBRUARY SERIES"


def make_signal(**kwargs) -> Signal:
    """Señal de prueba con valores razonables por defecto."""
    defaults = {
        "message_id": 101,
        "action": TradeAction.BUY,
        "symbol": "HINDZINC",
        "strike": 750.0,
        "option_type": OptionType.CE,
        "entry_price": 33.0,
        "stop_loss": 15.25,
        "original_sl": 30.5,
        "target": 36.0,
        "expiry": "FEB",
        "status": SignalStatus.PENDING,
    }
    defaults.update(kwargs)
    return Signal(**defaults)


class FakeGateway:
    def __init__(self, accept: bool = True, raises: Exception = None):
        self.accept = accept
        self.raises = raises
        self.orders = []

    def place_order(self, spec: dict) -> OrderResult:
        self.orders.append(spec)
        if self.raises:
            raise self.raises
        if self.accept:
            return OrderResult(accepted=True, order_id=f"ORD{len(self.orders)}")
        return OrderResult(accepted=False, message="RMS: margin exceeds")


class FakeResolver:
    def __init__(self, found: bool = True):
        self.found = found

    def resolve_option(self, symbol, strike, option_type, expiry):
        if not self.found:
            return None
        return Instrument(
            trading_symbol=f"{symbol}26{expiry}{int(strike)}{option_type}",
            token="52311",
            lot_size=1225,
        )

    def lookup_instrument(self, symbol, exchange="NSE"):
        if not self.found:
            return None
        return Instrument(trading_symbol=f"{symbol}-EQ", token="2885", lot_size=1, exchange=exchange)


class FakeNotifier:
    def __init__(self):
        self.sent = []

    async def send(self, text: str):
        self.sent.append(text)


@pytest.fixture
def state_path(tmp_path):
    return str(tmp_path / "signals-state.json")


@pytest.fixture
def store(state_path) -> SignalStore:
    s = SignalStore(state_path)
    s.load()
    return s


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def coordinator(store, gateway, notifier) -> SignalCoordinator:
    return SignalCoordinator(store, OrderService(gateway, FakeResolver()), notifier)
