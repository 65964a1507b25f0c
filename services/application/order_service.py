# ================================================================
# order_service.py
# Servicio único para construir y enviar órdenes al broker
# ================================================================
import logging

from models.order import OrderResult, TradeSignal
from models.signal import Signal, TradeAction

logger = logging.getLogger("order_service")

OPPOSITE = {TradeAction.BUY: "SELL", TradeAction.SELL: "BUY"}


class OrderService:
    """
    Traduce señales en órdenes del broker.

    - gateway:  objeto con place_order(order_spec) -> OrderResult
    - resolver: objeto con resolve_option(...) y lookup_instrument(...)

    Nunca lanza excepciones: cualquier fallo del broker o del resolver se
    convierte en OrderResult(accepted=False).
    """

    def __init__(self, gateway, resolver, exchange: str = "NFO", product_type: str = "INTRADAY"):
        self.gateway = gateway
        self.resolver = resolver
        self.exchange = exchange
        self.product_type = product_type

    # ------------------------------------------------------------
    # 🔧 Envío común
    # ------------------------------------------------------------
    def _submit(self, spec: dict, label: str) -> OrderResult:
        logger.info(
            f"📤 {label}: {spec['transactiontype']} {spec['tradingsymbol']} "
            f"{spec['ordertype']} @ {spec['price']} x{spec['quantity']}"
        )
        try:
            result = self.gateway.place_order(spec)
        except Exception as e:
            logger.exception(f"❌ {label}: error del broker: {e}")
            return OrderResult(accepted=False, message=str(e))

        if result.accepted:
            logger.info(f"✅ {label} aceptada: {result.order_id}")
        else:
            logger.warning(f"⚠️ {label} rechazada: {result.message}")
        return result

    def _option_spec(self, signal: Signal, side: str, order_type: str, price: float):
        try:
            instrument = self.resolver.resolve_option(
                signal.symbol, signal.strike, signal.option_type.value, signal.expiry
            )
        except Exception as e:
            logger.exception(f"❌ Error resolviendo opción {signal.symbol}: {e}")
            return None

        if not instrument:
            return None

        return {
            "variety": "NORMAL",
            "tradingsymbol": instrument.trading_symbol,
            "symboltoken": instrument.token,
            "transactiontype": side,
            "exchange": self.exchange,
            "ordertype": order_type,
            "producttype": self.product_type,
            "duration": "DAY",
            "price": str(price) if order_type == "LIMIT" else "0",
            "quantity": str(instrument.lot_size),
        }

    # ------------------------------------------------------------
    # 🚀 Entrada (LIMIT a entry_price)
    # ------------------------------------------------------------
    def place_entry(self, signal: Signal) -> OrderResult:
        spec = self._option_spec(signal, signal.action.value, "LIMIT", signal.entry_price)
        if spec is None:
            return OrderResult(
                accepted=False,
                message=f"Opción no encontrada: {signal.symbol} {signal.strike:g} "
                f"{signal.option_type.value} {signal.expiry}",
            )
        return self._submit(spec, f"Entrada señal {signal.message_id}")

    # ------------------------------------------------------------
    # 🔻 Salida (lado opuesto a la entrada)
    # ------------------------------------------------------------
    def place_exit(self, signal: Signal, order_type: str = "MARKET", price: float = 0) -> OrderResult:
        spec = self._option_spec(signal, OPPOSITE[signal.action], order_type, price)
        if spec is None:
            return OrderResult(
                accepted=False,
                message=f"Opción no encontrada para salida: {signal.symbol} "
                f"{signal.strike:g} {signal.option_type.value}",
            )
        return self._submit(spec, f"Salida señal {signal.message_id}")

    # ------------------------------------------------------------
    # 📈 Señal legacy de una línea (equity)
    # ------------------------------------------------------------
    def place_trade(self, trade: TradeSignal) -> OrderResult:
        try:
            instrument = self.resolver.lookup_instrument(trade.symbol, trade.exchange)
        except Exception as e:
            logger.exception(f"❌ Error buscando instrumento {trade.symbol}: {e}")
            return OrderResult(accepted=False, message=str(e))

        if not instrument:
            return OrderResult(accepted=False, message=f"Instrumento no encontrado: {trade.symbol}")

        spec = {
            "variety": "NORMAL",
            "tradingsymbol": instrument.trading_symbol,
            "symboltoken": instrument.token,
            "transactiontype": trade.action,
            "exchange": trade.exchange,
            "ordertype": trade.order_type,
            "producttype": trade.product_type,
            "duration": "DAY",
            "price": str(trade.price),
            "quantity": str(trade.quantity),
        }
        return self._submit(spec, f"Orden {trade.symbol}")
