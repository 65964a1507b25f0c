"""
services/broker_service/angelone_client.py
------------------------------------------
Cliente mínimo de órdenes para Angel One SmartAPI (REST).

El login y el refresh del token se hacen fuera de esta app: aquí solo se
lee el JWT guardado en angelone-session.json ({accessToken, refreshToken,
feedToken}).
"""

import json
import logging
import os

import requests

from models.order import OrderResult

logger = logging.getLogger("angelone_client")

PLACE_ORDER_PATH = "/rest/secure/angelbroking/order/v1/placeOrder"


class AngelOneClient:
    def __init__(self, api_key: str, session_file: str, base_url: str, timeout: int = 10):
        self.api_key = api_key
        self.session_file = session_file
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = requests.Session()

    # ======================================================
    # 🔐 SESIÓN
    # ======================================================
    def _access_token(self) -> str:
        if not os.path.exists(self.session_file):
            return ""
        try:
            with open(self.session_file, "r", encoding="utf-8") as fh:
                return json.load(fh).get("accessToken", "")
        except (OSError, ValueError) as e:
            logger.error(f"❌ Sesión Angel One ilegible: {e}")
            return ""

    def _headers(self, token: str) -> dict:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-UserType": "USER",
            "X-SourceID": "WEB",
            "X-ClientLocalIP": "127.0.0.1",
            "X-ClientPublicIP": "127.0.0.1",
            "X-MACAddress": "00:00:00:00:00:00",
            "X-PrivateKey": self.api_key,
        }

    # ======================================================
    # 🧾 ORDEN
    # ======================================================
    def place_order(self, order_spec: dict) -> OrderResult:
        token = self._access_token()
        if not token:
            return OrderResult(accepted=False, message="Sin sesión de Angel One")

        try:
            r = self.http.post(
                self.base_url + PLACE_ORDER_PATH,
                json=order_spec,
                headers=self._headers(token),
                timeout=self.timeout,
            )
            data = r.json()
        except requests.JSONDecodeError:
            logger.error(f"❌ Respuesta no JSON de Angel One: {r.text[:200]}")
            return OrderResult(accepted=False, message=f"HTTP {r.status_code}")
        except requests.RequestException as e:
            logger.error(f"❌ Error HTTP en placeOrder: {e}")
            return OrderResult(accepted=False, message=str(e))

        if data.get("status") and data.get("data"):
            return OrderResult(accepted=True, order_id=str(data["data"].get("orderid")))

        return OrderResult(
            accepted=False,
            message=data.get("message") or data.get("errorcode") or "Orden rechazada",
        )
