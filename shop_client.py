"""
Client for the 9 Tierras REST API.

Does what the storefront pages do over the network: loads the catalog,
checks out the cart, logs in and registers, and sends the contact,
newsletter and reservation forms. Each call is a single attempt; failures
raise ShopClientError with a message meant for the customer and leave the
local state (cart, cached user) unchanged.
"""

import json
import logging
import re
from collections.abc import MutableMapping
from typing import List, Optional

import httpx

from cart import Cart

logger = logging.getLogger(__name__)

USER_KEY = "user"
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ShopClientError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EmptyCartError(ShopClientError):
    pass


class ShopClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        http: Optional[httpx.Client] = None,
        storage: Optional[MutableMapping] = None,
        timeout: float = 10.0,
    ):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        # plays the role of the browser's sessionStorage
        self.storage = storage if storage is not None else {}

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ---------- transport ----------

    def _request(self, method: str, path: str, network_message: str, payload: Optional[dict] = None):
        try:
            resp = self.http.request(method, path, json=payload)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise ShopClientError(network_message) from e
        try:
            data = resp.json()
        except ValueError:
            data = None
        return resp, data

    def _post(self, path: str, payload: dict, network_message: str):
        resp, data = self._request("POST", path, network_message, payload)
        return resp, data if isinstance(data, dict) else {}

    # ---------- catalog & cart ----------

    def fetch_products(self) -> List[dict]:
        _, data = self._request("GET", "/api/products", "Error cargando cervezas.")
        if not isinstance(data, list):
            raise ShopClientError("No se pudo cargar el catálogo.")
        return data

    def checkout(self, cart: Cart) -> str:
        """Send the cart as an order; clears it and returns the order id on success."""
        if cart.is_empty:
            raise EmptyCartError("El carrito está vacío")
        resp, data = self._post(
            "/api/checkout", {"cart": cart.to_payload()}, "No se pudo conectar con el servidor"
        )
        if not resp.is_success or not data.get("success"):
            raise ShopClientError(data.get("error") or "Error al procesar la compra")
        cart.clear()
        return data.get("orderId")

    # ---------- account ----------

    def login(self, email: str, password: str) -> dict:
        _, data = self._post(
            "/api/login",
            {"email": email.strip(), "password": password.strip()},
            "Error de conexión con el servidor.",
        )
        if not data.get("ok"):
            raise ShopClientError(data.get("error") or "Credenciales incorrectas")
        user = {"email": data.get("email"), "role": data.get("role")}
        self.storage[USER_KEY] = json.dumps(user)
        return user

    def current_user(self) -> Optional[dict]:
        """The user cached at login. Display only, the server decides access."""
        try:
            user = json.loads(self.storage.get(USER_KEY) or "null")
        except ValueError:
            return None
        return user if isinstance(user, dict) else None

    def is_admin_hint(self) -> bool:
        user = self.current_user()
        return bool(user and user.get("role") == "admin")

    def logout(self) -> None:
        self._post("/api/logout", {}, "Error de conexión con el servidor.")
        self.storage.pop(USER_KEY, None)

    def register(self, nombre: str, correo: str, password: str, confirm: str) -> None:
        if password.strip() != confirm.strip():
            raise ShopClientError("Las contraseñas no coinciden.")
        _, data = self._post(
            "/api/register",
            {"nombre": nombre.strip(), "correo": correo.strip(), "password": password.strip()},
            "Error de conexión con el servidor.",
        )
        if not data.get("ok"):
            raise ShopClientError(data.get("error") or "No se pudo registrar.")

    # ---------- forms ----------

    def subscribe(self, email: str) -> str:
        email = (email or "").strip()
        if not email:
            raise ShopClientError("Por favor ingresa un correo válido.")
        if not EMAIL_RE.match(email):
            raise ShopClientError("El formato del correo no es válido.")
        _, data = self._post(
            "/api/contact",
            {"correo": email, "type": "subscribe"},
            "Error de red. Por favor verifica tu conexión e intenta de nuevo.",
        )
        if not data.get("success"):
            raise ShopClientError(
                data.get("message") or "No se pudo completar la suscripción. Intenta más tarde."
            )
        return data.get("message") or "¡Gracias por suscribirte!"

    def send_contact(self, nombre: str, correo: str, mensaje: str) -> None:
        nombre, correo, mensaje = (nombre or "").strip(), (correo or "").strip(), (mensaje or "").strip()
        if not nombre or not correo or not mensaje:
            raise ShopClientError("Por favor completa todos los campos.")
        if not EMAIL_RE.match(correo):
            raise ShopClientError("Por favor ingresa un correo electrónico válido.")
        if len(nombre) < 2:
            raise ShopClientError("El nombre debe tener al menos 2 caracteres.")
        if len(mensaje) < 10:
            raise ShopClientError("El mensaje debe tener al menos 10 caracteres.")
        _, data = self._post(
            "/api/contact",
            {"nombre": nombre, "correo": correo, "mensaje": mensaje},
            "Error de red. Intenta más tarde.",
        )
        if not data.get("success"):
            raise ShopClientError(data.get("message") or "Error al enviar el formulario.")

    def reserve(self, nombre: str, correo: str, fecha: str, hora: str, personas, mensaje: str = "") -> None:
        fields = [str(v).strip() if v is not None else "" for v in (nombre, correo, fecha, hora, personas)]
        if not all(fields):
            raise ShopClientError("Por favor completa todos los campos de la reserva.")
        nombre, correo, fecha, hora, personas = fields
        _, data = self._post(
            "/api/reservas",
            {"nombre": nombre, "correo": correo, "fecha": fecha, "hora": hora,
             "personas": personas, "mensaje": mensaje},
            "Error de red. Intenta más tarde.",
        )
        if not data.get("success"):
            raise ShopClientError(data.get("message") or "Error al enviar la reserva.")
