#   Copyright 2026 UCP Authors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""Checkout service for creating MercadoPago checkout sessions.

This module provides the `CheckoutService` class, which turns a storefront
cart into a MercadoPago preference and returns the hosted checkout URL.

There is no local order store. The generated order id travels to MercadoPago
as `external_reference` and inside `metadata` together with the customer and
cart, and comes back unchanged when the payment is looked up from the webhook.
"""

import logging
from typing import Any, Dict, List, Optional
import uuid

import config
from exceptions import InvalidRequestError
from exceptions import PaymentProviderError
from fallback import first_present
from fallback import is_positive_number
from models import CartItem
from models import CheckoutRequest
from models import CheckoutResponse
from models import OrderMetadata
from services.mercadopago_client import MercadoPagoClient
from services.notification_service import normalize_phone

logger = logging.getLogger(__name__)

SHIPPING_ITEM_ID = "envio"
SHIPPING_ITEM_TITLE = "Envío a domicilio"
STATEMENT_DESCRIPTOR = "MATERIALES PAYAN"


def new_order_id() -> str:
  return f"ord_{uuid.uuid4().hex[:12]}"


def resolve_shipping_cost(checkout_req: CheckoutRequest) -> Optional[float]:
  """Returns the delivery cost to charge, if any.

  Precedence: `shipping.cost` (object form) first, then `shippingCost` (flat
  form). Only positive amounts count, so a zero in the object form falls
  through to the flat form.
  """
  object_cost = checkout_req.shipping.cost if checkout_req.shipping else None
  cost = first_present(
      [object_cost, checkout_req.shipping_cost], accept=is_positive_number
  )
  return round(float(cost), 2) if cost is not None else None


class CheckoutService:
  """Service for building and creating checkout preferences."""

  def __init__(
      self,
      mercadopago: MercadoPagoClient,
      webhook_url: str,
      require_customer_contact: bool = True,
      use_sandbox: bool = False,
  ):
    self.mercadopago = mercadopago
    self.webhook_url = webhook_url
    self.require_customer_contact = require_customer_contact
    self.use_sandbox = use_sandbox

  def _validate(self, checkout_req: CheckoutRequest) -> List[CartItem]:
    if not checkout_req.cart:
      raise InvalidRequestError("Carrito vacío")

    if self.require_customer_contact:
      customer = checkout_req.customer
      if not customer or not (customer.name or "").strip():
        raise InvalidRequestError("Falta el nombre del cliente")
      try:
        normalize_phone(customer.phone)
      except InvalidRequestError as e:
        raise InvalidRequestError("Falta el teléfono del cliente") from e

    return checkout_req.cart

  def build_preference(
      self,
      checkout_req: CheckoutRequest,
      order_id: str,
  ) -> Dict[str, Any]:
    """Maps a checkout request to a MercadoPago preference body."""
    cart = self._validate(checkout_req)

    items: List[Dict[str, Any]] = []
    for product in cart:
      item: Dict[str, Any] = {
          "title": product.name,
          "quantity": product.quantity,
          "unit_price": product.price,
          "currency_id": config.CURRENCY,
      }
      if product.id:
        item["id"] = product.id
      if product.img and product.img.startswith(("http://", "https://")):
        item["picture_url"] = product.img
      items.append(item)

    shipping_cost = resolve_shipping_cost(checkout_req)
    if shipping_cost:
      items.append({
          "id": SHIPPING_ITEM_ID,
          "title": SHIPPING_ITEM_TITLE,
          "quantity": 1,
          "unit_price": shipping_cost,
          "currency_id": config.CURRENCY,
      })

    metadata = OrderMetadata(
        order_id=order_id,
        customer=checkout_req.customer,
        cart=cart,
        shipping_cost=shipping_cost or 0,
    )

    return {
        "items": items,
        "back_urls": dict(config.BACK_URLS),
        "auto_return": "approved",
        "notification_url": self.webhook_url,
        "external_reference": order_id,
        "statement_descriptor": STATEMENT_DESCRIPTOR,
        "metadata": metadata.model_dump(mode="json"),
    }

  async def create_checkout(
      self, checkout_req: CheckoutRequest
  ) -> CheckoutResponse:
    """Creates a hosted checkout session and returns its redirect URL."""
    order_id = new_order_id()
    preference = self.build_preference(checkout_req, order_id)
    logger.info(
        "Creating preference for order %s (%d items)",
        order_id,
        len(preference["items"]),
    )

    body = await self.mercadopago.create_preference(
        preference, idempotency_key=order_id
    )

    redirect_key = "sandbox_init_point" if self.use_sandbox else "init_point"
    checkout_url = first_present(
        [body.get(redirect_key), body.get("init_point")]
    )
    if not checkout_url:
      logger.error("Preference for order %s has no %s", order_id, redirect_key)
      raise PaymentProviderError()

    return CheckoutResponse(checkout_url=checkout_url, order_id=order_id)
