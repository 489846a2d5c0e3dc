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

"""Webhook service for MercadoPago payment notifications.

The route acknowledges the callback right away and hands the parsed
notification to `WebhookService.handle`, which runs as a background task:

1. Ignore anything that is not a payment notification with an id.
2. Fetch the payment from MercadoPago; the callback payload is never trusted
   for status.
3. For approved payments, claim the payment id in the ledger so redeliveries
   do not notify twice.
4. Send one WhatsApp message to the customer and one to the store owner.

Failures are logged and recorded in the diagnostics store; they never reach
the caller.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import db
from diagnostics import DiagnosticsStore
from enums import PAYMENT_TOPIC
from enums import PaymentStatus
from enums import WebhookOutcome
from exceptions import ConfigurationError
from exceptions import InvalidRequestError
from exceptions import ShopError
from fallback import dig
from fallback import first_present
from models import OrderMetadata
from models import Payment
from models import WebhookNotification
from pydantic import ValidationError
from services.mercadopago_client import MercadoPagoClient
from services.notification_service import normalize_phone
from services.notification_service import NotificationService
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

logger = logging.getLogger(__name__)


def _action_topic(body: Mapping[str, Any]) -> Optional[str]:
  action = body.get("action")
  if isinstance(action, str) and action:
    return action.split(".", 1)[0]
  return None


def parse_notification(
    query: Mapping[str, Any], body: Any
) -> WebhookNotification:
  """Resolves topic and payment id from a MercadoPago callback.

  MercadoPago has sent several shapes over time (IPN query strings, v1
  webhooks with a JSON body). Precedence, highest first:

  - topic: query `topic`, query `type`, body `type`, body `topic`, body
    `action` prefix (`payment.created` -> `payment`).
  - payment id: query `data.id`, query `id`, body `data.id`, body `id`.
  """
  body = body if isinstance(body, dict) else {}
  query = dict(query)

  topic = first_present([
      query.get("topic"),
      query.get("type"),
      body.get("type"),
      body.get("topic"),
      _action_topic(body),
  ])
  payment_id = first_present([
      dig(query, "data.id"),
      query.get("id"),
      dig(body, "data.id"),
      body.get("id"),
  ])

  return WebhookNotification(
      topic=str(topic).strip().lower() if topic is not None else None,
      payment_id=str(payment_id).strip() if payment_id is not None else None,
      query=query,
      body=body,
  )


def _money(value: float) -> str:
  return f"${value:,.2f}"


def format_items(metadata: OrderMetadata) -> List[str]:
  lines = [
      f"- {item.quantity} x {item.name} ({_money(item.price)})"
      for item in metadata.cart
  ]
  if metadata.shipping_cost:
    lines.append(f"- Envío a domicilio ({_money(metadata.shipping_cost)})")
  return lines


def customer_message(metadata: OrderMetadata, order_id: str) -> str:
  name = metadata.customer.name if metadata.customer else None
  greeting = "¡Gracias por tu compra!"
  if name:
    greeting = f"¡Gracias por tu compra, {name}!"
  return "\n".join([
      greeting,
      f"Pedido: {order_id}",
      "",
      *format_items(metadata),
      "",
      f"Total: {_money(metadata.total)} MXN",
      "Recibimos tu pago. Te contactaremos para coordinar la entrega.",
      "Materiales Payán",
  ])


def owner_message(
    metadata: OrderMetadata, order_id: str, payment: Payment
) -> str:
  customer = metadata.customer
  lines = [
      "Nuevo pedido pagado",
      f"Pedido: {order_id}",
      f"Pago MP: {payment.id}",
  ]
  if customer:
    lines.append(f"Cliente: {customer.name or '-'} ({customer.phone or '-'})")
    if customer.postal_code:
      lines.append(f"CP: {customer.postal_code}")
  lines += [
      "",
      *format_items(metadata),
      "",
      f"Total: {_money(metadata.total)} MXN",
  ]
  return "\n".join(lines)


class WebhookService:
  """Processes MercadoPago payment notifications."""

  def __init__(
      self,
      mercadopago: MercadoPagoClient,
      notifier: NotificationService,
      session_factory: Optional[sessionmaker],
      diagnostics: DiagnosticsStore,
      owner_phone: Optional[str],
  ):
    self.mercadopago = mercadopago
    self.notifier = notifier
    self.session_factory = session_factory
    self.diagnostics = diagnostics
    self.owner_phone = owner_phone

  def _session(self) -> AsyncSession:
    if self.session_factory is None:
      raise ConfigurationError("Notification ledger is not initialized")
    return self.session_factory()

  async def handle(self, notification: WebhookNotification) -> WebhookOutcome:
    """Background entry point; never raises."""
    try:
      return await self.process(notification)
    except Exception as e:  # pylint: disable=broad-exception-caught
      logger.exception(
          "Webhook processing failed for payment %s", notification.payment_id
      )
      self.diagnostics.record_error(
          "webhook",
          e,
          {"topic": notification.topic, "paymentId": notification.payment_id},
      )
      return WebhookOutcome.FAILED

  async def process(
      self, notification: WebhookNotification
  ) -> WebhookOutcome:
    """Looks up the payment and notifies for approved ones."""
    if notification.topic != PAYMENT_TOPIC or not notification.payment_id:
      logger.info(
          "Ignoring webhook topic=%s id=%s",
          notification.topic,
          notification.payment_id,
      )
      return WebhookOutcome.IGNORED

    payment = await self.mercadopago.get_payment(notification.payment_id)
    logger.info("Payment %s status: %s", payment.id, payment.status)

    try:
      metadata = OrderMetadata.model_validate(payment.metadata)
    except ValidationError as e:
      logger.warning("Payment %s has unreadable metadata: %s", payment.id, e)
      metadata = OrderMetadata()
    order_id = first_present(
        [metadata.order_id, payment.external_reference], default="-"
    )

    if payment.status != PaymentStatus.APPROVED.value:
      await self._log(payment, order_id, WebhookOutcome.NOT_APPROVED)
      return WebhookOutcome.NOT_APPROVED

    async with self._session() as session:
      claimed = await db.claim_payment(session, payment.id, order_id)
    if not claimed:
      logger.info("Payment %s already notified; skipping", payment.id)
      await self._log(payment, order_id, WebhookOutcome.DUPLICATE)
      return WebhookOutcome.DUPLICATE

    try:
      await self._notify(payment, metadata, order_id)
    except Exception:
      async with self._session() as session:
        await db.release_payment(session, payment.id)
      await self._log(payment, order_id, WebhookOutcome.FAILED)
      raise

    await self._log(payment, order_id, WebhookOutcome.NOTIFIED)
    return WebhookOutcome.NOTIFIED

  def _customer_phone(
      self, metadata: OrderMetadata, order_id: str
  ) -> Optional[str]:
    raw = metadata.customer.phone if metadata.customer else None
    if not raw:
      logger.warning("Order %s has no customer phone", order_id)
      return None
    try:
      return normalize_phone(raw)
    except InvalidRequestError:
      # Retrying cannot fix the number; notify the owner only
      logger.warning(
          "Order %s has an unusable customer phone %r", order_id, raw
      )
      return None

  async def _notify(
      self, payment: Payment, metadata: OrderMetadata, order_id: str
  ) -> None:
    """Sends the customer and owner messages.

    The owner message is attempted even if the customer message fails; a
    customer failure is re-raised afterwards so the claim is released.
    """
    customer_error: Optional[ShopError] = None
    customer_phone = self._customer_phone(metadata, order_id)
    if customer_phone:
      try:
        await self.notifier.send_text(
            customer_phone, customer_message(metadata, order_id)
        )
      except ShopError as e:
        logger.error("Customer message for order %s failed: %s", order_id, e)
        customer_error = e

    if self.owner_phone:
      await self.notifier.send_text(
          self.owner_phone, owner_message(metadata, order_id, payment)
      )
    else:
      logger.warning("OWNER_WHATSAPP not set; owner not notified")

    if customer_error is not None:
      raise customer_error

  async def _log(
      self, payment: Payment, order_id: str, outcome: WebhookOutcome
  ) -> None:
    payload: Dict[str, Any] = {
        "status_detail": payment.status_detail,
        "transaction_amount": payment.transaction_amount,
    }
    async with self._session() as session:
      await db.log_webhook_event(
          session,
          topic=PAYMENT_TOPIC,
          payment_id=payment.id,
          outcome=outcome.value,
          status=payment.status,
          order_id=order_id,
          payload=payload,
      )
      await session.commit()
