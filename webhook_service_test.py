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

"""Tests for webhook parsing, message formatting and failure handling."""

import asyncio

from absl.testing import absltest
from absl.testing import parameterized
from diagnostics import DiagnosticsStore
from enums import WebhookOutcome
from models import OrderMetadata
from models import Payment
from models import WebhookNotification
from services.webhook_service import customer_message
from services.webhook_service import owner_message
from services.webhook_service import parse_notification
from services.webhook_service import WebhookService


def _metadata(shipping_cost: float = 584) -> OrderMetadata:
  return OrderMetadata.model_validate({
      "order_id": "ord_abc123",
      "customer": {
          "name": "Ana",
          "phone": "6681234567",
          "postal_code": "81250",
      },
      "cart": [{"id": "cem-1", "name": "Cemento", "price": 50, "quantity": 2}],
      "shipping_cost": shipping_cost,
  })


class ParseNotificationTest(parameterized.TestCase):

  @parameterized.named_parameters(
      ("ipn_query", {"topic": "payment", "id": "123"}, {}, "payment", "123"),
      (
          "webhook_query",
          {"type": "payment", "data.id": "456"},
          {},
          "payment",
          "456",
      ),
      (
          "json_body",
          {},
          {"type": "payment", "data": {"id": 789}},
          "payment",
          "789",
      ),
      (
          "action_prefix",
          {},
          {"action": "payment.created", "data": {"id": "55"}},
          "payment",
          "55",
      ),
      (
          "other_topic",
          {"topic": "merchant_order", "id": "9"},
          {},
          "merchant_order",
          "9",
      ),
      (
          "query_wins_over_body",
          {"topic": "payment", "data.id": "1"},
          {"type": "plan", "data": {"id": "2"}},
          "payment",
          "1",
      ),
      (
          "topic_is_lowercased",
          {"type": "Payment", "id": "7"},
          {},
          "payment",
          "7",
      ),
      ("non_object_body", {}, ["payment"], None, None),
  )
  def test_parse(self, query, body, topic, payment_id) -> None:
    notification = parse_notification(query, body)
    self.assertEqual(notification.topic, topic)
    self.assertEqual(notification.payment_id, payment_id)


class MessageFormattingTest(absltest.TestCase):

  def test_customer_message(self) -> None:
    message = customer_message(_metadata(), "ord_abc123")

    self.assertIn("Ana", message)
    self.assertIn("Pedido: ord_abc123", message)
    self.assertIn("- 2 x Cemento ($50.00)", message)
    self.assertIn("Envío a domicilio ($584.00)", message)
    self.assertIn("Total: $684.00 MXN", message)

  def test_owner_message(self) -> None:
    payment = Payment(id=123, status="approved")
    message = owner_message(_metadata(), "ord_abc123", payment)

    self.assertIn("Pedido: ord_abc123", message)
    self.assertIn("Pago MP: 123", message)
    self.assertIn("Cliente: Ana (6681234567)", message)
    self.assertIn("CP: 81250", message)
    self.assertIn("Total: $684.00 MXN", message)

  def test_no_delivery_line_without_shipping(self) -> None:
    message = customer_message(_metadata(shipping_cost=0), "ord_abc123")

    self.assertNotIn("Envío", message)
    self.assertIn("Total: $100.00 MXN", message)

  def test_thousands_separator(self) -> None:
    metadata = OrderMetadata.model_validate({
        "cart": [{"name": "Varilla", "price": 1234.5, "quantity": 1}],
    })
    self.assertIn("Total: $1,234.50 MXN", customer_message(metadata, "-"))


class _PendingPayments:

  async def get_payment(self, payment_id: str) -> Payment:
    return Payment(id=payment_id, status="pending")


class _FailingPayments:

  async def get_payment(self, payment_id: str) -> Payment:
    raise RuntimeError(f"lookup failed for {payment_id}")


class WebhookServiceTest(absltest.TestCase):

  def _service(self, mercadopago, diagnostics) -> WebhookService:
    return WebhookService(
        mercadopago,
        notifier=None,
        session_factory=None,
        diagnostics=diagnostics,
        owner_phone=None,
    )

  def test_non_payment_topic_is_ignored(self) -> None:
    diagnostics = DiagnosticsStore()
    service = self._service(_FailingPayments(), diagnostics)
    notification = WebhookNotification(topic="merchant_order", payment_id="9")

    outcome = asyncio.run(service.handle(notification))

    self.assertEqual(outcome, WebhookOutcome.IGNORED)
    self.assertEmpty(diagnostics.errors)

  def test_missing_id_is_ignored(self) -> None:
    service = self._service(_FailingPayments(), DiagnosticsStore())
    notification = WebhookNotification(topic="payment")

    self.assertEqual(
        asyncio.run(service.handle(notification)), WebhookOutcome.IGNORED
    )

  def test_lookup_failure_is_recorded(self) -> None:
    diagnostics = DiagnosticsStore()
    service = self._service(_FailingPayments(), diagnostics)
    notification = WebhookNotification(topic="payment", payment_id="42")

    outcome = asyncio.run(service.handle(notification))

    self.assertEqual(outcome, WebhookOutcome.FAILED)
    self.assertLen(diagnostics.errors, 1)
    error = diagnostics.errors[0]
    self.assertEqual(error["source"], "webhook")
    self.assertEqual(error["error"], "RuntimeError")
    self.assertEqual(error["context"], {"topic": "payment", "paymentId": "42"})

  def test_missing_ledger_is_recorded(self) -> None:
    diagnostics = DiagnosticsStore()
    service = self._service(_PendingPayments(), diagnostics)
    notification = WebhookNotification(topic="payment", payment_id="42")

    outcome = asyncio.run(service.handle(notification))

    self.assertEqual(outcome, WebhookOutcome.FAILED)
    self.assertEqual(diagnostics.errors[0]["error"], "ConfigurationError")


if __name__ == "__main__":
  absltest.main()
