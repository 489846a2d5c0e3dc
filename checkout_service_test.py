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

"""Tests for checkout preference building."""

import asyncio
import json
from typing import Any, Dict, List

from absl.testing import absltest
import config
from exceptions import ConfigurationError
from exceptions import InvalidRequestError
from exceptions import PaymentProviderError
import httpx
from models import CheckoutRequest
from services.checkout_service import CheckoutService
from services.checkout_service import resolve_shipping_cost
from services.mercadopago_client import MercadoPagoClient

WEBHOOK_URL = "https://backend.example/api/mp/webhook"

CART = [
    {
        "id": "cem-1",
        "name": "Cemento",
        "price": 50,
        "quantity": 2,
        "img": "https://cdn.example/cemento.jpg",
    },
    {
        "id": 7,
        "name": "Arena",
        "price": 120.5,
        "quantity": 0,
        "img": "arena.jpg",
    },
]

CUSTOMER = {"name": "Ana", "phone": "6681234567", "postalCode": "81250"}


def _request(**kwargs: Any) -> CheckoutRequest:
  body: Dict[str, Any] = {"cart": CART, "customer": CUSTOMER}
  body.update(kwargs)
  return CheckoutRequest.model_validate(body)


class ResolveShippingCostTest(absltest.TestCase):

  def test_object_form_wins(self) -> None:
    req = _request(shipping={"cost": 584}, shippingCost=120)
    self.assertEqual(resolve_shipping_cost(req), 584.0)

  def test_flat_form(self) -> None:
    self.assertEqual(resolve_shipping_cost(_request(shippingCost=120)), 120.0)

  def test_zero_object_cost_falls_through(self) -> None:
    req = _request(shipping={"cost": 0}, shippingCost=120)
    self.assertEqual(resolve_shipping_cost(req), 120.0)

  def test_no_positive_cost(self) -> None:
    self.assertIsNone(resolve_shipping_cost(_request()))
    self.assertIsNone(
        resolve_shipping_cost(_request(shipping={"cost": -5}, shippingCost=0))
    )


class CheckoutServiceTest(absltest.TestCase):

  def setUp(self) -> None:
    super().setUp()
    self.requests: List[httpx.Request] = []
    self.preference_response: Dict[str, Any] = {
        "id": "pref-1",
        "init_point": "https://mp.example/init",
        "sandbox_init_point": "https://mp.example/sandbox",
    }
    self.status_code = 201
    self.http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(self._handle)
    )

  def tearDown(self) -> None:
    asyncio.run(self.http_client.aclose())
    super().tearDown()

  def _handle(self, request: httpx.Request) -> httpx.Response:
    self.requests.append(request)
    return httpx.Response(self.status_code, json=self.preference_response)

  def _service(self, token="mp-token", **kwargs: Any) -> CheckoutService:
    client = MercadoPagoClient(self.http_client, token)
    return CheckoutService(client, WEBHOOK_URL, **kwargs)

  def test_build_preference_items(self) -> None:
    preference = self._service().build_preference(
        _request(shipping={"cost": 584}), "ord_abc123"
    )

    items = preference["items"]
    self.assertLen(items, 3)
    self.assertEqual(
        items[0],
        {
            "id": "cem-1",
            "title": "Cemento",
            "quantity": 2,
            "unit_price": 50.0,
            "currency_id": "MXN",
            "picture_url": "https://cdn.example/cemento.jpg",
        },
    )
    # Numeric ids become strings, missing quantities become 1, relative
    # image paths are not sent.
    self.assertEqual(items[1]["id"], "7")
    self.assertEqual(items[1]["quantity"], 1)
    self.assertNotIn("picture_url", items[1])
    self.assertEqual(
        items[2],
        {
            "id": "envio",
            "title": "Envío a domicilio",
            "quantity": 1,
            "unit_price": 584.0,
            "currency_id": "MXN",
        },
    )

  def test_build_preference_references(self) -> None:
    preference = self._service().build_preference(_request(), "ord_abc123")

    self.assertEqual(preference["external_reference"], "ord_abc123")
    self.assertEqual(preference["notification_url"], WEBHOOK_URL)
    self.assertEqual(preference["back_urls"], config.BACK_URLS)
    self.assertEqual(preference["auto_return"], "approved")
    self.assertLen(preference["items"], 2)

    metadata = preference["metadata"]
    self.assertEqual(metadata["order_id"], "ord_abc123")
    self.assertEqual(metadata["customer"]["phone"], "6681234567")
    self.assertEqual(metadata["customer"]["postal_code"], "81250")
    self.assertLen(metadata["cart"], 2)
    self.assertEqual(metadata["shipping_cost"], 0)

  def test_validation(self) -> None:
    service = self._service()
    cases = [
        _request(cart=[]),
        CheckoutRequest.model_validate({"customer": CUSTOMER}),
        _request(customer={"phone": "6681234567"}),
        _request(customer={"name": "Ana", "phone": "  "}),
        _request(customer={"name": "Ana", "phone": "sin teléfono"}),
        _request(customer=None),
    ]
    for req in cases:
      with self.assertRaises(InvalidRequestError):
        service.build_preference(req, "ord_abc123")

  def test_lenient_contact_policy(self) -> None:
    service = self._service(require_customer_contact=False)
    preference = service.build_preference(
        _request(customer=None), "ord_abc123"
    )
    self.assertIsNone(preference["metadata"]["customer"])

    with self.assertRaises(InvalidRequestError):
      service.build_preference(_request(cart=[]), "ord_abc123")

  def test_create_checkout(self) -> None:
    response = asyncio.run(self._service().create_checkout(_request()))

    self.assertEqual(response.checkout_url, "https://mp.example/init")
    self.assertRegex(response.order_id, r"^ord_[0-9a-f]{12}$")
    self.assertLen(self.requests, 1)
    request = self.requests[0]
    self.assertEqual(
        str(request.url), "https://api.mercadopago.com/checkout/preferences"
    )
    self.assertEqual(request.headers["Authorization"], "Bearer mp-token")
    self.assertEqual(request.headers["X-Idempotency-Key"], response.order_id)
    sent = json.loads(request.content)
    self.assertEqual(sent["external_reference"], response.order_id)

  def test_sandbox_redirect(self) -> None:
    service = self._service(use_sandbox=True)
    response = asyncio.run(service.create_checkout(_request()))
    self.assertEqual(response.checkout_url, "https://mp.example/sandbox")

  def test_order_ids_are_unique(self) -> None:
    service = self._service()
    first = asyncio.run(service.create_checkout(_request()))
    second = asyncio.run(service.create_checkout(_request()))
    self.assertNotEqual(first.order_id, second.order_id)

  def test_provider_rejection(self) -> None:
    self.status_code = 400
    self.preference_response = {"message": "invalid items"}
    with self.assertRaisesRegex(PaymentProviderError, "Error creando checkout"):
      asyncio.run(self._service().create_checkout(_request()))

  def test_missing_redirect_url(self) -> None:
    self.preference_response = {"id": "pref-1"}
    with self.assertRaises(PaymentProviderError):
      asyncio.run(self._service().create_checkout(_request()))

  def test_missing_token_makes_no_call(self) -> None:
    with self.assertRaises(ConfigurationError):
      asyncio.run(self._service(token=None).create_checkout(_request()))
    self.assertEmpty(self.requests)


if __name__ == "__main__":
  absltest.main()
