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

"""Thin async client for the MercadoPago REST API.

Only the two calls this backend needs are wrapped: creating a checkout
preference and reading a payment.
"""

import logging
from typing import Any, Dict, Optional

from exceptions import ConfigurationError
from exceptions import PaymentProviderError
import httpx
from models import Payment

logger = logging.getLogger(__name__)


class MercadoPagoClient:
  """Client for the MercadoPago preferences and payments endpoints."""

  def __init__(
      self,
      http_client: httpx.AsyncClient,
      access_token: Optional[str],
      api_base: str = "https://api.mercadopago.com",
  ):
    self.http_client = http_client
    self.access_token = access_token
    self.api_base = api_base.rstrip("/")

  def _headers(self) -> Dict[str, str]:
    if not self.access_token:
      raise ConfigurationError("MP_ACCESS_TOKEN no está configurado")
    return {"Authorization": f"Bearer {self.access_token}"}

  async def create_preference(
      self, preference: Dict[str, Any], idempotency_key: Optional[str] = None
  ) -> Dict[str, Any]:
    """Creates a checkout preference and returns the provider's JSON body."""
    headers = self._headers()
    if idempotency_key:
      headers["X-Idempotency-Key"] = idempotency_key

    url = f"{self.api_base}/checkout/preferences"
    try:
      response = await self.http_client.post(
          url, json=preference, headers=headers
      )
    except httpx.HTTPError as e:
      logger.error("Network error creating preference: %s", e)
      raise PaymentProviderError() from e

    if not response.is_success:
      logger.error(
          "MercadoPago rejected preference: Status %d: %s",
          response.status_code,
          response.text,
      )
      raise PaymentProviderError()
    return response.json()

  async def get_payment(self, payment_id: str) -> Payment:
    """Fetches the authoritative state of a payment."""
    headers = self._headers()
    url = f"{self.api_base}/v1/payments/{payment_id}"
    try:
      response = await self.http_client.get(url, headers=headers)
    except httpx.HTTPError as e:
      logger.error("Network error fetching payment %s: %s", payment_id, e)
      raise PaymentProviderError(
          f"No se pudo consultar el pago {payment_id}"
      ) from e

    if not response.is_success:
      logger.error(
          "Failed to fetch payment %s: Status %d: %s",
          payment_id,
          response.status_code,
          response.text,
      )
      raise PaymentProviderError(f"No se pudo consultar el pago {payment_id}")
    return Payment.model_validate(response.json())
