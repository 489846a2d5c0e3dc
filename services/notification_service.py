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

"""WhatsApp text notifications via the WhatsApp Cloud API."""

import logging
import re
from typing import Any, Dict, Optional

import config
from exceptions import ConfigurationError
from exceptions import InvalidRequestError
from exceptions import MessagingError
import httpx

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")

LOCAL_NUMBER_LENGTH = 10


def normalize_phone(
    raw: Optional[str], country_code: str = config.COUNTRY_CALLING_CODE
) -> str:
  """Normalizes a phone number to the digits-only form WhatsApp expects.

  Non-digits are stripped. A 10-digit local number gets the country calling
  code prefixed; anything else is assumed to already carry one. This is a
  heuristic, not a numbering-plan check, but it is idempotent.

  Args:
    raw: Phone number as typed by the customer, e.g. "(668) 123-4567".
    country_code: Calling code to prefix to local numbers.

  Returns:
    The normalized number, e.g. "526681234567".
  """
  digits = _NON_DIGITS.sub("", raw or "")
  if not digits:
    raise InvalidRequestError("Número de teléfono vacío")
  if len(digits) == LOCAL_NUMBER_LENGTH:
    return country_code + digits
  return digits


class NotificationService:
  """Sends WhatsApp text messages."""

  def __init__(
      self,
      http_client: httpx.AsyncClient,
      token: Optional[str],
      phone_number_id: Optional[str],
      api_version: str = "v20.0",
      api_base: str = "https://graph.facebook.com",
  ):
    self.http_client = http_client
    self.token = token
    self.phone_number_id = phone_number_id
    self.api_version = api_version
    self.api_base = api_base.rstrip("/")

  @property
  def configured(self) -> bool:
    return bool(self.token and self.phone_number_id)

  async def send_text(self, to: str, body: str) -> Dict[str, Any]:
    """Sends a text message and returns the API response body.

    Raises:
      ConfigurationError: If the token or sender id is missing.
      MessagingError: If the API rejects the message.
    """
    if not self.configured:
      raise ConfigurationError(
          "WhatsApp no está configurado (WHATSAPP_TOKEN /"
          " WHATSAPP_PHONE_NUMBER_ID)"
      )

    recipient = normalize_phone(to)
    url = f"{self.api_base}/{self.api_version}/{self.phone_number_id}/messages"
    payload = {
        "messaging_product": "whatsapp",
        "to": recipient,
        "type": "text",
        "text": {"preview_url": False, "body": body},
    }

    try:
      response = await self.http_client.post(
          url,
          json=payload,
          headers={"Authorization": f"Bearer {self.token}"},
      )
    except httpx.HTTPError as e:
      logger.error("Network error sending WhatsApp to %s: %s", recipient, e)
      raise MessagingError(f"No se pudo enviar WhatsApp a {recipient}") from e

    if not response.is_success:
      logger.error(
          "WhatsApp API rejected message to %s: Status %d: %s",
          recipient,
          response.status_code,
          response.text,
      )
      raise MessagingError(
          f"WhatsApp rechazó el mensaje a {recipient}"
          f" (HTTP {response.status_code})"
      )

    logger.info("WhatsApp sent to %s", recipient)
    return response.json()
