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

"""Health, manual test and debug routes."""

import json
import logging
from typing import Any

from cache import LruCache
import config
import dependencies
from diagnostics import DiagnosticsStore
from exceptions import InvalidRequestError
from fastapi import APIRouter
from fastapi import Depends
from fastapi import Request
from fallback import first_present
from models import ManualMessageRequest
from pydantic import ValidationError
from services.notification_service import normalize_phone
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_TEST_TEXT = "Mensaje de prueba de Materiales Payán"


@router.get("/", response_model=dict[str, Any], operation_id="health")
async def health(
    settings: config.Settings = Depends(dependencies.get_settings),
    geocode_cache: LruCache = Depends(dependencies.get_geocode_cache),
) -> dict[str, Any]:
  """Returns service info, a non-secret config echo and cache stats."""
  return {
      "ok": True,
      "service": config.SERVICE_NAME,
      "version": config.SERVER_VERSION,
      "config": settings.public_summary(),
      "geocodeCache": geocode_cache.stats(),
  }


async def _manual_message(request: Request) -> ManualMessageRequest:
  """Reads `to`/`text` from a JSON body, falling back to the query string."""
  body: Any = {}
  if request.method == "POST":
    raw = await request.body()
    if raw:
      try:
        body = json.loads(raw)
      except ValueError as e:
        raise InvalidRequestError("JSON inválido") from e
  if not isinstance(body, dict):
    body = {}

  query = request.query_params
  try:
    return ManualMessageRequest(
        to=first_present([body.get("to"), query.get("to")]),
        text=first_present([body.get("text"), query.get("text")]),
    )
  except ValidationError as e:
    raise InvalidRequestError("Parámetros inválidos") from e


@router.api_route(
    "/api/test-whatsapp",
    methods=["GET", "POST"],
    response_model=dict[str, Any],
    operation_id="test_whatsapp",
)
async def send_test_whatsapp(
    request: Request,
    settings: config.Settings = Depends(dependencies.get_settings),
    notifier: NotificationService = Depends(
        dependencies.get_notification_service
    ),
) -> dict[str, Any]:
  """Sends a manual WhatsApp message, to the owner by default."""
  message = await _manual_message(request)
  to = first_present([message.to, settings.owner_whatsapp])
  if not to:
    raise InvalidRequestError(
        "Falta 'to' y OWNER_WHATSAPP no está configurado"
    )

  recipient = normalize_phone(to)
  await notifier.send_text(recipient, message.text or DEFAULT_TEST_TEXT)
  return {"ok": True, "to": recipient}


@router.get(
    "/api/debug/last-webhook",
    response_model=dict[str, Any],
    operation_id="last_webhook",
)
async def last_webhook(
    diagnostics: DiagnosticsStore = Depends(dependencies.get_diagnostics),
) -> dict[str, Any]:
  """Returns the most recently received webhook, or null."""
  return {"lastWebhook": diagnostics.last_webhook}


@router.get(
    "/api/debug/webhook-errors",
    response_model=dict[str, Any],
    operation_id="webhook_errors",
)
async def webhook_errors(
    diagnostics: DiagnosticsStore = Depends(dependencies.get_diagnostics),
) -> dict[str, Any]:
  """Returns recent background webhook processing errors, oldest first."""
  return {"errors": diagnostics.errors}
