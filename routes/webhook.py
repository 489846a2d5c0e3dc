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

"""MercadoPago webhook receiver."""

import json
import logging
from typing import Any

import dependencies
from diagnostics import DiagnosticsStore
from fastapi import APIRouter
from fastapi import BackgroundTasks
from fastapi import Depends
from fastapi import Request
from fastapi import Response
from services.webhook_service import parse_notification
from services.webhook_service import WebhookService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


async def _read_json_body(request: Request) -> Any:
  raw = await request.body()
  if not raw:
    return {}
  try:
    return json.loads(raw)
  except ValueError:
    logger.warning("Webhook body is not JSON (%d bytes)", len(raw))
    return {}


@router.post("/mp/webhook", operation_id="mercadopago_webhook")
async def mercadopago_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    webhook_service: WebhookService = Depends(
        dependencies.get_webhook_service
    ),
    diagnostics: DiagnosticsStore = Depends(dependencies.get_diagnostics),
) -> Response:
  """Acknowledges a payment callback and processes it in the background.

  MercadoPago retries callbacks that are not answered quickly with a 2xx, so
  the acknowledgment never waits for the payment lookup or the notifications.
  """
  body = await _read_json_body(request)
  notification = parse_notification(request.query_params, body)
  logger.info(
      "Webhook received topic=%s id=%s",
      notification.topic,
      notification.payment_id,
  )

  diagnostics.record_webhook({
      "query": notification.query,
      "body": notification.body,
      "topic": notification.topic,
      "paymentId": notification.payment_id,
  })
  background_tasks.add_task(webhook_service.handle, notification)
  return Response(status_code=200)
