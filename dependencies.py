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

"""FastAPI dependencies for the store backend.

This module contains dependency injection logic for FastAPI endpoints,
including:
- Application-scoped state (HTTP client, geocoding cache, diagnostics store)
  created in `config.lifespan` and kept on `app.state`.
- The ledger session factory.
- Service instantiation (Checkout, Shipping, Notification, Webhook).

Tests replace the leaf providers through `app.dependency_overrides`.
"""

from typing import Optional

from cache import LruCache
import config
import db
from diagnostics import DiagnosticsStore
from fastapi import Depends
from fastapi import Request
import httpx
from services.checkout_service import CheckoutService
from services.geo_service import GeoService
from services.mercadopago_client import MercadoPagoClient
from services.notification_service import NotificationService
from services.shipping_service import ShippingService
from services.webhook_service import WebhookService
from sqlalchemy.orm import sessionmaker


def get_settings() -> config.Settings:
  """Dependency provider for Settings."""
  return config.get_settings()


def get_http_client(request: Request) -> httpx.AsyncClient:
  """Dependency provider for the shared outbound HTTP client."""
  return request.app.state.http_client


def get_geocode_cache(request: Request) -> LruCache:
  """Dependency provider for the postal code -> coordinates cache."""
  return request.app.state.geocode_cache


def get_diagnostics(request: Request) -> DiagnosticsStore:
  """Dependency provider for the webhook diagnostics store."""
  return request.app.state.diagnostics


def get_session_factory() -> Optional[sessionmaker]:
  """Dependency provider for the ledger session factory.

  Returns None before `config.lifespan` has run; the webhook service reports
  that as a processing error instead of failing the acknowledgment.
  """
  return db.manager.session_factory


def get_mercadopago_client(
    settings: config.Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> MercadoPagoClient:
  """Dependency provider for MercadoPagoClient."""
  return MercadoPagoClient(
      http_client, settings.mp_access_token, api_base=settings.mp_api_base
  )


def get_notification_service(
    settings: config.Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> NotificationService:
  """Dependency provider for NotificationService."""
  return NotificationService(
      http_client,
      settings.whatsapp_token,
      settings.whatsapp_phone_number_id,
      api_version=settings.whatsapp_api_version,
      api_base=settings.whatsapp_api_base,
  )


def get_geo_service(
    settings: config.Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    cache: LruCache = Depends(get_geocode_cache),
) -> GeoService:
  """Dependency provider for GeoService."""
  return GeoService(
      http_client,
      cache,
      nominatim_url=settings.nominatim_url,
      osrm_url=settings.osrm_url,
  )


def get_shipping_service(
    settings: config.Settings = Depends(get_settings),
    geo_service: GeoService = Depends(get_geo_service),
) -> ShippingService:
  """Dependency provider for ShippingService."""
  return ShippingService(geo_service, settings.store_postal_code)


def get_checkout_service(
    settings: config.Settings = Depends(get_settings),
    mercadopago: MercadoPagoClient = Depends(get_mercadopago_client),
) -> CheckoutService:
  """Dependency provider for CheckoutService."""
  return CheckoutService(
      mercadopago,
      settings.mp_webhook_url,
      require_customer_contact=settings.require_customer_contact,
      use_sandbox=settings.mp_use_sandbox,
  )


def get_webhook_service(
    settings: config.Settings = Depends(get_settings),
    mercadopago: MercadoPagoClient = Depends(get_mercadopago_client),
    notifier: NotificationService = Depends(get_notification_service),
    session_factory: Optional[sessionmaker] = Depends(get_session_factory),
    diagnostics: DiagnosticsStore = Depends(get_diagnostics),
) -> WebhookService:
  """Dependency provider for WebhookService."""
  return WebhookService(
      mercadopago,
      notifier,
      session_factory,
      diagnostics,
      owner_phone=settings.owner_whatsapp,
  )
