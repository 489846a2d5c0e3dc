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

"""Shared configuration and startup logic for the store backend.

Runtime settings come from the environment (optionally via a `.env` file) and
are read once into a `Settings` model. Process-level options for the entry
point are absl flags.
"""

import contextlib
import functools
import logging
from typing import List, Optional

from absl import flags
from cache import LruCache
import db
from diagnostics import DiagnosticsStore
from fastapi import FastAPI
import httpx
from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

logger = logging.getLogger(__name__)

FLAGS = flags.FLAGS

SERVICE_NAME = "Materiales Payán Backend"
SERVER_VERSION = "shipping-whatsapp"

STORE_ORIGINS = [
    "https://materialespayan.online",
    "https://www.materialespayan.online",
    "http://localhost:5500",
    "http://127.0.0.1:5500",
]

BACK_URLS = {
    "success": "https://materialespayan.online/pago-exitoso.html",
    "failure": "https://materialespayan.online/pago-fallo.html",
    "pending": "https://materialespayan.online/pago-pendiente.html",
}

DEFAULT_WEBHOOK_URL = (
    "https://materiales-payan-backend.onrender.com/api/mp/webhook"
)

CURRENCY = "MXN"
COUNTRY_CALLING_CODE = "52"

FREE_SHIPPING_KM = 5.0
SHIPPING_RATE_PER_KM = 80.0

# Define flags only if they haven't been defined yet (to avoid duplicates
# during tests or re-imports)
try:
  flags.DEFINE_integer("port", None, "Port to run the server on")
  flags.DEFINE_string("host", "0.0.0.0", "Interface to bind")
except flags.DuplicateFlagError:
  pass


class Settings(BaseSettings):
  """Environment-backed settings.

  Each field is read from the upper-cased environment variable of the same
  name (e.g. `MP_ACCESS_TOKEN`), then from `.env`. Empty variables count as
  unset.
  """

  model_config = SettingsConfigDict(
      env_file=".env",
      env_file_encoding="utf-8",
      env_ignore_empty=True,
      case_sensitive=False,
      extra="ignore",
  )

  mp_access_token: Optional[str] = None
  mp_webhook_url: str = DEFAULT_WEBHOOK_URL
  mp_use_sandbox: bool = False
  mp_api_base: str = "https://api.mercadopago.com"

  whatsapp_token: Optional[str] = None
  whatsapp_phone_number_id: Optional[str] = None
  whatsapp_api_version: str = "v20.0"
  whatsapp_api_base: str = "https://graph.facebook.com"
  owner_whatsapp: Optional[str] = None

  store_postal_code: str = "81200"
  require_customer_contact: bool = True

  nominatim_url: str = "https://nominatim.openstreetmap.org/search"
  osrm_url: str = "https://router.project-osrm.org"
  geocode_cache_size: int = Field(default=512, ge=1)
  http_timeout_seconds: float = 10.0

  notifications_db_path: str = "notifications.db"
  extra_cors_origins: str = Field(
      default="", description="Additional CORS origins (comma-separated)"
  )
  port: int = 3000

  @property
  def cors_origins(self) -> List[str]:
    extra = [o.strip() for o in self.extra_cors_origins.split(",")]
    return STORE_ORIGINS + [o for o in extra if o and o not in STORE_ORIGINS]

  def public_summary(self) -> dict:
    """Non-secret configuration echo for the health endpoint."""
    return {
        "mercadoPagoConfigured": bool(self.mp_access_token),
        "webhookUrl": self.mp_webhook_url,
        "sandbox": self.mp_use_sandbox,
        "whatsappConfigured": bool(
            self.whatsapp_token and self.whatsapp_phone_number_id
        ),
        "ownerConfigured": bool(self.owner_whatsapp),
        "storePostalCode": self.store_postal_code,
        "requireCustomerContact": self.require_customer_contact,
    }


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Reads settings once per process."""
  return Settings()


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
  """Creates the application-scoped HTTP client, caches and ledger."""
  settings = get_settings()
  app.state.http_client = httpx.AsyncClient(
      timeout=settings.http_timeout_seconds
  )
  app.state.geocode_cache = LruCache(max_size=settings.geocode_cache_size)
  app.state.diagnostics = DiagnosticsStore()
  await db.manager.init_db(settings.notifications_db_path)
  logger.info(
      "Started %s (%s)", SERVICE_NAME, settings.public_summary()
  )
  yield
  await app.state.http_client.aclose()
  await db.manager.close()
