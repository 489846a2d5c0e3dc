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

"""Shipping service for quoting home delivery.

Delivery is free up to `FREE_SHIPPING_KM` of driving distance from the store;
beyond that each additional kilometer costs `SHIPPING_RATE_PER_KM`.
"""

import logging
import re
from typing import Optional

import config
from exceptions import InvalidRequestError
from models import ShippingQuote
from services.geo_service import GeoService

logger = logging.getLogger(__name__)

_POSTAL_CODE_RE = re.compile(r"^\d{5}$")


def calculate_shipping_cost(
    distance_km: float,
    free_km: float = config.FREE_SHIPPING_KM,
    rate_per_km: float = config.SHIPPING_RATE_PER_KM,
) -> float:
  """Returns the delivery cost for a driving distance.

  Args:
    distance_km: Driving distance from the store.
    free_km: Distance that is not charged.
    rate_per_km: Price per kilometer beyond `free_km`.

  Returns:
    The cost rounded to two decimals.
  """
  if distance_km < 0:
    raise ValueError("distance_km must not be negative")
  if distance_km <= free_km:
    return 0.0
  return round((distance_km - free_km) * rate_per_km, 2)


def validate_postal_code(postal_code: Optional[str]) -> str:
  """Normalizes a Mexican postal code or raises InvalidRequestError."""
  value = (postal_code or "").strip()
  if not _POSTAL_CODE_RE.match(value):
    raise InvalidRequestError(
        "Código postal inválido (se esperan 5 dígitos)"
    )
  return value


class ShippingService:
  """Service for handling shipping quotes."""

  def __init__(self, geo_service: GeoService, store_postal_code: str):
    self.geo_service = geo_service
    self.store_postal_code = store_postal_code

  def _quote(self, postal_code: str, distance_km: float) -> ShippingQuote:
    # Cost uses the exact distance; only the reported distance is rounded
    return ShippingQuote(
        postal_code=postal_code,
        origin_postal_code=self.store_postal_code,
        distance_km=round(distance_km, 2),
        cost=calculate_shipping_cost(distance_km),
        free_km=config.FREE_SHIPPING_KM,
        rate_per_km=config.SHIPPING_RATE_PER_KM,
    )

  async def quote(self, postal_code: Optional[str]) -> ShippingQuote:
    """Quotes delivery from the store to a destination postal code."""
    destination_cp = validate_postal_code(postal_code)

    if destination_cp == self.store_postal_code:
      return self._quote(destination_cp, 0.0)

    origin = await self.geo_service.geocode(self.store_postal_code)
    destination = await self.geo_service.geocode(destination_cp)
    distance_km = await self.geo_service.driving_distance_km(
        origin, destination
    )
    logger.info("Shipping quote %s: %.2f km", destination_cp, distance_km)
    return self._quote(destination_cp, distance_km)
