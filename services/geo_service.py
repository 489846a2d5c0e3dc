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

"""Geocoding and routing lookups for shipping quotes.

Postal codes are resolved to approximate coordinates with Nominatim
(OpenStreetMap) and driving distances come from the public OSRM router.
Coordinates are memoized per postal code in an injected `LruCache`.
"""

import logging

from cache import LruCache
from exceptions import ShippingQuoteError
import httpx
from models import Coordinates

logger = logging.getLogger(__name__)

USER_AGENT = "materiales-payan-backend/1.0 (contacto@materialespayan.online)"


class GeoService:
  """Resolves postal codes to coordinates and coordinates to distances."""

  def __init__(
      self,
      http_client: httpx.AsyncClient,
      cache: LruCache,
      nominatim_url: str = "https://nominatim.openstreetmap.org/search",
      osrm_url: str = "https://router.project-osrm.org",
      country: str = "Mexico",
  ):
    self.http_client = http_client
    self.cache = cache
    self.nominatim_url = nominatim_url
    self.osrm_url = osrm_url.rstrip("/")
    self.country = country

  async def geocode(self, postal_code: str) -> Coordinates:
    """Returns approximate coordinates for a postal code."""
    cached = self.cache.get(postal_code)
    if cached is not None:
      return cached

    params = {
        "postalcode": postal_code,
        "country": self.country,
        "format": "jsonv2",
        "limit": 1,
    }
    try:
      response = await self.http_client.get(
          self.nominatim_url,
          params=params,
          headers={"User-Agent": USER_AGENT},
      )
    except httpx.HTTPError as e:
      logger.error("Network error geocoding %s: %s", postal_code, e)
      raise ShippingQuoteError(
          f"No se pudo geolocalizar el CP {postal_code}"
      ) from e

    if response.status_code != 200:
      logger.error(
          "Geocoding failed for %s: Status %d",
          postal_code,
          response.status_code,
      )
      raise ShippingQuoteError(
          f"Geocodificación falló para el CP {postal_code} "
          f"(HTTP {response.status_code})"
      )

    results = response.json()
    if not results:
      raise ShippingQuoteError(f"CP {postal_code} no encontrado")

    try:
      coords = Coordinates(
          lat=float(results[0]["lat"]), lon=float(results[0]["lon"])
      )
    except (KeyError, TypeError, ValueError) as e:
      raise ShippingQuoteError(
          f"Respuesta de geocodificación inválida para el CP {postal_code}"
      ) from e

    self.cache.set(postal_code, coords)
    return coords

  async def driving_distance_km(
      self, origin: Coordinates, destination: Coordinates
  ) -> float:
    """Returns the driving distance between two points in kilometers."""
    # OSRM expects lon,lat order
    path = (
        f"{origin.lon},{origin.lat};{destination.lon},{destination.lat}"
    )
    url = f"{self.osrm_url}/route/v1/driving/{path}"
    try:
      response = await self.http_client.get(
          url, params={"overview": "false"}
      )
    except httpx.HTTPError as e:
      logger.error("Network error requesting route %s: %s", path, e)
      raise ShippingQuoteError("No se pudo calcular la ruta") from e

    if response.status_code != 200:
      logger.error(
          "Routing failed for %s: Status %d: %s",
          path,
          response.status_code,
          response.text,
      )
      raise ShippingQuoteError(
          f"Cálculo de ruta falló (HTTP {response.status_code})"
      )

    data = response.json()
    routes = data.get("routes") or []
    if data.get("code") != "Ok" or not routes or "distance" not in routes[0]:
      raise ShippingQuoteError("La ruta no incluye distancia")

    return float(routes[0]["distance"]) / 1000.0
