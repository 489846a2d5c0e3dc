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

"""Request, response and domain models for the store backend.

The storefront speaks camelCase JSON (`postalCode`, `shippingCost`), while
MercadoPago metadata is snake_case. Models accept both through aliases and
`populate_by_name`.
"""

from typing import Annotated, Any, Dict, List, NamedTuple, Optional

from pydantic import BaseModel
from pydantic import BeforeValidator
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator


def _to_str(value: Any) -> Any:
  if isinstance(value, (int, float)) and not isinstance(value, bool):
    return str(value)
  return value


# Accepts numbers where the storefront is loose about ids and phone numbers
LooseStr = Annotated[str, BeforeValidator(_to_str)]


class CartItem(BaseModel):
  """A product line as sent by the storefront cart."""

  id: Optional[LooseStr] = None
  name: str
  price: float = Field(ge=0)
  quantity: int = Field(default=1, ge=1)
  img: Optional[str] = None

  @field_validator("quantity", mode="before")
  @classmethod
  def default_quantity(cls, value: Any) -> Any:
    # The cart widget sends 0/null for "one unit"
    return value or 1

  @property
  def subtotal(self) -> float:
    return self.price * self.quantity


class Customer(BaseModel):
  model_config = ConfigDict(populate_by_name=True)

  name: Optional[str] = None
  phone: Optional[LooseStr] = None
  postal_code: Optional[LooseStr] = Field(default=None, alias="postalCode")


class ShippingSelection(BaseModel):
  """Shipping quote the storefront attaches to a checkout."""

  model_config = ConfigDict(populate_by_name=True)

  cost: Optional[float] = None
  postal_code: Optional[LooseStr] = Field(default=None, alias="postalCode")
  distance_km: Optional[float] = Field(default=None, alias="distanceKm")


class CheckoutRequest(BaseModel):
  model_config = ConfigDict(populate_by_name=True)

  cart: Optional[List[CartItem]] = None
  customer: Optional[Customer] = None
  shipping: Optional[ShippingSelection] = None
  shipping_cost: Optional[float] = Field(default=None, alias="shippingCost")


class CheckoutResponse(BaseModel):
  model_config = ConfigDict(populate_by_name=True)

  checkout_url: str = Field(alias="checkoutUrl")
  order_id: str = Field(alias="orderId")


class ShippingQuoteRequest(BaseModel):
  model_config = ConfigDict(populate_by_name=True)

  postal_code: Optional[LooseStr] = Field(default=None, alias="postalCode")
  zip: Optional[LooseStr] = None


class ShippingQuote(BaseModel):
  model_config = ConfigDict(populate_by_name=True)

  postal_code: str = Field(alias="postalCode")
  origin_postal_code: str = Field(alias="originPostalCode")
  distance_km: float = Field(alias="distanceKm")
  cost: float
  free_km: float = Field(alias="freeKm")
  rate_per_km: float = Field(alias="ratePerKm")


class Coordinates(NamedTuple):
  lat: float
  lon: float


class ManualMessageRequest(BaseModel):
  to: Optional[LooseStr] = None
  text: Optional[str] = None


class OrderMetadata(BaseModel):
  """Metadata attached to a preference and echoed back on the payment."""

  model_config = ConfigDict(populate_by_name=True, extra="ignore")

  order_id: Optional[str] = None
  customer: Optional[Customer] = None
  cart: List[CartItem] = []
  shipping_cost: float = 0

  @field_validator("shipping_cost", mode="before")
  @classmethod
  def none_is_zero(cls, value: Any) -> Any:
    return value or 0

  @property
  def items_total(self) -> float:
    return sum(item.subtotal for item in self.cart)

  @property
  def total(self) -> float:
    return round(self.items_total + self.shipping_cost, 2)


class Payment(BaseModel):
  """The subset of a MercadoPago payment this service reads."""

  model_config = ConfigDict(extra="ignore")

  id: LooseStr
  status: Optional[str] = None
  status_detail: Optional[str] = None
  external_reference: Optional[str] = None
  transaction_amount: Optional[float] = None
  metadata: Dict[str, Any] = {}

  @field_validator("metadata", mode="before")
  @classmethod
  def none_is_empty(cls, value: Any) -> Any:
    return value or {}


class WebhookNotification(BaseModel):
  """A MercadoPago callback after resolving its topic and payment id."""

  topic: Optional[str] = None
  payment_id: Optional[str] = None
  query: Dict[str, Any] = {}
  body: Dict[str, Any] = {}
