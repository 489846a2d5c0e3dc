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

"""Checkout and shipping quote routes."""

import dependencies
from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends
from fallback import first_present
from models import CheckoutRequest
from models import CheckoutResponse
from models import ShippingQuote
from models import ShippingQuoteRequest
from services.checkout_service import CheckoutService
from services.shipping_service import ShippingService

router = APIRouter(prefix="/api")


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    operation_id="create_checkout",
)
async def create_checkout(
    checkout_req: CheckoutRequest = Body(...),
    checkout_service: CheckoutService = Depends(
        dependencies.get_checkout_service
    ),
) -> CheckoutResponse:
  """Creates a MercadoPago checkout session for the cart."""
  return await checkout_service.create_checkout(checkout_req)


@router.post(
    "/shipping-quote",
    response_model=ShippingQuote,
    operation_id="shipping_quote",
)
async def shipping_quote(
    quote_req: ShippingQuoteRequest = Body(...),
    shipping_service: ShippingService = Depends(
        dependencies.get_shipping_service
    ),
) -> ShippingQuote:
  """Quotes home delivery to a postal code."""
  postal_code = first_present([quote_req.postal_code, quote_req.zip])
  return await shipping_service.quote(postal_code)
